"""Tests for schema parsing and submission validation."""

import pytest
from pydantic import ValidationError

from formcraft.schemas.form_schema import FieldDefinition, FormSchema, SelectOption
from formcraft.services.validation import (
    FieldError,
    ValidationResult,
    coerce_number,
    validate_submission,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _schema(*fields):
    return FormSchema.from_document({"id": "schema-1", "title": "Test", "fields": list(fields)})


def _field(field_id, field_type="text", label=None, required=False, **extra):
    return {
        "id": field_id,
        "label": label or field_id.title(),
        "type": field_type,
        "required": required,
        **extra,
    }


PLAN_OPTIONS = [{"value": "a", "label": "Option A"}, {"value": "b", "label": "Option B"}]


# ---------------------------------------------------------------------------
# Schema model
# ---------------------------------------------------------------------------


class TestFormSchema:
    def test_bare_and_object_options_normalize(self):
        field = FieldDefinition.model_validate(
            {
                "id": "size",
                "label": "Size",
                "type": "select",
                "options": ["small", {"value": "lg", "label": "Large"}, {"value": "xl"}],
            }
        )
        assert field.options == [
            SelectOption(value="small"),
            SelectOption(value="lg", label="Large"),
            SelectOption(value="xl"),
        ]
        assert field.option_values == ["small", "lg", "xl"]
        assert field.option_labels == ["small", "Large", "xl"]

    def test_required_defaults_to_false(self):
        field = FieldDefinition.model_validate({"id": "x", "label": "X", "type": "text"})
        assert field.required is False

        field = FieldDefinition.model_validate({"id": "x", "label": "X", "type": "text", "required": None})
        assert field.required is False

    def test_unknown_type_accepted(self):
        field = FieldDefinition.model_validate({"id": "x", "label": "X", "type": "tel"})
        assert field.type == "tel"

    def test_field_order_preserved(self):
        schema = _schema(_field("b"), _field("a"), _field("c"))
        assert schema.field_ids() == ["b", "a", "c"]

    def test_schema_is_immutable(self):
        schema = _schema(_field("name"))
        with pytest.raises(ValidationError):
            schema.title = "Changed"


# ---------------------------------------------------------------------------
# Required / optional handling
# ---------------------------------------------------------------------------


class TestPresence:
    @pytest.mark.parametrize("value", [None, ""])
    def test_required_empty_value(self, value):
        schema = _schema(_field("name", label="Full Name", required=True))
        result = validate_submission(schema, {"name": value})
        assert result.success is False
        assert result.errors == [FieldError("name", "Full Name is required")]

    def test_required_missing_key(self):
        schema = _schema(_field("name", label="Full Name", required=True))
        result = validate_submission(schema, {})
        assert result.errors == [FieldError("name", "Full Name is required")]

    def test_required_missing_skips_type_rule(self):
        schema = _schema(_field("email", "email", label="Email", required=True))
        result = validate_submission(schema, {"email": ""})
        assert [error.message for error in result.errors] == ["Email is required"]

    @pytest.mark.parametrize("value", [None, ""])
    def test_optional_empty_is_omitted(self, value):
        schema = _schema(_field("age", "number"), _field("name", required=True))
        result = validate_submission(schema, {"age": value, "name": "Bob"})
        assert result.success is True
        assert result.data == {"name": "Bob"}

    def test_whitespace_is_not_empty(self):
        schema = _schema(_field("name", required=True))
        result = validate_submission(schema, {"name": "  "})
        assert result.success is True
        assert result.data == {"name": "  "}

    def test_unknown_keys_dropped(self):
        schema = _schema(_field("name"))
        result = validate_submission(schema, {"name": "Bob", "is_admin": True})
        assert result.data == {"name": "Bob"}


# ---------------------------------------------------------------------------
# Type rules
# ---------------------------------------------------------------------------


class TestEmail:
    @pytest.mark.parametrize("value", ["bob@x.com", "Alice.Smith@Example.CO.uk", "a+tag@b.io"])
    def test_valid_email_kept_verbatim(self, value):
        schema = _schema(_field("email", "email", label="Email"))
        result = validate_submission(schema, {"email": value})
        assert result.data == {"email": value}

    @pytest.mark.parametrize("value", ["not-an-email", "a@b", "a b@c.com", "a@@b.com", "@b.com", "josé@x.com", 42])
    def test_invalid_email(self, value):
        schema = _schema(_field("email", "email", label="Email"))
        result = validate_submission(schema, {"email": value})
        assert result.errors == [FieldError("email", "Email must be a valid email")]


class TestNumber:
    def test_numeric_string_coerced(self):
        schema = _schema(_field("age", "number", label="Age"))
        result = validate_submission(schema, {"age": "42"})
        assert result.data == {"age": 42}
        assert isinstance(result.data["age"], int)

    @pytest.mark.parametrize(
        "value,expected",
        [
            (" 42 ", 42),
            ("-3.5", -3.5),
            (".5", 0.5),
            ("1e3", 1000.0),
            (7, 7),
            (2.25, 2.25),
            ("+8", 8),
            ("0x1A", 26),
            ("0b11", 3),
            ("0o7", 7),
            (" 0XFF ", 255),
        ],
    )
    def test_coercible_values(self, value, expected):
        schema = _schema(_field("qty", "number"))
        assert validate_submission(schema, {"qty": value}).data == {"qty": expected}

    def test_blank_string_is_zero(self):
        schema = _schema(_field("qty", "number", required=True))
        assert validate_submission(schema, {"qty": "   "}).data == {"qty": 0}
        assert coerce_number("\t") == 0

    @pytest.mark.parametrize(
        "value", ["abc", "12abc", "1,000", "-0x1A", "0x", "0b12", "1_000", "NaN", "Infinity", [1], {"n": 1}]
    )
    def test_not_a_number(self, value):
        schema = _schema(_field("age", "number", label="Age"))
        result = validate_submission(schema, {"age": value})
        assert result.errors == [FieldError("age", "Age must be a number")]

    def test_no_bound_checks(self):
        schema = _schema(_field("age", "number"))
        assert validate_submission(schema, {"age": "-99999"}).data == {"age": -99999}

    def test_coerce_number_boolean(self):
        assert coerce_number(True) == 1
        assert coerce_number(False) == 0


class TestSelect:
    def test_valid_option(self):
        schema = _schema(_field("plan", "select", label="Plan", options=PLAN_OPTIONS))
        result = validate_submission(schema, {"plan": "a"})
        assert result.data == {"plan": "a"}

    def test_invalid_option_lists_display_labels(self):
        schema = _schema(_field("plan", "select", label="Plan", options=PLAN_OPTIONS))
        result = validate_submission(schema, {"plan": "c"})
        assert result.errors == [FieldError("plan", "Plan must be one of: Option A, Option B")]

    def test_label_must_not_be_submitted_as_value(self):
        schema = _schema(_field("plan", "select", label="Plan", options=PLAN_OPTIONS))
        result = validate_submission(schema, {"plan": "Option A"})
        assert result.success is False

    def test_bare_string_options(self):
        schema = _schema(_field("color", "select", label="Color", options=["red", "green"]))
        assert validate_submission(schema, {"color": "green"}).data == {"color": "green"}
        result = validate_submission(schema, {"color": "blue"})
        assert result.errors == [FieldError("color", "Color must be one of: red, green")]

    def test_object_option_without_label_displays_value(self):
        schema = _schema(_field("tier", "select", label="Tier", options=[{"value": "gold"}, "silver"]))
        result = validate_submission(schema, {"tier": "bronze"})
        assert result.errors[0].message == "Tier must be one of: gold, silver"

    def test_boolean_does_not_match_numeric_option(self):
        schema = _schema(_field("q", "select", label="Q", options=[{"value": 1}, {"value": 0}]))
        assert validate_submission(schema, {"q": True}).success is False
        assert validate_submission(schema, {"q": False}).success is False
        assert validate_submission(schema, {"q": 1}).data == {"q": 1}

    def test_numeric_option_does_not_match_boolean(self):
        schema = _schema(_field("agree", "select", label="Agree", options=[True]))
        assert validate_submission(schema, {"agree": 1}).success is False
        assert validate_submission(schema, {"agree": True}).data == {"agree": True}

    def test_string_does_not_match_numeric_option(self):
        schema = _schema(_field("n", "select", label="N", options=[1, 2]))
        assert validate_submission(schema, {"n": "1"}).success is False

    def test_no_options_accepts_anything(self):
        schema = _schema(_field("tag", "select", label="Tag"))
        assert validate_submission(schema, {"tag": "whatever"}).data == {"tag": "whatever"}
        assert validate_submission(schema, {"tag": 12}).data == {"tag": 12}


class TestText:
    @pytest.mark.parametrize("field_type", ["text", "textarea"])
    def test_string_kept(self, field_type):
        schema = _schema(_field("bio", field_type, label="Bio"))
        assert validate_submission(schema, {"bio": "Hello\nworld"}).data == {"bio": "Hello\nworld"}

    @pytest.mark.parametrize("field_type", ["tel", "date", "checkbox"])
    def test_unrecognized_type_validated_as_string(self, field_type):
        schema = _schema(_field("when", field_type, label="When"))
        assert validate_submission(schema, {"when": "2024-06-01"}).data == {"when": "2024-06-01"}
        result = validate_submission(schema, {"when": 20240601})
        assert result.errors == [FieldError("when", "When must be a string")]

    @pytest.mark.parametrize("value", [42, True, ["a"], {"a": 1}])
    def test_non_string_rejected(self, value):
        schema = _schema(_field("bio", "textarea", label="Bio"))
        result = validate_submission(schema, {"bio": value})
        assert result.errors == [FieldError("bio", "Bio must be a string")]


# ---------------------------------------------------------------------------
# Whole-result behavior
# ---------------------------------------------------------------------------


class TestValidationResult:
    def _contact_schema(self):
        return _schema(
            _field("name", label="Name", required=True),
            _field("email", "email", label="Email", required=True),
            _field("age", "number", label="Age"),
            _field("plan", "select", label="Plan", options=PLAN_OPTIONS),
        )

    def test_all_errors_reported_in_schema_order(self):
        result = validate_submission(
            self._contact_schema(),
            {"email": "nope", "age": "old", "plan": "z"},
        )
        assert result.success is False
        assert [error.field for error in result.errors] == ["name", "email", "age", "plan"]
        assert result.data == {}

    def test_success_payload(self):
        result = validate_submission(
            self._contact_schema(),
            {"name": "Bob", "email": "bob@x.com", "age": "30", "plan": "b"},
        )
        assert result.to_dict() == {
            "success": True,
            "data": {"name": "Bob", "email": "bob@x.com", "age": 30, "plan": "b"},
        }

    def test_failure_payload(self):
        result = validate_submission(self._contact_schema(), {"name": "Bob", "email": "x"})
        assert result.to_dict() == {
            "success": False,
            "errors": [{"field": "email", "message": "Email must be a valid email"}],
        }

    def test_idempotent(self):
        schema = self._contact_schema()
        data = {"name": "Bob", "email": "bad", "age": " 5 "}
        first = validate_submission(schema, data)
        second = validate_submission(schema, data)
        assert first == second
        assert data == {"name": "Bob", "email": "bad", "age": " 5 "}

    def test_empty_schema_accepts_empty_data(self):
        result = validate_submission(_schema(), {"anything": 1})
        assert result == ValidationResult(success=True, data={})

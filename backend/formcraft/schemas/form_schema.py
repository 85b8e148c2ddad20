"""Typed form schema: the field list a form is built from.

Schemas arrive as loose JSON (authored by hand or produced by the schema
generator). Select options may be bare strings or ``{value, label}`` objects;
both shapes are folded into :class:`SelectOption` when the schema is read, so
validation code never has to branch on the raw shape.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Types with a dedicated validation rule or widget; any other type is validated as text.
FIELD_TYPES: tuple[str, ...] = ("text", "email", "number", "textarea", "select")

OptionValue = str | int | float | bool


class SelectOption(BaseModel):
    """One allowed value of a select field."""

    model_config = ConfigDict(frozen=True)

    value: OptionValue
    label: str | None = None

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        return str(self.value)


class FieldDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str
    type: str
    required: bool = False
    options: list[SelectOption] | None = None
    placeholder: str | None = None

    @field_validator("required", mode="before")
    @classmethod
    def _missing_required_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("options must be a list")
        normalized = []
        for option in value:
            if isinstance(option, dict):
                normalized.append(option)
            else:
                normalized.append({"value": option})
        return normalized

    @property
    def option_values(self) -> list[OptionValue] | None:
        if self.options is None:
            return None
        return [option.value for option in self.options]

    @property
    def option_labels(self) -> list[str]:
        return [option.display_label for option in self.options or []]


class FormSchema(BaseModel):
    """Ordered field list plus display metadata.

    Field order drives rendering and export order only; it has no effect on
    validation outcomes.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str = ""
    description: str | None = None
    fields: list[FieldDefinition] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "FormSchema":
        """Read a stored or generated schema document."""
        return cls.model_validate(document)

    def field_ids(self) -> list[str]:
        return [field.id for field in self.fields]

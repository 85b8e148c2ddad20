import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from formcraft.schemas.form_schema import FormSchema


# ---------------------------------------------------------------------------
# Schema generation
# ---------------------------------------------------------------------------


class GenerateSchemaRequest(BaseModel):
    prompt: str = Field(..., min_length=10, max_length=4000)


class GenerateSchemaResponse(BaseModel):
    form_schema: dict[str, Any] = Field(..., serialization_alias="schema")


# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    form_schema: dict[str, Any] = Field(..., alias="schema")

    @field_validator("form_schema")
    @classmethod
    def _schema_shaped(cls, value: dict[str, Any]) -> dict[str, Any]:
        """Check the document reads as a FormSchema; the document itself is stored as sent."""
        try:
            FormSchema.from_document(value)
        except ValidationError as exc:
            raise ValueError(f"invalid form schema: {exc.error_count()} error(s)") from exc
        return value


class FormOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    form_schema: dict[str, Any] = Field(..., alias="schema")
    created_at: datetime
    updated_at: datetime


class FormDetailResponse(FormOut):
    submission_count: int = 0


class FormSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    created_at: datetime
    updated_at: datetime
    submission_count: int = 0


class FormListResponse(BaseModel):
    forms: list[FormSummary]


class PublicFormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    form_schema: dict[str, Any] = Field(..., alias="schema")


# ---------------------------------------------------------------------------
# Submission schemas
# ---------------------------------------------------------------------------


class SubmissionCreated(BaseModel):
    submission_id: uuid.UUID
    created_at: datetime
    message: str = "Form submitted successfully"


class FieldErrorOut(BaseModel):
    field: str
    message: str


class SubmissionRejected(BaseModel):
    success: bool = False
    error: str = "Validation failed"
    details: list[FieldErrorOut]


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    data: dict[str, Any]
    created_at: datetime


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionOut]
    pagination: PaginationMeta

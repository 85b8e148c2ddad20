"""Form API: schema generation, form CRUD, public submission, listing and export."""

import re
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from formcraft.core.auth import get_current_user
from formcraft.core.config import settings
from formcraft.core.database import get_db
from formcraft.models.form import Form
from formcraft.models.user import User
from formcraft.schemas.forms import (
    FieldErrorOut,
    FormCreate,
    FormDetailResponse,
    FormListResponse,
    FormOut,
    FormSummary,
    GenerateSchemaRequest,
    GenerateSchemaResponse,
    PaginationMeta,
    PublicFormResponse,
    SubmissionCreated,
    SubmissionListResponse,
    SubmissionOut,
    SubmissionRejected,
)
from formcraft.services import forms as form_repo
from formcraft.services import submissions as submission_service
from formcraft.services.forms import FormNotFoundError
from formcraft.services.schema_generator import SchemaGenerationError, generate_form_schema

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Form not found")


def _get_owned_form_or_404(form_id: uuid.UUID, owner: User, db: Session) -> Form:
    try:
        return form_repo.get_owned_form_or_raise(db, form_id, owner.id)
    except FormNotFoundError:
        raise _not_found()


def _export_filename(title: str) -> str:
    return f"{re.sub(r'[^a-z0-9]', '_', title, flags=re.IGNORECASE)}_submissions.json"


# ---------------------------------------------------------------------------
# Schema generation
# ---------------------------------------------------------------------------


@router.post("/generate", response_model=GenerateSchemaResponse)
async def generate_schema(
    payload: GenerateSchemaRequest,
    current_user: User = Depends(get_current_user),
):
    """Preview a generated schema; nothing is stored."""
    try:
        schema = await generate_form_schema(payload.prompt.strip())
    except SchemaGenerationError:
        raise HTTPException(status_code=502, detail="Failed to generate form schema")
    return GenerateSchemaResponse(form_schema=schema)


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=FormOut, status_code=201)
def create_form(
    payload: FormCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return form_repo.create_form(
        db,
        owner_id=current_user.id,
        title=payload.title,
        schema=payload.form_schema,
    )


@router.get("/", response_model=FormListResponse)
def list_forms(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = form_repo.list_forms_by_owner(db, current_user.id)
    return FormListResponse(
        forms=[
            FormSummary(
                id=form.id,
                title=form.title,
                created_at=form.created_at,
                updated_at=form.updated_at,
                submission_count=count,
            )
            for form, count in rows
        ]
    )


@router.get("/{form_id}", response_model=FormDetailResponse)
def get_form(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    form = _get_owned_form_or_404(form_id, current_user, db)
    return FormDetailResponse(
        id=form.id,
        title=form.title,
        form_schema=form.schema,
        created_at=form.created_at,
        updated_at=form.updated_at,
        submission_count=form_repo.count_submissions(db, form.id),
    )


@router.delete("/{form_id}")
def delete_form(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    form = _get_owned_form_or_404(form_id, current_user, db)
    form_repo.soft_delete_form(db, form.id)
    return {"message": "Form deleted successfully"}


# ---------------------------------------------------------------------------
# Public form + submission
# ---------------------------------------------------------------------------


@router.get("/{form_id}/public", response_model=PublicFormResponse)
def get_public_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form = form_repo.get_form_by_id(db, form_id)
    if form is None:
        raise _not_found()
    return form


@router.post(
    "/{form_id}/submit",
    response_model=SubmissionCreated,
    status_code=201,
    responses={400: {"model": SubmissionRejected}},
)
def submit_form(
    form_id: uuid.UUID,
    data: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    try:
        result, submission = submission_service.submit(db, form_id, data)
    except FormNotFoundError:
        raise _not_found()

    if submission is None:
        rejected = SubmissionRejected(
            details=[FieldErrorOut(field=error.field, message=error.message) for error in result.errors]
        )
        return JSONResponse(status_code=400, content=rejected.model_dump())

    return SubmissionCreated(submission_id=submission.id, created_at=submission.created_at)


# ---------------------------------------------------------------------------
# Submission listing + export (owner only)
# ---------------------------------------------------------------------------


@router.get("/{form_id}/submissions", response_model=SubmissionListResponse)
def list_submissions(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SUBMISSIONS_DEFAULT_PAGE_SIZE, ge=1, le=settings.SUBMISSIONS_MAX_PAGE_SIZE),
    search: str | None = Query(None, max_length=255),
    search_field: str | None = Query(None, max_length=255),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = submission_service.list_submissions(
            db,
            form_id,
            current_user.id,
            page=page,
            limit=limit,
            search=search,
            search_field=search_field,
        )
    except FormNotFoundError:
        raise _not_found()

    return SubmissionListResponse(
        submissions=[SubmissionOut.model_validate(item) for item in result.items],
        pagination=PaginationMeta(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/{form_id}/export")
def export_submissions(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Download every submission of the form as a single JSON document."""
    try:
        document = submission_service.export_submissions(db, form_id, current_user.id)
    except FormNotFoundError:
        raise _not_found()

    filename = _export_filename(document["form"]["title"])
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

"""Submission intake, listing/search and export for a single form."""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from formcraft.core.config import settings
from formcraft.models.submission import Submission
from formcraft.schemas.form_schema import FormSchema
from formcraft.services import forms as form_repo
from formcraft.services.forms import FormNotFoundError
from formcraft.services.validation import ValidationResult, validate_submission

logger = logging.getLogger(__name__)


@dataclass
class SubmissionPage:
    items: list[Submission]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    page = max(page, 1)
    limit = min(max(limit, 1), settings.SUBMISSIONS_MAX_PAGE_SIZE)
    return page, limit


def submit(db: Session, form_id: uuid.UUID, data: dict[str, Any]) -> tuple[ValidationResult, Submission | None]:
    """Validate ``data`` against the form's current schema and store it if clean.

    Raises FormNotFoundError if the form is absent or soft-deleted. Nothing is
    written unless every field passes.
    """
    form = form_repo.get_form_by_id(db, form_id)
    if form is None:
        raise FormNotFoundError(form_id)

    result = validate_submission(FormSchema.from_document(form.schema), data)
    if not result.success:
        logger.warning(
            "Rejected submission for form %s: invalid fields %s",
            form_id,
            [error.field for error in result.errors],
        )
        return result, None

    submission = form_repo.create_submission(db, form.id, result.data)
    logger.info("Stored submission %s for form %s", submission.id, form_id)
    return result, submission


def list_submissions(
    db: Session,
    form_id: uuid.UUID,
    owner_id: uuid.UUID,
    *,
    page: int = 1,
    limit: int | None = None,
    search: str | None = None,
    search_field: str | None = None,
) -> SubmissionPage:
    """Return one page of a form's submissions, newest first.

    Filtering precedence: ``search`` + ``search_field`` scopes the match to a
    single data key; ``search`` alone matches anywhere in the serialized data;
    neither returns the unfiltered page.
    """
    form_repo.get_owned_form_or_raise(db, form_id, owner_id)

    if limit is None:
        limit = settings.SUBMISSIONS_DEFAULT_PAGE_SIZE
    page, limit = clamp_pagination(page, limit)
    skip = (page - 1) * limit

    if search and search_field:
        items, total = form_repo.search_submissions_by_field(db, form_id, search_field, search, skip, limit)
    elif search:
        items, total = form_repo.search_submissions_by_text(db, form_id, search, skip, limit)
    else:
        items = form_repo.paginated_submissions(db, form_id, skip, limit)
        total = form_repo.count_submissions(db, form_id)

    return SubmissionPage(items=items, total=total, page=page, limit=limit)


def export_submissions(db: Session, form_id: uuid.UUID, owner_id: uuid.UUID) -> dict[str, Any]:
    """Full, unfiltered snapshot of a form and all of its submissions."""
    form = form_repo.get_owned_form_or_raise(db, form_id, owner_id)
    submissions = form_repo.all_submissions(db, form_id)

    logger.info("Exporting %d submissions for form %s", len(submissions), form_id)
    return {
        "form": {
            "id": str(form.id),
            "title": form.title,
            "schema": form.schema,
        },
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "totalSubmissions": len(submissions),
        "submissions": [
            {
                "id": str(submission.id),
                "data": submission.data,
                "createdAt": submission.created_at.isoformat(),
            }
            for submission in submissions
        ],
    }

"""Form repository: storage operations for forms and their submissions.

All reads exclude soft-deleted forms. Caller identity is passed in explicitly
as ``owner_id``; nothing here looks at request state.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import String, cast, func, select
from sqlalchemy.orm import Session

from formcraft.models.form import Form
from formcraft.models.submission import Submission

logger = logging.getLogger(__name__)


class FormNotFoundError(Exception):
    """Raised when a form is absent, soft-deleted, or not owned by the caller.

    Callers cannot tell the three cases apart.
    """

    def __init__(self, form_id: uuid.UUID) -> None:
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def create_form(db: Session, *, owner_id: uuid.UUID, title: str, schema: dict[str, Any]) -> Form:
    form = Form(owner_id=owner_id, title=title, schema=schema)
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info("Form %s created by user %s (%d fields)", form.id, owner_id, len(schema.get("fields", [])))
    return form


def get_form_by_id(db: Session, form_id: uuid.UUID, owner_id: uuid.UUID | None = None) -> Form | None:
    """Return the non-deleted form, optionally scoped to an owner."""
    query = select(Form).where(Form.id == form_id, Form.is_deleted.is_(False))
    if owner_id is not None:
        query = query.where(Form.owner_id == owner_id)
    return db.execute(query).scalar_one_or_none()


def get_owned_form_or_raise(db: Session, form_id: uuid.UUID, owner_id: uuid.UUID) -> Form:
    form = get_form_by_id(db, form_id, owner_id=owner_id)
    if form is None:
        raise FormNotFoundError(form_id)
    return form


def list_forms_by_owner(db: Session, owner_id: uuid.UUID) -> list[tuple[Form, int]]:
    """Return the owner's forms, newest first, each paired with its submission count."""
    submission_count = (
        select(func.count(Submission.id))
        .where(Submission.form_id == Form.id)
        .correlate(Form)
        .scalar_subquery()
    )
    rows = db.execute(
        select(Form, submission_count)
        .where(Form.owner_id == owner_id, Form.is_deleted.is_(False))
        .order_by(Form.created_at.desc(), Form.id.desc())
    ).all()
    return [(form, count) for form, count in rows]


def soft_delete_form(db: Session, form_id: uuid.UUID) -> None:
    form = db.get(Form, form_id)
    if form is None or form.is_deleted:
        raise FormNotFoundError(form_id)
    form.is_deleted = True
    db.commit()
    logger.info("Form %s soft-deleted", form_id)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


def create_submission(db: Session, form_id: uuid.UUID, data: dict[str, Any]) -> Submission:
    submission = Submission(form_id=form_id, data=data)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def count_submissions(db: Session, form_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(Submission).where(Submission.form_id == form_id)
    ).scalar_one()


def _newest_first(query):
    return query.order_by(Submission.created_at.desc(), Submission.id.desc())


def paginated_submissions(db: Session, form_id: uuid.UUID, skip: int, take: int) -> list[Submission]:
    query = select(Submission).where(Submission.form_id == form_id)
    return list(db.execute(_newest_first(query).offset(skip).limit(take)).scalars().all())


def all_submissions(db: Session, form_id: uuid.UUID) -> list[Submission]:
    query = select(Submission).where(Submission.form_id == form_id)
    return list(db.execute(_newest_first(query)).scalars().all())


def _search(db: Session, form_id: uuid.UUID, condition, skip: int, take: int) -> tuple[list[Submission], int]:
    total = db.execute(
        select(func.count()).select_from(Submission).where(Submission.form_id == form_id, condition)
    ).scalar_one()
    rows = (
        db.execute(
            _newest_first(select(Submission).where(Submission.form_id == form_id, condition))
            .offset(skip)
            .limit(take)
        )
        .scalars()
        .all()
    )
    return list(rows), total


def search_submissions_by_field(
    db: Session,
    form_id: uuid.UUID,
    field: str,
    term: str,
    skip: int,
    take: int,
) -> tuple[list[Submission], int]:
    """Case-insensitive substring match on the text of one data key."""
    condition = Submission.data[field].as_string().ilike(f"%{term}%")
    return _search(db, form_id, condition, skip, take)


def search_submissions_by_text(
    db: Session,
    form_id: uuid.UUID,
    term: str,
    skip: int,
    take: int,
) -> tuple[list[Submission], int]:
    """Case-insensitive substring match anywhere in the serialized data document.

    Keys, punctuation and JSON structure all count as matchable text.
    """
    condition = cast(Submission.data, String).ilike(f"%{term}%")
    return _search(db, form_id, condition, skip, take)

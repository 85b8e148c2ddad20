import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formcraft.core.database import Base
from formcraft.models.form import JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Submission(Base):
    """One stored set of answers for a form.

    ``data`` maps field ids to cleaned values as they were accepted at submit
    time:
        {"fullName": "Bob", "email": "bob@x.com", "age": 42}

    Rows are append-only. The schema may change later, so ``data`` is treated
    as free-form JSON when read back.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        Index("ix_submissions_form_id", "form_id"),
        Index("ix_submissions_form_created", "form_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("forms.id"), nullable=False)
    data: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)
    # Set client-side so rows created within the same second keep their order.
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)

    form: Mapped["Form"] = relationship(back_populates="submissions")

    def __repr__(self) -> str:
        return f"<Submission {self.id} form={self.form_id}>"

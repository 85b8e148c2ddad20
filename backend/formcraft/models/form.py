import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formcraft.core.database import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Form(Base):
    """Form definition owned by a single user.

    The schema column holds the form schema document as stored at creation:
        {
            "id": "schema-1718000000000",
            "title": "Event Registration",
            "description": "...",
            "fields": [
                {"id": "fullName", "label": "Full Name", "type": "text", "required": true},
                {"id": "ticket", "label": "Ticket", "type": "select",
                 "options": [{"value": "vip", "label": "VIP"}, "standard"]}
            ]
        }

    Rows are never physically removed by the application; ``is_deleted``
    hides them from every read path.
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_owner_id", "owner_id"),
        Index("ix_forms_owner_deleted", "owner_id", "is_deleted"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    schema: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    owner: Mapped["User"] = relationship(back_populates="forms")
    submissions: Mapped[list["Submission"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        deleted = " deleted" if self.is_deleted else ""
        return f"<Form {self.title}{deleted}>"

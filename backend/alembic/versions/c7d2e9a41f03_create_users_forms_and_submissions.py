"""create users, forms and submissions tables

Revision ID: c7d2e9a41f03
Revises:
Create Date: 2026-10-19 09:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c7d2e9a41f03"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "forms",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("schema", postgresql.JSONB(), nullable=False),
        sa.Column(
            "is_deleted",
            sa.Boolean(),
            server_default="false",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forms_owner_id", "forms", ["owner_id"], unique=False)
    op.create_index(
        "ix_forms_owner_deleted", "forms", ["owner_id", "is_deleted"], unique=False
    )

    op.create_table(
        "submissions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_submissions_form_id", "submissions", ["form_id"], unique=False
    )
    op.create_index(
        "ix_submissions_form_created",
        "submissions",
        ["form_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_submissions_form_created", table_name="submissions")
    op.drop_index("ix_submissions_form_id", table_name="submissions")
    op.drop_table("submissions")

    op.drop_index("ix_forms_owner_deleted", table_name="forms")
    op.drop_index("ix_forms_owner_id", table_name="forms")
    op.drop_table("forms")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

"""create users and thanks

Revision ID: 3c9e51a07d2b
Revises: 
Create Date: 2026-10-19 09:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e51a07d2b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("employee", "manager", "admin", name="user_role")
thanks_status = sa.Enum("pending", "approved", "rejected", name="thanks_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(32), nullable=False, unique=True),
        sa.Column("email", sa.String(128), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="employee"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_manager_id", "users", ["manager_id"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "thanks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("from_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("to_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", thanks_status, nullable=False, server_default="pending"),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("1")),
    )
    op.create_index("ix_thanks_from_id", "thanks", ["from_id"])
    op.create_index("ix_thanks_to_id", "thanks", ["to_id"])
    op.create_index("ix_thanks_approved_by_id", "thanks", ["approved_by_id"])
    op.create_index("ix_thanks_status_approved_at", "thanks", ["status", "approved_at"])


def downgrade() -> None:
    op.drop_index("ix_thanks_status_approved_at", table_name="thanks")
    op.drop_index("ix_thanks_approved_by_id", table_name="thanks")
    op.drop_index("ix_thanks_to_id", table_name="thanks")
    op.drop_index("ix_thanks_from_id", table_name="thanks")
    op.drop_table("thanks")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_manager_id", table_name="users")
    op.drop_table("users")

    # Postgres keeps enum types around after the tables are gone
    thanks_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)

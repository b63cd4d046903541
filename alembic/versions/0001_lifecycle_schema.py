"""Create users, lists, shares, tasks and steps

Revision ID: 0001_lifecycle_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_lifecycle_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIST_TYPES = ("CUSTOM", "DAILY", "WEEKLY", "MONTHLY", "YEARLY", "FINISHED")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column(
            "notification_frequency",
            sa.Enum("NONE", "DAILY", "WEEKLY", name="notification_frequency"),
            nullable=False,
            server_default="DAILY",
        ),
        sa.Column("trash_retention_days", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_user_email"),
    )
    op.create_index("ix_user_deleted_at", "user", ["deleted_at"])

    op.create_table(
        "todo_list",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Uuid(as_uuid=True), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("type", sa.Enum(*LIST_TYPES, name="list_type"), nullable=False, server_default="CUSTOM"),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_todo_list_owner_id", "todo_list", ["owner_id"])
    op.create_index("ix_todo_list_type", "todo_list", ["type"])
    op.create_index("ix_todo_list_deleted_at", "todo_list", ["deleted_at"])
    # At most one live system list of each type per owner
    op.create_index(
        "uq_todo_list_system_type",
        "todo_list",
        ["owner_id", "type"],
        unique=True,
        postgresql_where=sa.text("is_system AND deleted_at IS NULL"),
    )

    op.create_table(
        "list_share",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("todo_list_id", sa.Uuid(as_uuid=True), sa.ForeignKey("todo_list.id"), nullable=False),
        sa.Column("shared_with_id", sa.Uuid(as_uuid=True), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("role", sa.Enum("VIEWER", "EDITOR", name="share_role"), nullable=False, server_default="VIEWER"),
        *_timestamps(),
    )
    op.create_index("ix_list_share_shared_with_id", "list_share", ["shared_with_id"])
    op.create_index("ix_list_share_list_user", "list_share", ["todo_list_id", "shared_with_id"], unique=True)

    op.create_table(
        "task",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("todo_list_id", sa.Uuid(as_uuid=True), sa.ForeignKey("todo_list.id"), nullable=False),
        sa.Column("original_list_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("specific_day_of_week", sa.SmallInteger(), nullable=True),
        sa.Column("reminder_days_before", sa.JSON(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "specific_day_of_week IS NULL OR specific_day_of_week BETWEEN 0 AND 6",
            name="ck_task_specific_day_of_week",
        ),
    )
    op.create_index("ix_task_todo_list_id", "task", ["todo_list_id"])
    op.create_index("ix_task_deleted_at", "task", ["deleted_at"])
    # Archive sweep: completed tasks ordered by completion time
    op.create_index(
        "ix_task_completed_at_open",
        "task",
        ["completed_at"],
        postgresql_where=sa.text("completed = true AND deleted_at IS NULL"),
    )

    op.create_table(
        "step",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("task_id", sa.Uuid(as_uuid=True), sa.ForeignKey("task.id"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_step_task_id", "step", ["task_id"])
    op.create_index("ix_step_deleted_at", "step", ["deleted_at"])


def downgrade() -> None:
    op.drop_table("step")
    op.drop_index("ix_task_completed_at_open", table_name="task")
    op.drop_table("task")
    op.drop_table("list_share")
    op.drop_index("uq_todo_list_system_type", table_name="todo_list")
    op.drop_table("todo_list")
    op.drop_table("user")
    for enum_name in ("share_role", "list_type", "notification_frequency"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)

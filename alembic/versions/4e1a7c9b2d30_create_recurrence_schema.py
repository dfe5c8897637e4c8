"""Create users, recurring patterns and item tables

Revision ID: 4e1a7c9b2d30
Revises:
Create Date: 2026-02-14
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4e1a7c9b2d30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ITEM_TABLES = ("tasks", "deadlines", "exams", "work_items", "calendar_events")


def _item_columns() -> List[sa.Column]:
    """Columns every item table shares (identity, ownership, recurrence linkage)."""
    return [
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column(
            "recurring_pattern_id",
            sa.String(),
            sa.ForeignKey("recurring_patterns.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("instance_date", sa.Date(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ]


def _content_columns() -> List[sa.Column]:
    return [
        sa.Column("course_id", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=False, server_default=""),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("links", sa.JSON(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "recurring_patterns",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_kind", sa.String(), nullable=False),
        sa.Column("recurrence_type", sa.String(), nullable=False),
        sa.Column("interval_days", sa.Integer(), nullable=True),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("days_of_month", sa.JSON(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("occurrence_count", sa.Integer(), nullable=True),
        sa.Column("instance_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_generated", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("template", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_recurring_patterns_user_id"), "recurring_patterns", ["user_id"], unique=False)
    op.create_index(op.f("ix_recurring_patterns_item_kind"), "recurring_patterns", ["item_kind"], unique=False)
    op.create_index(op.f("ix_recurring_patterns_is_active"), "recurring_patterns", ["is_active"], unique=False)

    op.create_table(
        "tasks",
        *_item_columns(),
        *_content_columns(),
        sa.Column("due_at", sa.DateTime(), nullable=True),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("importance", sa.String(), nullable=True),
        sa.Column("checklist", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("working_on", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "deadlines",
        *_item_columns(),
        *_content_columns(),
        sa.Column("due_at", sa.DateTime(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=True),
        sa.Column("effort", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("working_on", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "exams",
        *_item_columns(),
        *_content_columns(),
        sa.Column("exam_at", sa.DateTime(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
    )

    op.create_table(
        "work_items",
        *_item_columns(),
        *_content_columns(),
        sa.Column("type", sa.String(), nullable=False, server_default="task"),
        sa.Column("due_at", sa.DateTime(), nullable=True),
        sa.Column("priority", sa.String(), nullable=True),
        sa.Column("effort", sa.String(), nullable=True),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("checklist", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("working_on", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "calendar_events",
        *_item_columns(),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=True),
        sa.Column("all_day", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
    )

    for table in ITEM_TABLES:
        op.create_index(op.f(f"ix_{table}_user_id"), table, ["user_id"], unique=False)
        op.create_index(op.f(f"ix_{table}_recurring_pattern_id"), table, ["recurring_pattern_id"], unique=False)
        op.create_index(op.f(f"ix_{table}_instance_date"), table, ["instance_date"], unique=False)
        # Two passes racing on one pattern cannot both insert the same occurrence.
        op.create_unique_constraint(
            f"uq_{table}_pattern_instance_date",
            table,
            ["recurring_pattern_id", "instance_date"],
        )
        if table != "calendar_events":
            op.create_index(op.f(f"ix_{table}_course_id"), table, ["course_id"], unique=False)
            op.create_index(op.f(f"ix_{table}_status"), table, ["status"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in reversed(ITEM_TABLES):
        op.drop_table(table)
    op.drop_table("recurring_patterns")
    op.drop_table("users")

"""Create the meetings table.

Revision ID: 001_meetings
Revises:
Create Date: 2026-10-19

One row per logged meeting. ``total_cost`` is written by the application
on every insert and on every update that touches a cost input; money
columns are unscaled NUMERIC so stored values match the previewed cost
exactly. Listing and dashboard queries filter by owner and sort by
creation time, hence the composite index.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_meetings"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "meetings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("attendees_count", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("average_hourly_rate", sa.Numeric(), nullable=False),
        sa.Column("total_cost", sa.Numeric(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=True),
        sa.Column("meeting_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "attendees_count BETWEEN 1 AND 100", name="ck_meetings_attendees"
        ),
        sa.CheckConstraint(
            "duration_minutes BETWEEN 1 AND 1440", name="ck_meetings_duration"
        ),
        sa.CheckConstraint(
            "average_hourly_rate >= 0 AND average_hourly_rate <= 10000",
            name="ck_meetings_hourly_rate",
        ),
    )
    op.create_index(
        "ix_meetings_user_created",
        "meetings",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_meetings_user_created", table_name="meetings")
    op.drop_table("meetings")

"""create users, tables and reservations

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "tables",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("seats", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("number", name="uq_tables_number"),
        sa.CheckConstraint("number > 0", name="ck_tables_number_positive"),
        sa.CheckConstraint("seats > 0", name="ck_tables_seats_positive"),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.String(length=50), nullable=False),
        sa.Column("table_id", sa.String(length=50), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=False), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["table_id"], ["tables.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_reservations_user_id"),
        sa.CheckConstraint("end_time > start_time", name="ck_reservations_end_after_start"),
    )
    op.create_index(
        "ix_reservations_table_start_time",
        "reservations",
        ["table_id", "start_time"],
        unique=False,
    )
    op.execute(
        """
        ALTER TABLE reservations
        ADD CONSTRAINT ex_reservations_table_period
        EXCLUDE USING gist (
            table_id WITH =,
            tsrange(start_time, end_time, '[)') WITH &&
        )
        """
    )


def downgrade() -> None:
    op.execute("ALTER TABLE reservations DROP CONSTRAINT IF EXISTS ex_reservations_table_period")
    op.drop_index("ix_reservations_table_start_time", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("tables")
    op.drop_table("users")

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tablebook.infrastructure.db.models.base import Base

USER_UNIQUE_CONSTRAINT = "uq_reservations_user_id"
TABLE_PERIOD_EXCLUSION_CONSTRAINT = "ex_reservations_table_period"


class ReservationModel(Base):
    """Reservation rows; the user and table links are the indexed foreign keys.

    The table-period exclusion constraint needs ``btree_gist`` and lives in the
    migration only.
    """

    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    table_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("tables.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", name=USER_UNIQUE_CONSTRAINT),
        Index("ix_reservations_table_start_time", "table_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_reservations_end_after_start"),
    )

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tablebook.infrastructure.db.models.base import Base


class TableModel(Base):
    __tablename__ = "tables"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    seats: Mapped[int] = mapped_column(Integer, nullable=False)

# src/snipshare/models/blocked_address.py
"""Denylist of source addresses."""

from sqlalchemy import BigInteger, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from snipshare.db.session import Base


class BlockedAddress(Base):
    """A source address barred from creating objects."""

    __tablename__ = "blocked_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    blocked_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    blocked_by: Mapped[str] = mapped_column(Text, nullable=False, default="admin")

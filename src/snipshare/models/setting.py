# src/snipshare/models/setting.py
"""Key/value store for operator-tunable limits."""

from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from snipshare.db.session import Base


class AppSetting(Base):
    """A single operator setting, stored as text."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

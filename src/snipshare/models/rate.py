# src/snipshare/models/rate.py
"""Models supporting sliding-window rate limiting."""

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from snipshare.db.session import Base


class RateLimitEntry(Base):
    """One recorded action by a source address."""

    __tablename__ = "rate_limits"
    __table_args__ = (Index("idx_rate_limits_address", "address", "action", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    # Action class, e.g. "create:hour"; each window keeps its own history.
    action: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

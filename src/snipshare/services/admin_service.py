"""Read-only admin views over stored objects."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from snipshare.db.time import MS_PER_DAY, now_ms
from snipshare.models import RateLimitEntry, Snippet

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE: Final[int] = 20
MAX_PAGE_SIZE: Final[int] = 100


@dataclass(frozen=True)
class AdminStats:
    total: int
    active: int
    today: int
    deleted: int
    password_protected: int
    burn_after_read: int
    rate_limit_entries_24h: int


@dataclass(frozen=True)
class SnippetPage:
    items: list[Snippet]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))


class AdminService:
    """Aggregate counts and paginated listings for the admin dashboard."""

    @staticmethod
    def stats(db: Session, *, now: int | None = None) -> AdminStats:
        """Return dashboard totals.

        `active` counts records that are neither tombstoned nor past their
        expiry, whether or not lazy expiry has caught up with them yet.
        """
        timestamp = now if now is not None else now_ms()
        day_ago = timestamp - MS_PER_DAY

        def count(*conditions: object) -> int:
            statement = select(func.count(Snippet.id))
            if conditions:
                statement = statement.where(*conditions)
            return int(db.execute(statement).scalar_one())

        not_expired = or_(Snippet.expires_at.is_(None), Snippet.expires_at >= timestamp)
        rate_entries = db.execute(
            select(func.count(RateLimitEntry.id)).where(RateLimitEntry.timestamp >= day_ago)
        ).scalar_one()

        return AdminStats(
            total=count(),
            active=count(Snippet.is_deleted.is_(False), not_expired),
            today=count(Snippet.created_at >= day_ago),
            deleted=count(Snippet.is_deleted.is_(True)),
            password_protected=count(Snippet.is_password_protected.is_(True)),
            burn_after_read=count(Snippet.burn_after_read.is_(True)),
            rate_limit_entries_24h=int(rate_entries),
        )

    @staticmethod
    def list_snippets(
        db: Session,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: str | None = None,
    ) -> SnippetPage:
        """Return one page of records, newest first, optionally filtered by id or title."""
        page = max(1, page)
        page_size = min(max(1, page_size), MAX_PAGE_SIZE)

        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Snippet.id.ilike(pattern), Snippet.title.ilike(pattern)))

        total = db.execute(select(func.count(Snippet.id)).where(*conditions)).scalar_one()
        items = list(
            db.execute(
                select(Snippet)
                .where(*conditions)
                .order_by(Snippet.created_at.desc(), Snippet.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).scalars()
        )
        return SnippetPage(items=items, page=page, page_size=page_size, total=int(total))

"""Sliding-window rate limiting and the address denylist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from snipshare.db.time import MS_PER_DAY, now_ms
from snipshare.models import BlockedAddress, RateLimitEntry
from snipshare.services.errors import AlreadyBlockedError, BlockedError, RateLimitedError
from snipshare.services.limits import OperatorLimits, RateWindow

logger = logging.getLogger(__name__)

CREATE_ACTION = "create"
RATE_LOG_LIMIT = 100


@dataclass(frozen=True)
class AddressActivity:
    """Aggregated rate-limit activity for one address/action pair."""

    address: str
    action: str
    count: int
    last_activity: int


def _window_action(action: str, window: RateWindow) -> str:
    return f"{action}:{window.name}"


class RateLimiter:
    """Service bounding per-address action rates.

    Each (address, action class) pair keeps its own timestamp history; stale
    entries for that pair are purged on every check.
    """

    @staticmethod
    def is_blocked(db: Session, address: str) -> bool:
        """Return True if `address` is on the denylist.

        A missing denylist table is treated as "not blocked" and logged.
        """
        try:
            found = db.execute(
                select(BlockedAddress.id).where(BlockedAddress.address == address)
            ).first()
        except (OperationalError, ProgrammingError) as exc:
            db.rollback()
            logger.warning("Denylist unavailable, treating %s as not blocked: %s", address, exc)
            return False
        return found is not None

    @staticmethod
    def _purge_and_count(
        db: Session, address: str, action: str, window_ms: int, now: int
    ) -> int:
        window_start = now - window_ms
        db.execute(
            delete(RateLimitEntry).where(
                RateLimitEntry.address == address,
                RateLimitEntry.action == action,
                RateLimitEntry.timestamp < window_start,
            )
        )
        return db.execute(
            select(func.count(RateLimitEntry.id)).where(
                RateLimitEntry.address == address,
                RateLimitEntry.action == action,
                RateLimitEntry.timestamp >= window_start,
                RateLimitEntry.timestamp <= now,
            )
        ).scalar_one()

    @staticmethod
    def _has_room(
        db: Session, address: str, action: str, max_count: int, window_ms: int, now: int
    ) -> bool:
        return RateLimiter._purge_and_count(db, address, action, window_ms, now) < max_count

    @staticmethod
    def _record(db: Session, address: str, action: str, now: int) -> None:
        db.add(RateLimitEntry(address=address, action=action, timestamp=now))

    @staticmethod
    def check_and_record(
        db: Session,
        address: str,
        action: str,
        max_count: int,
        window_ms: int,
        *,
        now: int | None = None,
    ) -> bool:
        """Record one action if fewer than `max_count` fall within the window.

        Returns:
            True if the action was allowed and recorded, False if rejected.
        """
        timestamp = now if now is not None else now_ms()
        allowed = RateLimiter._has_room(db, address, action, max_count, window_ms, timestamp)
        if allowed:
            RateLimiter._record(db, address, action, timestamp)
        db.commit()
        return allowed

    @staticmethod
    def enforce(
        db: Session,
        address: str,
        limits: OperatorLimits,
        *,
        action: str = CREATE_ACTION,
        now: int | None = None,
    ) -> None:
        """Apply the denylist and every configured window to one request.

        This is `check_and_record` over each window's own action class
        (`create:minute`, `create:hour`, ...), done all-or-nothing: every
        window is checked before any is recorded, so a request rejected by a
        longer window does not consume the shorter ones.

        Raises:
            BlockedError: The address is on the denylist.
            RateLimitedError: Any window is exhausted.
        """
        if RateLimiter.is_blocked(db, address):
            logger.info("Rejected request from blocked address %s", address)
            raise BlockedError()

        timestamp = now if now is not None else now_ms()
        for window in limits.windows:
            window_action = _window_action(action, window)
            if not RateLimiter._has_room(
                db, address, window_action, window.max_count, window.window_ms, timestamp
            ):
                db.commit()
                logger.info(
                    "Rate limit hit for %s on %s (%d per %s)",
                    address,
                    action,
                    window.max_count,
                    window.name,
                )
                raise RateLimitedError(window.name, window.max_count)

        for window in limits.windows:
            RateLimiter._record(db, address, _window_action(action, window), timestamp)
        db.commit()

    @staticmethod
    def block_address(
        db: Session,
        address: str,
        reason: str | None = None,
        *,
        blocked_by: str = "admin",
        now: int | None = None,
    ) -> BlockedAddress:
        """Add `address` to the denylist. Rate-limit history is left untouched."""
        entry = BlockedAddress(
            address=address,
            reason=reason or None,
            blocked_at=now if now is not None else now_ms(),
            blocked_by=blocked_by,
        )
        db.add(entry)
        try:
            db.commit()
        except IntegrityError as err:
            db.rollback()
            raise AlreadyBlockedError() from err
        db.refresh(entry)
        logger.info("Blocked address %s", address)
        return entry

    @staticmethod
    def unblock_address(db: Session, address: str) -> bool:
        """Remove `address` from the denylist; return True if it was present."""
        result: Any = db.execute(delete(BlockedAddress).where(BlockedAddress.address == address))
        db.commit()
        removed = bool(result.rowcount)
        if removed:
            logger.info("Unblocked address %s", address)
        return removed

    @staticmethod
    def blocked_addresses(db: Session) -> list[BlockedAddress]:
        """Return the denylist, newest first; empty if the table is missing."""
        try:
            return list(
                db.execute(
                    select(BlockedAddress).order_by(BlockedAddress.blocked_at.desc())
                ).scalars()
            )
        except (OperationalError, ProgrammingError) as exc:
            db.rollback()
            logger.warning("Denylist unavailable: %s", exc)
            return []

    @staticmethod
    def address_activity(db: Session, *, now: int | None = None) -> list[AddressActivity]:
        """Group the last 24 hours of rate-limit entries by address and action."""
        since = (now if now is not None else now_ms()) - MS_PER_DAY
        count = func.count(RateLimitEntry.id)
        rows = db.execute(
            select(
                RateLimitEntry.address,
                RateLimitEntry.action,
                count,
                func.max(RateLimitEntry.timestamp),
            )
            .where(RateLimitEntry.timestamp >= since)
            .group_by(RateLimitEntry.address, RateLimitEntry.action)
            .order_by(count.desc())
        ).all()
        return [
            AddressActivity(address=address, action=action, count=int(n), last_activity=int(last))
            for (address, action, n, last) in rows
        ]

    @staticmethod
    def rate_log(db: Session, *, now: int | None = None) -> list[RateLimitEntry]:
        """Return the most recent rate-limit entries from the last 24 hours."""
        since = (now if now is not None else now_ms()) - MS_PER_DAY
        return list(
            db.execute(
                select(RateLimitEntry)
                .where(RateLimitEntry.timestamp >= since)
                .order_by(RateLimitEntry.timestamp.desc(), RateLimitEntry.id.desc())
                .limit(RATE_LOG_LIMIT)
            ).scalars()
        )

"""Operator-tunable limits stored in the `settings` table.

Limits are loaded once per operation into an immutable `OperatorLimits`
record and passed explicitly to the rate limiter and the validators.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Final

from sqlalchemy import select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from snipshare.core.constants import DEFAULT_ALLOWED_FILE_TYPES
from snipshare.db.time import MS_PER_DAY, MS_PER_HOUR, MS_PER_MINUTE, now_ms
from snipshare.models import AppSetting
from snipshare.services.errors import InvalidSettingError

logger = logging.getLogger(__name__)

MAX_RATE_LIMIT: Final[int] = 10_000
MAX_FILE_SIZE_MB_CEILING: Final[int] = 100
BYTES_PER_MB: Final[int] = 1024 * 1024

NUMERIC_KEYS: Final[frozenset[str]] = frozenset(
    {"rate_limit_per_minute", "rate_limit_per_hour", "rate_limit_per_day", "max_file_size_mb"}
)
VALID_KEYS: Final[frozenset[str]] = NUMERIC_KEYS | {"allowed_file_types"}


@dataclass(frozen=True)
class RateWindow:
    """One sliding window applied to an action class."""

    name: str
    max_count: int
    window_ms: int


@dataclass(frozen=True)
class OperatorLimits:
    """Snapshot of the operator-tunable limits."""

    rate_limit_per_minute: int = 10
    rate_limit_per_hour: int = 20
    rate_limit_per_day: int = 100
    max_file_size_mb: int = 5
    allowed_file_types: str = DEFAULT_ALLOWED_FILE_TYPES

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * BYTES_PER_MB

    @property
    def allowed_extensions(self) -> frozenset[str]:
        return frozenset(
            part.strip().lower() for part in self.allowed_file_types.split(",") if part.strip()
        )

    @property
    def windows(self) -> tuple[RateWindow, ...]:
        """Create-action windows, shortest first."""
        return (
            RateWindow("minute", self.rate_limit_per_minute, MS_PER_MINUTE),
            RateWindow("hour", self.rate_limit_per_hour, MS_PER_HOUR),
            RateWindow("day", self.rate_limit_per_day, MS_PER_DAY),
        )

    def as_dict(self) -> dict[str, int | str]:
        return asdict(self)


DEFAULT_LIMITS: Final[OperatorLimits] = OperatorLimits()


def _parse_positive_int(raw: str | None, default: int) -> int:
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        return default
    return value if value > 0 else default


def load_limits(db: Session) -> OperatorLimits:
    """Load the current limits, falling back to defaults for missing values.

    A missing settings table is not fatal: defaults are returned and the
    fallback is logged.
    """
    try:
        rows = db.execute(select(AppSetting.key, AppSetting.value)).all()
    except (OperationalError, ProgrammingError) as exc:
        db.rollback()
        logger.warning("Settings table unavailable, using default limits: %s", exc)
        return DEFAULT_LIMITS

    values = {key: value for key, value in rows}
    return OperatorLimits(
        rate_limit_per_minute=_parse_positive_int(
            values.get("rate_limit_per_minute"), DEFAULT_LIMITS.rate_limit_per_minute
        ),
        rate_limit_per_hour=_parse_positive_int(
            values.get("rate_limit_per_hour"), DEFAULT_LIMITS.rate_limit_per_hour
        ),
        rate_limit_per_day=_parse_positive_int(
            values.get("rate_limit_per_day"), DEFAULT_LIMITS.rate_limit_per_day
        ),
        max_file_size_mb=_parse_positive_int(
            values.get("max_file_size_mb"), DEFAULT_LIMITS.max_file_size_mb
        ),
        allowed_file_types=values.get("allowed_file_types", DEFAULT_LIMITS.allowed_file_types),
    )


def _validate_setting(key: str, value: object) -> str:
    """Return the normalized text value for `key` or raise InvalidSettingError."""
    if key in NUMERIC_KEYS:
        try:
            number = float(str(value))
        except ValueError as err:
            raise InvalidSettingError(
                f"Invalid value for {key}: must be a positive number"
            ) from err
        if number < 1 or not number.is_integer():
            raise InvalidSettingError(f"Invalid value for {key}: must be a positive number")
        if key == "max_file_size_mb" and number > MAX_FILE_SIZE_MB_CEILING:
            raise InvalidSettingError(
                f"Max file size cannot exceed {MAX_FILE_SIZE_MB_CEILING} MB"
            )
        if key.startswith("rate_limit") and number > MAX_RATE_LIMIT:
            raise InvalidSettingError(f"Rate limit cannot exceed {MAX_RATE_LIMIT:,}")
        return str(int(number))

    types = str(value)
    if not types.strip():
        raise InvalidSettingError("Allowed file types cannot be empty")
    parts = [part.strip() for part in types.split(",")]
    for part in parts:
        if not part.startswith(".") or len(part) < 2:
            raise InvalidSettingError(
                f'Invalid file extension: "{part}". Must start with a dot.'
            )
    return ",".join(parts)


def update_limits(
    db: Session,
    updates: Mapping[str, object],
    *,
    now: int | None = None,
) -> tuple[list[str], OperatorLimits]:
    """Validate and persist `updates`; unknown keys are ignored.

    Every supplied value is validated before anything is written, so a bad
    value leaves the stored settings untouched.

    Returns:
        The keys that were written and the reloaded limits.

    Raises:
        InvalidSettingError: If a value is invalid or no known key was given.
    """
    normalized = {
        key: _validate_setting(key, value) for key, value in updates.items() if key in VALID_KEYS
    }
    if not normalized:
        raise InvalidSettingError("No valid settings provided")

    timestamp = now if now is not None else now_ms()
    for key, value in normalized.items():
        row = db.get(AppSetting, key)
        if row is None:
            db.add(AppSetting(key=key, value=value, updated_at=timestamp))
        else:
            row.value = value
            row.updated_at = timestamp
    db.commit()
    logger.info("Updated operator settings: %s", ", ".join(sorted(normalized)))
    return sorted(normalized), load_limits(db)

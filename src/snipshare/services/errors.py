"""Error taxonomy shared by the SnipShare core services.

Every failure a caller is expected to handle is a subclass of
`SnipShareError`. Storage-layer exceptions (SQLAlchemy, OSError) are not
wrapped and propagate unchanged.
"""

from __future__ import annotations

from typing import Any


class SnipShareError(RuntimeError):
    """Base exception for all expected SnipShare failures."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotFoundError(SnipShareError):
    """The object is absent, expired or deleted; callers cannot tell which."""

    default_message = "Snippet not found or has expired"


class PasswordRequiredError(SnipShareError):
    """The object is password protected and no password was supplied.

    Carries only non-sensitive metadata, never content.
    """

    default_message = "Password required"

    def __init__(self, metadata: Any) -> None:
        super().__init__()
        self.metadata = metadata


class IncorrectPasswordError(SnipShareError):
    default_message = "Incorrect password"


class DecryptionFailedError(SnipShareError):
    """An AEAD layer failed to authenticate."""

    default_message = "Failed to decrypt content"


class ContentTooLargeError(SnipShareError):
    default_message = "Content too large"


class InvalidContentError(SnipShareError):
    default_message = "Content is required"


class InvalidExpirationError(SnipShareError):
    default_message = "Invalid expiration"


class InvalidFileTypeError(SnipShareError):
    default_message = "File type is not allowed"


class RateLimitedError(SnipShareError):
    """A sliding-window check rejected the request."""

    default_message = "Rate limit exceeded"

    def __init__(self, window: str, limit: int) -> None:
        super().__init__(f"Rate limit exceeded. Max {limit} requests per {window}.")
        self.window = window
        self.limit = limit


class BlockedError(SnipShareError):
    default_message = "Your address has been blocked. Contact the administrator."


class UnauthorizedError(SnipShareError):
    default_message = "Unauthorized"


class NotPasswordProtectedError(SnipShareError):
    default_message = "This snippet is not password protected"


class AlreadyBlockedError(SnipShareError):
    default_message = "Address is already blocked"


class InvalidSettingError(SnipShareError):
    default_message = "Invalid setting"

# src/snipshare/models/snippet.py
"""SQLAlchemy model for shared snippets and files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import BigInteger, Boolean, Index, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snipshare.db.session import Base

# A burn-after-read object survives the creator's confirmation view and is
# deleted on the second content-revealing read.
BURN_AFTER_VIEWS = 2


class ContentKind(str, Enum):
    """What a stored object carries."""

    TEXT = "text"
    FILE = "file"


@dataclass(frozen=True)
class Unprotected:
    """Only the server-key layer wraps the payload."""


@dataclass(frozen=True)
class PasswordProtected:
    """A password layer wraps the server-key layer.

    Attributes:
        password_hash: Base64 PBKDF2 verifier, used only to reject bad passwords early.
        password_salt: Base64 salt of the verifier (independent of the encryption salt).
    """

    password_hash: str
    password_salt: str


Protection = Unprotected | PasswordProtected


class Snippet(Base):
    """One shared text snippet or uploaded file.

    The payload is always ciphertext. File records keep `payload` empty and
    reference the envelope in blob storage through `blob_key`.
    """

    __tablename__ = "snippets"
    __table_args__ = (
        Index("idx_snippets_created", "created_at"),
        Index("idx_snippets_expires", "expires_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    kind: Mapped[str] = mapped_column(String(8), nullable=False, default=ContentKind.TEXT.value)
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, default=b"")

    # Display-only metadata.
    language: Mapped[str] = mapped_column(Text, nullable=False, default="plaintext")
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    file_mime_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    blob_key: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Set once at creation, never returned by any API.
    server_key: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_salt: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_password_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    burn_after_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Epoch milliseconds; NULL expiry means the object never expires.
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def content_kind(self) -> ContentKind:
        return ContentKind(self.kind)

    @property
    def protection(self) -> Protection:
        """Return the encryption layering of this record."""
        if self.is_password_protected and self.password_hash and self.password_salt:
            return PasswordProtected(self.password_hash, self.password_salt)
        return Unprotected()

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at < now

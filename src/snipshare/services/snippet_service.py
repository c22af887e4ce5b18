"""Lifecycle of shared objects: create, read, expire, burn and delete.

A stored object is `Active` until it is deleted by an admin, burned after its
second content-revealing read, or observed past its expiry. Expiry is lazy:
reads and the periodic sweep share `mark_expired`, so both paths apply the
same transition.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Final

from sqlalchemy import and_, case, update
from sqlalchemy.orm import Session

from snipshare.core.constants import DEFAULT_MIME_TYPE, EXTENSION_TO_MIME, file_extension
from snipshare.core.settings import settings
from snipshare.db.time import MS_PER_SECOND, now_ms
from snipshare.models import (
    BURN_AFTER_VIEWS,
    ContentKind,
    PasswordProtected,
    Protection,
    Snippet,
)
from snipshare.services.blob_store import BlobStore, build_blob_key, purge_blobs
from snipshare.services.envelope import EnvelopeService
from snipshare.services.errors import (
    ContentTooLargeError,
    InvalidContentError,
    InvalidExpirationError,
    InvalidFileTypeError,
    NotFoundError,
    NotPasswordProtectedError,
    PasswordRequiredError,
)
from snipshare.services.limits import OperatorLimits

logger = logging.getLogger(__name__)

ID_ALPHABET: Final[str] = string.ascii_letters + string.digits + "_-"
MAX_ID_ATTEMPTS: Final[int] = 5


@dataclass(frozen=True)
class SnippetMetadata:
    """Everything about an object that may be shown without unlocking it."""

    id: str
    kind: ContentKind
    language: str
    title: str | None
    file_name: str | None
    file_size: int | None
    file_mime_type: str | None
    view_count: int
    created_at: int
    expires_at: int | None
    burn_after_read: bool
    requires_password: bool

    @classmethod
    def from_snippet(cls, snippet: Snippet, *, view_count: int | None = None) -> SnippetMetadata:
        return cls(
            id=snippet.id,
            kind=snippet.content_kind,
            language=snippet.language,
            title=snippet.title,
            file_name=snippet.file_name,
            file_size=snippet.file_size,
            file_mime_type=snippet.file_mime_type,
            view_count=snippet.view_count if view_count is None else view_count,
            created_at=snippet.created_at,
            expires_at=snippet.expires_at,
            burn_after_read=snippet.burn_after_read,
            requires_password=snippet.is_password_protected,
        )


@dataclass(frozen=True)
class RevealedSnippet:
    """A successful content-revealing read."""

    metadata: SnippetMetadata
    content: bytes
    burned: bool

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of one cleanup sweep."""

    marked_deleted: int
    purged_blob_keys: list[str] = field(default_factory=list)


def generate_snippet_id(length: int | None = None) -> str:
    """Return a short URL-safe random identifier."""
    size = length or settings.snippet_id_length
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(size))


def _expires_at(expires_in: int | None, now: int) -> int | None:
    """Validate an expiration duration in seconds and return the absolute expiry."""
    if expires_in is None or expires_in == 0:
        return None
    if expires_in < 0:
        raise InvalidExpirationError("Expiration must be a positive duration")
    if expires_in > settings.max_expiration_seconds:
        raise InvalidExpirationError("Maximum expiration is 2 weeks")
    return now + expires_in * MS_PER_SECOND


class SnippetService:
    """Service implementing the stored-object state machine."""

    def __init__(self, db: Session, blob_store: BlobStore | None = None) -> None:
        self.db = db
        self.blob_store = blob_store

    # --- creation -------------------------------------------------------------------
    def _unused_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = generate_snippet_id()
            if self.db.get(Snippet, candidate) is None:
                return candidate
        raise RuntimeError("Could not allocate a unique snippet id")

    def create_text(
        self,
        content: str,
        *,
        language: str | None = None,
        title: str | None = None,
        password: str | None = None,
        expires_in: int | None = None,
        burn_after_read: bool = False,
        now: int | None = None,
    ) -> Snippet:
        """Validate, seal and persist a text snippet.

        Raises:
            InvalidContentError: Empty content.
            ContentTooLargeError: Content exceeds `MAX_TEXT_BYTES`.
            InvalidExpirationError: Negative or longer than the maximum.
        """
        timestamp = now if now is not None else now_ms()
        if not content:
            raise InvalidContentError()
        plaintext = content.encode("utf-8")
        if len(plaintext) > settings.max_text_bytes:
            raise ContentTooLargeError(
                f"Content too large. Maximum {settings.max_text_bytes // 1000}KB allowed."
            )
        expires_at = _expires_at(expires_in, timestamp)

        sealed = EnvelopeService.seal(plaintext, password)
        snippet = self._new_record(
            sealed.payload,
            sealed.server_key,
            sealed.protection,
            kind=ContentKind.TEXT,
            language=language or "plaintext",
            title=title or None,
            burn_after_read=burn_after_read,
            created_at=timestamp,
            expires_at=expires_at,
        )
        self.db.add(snippet)
        self.db.commit()
        self.db.refresh(snippet)
        return snippet

    def create_file(
        self,
        data: bytes,
        file_name: str,
        limits: OperatorLimits,
        *,
        content_type: str | None = None,
        password: str | None = None,
        expires_in: int | None = None,
        burn_after_read: bool = False,
        now: int | None = None,
    ) -> Snippet:
        """Validate, seal and persist an uploaded file.

        The envelope goes to blob storage first; if the record cannot be
        written afterwards the blob is removed again.

        Raises:
            InvalidContentError: Empty file.
            ContentTooLargeError: File exceeds the operator's size limit.
            InvalidFileTypeError: Extension is not allowed.
            InvalidExpirationError: Negative or longer than the maximum.
        """
        if self.blob_store is None:
            raise RuntimeError("File uploads require a blob store")
        timestamp = now if now is not None else now_ms()
        if len(data) > limits.max_file_size_bytes:
            raise ContentTooLargeError(
                f"File too large. Maximum {limits.max_file_size_mb}MB allowed."
            )
        if not data:
            raise InvalidContentError("File is empty")
        ext = file_extension(file_name)
        if not ext or ext not in limits.allowed_extensions:
            raise InvalidFileTypeError(f'File type "{ext or "unknown"}" is not allowed.')
        expires_at = _expires_at(expires_in, timestamp)

        mime_type = EXTENSION_TO_MIME.get(ext) or content_type or DEFAULT_MIME_TYPE
        sealed = EnvelopeService.seal(data, password)
        snippet_id = self._unused_id()
        blob_key = build_blob_key(snippet_id, file_name)
        self.blob_store.put(blob_key, sealed.payload)

        snippet = self._new_record(
            b"",
            sealed.server_key,
            sealed.protection,
            snippet_id=snippet_id,
            kind=ContentKind.FILE,
            language="plaintext",
            title=file_name,
            burn_after_read=burn_after_read,
            created_at=timestamp,
            expires_at=expires_at,
        )
        snippet.file_name = file_name
        snippet.file_size = len(data)
        snippet.file_mime_type = mime_type
        snippet.blob_key = blob_key
        self.db.add(snippet)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Record insert failed, removing uploaded blob %s", blob_key)
            purge_blobs(self.blob_store, [blob_key])
            raise
        self.db.refresh(snippet)
        return snippet

    def _new_record(
        self,
        payload: bytes,
        server_key: bytes,
        protection: Protection,
        *,
        kind: ContentKind,
        snippet_id: str | None = None,
        **fields: Any,
    ) -> Snippet:
        password_hash = password_salt = None
        if isinstance(protection, PasswordProtected):
            password_hash = protection.password_hash
            password_salt = protection.password_salt
        return Snippet(
            id=snippet_id or self._unused_id(),
            kind=kind.value,
            payload=payload,
            server_key=server_key,
            password_hash=password_hash,
            password_salt=password_salt,
            is_password_protected=password_hash is not None,
            view_count=0,
            is_deleted=False,
            **fields,
        )

    # --- expiry ---------------------------------------------------------------------
    def _expire(self, now: int, snippet_id: str | None = None) -> list[tuple[str, str | None]]:
        """Tombstone expired active rows and return `(id, blob_key)` of each one."""
        conditions = [
            Snippet.is_deleted.is_(False),
            Snippet.expires_at.is_not(None),
            Snippet.expires_at < now,
        ]
        if snippet_id is not None:
            conditions.append(Snippet.id == snippet_id)

        rows = self.db.execute(
            update(Snippet)
            .where(*conditions)
            .values(is_deleted=True)
            .returning(Snippet.id, Snippet.blob_key)
            .execution_options(synchronize_session=False)
        ).all()
        self.db.commit()
        return [(row_id, blob_key) for row_id, blob_key in rows]

    def mark_expired(self, *, now: int | None = None, snippet_id: str | None = None) -> list[str]:
        """Tombstone active objects whose expiry has passed.

        Used inline by reads (with `snippet_id`) and in bulk by the sweep.
        Idempotent: objects that are already deleted are not touched again.

        Returns:
            Blob keys of file objects that transitioned and should be purged.
        """
        timestamp = now if now is not None else now_ms()
        return [blob_key for _, blob_key in self._expire(timestamp, snippet_id) if blob_key]

    def cleanup_expired(self, *, now: int | None = None) -> CleanupResult:
        """Sweep every expired active object and purge their blobs."""
        timestamp = now if now is not None else now_ms()
        expired = self._expire(timestamp)
        blob_keys = [blob_key for _, blob_key in expired if blob_key]
        purged: list[str] = []
        if blob_keys and self.blob_store is not None:
            purged = purge_blobs(self.blob_store, blob_keys)
        logger.info(
            "Cleanup sweep marked %d expired objects, purged %d blobs",
            len(expired),
            len(purged),
        )
        return CleanupResult(marked_deleted=len(expired), purged_blob_keys=purged)

    # --- reads ----------------------------------------------------------------------
    def _load_active(self, snippet_id: str, now: int, kind: ContentKind | None) -> Snippet:
        snippet = self.db.get(Snippet, snippet_id, populate_existing=True)
        if snippet is None or snippet.is_deleted:
            raise NotFoundError()
        if snippet.is_expired(now):
            blob_keys = self.mark_expired(now=now, snippet_id=snippet_id)
            if blob_keys and self.blob_store is not None:
                purge_blobs(self.blob_store, blob_keys)
            raise NotFoundError()
        if kind is not None and snippet.content_kind is not kind:
            raise NotFoundError()
        return snippet

    def get_metadata(
        self,
        snippet_id: str,
        *,
        kind: ContentKind | None = None,
        now: int | None = None,
    ) -> SnippetMetadata:
        """Return non-sensitive metadata without counting a view."""
        timestamp = now if now is not None else now_ms()
        return SnippetMetadata.from_snippet(self._load_active(snippet_id, timestamp, kind))

    def _record_view(self, snippet_id: str, now: int) -> tuple[int, bool] | None:
        """Atomically count one view and apply the burn rule.

        One conditional UPDATE both increments the counter and tombstones a
        burn-after-read object that reaches `BURN_AFTER_VIEWS`, so concurrent
        readers are serialized on the row. Returns None if the object stopped
        being readable since it was loaded.
        """
        burn_now = and_(
            Snippet.burn_after_read.is_(True),
            Snippet.view_count + 1 >= BURN_AFTER_VIEWS,
        )
        statement = (
            update(Snippet)
            .where(
                Snippet.id == snippet_id,
                Snippet.is_deleted.is_(False),
                (Snippet.expires_at.is_(None)) | (Snippet.expires_at >= now),
            )
            .values(
                view_count=Snippet.view_count + 1,
                is_deleted=case((burn_now, True), else_=False),
            )
            .returning(Snippet.view_count, Snippet.is_deleted)
            .execution_options(synchronize_session=False)
        )
        row = self.db.execute(statement).first()
        self.db.commit()
        if row is None:
            return None
        return int(row[0]), bool(row[1])

    def read(
        self,
        snippet_id: str,
        password: str | None = None,
        *,
        kind: ContentKind | None = None,
        now: int | None = None,
    ) -> RevealedSnippet:
        """Reveal an object's content, counting the view.

        Order: fetch, expiry check, password check, decrypt, count view, burn.

        Raises:
            NotFoundError: Absent, deleted, expired, of another kind, or burned
                by a concurrent reader.
            PasswordRequiredError: Protected and no password supplied; carries
                the metadata.
            IncorrectPasswordError: Password failed verification.
            DecryptionFailedError: An AEAD layer failed to authenticate.
        """
        timestamp = now if now is not None else now_ms()
        snippet = self._load_active(snippet_id, timestamp, kind)
        protection = snippet.protection
        if isinstance(protection, PasswordProtected) and not password:
            raise PasswordRequiredError(SnippetMetadata.from_snippet(snippet))

        # open() checks the verifier before deriving the decryption key.
        payload = self._payload_of(snippet)
        plaintext = EnvelopeService.open(payload, snippet.server_key, protection, password)

        counted = self._record_view(snippet_id, timestamp)
        if counted is None:
            raise NotFoundError()
        view_count, burned = counted
        if burned:
            logger.info("Burned snippet %s after %d views", snippet_id, view_count)
            if snippet.blob_key and self.blob_store is not None:
                purge_blobs(self.blob_store, [snippet.blob_key])

        # The ORM instance was loaded before the UPDATE; report the stored counter.
        metadata = SnippetMetadata.from_snippet(snippet, view_count=view_count)
        return RevealedSnippet(metadata=metadata, content=plaintext, burned=burned)

    def unlock(
        self,
        snippet_id: str,
        password: str,
        *,
        kind: ContentKind | None = None,
        now: int | None = None,
    ) -> RevealedSnippet:
        """Read a password-protected object; unprotected objects are rejected.

        Raises:
            NotPasswordProtectedError: The object has no password layer.
        """
        timestamp = now if now is not None else now_ms()
        snippet = self._load_active(snippet_id, timestamp, kind)
        if not snippet.is_password_protected:
            raise NotPasswordProtectedError()
        return self.read(snippet_id, password or None, kind=kind, now=timestamp)

    def _payload_of(self, snippet: Snippet) -> bytes:
        if snippet.content_kind is ContentKind.TEXT:
            return snippet.payload
        if self.blob_store is None or not snippet.blob_key:
            raise NotFoundError("File data not found")
        data = self.blob_store.get(snippet.blob_key)
        if data is None:
            logger.warning("Blob %s missing for snippet %s", snippet.blob_key, snippet.id)
            raise NotFoundError("File data not found")
        return data

    # --- admin ----------------------------------------------------------------------
    def delete(self, snippet_id: str) -> None:
        """Tombstone an object in any state and purge its blob.

        Raises:
            NotFoundError: No record with this id exists.
        """
        snippet = self.db.get(Snippet, snippet_id, populate_existing=True)
        if snippet is None:
            raise NotFoundError()
        snippet.is_deleted = True
        self.db.commit()
        if snippet.blob_key and self.blob_store is not None:
            purge_blobs(self.blob_store, [snippet.blob_key])
        logger.info("Admin deleted snippet %s", snippet_id)

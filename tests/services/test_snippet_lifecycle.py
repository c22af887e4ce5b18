"""Tests for the stored-object lifecycle: create, read, burn, expire, delete."""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from snipshare.db.session import Base
from snipshare.db.time import MS_PER_HOUR, MS_PER_SECOND
from snipshare.models import ContentKind, Snippet
from snipshare.services.blob_store import FilesystemBlobStore
from snipshare.services.crypto import CryptoService
from snipshare.services.errors import (
    ContentTooLargeError,
    IncorrectPasswordError,
    InvalidContentError,
    InvalidExpirationError,
    InvalidFileTypeError,
    NotFoundError,
    NotPasswordProtectedError,
    PasswordRequiredError,
)
from snipshare.services.limits import DEFAULT_LIMITS, OperatorLimits
from snipshare.services.snippet_service import ID_ALPHABET, SnippetService, generate_snippet_id

NOW = 1_700_000_000_000
ONE_HOUR_SECONDS = 3600


def _stored(db_session: Session, snippet_id: str) -> Snippet:
    db_session.expire_all()
    snippet = db_session.get(Snippet, snippet_id)
    assert snippet is not None
    return snippet


def test_generate_snippet_id_shape() -> None:
    snippet_id = generate_snippet_id()
    assert len(snippet_id) == 10
    assert set(snippet_id) <= set(ID_ALPHABET)


def test_create_stores_only_ciphertext(service: SnippetService, db_session: Session) -> None:
    snippet = service.create_text("hello world", title="greeting", now=NOW)
    stored = _stored(db_session, snippet.id)
    assert b"hello world" not in stored.payload
    assert len(stored.server_key) == 32
    assert stored.view_count == 0
    assert stored.is_deleted is False
    assert stored.created_at == NOW
    assert stored.expires_at is None


def test_plain_read_counts_views_without_burning(service: SnippetService) -> None:
    snippet = service.create_text("hello", expires_in=ONE_HOUR_SECONDS, now=NOW)

    first = service.read(snippet.id, now=NOW + 1)
    assert first.text == "hello"
    assert first.metadata.view_count == 1

    second = service.read(snippet.id, now=NOW + 2)
    assert second.text == "hello"
    assert second.metadata.view_count == 2
    assert second.burned is False


def test_password_flow(service: SnippetService) -> None:
    snippet = service.create_text("classified", password="secret", now=NOW)

    with pytest.raises(PasswordRequiredError) as excinfo:
        service.read(snippet.id, now=NOW)
    metadata = excinfo.value.metadata
    assert metadata.requires_password is True
    assert metadata.view_count == 0
    assert not hasattr(metadata, "content")

    with pytest.raises(IncorrectPasswordError):
        service.read(snippet.id, "wrong", now=NOW)

    revealed = service.read(snippet.id, "secret", now=NOW)
    assert revealed.text == "classified"
    assert revealed.metadata.view_count == 1


def test_failed_password_attempts_do_not_count_views(
    service: SnippetService, db_session: Session
) -> None:
    snippet = service.create_text("x", password="secret", now=NOW)
    with pytest.raises(IncorrectPasswordError):
        service.read(snippet.id, "nope", now=NOW)
    with pytest.raises(PasswordRequiredError):
        service.read(snippet.id, now=NOW)
    assert _stored(db_session, snippet.id).view_count == 0


def test_burn_after_read_survives_first_view(
    service: SnippetService, db_session: Session
) -> None:
    snippet = service.create_text("once", burn_after_read=True, now=NOW)

    first = service.read(snippet.id, now=NOW)
    assert first.text == "once"
    assert first.metadata.view_count == 1
    assert first.burned is False
    assert _stored(db_session, snippet.id).is_deleted is False

    second = service.read(snippet.id, now=NOW)
    assert second.text == "once"
    assert second.metadata.view_count == 2
    assert second.burned is True
    assert _stored(db_session, snippet.id).is_deleted is True

    with pytest.raises(NotFoundError):
        service.read(snippet.id, now=NOW)


def test_record_view_refuses_burned_row(service: SnippetService) -> None:
    """A reader that loaded the row before a concurrent burn must not reveal it."""
    snippet = service.create_text("race", burn_after_read=True, now=NOW)
    assert service._record_view(snippet.id, NOW) == (1, False)
    assert service._record_view(snippet.id, NOW) == (2, True)
    assert service._record_view(snippet.id, NOW) is None


def test_record_view_refuses_expired_row(service: SnippetService) -> None:
    snippet = service.create_text("late", expires_in=1, now=NOW)
    assert service._record_view(snippet.id, NOW + 2 * MS_PER_SECOND) is None


def _race_readers(
    tmp_path: Path, mocker, *, prior_reads: int, readers: int
) -> list[int | str]:
    """Run `readers` sessions against one burn-after-read snippet at once.

    Each thread loads and decrypts on its own connection, then waits at a
    barrier so every counted view hits the database together.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    with make_session() as setup:
        snippet_id = SnippetService(setup).create_text(
            "race", burn_after_read=True, now=NOW
        ).id
        for _ in range(prior_reads):
            SnippetService(setup).read(snippet_id, now=NOW)

    barrier = threading.Barrier(readers)
    record_view = SnippetService._record_view

    def gated_record_view(self, snippet_id, now):
        barrier.wait(timeout=10)
        return record_view(self, snippet_id, now)

    mocker.patch.object(SnippetService, "_record_view", gated_record_view)

    def read_once(_: int) -> int | str:
        with make_session() as session:
            try:
                return SnippetService(session).read(snippet_id, now=NOW).metadata.view_count
            except NotFoundError:
                return "NotFound"

    try:
        with ThreadPoolExecutor(max_workers=readers) as pool:
            return list(pool.map(read_once, range(readers)))
    finally:
        engine.dispose()


def test_concurrent_readers_only_one_sees_the_burning_view(tmp_path: Path, mocker) -> None:
    results = _race_readers(tmp_path, mocker, prior_reads=1, readers=4)
    assert results.count(2) == 1
    assert results.count("NotFound") == 3


def test_concurrent_first_readers_share_both_views(tmp_path: Path, mocker) -> None:
    results = _race_readers(tmp_path, mocker, prior_reads=0, readers=4)
    assert sorted(r for r in results if r != "NotFound") == [1, 2]
    assert results.count("NotFound") == 2


def test_password_read_derives_two_keys(service: SnippetService, mocker) -> None:
    """One verifier check and one layer-2 decryption; nothing more."""
    snippet = service.create_text("classified", password="secret", now=NOW)
    derive = mocker.spy(CryptoService, "derive_key")

    revealed = service.read(snippet.id, "secret", now=NOW)

    assert revealed.text == "classified"
    assert derive.call_count == 2


def test_wrong_password_read_derives_one_key(service: SnippetService, mocker) -> None:
    snippet = service.create_text("classified", password="secret", now=NOW)
    derive = mocker.spy(CryptoService, "derive_key")

    with pytest.raises(IncorrectPasswordError):
        service.read(snippet.id, "wrong", now=NOW)

    assert derive.call_count == 1


def test_lazy_expiry_marks_deleted(service: SnippetService, db_session: Session) -> None:
    snippet = service.create_text("soon gone", expires_in=ONE_HOUR_SECONDS, now=NOW)
    later = NOW + MS_PER_HOUR + 1

    with pytest.raises(NotFoundError):
        service.read(snippet.id, now=later)
    assert _stored(db_session, snippet.id).is_deleted is True

    with pytest.raises(NotFoundError):
        service.get_metadata(snippet.id, now=later)


def test_expiry_boundary_is_inclusive(service: SnippetService) -> None:
    snippet = service.create_text("edge", expires_in=ONE_HOUR_SECONDS, now=NOW)
    assert service.read(snippet.id, now=NOW + MS_PER_HOUR).text == "edge"


def test_metadata_does_not_count_views(service: SnippetService) -> None:
    snippet = service.create_text("meta", language="python", title="t", now=NOW)
    metadata = service.get_metadata(snippet.id, now=NOW)
    assert metadata.language == "python"
    assert metadata.title == "t"
    assert metadata.view_count == 0
    assert service.get_metadata(snippet.id, now=NOW).view_count == 0


def test_unlock_rejects_unprotected(service: SnippetService) -> None:
    snippet = service.create_text("open", now=NOW)
    with pytest.raises(NotPasswordProtectedError):
        service.unlock(snippet.id, "anything", now=NOW)


def test_unlock_reveals_protected(service: SnippetService) -> None:
    snippet = service.create_text("locked", password="secret", burn_after_read=True, now=NOW)
    assert service.unlock(snippet.id, "secret", now=NOW).metadata.view_count == 1
    assert service.unlock(snippet.id, "secret", now=NOW).burned is True
    with pytest.raises(NotFoundError):
        service.unlock(snippet.id, "secret", now=NOW)


def test_kind_mismatch_is_not_found(service: SnippetService) -> None:
    snippet = service.create_text("text", now=NOW)
    with pytest.raises(NotFoundError):
        service.read(snippet.id, kind=ContentKind.FILE, now=NOW)


def test_unknown_id_is_not_found(service: SnippetService) -> None:
    with pytest.raises(NotFoundError):
        service.read("missing", now=NOW)


@pytest.mark.parametrize(
    ("content", "kwargs", "error"),
    [
        ("", {}, InvalidContentError),
        ("x" * 500_001, {}, ContentTooLargeError),
        ("ok", {"expires_in": -5}, InvalidExpirationError),
        ("ok", {"expires_in": 14 * 24 * 3600 + 1}, InvalidExpirationError),
    ],
)
def test_create_validation(
    service: SnippetService,
    db_session: Session,
    content: str,
    kwargs: dict,
    error: type[Exception],
) -> None:
    with pytest.raises(error):
        service.create_text(content, now=NOW, **kwargs)
    assert db_session.query(Snippet).count() == 0


def test_text_limit_counts_utf8_bytes(service: SnippetService) -> None:
    with pytest.raises(ContentTooLargeError):
        service.create_text("é" * 250_001, now=NOW)


def test_two_week_expiry_is_accepted(service: SnippetService) -> None:
    snippet = service.create_text("max", expires_in=14 * 24 * 3600, now=NOW)
    assert snippet.expires_at == NOW + 14 * 24 * 3600 * MS_PER_SECOND


def test_zero_expiry_means_never(service: SnippetService) -> None:
    assert service.create_text("forever", expires_in=0, now=NOW).expires_at is None


def test_file_round_trip(service: SnippetService, blob_store: FilesystemBlobStore) -> None:
    data = b"%PDF-1.4 binary\x00\xff"
    snippet = service.create_file(data, "report.pdf", DEFAULT_LIMITS, now=NOW)

    assert snippet.payload == b""
    assert snippet.file_size == len(data)
    assert snippet.file_mime_type == "application/pdf"
    assert snippet.blob_key == f"files/{snippet.id}/report.pdf"
    stored_blob = blob_store.get(snippet.blob_key)
    assert stored_blob is not None and data not in stored_blob

    revealed = service.read(snippet.id, kind=ContentKind.FILE, now=NOW)
    assert revealed.content == data
    assert revealed.metadata.file_name == "report.pdf"


def test_protected_file_requires_password(service: SnippetService) -> None:
    snippet = service.create_file(b"data", "notes.txt", DEFAULT_LIMITS, password="pw", now=NOW)
    with pytest.raises(PasswordRequiredError) as excinfo:
        service.read(snippet.id, kind=ContentKind.FILE, now=NOW)
    assert excinfo.value.metadata.file_name == "notes.txt"
    assert excinfo.value.metadata.file_size == 4
    assert service.read(snippet.id, "pw", kind=ContentKind.FILE, now=NOW).content == b"data"


def test_burned_file_purges_blob(service: SnippetService, blob_store: FilesystemBlobStore) -> None:
    snippet = service.create_file(b"data", "a.txt", DEFAULT_LIMITS, burn_after_read=True, now=NOW)
    service.read(snippet.id, now=NOW)
    assert blob_store.exists(snippet.blob_key)
    service.read(snippet.id, now=NOW)
    assert not blob_store.exists(snippet.blob_key)


def test_expired_file_purges_blob_on_read(
    service: SnippetService, blob_store: FilesystemBlobStore
) -> None:
    snippet = service.create_file(b"data", "a.txt", DEFAULT_LIMITS, expires_in=1, now=NOW)
    with pytest.raises(NotFoundError):
        service.read(snippet.id, now=NOW + 2 * MS_PER_SECOND)
    assert not blob_store.exists(snippet.blob_key)


def test_file_validation(service: SnippetService) -> None:
    small = OperatorLimits(max_file_size_mb=1, allowed_file_types=".txt")
    with pytest.raises(InvalidFileTypeError):
        service.create_file(b"data", "script.exe", small, now=NOW)
    with pytest.raises(InvalidFileTypeError):
        service.create_file(b"data", "noextension", small, now=NOW)
    with pytest.raises(ContentTooLargeError):
        service.create_file(b"x" * (1024 * 1024 + 1), "big.txt", small, now=NOW)
    with pytest.raises(InvalidContentError):
        service.create_file(b"", "empty.txt", small, now=NOW)


def test_failed_record_insert_removes_blob(
    service: SnippetService,
    blob_store: FilesystemBlobStore,
    db_session: Session,
    mocker,
) -> None:
    put = mocker.spy(blob_store, "put")
    mocker.patch.object(db_session, "commit", side_effect=RuntimeError("db down"))
    with pytest.raises(RuntimeError):
        service.create_file(b"data", "a.txt", DEFAULT_LIMITS, now=NOW)
    key = put.call_args.args[0]
    assert not blob_store.exists(key)


def test_cleanup_sweep_is_idempotent(
    service: SnippetService, blob_store: FilesystemBlobStore
) -> None:
    expired_text = service.create_text("t", expires_in=1, now=NOW)
    expired_file = service.create_file(b"f", "f.txt", DEFAULT_LIMITS, expires_in=1, now=NOW)
    keeper = service.create_text("k", expires_in=ONE_HOUR_SECONDS, now=NOW)
    later = NOW + 2 * MS_PER_SECOND

    result = service.cleanup_expired(now=later)
    assert result.marked_deleted == 2
    assert result.purged_blob_keys == [expired_file.blob_key]
    assert not blob_store.exists(expired_file.blob_key)

    again = service.cleanup_expired(now=later)
    assert again.marked_deleted == 0
    assert again.purged_blob_keys == []

    with pytest.raises(NotFoundError):
        service.read(expired_text.id, now=later)
    assert service.read(keeper.id, now=later).text == "k"


def test_mark_expired_skips_already_deleted(service: SnippetService) -> None:
    snippet = service.create_text("t", expires_in=1, now=NOW)
    service.delete(snippet.id)
    assert service.mark_expired(now=NOW + 2 * MS_PER_SECOND) == []


def test_admin_delete(service: SnippetService, blob_store: FilesystemBlobStore) -> None:
    snippet = service.create_file(b"data", "a.txt", DEFAULT_LIMITS, now=NOW)
    service.delete(snippet.id)
    assert not blob_store.exists(snippet.blob_key)
    with pytest.raises(NotFoundError):
        service.read(snippet.id, now=NOW)
    # Deleting a tombstoned record again is allowed.
    service.delete(snippet.id)
    with pytest.raises(NotFoundError):
        service.delete("missing")

# tests/test_scripts.py
"""Tests for the maintenance command-line scripts."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import Session

from snipshare.scripts import cleanup, migrate
from snipshare.services.blob_store import FilesystemBlobStore
from snipshare.services.limits import DEFAULT_LIMITS
from snipshare.services.snippet_service import SnippetService

NOW = 1_700_000_000_000


def test_cleanup_script_sweeps_expired(
    db_session: Session,
    tmp_path: Path,
    mocker,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store = FilesystemBlobStore(tmp_path / "cli-blobs")
    snippet = SnippetService(db_session, store).create_file(
        b"data", "old.txt", DEFAULT_LIMITS, expires_in=1, now=NOW
    )
    blob_key = snippet.blob_key
    mocker.patch.object(cleanup, "SessionLocal", return_value=db_session)

    assert cleanup.main(["--blob-path", str(tmp_path / "cli-blobs")]) == 0
    assert "marked 1 expired, purged 1 blobs" in capsys.readouterr().out
    assert not store.exists(blob_key)


def test_migrate_config_points_at_migrations() -> None:
    cfg = migrate.build_config()
    script_location = Path(cfg.get_main_option("script_location"))
    assert (script_location / "env.py").exists()
    assert (script_location / "versions").is_dir()


def test_migrations_build_the_schema_on_sqlite(tmp_path: Path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)
    # No ini file, so the test run's logging configuration is left alone.
    cfg = Config()
    cfg.set_main_option("script_location", migrate.MIGRATIONS_DIR)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"snippets", "rate_limits", "blocked_addresses", "settings"} <= tables

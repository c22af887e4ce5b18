"""Run one expiry sweep against the configured database and blob store."""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from snipshare.db.session import SessionLocal
from snipshare.services.blob_store import FilesystemBlobStore, get_blob_store
from snipshare.services.snippet_service import SnippetService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Tombstone expired snippets and purge their files")
    parser.add_argument(
        "--blob-path",
        default=None,
        help="Override blob storage root (defaults to BLOB_STORAGE_PATH)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each purged blob")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s [%(name)s] %(message)s",
    )
    blob_store = FilesystemBlobStore(args.blob_path) if args.blob_path else get_blob_store()

    db = SessionLocal()
    try:
        result = SnippetService(db, blob_store).cleanup_expired()
    except SQLAlchemyError as exc:
        print(f"[cleanup] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    for key in result.purged_blob_keys:
        logging.getLogger(__name__).debug("purged %s", key)
    print(
        f"[cleanup] marked {result.marked_deleted} expired, "
        f"purged {len(result.purged_blob_keys)} blobs"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Filesystem content store with a SQLite index of persisted objects."""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

import sqlite_utils

from .errors import ContentStoreError
from .models import ContentDescriptor
from .utils import sha256_hex

logger = logging.getLogger(__name__)


class LocalContentStore:
    """Write content objects under ``root`` and record them in ``index_db``."""

    TABLE = "content_objects"

    def __init__(self, root: Path, index_db: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.index_db = Path(index_db)
        self.index_db.parent.mkdir(parents=True, exist_ok=True)
        self.db = sqlite_utils.Database(str(self.index_db))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self.db[self.TABLE].create(
            {
                "identifier": str,
                "mime_type": str,
                "size": int,
                "checksum": str,
                "stored_at": str,
            },
            pk="identifier",
            if_not_exists=True,
        )

    def path_for(self, identifier: str) -> Path:
        path = (self.root / identifier).resolve()
        if path.parent != self.root.resolve():
            raise ContentStoreError(f"Identifier {identifier!r} escapes the content root")
        return path

    def exists(self, identifier: str) -> bool:
        return self.path_for(identifier).exists()

    def lookup(self, identifier: str) -> Optional[dict]:
        rows = list(self.db[self.TABLE].rows_where("identifier = ?", [identifier]))
        return rows[0] if rows else None

    @contextmanager
    def open_writer(self, identifier: str) -> Iterator[BinaryIO]:
        """Yield a writable stream; the object appears only if the block succeeds.

        Data goes to a temporary sibling file that is renamed into place on
        success and removed on any failure.
        """
        target = self.path_for(identifier)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{identifier}.", suffix=".part", dir=self.root)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as stream:
                yield stream
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def persist(self, descriptor: ContentDescriptor) -> Path:
        """Write the descriptor's bytes, index them and release the descriptor."""
        try:
            data = descriptor.data
            if data is None:
                raise ContentStoreError(f"Content {descriptor.identifier} has no data to persist")
            if len(data) != descriptor.size:
                raise ContentStoreError(
                    f"Content {descriptor.identifier} declares {descriptor.size} bytes "
                    f"but carries {len(data)}"
                )
            with self.open_writer(descriptor.identifier) as stream:
                stream.write(data)
            self.db[self.TABLE].upsert(
                {
                    "identifier": descriptor.identifier,
                    "mime_type": descriptor.mime_type,
                    "size": descriptor.size,
                    "checksum": sha256_hex(data),
                    "stored_at": datetime.now(tz=UTC).isoformat(),
                },
                pk="identifier",
            )
        finally:
            descriptor.release()
        logger.debug("Persisted %s (%s, %s bytes)", descriptor.identifier, descriptor.mime_type, descriptor.size)
        return self.path_for(descriptor.identifier)

from __future__ import annotations

"""
JSON document store.

The whole application state lives in one JSON file:

    {"users": {"<userId>": {...}}, "reviews": [{...}, ...]}

Every read parses the full file and every write replaces it. Mutations go
through `transaction()`, which holds a per-store lock across the
read → mutate → write cycle so concurrent requests served by this process
never clobber each other. Writes land in a temp file first and are moved over
the store with `os.replace`, so a crash mid-write leaves the previous
document intact.

An unreadable document is copied aside (`store.json.corrupt-<timestamp>`)
and replaced by empty defaults, with a warning in the log.
"""

import json
import logging
import os
import shutil
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from pydantic import ValidationError

from cinetrack.schemas.user import StoreDocument

logger = logging.getLogger(__name__)


class JsonStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    # ── File lifecycle ───────────────────────────────────────
    def ensure(self) -> None:
        """Create the data directory and an empty document if missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write_raw(StoreDocument())
            logger.info("Created empty store at %s", self.path)

    def read(self) -> StoreDocument:
        with self._lock:
            self.ensure()
            raw = self.path.read_text(encoding="utf-8")
            try:
                return StoreDocument.model_validate(json.loads(raw))
            except (ValueError, ValidationError) as e:
                # json.JSONDecodeError is a ValueError
                backup = self._quarantine()
                if backup is not None:
                    self._write_raw(StoreDocument())
                logger.warning(
                    "Store %s is unreadable; continuing with an empty store (backup: %s) | err=%s",
                    self.path,
                    backup,
                    e,
                )
                return StoreDocument()

    def write(self, doc: StoreDocument) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_raw(doc)

    @contextmanager
    def transaction(self) -> Iterator[StoreDocument]:
        """Read, yield for mutation, write back unless the block raised."""
        with self._lock:
            doc = self.read()
            yield doc
            self.write(doc)

    # ── Internals ────────────────────────────────────────────
    def _write_raw(self, doc: StoreDocument) -> None:
        payload = json.dumps(doc.dump(), indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _quarantine(self) -> Optional[Path]:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            shutil.copy2(self.path, backup)
        except OSError as e:
            logger.error("Could not back up unreadable store %s: %s", self.path, e)
            return None
        return backup

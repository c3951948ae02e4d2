"""Flat-file (JSON) ledger backend."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Sequence

from fx_baht.db.base_backend import DEFAULT_WINDOW, LedgerStore
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)


class JsonFileLedgerStore(LedgerStore):
    """Store the ledger as a JSON array in a single file.

    Commits write a temporary file next to the target and ``os.replace`` it
    into place, so readers see either the old or the new ledger in full. A file
    that cannot be parsed is moved aside to ``<name>.corrupt`` and the ledger
    starts over empty.
    """

    def __init__(self, path: str | Path, *, window: int = DEFAULT_WINDOW) -> None:
        super().__init__(window=window)
        self.path = Path(path).expanduser()

    def ensure_schema(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load_documents(self) -> list[Mapping[str, Any]]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            self._quarantine(f"invalid UTF-8 ({exc})")
            return []
        if not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            self._quarantine(f"invalid JSON ({exc})")
            return []
        if not isinstance(payload, list):
            self._quarantine(f"expected a JSON array, found {type(payload).__name__}")
            return []
        return [item for item in payload if isinstance(item, dict)]

    def _commit_documents(self, documents: Sequence[Mapping[str, Any]]) -> None:
        self.ensure_schema()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(list(documents), handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _quarantine(self, reason: str) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        LOGGER.error("Ledger file %s is corrupt (%s); moving it to %s", self.path, reason, backup)
        try:
            os.replace(self.path, backup)
        except OSError as exc:
            LOGGER.error("Unable to move corrupt ledger file aside: %s", exc)


__all__ = ["JsonFileLedgerStore"]

"""SQLite ledger backend addressed by file path."""

from __future__ import annotations

from pathlib import Path

from fx_baht.db.base_backend import DEFAULT_WINDOW
from fx_baht.db.relational_backend import RelationalLedgerStore


class SQLiteLedgerStore(RelationalLedgerStore):
    """Relational ledger stored in a local SQLite file."""

    def __init__(self, db_path: str | Path, *, window: int = DEFAULT_WINDOW) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(f"sqlite:///{self.db_path.as_posix()}", window=window)


__all__ = ["SQLiteLedgerStore"]

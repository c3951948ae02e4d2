"""MongoDB ledger backend."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import ConfigurationError, PyMongoError

from fx_baht.db.base_backend import DEFAULT_WINDOW, LedgerStore
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_COLLECTION = "rate_ledger"
LEDGER_DOCUMENT_ID = "ledger"


class MongoLedgerStore(LedgerStore):
    """Keep the whole ledger inside one MongoDB document.

    Single-document writes are atomic in MongoDB, so replacing the document
    commits the upsert/sort/trim result as one unit.
    """

    def __init__(
        self,
        url: str,
        *,
        database: str | None = None,
        collection: str = DEFAULT_COLLECTION,
        window: int = DEFAULT_WINDOW,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        super().__init__(window=window)
        self.url = url
        self._client = MongoClient(url, serverSelectionTimeoutMS=server_selection_timeout_ms)
        if database is not None:
            db = self._client[database]
        else:
            try:
                db = self._client.get_default_database()
            except ConfigurationError as exc:
                self._client.close()
                raise ValueError("MongoDB connection URI must include a database name") from exc
        self._collection: Collection = db[collection]

    def ensure_schema(self) -> None:
        try:
            LOGGER.info("Verifying MongoDB connectivity for the rate ledger")
            self._client.admin.command("ping")
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to reach MongoDB: {exc}") from exc

    def _load_documents(self) -> list[Mapping[str, Any]]:
        document = self._collection.find_one({"_id": LEDGER_DOCUMENT_ID})
        if not document:
            return []
        entries = document.get("entries")
        if not isinstance(entries, list):
            LOGGER.error("Ledger document has no entries array; treating as empty")
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _commit_documents(self, documents: Sequence[Mapping[str, Any]]) -> None:
        payload = {
            "_id": LEDGER_DOCUMENT_ID,
            "entries": [dict(document) for document in documents],
            "updated_at": datetime.now(timezone.utc),
        }
        try:
            self._collection.replace_one({"_id": LEDGER_DOCUMENT_ID}, payload, upsert=True)
        except PyMongoError as exc:
            raise RuntimeError(f"Failed to commit MongoDB ledger: {exc}") from exc

    def close(self) -> None:  # pragma: no cover - trivial cleanup
        self._client.close()


__all__ = ["MongoLedgerStore"]

"""Ledger store interface and the day-keyed upsert/sort/trim logic shared by every backend."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_WINDOW = 30


class SortOrder(str, Enum):
    """Ordering requested by callers of :meth:`LedgerStore.window`."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def parse(cls, value: "SortOrder | str") -> "SortOrder":
        if isinstance(value, SortOrder):
            return value
        lowered = str(value).strip().lower()
        if lowered in {"asc", "ascending", "chronological"}:
            return cls.ASCENDING
        if lowered in {"desc", "descending", "recent"}:
            return cls.DESCENDING
        raise ValueError("order must be one of 'asc' or 'desc'")


@dataclass(slots=True)
class PersistenceResult:
    """How many ledger entries an upsert inserted, replaced and trimmed."""

    inserted: int = 0
    updated: int = 0
    trimmed: int = 0

    @property
    def total(self) -> int:
        """Return the number of snapshots written (inserted or replaced)."""

        return self.inserted + self.updated


class LedgerStore(ABC):
    """Bounded, day-keyed, chronologically ordered history of snapshots.

    Subclasses only move whole collections of documents to and from their
    medium. The rules live here: at most one entry per ``calendar_day``,
    ascending ``(recorded_at, calendar_day)`` order and at most ``window``
    entries, trimmed from the oldest end. Each upsert is committed as one unit
    under a lock so readers of this store never see a half-applied change.
    """

    def __init__(self, *, window: int = DEFAULT_WINDOW) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window_size = window
        self._lock = threading.RLock()

    # -- backend hooks -------------------------------------------------

    @abstractmethod
    def _load_documents(self) -> list[Mapping[str, Any]]:
        """Return every persisted document, in any order.

        May raise; :meth:`_load` turns failures into an empty ledger.
        """

    @abstractmethod
    def _commit_documents(self, documents: Sequence[Mapping[str, Any]]) -> None:
        """Atomically replace the persisted collection with ``documents``."""

    def ensure_schema(self) -> None:
        """Create required tables/collections and verify connectivity."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""

    def probe(self) -> None:
        """Verify the medium is reachable and readable, raising on failure.

        Unlike the read operations, which degrade to an empty ledger, this
        surfaces the underlying error for connectivity checks.
        """

        self.ensure_schema()
        self._load_documents()

    # -- core logic ----------------------------------------------------

    def upsert(self, snapshot: RateSnapshot) -> PersistenceResult:
        """Insert ``snapshot`` or fully replace the entry for its calendar day."""

        return self.upsert_many([snapshot])

    def upsert_unless(
        self, snapshot: RateSnapshot, keep: Callable[[RateSnapshot], bool]
    ) -> PersistenceResult | None:
        """Upsert ``snapshot`` unless ``keep`` approves the entry already stored for its day.

        The check and the write happen under one lock hold. Returns ``None``
        when the existing entry was kept.
        """

        with self._lock:
            existing = self.get(snapshot.calendar_day)
            if existing is not None and keep(existing):
                return None
            return self.upsert(snapshot)

    def upsert_many(self, snapshots: Iterable[RateSnapshot]) -> PersistenceResult:
        """Apply several upserts and commit them together.

        Later snapshots for the same day replace earlier ones, exactly as if
        :meth:`upsert` had been called for each in turn.
        """

        incoming = list(snapshots)
        result = PersistenceResult()
        if not incoming:
            return result
        with self._lock:
            by_day: dict[str, RateSnapshot] = {entry.calendar_day: entry for entry in self._load()}
            for snapshot in incoming:
                if snapshot.calendar_day in by_day:
                    result.updated += 1
                else:
                    result.inserted += 1
                by_day[snapshot.calendar_day] = snapshot
            ordered = sorted(by_day.values(), key=lambda entry: entry.sort_key)
            if len(ordered) > self.window_size:
                result.trimmed = len(ordered) - self.window_size
                ordered = ordered[result.trimmed :]
            self._commit_documents([entry.to_document() for entry in ordered])
        LOGGER.info(
            "Ledger upsert: inserted %s, replaced %s, trimmed %s (now %s entries)",
            result.inserted,
            result.updated,
            result.trimmed,
            len(ordered),
        )
        return result

    def entries(self) -> list[RateSnapshot]:
        """Return all entries in ascending chronological order."""

        with self._lock:
            return self._load()

    def latest(self) -> RateSnapshot | None:
        """Return the entry with the greatest ``recorded_at`` or ``None``."""

        entries = self.entries()
        return entries[-1] if entries else None

    def get(self, calendar_day: str) -> RateSnapshot | None:
        """Return the entry stored for ``calendar_day`` if any."""

        for entry in self.entries():
            if entry.calendar_day == calendar_day:
                return entry
        return None

    def window(self, n: int, order: SortOrder | str) -> list[RateSnapshot]:
        """Return the ``n`` most recent entries in the requested ``order``."""

        resolved = SortOrder.parse(order)
        if n <= 0:
            return []
        recent = self.entries()[-n:]
        if resolved is SortOrder.DESCENDING:
            recent.reverse()
        return recent

    def __len__(self) -> int:
        return len(self.entries())

    def _load(self) -> list[RateSnapshot]:
        try:
            documents = self._load_documents()
        except Exception as exc:
            LOGGER.error("Ledger backend %s unreadable, treating as empty: %s", type(self).__name__, exc)
            return []
        by_day: dict[str, RateSnapshot] = {}
        for document in documents:
            try:
                snapshot = RateSnapshot.from_document(document)
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Skipping undecodable ledger entry %r: %s", document, exc)
                continue
            current = by_day.get(snapshot.calendar_day)
            if current is None or snapshot.sort_key >= current.sort_key:
                by_day[snapshot.calendar_day] = snapshot
        ordered = sorted(by_day.values(), key=lambda entry: entry.sort_key)
        return ordered[-self.window_size :]


__all__ = ["DEFAULT_WINDOW", "LedgerStore", "PersistenceResult", "SortOrder"]

"""Public interface for the fx_baht package."""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from fx_baht.comparison import ComparisonResult, ConversionPath, compare, compare_snapshot
from fx_baht.config import FallbackPolicy, TrackerConfig
from fx_baht.cycle import AcquisitionCycle, AcquisitionInProgressError
from fx_baht.db.base_backend import LedgerStore, PersistenceResult, SortOrder
from fx_baht.ingestion.aggregator import RateAggregator
from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = [
    "__version__",
    "AcquisitionInProgressError",
    "ComparisonResult",
    "ConversionPath",
    "DatabaseBackend",
    "DatabaseConnectionInfo",
    "FallbackPolicy",
    "FxBaht",
    "KioskPageExtractor",
    "LedgerStore",
    "PersistenceResult",
    "RateSnapshot",
    "SeleniumPageSession",
    "SortOrder",
    "TrackerConfig",
    "compare",
    "compare_snapshot",
]

try:
    __version__ = importlib_metadata.version("fx-baht")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"


class DatabaseBackend(str, Enum):
    """Supported ledger media."""

    FILE = "file"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MONGODB = "mongodb"

    @classmethod
    def resolve_backend_and_scheme(cls, scheme: str) -> tuple["DatabaseBackend", str]:
        """Return backend enum + canonical scheme used in connection URLs."""

        if not scheme:
            raise ValueError("DB_URL must include a scheme (e.g. file://, sqlite:// or mongodb://)")
        scheme_lower = scheme.lower()
        base_scheme, _, driver = scheme_lower.partition("+")
        if base_scheme in {"file", "json"}:
            return cls.FILE, "file"
        if base_scheme in {"postgresql", "postgres"}:
            # SQLAlchemy only understands the long spelling.
            return cls.POSTGRES, f"postgresql+{driver}" if driver else "postgresql"
        if base_scheme == "sqlite":
            return cls.SQLITE, "sqlite"
        if base_scheme == "mysql":
            return cls.MYSQL, scheme_lower if driver else "mysql"
        if base_scheme == "mongodb":
            # Keep srv-style schemes intact so pymongo can route via DNS.
            return cls.MONGODB, scheme_lower if driver else "mongodb"
        raise ValueError(
            "Unsupported ledger backend. Supported values are file, SQLite, MySQL, "
            "Postgres, and MongoDB."
        )

    @classmethod
    def from_scheme(cls, scheme: str) -> "DatabaseBackend":
        """Normalise URL schemes into a DatabaseBackend value."""

        backend, _ = cls.resolve_backend_and_scheme(scheme)
        return backend


@dataclass(slots=True)
class DatabaseConnectionInfo:
    """Represents where FxBaht keeps its ledger."""

    backend: DatabaseBackend
    url: str
    name: str | None = None

    @classmethod
    def from_url(cls, url: str) -> "DatabaseConnectionInfo":
        """Create a connection object by parsing a database URL/DSN."""

        parsed = urlparse(url)
        if not parsed.scheme or "://" not in url:
            raise ValueError("DB_URL must include a scheme (e.g. file://, sqlite:// or mongodb://)")
        backend, canonical_scheme = DatabaseBackend.resolve_backend_and_scheme(parsed.scheme)
        if backend is DatabaseBackend.FILE:
            # ``file://data/ledger.json`` is relative, ``file:///srv/ledger.json`` absolute.
            file_path = unquote(parsed.netloc + parsed.path)
            if not file_path:
                raise ValueError("file:// URLs must include a path")
            return cls(backend=backend, url=f"file://{file_path}", name=file_path)
        if parsed.scheme != canonical_scheme:
            url = parsed._replace(scheme=canonical_scheme).geturl()
        name = parsed.path[1:] if parsed.path and parsed.path != "/" else None
        return cls(backend=backend, url=url, name=name)

    @classmethod
    def for_file(cls, path: str | Path) -> "DatabaseConnectionInfo":
        file_path = Path(path).as_posix()
        return cls(backend=DatabaseBackend.FILE, url=f"file://{file_path}", name=file_path)

    @property
    def is_file(self) -> bool:
        return self.backend is DatabaseBackend.FILE


def build_store(connection_info: DatabaseConnectionInfo, *, window: int) -> LedgerStore:
    """Instantiate the ledger backend described by ``connection_info``."""

    backend = connection_info.backend
    if backend is DatabaseBackend.FILE:
        from fx_baht.db.json_backend import JsonFileLedgerStore

        return JsonFileLedgerStore(connection_info.name or "", window=window)
    if backend is DatabaseBackend.MONGODB:
        from fx_baht.db.mongo_backend import MongoLedgerStore

        return MongoLedgerStore(connection_info.url, database=connection_info.name, window=window)
    if backend is DatabaseBackend.SQLITE and connection_info.name not in {None, ":memory:"}:
        from fx_baht.db.sqlite_backend import SQLiteLedgerStore

        return SQLiteLedgerStore(connection_info.name, window=window)
    from fx_baht.db.relational_backend import RelationalLedgerStore

    return RelationalLedgerStore(connection_info.url, window=window)


class FxBaht:
    """Package facade wiring configuration, the ledger and the acquisition cycle."""

    __slots__ = ("config", "connection_info", "store", "aggregator", "_cycle")

    # Provide direct access to the package version as a class attribute.
    __version__ = __version__

    def __init__(
        self,
        db_config: DatabaseConnectionInfo | str | None = None,
        *,
        config: TrackerConfig | None = None,
        aggregator: RateAggregator | None = None,
    ) -> None:
        """Configure where the ledger lives and how rates are acquired.

        ``db_config`` may be a ``DatabaseConnectionInfo`` or a URL string; when
        omitted, ``config.db_url`` is used and, failing that, the JSON flat
        file at ``config.ledger_path``. ``config`` defaults to
        :meth:`TrackerConfig.from_env`.
        """

        self.config = config or TrackerConfig.from_env()
        self.connection_info = self._build_connection_info(db_config)
        self.store = build_store(self.connection_info, window=self.config.window)
        self.aggregator = aggregator or RateAggregator(self.config)
        self._cycle = AcquisitionCycle(self.aggregator, self.store, self.config)

    def _build_connection_info(
        self, db_config: DatabaseConnectionInfo | str | None
    ) -> DatabaseConnectionInfo:
        if isinstance(db_config, DatabaseConnectionInfo):
            return db_config
        url = db_config if db_config is not None else self.config.db_url
        if url:
            return DatabaseConnectionInfo.from_url(url)
        return DatabaseConnectionInfo.for_file(self.config.ledger_path)

    def trigger_acquisition_cycle(
        self, *, wait: bool = True, timeout: float | None = None
    ) -> RateSnapshot:
        """Acquire both rates and commit the snapshot; shared by scheduled and manual triggers."""

        return self._cycle.run(wait=wait, timeout=timeout)

    def latest(self) -> RateSnapshot | None:
        return self.store.latest()

    def history(
        self,
        limit: int | None = None,
        order: SortOrder | str = SortOrder.ASCENDING,
    ) -> list[RateSnapshot]:
        """Return up to ``limit`` recent snapshots (the whole window by default)."""

        return self.store.window(limit if limit is not None else self.config.window, order)

    def compare(self, budget: object, snapshot: RateSnapshot | None = None) -> ComparisonResult:
        """Compare both conversion paths for ``budget`` using ``snapshot`` or the latest entry."""

        target = snapshot or self.latest()
        if target is None:
            raise LookupError("No rates recorded yet; trigger an acquisition cycle first")
        if target.degraded:
            LOGGER.warning(
                "Comparing against degraded snapshot for %s (%s)",
                target.calendar_day,
                ", ".join(target.degraded_sources),
            )
        return compare_snapshot(budget, target)

    def migrate(self, target: DatabaseConnectionInfo | str) -> PersistenceResult:
        """Copy this ledger into another backend (e.g. flat file to MongoDB)."""

        if isinstance(target, DatabaseConnectionInfo):
            info = target
        else:
            info = DatabaseConnectionInfo.from_url(target)
        if info.url == self.connection_info.url:
            raise ValueError("Migration target must differ from the current ledger")
        target_store = build_store(info, window=self.config.window)
        try:
            target_store.ensure_schema()
            return target_store.upsert_many(self.store.entries())
        finally:
            target_store.close()

    def import_legacy_history(
        self, path: str | Path, *, dry_run: bool = False
    ) -> tuple[PersistenceResult, int]:
        """Upsert records from a legacy ``history.json`` file into this ledger."""

        from fx_baht.jobs.migrate_history import import_legacy_history

        self.store.ensure_schema()
        return import_legacy_history(
            path, self.store, tz_name=self.config.timezone, dry_run=dry_run
        )

    def connection(self) -> tuple[bool, str | None]:
        """Attempt to reach the ledger medium and report the outcome."""

        try:
            self.store.probe()
        except Exception as exc:  # driver errors carry the detail
            return False, str(exc)
        return True, None

    def close(self) -> None:
        self.store.close()


def __getattr__(name: str) -> Any:
    """Lazily import browser helpers so importing the package stays light."""

    if name == "KioskPageExtractor":
        from fx_baht.ingestion.kiosk_page import KioskPageExtractor as _extractor

        return _extractor
    if name == "SeleniumPageSession":
        from fx_baht.ingestion.kiosk_page import SeleniumPageSession as _session

        return _session
    raise AttributeError(f"module 'fx_baht' has no attribute {name}")

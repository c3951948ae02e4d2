"""Tests for the public package facade."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

import fx_baht
from fx_baht import (
    ConversionPath,
    DatabaseBackend,
    DatabaseConnectionInfo,
    FxBaht,
    SortOrder,
    TrackerConfig,
    __version__,
)
from fx_baht.db import mongo_backend
from fx_baht.db.json_backend import JsonFileLedgerStore
from fx_baht.db.relational_backend import RelationalLedgerStore
from fx_baht.db.sqlite_backend import SQLiteLedgerStore
from fx_baht.ingestion.aggregator import RateAggregator
from fx_baht.ingestion.models import BANK_SOURCE, KIOSK_SOURCE, KioskRates, SourceReading


class _Bank:
    def fetch(self) -> SourceReading[float]:
        return SourceReading.live(BANK_SOURCE, 31.8)

    def fallback_reading(self, detail: str | None = None) -> SourceReading[float]:
        return SourceReading.fallback(BANK_SOURCE, 31.815, detail)


class _Kiosk:
    def fetch(self) -> SourceReading[KioskRates]:
        return SourceReading.live(KIOSK_SOURCE, KioskRates(0.995, 31.36))

    def fallback_reading(self, detail: str | None = None) -> SourceReading[KioskRates]:
        return SourceReading.fallback(KIOSK_SOURCE, KioskRates(1.005, 31.39), detail)


class _Clock:
    def __init__(self) -> None:
        self.moment = datetime(2025, 12, 20, 15, 50, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.moment += timedelta(days=1)
        return self.moment


def _tracker(tmp_path: Path, db_config: str | None = None) -> FxBaht:
    config = TrackerConfig(ledger_path=tmp_path / "ledger.json")
    aggregator = RateAggregator(config, bank=_Bank(), kiosk=_Kiosk(), clock=_Clock())
    return FxBaht(db_config=db_config, config=config, aggregator=aggregator)


def test_fx_baht_class_exposes_version() -> None:
    assert FxBaht.__version__ == __version__


def test_defaults_to_json_flat_file(tmp_path) -> None:
    tracker = _tracker(tmp_path)

    assert tracker.connection_info.backend is DatabaseBackend.FILE
    assert isinstance(tracker.store, JsonFileLedgerStore)
    assert tracker.store.path == tmp_path / "ledger.json"


def test_config_db_url_is_used_when_no_override(tmp_path) -> None:
    config = TrackerConfig(db_url=f"sqlite:///{(tmp_path / 'ledger.db').as_posix()}")
    tracker = FxBaht(config=config, aggregator=RateAggregator(config, bank=_Bank(), kiosk=_Kiosk()))

    assert tracker.connection_info.backend is DatabaseBackend.SQLITE
    assert isinstance(tracker.store, SQLiteLedgerStore)


def test_external_backends_are_built_lazily(tmp_path, monkeypatch) -> None:
    postgres = _tracker(tmp_path, "postgres://user:pwd@db:5432/fx")
    memory = _tracker(tmp_path, "sqlite://")

    assert isinstance(postgres.store, RelationalLedgerStore)
    assert postgres.store.url == "postgresql://user:pwd@db:5432/fx"
    assert type(memory.store) is RelationalLedgerStore

    class _Client:
        def __init__(self, url: str, serverSelectionTimeoutMS: int) -> None:
            self.url = url

        def __getitem__(self, name: str) -> dict:
            return {"rate_ledger": object()}

    monkeypatch.setattr(mongo_backend, "MongoClient", _Client)
    mongo = _tracker(tmp_path, "mongodb://localhost:27017/fx")
    assert isinstance(mongo.store, mongo_backend.MongoLedgerStore)


@pytest.mark.parametrize(
    "scheme, backend",
    [
        ("file", DatabaseBackend.FILE),
        ("json", DatabaseBackend.FILE),
        ("postgresql", DatabaseBackend.POSTGRES),
        ("postgres+psycopg", DatabaseBackend.POSTGRES),
        ("mysql+pymysql", DatabaseBackend.MYSQL),
        ("sqlite", DatabaseBackend.SQLITE),
        ("mongodb+srv", DatabaseBackend.MONGODB),
    ],
)
def test_database_backend_from_scheme_handles_aliases(scheme: str, backend: DatabaseBackend) -> None:
    assert DatabaseBackend.from_scheme(scheme) is backend


def test_database_backend_rejects_unknown_scheme() -> None:
    with pytest.raises(ValueError, match="Unsupported ledger backend"):
        DatabaseBackend.from_scheme("ftp")


@pytest.mark.parametrize(
    "url, name",
    [
        ("file://data/ledger.json", "data/ledger.json"),
        ("file:///srv/fx/ledger.json", "/srv/fx/ledger.json"),
        ("json://ledger.json", "ledger.json"),
    ],
)
def test_file_urls_resolve_paths(url: str, name: str) -> None:
    info = DatabaseConnectionInfo.from_url(url)

    assert info.is_file
    assert info.name == name


def test_connection_info_requires_scheme() -> None:
    with pytest.raises(ValueError, match="DB_URL must include a scheme"):
        DatabaseConnectionInfo.from_url("localhost/fx")


def test_trigger_latest_history_and_compare(tmp_path) -> None:
    tracker = _tracker(tmp_path)

    first = tracker.trigger_acquisition_cycle()
    second = tracker.trigger_acquisition_cycle()

    assert tracker.latest() == second
    assert tracker.history() == [first, second]
    assert tracker.history(limit=1, order=SortOrder.DESCENDING) == [second]
    result = tracker.compare(50000)
    assert result.recommended_path is ConversionPath.DIRECT
    assert result.absolute_difference == 453


def test_compare_without_rates_raises(tmp_path) -> None:
    with pytest.raises(LookupError):
        _tracker(tmp_path).compare(50000)


def test_migrate_copies_ledger_to_another_backend(tmp_path) -> None:
    tracker = _tracker(tmp_path)
    tracker.trigger_acquisition_cycle()
    tracker.trigger_acquisition_cycle()
    target_url = f"sqlite:///{(tmp_path / 'migrated.db').as_posix()}"

    result = tracker.migrate(target_url)

    assert result.inserted == 2
    assert SQLiteLedgerStore(tmp_path / "migrated.db").entries() == tracker.history()
    with pytest.raises(ValueError, match="must differ"):
        tracker.migrate(tracker.connection_info)


def test_connection_probe_reports_failures(tmp_path) -> None:
    assert _tracker(tmp_path).connection() == (True, None)

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    config = TrackerConfig(ledger_path=blocker / "ledger.json")
    broken = FxBaht(config=config, aggregator=RateAggregator(config, bank=_Bank(), kiosk=_Kiosk()))

    ok, error = broken.connection()
    assert ok is False
    assert error


def test_lazy_browser_exports() -> None:
    from fx_baht.ingestion.kiosk_page import KioskPageExtractor, SeleniumPageSession

    assert fx_baht.KioskPageExtractor is KioskPageExtractor
    assert fx_baht.SeleniumPageSession is SeleniumPageSession
    with pytest.raises(AttributeError):
        fx_baht.DoesNotExist  # noqa: B018

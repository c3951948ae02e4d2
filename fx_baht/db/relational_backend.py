"""SQLAlchemy ledger backend for SQLite, PostgreSQL and MySQL."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from sqlalchemy import Column, DateTime, Float, String, create_engine, delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from fx_baht.db.base_backend import DEFAULT_WINDOW, LedgerStore
from fx_baht.utils.clock import ensure_utc, parse_timestamp
from fx_baht.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checker helper
    from sqlalchemy.engine import Engine

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _LedgerEntry(Base):
    __tablename__ = "rate_ledger"

    calendar_day = Column(String(10), primary_key=True)
    recorded_at = Column(DateTime, nullable=False)
    bank_sell_usd = Column(Float, nullable=False)
    kiosk_twd_rate = Column(Float, nullable=False)
    kiosk_usd_rate = Column(Float, nullable=False)
    degraded_sources = Column(String(64), nullable=False, default="")


class RelationalLedgerStore(LedgerStore):
    """Persist one row per day; each commit rewrites the table inside one transaction.

    ``recorded_at`` is stored as naive UTC because SQLite drops offsets.
    """

    def __init__(self, url: str, *, window: int = DEFAULT_WINDOW) -> None:
        super().__init__(window=window)
        self.url = url
        self._engine_instance: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def _get_engine(self) -> "Engine":
        if self._engine_instance is None:
            engine = create_engine(self.url, future=True)
            Base.metadata.create_all(engine)
            self._session_factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
            self._engine_instance = engine
        return self._engine_instance

    def _sessions(self) -> sessionmaker[Session]:
        self._get_engine()
        assert self._session_factory is not None
        return self._session_factory

    def ensure_schema(self) -> None:
        try:
            with self._get_engine().begin() as connection:
                LOGGER.info("Ensuring rate_ledger schema exists")
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to ensure rate_ledger schema: {exc}") from exc

    def _load_documents(self) -> list[Mapping[str, Any]]:
        with self._sessions()() as session:
            rows = session.execute(select(_LedgerEntry).order_by(_LedgerEntry.recorded_at))
            return [
                {
                    "calendar_day": row.calendar_day,
                    "recorded_at": ensure_utc(row.recorded_at).isoformat(),
                    "bank_sell_usd": row.bank_sell_usd,
                    "kiosk_twd_rate": row.kiosk_twd_rate,
                    "kiosk_usd_rate": row.kiosk_usd_rate,
                    "degraded_sources": [
                        name for name in (row.degraded_sources or "").split(",") if name
                    ],
                }
                for row in rows.scalars()
            ]

    def _commit_documents(self, documents: Sequence[Mapping[str, Any]]) -> None:
        try:
            with self._sessions()() as session, session.begin():
                session.execute(delete(_LedgerEntry))
                session.add_all(
                    [
                        _LedgerEntry(
                            calendar_day=document["calendar_day"],
                            recorded_at=_to_naive_utc(parse_timestamp(document["recorded_at"])),
                            bank_sell_usd=document["bank_sell_usd"],
                            kiosk_twd_rate=document["kiosk_twd_rate"],
                            kiosk_usd_rate=document["kiosk_usd_rate"],
                            degraded_sources=",".join(document.get("degraded_sources") or ()),
                        )
                        for document in documents
                    ]
                )
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to commit rate_ledger: {exc}") from exc

    def close(self) -> None:  # pragma: no cover - trivial resource cleanup
        if self._engine_instance is not None:
            self._engine_instance.dispose()


def _to_naive_utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


__all__ = ["RelationalLedgerStore"]

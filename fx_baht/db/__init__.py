"""Ledger store implementations for :mod:`fx_baht`."""

from __future__ import annotations

from fx_baht.db.base_backend import DEFAULT_WINDOW, LedgerStore, PersistenceResult, SortOrder

__all__ = ["DEFAULT_WINDOW", "LedgerStore", "PersistenceResult", "SortOrder"]

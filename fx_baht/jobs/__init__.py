"""Command line jobs for :mod:`fx_baht`."""

from __future__ import annotations

from typing import Any

__all__ = ["import_legacy_history", "run_acquisition", "run_comparison"]


def __getattr__(name: str) -> Any:
    """Lazily expose job helpers to avoid import-time side effects."""

    if name == "import_legacy_history":
        from fx_baht.jobs.migrate_history import import_legacy_history as _import

        return _import
    if name == "run_acquisition":
        from fx_baht.jobs.acquire import run_acquisition as _run

        return _run
    if name == "run_comparison":
        from fx_baht.jobs.compare import run_comparison as _run

        return _run
    raise AttributeError(f"module 'fx_baht.jobs' has no attribute {name}")

"""Shared helpers for :mod:`fx_baht`."""

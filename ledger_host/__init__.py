"""Ledger host package: wraps the table ledger with networking."""

from .server import HostServer

__all__ = ["HostServer"]

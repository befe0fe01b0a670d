"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import VBoxSyncModalCLI, main

__all__ = ['VBoxSyncModalCLI', 'main']

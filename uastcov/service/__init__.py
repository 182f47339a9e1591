"""Diagnostics service mode."""

from .app import create_app, start_diagnostics_server

__all__ = ["create_app", "start_diagnostics_server"]

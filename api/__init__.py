"""HTTP API for the tasker backend."""

from .app import create_app

__all__ = ["create_app"]

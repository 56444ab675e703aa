"""HTTP API for document flow sessions."""

from .app import create_app

__all__ = ["create_app"]

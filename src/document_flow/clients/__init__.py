"""Relationship API clients."""

from .base import RelationFetcher
from .relations import RelationClient

__all__ = ["RelationFetcher", "RelationClient"]

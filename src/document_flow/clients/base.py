from __future__ import annotations

from typing import Protocol

from document_flow.models import RelationSet


class RelationFetcher(Protocol):
    """Source of relation sets for one business object.

    Implementations raise FetchError when no relation set can be delivered.
    """

    async def fetch(self, object_id: str, object_type: str) -> RelationSet: ...

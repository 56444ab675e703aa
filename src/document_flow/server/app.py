from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException

from document_flow import __version__
from document_flow.clients.base import RelationFetcher
from document_flow.clients.relations import RelationClient
from document_flow.models import ApiModel
from document_flow.navigation import Navigator, RecordingSink, ViewType
from document_flow.session import FlowSession
from document_flow.settings import settings

logger = logging.getLogger(__name__)


class FlowIn(ApiModel):
    source_id: str | None = None
    source_type: str | None = None


class NavigateIn(ApiModel):
    view_type: ViewType = "quickview"


class FlowStore:
    """In-memory flow sessions, least recently used dropped past `max_flows`."""

    def __init__(self, max_flows: int):
        self.max_flows = max_flows
        self._flows: OrderedDict[str, tuple[FlowSession, RecordingSink]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._flows)

    def add(self, session: FlowSession, sink: RecordingSink) -> str:
        flow_id = uuid.uuid4().hex
        self._flows[flow_id] = (session, sink)
        while len(self._flows) > self.max_flows:
            evicted, _ = self._flows.popitem(last=False)
            logger.info("Dropping flow %s (limit %d)", evicted, self.max_flows)
        return flow_id

    def get(self, flow_id: str) -> tuple[FlowSession, RecordingSink] | None:
        entry = self._flows.get(flow_id)
        if entry is not None:
            self._flows.move_to_end(flow_id)
        return entry

    def remove(self, flow_id: str) -> bool:
        return self._flows.pop(flow_id, None) is not None


def create_app(
    fetcher: RelationFetcher | None = None,
    max_flows: int | None = None,
    settle_timeout: float | None = None,
) -> FastAPI:
    """Build the API. Sessions live in process memory and are never persisted.

    Responses carry the graph as it is right now; leaf probes keep running in the
    background and show up on later reads. `?settle=true` waits for them, bounded
    by `settle_timeout`.
    """

    owned = fetcher is None
    fetcher = fetcher or RelationClient()
    flows = FlowStore(max_flows or settings.max_flows)
    settle_timeout = settings.settle_timeout if settle_timeout is None else settle_timeout

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owned:
            await fetcher.aclose()

    app = FastAPI(title="Document Flow", version=__version__, lifespan=lifespan)

    def _flow(flow_id: str) -> tuple[FlowSession, RecordingSink]:
        entry = flows.get(flow_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="flow not found")
        return entry

    def _require_node(session: FlowSession, node_id: str) -> None:
        if session.engine.graph.get_node(node_id) is None:
            raise HTTPException(status_code=404, detail="node not found")

    async def _graph(session: FlowSession, settle: bool) -> dict[str, Any]:
        if settle:
            try:
                # shield: timing out stops the wait, never the probes
                await asyncio.wait_for(asyncio.shield(session.engine.settle()), settle_timeout)
            except asyncio.TimeoutError:
                logger.info("Probes still running after %.1fs, returning current graph", settle_timeout)
        return session.snapshot().model_dump(by_alias=True)

    @app.get("/health")
    async def health():
        return {"ok": True, "flows": len(flows)}

    @app.post("/v1/flows")
    async def create_flow(payload: FlowIn, settle: bool = False):
        sink = RecordingSink()
        session = FlowSession(fetcher, navigator=Navigator(sink))
        flow_id = flows.add(session, sink)

        await session.load(payload.source_id, payload.source_type)
        return {
            "flowId": flow_id,
            "errorMessage": session.error_message or None,
            "graph": await _graph(session, settle),
        }

    @app.get("/v1/flows/{flow_id}")
    async def get_flow(flow_id: str, settle: bool = False):
        session, _ = _flow(flow_id)
        return {"flowId": flow_id, "graph": await _graph(session, settle)}

    @app.delete("/v1/flows/{flow_id}")
    async def delete_flow(flow_id: str):
        if not flows.remove(flow_id):
            raise HTTPException(status_code=404, detail="flow not found")
        return {"flowId": flow_id, "deleted": True}

    @app.post("/v1/flows/{flow_id}/nodes/{node_id}/toggle")
    async def toggle_node(flow_id: str, node_id: str, settle: bool = False):
        session, _ = _flow(flow_id)
        _require_node(session, node_id)

        changed = session.toggle_expansion(node_id)
        return {"changed": changed, "graph": await _graph(session, settle)}

    @app.post("/v1/flows/{flow_id}/nodes/{node_id}/navigate")
    async def navigate(flow_id: str, node_id: str, payload: NavigateIn):
        session, _ = _flow(flow_id)
        _require_node(session, node_id)

        if payload.view_type == "list":
            command = session.open_list_view(node_id)
        elif payload.view_type == "quickcreate":
            command = session.open_quick_create(node_id)
        else:
            command = session.id_click(node_id)
        return {"command": command.to_message() if command else None}

    @app.get("/v1/flows/{flow_id}/commands")
    async def pending_commands(flow_id: str):
        """Navigation commands sent since the last poll, for the host shell."""
        _, sink = _flow(flow_id)
        return {"commands": [command.to_message() for command in sink.drain()]}

    return app

from __future__ import annotations

import logging

from .clients.base import RelationFetcher
from .engine import ExpansionEngine
from .errors import FetchError
from .models import DocumentNode, GraphData
from .navigation import NavigationCommand, Navigator
from .settings import settings
from .transform import build_demo_graph, transform_relations

logger = logging.getLogger(__name__)


class FlowSession:
    """One document flow view: initial load, gesture routing and menu state.

    Gestures on unknown nodes are ignored (logged); nothing here raises into the view.
    """

    def __init__(
        self,
        fetcher: RelationFetcher,
        navigator: Navigator | None = None,
        engine: ExpansionEngine | None = None,
    ):
        self.fetcher = fetcher
        self.engine = engine or ExpansionEngine(fetcher)
        self.navigator = navigator or Navigator(registry=self.engine.registry)

        self.source_id = ""
        self.source_type = ""
        self.is_loading = False
        self.error_message = ""
        self.open_menu_id: str | None = None

    async def load(self, source_id: str | None = None, source_type: str | None = None) -> GraphData:
        self.source_id = source_id or ""
        self.source_type = source_type or settings.default_source_type
        self.error_message = ""
        self.open_menu_id = None

        if not self.source_id:
            logger.info("No source id provided, showing demo graph")
            self.engine.initialize(build_demo_graph(self.engine.registry))
            return self.engine.snapshot()

        self.is_loading = True
        try:
            relation_set = await self.fetcher.fetch(self.source_id, self.source_type)
        except FetchError as e:
            logger.error("Error loading document flow for %s: %s", self.source_id, e)
            self.error_message = str(e) or "Failed to load document flow"
            self.engine.initialize(build_demo_graph(self.engine.registry))
            return self.engine.snapshot()
        finally:
            self.is_loading = False

        graph = transform_relations(relation_set.value, self.source_id, self.engine.registry)
        self.engine.initialize(graph)
        return self.engine.snapshot()

    def snapshot(self) -> GraphData:
        return self.engine.snapshot()

    def _node(self, node_id: str) -> DocumentNode | None:
        node = self.engine.graph.get_node(node_id)
        if node is None:
            logger.warning("Gesture on unknown node %s ignored", node_id)
        return node

    # --- gestures ---

    def node_click(self, node_id: str) -> NavigationCommand | None:
        return self.id_click(node_id)

    def id_click(self, node_id: str) -> NavigationCommand | None:
        node = self._node(node_id)
        if node is None:
            return None
        return self.navigator.open_quick_view(node)

    def toggle_menu(self, node_id: str) -> None:
        self.open_menu_id = None if self.open_menu_id == node_id else node_id

    def is_menu_open(self, node_id: str) -> bool:
        return self.open_menu_id == node_id

    def open_list_view(self, node_id: str) -> NavigationCommand | None:
        self.open_menu_id = None
        node = self._node(node_id)
        if node is None:
            return None
        return self.navigator.open_list_view(node)

    def open_quick_create(self, node_id: str) -> NavigationCommand | None:
        self.open_menu_id = None
        node = self._node(node_id)
        if node is None:
            return None
        return self.navigator.open_quick_create(node)

    def toggle_expansion(self, node_id: str) -> bool:
        if self._node(node_id) is None:
            return False
        return self.engine.toggle(node_id)

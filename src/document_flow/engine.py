"""
Incremental expand/collapse over a live document graph.

The engine owns three per-session structures:
- a sub-graph cache: what a probed leaf node could reveal (stable, reused)
- applied diffs: what one expand actually inserted (removed again on collapse)
- the current leaf set, used to decide which nodes get probed

Everything runs on one asyncio event loop. Probes are tasks; at most one
is in flight per node, guarded by the node's `is_checking_relations` flag.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .clients.base import RelationFetcher
from .models import AppliedDiff, DocumentLink, DocumentNode, GraphData
from .registry import TypeRegistry, default_registry
from .transform import transform_relations

logger = logging.getLogger(__name__)

GraphListener = Callable[[GraphData], None]


class ExpansionEngine:
    def __init__(self, fetcher: RelationFetcher, registry: TypeRegistry | None = None):
        self.fetcher = fetcher
        self.registry = registry or default_registry
        self.graph = GraphData()

        self._subgraphs: dict[str, GraphData] = {}
        self._applied: dict[str, AppliedDiff] = {}
        self._leaf_ids: set[str] = set()
        self._added_since_refresh: set[str] = set()

        self._probes: set[asyncio.Task] = set()
        self._refresh_handle: asyncio.Handle | None = None
        self._listeners: list[GraphListener] = []
        self._generation = 0

    # ------------------------------------------------------------------
    # View side
    # ------------------------------------------------------------------

    def subscribe(self, listener: GraphListener) -> Callable[[], None]:
        """Register a callback receiving a snapshot after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> GraphData:
        return GraphData(
            nodes=[n.model_copy() for n in self.graph.nodes],
            links=list(self.graph.links),
        )

    def _emit(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    @property
    def leaf_ids(self) -> frozenset[str]:
        return frozenset(self._leaf_ids)

    def cached_subgraph(self, node_id: str) -> GraphData | None:
        return self._subgraphs.get(node_id)

    def applied_diff(self, node_id: str) -> AppliedDiff | None:
        return self._applied.get(node_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, graph: GraphData) -> None:
        """Replace the live graph, drop all per-session state and probe the leaves."""
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

        # Probes still running for the previous graph must not write into the new caches.
        self._generation += 1
        self.graph = graph
        self._subgraphs.clear()
        self._applied.clear()
        self._leaf_ids = set()
        self._added_since_refresh = set()

        logger.info("Graph initialized: %d nodes, %d links", len(graph.nodes), len(graph.links))
        self.refresh_leaf_classification()
        self._emit()

    def refresh_leaf_classification(self) -> None:
        """Recompute the leaf set and probe every leaf that just entered it."""
        previous = self._leaf_ids
        fresh = self._added_since_refresh
        self._leaf_ids = self.graph.leaf_ids()
        self._added_since_refresh = set()

        started = 0
        for node in self.graph.nodes:
            if node.id not in self._leaf_ids:
                continue
            if node.id in previous and node.id not in fresh:
                continue
            if self.probe_node(node) is not None:
                started += 1

        if started:
            logger.debug("Started %d relation probes", started)
            self._emit()

    def _schedule_refresh(self) -> None:
        # Coalesces: several mutations in one batch produce a single pass,
        # run by the loop once the current mutation is complete.
        if self._refresh_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._refresh_handle = loop.call_soon(self._drain_refresh)

    def _drain_refresh(self) -> None:
        self._refresh_handle = None
        self.refresh_leaf_classification()

    async def settle(self) -> None:
        """Wait until no probe is running and no reclassification is queued."""
        while self._refresh_handle is not None or self._probes:
            if self._probes:
                await asyncio.gather(*self._probes, return_exceptions=True)
            else:
                await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def probe_node(self, node: DocumentNode) -> asyncio.Task | None:
        """Start a relation check for `node` unless it is running or already answered."""
        if node.is_checking_relations or node.has_more_relations is not None:
            return None

        loop = asyncio.get_running_loop()
        node.is_checking_relations = True
        task = loop.create_task(self._probe(node, self._generation))
        self._probes.add(task)
        task.add_done_callback(self._probes.discard)
        return task

    async def _probe(self, node: DocumentNode, generation: int) -> None:
        try:
            relation_set = await self.fetcher.fetch(node.object_id, node.object_type)
        except Exception as e:
            # Best effort: an unreachable node is treated as having nothing more to show.
            logger.warning("Error checking relations for node %s: %s", node.label, e)
            node.is_checking_relations = False
            node.has_more_relations = False
            self._emit()
            return

        node.is_checking_relations = False
        present = {n.object_id for n in self.graph.nodes}
        new_successors = [
            rel
            for rel in relation_set.value
            if rel.role == "SUCCESSOR" and rel.related_object_id not in present
        ]
        node.has_more_relations = len(new_successors) > 0

        if new_successors:
            if generation == self._generation:
                self._subgraphs[node.id] = transform_relations(
                    relation_set.value, node.object_id, self.registry
                )
            logger.info("Node %s has %d new successor relations", node.label, len(new_successors))
        else:
            logger.debug("Node %s has no new successor relations", node.label)
        self._emit()

    # ------------------------------------------------------------------
    # Expand / collapse
    # ------------------------------------------------------------------

    def toggle(self, node_id: str) -> bool:
        node = self.graph.get_node(node_id)
        if node is None or not node.has_more_relations:
            return False
        if node.is_expanded:
            return self.collapse(node_id)
        return self.expand(node_id)

    def expand(self, node_id: str) -> bool:
        """Merge the node's cached sub-graph into the live graph. Returns False when nothing happened."""
        node = self.graph.get_node(node_id)
        if node is None:
            logger.warning("Cannot expand unknown node %s", node_id)
            return False
        if not node.has_more_relations or node.is_expanded:
            return False

        cached = self._subgraphs.get(node.id)
        if cached is None:
            logger.error("No cached sub-graph for node %s; expansion aborted", node.id)
            return False

        existing_ids = self.graph.node_ids()
        existing_keys = self.graph.link_keys()

        # Cached node objects are inserted as-is so their probe results survive
        # a collapse and re-expand; the cache itself is never restructured.
        new_nodes = [n for n in cached.nodes if n.id != node.id and n.id not in existing_ids]
        new_links: list[DocumentLink] = []
        for link in cached.links:
            if link.key in existing_keys:
                continue
            existing_keys.add(link.key)
            new_links.append(link)

        self._applied[node.id] = AppliedDiff(
            added_node_ids={n.id for n in new_nodes},
            added_links=list(new_links),
        )
        self.graph.nodes.extend(new_nodes)
        self.graph.links.extend(new_links)
        node.is_expanded = True
        self._added_since_refresh.update(n.id for n in new_nodes)

        logger.info(
            "Expanded node %s, added %d nodes and %d links", node.label, len(new_nodes), len(new_links)
        )
        self._schedule_refresh()
        self._emit()
        return True

    def collapse(self, node_id: str) -> bool:
        """Remove exactly what the node's last expand inserted."""
        node = self.graph.get_node(node_id)
        if node is None:
            logger.warning("Cannot collapse unknown node %s", node_id)
            return False

        self._collapse(node)
        self._schedule_refresh()
        self._emit()
        return True

    def _collapse(self, node: DocumentNode) -> None:
        diff = self._applied.pop(node.id, None)
        if diff is None:
            logger.info("No tracked expansion data for node %s, marking collapsed", node.label)
            node.is_expanded = False
            return

        # Nodes about to disappear may carry expansions of their own; unwind those first.
        for child in list(self.graph.nodes):
            if child.id in diff.added_node_ids and child.id in self._applied:
                self._collapse(child)

        removed_keys = diff.link_keys()
        self.graph.nodes = [n for n in self.graph.nodes if n.id not in diff.added_node_ids]
        remaining = self.graph.node_ids()
        kept: list[DocumentLink] = []
        dangling = 0
        for link in self.graph.links:
            if link.key in removed_keys:
                continue
            if link.source not in remaining or link.target not in remaining:
                dangling += 1
                continue
            kept.append(link)
        self.graph.links = kept
        node.is_expanded = False

        if dangling:
            logger.debug("Pruned %d links left without an endpoint", dangling)
        logger.info(
            "Collapsed node %s, removed %d nodes and %d links",
            node.label,
            len(diff.added_node_ids),
            len(diff.added_links),
        )

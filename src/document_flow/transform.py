from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import DocumentLink, DocumentNode, GraphData, Relation
from .registry import TypeRegistry, default_registry

logger = logging.getLogger(__name__)


def _make_node(
    object_id: str,
    object_type: str,
    display_id: str,
    current_object_id: str,
    registry: TypeRegistry,
) -> DocumentNode:
    if not registry.is_known(object_type):
        logger.debug("Unknown object type %s for %s, using fallback label", object_type, object_id)
    info = registry.lookup(object_type)
    return DocumentNode(
        id=object_id,
        object_id=object_id,
        object_type=object_type,
        object_display_id=display_id,
        label=f"{info.name} {display_id}",
        icon=info.icon,
        status=info.status,
        is_current=object_id == current_object_id,
    )


def transform_relations(
    relations: Iterable[Relation],
    current_object_id: str,
    registry: TypeRegistry | None = None,
) -> GraphData:
    """Turn a flat relation set into a node/link graph.

    Nodes are unique per object id and appear in first-discovery order.
    Every relation yields exactly one link; links are not deduplicated here,
    merging against a live graph is the expansion engine's job.
    """

    registry = registry or default_registry
    nodes: dict[str, DocumentNode] = {}
    links: list[DocumentLink] = []

    for rel in relations:
        if rel.object_id not in nodes:
            nodes[rel.object_id] = _make_node(
                rel.object_id, rel.object_type, rel.object_display_id, current_object_id, registry
            )
        if rel.related_object_id not in nodes:
            nodes[rel.related_object_id] = _make_node(
                rel.related_object_id,
                rel.related_object_type,
                rel.related_object_display_id,
                current_object_id,
                registry,
            )

        if rel.role == "SUCCESSOR":
            links.append(DocumentLink(source=rel.object_id, target=rel.related_object_id))
        else:
            links.append(DocumentLink(source=rel.related_object_id, target=rel.object_id))

    return GraphData(nodes=list(nodes.values()), links=links)


# Illustrative flow shown when no source object is given or the live fetch fails.
_DEMO_OBJECTS = (
    ("00000000-0000-0000-0000-000000000001", "64", "878"),
    ("00000000-0000-0000-0000-000000000002", "72", "527"),
    ("00000000-0000-0000-0000-000000000003", "30", "261"),
    ("00000000-0000-0000-0000-000000000004", "12", "296"),
)
_DEMO_LINKS = ((0, 1), (1, 2), (1, 3))


def build_demo_graph(registry: TypeRegistry | None = None) -> GraphData:
    """Lead 878 -> Opportunity 527 -> {Quote 261, Appointment 296}.

    Demo objects do not exist in the relationship API, so every node is
    marked as having no further relations and is never probed.
    """

    registry = registry or default_registry
    nodes = []
    for object_id, object_type, display_id in _DEMO_OBJECTS:
        node = _make_node(object_id, object_type, display_id, "", registry)
        node.has_more_relations = False
        nodes.append(node)
    links = [DocumentLink(source=nodes[s].id, target=nodes[t].id) for s, t in _DEMO_LINKS]
    return GraphData(nodes=nodes, links=links)

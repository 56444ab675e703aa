"""Document flow graph.

This package provides:
- Relation models and a type registry for business document types
- A transformer from flat relation sets into node/link graphs
- An expansion engine that probes leaf nodes and expands/collapses them
- A session controller, an HTTP API and a CLI on top of the engine
"""

from .engine import ExpansionEngine
from .models import DocumentLink, DocumentNode, GraphData, Relation, RelationSet
from .transform import build_demo_graph, transform_relations

__version__ = "0.1.0"

__all__ = [
    "DocumentLink",
    "DocumentNode",
    "ExpansionEngine",
    "GraphData",
    "Relation",
    "RelationSet",
    "build_demo_graph",
    "transform_relations",
]

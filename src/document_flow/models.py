from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["SUCCESSOR", "PREDECESSOR"]
Status = Literal["success", "warning", "error", "neutral"]


class ApiModel(BaseModel):
    """Base for models exchanged with the relationship API and the view (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdminData(ApiModel):
    created_by: str | None = None
    created_on: str | None = None
    updated_by: str | None = None
    updated_on: str | None = None


class Relation(ApiModel):
    """A directed association between two business objects.

    SUCCESSOR means object -> related object, PREDECESSOR means related object -> object.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str | None = None
    object_id: str
    object_type: str
    object_display_id: str = ""
    related_object_id: str
    related_object_type: str
    related_object_display_id: str = ""
    role: Role
    admin_data: AdminData | None = None


class RelationSet(ApiModel):
    value: list[Relation] = Field(default_factory=list)


class ExpansionState(str, Enum):
    UNPROBED = "unprobed"
    CHECKING = "checking"
    EXPANDABLE = "expandable"
    NOT_EXPANDABLE = "not_expandable"
    EXPANDED = "expanded"


class DocumentNode(ApiModel):
    """One business object in the graph.

    `id` equals `object_id`. The flags `is_expanded`, `has_more_relations` and
    `is_checking_relations` are owned by the expansion engine; everything else
    is fixed when the transformer creates the node.
    """

    id: str
    object_id: str
    object_type: str
    object_display_id: str
    label: str
    icon: str
    status: Status = "neutral"
    is_current: bool = False
    is_expanded: bool = False
    has_more_relations: bool | None = None
    is_checking_relations: bool = False

    @property
    def expansion_state(self) -> ExpansionState:
        if self.is_checking_relations:
            return ExpansionState.CHECKING
        if self.has_more_relations is None:
            return ExpansionState.UNPROBED
        if not self.has_more_relations:
            return ExpansionState.NOT_EXPANDABLE
        if self.is_expanded:
            return ExpansionState.EXPANDED
        return ExpansionState.EXPANDABLE


class DocumentLink(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    source: str
    target: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)


class GraphData(ApiModel):
    nodes: list[DocumentNode] = Field(default_factory=list)
    links: list[DocumentLink] = Field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def link_keys(self) -> set[tuple[str, str]]:
        return {link.key for link in self.links}

    def get_node(self, node_id: str) -> DocumentNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def leaf_ids(self) -> set[str]:
        """Ids of nodes without an outgoing link."""
        sources = {link.source for link in self.links}
        return {n.id for n in self.nodes if n.id not in sources}


@dataclass(slots=True)
class AppliedDiff:
    """What one expand actually inserted into the live graph."""

    added_node_ids: set[str] = field(default_factory=set)
    added_links: list[DocumentLink] = field(default_factory=list)

    def link_keys(self) -> set[tuple[str, str]]:
        return {link.key for link in self.added_links}

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import Literal

from .errors import UnmappedTypeError
from .models import ApiModel, DocumentNode
from .registry import TypeRegistry, default_registry

logger = logging.getLogger(__name__)

ViewType = Literal["quickview", "list", "quickcreate"]


class NavigationParams(ApiModel):
    object_key: str | None = None
    routing_key: str
    view_type: ViewType


class NavigationCommand(ApiModel):
    operation: Literal["navigation"] = "navigation"
    params: NavigationParams

    def to_message(self) -> dict:
        """Wire form posted to the host shell."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Fire-and-forget delivery to the host application shell.
HostSink = Callable[[NavigationCommand], None]


class RecordingSink:
    """Keeps the most recent commands so a polling view can forward them to the host."""

    def __init__(self, maxlen: int = 100):
        self.commands: deque[NavigationCommand] = deque(maxlen=maxlen)

    def __call__(self, command: NavigationCommand) -> None:
        self.commands.append(command)

    def drain(self) -> list[NavigationCommand]:
        """Return and forget everything recorded so far, oldest first."""
        drained = list(self.commands)
        self.commands.clear()
        return drained


def logging_sink(command: NavigationCommand) -> None:
    logger.info("Navigation: %s", command.to_message())


class Navigator:
    def __init__(self, sink: HostSink | None = None, registry: TypeRegistry | None = None):
        self.sink = sink or logging_sink
        self.registry = registry or default_registry

    def _send(
        self, node: DocumentNode, view_type: ViewType, object_key: str | None = None
    ) -> NavigationCommand | None:
        try:
            routing_key = self.registry.routing_key(node.object_type)
        except UnmappedTypeError as e:
            logger.error("%s (node %s, %s dropped)", e, node.id, view_type)
            return None

        command = NavigationCommand(
            params=NavigationParams(object_key=object_key, routing_key=routing_key, view_type=view_type)
        )
        logger.debug("Opening %s: %s", view_type, command.to_message())
        self.sink(command)
        return command

    def open_quick_view(self, node: DocumentNode) -> NavigationCommand | None:
        return self._send(node, "quickview", object_key=node.object_id)

    def open_list_view(self, node: DocumentNode) -> NavigationCommand | None:
        return self._send(node, "list")

    def open_quick_create(self, node: DocumentNode) -> NavigationCommand | None:
        return self._send(node, "quickcreate")

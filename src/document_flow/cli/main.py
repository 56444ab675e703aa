"""
Document flow CLI - load, expand and inspect a document flow graph
"""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table

from document_flow.clients.relations import RelationClient
from document_flow.models import GraphData
from document_flow.session import FlowSession
from document_flow.settings import configure_logging

console = Console()

STATE_STYLES = {
    "unprobed": "dim",
    "checking": "yellow",
    "expandable": "cyan",
    "not_expandable": "white",
    "expanded": "green",
}


def get_fetcher():
    """Relation fetcher configured from DOCUMENT_FLOW_* environment variables"""
    return RelationClient()


async def _load_flow(source_id: str | None, source_type: str | None, expand: tuple[str, ...]):
    fetcher = get_fetcher()
    try:
        session = FlowSession(fetcher)
        await session.load(source_id, source_type)
        await session.engine.settle()

        for node_id in expand:
            if not session.engine.expand(node_id):
                console.print(f"[yellow]Node {node_id} could not be expanded[/yellow]")
            await session.engine.settle()
        return session
    finally:
        aclose = getattr(fetcher, "aclose", None)
        if aclose is not None:
            await aclose()


def _render(graph: GraphData) -> None:
    nodes = Table(title="Documents")
    nodes.add_column("Id", style="cyan", overflow="fold")
    nodes.add_column("Label", style="white")
    nodes.add_column("Status", style="magenta", width=8)
    nodes.add_column("State", width=15)
    nodes.add_column("Current", width=7)

    for node in graph.nodes:
        state = node.expansion_state.value
        nodes.add_row(
            node.id,
            node.label,
            node.status,
            f"[{STATE_STYLES.get(state, 'white')}]{state}[/]",
            "*" if node.is_current else "",
        )
    console.print(nodes)

    labels = {n.id: n.label for n in graph.nodes}
    links = Table(title="Links")
    links.add_column("Source", style="blue")
    links.add_column("Target", style="green")
    for link in graph.links:
        links.add_row(labels.get(link.source, link.source), labels.get(link.target, link.target))
    console.print(links)


@click.group()
@click.option("--log-level", default=None, help="Override DOCUMENT_FLOW_LOG_LEVEL")
def cli(log_level):
    """Document flow - explore related business documents"""
    configure_logging(log_level)


@cli.command()
def version():
    """Print the package version"""
    from document_flow import __version__

    click.echo(__version__)


@cli.command()
@click.option("--source-id", default=None, help="Object id to pivot on (demo graph if omitted)")
@click.option("--source-type", default=None, help="Type code of the source object")
@click.option("--expand", "expand", multiple=True, help="Node id to expand, in order")
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON")
def show(source_id, source_type, expand, as_json):
    """Load a document flow and print its nodes and links"""
    session = asyncio.run(_load_flow(source_id, source_type, expand))

    if session.error_message:
        console.print(f"[red]{session.error_message}[/red] Showing demo graph.")

    graph = session.snapshot()
    if as_json:
        click.echo(json.dumps(graph.model_dump(by_alias=True), indent=2))
        return
    _render(graph)


@cli.command()
def serve():
    """Run the HTTP API"""
    from document_flow.server.main import main

    main()


def app() -> None:
    cli()


if __name__ == "__main__":
    app()

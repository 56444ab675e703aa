from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from document_flow import __version__
from document_flow.cli import main as cli_main

from .fakes import A, B, FakeFetcher, rel


@pytest.fixture
def fetcher(monkeypatch):
    fake = FakeFetcher(
        {
            A: [rel(A, "64", B, "72")],
            B: [rel(B, "72", "obj-c", "30"), rel(B, "72", "obj-d", "12")],
        }
    )
    monkeypatch.setattr(cli_main, "get_fetcher", lambda: fake)
    return fake


def test_version():
    result = CliRunner().invoke(cli_main.cli, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_show_demo_graph_as_json(fetcher):
    result = CliRunner().invoke(cli_main.cli, ["--log-level", "ERROR", "show", "--json"])
    assert result.exit_code == 0, result.output

    graph = json.loads(result.output)
    assert len(graph["nodes"]) == 4
    assert len(graph["links"]) == 3
    assert fetcher.calls == []


def test_show_expands_requested_nodes(fetcher):
    result = CliRunner().invoke(
        cli_main.cli,
        ["--log-level", "ERROR", "show", "--source-id", A, "--source-type", "64", "--expand", B, "--json"],
    )
    assert result.exit_code == 0, result.output

    graph = json.loads(result.output)
    assert [n["id"] for n in graph["nodes"]] == [A, B, "obj-c", "obj-d"]
    opp = graph["nodes"][1]
    assert opp["isExpanded"] is True


def test_show_renders_tables(fetcher):
    result = CliRunner().invoke(
        cli_main.cli, ["--log-level", "ERROR", "show", "--source-id", A, "--source-type", "64"]
    )
    assert result.exit_code == 0, result.output
    assert "Documents" in result.output
    assert "Opportunity B" in result.output
    assert "expandable" in result.output

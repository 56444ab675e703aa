from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from document_flow.server import create_app

from .fakes import A, B, FakeFetcher, rel

RELATIONS = {
    A: [rel(A, "64", B, "72")],
    B: [rel(B, "72", A, "64", role="PREDECESSOR"), rel(B, "72", "obj-c", "30")],
}


@pytest.fixture
def client():
    with TestClient(create_app(FakeFetcher(RELATIONS))) as c:
        yield c


def _labels(graph):
    return [n["label"] for n in graph["nodes"]]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_flow_round_trip(client):
    r = client.post("/v1/flows?settle=true", json={"sourceId": A, "sourceType": "64"})
    assert r.status_code == 200
    body = r.json()
    flow_id = body["flowId"]
    assert body["errorMessage"] is None
    assert _labels(body["graph"]) == ["Lead A", "Opportunity B"]
    opp = body["graph"]["nodes"][1]
    assert opp["hasMoreRelations"] is True
    assert opp["isCheckingRelations"] is False

    r = client.post(f"/v1/flows/{flow_id}/nodes/{B}/toggle?settle=true")
    body = r.json()
    assert body["changed"] is True
    assert _labels(body["graph"]) == ["Lead A", "Opportunity B", "Quote C"]
    assert {"source": B, "target": "obj-c"} in body["graph"]["links"]

    r = client.post(f"/v1/flows/{flow_id}/nodes/{B}/toggle")
    assert _labels(r.json()["graph"]) == ["Lead A", "Opportunity B"]

    r = client.get(f"/v1/flows/{flow_id}")
    assert len(r.json()["graph"]["links"]) == 1


def test_create_flow_returns_while_relation_check_is_pending():
    gate = asyncio.Event()
    fetcher = FakeFetcher(RELATIONS, gates={B: gate})
    with TestClient(create_app(fetcher, settle_timeout=0.05)) as c:
        body = c.post("/v1/flows", json={"sourceId": A, "sourceType": "64"}).json()
        flow_id = body["flowId"]
        opp = body["graph"]["nodes"][1]
        assert opp["isCheckingRelations"] is True
        assert opp["hasMoreRelations"] is None

        # a bounded wait gives up and still answers
        graph = c.get(f"/v1/flows/{flow_id}?settle=true").json()["graph"]
        assert graph["nodes"][1]["isCheckingRelations"] is True

        c.portal.call(gate.set)
        graph = c.get(f"/v1/flows/{flow_id}?settle=true").json()["graph"]
        assert graph["nodes"][1]["hasMoreRelations"] is True
        assert graph["nodes"][1]["isCheckingRelations"] is False


def test_navigate(client):
    flow_id = client.post("/v1/flows", json={"sourceId": A, "sourceType": "64"}).json()["flowId"]

    r = client.post(f"/v1/flows/{flow_id}/nodes/{B}/navigate", json={"viewType": "list"})
    assert r.json()["command"] == {
        "operation": "navigation",
        "params": {"routingKey": "guidedselling", "viewType": "list"},
    }

    r = client.post(f"/v1/flows/{flow_id}/nodes/{A}/navigate", json={})
    assert r.json()["command"]["params"]["objectKey"] == A


def test_commands_are_drained_by_polling(client):
    flow_id = client.post("/v1/flows", json={"sourceId": A, "sourceType": "64"}).json()["flowId"]
    client.post(f"/v1/flows/{flow_id}/nodes/{A}/navigate", json={})
    client.post(f"/v1/flows/{flow_id}/nodes/{B}/navigate", json={"viewType": "quickcreate"})

    commands = client.get(f"/v1/flows/{flow_id}/commands").json()["commands"]
    assert [c["params"]["viewType"] for c in commands] == ["quickview", "quickcreate"]
    assert commands[0]["params"]["routingKey"] == "lead"

    assert client.get(f"/v1/flows/{flow_id}/commands").json()["commands"] == []


def test_demo_flow_without_source(client):
    body = client.post("/v1/flows", json={}).json()
    assert len(body["graph"]["nodes"]) == 4
    assert all(n["hasMoreRelations"] is False for n in body["graph"]["nodes"])


def test_delete_flow(client):
    flow_id = client.post("/v1/flows", json={}).json()["flowId"]
    assert client.get("/health").json()["flows"] == 1

    r = client.delete(f"/v1/flows/{flow_id}")
    assert r.json() == {"flowId": flow_id, "deleted": True}
    assert client.get("/health").json()["flows"] == 0
    assert client.get(f"/v1/flows/{flow_id}").status_code == 404
    assert client.delete(f"/v1/flows/{flow_id}").status_code == 404


def test_least_recently_used_flows_are_dropped():
    with TestClient(create_app(FakeFetcher(RELATIONS), max_flows=2)) as c:
        first, second = (c.post("/v1/flows", json={}).json()["flowId"] for _ in range(2))
        assert c.get(f"/v1/flows/{first}").status_code == 200

        third = c.post("/v1/flows", json={}).json()["flowId"]
        assert c.get("/health").json()["flows"] == 2
        assert c.get(f"/v1/flows/{second}").status_code == 404
        assert c.get(f"/v1/flows/{first}").status_code == 200
        assert c.get(f"/v1/flows/{third}").status_code == 200


def test_unknown_flow_and_node(client):
    assert client.get("/v1/flows/missing").status_code == 404
    assert client.get("/v1/flows/missing/commands").status_code == 404
    flow_id = client.post("/v1/flows", json={}).json()["flowId"]
    assert client.post(f"/v1/flows/{flow_id}/nodes/missing/toggle").status_code == 404

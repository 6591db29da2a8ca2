from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from buildforge.builder.overlay import ConfidenceOverlay
from buildforge.catalog import JsonCatalog
from buildforge.config import EngineSettings
from buildforge.graph import BuildSelector
from buildforge.main import create_app
from buildforge.service import BuildService

ROOT = Path(__file__).resolve().parents[1]
CATALOG_PATH = ROOT / "data" / "catalog.json"


@pytest.fixture
def client():
    repo = JsonCatalog(CATALOG_PATH)
    overlay = ConfidenceOverlay()
    settings = EngineSettings()
    selector = BuildSelector(repo, overlay, settings, jitter=False)
    return TestClient(create_app(BuildService(repo, overlay, settings, selector)))


def test_generate_build(client):
    resp = client.post("/api/builds", json={"budget": 1200, "region": "US"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["allocation"]["cpu"] == 240
    assert body["compatibility"]["compatible"] is True
    assert body["build"]["cpu"]["specs"]["socket"] == body["build"]["motherboard"]["specs"]["socket"]


def test_tiny_budget_is_422_with_context(client):
    resp = client.post("/api/builds", json={"budget": 50, "region": "US"})

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["category"] == "cpu"
    assert detail["reason"] == "unaffordable"
    assert detail["budget_envelope"] == 10


def test_invalid_region_is_rejected(client):
    resp = client.post("/api/builds", json={"budget": 1200, "region": "FR"})

    assert resp.status_code == 422


def test_compatibility_by_ids(client):
    resp = client.post(
        "/api/compatibility",
        json={"component_ids": ["mb-msi-b650m", "mem-kingston-ddr4-3200"], "region": "US"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["compatibility"]["compatible"] is False
    assert [i["type"] for i in body["compatibility"]["issues"]] == ["memory"]
    assert body["total_price"] == 139 + 64


def test_compatibility_unknown_id_is_404(client):
    resp = client.post("/api/compatibility", json={"component_ids": ["nope"]})

    assert resp.status_code == 404
    assert resp.json()["unknown_ids"] == ["nope"]


def test_compatibility_for_edited_build(client):
    build = client.post("/api/builds", json={"budget": 1200}).json()["build"]
    build["psu"] = client.get("/api/components", params={"category": "psu"}).json()[0]
    build["psu"]["specs"]["wattage"] = 300

    resp = client.post("/api/compatibility", json={"build": build})

    assert resp.status_code == 200
    assert any(i["type"] == "power" for i in resp.json()["compatibility"]["issues"])


def test_compatibility_rejects_part_in_wrong_slot(client):
    gpu = client.get("/api/components", params={"category": "gpu"}).json()[0]
    storage = client.get("/api/components", params={"category": "storage"}).json()[0]

    resp = client.post("/api/compatibility", json={"build": {"gpu": gpu, "case": storage}})

    assert resp.status_code == 422


def test_observations_feed_learned_lookups(client):
    pair = {"component_a": "Budget Tower 90", "component_b": "AMD Ryzen 5 7600"}

    before = client.post("/api/learned", json=pair).json()
    recorded = client.post("/api/observations", json={**pair, "verified": True, "build_id": "r-1"})
    after = client.post("/api/learned", json=pair).json()

    assert before["confidence"] == pytest.approx(0.1)
    assert recorded.status_code == 200
    assert recorded.json()["examples"] == ["r-1"]
    assert after["confidence"] == pytest.approx(0.8)


def test_list_components(client):
    resp = client.get("/api/components", params={"category": "cpu", "region": "UK"})

    assert resp.status_code == 200
    assert resp.json()
    assert all(c["category"] == "cpu" for c in resp.json())

    assert client.get("/api/components", params={"category": "monitor"}).status_code == 400


def test_budget_endpoint(client):
    resp = client.get("/api/budget/1200")

    assert resp.status_code == 200
    assert resp.json()["envelopes"]["gpu"] == 420
    assert client.get("/api/budget/0").status_code == 400

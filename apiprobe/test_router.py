import pytest
from fastapi.testclient import TestClient

from apiprobe import router as router_module
from apiprobe.main import app, cors_origins, create_app
from apiprobe.models import EndpointResult

BODY = {
    "endpoints": [{"url": "http://api.test/a", "method": "GET"}],
    "payloads": {"sql": ["' OR '1'='1"]},
}


@pytest.fixture
def client(monkeypatch):
    async def fake_scan(scan_id, config, store):
        store[scan_id]["status"] = "done"
        store[scan_id]["results"] = [
            EndpointResult(url=e.url, method=e.method).model_dump(mode="json") for e in config.endpoints
        ]

    monkeypatch.setattr(router_module, "run_background_scan", fake_scan)
    return TestClient(app)


def test_scan_lifecycle(client):
    resp = client.post("/scan", json=BODY)
    assert resp.status_code == 200
    started = resp.json()
    assert started["status"] == "in_progress"

    scan_id = started["scan_id"]
    assert started["endpoints"] == 1
    assert client.get(f"/scan/{scan_id}/status").json() == {"scan_id": scan_id, "status": "done", "endpoints": 1}

    results = client.get(f"/scan/{scan_id}/results").json()
    assert results["status"] == "done"
    assert results["error"] is None
    assert [r["url"] for r in results["results"]] == ["http://api.test/a"]


def test_unknown_scan(client):
    assert client.get("/scan/missing/status").json()["status"] == "not_found"
    results = client.get("/scan/missing/results").json()
    assert results["status"] == "not_found"
    assert results["results"] == []


def test_scan_without_endpoints_rejected(client):
    resp = client.post("/scan", json={"endpoints": [], "payloads": {"sql": ["x"]}})
    assert resp.status_code == 422
    assert "endpoint" in resp.json()["detail"]


def test_scan_with_bad_method_rejected(client):
    body = dict(BODY, endpoints=[{"url": "http://api.test/a", "method": "FETCH"}])
    assert client.post("/scan", json=body).status_code == 422


def test_probe_catalogue(client):
    probes = client.get("/scan/probes").json()
    assert len(probes) == 8
    assert sum(p["default"] for p in probes) == 7
    assert {"name": "NoSQL Injection Test", "weight": 50, "default": False} in probes


def test_cors_origins_parsing():
    assert cors_origins("") == []
    assert cors_origins(" https://a.test , ,https://b.test") == ["https://a.test", "https://b.test"]


def test_cross_origin_access_is_opt_in(monkeypatch):
    preflight = {"Origin": "https://dash.test", "Access-Control-Request-Method": "POST"}

    monkeypatch.delenv("APIPROBE_CORS_ORIGINS", raising=False)
    closed = TestClient(create_app()).options("/scan", headers=preflight)
    assert "access-control-allow-origin" not in closed.headers

    monkeypatch.setenv("APIPROBE_CORS_ORIGINS", "https://dash.test")
    opened = TestClient(create_app()).options("/scan", headers=preflight)
    assert opened.headers["access-control-allow-origin"] == "https://dash.test"

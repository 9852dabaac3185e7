from fastapi.testclient import TestClient

from vanet.main import app
from vanet.services.simulation_service import SimulationService

client = TestClient(app)


def _reset(vehicles=10):
    resp = client.post("/simulation", json={"policy": "learned", "vehicle_count": vehicles, "seed": 1})
    assert resp.status_code == 201
    return resp.json()


def test_health():
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_create_and_tick():
    data = _reset()
    assert data["vehicle_count"] == 10
    assert data["infrastructure_count"] == 4
    assert data["sim_time"] == 0

    data = client.post("/simulation/tick", json={"ticks": 20}).json()
    assert data["sim_time"] == 2000
    assert data["ticks"] == 20
    assert client.get("/simulation/stats").json()["sim_time"] == 2000


def test_tick_validation():
    assert client.post("/simulation/tick", json={"ticks": 0}).status_code == 422


def test_network_snapshot():
    _reset()
    client.post("/simulation/tick", json={"ticks": 1})
    data = client.get("/network").json()
    assert data["metadata"]["node_count"] == 14
    assert len(data["links"]) == data["metadata"]["link_count"]
    for link in data["links"]:
        if link["source"].startswith("RSU") or link["target"].startswith("RSU"):
            assert link["duration"] is None


def test_route():
    _reset()
    client.post("/simulation/tick", json={"ticks": 1})
    resp = client.get("/route", params={"source": "V0", "dest": "RSU1",
                                        "message_type": "telemetry", "policy": "baseline"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["policy"] == "baseline"
    if data["found"]:
        assert data["path"][0] == "V0" and data["path"][-1] == "RSU1"
        assert data["hop_count"] == len(data["path"]) - 1
    else:
        assert data["path"] == []


def test_route_unknown_node():
    _reset()
    resp = client.get("/route", params={"source": "V0", "dest": "nope"})
    assert resp.status_code == 404


def test_metrics():
    _reset()
    client.post("/simulation/tick", json={"ticks": 10})
    data = client.get("/metrics").json()
    assert data["policy"] == "learned"
    assert data["time_ms"] == 1000
    assert data["messages_delivered"] <= data["messages_sent"]
    assert data["messages_sent"] >= data["messages_delivered"] + data["messages_dropped"]


def test_compare():
    resp = client.post("/compare", json={"vehicle_count": 5, "ticks": 10, "seed": 3})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["rows"]) == 13
    assert data["learned"]["time_ms"] == 1000


def test_value_error_maps_to_400(monkeypatch):
    def reject(self, ticks):
        raise ValueError("ticks must be positive")

    monkeypatch.setattr(SimulationService, "advance", reject)
    resp = client.post("/simulation/tick", json={"ticks": 1})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "ticks must be positive"


def test_unexpected_error_maps_to_500(monkeypatch):
    def fail(self, ticks):
        raise RuntimeError("boom")

    monkeypatch.setattr(SimulationService, "advance", fail)
    resp = TestClient(app, raise_server_exceptions=False).post("/simulation/tick", json={"ticks": 1})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Internal Server Error"

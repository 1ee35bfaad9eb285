import pytest
from fastapi.testclient import TestClient

from k3sgate import registry
from k3sgate.api.main import app
from k3sgate.config import Config

from .helpers import ScheduledProbe

client = TestClient(app)


@pytest.fixture
def headers():
    return {"X-API-Key": Config.GATE_API_KEY}


@pytest.fixture(autouse=True)
def stub_probe():
    registry.register_probe("stub", lambda **kw: ScheduledProbe({"m1": 1, "m2": None}, name="stub"))
    yield
    registry.unregister_probe("stub")


def test_requires_api_key():
    response = client.get("/probes")
    assert response.status_code == 403
    assert response.json() == {"detail": "Unauthorized"}


def test_wrong_api_key():
    assert client.get("/probes", headers={"X-API-Key": "nope"}).status_code == 403


def test_list_probes(headers):
    response = client.get("/probes", headers=headers)
    assert response.status_code == 200
    assert response.json()["probes"] == ["cloud-init", "k3s-api", "ssh", "stub"]


def test_gate_success(headers):
    response = client.post("/gates/stub", headers=headers, json={"targets": ["10.0.0.1|m1"]})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "done_success"
    assert body["rounds"] == 1
    assert body["ready"][0]["status"] == "READY"


def test_gate_partial(headers):
    response = client.post("/gates/stub", headers=headers, json={
        "targets": ["10.0.0.1|m1", "10.0.0.2|m2"],
        "settings": {"max_attempts": 2, "base_delay": 0, "max_delay": 0},
    })

    body = response.json()
    assert body["success"] is False
    assert body["reason"] == "attempts_exhausted"
    assert [t["label"] for t in body["not_ready"]] == ["m2"]
    assert body["not_ready"][0]["attempt"] == 2


def test_gate_no_targets(headers):
    body = client.post("/gates/stub", headers=headers, json={"targets": []}).json()
    assert body["status"] == "done_success_immediate"
    assert body["success"] is True


def test_gate_bad_target(headers):
    response = client.post("/gates/stub", headers=headers, json={"targets": ["10.0.0.1"]})
    assert response.status_code == 400
    assert "expected: address|label" in response.json()["detail"]


def test_gate_bad_settings(headers):
    response = client.post("/gates/stub", headers=headers,
                           json={"targets": ["10.0.0.1|m1"], "settings": {"max_attempts": 0}})
    assert response.status_code == 400


def test_gate_unknown_probe(headers):
    response = client.post("/gates/telnet", headers=headers, json={"targets": ["10.0.0.1|m1"]})
    assert response.status_code == 404


def test_check_once(headers):
    response = client.post("/checks/stub", headers=headers, json={"targets": ["10.0.0.1|m1", "10.0.0.2|m2"]})

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert [o["succeeded"] for o in body["outcomes"]] == [True, False]

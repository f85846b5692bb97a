import pytest
from fastapi.testclient import TestClient

from offline_llm.app import LocalLLMServer
from tests.helpers import NextIdLM, save_model


@pytest.fixture
def server(tmp_path):
    return LocalLLMServer(base_dir_provider=lambda: tmp_path)


@pytest.fixture
def client(server):
    with TestClient(server.get_app()) as c:
        yield c


def test_health_before_load(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "model_loaded": False,
        "model_path": None,
        "device": "cpu",
    }


def test_load_and_generate(client, counting_model):
    resp = client.post("/load", json={"model_path": str(counting_model)})
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ready",
        "model_path": str(counting_model),
        "device": "cpu",
    }

    resp = client.post("/generate", json={"prompt": "w61"})
    assert resp.status_code == 200
    assert resp.json() == {"response": "w62 w63"}

    resp = client.post(
        "/generate",
        json={"messages": [{"role": "user", "content": "w62"}]},
    )
    assert resp.json() == {"response": "w63"}


def test_generate_without_model(client):
    resp = client.post("/generate", json={"prompt": "hello"})
    assert resp.status_code == 409
    assert "Model not loaded" in resp.json()["detail"]


def test_generate_requires_input(client):
    resp = client.post("/generate", json={})
    assert resp.status_code == 400


def test_load_without_tokenizer(client, tmp_path):
    model = save_model(NextIdLM(), tmp_path / "bare" / "model.pt")
    resp = client.post("/load", json={"model_path": str(model)})
    assert resp.status_code == 400
    assert "tokenizer.json" in resp.json()["detail"]


def test_interrupt_reset_unload(client, server, counting_model):
    client.post("/load", json={"model_path": str(counting_model)})

    assert client.post("/interrupt").json() == {"status": "interrupted"}
    assert server.service.cancel_requested
    assert client.post("/reset").json() == {"status": "reset"}
    assert not server.service.cancel_requested

    assert client.post("/unload").json() == {"status": "unloaded"}
    assert client.get("/health").json()["model_loaded"] is False


def test_preload_on_startup(tmp_path, counting_model):
    server = LocalLLMServer(
        model_path=str(counting_model), base_dir_provider=lambda: tmp_path
    )
    with TestClient(server.get_app()) as c:
        health = c.get("/health").json()
    assert health["model_loaded"] is True
    assert health["model_path"] == str(counting_model)


def test_failed_preload_does_not_stop_server(tmp_path):
    server = LocalLLMServer(
        model_path=str(tmp_path / "missing.pt"), base_dir_provider=lambda: tmp_path
    )
    with TestClient(server.get_app()) as c:
        assert c.get("/health").json()["model_loaded"] is False

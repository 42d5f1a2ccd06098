import pytest
from fastapi.testclient import TestClient

from mdchunker.config.settings import get_settings
from mdchunker.main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_chunk_with_active_profile(client):
    response = client.post("/chunk", json={"content": "# A\n\ntext"})
    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "element-level"
    assert body["total_chunks"] == 2
    assert body["status"] == "success"
    assert body["chunks"][0]["content"] == "# A"
    assert body["stats"]["total_chunks"] == 2


def test_chunk_with_strategy_override(client):
    response = client.post("/chunk", json={"content": "# A\n\ntext", "strategy": "hierarchical"})
    body = response.json()
    assert body["strategy"] == "hierarchical"
    assert body["total_chunks"] == 1


def test_chunk_with_inline_config_reports_errors(client):
    response = client.post("/chunk", json={"content": "x" * 50, "chunking_config": {"max_chunk_size": 10}})
    body = response.json()
    assert body["status"] == "partial"
    assert body["errors"][0]["type"] == "ChunkTooLarge"
    assert body["chunks"][0]["metadata"]["truncated"] == "true"


def test_strict_profile_failure(client):
    response = client.post("/chunk", json={"content": "word " * 2000, "profile": "strict_text"})
    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "failed"
    assert body["total_chunks"] == 0


def test_unknown_strategy_is_404(client):
    response = client.post("/chunk", json={"content": "text", "strategy": "nope"})
    assert response.status_code == 404
    assert response.json()["detail"]["type"] == "StrategyNotFound"


def test_unknown_profile_is_400(client):
    response = client.post("/chunk", json={"content": "text", "profile": "missing"})
    assert response.status_code == 400


def test_invalid_inline_config_is_422(client):
    response = client.post("/chunk", json={"content": "text", "chunking_config": "not-an-object"})
    assert response.status_code == 422
    response = client.post(
        "/chunk",
        json={"content": "text", "chunking_config": {"chunking_strategy": {"name": "hierarchical", "max_depth": 9}}},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["type"] == "ConfigInvalid"


def test_batch_keeps_order_and_counts(client):
    response = client.post("/chunk/batch", json={"documents": ["# A", "# B\n\ntext", ""]})
    assert response.status_code == 200
    body = response.json()
    assert body["documents_chunked"] == 2
    assert body["documents_failed"] == 1
    assert body["total_chunks_created"] == 3
    assert body["status"] == "partial"
    assert [r["total_chunks"] for r in body["results"]] == [1, 2, 0]


def test_batch_size_limit(client, monkeypatch):
    monkeypatch.setenv("MAX_BATCH_DOCUMENTS", "1")
    get_settings.cache_clear()
    try:
        response = client.post("/chunk/batch", json={"documents": ["a", "b"]})
    finally:
        get_settings.cache_clear()
    assert response.status_code == 400


def test_list_strategies(client):
    body = client.get("/strategies").json()
    assert body["active_profile"] == "default"
    assert "hierarchical" in body["profiles"]
    assert [s["name"] for s in body["strategies"]] == ["document-level", "element-level", "hierarchical"]


def test_default_profile_comes_from_settings(client, monkeypatch):
    monkeypatch.setenv("CHUNKING_PROFILE", "hierarchical")
    get_settings.cache_clear()
    try:
        body = client.post("/chunk", json={"content": "# A\n\ntext"}).json()
    finally:
        get_settings.cache_clear()
    assert body["strategy"] == "hierarchical"

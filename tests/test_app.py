"""Application shell: root, health checks and middleware headers."""


def test_root(anon_client):
    body = anon_client.get("/").json()
    assert body["status"] == "running"
    assert body["health"] == "/health"


def test_health(anon_client):
    resp = anon_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.headers["X-Request-ID"]
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Process-Time" in resp.headers


def test_health_detailed(anon_client):
    body = anon_client.get("/health/detailed").json()
    assert body["database"] == "connected"
    assert body["vector_search"] == "disabled"


def test_validation_errors_are_400(client):
    resp = client.post("/api/v1/movies", json={"name": 123})
    assert resp.status_code == 400
    assert isinstance(resp.json()["detail"], list)

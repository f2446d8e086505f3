"""
Tests for health and metrics endpoints.
"""
from fastapi.testclient import TestClient
from cryptokit.main import app

client = TestClient(app)


def test_health_liveness():
    """Test liveness health check."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["service"] == "cryptokit"
    assert data["version"] == "0.1.0"
    assert "timestamp" in data


def test_metrics_endpoint():
    """Test Prometheus metrics endpoint."""
    client.post("/tokens/issue", json={"payload": {"id": "metrics"}})
    client.post("/tokens/verify", json={"token": "x"})

    r = client.get("/metrics")
    assert r.status_code == 200
    content = r.text
    assert "app_up" in content
    assert "cryptokit_tokens_issued_total" in content
    assert 'cryptokit_token_verifications_total{result="malformed"}' in content
    assert "cryptokit_credential_operations_total" in content

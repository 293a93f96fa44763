"""
Tests for API Contract
======================

Every response is JSON; every error uses the ``{"error": ...}`` envelope.
"""

import pytest


class TestHealthEndpoint:
    """Tests for /health endpoint"""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_reports_unconfigured_upstreams(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["ai_gateway_configured"] is False
        assert data["tts_configured"] is False


class TestCors:
    """Browser clients call from any origin"""

    def test_preflight_allows_any_origin(self, client):
        response = client.options(
            "/api/ai-router",
            headers={
                "Origin": "https://app.enyayasetu.in",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        allowed = response.headers["access-control-allow-headers"].lower()
        for header in ("authorization", "x-client-info", "apikey", "content-type"):
            assert header in allowed

    def test_simple_request_carries_origin_header(self, client):
        response = client.get("/health", headers={"Origin": "https://app.enyayasetu.in"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestSecurityHeaders:
    def test_headers_present(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestErrorEnvelope:
    """Handler errors are reshaped into {"error": message}"""

    def test_missing_token_is_401(self, client):
        response = client.post("/api/court-chat", json={"prompt": "Order in court"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_invalid_token_is_401(self, client):
        response = client.get("/api/cases", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_validation_error_is_400(self, client, register):
        headers, _ = register()
        response = client.post("/api/ai-router", json={"messages": []}, headers=headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request body"
        assert isinstance(body["details"], list)

    def test_unknown_route_is_enveloped(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert "error" in response.json()

    @pytest.mark.parametrize("path", ["/api/cases", "/api/notifications", "/api/wallet", "/api/auth/me"])
    def test_protected_routes_require_auth(self, client, path):
        assert client.get(path).status_code == 401

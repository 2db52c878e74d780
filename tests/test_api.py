"""
HTTP tests for the relay endpoints.
"""
import logging
from datetime import datetime
from unittest.mock import patch

from fastapi.testclient import TestClient

TOKEN = "0123456789abcdef"


class TestHealth:
    def test_health_is_public(self, make_client):
        client = make_client()
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        datetime.fromisoformat(data["time"])


class TestAuth:
    def test_missing_token(self, make_client):
        response = make_client().get("/v1/secrets")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_token(self, make_client, caplog):
        with caplog.at_level(logging.DEBUG):
            response = make_client().get("/v1/secrets", headers={"x-service-token": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert "wrong" not in caplog.text

    def test_correct_token(self, make_client, auth_headers):
        response = make_client().get("/v1/secrets", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")


class TestSecrets:
    def test_end_to_end_gemini_scenario(self, make_client, auth_headers):
        client = make_client({"GEMINI_API_KEY_1": "g1", "GEMINI_API_KEY_3": "g3"})
        data = client.get("/v1/secrets", headers=auth_headers).json()
        assert list(data) == ["apiKeys", "generatedAt"]
        assert data["apiKeys"] == {"gemini": ["g1", "g3"]}
        datetime.fromisoformat(data["generatedAt"])

    def test_razorpay_key_id(self, make_client, auth_headers):
        data = make_client({"RAZORPAY_KEY_ID": "abc"}).get("/v1/secrets", headers=auth_headers).json()
        assert data["razorpay"]["keyId"] == "abc"

        data = make_client().get("/v1/secrets", headers=auth_headers).json()
        assert "razorpay" not in data

    def test_partial_chat_database_is_absent(self, make_client, auth_headers):
        client = make_client({
            "CHAT_DB_1_SERVICE_KEY": "k1",
            "CHAT_DB_2_URL": "https://two.example",
        })
        data = client.get("/v1/secrets", headers=auth_headers).json()
        assert data["supabase"]["chatDatabases"] == [{"id": "chat_db_1", "serviceRoleKey": "k1"}]
        assert "chat_db_2" not in str(data)
        assert "https://two.example" not in str(data)

    def test_chat_databases_are_rescanned_per_request(self, base_env, auth_headers):
        from app.core.config import load_settings
        from app.main import create_app

        env = dict(base_env)
        app = create_app(load_settings(env), environ=env)
        with TestClient(app) as client:
            assert "supabase" not in client.get("/v1/secrets", headers=auth_headers).json()
            env["EXPO_PUBLIC_CHAT_DB_1_SERVICE_KEY"] = "late"
            data = client.get("/v1/secrets", headers=auth_headers).json()
        assert data["supabase"]["chatDatabases"] == [{"id": "chat_db_1", "serviceRoleKey": "late"}]

    def test_token_is_not_in_bundle(self, make_client, auth_headers):
        response = make_client({"GEMINI_API_KEY_1": "g1"}).get("/v1/secrets", headers=auth_headers)
        assert TOKEN not in response.text


class TestErrors:
    def test_unexpected_error_is_generic_500(self, make_client, auth_headers, caplog):
        client = make_client(raise_server_exceptions=False)
        with patch("app.api.v1.routes.build_secret_bundle", side_effect=RuntimeError("boom secret")):
            with caplog.at_level(logging.ERROR):
                response = client.get("/v1/secrets", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "boom" not in response.text
        assert "boom secret" in caplog.text

    def test_unexpected_error_is_logged_once_without_traceback(self, make_client, auth_headers, caplog):
        client = make_client(raise_server_exceptions=False)
        with patch("app.api.v1.routes.build_secret_bundle", side_effect=RuntimeError("boom")):
            with caplog.at_level(logging.ERROR):
                client.get("/v1/secrets", headers=auth_headers)

        records = [r for r in caplog.records if r.name == "uvicorn.error"]
        assert len(records) == 1
        assert records[0].exc_info is None

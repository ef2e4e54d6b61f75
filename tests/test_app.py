"""Tests for app wiring: health, envelopes and configuration."""

from app import create_app


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").get_json()
        assert body["success"] is True
        assert "timestamp" in body

    def test_unknown_route_envelope(self, client):
        resp = client.get("/api/v1/nowhere")
        assert resp.status_code == 404
        assert resp.get_json()["success"] is False

    def test_method_not_allowed_envelope(self, client):
        resp = client.delete("/health")
        assert resp.status_code == 405
        assert resp.get_json()["success"] is False


class TestConfig:
    def test_overrides_win(self, app, tmp_path):
        assert app.config["UPLOAD_FOLDER"] == str(tmp_path / "uploads")
        assert app.config["DISABLE_MONGO"] is True
        assert app.config["ENFORCE_STATUS_TRANSITIONS"] is False

    def test_env_is_read(self, monkeypatch):
        monkeypatch.setenv("DISABLE_MONGO", "1")
        monkeypatch.setenv("FRONTEND_URL", "https://shop.example/")
        monkeypatch.setenv("ENFORCE_STATUS_TRANSITIONS", "true")
        monkeypatch.setenv("LEDGER_TIMEOUT", "5")
        app = create_app()
        assert app.config["FRONTEND_URL"] == "https://shop.example"
        assert app.config["ENFORCE_STATUS_TRANSITIONS"] is True
        assert app.config["LEDGER_TIMEOUT"] == 5

"""Unit tests for the server entry point."""

from unittest.mock import patch

from workplace_webhook.server import WebhookServer, main


def test_main_builds_server_from_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "config.yaml"
    config.write_text("webhook:\n  secret: cfg-secret\n  verification_token: cfg-token\n  port: 9000\n")
    started = []

    def fake_serve(self, host=None, port=None):
        started.append(self)

    with patch.object(WebhookServer, "listen_and_serve", fake_serve):
        main(["--config", str(config), "--port", "9100", "--multi"])

    assert len(started) == 1
    settings = started[0].settings
    assert settings.port == 9100
    assert settings.routing_mode == "multi"
    assert settings.secret.get_secret_value() == "cfg-secret"


def test_blank_constructor_credentials_fall_back_to_environment(monkeypatch):
    monkeypatch.setenv("WORKPLACE_WEBHOOK_SECRET", "env-secret")
    monkeypatch.setenv("WORKPLACE_WEBHOOK_VERIFICATION_TOKEN", "env-token")

    server = WebhookServer(access_token="explicit-access")

    assert server.settings.secret.get_secret_value() == "env-secret"
    assert server.settings.verification_token.get_secret_value() == "env-token"
    assert server.access_token == "explicit-access"


def test_listen_and_serve_uses_settings():
    server = WebhookServer(secret="s")

    with patch("uvicorn.run") as run:
        server.listen_and_serve()

    run.assert_called_once_with(server.app, host="0.0.0.0", port=8080)

import pytest

from fga_publisher.config import settings
from fga_publisher.config.settings import PublisherConfig, load_settings
from fga_publisher.core.openfga.credentials import CredentialsMethod

ENV_VARS = [
    "OPENFGA_API_URL",
    "OPENFGA_CREDENTIALS_METHOD",
    "OPENFGA_API_TOKEN",
    "OPENFGA_CLIENT_ID",
    "OPENFGA_CLIENT_SECRET",
    "OPENFGA_API_TOKEN_ISSUER",
    "OPENFGA_API_AUDIENCE",
    "OPENFGA_CONNECT_TIMEOUT",
    "OPENFGA_READ_TIMEOUT",
    "OPENFGA_VALIDATE_RELATIONS",
    "KEYCLOAK_URL",
    "KEYCLOAK_SERVICE_REALM",
    "KEYCLOAK_SERVICE_CLIENT_ID",
    "KEYCLOAK_SERVICE_CLIENT_SECRET",
    "EVENTS_WEBHOOK_TOKEN",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    # Point /run/secrets at an empty temp directory
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


def test_defaults():
    cfg = load_settings()
    assert cfg.openfga_api_url == "http://openfga:8080"
    assert cfg.credentials_method == CredentialsMethod.NONE
    assert cfg.timeout == (5, 5)
    assert cfg.validate_relations is False
    assert cfg.keycloak_service_realm == "master"
    assert cfg.webhook_token == ""


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("OPENFGA_API_URL", "http://fga.internal:8080")
    monkeypatch.setenv("OPENFGA_CREDENTIALS_METHOD", "client_credentials")
    monkeypatch.setenv("OPENFGA_CLIENT_ID", "publisher")
    monkeypatch.setenv("OPENFGA_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("OPENFGA_API_TOKEN_ISSUER", "auth.fga.example")
    monkeypatch.setenv("OPENFGA_API_AUDIENCE", "https://api.fga.example/")
    monkeypatch.setenv("OPENFGA_CONNECT_TIMEOUT", "1.5")
    monkeypatch.setenv("OPENFGA_READ_TIMEOUT", "10")
    monkeypatch.setenv("OPENFGA_VALIDATE_RELATIONS", "true")

    cfg = load_settings()

    assert cfg.openfga_api_url == "http://fga.internal:8080"
    assert cfg.credentials_method == CredentialsMethod.CLIENT_CREDENTIALS
    assert cfg.openfga_client_secret == "env-secret"
    assert cfg.timeout == (1.5, 10.0)
    assert cfg.validate_relations is True


def test_secret_file_wins_over_environment(monkeypatch, clean_env):
    (clean_env / "openfga_api_token").write_text("file-token\n")
    monkeypatch.setenv("OPENFGA_API_TOKEN", "env-token")
    assert load_settings().openfga_api_token == "file-token"


def test_empty_secret_file_falls_back_to_env(monkeypatch, clean_env):
    (clean_env / "events_webhook_token").write_text("")
    monkeypatch.setenv("EVENTS_WEBHOOK_TOKEN", "env-hook")
    assert load_settings().webhook_token == "env-hook"


def test_unknown_credentials_method(monkeypatch):
    monkeypatch.setenv("OPENFGA_CREDENTIALS_METHOD", "oauth1")
    with pytest.raises(ValueError):
        load_settings()


@pytest.mark.parametrize("value", ["0", "-3"])
def test_non_positive_timeout_rejected(monkeypatch, value):
    monkeypatch.setenv("OPENFGA_READ_TIMEOUT", value)
    with pytest.raises(ValueError, match="OPENFGA_READ_TIMEOUT"):
        load_settings()


def test_missing_webhook_token_warns(capsys):
    load_settings()
    assert "EVENTS_WEBHOOK_TOKEN not set" in capsys.readouterr().out


def test_timeout_property():
    assert PublisherConfig(connect_timeout=3, read_timeout=4).timeout == (3, 4)

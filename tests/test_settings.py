import pytest

from client.settings import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("AGENT_API_BASE_URL", "AGENT_API_TIMEOUT", "AUTH_TOKEN_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.timeout == DEFAULT_TIMEOUT_SECONDS
    assert settings.token_file is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("AGENT_API_BASE_URL", "https://backoffice.example.com/api/")
    monkeypatch.setenv("AGENT_API_TIMEOUT", "12.5")
    monkeypatch.setenv("AUTH_TOKEN_FILE", "/tmp/inmo-auth.json")

    settings = load_settings()

    assert settings.base_url == "https://backoffice.example.com/api"
    assert settings.timeout == 12.5
    assert settings.token_file == "/tmp/inmo-auth.json"


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_invalid_timeout(monkeypatch, raw):
    monkeypatch.setenv("AGENT_API_TIMEOUT", raw)

    with pytest.raises(ValueError, match="AGENT_API_TIMEOUT"):
        load_settings()

import pytest
from pydantic import ValidationError

from envmanager.cli import parse_args
from envmanager.core.config import Settings


def test_defaults():
    settings = Settings()
    assert settings.API_PREFIX == "/api"
    assert settings.GITHUB_API_URL == "https://api.github.com"
    assert 0 < settings.PORT <= 65535


@pytest.mark.parametrize("port", [0, -1, 70000])
def test_invalid_port(port):
    with pytest.raises(ValidationError):
        Settings(PORT=port)


def test_invalid_host():
    with pytest.raises(ValidationError):
        Settings(HOST="  ")


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("HOST", "0.0.0.0")
    settings = Settings()
    assert settings.PORT == 9000
    assert settings.HOST == "0.0.0.0"


def test_cors_origins_from_comma_list():
    settings = Settings(BACKEND_CORS_ORIGINS="http://localhost:3000, https://example.com")
    assert settings.BACKEND_CORS_ORIGINS == ["http://localhost:3000", "https://example.com"]


def test_github_url_trailing_slash():
    assert Settings(GITHUB_API_URL="https://ghe.example.com/api/v3/").GITHUB_API_URL == "https://ghe.example.com/api/v3"


def test_cli_arguments():
    args = parse_args(["--host", "0.0.0.0", "-p", "9001"])
    assert args.host == "0.0.0.0"
    assert args.port == 9001
    assert args.reload is False


def test_cli_rejects_bad_port():
    with pytest.raises(SystemExit):
        parse_args(["--port", "0"])

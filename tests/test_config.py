try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from converty_bridge.core.config import ConvertySettings, get_settings, load_settings
from converty_bridge.core.errors import ConfigError
from scripts import serve


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_missing_credentials_raise_config_error(isolated_settings) -> None:
    isolated_settings.delenv("CONVERTY_CLIENT_SECRET", raising=False)

    with pytest.raises(ConfigError) as excinfo:
        load_settings()

    assert "client_secret" in excinfo.value.message or "CONVERTY_CLIENT_SECRET" in excinfo.value.message


def test_blank_credentials_are_rejected(isolated_settings) -> None:
    isolated_settings.setenv("CONVERTY_CLIENT_ID", "   ")

    with pytest.raises(ConfigError):
        load_settings()


def test_settings_defaults(isolated_settings) -> None:
    isolated_settings.delenv("APP_PORT", raising=False)
    isolated_settings.delenv("DEFAULT_USER_ID", raising=False)

    settings = load_settings()

    assert settings.port == 9001
    assert settings.default_user_id == "user1"
    assert settings.oauth.state_ttl_seconds == 900
    assert settings.converty.store_id is None


def test_scopes_accept_commas_and_spaces() -> None:
    settings = ConvertySettings(
        CONVERTY_CLIENT_ID="client",
        CONVERTY_CLIENT_SECRET="secret",
        CONVERTY_SCOPES="read-products, read-orders  create-orders",
    )

    assert settings.scope == "read-products read-orders create-orders"


def test_serve_exits_with_config_error_code(isolated_settings, capsys) -> None:
    isolated_settings.delenv("CONVERTY_CLIENT_ID", raising=False)

    exit_code = serve.main([])

    assert exit_code == serve.EXIT_CONFIG_ERROR
    assert "Configuration error" in capsys.readouterr().err


@pytest.mark.parametrize("ttl", ["0", "-60"])
def test_refresh_token_ttl_must_be_positive(isolated_settings, ttl) -> None:
    isolated_settings.setenv("CONVERTY_REFRESH_TOKEN_TTL", ttl)

    with pytest.raises(ConfigError):
        load_settings()

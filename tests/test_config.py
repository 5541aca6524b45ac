import pytest

from core.config import DEFAULT_QUOTES_URL, Settings, load_settings


def test_defaults_from_empty_environment() -> None:
    settings = load_settings({})

    assert settings == Settings()
    assert settings.port == 10000
    assert settings.host == "0.0.0.0"
    assert settings.quotes_url == DEFAULT_QUOTES_URL
    assert settings.session_idle_timeout == 1800
    assert settings.json_response is False


def test_values_are_read_from_environment() -> None:
    settings = load_settings(
        {
            "PORT": "8080",
            "HOST": "127.0.0.1",
            "BASE_API": "https://api.example.test/",
            "IXFI_API_TOKEN": "tok",
            "USER_AGENT": "probe/0.1",
            "QUOTES_API_URL": "https://gateway.test/rates",
            "UPSTREAM_TIMEOUT": "2.5",
            "MCP_SERVER_API_KEY": "key",
            "MCP_SESSION_IDLE_TIMEOUT": "0",
            "MCP_SESSION_SWEEP_INTERVAL": "5",
            "MCP_JSON_RESPONSE": "true",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.port == 8080
    assert settings.host == "127.0.0.1"
    assert settings.api_base == "https://api.example.test/"
    assert settings.api_token == "tok"
    assert settings.user_agent == "probe/0.1"
    assert settings.quotes_url == "https://gateway.test/rates"
    assert settings.upstream_timeout == 2.5
    assert settings.server_api_key == "key"
    assert settings.session_idle_timeout == 0
    assert settings.session_sweep_interval == 5
    assert settings.json_response is True
    assert settings.log_level == "DEBUG"


def test_invalid_numbers_fall_back_to_defaults(caplog) -> None:
    settings = load_settings({"PORT": "eighty", "UPSTREAM_TIMEOUT": "soon"})

    assert settings.port == 10000
    assert settings.upstream_timeout == 10
    assert "Ignoring invalid PORT" in caplog.text


@pytest.mark.parametrize("raw", ["-5", "nan", "inf", "-inf"])
def test_non_finite_or_negative_durations_fall_back(raw: str, caplog) -> None:
    settings = load_settings(
        {
            "UPSTREAM_TIMEOUT": raw,
            "MCP_SESSION_IDLE_TIMEOUT": raw,
            "MCP_SESSION_SWEEP_INTERVAL": raw,
        }
    )

    assert settings.upstream_timeout == 10
    assert settings.session_idle_timeout == 1800
    assert settings.session_sweep_interval == 60
    assert "Ignoring invalid MCP_SESSION_SWEEP_INTERVAL" in caplog.text


def test_zero_only_allowed_for_idle_timeout() -> None:
    settings = load_settings(
        {"MCP_SESSION_IDLE_TIMEOUT": "0", "MCP_SESSION_SWEEP_INTERVAL": "0", "UPSTREAM_TIMEOUT": "0"}
    )

    assert settings.session_idle_timeout == 0
    assert settings.session_sweep_interval == 60
    assert settings.upstream_timeout == 10

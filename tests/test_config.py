from unittest.mock import patch

import pytest

from config import DEFAULT_ALLOWED_ORIGINS, RelayConfig, load_config, parse_origins


def test_load_config_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True), patch("config.load_dotenv"):
        config = load_config()

    assert config.gemini_api_key is None
    assert config.port == 3001
    assert config.allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert config.endpoint == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
    )


def test_load_config_reads_environment() -> None:
    env = {
        "GEMINI_API_KEY": "k",
        "PORT": "8080",
        "HOST": "0.0.0.0",
        "RELAY_ALLOWED_ORIGINS": "https://a.example, https://b.example",
        "GEMINI_MODEL": "gemini-1.5-flash",
        "REQUEST_TIMEOUT_SECONDS": "5",
    }
    with patch.dict("os.environ", env, clear=True), patch("config.load_dotenv"):
        config = load_config()

    assert config.gemini_api_key == "k"
    assert config.port == 8080
    assert config.host == "0.0.0.0"
    assert config.allowed_origins == ("https://a.example", "https://b.example")
    assert config.endpoint.endswith("/models/gemini-1.5-flash:generateContent")
    assert config.request_timeout_seconds == 5.0


def test_config_is_immutable() -> None:
    config = RelayConfig(gemini_api_key="k")
    with pytest.raises(AttributeError):
        config.port = 1  # type: ignore[misc]


def test_config_repr_masks_key() -> None:
    assert "super-secret" not in repr(RelayConfig(gemini_api_key="super-secret"))


@pytest.mark.parametrize("raw", [None, "", "  ", ", ,"])
def test_parse_origins_empty_means_defaults(raw: str | None) -> None:
    assert parse_origins(raw) == DEFAULT_ALLOWED_ORIGINS

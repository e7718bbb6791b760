"""Process configuration for the Gemini relay, read once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = (
    "http://localhost:5500",
    "http://127.0.0.1:5500",
    "http://localhost:3000",
)
DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-pro"
DEFAULT_PORT = 3001
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class RelayConfig:
    gemini_api_key: str | None
    port: int = DEFAULT_PORT
    host: str = "127.0.0.1"
    allowed_origins: tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_api_base: str = DEFAULT_GEMINI_API_BASE
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def endpoint(self) -> str:
        return f"{self.gemini_api_base.rstrip('/')}/models/{self.gemini_model}:generateContent"

    def __repr__(self) -> str:
        # Keep the credential out of logs and tracebacks.
        return (
            f"RelayConfig(gemini_api_key={'***' if self.gemini_api_key else None}, "
            f"port={self.port}, host={self.host!r}, allowed_origins={self.allowed_origins!r}, "
            f"gemini_model={self.gemini_model!r}, gemini_api_base={self.gemini_api_base!r}, "
            f"request_timeout_seconds={self.request_timeout_seconds})"
        )


def load_config() -> RelayConfig:
    """Build a RelayConfig from the environment (and a local .env file, if any)."""
    load_dotenv()
    return RelayConfig(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        host=os.getenv("HOST", "127.0.0.1"),
        allowed_origins=parse_origins(os.getenv("RELAY_ALLOWED_ORIGINS")),
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        gemini_api_base=os.getenv("GEMINI_API_BASE", DEFAULT_GEMINI_API_BASE),
        request_timeout_seconds=float(
            os.getenv("REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
        ),
    )


def parse_origins(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated origin list; empty or unset means the defaults."""
    origins = tuple(origin.strip() for origin in (raw or "").split(",") if origin.strip())
    return origins or DEFAULT_ALLOWED_ORIGINS

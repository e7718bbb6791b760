"""FastAPI relay that forwards generateContent requests to Gemini.

The browser never sees the API key: it posts the request body here and the
relay attaches the credential before calling the upstream endpoint.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import requests
import uvicorn
from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import RelayConfig

RELAY_PATH = "/api/gemini"
PROXY_ERROR_MESSAGE = "Gemini API proxy error"

LOGGER = logging.getLogger(__name__)


class RelayError(RuntimeError):
    """Raised when the upstream call fails or returns an unusable body."""


class GeminiRelay:
    """Single-attempt pass-through to the Gemini generateContent endpoint."""

    def __init__(self, config: RelayConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._http = session or requests

    def forward(self, payload: Any) -> dict[str, Any]:
        """POST ``payload`` upstream and return the decoded JSON unchanged.

        Raises RelayError for a missing key, a transport failure, a non-2xx
        status, or a body without ``candidates[0].content.parts``.
        """
        if not self.config.gemini_api_key:
            raise RelayError("GEMINI_API_KEY environment variable is required")

        LOGGER.info("Sending request to Gemini API model=%s", self.config.gemini_model)
        LOGGER.debug("Request body: %s", payload)

        try:
            response = self._http.post(
                self.config.endpoint,
                params={"key": self.config.gemini_api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.config.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            # Exception text can include the request URL, which carries the key.
            LOGGER.error("Gemini API request failed: %s", type(exc).__name__)
            raise RelayError(f"Gemini API request failed: {type(exc).__name__}") from exc

        if not response.ok:
            error_text = response.text
            LOGGER.error("Gemini API error: %s %s", response.status_code, response.reason)
            LOGGER.error("Error details: %s", error_text)
            raise RelayError(f"Gemini API responded with {response.status_code}: {error_text}")

        try:
            data = response.json()
        except ValueError as exc:
            raise RelayError("Invalid response format from Gemini API") from exc

        if not has_candidate_parts(data):
            LOGGER.error("Gemini API returned an unexpected shape")
            raise RelayError("Invalid response format from Gemini API")

        LOGGER.debug("Gemini API response: %s", data)
        return data


def has_candidate_parts(data: Any) -> bool:
    """Return True when ``data['candidates'][0]['content']['parts']`` is a non-empty list."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return False
    return isinstance(parts, list) and len(parts) > 0


def error_envelope(details: str) -> dict[str, str]:
    return {
        "error": PROXY_ERROR_MESSAGE,
        "details": details,
        "timestamp": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


def create_app(config: RelayConfig, relay: GeminiRelay | None = None) -> FastAPI:
    """Create the relay app with CORS restricted to ``config.allowed_origins``."""
    relay = relay or GeminiRelay(config)
    app = FastAPI(title="Gemini relay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    @app.post(RELAY_PATH)
    def gemini_proxy(payload: Any = Body(default={})):
        try:
            return relay.forward(payload)
        except RelayError as exc:
            LOGGER.error("Server error: %s", exc)
            return JSONResponse(status_code=500, content=error_envelope(str(exc)))

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "model": config.gemini_model,
            "credential_configured": bool(config.gemini_api_key),
        }

    return app


def serve(config: RelayConfig) -> None:
    """Run the relay under uvicorn until interrupted."""
    app = create_app(config)
    LOGGER.info("Gemini proxy server running on port %s", config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")

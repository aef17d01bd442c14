"""Async client for the Ollama-compatible inference backend.

Two calls are used: ``POST /api/generate`` (non-streaming) and
``GET /api/version`` for liveness. Each call is attempted once.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from moderation_api.config import ModerationConfig
from moderation_api.errors import BackendRequestError, BackendUnavailableError

log = structlog.get_logger()


class OllamaClient:
    """Thin wrapper over one ``httpx.AsyncClient`` bound to the backend URL."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    @classmethod
    def from_config(
        cls,
        config: ModerationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OllamaClient:
        """Build a client for *config*; *transport* is for tests."""
        http = httpx.AsyncClient(
            base_url=config.ollama_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )
        return cls(http)

    async def generate(self, prompt: str, model: str, response_format: Any) -> str:
        """Run one generation and return the backend's ``response`` string."""
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "format": response_format,
        }
        try:
            resp = await self._http.post("/api/generate", json=payload)
        except httpx.RequestError as exc:
            raise BackendRequestError(
                f"generate request failed: {type(exc).__name__}: {exc}"
            ) from exc

        if resp.status_code != httpx.codes.OK:
            raise BackendRequestError(
                f"generate returned status {resp.status_code}: {resp.text[:200]}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise BackendRequestError(f"error decoding generate response: {exc}") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise BackendRequestError("generate response has no 'response' string")
        return text

    async def version(self) -> httpx.Response:
        """GET the backend version endpoint; any HTTP status is returned as-is."""
        try:
            return await self._http.get("/api/version")
        except httpx.RequestError as exc:
            log.warning("backend_unreachable", error=f"{type(exc).__name__}: {exc}")
            raise BackendUnavailableError(f"{type(exc).__name__}: {exc}") from exc

    async def aclose(self) -> None:
        await self._http.aclose()

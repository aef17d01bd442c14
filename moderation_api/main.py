"""FastAPI application for the content moderation gateway."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ValidationError

from moderation_api.config import ModerationConfig, load_config
from moderation_api.errors import BackendUnavailableError, ConfigError
from moderation_api.logging_conf import RequestLoggingMiddleware, configure_logging
from moderation_api.moderation import AnalysisResult, analyze_messages
from moderation_api.ollama import OllamaClient
from moderation_api.settings import settings

# Logging
log = structlog.get_logger()

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
    "Access-Control-Allow-Headers": "Content-Type",
}


# Request / Response schemas


class AnalyzeRequest(BaseModel):
    # null / missing is rejected as an empty batch
    messages: list[str] | None = None


# Dependencies


def get_config(request: Request) -> ModerationConfig:
    return request.app.state.config


def get_ollama(request: Request) -> OllamaClient:
    return request.app.state.ollama


async def read_analyze_request(request: Request) -> AnalyzeRequest:
    """Decode the body as JSON regardless of its Content-Type."""
    try:
        return AnalyzeRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        log.warning("invalid_request_body", path=request.url.path, errors=exc.error_count())
        raise HTTPException(status_code=400, detail="Invalid request body") from None


# Endpoints

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, tags=["ops"])
async def root() -> str:
    """Liveness probe."""
    return "Content moderation service is running"


@router.get("/api/health", response_class=PlainTextResponse, tags=["ops"])
async def backend_health(client: OllamaClient = Depends(get_ollama)) -> str:
    """Proxy the inference backend's version endpoint."""
    try:
        resp = await client.version()
    except BackendUnavailableError as exc:
        raise HTTPException(
            status_code=503,
            detail=f"connecting to inference backend: {exc}",
        ) from None

    if resp.status_code != 200:
        log.warning("backend_health_failed", status_code=resp.status_code)
        raise HTTPException(
            status_code=502,
            detail=f"unexpected version status code {resp.status_code}: {resp.text}",
        )

    return f"ollama: {resp.text}"


@router.post("/api/analyze", response_model=list[AnalysisResult], tags=["moderation"])
async def analyze(
    request: Request,
    body: AnalyzeRequest = Depends(read_analyze_request),
    config: ModerationConfig = Depends(get_config),
    client: OllamaClient = Depends(get_ollama),
) -> list[AnalysisResult]:
    """Classify each message against the configured policies.

    Messages that fail analysis are left out of the response.
    """
    if not body.messages:
        raise HTTPException(status_code=400, detail="Messages array cannot be empty")

    log.info("analyze_request", messages=len(body.messages))
    return await analyze_messages(
        body.messages, config, client, is_disconnected=request.is_disconnected
    )


@router.options("/api/analyze", include_in_schema=False)
@router.options("/api/health", include_in_schema=False)
async def cors_options() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


# App factory


def create_app(config: ModerationConfig, client: OllamaClient | None = None) -> FastAPI:
    """Build the app around an already-loaded config.

    *client* defaults to an OllamaClient for ``config.ollama_url``; an
    injected client is left open on shutdown.
    """
    owns_client = client is None
    ollama = client if client is not None else OllamaClient.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_client:
            await ollama.aclose()

    app = FastAPI(
        title="Content Moderation API",
        version="1.0.0",
        description="Classifies messages against content policies using a local LLM.",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.ollama = ollama

    # Middleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router)
    return app


def main() -> None:
    """Load config and serve the app with uvicorn."""
    configure_logging(settings.LOG_LEVEL)

    try:
        config = load_config(settings.CONFIG_PATH)
    except ConfigError as exc:
        log.error("config_load_failed", path=str(settings.CONFIG_PATH), error=str(exc))
        raise SystemExit(1) from None

    log.info(
        "server_starting",
        host=settings.HOST,
        port=settings.PORT,
        backend=config.ollama_url,
        model=config.model,
        policies=len(config.policies),
    )
    uvicorn.run(create_app(config), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()

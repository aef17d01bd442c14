"""Per-message moderation pipeline.

1. Render the prompt from the configured template and policies.
2. Ask the inference backend for a verdict.
3. Parse the model's JSON answer into a ModerationResult.

Model output is untrusted text: anything that does not match the schema
drops that one message from the batch.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from moderation_api.config import ModerationConfig
from moderation_api.errors import MessageAnalysisError, ModerationParseError
from moderation_api.ollama import OllamaClient
from moderation_api.prompt import build_prompt

log = structlog.get_logger()


class ModerationResult(BaseModel):
    """Verdict as produced by the model."""

    model_config = ConfigDict(strict=True)

    safe: bool
    # Not checked against the configured policies
    violated_policies: list[str]


class AnalysisResult(BaseModel):
    content: str
    is_safe: bool
    violated_policies: list[str]


def parse_moderation_result(raw: str) -> ModerationResult:
    """Decode the backend's ``response`` text as a ModerationResult."""
    try:
        return ModerationResult.model_validate_json(raw)
    except ValidationError as exc:
        raise ModerationParseError(
            f"error parsing moderation result: {exc.error_count()} error(s): "
            f"{exc.errors()[0]['msg']}"
        ) from exc


async def analyze_message(
    message: str,
    config: ModerationConfig,
    client: OllamaClient,
) -> AnalysisResult:
    """Classify one message. Raises MessageAnalysisError on any failure."""
    prompt = build_prompt(message, config.policies, config.prompt_template)
    raw = await client.generate(prompt, config.model, config.response_format)
    verdict = parse_moderation_result(raw)
    return AnalysisResult(
        content=message,
        is_safe=verdict.safe,
        violated_policies=verdict.violated_policies,
    )


async def analyze_messages(
    messages: Sequence[str],
    config: ModerationConfig,
    client: OllamaClient,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> list[AnalysisResult]:
    """Analyze *messages* in order, skipping any that fail.

    *is_disconnected* is polled before each backend round-trip; once it
    reports True the remaining messages are abandoned.
    """
    results: list[AnalysisResult] = []
    for index, message in enumerate(messages):
        if is_disconnected is not None and await is_disconnected():
            log.info("client_disconnected", remaining=len(messages) - index)
            break
        try:
            results.append(await analyze_message(message, config, client))
        except MessageAnalysisError as exc:
            log.warning(
                "message_analysis_failed",
                index=index,
                message=message[:80],
                error_type=type(exc).__name__,
                error=str(exc),
            )

    log.info(
        "analyze_complete",
        received=len(messages),
        analyzed=len(results),
        dropped=len(messages) - len(results),
    )
    return results

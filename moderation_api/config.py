"""Static moderation config, loaded once at startup.

The document is plain JSON::

    {
      "ollama_url": "http://localhost:11434",
      "model": "llama3.2",
      "prompt_template": "... {message} ... {policies} ...",
      "policies": ["hate/harassment", "violence"],
      "response_format": {"type": "object", ...}
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from moderation_api.errors import ConfigError


class ModerationConfig(BaseModel):
    """Immutable moderation settings shared by every request."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    ollama_url: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    prompt_template: str = Field(..., min_length=1)
    policies: tuple[str, ...] = ()
    # Opaque JSON schema forwarded to the backend as `format`
    response_format: Any = None
    # None = no deadline on backend calls
    timeout_seconds: float | None = Field(default=None, gt=0)

    @field_validator("ollama_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("policies", mode="before")
    @classmethod
    def _null_policies(cls, v: Any) -> Any:
        return () if v is None else v


def load_config(path: str | Path) -> ModerationConfig:
    """Read and validate the moderation config at *path*."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"error reading config file {path}: {exc}") from exc

    try:
        return ModerationConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {path}: {exc}") from exc

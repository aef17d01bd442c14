"""Exception hierarchy for the moderation service.

Per-message failures derive from MessageAnalysisError: the batch analyzer
logs them and drops the message. Everything else is surfaced to the caller
or, for ConfigError, aborts startup.
"""

from __future__ import annotations


class ModerationServiceError(Exception):
    """Base class for all service-level exceptions."""


class ConfigError(ModerationServiceError):
    """Raised when the moderation config cannot be read or is invalid."""


# ---- per message ----
class MessageAnalysisError(ModerationServiceError):
    """Raised when a single message cannot be analyzed."""


class PromptTemplateError(MessageAnalysisError):
    """Raised when the prompt template cannot be rendered."""


class BackendRequestError(MessageAnalysisError):
    """Raised when the generate call fails or returns an unusable body."""


class ModerationParseError(MessageAnalysisError):
    """Raised when the model output does not match the moderation schema."""


# ---- health ----
class BackendUnavailableError(ModerationServiceError):
    """Raised when the inference backend cannot be reached."""

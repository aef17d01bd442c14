"""Prompt rendering for moderation requests.

Templates use ``str.format`` fields:

- ``{message}``: the text to classify.
- ``{policies}``: numbered list of policy names, one per line.
- ``{policy_names}``: policy names joined with ", ".

Literal braces (e.g. a JSON example in the prompt) must be doubled.
"""

from __future__ import annotations

from collections.abc import Sequence

from moderation_api.errors import PromptTemplateError


def format_policies(policies: Sequence[str]) -> str:
    """Render policies as "1. name" lines."""
    return "\n".join(f"{i}. {name}" for i, name in enumerate(policies, start=1))


def build_prompt(message: str, policies: Sequence[str], template: str) -> str:
    """Return *template* with the message and policy list substituted in."""
    try:
        return template.format(
            message=message,
            policies=format_policies(policies),
            policy_names=", ".join(policies),
        )
    except (KeyError, IndexError, ValueError, AttributeError, TypeError) as exc:
        raise PromptTemplateError(
            f"error rendering prompt template: {type(exc).__name__}: {exc}"
        ) from exc

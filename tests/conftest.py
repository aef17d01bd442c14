"""Shared pytest fixtures for the moderation API test suite.

The inference backend is faked with httpx.MockTransport, so nothing here
touches the network.
"""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from moderation_api.config import ModerationConfig
from moderation_api.ollama import OllamaClient

POLICIES = ["hate/harassment", "self-harm encouragement", "violence"]

PROMPT_TEMPLATE = (
    "You are a content moderator. Policies:\n"
    "{policies}\n\n"
    "Message: {message}\n"
    'Answer with JSON: {{"safe": bool, "violated_policies": [string]}}'
)

RESPONSE_FORMAT = {
    "type": "object",
    "properties": {
        "safe": {"type": "boolean"},
        "violated_policies": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["safe", "violated_policies"],
}

SAFE_ANSWER = '{"safe": true, "violated_policies": []}'


class FakeOllama:
    """Scripted inference backend.

    ``answers`` maps message text to either the raw ``response`` string the
    model should produce or an int HTTP status to fail with. Unlisted
    messages get SAFE_ANSWER.
    """

    def __init__(self) -> None:
        self.answers: dict[str, str | int] = {}
        self.generate_calls: list[dict] = []
        self.version_status = 200
        self.version_body = '{"version":"0.5.7"}'
        self.unreachable = False

    @staticmethod
    def message_of(prompt: str) -> str:
        start = prompt.index("Message: ") + len("Message: ")
        return prompt[start:prompt.index("\nAnswer with JSON")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.path == "/api/version":
            return httpx.Response(self.version_status, text=self.version_body)

        if request.method == "POST" and request.url.path == "/api/generate":
            payload = json.loads(request.content)
            self.generate_calls.append(payload)
            answer = self.answers.get(self.message_of(payload["prompt"]), SAFE_ANSWER)
            if isinstance(answer, int):
                return httpx.Response(answer, text="model crashed")
            return httpx.Response(
                200,
                json={"model": payload["model"], "response": answer, "done": True},
            )

        return httpx.Response(404, text="not found")


@pytest.fixture()
def config() -> ModerationConfig:
    return ModerationConfig(
        ollama_url="http://ollama.test:11434/",
        model="llama3.2",
        prompt_template=PROMPT_TEMPLATE,
        policies=POLICIES,
        response_format=RESPONSE_FORMAT,
    )


@pytest.fixture()
def backend() -> FakeOllama:
    return FakeOllama()


@pytest.fixture()
def ollama(config, backend) -> OllamaClient:
    return OllamaClient.from_config(config, transport=httpx.MockTransport(backend.handler))


@pytest.fixture()
def client(config, ollama):
    """Return a FastAPI TestClient wired to the fake backend."""
    from moderation_api.main import create_app

    return TestClient(create_app(config, ollama))

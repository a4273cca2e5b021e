"""
Shared fixtures for the test suite.
"""

import pytest

from newsscope.utils.errors import LLMError


class FakeLLMClient:
    """
    Stands in for LLMClient. Replies come from ``respond(prompt)``, which may
    return a string or raise.
    """

    def __init__(self, respond):
        self.respond = respond
        self.calls = []

    async def complete(self, user_prompt, system_prompt=None, model=None, temperature=None):
        self.calls.append({
            "user_prompt": user_prompt,
            "system_prompt": system_prompt,
            "model": model,
            "temperature": temperature,
        })
        reply = self.respond(user_prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_llm():
    """Factory for fake LLM clients."""
    def _make(respond=None, reply="0.5"):
        if respond is None:
            respond = lambda prompt: reply
        return FakeLLMClient(respond)
    return _make


@pytest.fixture
def failing_llm():
    """LLM client whose every call fails."""
    return FakeLLMClient(lambda prompt: LLMError("service unavailable"))

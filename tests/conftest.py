"""Shared fakes for the test suite."""

import asyncio
import json

import pytest

from appraiser.analysis.models import Vote, VoteRole
from appraiser.config import reset_settings
from appraiser.database.db import Database
from appraiser.llm.base import BaseLLMProvider


class FakeProvider(BaseLLMProvider):
    """Provider that answers every prompt with a canned reply."""

    def __init__(self, provider_id, reply=None, delay=0.0, error=None):
        self.provider_id = provider_id
        super().__init__(api_key="test-key", model="fake-model")
        self.reply = reply
        self.delay = delay
        self.error = error
        self.prompts = []

    async def _complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, str):
            return self.reply
        return json.dumps(self.reply)


def make_vote(
    provider_id="openai",
    value=50.0,
    decision="BUY",
    confidence=0.8,
    weight=1.0,
    item_name="Test Item",
    role=VoteRole.PRIMARY,
    **extra,
):
    return Vote(
        provider_id=provider_id,
        item_name=item_name,
        estimated_value=value,
        decision=decision,
        confidence=confidence,
        weight=weight,
        role=role,
        **extra,
    )


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from API keys and toggles in the environment."""
    for key in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "XAI_API_KEY",
        "GOOGLE_API_KEY",
        "PERPLEXITY_API_KEY",
        "DEEPSEEK_API_KEY",
        "MARKET_SERVICE_URL",
        "ADAPTIVE_WEIGHTS_ENABLED",
        "SUSPICIOUS_DEFAULT_PRICES",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "appraiser.db"))
    database.initialize_schema()
    yield database
    database.close()

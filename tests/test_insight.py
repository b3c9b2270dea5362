import asyncio

import pytest

from habitquest.gemini.client import GeminiAPIError
from habitquest.gemini.insight import FALLBACK_INSIGHT, InsightClient


class FakeGemini:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.requests = []

    async def generate_content(self, model, prompt):
        self.requests.append((model, prompt))
        if self.error:
            raise self.error
        return self.reply


def test_insight_prompt_embeds_summary():
    fake = FakeGemini(reply="  Keep going! Tip: stack habits.  ")
    client = InsightClient(fake, model="gemini-test")

    text = asyncio.run(client.generate("Meditation: 12/31"))

    assert text == "Keep going! Tip: stack habits."
    model, prompt = fake.requests[0]
    assert model == "gemini-test"
    assert prompt.startswith("Based on this habit tracking summary: Meditation: 12/31,")
    assert "Keep it under 100 words." in prompt


def test_generate_propagates_failures():
    client = InsightClient(FakeGemini(error=GeminiAPIError("offline")))

    with pytest.raises(GeminiAPIError):
        asyncio.run(client.generate("Read: 1/2"))


def test_failure_becomes_fallback():
    client = InsightClient(FakeGemini(error=GeminiAPIError("offline")))

    assert asyncio.run(client.insight_or_fallback("Read: 1/2")) == FALLBACK_INSIGHT


def test_empty_reply_becomes_fallback():
    client = InsightClient(FakeGemini(reply="   "))

    assert asyncio.run(client.generate("Read: 1/2")) is None
    assert asyncio.run(client.insight_or_fallback("Read: 1/2")) == FALLBACK_INSIGHT

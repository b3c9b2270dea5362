"""Motivational insight generation."""

import logging
from typing import Optional

from .client import GeminiClient

logger = logging.getLogger(__name__)

INSIGHT_TEMPLATE = (
    "Based on this habit tracking summary: {summary}, give me a brief, punchy "
    "motivational insight and one specific tip to improve. Keep it under 100 words."
)
FALLBACK_INSIGHT = "Unable to generate insight at this time."


class InsightClient:
    """Asks the text model for a short insight about the month's progress."""

    def __init__(self, client: GeminiClient, model: str = "gemini-3-flash-preview"):
        self.client = client
        self.model = model

    async def generate(self, summary: str) -> Optional[str]:
        """
        Request an insight for a habit summary.

        Args:
            summary: Progress listing, e.g. "Meditation: 12/31, Read: 4/20"

        Returns:
            Insight text, or None if the model answered with nothing

        Raises:
            GeminiAPIError: if the request fails
        """
        prompt = INSIGHT_TEMPLATE.format(summary=summary)
        logger.info(f"Requesting insight from {self.model}")
        text = await self.client.generate_content(self.model, prompt)
        return text.strip() or None

    async def insight_or_fallback(self, summary: str) -> str:
        """Like generate(), but any failure or empty answer gives the fallback text."""
        try:
            text = await self.generate(summary)
        except Exception as e:
            logger.warning(f"Insight generation failed: {e}")
            return FALLBACK_INSIGHT

        if not text:
            logger.warning("Insight generation returned no text")
            return FALLBACK_INSIGHT
        return text

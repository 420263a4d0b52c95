"""Google Gemini AI provider implementation."""

import logging

from media_tracker.services.ai.client import AIClient, AIProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-flash-latest"


class GeminiClient(AIClient):
    """Google Gemini AI client using the google-genai SDK."""

    provider = AIProvider.GEMINI

    def __init__(self, api_key: str, model: str | None = None):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name (defaults to gemini-flash-latest).
        """
        try:
            from google import genai
            from google.genai import types
        except ImportError:
            raise ImportError(
                "google-genai package is required. Install with: pip install google-genai"
            )

        self.client = genai.Client(api_key=api_key)
        self._types = types
        self.model = model or DEFAULT_MODEL

    async def generate_text(self, system: str, prompt: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=self._types.GenerateContentConfig(system_instruction=system),
        )
        text = response.text or ""
        logger.info(f"Gemini response received ({len(text)} chars)")
        return text

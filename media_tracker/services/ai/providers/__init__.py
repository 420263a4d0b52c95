"""AI provider implementations."""

from media_tracker.services.ai.providers.anthropic import AnthropicClient
from media_tracker.services.ai.providers.gemini import GeminiClient
from media_tracker.services.ai.providers.openai import OpenAIClient

__all__ = ["AnthropicClient", "GeminiClient", "OpenAIClient"]

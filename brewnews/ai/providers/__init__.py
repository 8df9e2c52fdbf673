"""
Summarization providers and the factory that builds one from settings.
"""

from typing import Optional

from .base import SummarizationProvider, ProviderType, SUMMARY_PROMPT
from ...config.settings import BrewNewsSettings, SummarizationProviderName


def create_provider(settings: BrewNewsSettings) -> Optional[SummarizationProvider]:
    """Build the configured provider, or None when summarization is disabled.

    Raises:
        SummarizationError: If the provider library or API key is missing
    """
    config = settings.summarization

    if config.provider == SummarizationProviderName.GEMINI:
        from .gemini_provider import GeminiProvider
        return GeminiProvider(
            api_key=config.gemini_api_key,
            model_name=config.gemini_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    if config.provider == SummarizationProviderName.GROQ:
        from .groq_provider import GroqProvider
        return GroqProvider(
            api_key=config.groq_api_key,
            model_name=config.groq_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    return None


__all__ = [
    "SummarizationProvider",
    "ProviderType",
    "SUMMARY_PROMPT",
    "create_provider",
]

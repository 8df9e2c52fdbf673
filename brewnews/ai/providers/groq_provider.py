"""
Groq Summarization Provider
===========================

Groq chat-completions backend for release-note summarization, using JSON
response mode.
"""

from typing import Any

try:
    import groq
    from groq import AsyncGroq
    GROQ_AVAILABLE = True
except ImportError:
    GROQ_AVAILABLE = False
    groq = None
    AsyncGroq = None

from .base import SummarizationProvider, ProviderType
from ...database.models import SummaryResult
from ...utils.exceptions import SummarizationError, ErrorCode
from ...utils.logging import get_logger_for_component

SYSTEM_PROMPT = (
    "You extract structured release-note data from HTML and answer with JSON only."
)


class GroqProvider(SummarizationProvider):
    """Groq summarization provider."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "llama-3.3-70b-versatile",
        temperature: float = 0.1,
        max_tokens: int = 1024,
    ):
        """Initialize Groq provider.

        Args:
            api_key: Groq API key
            model_name: Model to use
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the response

        Raises:
            SummarizationError: If the Groq library is missing or no key is given
        """
        if not GROQ_AVAILABLE:
            raise SummarizationError(
                "Groq library not installed. Run: pip install groq",
                provider="groq",
                error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE,
                recoverable=False,
            )

        if not api_key:
            raise SummarizationError(
                "Groq API key is required",
                provider="groq",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                recoverable=False,
            )

        super().__init__(api_key, model_name, ProviderType.GROQ)

        # max_retries=0: one call per item per pipeline run
        self.async_client = AsyncGroq(api_key=api_key, max_retries=0)
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.logger = get_logger_for_component("groq_provider")
        self.logger.info(f"Groq provider initialized with model: {model_name}")

    async def summarize(self, html_content: str) -> SummaryResult:
        prompt = self._build_summary_prompt(html_content)

        try:
            response = await self._make_chat_completion(prompt)
        except groq.RateLimitError as e:
            raise SummarizationError(
                f"Groq rate limit exceeded: {e}", provider=self.name
            ) from e
        except groq.AuthenticationError as e:
            raise SummarizationError(
                "Invalid Groq API key",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            ) from e
        except groq.APIError as e:
            raise SummarizationError(
                f"Groq API error: {e}", provider=self.name
            ) from e

        if not response.choices:
            raise SummarizationError(
                "Groq returned no choices",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        return self._parse_summary_response(response.choices[0].message.content or "")

    async def _make_chat_completion(self, prompt: str) -> Any:
        return await self.async_client.chat.completions.create(
            model=self.model_name,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )

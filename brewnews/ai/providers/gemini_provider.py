"""
Google Gemini summarization provider.

Sends the release-note prompt to Gemini in JSON response mode and parses
the structured fields out of the answer.
"""

from typing import Any

from .base import SummarizationProvider, ProviderType
from ...database.models import SummaryResult
from ...utils.exceptions import SummarizationError, ErrorCode
from ...utils.logging import get_logger_for_component

try:
    import google.generativeai as genai
    GEMINI_AVAILABLE = True
except ImportError:
    genai = None
    GEMINI_AVAILABLE = False


class GeminiProvider(SummarizationProvider):
    """Google Gemini summarization provider."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.0-flash",
        temperature: float = 0.1,
        max_tokens: int = 1024,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google Gemini API key
            model_name: Model to use
            temperature: Sampling temperature
            max_tokens: Maximum output tokens

        Raises:
            SummarizationError: If the Gemini library is missing or no key is given
        """
        if not GEMINI_AVAILABLE:
            raise SummarizationError(
                "Google Generative AI library not installed. Run: pip install google-generativeai",
                provider="gemini",
                error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE,
                recoverable=False,
            )

        if not api_key:
            raise SummarizationError(
                "Gemini API key is required",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                recoverable=False,
            )

        super().__init__(api_key, model_name, ProviderType.GEMINI)

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name=model_name)
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.logger = get_logger_for_component("gemini_provider")
        self.logger.info(f"Gemini provider initialized with model: {model_name}")

    async def summarize(self, html_content: str) -> SummaryResult:
        prompt = self._build_summary_prompt(html_content)

        try:
            response = await self._make_gemini_request(prompt)
        except Exception as e:
            message = str(e).lower()
            if "api key" in message or "authentication" in message:
                code = ErrorCode.AI_INVALID_CREDENTIALS
            else:
                code = ErrorCode.AI_API_ERROR
            raise SummarizationError(
                f"Gemini API error: {e}", provider=self.name, error_code=code
            ) from e

        try:
            response_text = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or is empty
            raise SummarizationError(
                f"Gemini response blocked or empty: {e}",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            ) from e

        return self._parse_summary_response(response_text)

    async def _make_gemini_request(self, prompt: str) -> Any:
        return await self.model.generate_content_async(
            prompt,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
                response_mime_type="application/json",
            ),
        )

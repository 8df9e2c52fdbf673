"""
Base Summarization Provider Interface
=====================================

Abstract base class for the summarization collaborator: HTML in, structured
release-note fields out. Implementations call an LLM once per request and
never retry internally.
"""

import json
import re
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import ValidationError

from ...database.models import SummaryResult
from ...utils.exceptions import SummarizationError, ErrorCode


class ProviderType(str, Enum):
    """Available provider types."""
    GEMINI = "gemini"
    GROQ = "groq"


SUMMARY_PROMPT = """You are an expert at parsing HTML release notes to create a bulleted summary.
Your task is to extract the product name, sub-component (if any), title, publication date, and a summary of the changes.

Instructions:
1. **Product**: Identify the main product from the content (e.g., "Gemini", "VS Code").
2. **Sub-component**: Identify the sub-component if specified (e.g., "Code Assist", "IntelliJ").
3. **Title**: Extract the primary title of the release note.
4. **Publication Date**: Find the publication date and format it as YYYY-MM-DD.
5. **Summary**: Find the `<h2>What's Changed</h2>` heading, then find the `<ul>` list that immediately follows it. Extract the full text content of each `<li>` item within that list. If there is no such list, summarize the main changes as short bullet points.

Example Input HTML:
<h1>Gemini Code Assist for IntelliJ: Release on 2024-07-15</h1>
<h2>What's Changed</h2>
<ul>
  <li>Feature: This is a new feature.</li>
  <li>Fixed: A bug was fixed.</li>
  <li>Docs: Updated documentation.</li>
</ul>
<h3>Other Section</h3>
<p>Some other content.</p>

Example Output JSON:
{{
  "product": "Gemini",
  "subcomponent": "IntelliJ",
  "title": "Gemini Code Assist for IntelliJ: Release on 2024-07-15",
  "pubDate": "2024-07-15",
  "summary": [
    "Feature: This is a new feature.",
    "Fixed: A bug was fixed.",
    "Docs: Updated documentation."
  ]
}}

Respond with a single JSON object using exactly these keys and nothing else.

HTML Content to process:
{html_content}
"""


class SummarizationProvider(ABC):
    """Abstract base class for summarization provider implementations."""

    FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

    def __init__(self, api_key: str, model_name: str, provider_type: ProviderType):
        """Initialize provider.

        Args:
            api_key: API key for the provider
            model_name: Model to use for requests
            provider_type: Type of provider
        """
        self.api_key = api_key
        self.model_name = model_name
        self.provider_type = provider_type

    @property
    def name(self) -> str:
        return self.provider_type.value

    @abstractmethod
    async def summarize(self, html_content: str) -> SummaryResult:
        """Summarize one release note.

        Args:
            html_content: HTML fragment of a single item

        Returns:
            Structured fields; any of them may be missing

        Raises:
            SummarizationError: If the call fails or the response is unusable
        """

    def _build_summary_prompt(self, html_content: str) -> str:
        return SUMMARY_PROMPT.format(html_content=html_content)

    def _parse_summary_response(self, response_text: str) -> SummaryResult:
        """Parse the model's JSON answer.

        Tolerates Markdown code fences and prose around the JSON object.

        Raises:
            SummarizationError: If no valid JSON object can be recovered
        """
        if not response_text or not response_text.strip():
            raise SummarizationError(
                "Empty response from model",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        text = self.FENCE_PATTERN.sub("", response_text.strip())
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise SummarizationError(
                f"No JSON object in response: {text[:100]}",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        try:
            payload = json.loads(text[start:end + 1])
            return SummaryResult.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as e:
            raise SummarizationError(
                f"Invalid summary response: {e}",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            ) from e

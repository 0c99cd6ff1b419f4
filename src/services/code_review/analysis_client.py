"""
Analysis client.

Turns one submission into one request against the text-generation
endpoint and hands back the raw generated text. Failures of any kind
surface as ``TransportError``; nothing is retried here.
"""

from typing import Optional

from src.core.config import settings
from src.services.llm.base_client import BaseLLMClient
from src.services.llm.claude_client import ClaudeClient
from src.services.code_review.exceptions import TransportError
from src.services.code_review.prompt_builder import (
    build_analysis_prompt,
    CONNECTION_CHECK_PROMPT,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

CONNECTION_CHECK_TIMEOUT_SECONDS = 10


class AnalysisClient:
    """Sends code to the LLM and returns its raw answer."""

    def __init__(self, llm_client: Optional[BaseLLMClient] = None):
        self.llm_client = llm_client or ClaudeClient(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            max_tokens=settings.ANALYSIS_MAX_TOKENS,
            timeout=settings.ANALYSIS_TIMEOUT_SECONDS,
        )

    async def analyze(self, source_code: str, language: str, filename: str) -> str:
        """
        Request an analysis of ``source_code``.

        Args:
            source_code: Submitted code, already size-checked at submission
            language: One of the supported language tags
            filename: Original file name, used only for prompt context

        Returns:
            The model's raw text, expected to contain a JSON object

        Raises:
            TransportError: timeout, connection failure, non-success status
                or an empty response
        """
        prompt = build_analysis_prompt(source_code, language, filename)
        logger.info(
            f"Requesting analysis of {filename} ({language}, {len(source_code)} chars) "
            f"from {self.llm_client.provider_name}/{self.llm_client.model}"
        )

        response = await self.llm_client.generate_completion(prompt)

        content = response.get("content") or ""
        if not content.strip():
            raise TransportError(
                "Text-generation endpoint returned an empty response",
                provider=self.llm_client.provider_name,
            )

        usage = response.get("usage", {})
        logger.info(
            f"Analysis response received for {filename}: "
            f"{usage.get('input_tokens', 0)} input / {usage.get('output_tokens', 0)} output tokens, "
            f"stop_reason={response.get('stop_reason')}"
        )
        return content

    async def check_connection(self) -> bool:
        """Send a minimal prompt; True when the endpoint answers successfully."""
        try:
            await self.llm_client.generate_completion(
                CONNECTION_CHECK_PROMPT,
                max_tokens=50,
                timeout=CONNECTION_CHECK_TIMEOUT_SECONDS,
            )
            return True
        except TransportError as e:
            logger.error(f"Analysis endpoint connection check failed: {e}")
            return False

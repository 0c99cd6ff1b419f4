"""Anthropic Claude API client for code analysis."""
from typing import Optional, Dict, Any

import anthropic
from anthropic import AsyncAnthropic

from src.services.code_review.exceptions import TransportError
from src.utils.logging import get_logger
from .base_client import BaseLLMClient

logger = get_logger(__name__)


class ClaudeClient(BaseLLMClient):
    """Wrapper for the Anthropic Messages API with uniform error mapping."""
    
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        temperature: float = 0.0,
        timeout: int = 120
    ):
        super().__init__(api_key, model, max_tokens, temperature, timeout)
        # SDK-level retries are off: every failed call must reach the job executor
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
    
    @property
    def provider_name(self) -> str:
        """Return provider name."""
        return "claude"
        
    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Generate completion with Claude."""
        messages = [{"role": "user", "content": prompt}]
        request = {
            "model": self.model,
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
            "temperature": kwargs.get("temperature", self.temperature),
            "messages": messages,
        }
        if system_prompt:
            request["system"] = system_prompt
        if "timeout" in kwargs:
            request["timeout"] = kwargs["timeout"]

        try:
            response = await self.client.messages.create(**request)
        except anthropic.APITimeoutError as e:
            logger.error(f"Claude API timed out after {request.get('timeout', self.timeout)}s")
            raise TransportError(
                "Claude API request timed out",
                provider=self.provider_name,
                timed_out=True,
                cause=e,
            ) from e
        except anthropic.APIStatusError as e:
            logger.error(f"Claude API error: status={e.status_code} body={e.body}")
            raise TransportError(
                f"Claude API returned status {e.status_code}",
                status_code=e.status_code,
                provider=self.provider_name,
                cause=e,
            ) from e
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise TransportError(
                f"Claude API request failed: {e}",
                provider=self.provider_name,
                cause=e,
            ) from e

        text_blocks = [
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ]
        return {
            "content": "".join(text_blocks),
            "usage": {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            "model": response.model,
            "stop_reason": response.stop_reason
        }

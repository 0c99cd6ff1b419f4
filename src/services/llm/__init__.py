"""LLM service module for code analysis."""

from .base_client import BaseLLMClient
from .claude_client import ClaudeClient

__all__ = [
    "BaseLLMClient",
    "ClaudeClient",
]

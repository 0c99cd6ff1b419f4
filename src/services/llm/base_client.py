"""Base interface for LLM clients."""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients.

    Implementations make exactly one request per call and raise
    ``TransportError`` for every way that request can fail. Retrying is
    left to the caller.
    """
    
    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        timeout: int = 120
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
    
    @abstractmethod
    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Generate completion from the LLM.
        
        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            **kwargs: Per-call overrides (max_tokens, temperature, timeout)
            
        Returns:
            Dict with standardized response:
            {
                "content": str,
                "usage": {
                    "input_tokens": int,
                    "output_tokens": int
                },
                "model": str,
                "stop_reason": str
            }

        Raises:
            TransportError: on timeout, connection failure or non-success status
        """
        pass
    
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'claude')."""
        pass

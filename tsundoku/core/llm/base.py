"""
Base classes and data structures for LLM providers.

This module defines the abstract base class that all LLM providers must implement,
as well as common data structures like LLMResponse.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional
import httpx

from tsundoku.config import DEFAULT_REQUEST_TIMEOUT

# {"role": "system" | "user" | "assistant", "content": "..."}
Message = Dict[str, str]


@dataclass
class LLMResponse:
    """Response from LLM with token usage information"""
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    def __init__(self, model: str, timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the LLM provider.

        Args:
            model: Model name/identifier
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.model = model
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def generate(self, messages: List[Message]) -> LLMResponse:
        """
        Generate a complete response.

        Raises:
            LLMError: on any transport, status or decoding failure
        """
        pass

    @abstractmethod
    def generate_streaming(self, messages: List[Message]) -> AsyncIterator[str]:
        """
        Generate a response as text fragments in arrival order.

        Raises:
            LLMError: on any transport, status or decoding failure
        """
        pass

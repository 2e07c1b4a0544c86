"""
OpenAI-compatible provider implementation.

Works with the OpenAI API and compatible endpoints (OpenRouter, DeepSeek,
llama.cpp, LM Studio, vLLM, etc.) through /chat/completions.
"""

from typing import AsyncIterator, Dict, List, Optional
import json
import httpx

from ..base import LLMProvider, LLMResponse, Message
from tsundoku.config import ApiConfig
from tsundoku.core.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


def _status_error(status_code: int, body: str) -> LLMError:
    snippet = body[:500]
    if status_code in (401, 403):
        return LLMAuthenticationError(f"API rejected the key (HTTP {status_code})", {"body": snippet})
    if status_code == 429:
        return LLMRateLimitError("API rate limit reached (HTTP 429)", {"body": snippet})
    return LLMResponseError(f"API returned HTTP {status_code}", status_code, {"body": snippet})


def parse_sse_line(line: str) -> Optional[List[str]]:
    """
    Parse one server-sent event line.

    Returns:
        Content fragments carried by the line, an empty list for lines
        without content, or None when the stream is finished.
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return []
    data = line[len(SSE_DATA_PREFIX):].strip()
    if data == SSE_DONE:
        return None
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        return []

    fragments = []
    for choice in chunk.get("choices") or []:
        content = (choice.get("delta") or {}).get("content")
        if content:
            fragments.append(content)
    return fragments


class OpenAICompatibleProvider(LLMProvider):
    """OpenAI-compatible chat completion provider"""

    def __init__(self, api_config: ApiConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(api_config.model, api_config.timeout, transport)
        self.api_key = api_config.key
        self.api_endpoint = f"{api_config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(self, messages: List[Message], stream: bool) -> Dict:
        return {
            "model": self.model,
            "messages": messages,
            "stream": stream,
        }

    async def generate(self, messages: List[Message]) -> LLMResponse:
        """
        Generate text using an OpenAI compatible API.

        Args:
            messages: Role-tagged conversation

        Returns:
            LLMResponse with content and token usage info
        """
        client = await self._get_client()
        try:
            response = await client.post(
                self.api_endpoint,
                json=self._payload(messages, stream=False),
                headers=self._headers(),
            )
            response.raise_for_status()
            response_json = response.json()
        except httpx.TimeoutException as e:
            raise LLMConnectionError(f"Request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise _status_error(e.response.status_code, e.response.text) from e
        except httpx.DecodingError as e:
            raise LLMResponseError(f"Response body could not be decoded: {e}") from e
        except httpx.TransportError as e:
            raise LLMConnectionError(f"Connection failed: {e}") from e
        except httpx.RequestError as e:
            raise LLMConnectionError(f"Request failed: {e}") from e
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"Response is not valid JSON: {e}") from e

        try:
            content = response_json["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Unexpected response shape: {e}") from e

        usage = response_json.get("usage") or {}
        return LLMResponse(
            content=content,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
        )

    async def generate_streaming(self, messages: List[Message]) -> AsyncIterator[str]:
        """Stream content fragments from a server-sent event response."""
        client = await self._get_client()
        try:
            async with client.stream(
                "POST",
                self.api_endpoint,
                json=self._payload(messages, stream=True),
                headers=self._headers(),
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise _status_error(response.status_code, body)

                async for line in response.aiter_lines():
                    fragments = parse_sse_line(line)
                    if fragments is None:
                        break
                    for fragment in fragments:
                        yield fragment
        except httpx.TimeoutException as e:
            raise LLMConnectionError(f"Stream timed out: {e}") from e
        except httpx.DecodingError as e:
            raise LLMResponseError(f"Stream body could not be decoded: {e}") from e
        except httpx.TransportError as e:
            raise LLMConnectionError(f"Stream connection failed: {e}") from e
        except httpx.RequestError as e:
            raise LLMConnectionError(f"Stream request failed: {e}") from e


def create_llm_provider(api_config: ApiConfig) -> LLMProvider:
    """Factory for the provider described by api_config"""
    return OpenAICompatibleProvider(api_config)

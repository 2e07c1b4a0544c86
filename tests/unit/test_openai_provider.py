"""
Unit tests for the OpenAI-compatible provider, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from tsundoku.config import ApiConfig
from tsundoku.core.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
)
from tsundoku.core.llm.providers.openai import OpenAICompatibleProvider, parse_sse_line
from tsundoku.core.translator import FAILED_CHUNK_MARKER, Translator

API = ApiConfig(key="sk-test", base_url="https://llm.example/v1/", model="test-model", timeout=5)
MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "こんにちは"}]


def sse(*payloads):
    lines = [f"data: {json.dumps(p)}" if isinstance(p, dict) else f"data: {p}" for p in payloads]
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


def delta(text):
    return {"choices": [{"delta": {"content": text}}]}


def provider_for(handler):
    return OpenAICompatibleProvider(API, transport=httpx.MockTransport(handler))


class TestParseSseLine:
    """Decoding of individual event lines."""

    def test_content_fragment(self):
        """Should return the delta content."""
        assert parse_sse_line(f"data: {json.dumps(delta('Hi'))}") == ["Hi"]

    def test_done_marker(self):
        """Should signal the end of the stream."""
        assert parse_sse_line("data: [DONE]") is None

    @pytest.mark.parametrize("line", ["", ": keep-alive", "event: ping", "data: {broken", 'data: {"choices": []}'])
    def test_lines_without_content(self, line):
        """Should ignore comments, other fields and undecodable data."""
        assert parse_sse_line(line) == []

    def test_role_only_delta(self):
        """Should skip deltas that carry no text."""
        assert parse_sse_line('data: {"choices": [{"delta": {"role": "assistant"}}]}') == []


class TestGenerateStreaming:
    """Streaming chat completions."""

    @pytest.mark.asyncio
    async def test_yields_fragments_until_done(self):
        """Should yield fragments in order and stop at [DONE]."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=sse(delta("Hel"), delta("lo"), "[DONE]", delta("ignored")))

        async with provider_for(handler) as provider:
            fragments = [f async for f in provider.generate_streaming(MESSAGES)]

        assert fragments == ["Hel", "lo"]
        assert seen["url"] == "https://llm.example/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"] == {"model": "test-model", "messages": MESSAGES, "stream": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, error", [
        (401, LLMAuthenticationError),
        (403, LLMAuthenticationError),
        (429, LLMRateLimitError),
        (500, LLMResponseError),
    ])
    async def test_error_status_mapped(self, status, error):
        """Should map HTTP errors to provider errors."""
        provider = provider_for(lambda request: httpx.Response(status, text="nope"))

        with pytest.raises(error):
            async for _ in provider.generate_streaming(MESSAGES):
                pass
        await provider.close()

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Should wrap transport errors."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = provider_for(handler)
        with pytest.raises(LLMConnectionError):
            async for _ in provider.generate_streaming(MESSAGES):
                pass
        await provider.close()


class TestGenerate:
    """Non-streaming chat completions."""

    @pytest.mark.asyncio
    async def test_returns_content_and_usage(self):
        """Should return the message content and token counts."""
        body = {
            "choices": [{"message": {"role": "assistant", "content": '{"names": []}'}}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 4},
        }

        def handler(request):
            assert json.loads(request.content)["stream"] is False
            return httpx.Response(200, json=body)

        async with provider_for(handler) as provider:
            response = await provider.generate(MESSAGES)

        assert response.content == '{"names": []}'
        assert (response.prompt_tokens, response.completion_tokens) == (12, 4)

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        """Should raise when choices are missing."""
        async with provider_for(lambda request: httpx.Response(200, json={"choices": []})) as provider:
            with pytest.raises(LLMResponseError):
                await provider.generate(MESSAGES)

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        """Should raise when the body is not JSON."""
        async with provider_for(lambda request: httpx.Response(200, text="<html>")) as provider:
            with pytest.raises(LLMResponseError):
                await provider.generate(MESSAGES)

    @pytest.mark.asyncio
    async def test_rate_limit_status(self):
        """Should raise a rate limit error for HTTP 429."""
        async with provider_for(lambda request: httpx.Response(429, text="slow")) as provider:
            with pytest.raises(LLMRateLimitError):
                await provider.generate(MESSAGES)


def corrupt_gzip(request):
    return httpx.Response(200, content=b"not gzip", headers={"content-encoding": "gzip"})


def redirect_loop(request):
    raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)


class TestRequestErrorMapping:
    """httpx request errors outside the transport family."""

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        """Should raise a response error when the body cannot be decoded."""
        async with provider_for(corrupt_gzip) as provider:
            with pytest.raises(LLMResponseError):
                await provider.generate(MESSAGES)

    @pytest.mark.asyncio
    async def test_undecodable_stream(self):
        """Should raise a response error when the stream cannot be decoded."""
        async with provider_for(corrupt_gzip) as provider:
            with pytest.raises(LLMResponseError):
                async for _ in provider.generate_streaming(MESSAGES):
                    pass

    @pytest.mark.asyncio
    async def test_too_many_redirects(self):
        """Should raise a connection error for other request failures."""
        async with provider_for(redirect_loop) as provider:
            with pytest.raises(LLMConnectionError):
                await provider.generate(MESSAGES)
            with pytest.raises(LLMConnectionError):
                async for _ in provider.generate_streaming(MESSAGES):
                    pass

    @pytest.mark.asyncio
    async def test_translator_keeps_source_after_decoding_failures(self, translation_settings):
        """Should fall back to the failure marker rather than crash the run."""
        async with provider_for(corrupt_gzip) as provider:
            translator = Translator(provider, translation_settings)
            result = await translator.translate("本文")

        assert result == f"{FAILED_CHUNK_MARKER}\n本文"

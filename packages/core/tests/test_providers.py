"""Tests for AI provider implementations.

Shared behaviour (analyze, complete, error classification) lives in
BaseProvider and is tested once via a lightweight stub, not duplicated per
provider. Provider-specific tests cover only what differs between
implementations: the SDK client setup and _call_api.
"""

import types
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codeflow_core.errors import UpstreamError
from codeflow_core.providers import get_provider
from codeflow_core.providers.anthropic import AnthropicProvider
from codeflow_core.providers.base import BaseProvider, classify_exception
from codeflow_core.providers.openai import OpenAIProvider
from codeflow_core.request_builder import build_request


class _StubProvider(BaseProvider):
    """Minimal concrete subclass used to test BaseProvider shared methods."""

    def __init__(self, reply="{}", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.reply


class _StatusError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Shared behaviour: tested once through the stub, not per provider
# ---------------------------------------------------------------------------


class TestBaseProvider:
    @pytest.mark.asyncio
    async def test_analyze_sends_built_prompts(self):
        provider = _StubProvider(reply="raw text")
        request = build_request("x = 1", language="python")
        assert await provider.analyze(request) == "raw text"
        assert provider.calls == [(request.system_prompt, request.user_prompt)]

    @pytest.mark.asyncio
    async def test_failure_becomes_upstream_error(self):
        provider = _StubProvider(error=RuntimeError("connection reset"))
        with pytest.raises(UpstreamError) as exc:
            await provider.complete("s", "u")
        assert exc.value.code == "upstream"
        assert "connection reset" not in exc.value.user_message

    @pytest.mark.asyncio
    async def test_called_exactly_once_on_failure(self):
        provider = _StubProvider(error=RuntimeError("boom"))
        with pytest.raises(UpstreamError):
            await provider.complete("s", "u")
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_reply_is_upstream_error(self):
        with pytest.raises(UpstreamError):
            await _StubProvider(reply="").complete("s", "u")

    @pytest.mark.asyncio
    async def test_rate_limit_classified(self):
        provider = _StubProvider(error=_StatusError("slow down", 429))
        with pytest.raises(UpstreamError) as exc:
            await provider.complete("s", "u")
        assert exc.value.code == "rate_limited"
        assert "Too many requests" in exc.value.user_message


class TestClassifyException:
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_status_is_config(self, status):
        assert classify_exception(_StatusError("denied", status)) == "config"

    def test_429_is_rate_limited(self):
        assert classify_exception(_StatusError("x", 429)) == "rate_limited"

    def test_message_mentions_api_key(self):
        assert classify_exception(RuntimeError("Invalid API key provided")) == "config"

    def test_message_mentions_rate_limit(self):
        assert classify_exception(RuntimeError("rate limit exceeded")) == "rate_limited"

    def test_other_errors_are_upstream(self):
        assert classify_exception(_StatusError("overloaded", 529)) == "upstream"


class TestGetProvider:
    def test_unknown_model_raises(self):
        with pytest.raises(ValueError):
            get_provider({"model": "llama"})

    def test_anthropic_selected(self):
        provider = get_provider({"model": "anthropic", "anthropic_api_key": "k"})
        assert isinstance(provider, AnthropicProvider)

    def test_openai_selected_with_model_override(self):
        provider = get_provider({"model": "openai", "openai_api_key": "k", "model_name": "gpt-4o-mini"})
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"


# ---------------------------------------------------------------------------
# Provider-specific: only what differs between Anthropic and OpenAI
# ---------------------------------------------------------------------------


class TestAnthropicProvider:
    def test_raises_import_error_without_sdk(self):
        """AnthropicProvider.__init__ must raise if the anthropic package is absent."""
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError):
                AnthropicProvider(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicProvider.MODEL

    @pytest.mark.asyncio
    async def test_call_api_joins_text_blocks(self):
        from anthropic.types import TextBlock

        provider = AnthropicProvider(api_key="key")
        provider.client = MagicMock()
        provider.client.messages.create = AsyncMock(
            return_value=types.SimpleNamespace(
                content=[TextBlock(type="text", text='{"score": '), TextBlock(type="text", text="1}  ")]
            )
        )
        assert await provider.complete("sys", "user") == '{"score": 1}'
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "user"}]
        assert kwargs["max_tokens"] == AnthropicProvider.MAX_TOKENS


class TestOpenAIProvider:
    def test_raises_import_error_without_sdk(self):
        """OpenAIProvider.__init__ must raise if the openai package is absent."""
        import codeflow_core.providers.openai as openai_mod

        real_openai = openai_mod._AsyncOpenAI
        openai_mod._AsyncOpenAI = None
        try:
            with pytest.raises(ImportError):
                OpenAIProvider(api_key="key")
        finally:
            openai_mod._AsyncOpenAI = real_openai

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIProvider.MODEL

    def test_temperature_is_set(self):
        assert OpenAIProvider.TEMPERATURE == 0.2

    @pytest.mark.asyncio
    async def test_call_api_returns_message_content(self):
        provider = OpenAIProvider(api_key="key")
        message = types.SimpleNamespace(content="reply")
        provider.client = MagicMock()
        provider.client.chat.completions.create = AsyncMock(
            return_value=types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])
        )
        assert await provider.complete("sys", "user") == "reply"
        messages = provider.client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}

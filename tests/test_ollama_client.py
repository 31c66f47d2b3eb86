"""Unit tests for OllamaClient (src.ollama_client).

Tests cover:
- OllamaResponse model
- OllamaClient.__init__
- OllamaClient.chat (success, connect error, timeout, HTTP error, unexpected error)
- OllamaClient.chat_with_fallback
- Static helpers: _extract_text, _extract_duration_ms
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.ollama_client import OllamaClient, OllamaResponse


def _mock_http(post=None, get=None) -> AsyncMock:
    """An ``httpx.AsyncClient`` stand-in usable as an async context manager."""
    mock_client = AsyncMock()
    if post is not None:
        mock_client.post = post
    if get is not None:
        mock_client.get = get
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _chat_reply(content: str, model: str = "qwen2.5-coder:32b") -> MagicMock:
    mock_response = MagicMock()
    mock_response.json.return_value = {
        "model": model,
        "message": {"role": "assistant", "content": content},
        "total_duration": 2_000_000_000,
    }
    mock_response.raise_for_status = MagicMock()
    return mock_response


# ---------------------------------------------------------------------------
# OllamaResponse
# ---------------------------------------------------------------------------


class TestOllamaResponse:
    @pytest.mark.unit
    def test_defaults(self):
        resp = OllamaResponse()
        assert resp.text == ""
        assert resp.model == ""
        assert resp.duration_ms == 0.0
        assert resp.success is True
        assert resp.error is None

    @pytest.mark.unit
    def test_error_response(self):
        resp = OllamaResponse(success=False, error="Connection refused")
        assert resp.success is False
        assert resp.error == "Connection refused"


# ---------------------------------------------------------------------------
# OllamaClient.__init__
# ---------------------------------------------------------------------------


class TestOllamaClientInit:
    @pytest.mark.unit
    def test_defaults(self):
        client = OllamaClient()
        assert client.base_url == "http://localhost:11434"
        assert client.timeout == 120
        assert client.model == "qwen2.5-coder:32b"

    @pytest.mark.unit
    def test_trailing_slash_stripped(self):
        client = OllamaClient(base_url="http://host:1234/", timeout=60, model="m")
        assert client.base_url == "http://host:1234"
        assert client.timeout == 60
        assert client.model == "m"


# ---------------------------------------------------------------------------
# Static helpers
# ---------------------------------------------------------------------------


class TestStaticHelpers:
    @pytest.mark.unit
    def test_extract_text(self):
        data = {"message": {"role": "assistant", "content": "Hello World"}}
        assert OllamaClient._extract_text(data) == "Hello World"

    @pytest.mark.unit
    def test_extract_text_missing(self):
        assert OllamaClient._extract_text({}) == ""
        assert OllamaClient._extract_text({"message": None}) == ""

    @pytest.mark.unit
    def test_extract_duration_ms(self):
        data = {"total_duration": 1_500_000_000}  # 1.5 seconds in nanoseconds
        assert abs(OllamaClient._extract_duration_ms(data) - 1500.0) < 0.1

    @pytest.mark.unit
    def test_extract_duration_ms_missing(self):
        assert OllamaClient._extract_duration_ms({}) == 0.0


# ---------------------------------------------------------------------------
# OllamaClient.chat
# ---------------------------------------------------------------------------


class TestOllamaChat:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_chat(self):
        mock_client = _mock_http(post=AsyncMock(return_value=_chat_reply('  {"components": []}\n')))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await OllamaClient().chat("You design dashboards.", "Sales board")

        assert result.success is True
        assert result.text == '{"components": []}'
        assert result.model == "qwen2.5-coder:32b"
        assert result.duration_ms > 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_payload_shape(self):
        mock_client = _mock_http(post=AsyncMock(return_value=_chat_reply("ok")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            await OllamaClient().chat("  system text  ", "user text", model="custom")

        url = mock_client.post.call_args[0][0]
        payload = mock_client.post.call_args[1]["json"]
        assert url == "/api/chat"
        assert payload["model"] == "custom"
        assert payload["stream"] is False
        assert payload["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_system_prompt_omitted(self):
        mock_client = _mock_http(post=AsyncMock(return_value=_chat_reply("ok")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            await OllamaClient().chat("", "user text")

        payload = mock_client.post.call_args[1]["json"]
        assert payload["messages"] == [{"role": "user", "content": "user text"}]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connect_error(self):
        mock_client = _mock_http(post=AsyncMock(side_effect=httpx.ConnectError("Connection refused")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await OllamaClient().chat("s", "p")

        assert result.success is False
        assert "Cannot connect" in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        mock_client = _mock_http(post=AsyncMock(side_effect=httpx.TimeoutException("timed out")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await OllamaClient(timeout=30).chat("s", "p")

        assert result.success is False
        assert "timed out after 30s" in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_http_status_error(self):
        request = httpx.Request("POST", "http://localhost:11434/api/chat")
        response = httpx.Response(404, request=request, text="model not found")
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("not found", request=request, response=response)
        )
        mock_client = _mock_http(post=AsyncMock(return_value=mock_response))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await OllamaClient().chat("s", "p")

        assert result.success is False
        assert "HTTP 404" in result.error
        assert "model not found" in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        mock_client = _mock_http(post=AsyncMock(side_effect=RuntimeError("boom")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await OllamaClient().chat("s", "p")

        assert result.success is False
        assert "boom" in result.error


# ---------------------------------------------------------------------------
# OllamaClient.chat_with_fallback
# ---------------------------------------------------------------------------


class TestChatWithFallback:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_primary_succeeds(self):
        client = OllamaClient()
        client.chat = AsyncMock(return_value=OllamaResponse(text="ok", success=True))

        result = await client.chat_with_fallback("s", "p", primary_model="big", fallback_model="small")

        assert result.text == "ok"
        client.chat.assert_awaited_once_with("s", "p", model="big")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self):
        client = OllamaClient()
        client.chat = AsyncMock(side_effect=[
            OllamaResponse(success=False, error="oom"),
            OllamaResponse(text="small ok", success=True),
        ])

        result = await client.chat_with_fallback("s", "p", primary_model="big", fallback_model="small")

        assert result.text == "small ok"
        assert client.chat.await_args_list[1].kwargs["model"] == "small"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_fallback_configured(self):
        client = OllamaClient()
        client.chat = AsyncMock(return_value=OllamaResponse(success=False, error="oom"))

        result = await client.chat_with_fallback("s", "p", primary_model="big")

        assert result.success is False
        assert client.chat.await_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_same_model_not_retried(self):
        client = OllamaClient(model="same")
        client.chat = AsyncMock(return_value=OllamaResponse(success=False, error="oom"))

        await client.chat_with_fallback("s", "p", fallback_model="same")

        assert client.chat.await_count == 1


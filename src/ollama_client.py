"""Async client for the Ollama chat API.

Wraps Ollama's ``/api/chat`` endpoint with timeout
handling, structured responses, and a primary/fallback model wrapper.
Transport problems never raise: they come back as an ``OllamaResponse`` with
``success=False`` and a human-readable ``error``.

Typical usage::

    client = OllamaClient()
    resp = await client.chat("You design dashboards.", "A sales dashboard")
    print(resp.text)
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field


class OllamaResponse(BaseModel):
    """Structured response from an Ollama chat call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Server-side generation time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class OllamaClient:
    """Async client for the Ollama REST API.

    Every call opens a short-lived ``httpx.AsyncClient`` configured with the
    base URL and timeout.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: int = 120,
        model: str = "qwen2.5-coder:32b",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.model = model

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Pull the assistant message out of a non-streaming ``/api/chat`` reply."""
        message = data.get("message") or {}
        return message.get("content", "")

    @staticmethod
    def _extract_duration_ms(data: dict) -> float:
        """The API reports ``total_duration`` in nanoseconds."""
        ns = data.get("total_duration", 0)
        return ns / 1_000_000.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def chat(
        self,
        system: str,
        prompt: str,
        model: str | None = None,
    ) -> OllamaResponse:
        """Send one system message and one user message, return the reply.

        Args:
            system: System prompt.
            prompt: User prompt.
            model: Ollama model tag; defaults to the client's model.
        """
        model = model or self.model
        messages = []
        if system:
            messages.append({"role": "system", "content": system.strip()})
        messages.append({"role": "user", "content": prompt})
        payload = {"model": model, "messages": messages, "stream": False}

        try:
            async with self._client() as client:
                response = await client.post("/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
                return OllamaResponse(
                    text=self._extract_text(data).strip(),
                    model=data.get("model", model),
                    duration_ms=self._extract_duration_ms(data),
                    success=True,
                )
        except httpx.ConnectError:
            return OllamaResponse(
                model=model,
                success=False,
                error=f"Cannot connect to Ollama at {self.base_url}. Is the server running?",
            )
        except httpx.TimeoutException:
            return OllamaResponse(
                model=model,
                success=False,
                error=f"Request to Ollama timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return OllamaResponse(
                model=model,
                success=False,
                error=f"Ollama returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except Exception as exc:  # noqa: BLE001
            return OllamaResponse(
                model=model,
                success=False,
                error=f"Unexpected error during Ollama chat: {exc}",
            )

    async def chat_with_fallback(
        self,
        system: str,
        prompt: str,
        primary_model: str | None = None,
        fallback_model: str | None = None,
    ) -> OllamaResponse:
        """Try ``primary_model`` first; on failure retry once with ``fallback_model``."""
        result = await self.chat(system, prompt, model=primary_model)
        if result.success or not fallback_model or fallback_model == (primary_model or self.model):
            return result
        return await self.chat(system, prompt, model=fallback_model)

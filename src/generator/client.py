"""Generation client: talks to the external generator and secures a payload.

The generator boundary is any async callable
``generate(system_text, user_text) -> str`` that raises
:class:`GenerationError` on transport failure.  :class:`OllamaGenerator`
adapts :class:`~src.ollama_client.OllamaClient` to that shape.

:class:`GenerationClient` records every raw reply in the sidecar, checks that
a JSON object can be extracted, and retries once with a stricter
instruction when it cannot.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Awaitable, Callable, Optional

from rich.console import Console

from src.ollama_client import OllamaClient

from .errors import GenerationError, SpecFormatError
from .prompts import build_missing_prompt, build_retry_prompt
from .spec_parser import LenientSpecParser
from .store import RawResponseLog

console = Console()

# Signature: async (system_text, user_text) -> raw reply text
GenerateFn = Callable[[str, str], Awaitable[str]]


class OllamaGenerator:
    """Generator boundary backed by a local Ollama server."""

    def __init__(
        self,
        client: OllamaClient,
        model: str | None = None,
        fallback_model: str | None = None,
    ) -> None:
        self.client = client
        self.model = model
        self.fallback_model = fallback_model

    async def __call__(self, system_text: str, user_text: str) -> str:
        response = await self.client.chat_with_fallback(
            system_text,
            user_text,
            primary_model=self.model,
            fallback_model=self.fallback_model,
        )
        if not response.success:
            raise GenerationError(response.error or "generator call failed")
        return response.text


class GenerationClient:
    """Requests artifact-set specs from the generator.

    Parameters
    ----------
    generate:
        The external generator boundary.
    raw_log:
        Sidecar that receives every reply before parsing.  Optional.
    parser:
        Used only to check whether a reply carries an extractable payload.
    retries:
        Extra attempts after a reply with no payload (normally 1).
    """

    def __init__(
        self,
        generate: GenerateFn,
        raw_log: Optional[RawResponseLog] = None,
        parser: Optional[LenientSpecParser] = None,
        retries: int = 1,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.generate = generate
        self.raw_log = raw_log
        self.parser = parser or LenientSpecParser()
        self.retries = retries
        self.calls = 0

    async def request_spec(
        self,
        system_text: str,
        user_text: str,
        *,
        label: str = "spec",
        retries: int | None = None,
    ) -> str:
        """Return a raw reply that contains an extractable JSON object.

        Raises:
            GenerationError: when the generator fails, or when every attempt
                (``1 + retries``) came back without a payload.
        """
        limit = self.retries if retries is None else retries
        prompt = user_text
        for attempt in range(limit + 1):
            self.calls += 1
            raw = await self.generate(system_text, prompt)
            if self.raw_log is not None:
                path = await self.raw_log.record(f"{label}-attempt{attempt + 1}", raw)
                raw_note = f" Raw reply saved to {path}."
            else:
                raw_note = ""

            try:
                self.parser.extract(raw)
                return raw
            except SpecFormatError:
                console.print(f"[bold red]Generator returned no JSON block.{raw_note}[/bold red]")

            if attempt < limit:
                console.print("[yellow]Retrying with a stricter prompt...[/yellow]")
                prompt = build_retry_prompt(user_text)

        raise GenerationError(
            f"generator returned no JSON payload after {limit + 1} attempt(s)",
            attempts=limit + 1,
        )

    async def request_named_spec(
        self,
        names: Iterable[str],
        system_text: str,
        user_text: str,
        *,
        label: str = "missing",
        retries: int | None = None,
    ) -> str:
        """Second-pass variant: ask only for the components listed in *names*."""
        prompt = build_missing_prompt(user_text, names)
        return await self.request_spec(system_text, prompt, label=label, retries=retries)

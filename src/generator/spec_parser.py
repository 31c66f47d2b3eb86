"""Tolerant parsing of the generator's raw reply into a :class:`ProjectSpec`.

The reply is untrusted text: it may be wrapped in Markdown fences, preceded
or followed by commentary, and use JSON5 conveniences such as trailing
commas, unquoted keys or single-quoted strings.  Parsing happens in two
steps: a balanced brace scan locates the first top-level object, then
``json5`` reads it.
"""

from __future__ import annotations

import re
from typing import Any

import json5

from .errors import SpecFormatError
from .models import ArtifactSpec, ProjectSpec, strip_code_fences


_CONTEXT_RADIUS = 40
_LINE_PATTERN = re.compile(r"(?:<string>:|line )(\d+)")
_COLUMN_PATTERN = re.compile(r"column (\d+)")


def find_payload(text: str) -> str | None:
    """Return the first balanced ``{...}`` object in *text*, or ``None``.

    Braces inside single- or double-quoted strings and inside JSON5 ``//``
    and ``/* */`` comments are ignored, so commentary containing stray braces
    or apostrophes does not confuse the scan.  If an opening brace is never
    closed, scanning resumes at the next one.
    """
    start = text.find("{")
    while start != -1:
        end = _scan_object(text, start)
        if end is not None:
            return text[start:end]
        start = text.find("{", start + 1)
    return None


def _scan_object(text: str, start: int) -> int | None:
    depth = 0
    quote: str | None = None
    escaped = False
    index = start
    while index < len(text):
        char = text[index]
        index += 1
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if text.startswith("//", index - 1):
            newline = text.find("\n", index)
            index = len(text) if newline == -1 else newline + 1
        elif text.startswith("/*", index - 1):
            close = text.find("*/", index + 1)
            if close == -1:
                return None
            index = close + 2
        elif char in ("'", '"'):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


class LenientSpecParser:
    """Extracts and parses the structured payload of a generator reply."""

    def extract(self, raw_text: str) -> str:
        """Return the payload substring of *raw_text*.

        Raises:
            SpecFormatError: if no brace-delimited object can be found.
        """
        payload = find_payload(strip_code_fences(raw_text))
        if payload is None:
            raise SpecFormatError("generator reply contains no JSON object")
        return payload

    def load(self, raw_text: str) -> dict[str, Any]:
        """Extract the payload and decode it with ``json5``."""
        payload = self.extract(raw_text)
        try:
            data = json5.loads(payload)
        except ValueError as exc:
            raise SpecFormatError(
                f"could not parse generator JSON: {exc}",
                context=_error_context(payload, exc),
            ) from exc
        if not isinstance(data, dict):
            raise SpecFormatError("generator payload is not an object")
        return data

    def parse(self, raw_text: str, *, require_root: bool = True) -> ProjectSpec:
        """Parse *raw_text* into a :class:`ProjectSpec`.

        Args:
            raw_text: The generator reply, verbatim.
            require_root: When ``True`` (first pass) the payload must carry a
                ``components`` list and an ``app`` object.  The second pass
                only asks for components, so both become optional there.

        Raises:
            SpecFormatError: when the payload is missing, malformed, or lacks
                required fields.
        """
        data = self.load(raw_text)

        raw_components = data.get("components")
        if not isinstance(raw_components, list):
            if require_root:
                raise SpecFormatError("payload is missing the 'components' list")
            raw_components = []

        components: list[ArtifactSpec] = []
        for index, entry in enumerate(raw_components):
            try:
                components.append(ArtifactSpec.from_payload(entry))
            except ValueError as exc:
                raise SpecFormatError(f"components[{index}] is invalid: {exc}") from exc

        raw_root = data.get("app", data.get("root"))
        root: ArtifactSpec | None = None
        if raw_root is not None:
            try:
                root = ArtifactSpec.from_payload(raw_root, default_filename="App.vue")
            except ValueError as exc:
                raise SpecFormatError(f"'app' entry is invalid: {exc}") from exc
        elif require_root:
            raise SpecFormatError("payload is missing the 'app' object")

        return ProjectSpec(components=components, root=root)


def _error_context(payload: str, exc: Exception) -> str:
    """Slice of *payload* around the position reported by a json5 error."""
    position = _error_position(payload, str(exc))
    if position is None:
        return ""
    return payload[max(0, position - _CONTEXT_RADIUS):position + _CONTEXT_RADIUS]


def _error_position(payload: str, message: str) -> int | None:
    line_match = _LINE_PATTERN.search(message)
    column_match = _COLUMN_PATTERN.search(message)
    if line_match is None or column_match is None:
        return None
    line, column = int(line_match.group(1)), int(column_match.group(1))
    lines = payload.splitlines(keepends=True)
    if line < 1 or line > len(lines):
        return None
    return sum(len(chunk) for chunk in lines[: line - 1]) + max(column - 1, 0)

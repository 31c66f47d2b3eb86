"""Single-file component (``.vue``) structure: block scanning and grammar check.

A component is a sequence of top-level ``<template>``, ``<script>`` and
``<style>`` blocks.  :func:`parse_sfc` splits the source into blocks and
checks the template body for well-nested markup, raising
:class:`SFCSyntaxError` on the first problem.  The span helpers are used by
the validator (to splice a repaired template back in) and by the reference
scanners, which must keep working on components that fail the check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .balancer import VOID_ELEMENTS, tokenize
from .errors import SFCSyntaxError


_BLOCK_OPEN = re.compile(r"<(template|script|style)\b([^>]*)>", re.IGNORECASE)
_TEMPLATE_TAG = re.compile(r"<template\b(?:[^>\"']|\"[^\"]*\"|'[^']*')*?(/?)>|</template\s*>", re.IGNORECASE)
_RAW_CLOSE = {
    "script": re.compile(r"</script\s*>", re.IGNORECASE),
    "style": re.compile(r"</style\s*>", re.IGNORECASE),
}
_TOP_LEVEL_RAW_OPEN = re.compile(r"<(script|style)\b", re.IGNORECASE)


@dataclass
class SFCBlock:
    """One top-level block of a component."""

    type: str
    attrs: str
    start: int  # offset of the opening tag
    content_start: int
    content_end: int
    end: int  # offset just past the closing tag
    content: str = ""

    @property
    def is_setup(self) -> bool:
        return self.type == "script" and re.search(r"\bsetup\b", self.attrs) is not None


@dataclass
class SFCDescriptor:
    """Parsed block layout of a component."""

    template: SFCBlock | None = None
    script: SFCBlock | None = None
    script_setup: SFCBlock | None = None
    styles: list[SFCBlock] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Template span helpers
# ---------------------------------------------------------------------------

def _match_template_close(source: str, body_start: int) -> int | None:
    """Return the offset of the ``</template>`` that closes the block opened before *body_start*."""
    depth = 1
    for match in _TEMPLATE_TAG.finditer(source, body_start):
        if match.group(0).startswith("</"):
            depth -= 1
            if depth == 0:
                return match.start()
        elif not match.group(1):
            depth += 1
    return None


def find_template_span(source: str) -> tuple[int, int] | None:
    """Locate the inner span ``(start, end)`` of the top-level template block.

    Nested ``<template v-slot>`` elements are matched by depth.  When a nested
    template is left open, the last ``</template>`` before the first top-level
    ``<script>``/``<style>`` block is taken as the block's end.  Returns
    ``None`` when there is no template block or no closing tag at all.
    """
    opener = re.search(r"<template\b[^>]*>", source, re.IGNORECASE)
    if opener is None:
        return None
    body_start = opener.end()
    close = _match_template_close(source, body_start)
    if close is not None:
        return body_start, close

    raw = _TOP_LEVEL_RAW_OPEN.search(source, body_start)
    limit = raw.start() if raw else len(source)
    closes = [m.start() for m in re.finditer(r"</template\s*>", source[:limit], re.IGNORECASE)]
    closes = [c for c in closes if c >= body_start]
    if not closes:
        return None
    return body_start, closes[-1]


def template_region_span(source: str) -> tuple[int, int] | None:
    """Best-effort template span, even for components that fail :func:`parse_sfc`.

    Falls back to everything between ``<template>`` and the first top-level
    ``<script>``/``<style>`` block when the closing tag is missing.
    """
    span = find_template_span(source)
    if span is not None:
        return span
    opener = re.search(r"<template\b[^>]*>", source, re.IGNORECASE)
    if opener is None:
        return None
    raw = _TOP_LEVEL_RAW_OPEN.search(source, opener.end())
    return opener.end(), raw.start() if raw else len(source)


def template_region(source: str) -> str:
    """Text of :func:`template_region_span`, or ``""`` without a template."""
    span = template_region_span(source)
    return source[span[0]:span[1]] if span else ""


# ---------------------------------------------------------------------------
# Grammar check
# ---------------------------------------------------------------------------

def check_markup(fragment: str, base_offset: int = 0) -> None:
    """Raise :class:`SFCSyntaxError` unless *fragment* is well nested."""
    stack: list[tuple[str, int]] = []
    for token in tokenize(fragment):
        if token.kind == "comment" and not token.terminated:
            raise SFCSyntaxError("Unterminated comment", base_offset + token.start)
        if token.kind == "open":
            stack.append((token.name, base_offset + token.start))
        elif token.kind == "close":
            if token.name.lower() in VOID_ELEMENTS:
                raise SFCSyntaxError(f"Invalid end tag </{token.name}>", base_offset + token.start)
            if stack and stack[-1][0] == token.name:
                stack.pop()
                continue
            if any(name == token.name for name, _ in stack):
                name, offset = stack[-1]
                raise SFCSyntaxError(f"Element <{name}> is missing end tag", offset)
            raise SFCSyntaxError(f"Invalid end tag </{token.name}>", base_offset + token.start)
    if stack:
        name, offset = stack[-1]
        raise SFCSyntaxError(f"Element <{name}> is missing end tag", offset)


def parse_sfc(source: str) -> SFCDescriptor:
    """Split *source* into blocks and verify its structure.

    Raises:
        SFCSyntaxError: on duplicate blocks, unclosed blocks, a component
            with neither template nor script, or badly nested template markup.
    """
    descriptor = SFCDescriptor()
    pos = 0
    while True:
        match = _BLOCK_OPEN.search(source, pos)
        if match is None:
            break
        block_type = match.group(1).lower()
        attrs = match.group(2)
        content_start = match.end()

        if block_type == "template":
            if attrs.rstrip().endswith("/"):
                raise SFCSyntaxError("Top-level <template> cannot be self-closing", match.start())
            content_end = _match_template_close(source, content_start)
            if content_end is None:
                raise SFCSyntaxError("Element <template> is missing end tag", match.start())
            close = _TEMPLATE_TAG.match(source, content_end)
            end = close.end() if close else content_end
        else:
            close = _RAW_CLOSE[block_type].search(source, content_start)
            if close is None:
                raise SFCSyntaxError(f"Element <{block_type}> is missing end tag", match.start())
            content_end, end = close.start(), close.end()

        block = SFCBlock(
            type=block_type,
            attrs=attrs,
            start=match.start(),
            content_start=content_start,
            content_end=content_end,
            end=end,
            content=source[content_start:content_end],
        )
        _attach(descriptor, block)
        pos = end

    if descriptor.template is None and descriptor.script is None and descriptor.script_setup is None:
        raise SFCSyntaxError(
            "At least one <template> or <script> is required in a single file component."
        )
    if descriptor.template is not None:
        check_markup(descriptor.template.content, descriptor.template.content_start)
    return descriptor


def _attach(descriptor: SFCDescriptor, block: SFCBlock) -> None:
    if block.type == "template":
        if descriptor.template is not None:
            raise SFCSyntaxError(
                "Single file component can contain only one <template> element", block.start
            )
        descriptor.template = block
    elif block.type == "script":
        if block.is_setup:
            if descriptor.script_setup is not None:
                raise SFCSyntaxError(
                    "Single file component can contain only one <script setup> element", block.start
                )
            descriptor.script_setup = block
        else:
            if descriptor.script is not None:
                raise SFCSyntaxError(
                    "Single file component can contain only one <script> element", block.start
                )
            descriptor.script = block
    else:
        descriptor.styles.append(block)

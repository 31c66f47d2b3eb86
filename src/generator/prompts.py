"""Prompt text sent to the external generator."""

from __future__ import annotations

from collections.abc import Iterable

from src.scaffolder.templates import TemplateRenderer


RETRY_INSTRUCTION = (
    "IMPORTANT: Return ONLY the JSON, without any explanation, introduction or additional text."
)


def build_system_prompt(style_hints: Iterable[str], renderer: TemplateRenderer | None = None) -> str:
    """Render the system prompt for the given style libraries."""
    renderer = renderer or TemplateRenderer()
    return renderer.render("prompts/system_prompt.j2", {"styles": sorted(style_hints)}).strip()


def build_user_prompt(description: str) -> str:
    return f'Dashboard description: "{description}"'


def build_retry_prompt(user_text: str) -> str:
    """User text for the single retry after a reply with no JSON payload."""
    return f"{user_text}\n\n{RETRY_INSTRUCTION}"


def build_missing_prompt(user_text: str, names: Iterable[str]) -> str:
    """User text asking only for the listed components (second pass)."""
    listing = "\n".join(f"- {name}.vue" for name in sorted(names))
    return (
        f"{user_text}\n\n"
        "Generate ONLY the following Vue components as valid JSON "
        "(no Markdown fences), using the same structure with a \"components\" list:\n"
        f"{listing}"
    )

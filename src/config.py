"""Dashgen configuration.

Centralised, typed configuration for the generation pipeline. All settings
use Pydantic v2 models so they can be validated at construction time and
read from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


DEFAULT_STYLES: list[str] = ["tailwind", "element-plus"]


class OllamaConfig(BaseModel):
    """Configuration for the Ollama server that plays the external generator."""

    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="qwen2.5-coder:32b")
    fallback_model: str = Field(default="qwen2.5-coder:14b")
    timeout: int = Field(default=300, ge=10, description="Per-request timeout in seconds")


class GenerationConfig(BaseModel):
    """Bounds for the self-healing generation loop."""

    max_validation_attempts: int = Field(
        default=3, ge=1, description="Grammar checks per component before persisting it degraded"
    )
    generation_retries: int = Field(
        default=1, ge=0, description="Retries after a reply that carries no JSON payload"
    )
    max_passes: int = Field(
        default=2, ge=1, le=2, description="Generation passes; the second one asks only for missing components"
    )
    default_styles: list[str] = Field(default_factory=lambda: list(DEFAULT_STYLES))


class Config(BaseModel):
    """Global dashgen configuration.

    Instances are typically created once by the CLI entry point and passed
    to ``Pipeline``.
    """

    output_dir: Path = Field(default=Path("./workspace"))
    meta_dir: str = Field(default=".dashgen")
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def meta_path(self) -> Path:
        """Root of the ``.dashgen/`` metadata directory inside the output."""
        return self.output_dir / self.meta_dir

    @property
    def raw_responses_dir(self) -> Path:
        """Directory holding the raw generator reply sidecar."""
        return self.meta_path / "raw-responses"

    def project_dir(self, run_id: str) -> Path:
        """Directory of one generated project, e.g. ``workspace/project-1700000000000``."""
        return self.output_dir / f"project-{run_id}"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            DASHGEN_OUTPUT_DIR, DASHGEN_OLLAMA_URL, DASHGEN_OLLAMA_MODEL,
            DASHGEN_OLLAMA_FALLBACK_MODEL, DASHGEN_OLLAMA_TIMEOUT,
            DASHGEN_MAX_VALIDATION_ATTEMPTS, DASHGEN_GENERATION_RETRIES,
            DASHGEN_MAX_PASSES, DASHGEN_STYLES.
        """
        ollama_kwargs: dict[str, Any] = {}
        if os.environ.get("DASHGEN_OLLAMA_URL"):
            ollama_kwargs["url"] = os.environ["DASHGEN_OLLAMA_URL"]
        if os.environ.get("DASHGEN_OLLAMA_MODEL"):
            ollama_kwargs["model"] = os.environ["DASHGEN_OLLAMA_MODEL"]
        if os.environ.get("DASHGEN_OLLAMA_FALLBACK_MODEL"):
            ollama_kwargs["fallback_model"] = os.environ["DASHGEN_OLLAMA_FALLBACK_MODEL"]
        if os.environ.get("DASHGEN_OLLAMA_TIMEOUT"):
            ollama_kwargs["timeout"] = int(os.environ["DASHGEN_OLLAMA_TIMEOUT"])

        generation_kwargs: dict[str, Any] = {}
        if os.environ.get("DASHGEN_MAX_VALIDATION_ATTEMPTS"):
            generation_kwargs["max_validation_attempts"] = int(os.environ["DASHGEN_MAX_VALIDATION_ATTEMPTS"])
        if os.environ.get("DASHGEN_GENERATION_RETRIES"):
            generation_kwargs["generation_retries"] = int(os.environ["DASHGEN_GENERATION_RETRIES"])
        if os.environ.get("DASHGEN_MAX_PASSES"):
            generation_kwargs["max_passes"] = int(os.environ["DASHGEN_MAX_PASSES"])
        if os.environ.get("DASHGEN_STYLES"):
            generation_kwargs["default_styles"] = [
                s.strip() for s in os.environ["DASHGEN_STYLES"].split(",") if s.strip()
            ]

        return cls(
            output_dir=Path(os.environ.get("DASHGEN_OUTPUT_DIR", "./workspace")),
            ollama=OllamaConfig(**ollama_kwargs),
            generation=GenerationConfig(**generation_kwargs),
        )

"""Pydantic v2 models for the dashboard generation pipeline.

Defines the request built from user input, the artifact and project specs
produced by the external generator, and the result records returned by the
balancing, validation and orchestration steps.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


_FENCE_OPEN = re.compile(r"^\s*```[\w-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove one pair of surrounding Markdown code fences, if present."""
    stripped = text.strip()
    stripped = _FENCE_OPEN.sub("", stripped, count=1)
    stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class WarningKind(str, Enum):
    """Non-fatal conditions surfaced on the final run summary."""
    VALIDATION_DEGRADED = "validation_degraded"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    DUPLICATE_ARTIFACT = "duplicate_artifact"
    SHADOWED_ARTIFACT = "shadowed_artifact"
    MISSING_COMPONENTS = "missing_components"


class Stage(str, Enum):
    """States of the orchestrator's bounded state machine."""
    REQUESTING = "requesting"
    PARSING = "parsing"
    GENERATING = "generating"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    STUBBING = "stubbing"
    ASSEMBLING = "assembling"
    DONE = "done"


# ---------------------------------------------------------------------------
# Request & artifact models
# ---------------------------------------------------------------------------

class GenerationRequest(BaseModel):
    """What the user asked for. Built once from CLI input and never changed."""
    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1, description="Natural-language dashboard description")
    style_hints: frozenset[str] = Field(
        default_factory=frozenset, description="Style libraries the generator should use"
    )

    @classmethod
    def from_cli(cls, description: str, styles: str | None, default_styles: list[str]) -> "GenerationRequest":
        """Build a request from the raw ``--styles`` comma-separated string."""
        if styles is None:
            hints = list(default_styles)
        else:
            hints = [s.strip() for s in styles.split(",") if s.strip()]
        return cls(description=description.strip(), style_hints=frozenset(hints))


class ArtifactSpec(BaseModel):
    """One generated source file: a component or the application root.

    ``raw_content`` holds the whole single-file component (template, script
    and optional style blocks).  Instances are immutable; repairs produce a
    new instance via :meth:`with_content`.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Artifact name without extension, e.g. 'Header'")
    raw_content: str = Field(default="", description="Full file content")
    filename: Optional[str] = Field(
        default=None, description="Original filename reported by the generator"
    )

    @field_validator("name")
    @classmethod
    def _strip_path_and_extension(cls, value: str) -> str:
        stem = Path(value.strip().replace("\\", "/")).stem
        if not stem:
            raise ValueError(f"invalid artifact name: {value!r}")
        return stem

    @property
    def file_name(self) -> str:
        """File name used when persisting, e.g. ``Header.vue``."""
        if self.filename:
            name = Path(self.filename.replace("\\", "/")).name
            return name if Path(name).suffix else f"{name}.vue"
        return f"{self.name}.vue"

    def with_content(self, content: str) -> "ArtifactSpec":
        """Return a copy carrying *content*; the identity is unchanged."""
        return self.model_copy(update={"raw_content": content})

    @classmethod
    def from_payload(cls, entry: Any, default_filename: str | None = None) -> "ArtifactSpec":
        """Build an artifact from one entry of the generator's JSON payload.

        Accepts ``{"filename": ..., "content": ...}`` or ``{"name": ..., ...}``.
        Raises ``ValueError`` when neither a name nor a default is available.
        """
        if not isinstance(entry, dict):
            raise ValueError(f"artifact entry must be an object, got {type(entry).__name__}")
        filename = entry.get("filename") or entry.get("name") or default_filename
        if not filename or not isinstance(filename, str):
            raise ValueError("artifact entry has no filename")
        content = entry.get("content", "")
        if not isinstance(content, str):
            content = str(content)
        return cls(name=filename, raw_content=strip_code_fences(content), filename=filename)


class ProjectSpec(BaseModel):
    """The generator's unit of output: components in generation order plus the root."""
    components: list[ArtifactSpec] = Field(default_factory=list)
    root: Optional[ArtifactSpec] = Field(default=None, description="Application root (App.vue)")

    def duplicate_names(self) -> list[str]:
        """Names that appear more than once in ``components``."""
        seen: set[str] = set()
        dupes: list[str] = []
        for comp in self.components:
            if comp.name in seen and comp.name not in dupes:
                dupes.append(comp.name)
            seen.add(comp.name)
        return dupes

    def unique_components(self) -> list[ArtifactSpec]:
        """Collapse duplicates, last write wins, keeping first-seen order."""
        latest: dict[str, ArtifactSpec] = {}
        for comp in self.components:
            latest[comp.name] = comp
        return list(latest.values())


# ---------------------------------------------------------------------------
# Step results
# ---------------------------------------------------------------------------

class BalanceResult(BaseModel):
    """Output of the markup balancer."""
    repaired: str
    was_modified: bool = False


class ValidationResult(BaseModel):
    """Output of the structural validator for one artifact."""
    ok: bool
    content: str
    last_error: Optional[str] = None
    attempts: int = 0


class PipelineWarning(BaseModel):
    """A non-fatal condition attached to the run summary."""
    kind: WarningKind
    name: str = ""
    message: str = ""


class RunSummary(BaseModel):
    """Everything a caller needs to know about a finished run."""
    project_dir: str = ""
    generated: list[str] = Field(default_factory=list, description="Names produced by the generator")
    stubbed: list[str] = Field(default_factory=list, description="Names filled with placeholders")
    degraded: list[str] = Field(default_factory=list, description="Artifacts persisted despite grammar errors")
    root_file: str = ""
    generation_passes: int = 0
    external_calls: int = 0
    warnings: list[PipelineWarning] = Field(default_factory=list)
    missing_after_run: list[str] = Field(default_factory=list)
    success: bool = False

    def warn(self, kind: WarningKind, name: str = "", message: str = "") -> PipelineWarning:
        warning = PipelineWarning(kind=kind, name=name, message=message)
        self.warnings.append(warning)
        return warning

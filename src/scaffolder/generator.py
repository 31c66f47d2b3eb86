"""Dashboard project scaffolding.

Renders the Vite + Vue 3 skeleton (``package.json``, ``index.html``,
``vite.config.js``, ``src/main.js``, ``src/style.css`` and, for Tailwind,
its config files) into a run's project directory.  Generated components are
written into ``src/components/`` afterwards by the pipeline.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .templates import TemplateRenderer


_TAILWIND_ONLY = ["tailwind.config", "postcss.config"]


class ScaffoldConfig(BaseModel):
    """What the skeleton needs to know about the project."""

    name: str = Field(..., description="Project name (used for package.json)")
    styles: list[str] = Field(default_factory=list, description="Style libraries requested")
    root_file: str = Field(default="App.vue", description="Root component file under src/")


class ProjectScaffolder:
    """Writes the static project files around the generated components."""

    def __init__(self, config: ScaffoldConfig, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    async def generate(self, project_root: str | Path) -> list[Path]:
        """Render the skeleton into *project_root* and return the written files."""
        root = Path(project_root)
        await asyncio.to_thread((root / "src" / "components").mkdir, parents=True, exist_ok=True)

        skip = [] if "tailwind" in self.config.styles else list(_TAILWIND_ONLY)
        return await self.renderer.render_tree(
            "vue-dashboard", root, self._build_context(), skip_patterns=skip
        )

    def _build_context(self) -> dict[str, Any]:
        return {
            "project_name": self.config.name,
            "styles": sorted(self.config.styles),
            "root_file": self.config.root_file,
        }

"""On-disk persistence for generated artifacts and raw generator replies.

``ArtifactStore`` keeps components under ``<project>/src/components/`` and
the root under ``<project>/src/``.  File I/O runs in a worker thread so the
pipeline's event loop is never blocked.

``RawResponseLog`` is the debugging sidecar: every generator reply is
written verbatim, once, before anything tries to parse it.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path


_SAFE_LABEL = re.compile(r"[^A-Za-z0-9_-]+")


class ArtifactStore:
    """Filesystem-backed artifact persistence for one project directory."""

    EXTENSION = ".vue"

    def __init__(self, project_dir: str | Path) -> None:
        self.project_dir = Path(project_dir)

    @property
    def components_dir(self) -> Path:
        return self.project_dir / "src" / "components"

    @property
    def root_dir(self) -> Path:
        return self.project_dir / "src"

    def artifact_path(self, name: str) -> Path:
        return self.components_dir / f"{name}{self.EXTENSION}"

    async def write_artifact(self, name: str, content: str) -> Path:
        """Write (or overwrite) the component called *name*."""
        path = self.artifact_path(name)
        await asyncio.to_thread(_write_text, path, content)
        return path

    async def read_artifact(self, name: str) -> str:
        """Return the persisted content of component *name*.

        Raises:
            FileNotFoundError: if the component was never written.
        """
        return await asyncio.to_thread(self.artifact_path(name).read_text, encoding="utf-8")

    async def list_artifact_names(self) -> set[str]:
        """Names of every persisted component."""
        return await asyncio.to_thread(self._scan_names)

    async def read_all(self) -> dict[str, str]:
        """Map every persisted component name to its content."""
        names = await self.list_artifact_names()
        return {name: await self.read_artifact(name) for name in sorted(names)}

    async def write_root(self, filename: str, content: str) -> Path:
        """Write the application root (e.g. ``App.vue``) under ``src/``."""
        path = self.root_dir / Path(filename).name
        await asyncio.to_thread(_write_text, path, content)
        return path

    def _scan_names(self) -> set[str]:
        if not self.components_dir.is_dir():
            return set()
        return {p.stem for p in self.components_dir.glob(f"*{self.EXTENSION}") if p.is_file()}


class RawResponseLog:
    """Write-once record of raw generator replies.

    Each reply goes to ``<directory>/<NNN>-<label>.txt`` (created exclusively,
    never overwritten).  The newest reply is also copied to
    ``last-response.txt`` for quick inspection.
    """

    LATEST = "last-response.txt"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._counter = 0
        self.paths: list[Path] = []

    async def record(self, label: str, text: str) -> Path:
        """Persist *text* and return the path of the write-once record."""
        self._counter += 1
        safe = _SAFE_LABEL.sub("-", label).strip("-") or "response"
        path = await asyncio.to_thread(self._write_exclusive, safe, text)
        self.paths.append(path)
        return path

    def _write_exclusive(self, label: str, text: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        while True:
            path = self.directory / f"{self._counter:03d}-{label}.txt"
            try:
                with path.open("x", encoding="utf-8") as handle:
                    handle.write(text)
                break
            except FileExistsError:
                self._counter += 1
        (self.directory / self.LATEST).write_text(text, encoding="utf-8")
        return path


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

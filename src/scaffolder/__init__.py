"""Dashgen scaffolder -- renders prompts and the Vue dashboard skeleton.

Quick usage::

    from src.scaffolder import ProjectScaffolder, ScaffoldConfig

    scaffolder = ProjectScaffolder(ScaffoldConfig(name="sales-dashboard", styles=["tailwind"]))
    written = await scaffolder.generate("/tmp/workspace/project-1700000000000")
"""

from src.scaffolder.generator import ProjectScaffolder, ScaffoldConfig
from src.scaffolder.templates import TemplateRenderer

__all__ = [
    "ProjectScaffolder",
    "ScaffoldConfig",
    "TemplateRenderer",
]

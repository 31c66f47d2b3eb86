"""Dashgen Pipeline Orchestrator.

Turns a natural-language dashboard description into a runnable Vue 3
project by driving a bounded state machine:

REQUESTING  -- ask the generator for a components + app payload.
PARSING     -- leniently read the payload into a ``ProjectSpec``.
GENERATING  -- collapse duplicates, normalise imports, scaffold the project.
VALIDATING  -- grammar-check and repair each component, then write it.
RESOLVING   -- recompute missing references from the files on disk.
STUBBING    -- fill whatever is still missing with visible placeholders.
ASSEMBLING  -- write the root component against the names that exist.

A second REQUESTING pass asks only for the missing components; after it,
anything still missing is stubbed.

Usage::

    python -m src.pipeline "Sales dashboard with KPI cards and a revenue chart"
    python -m src.pipeline "Server monitor" --styles tailwind --output ./out
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional

from rich.markup import escape
from rich.panel import Panel

from src.config import Config
from src.generator.assembler import RootAssembler, relativize_component_imports
from src.generator.client import GenerateFn, GenerationClient, OllamaGenerator
from src.generator.errors import DashgenError, SpecFormatError
from src.generator.models import (
    ArtifactSpec,
    GenerationRequest,
    ProjectSpec,
    RunSummary,
    Stage,
    WarningKind,
)
from src.generator.prompts import build_system_prompt, build_user_prompt
from src.generator.resolver import DependencyResolver
from src.generator.spec_parser import LenientSpecParser
from src.generator.store import ArtifactStore, RawResponseLog
from src.generator.stubs import StubSynthesizer
from src.generator.validator import StructuralValidator
from src.ollama_client import OllamaClient
from src.scaffolder import ProjectScaffolder, ScaffoldConfig
from src.utils import (
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
)


# ---------------------------------------------------------------------------
# Per-run state
# ---------------------------------------------------------------------------


@dataclass
class RunContext:
    """Mutable state of one run, threaded through the stage handlers."""

    request: GenerationRequest
    run_id: str
    store: ArtifactStore
    client: GenerationClient
    system_text: str
    user_text: str
    summary: RunSummary
    pass_number: int = 1
    raw: str = ""
    spec: ProjectSpec = field(default_factory=ProjectSpec)
    root: Optional[ArtifactSpec] = None
    pending: list[ArtifactSpec] = field(default_factory=list)
    generated_names: set[str] = field(default_factory=set)
    missing: set[str] = field(default_factory=set)
    stubbed: bool = False

    @property
    def root_artifact(self) -> ArtifactSpec:
        """The first-pass root; only the first pass may supply it."""
        if self.root is None:
            raise SpecFormatError("payload is missing the 'app' object")
        return self.root


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Dashgen Pipeline Orchestrator.

    Attributes:
        config: Global configuration.
        generate: The external generator boundary. Defaults to a local
            Ollama server configured from ``config.ollama``.
    """

    def __init__(self, config: Config, generate: GenerateFn | None = None) -> None:
        self.config = config
        if generate is None:
            client = OllamaClient(
                base_url=config.ollama.url,
                timeout=config.ollama.timeout,
                model=config.ollama.model,
            )
            generate = OllamaGenerator(
                client,
                model=config.ollama.model,
                fallback_model=config.ollama.fallback_model,
            )
        self.generate = generate
        self.parser = LenientSpecParser()
        self.validator = StructuralValidator(max_attempts=config.generation.max_validation_attempts)
        self.resolver = DependencyResolver()
        self.stubs = StubSynthesizer()
        self.assembler = RootAssembler()
        self._handlers: dict[Stage, Callable[[RunContext], Awaitable[Stage]]] = {
            Stage.REQUESTING: self._request,
            Stage.PARSING: self._parse,
            Stage.GENERATING: self._generate,
            Stage.VALIDATING: self._validate,
            Stage.RESOLVING: self._resolve,
            Stage.STUBBING: self._stub,
            Stage.ASSEMBLING: self._assemble,
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self, request: GenerationRequest, run_id: str | None = None) -> RunSummary:
        """Run the state machine to completion and return the run summary.

        Raises:
            GenerationError: the generator failed or never returned a payload.
            SpecFormatError: the first-pass payload could not be read.
        """
        started = time.monotonic()
        run_id = run_id or str(int(time.time() * 1000))
        project_dir = self.config.project_dir(run_id)

        console.print(
            Panel(
                f"[bold bright_cyan]Dashgen[/bold bright_cyan]\n"
                f"Request : {escape(request.description)}\n"
                f"Styles  : {', '.join(sorted(request.style_hints)) or '(none)'}\n"
                f"Output  : {project_dir}",
                title="[bold]Pipeline Start[/bold]",
                border_style="bright_cyan",
            )
        )

        raw_log = RawResponseLog(self.config.raw_responses_dir / run_id)
        ctx = RunContext(
            request=request,
            run_id=run_id,
            store=ArtifactStore(project_dir),
            client=GenerationClient(
                self.generate,
                raw_log=raw_log,
                parser=self.parser,
                retries=self.config.generation.generation_retries,
            ),
            system_text=build_system_prompt(request.style_hints),
            user_text=build_user_prompt(request.description),
            summary=RunSummary(project_dir=str(project_dir)),
        )

        stage = Stage.REQUESTING
        try:
            while stage is not Stage.DONE:
                print_stage_header(stage.value, f"pass {ctx.pass_number}")
                stage = await self._handlers[stage](ctx)
        except DashgenError as exc:
            ctx.summary.external_calls = ctx.client.calls
            print_error(escape(f"{stage.value.upper()} failed: {exc}"))
            if raw_log.paths:
                print_warning(f"Raw generator replies: {raw_log.directory}")
            raise

        ctx.summary.external_calls = ctx.client.calls
        ctx.summary.success = True
        await save_json(
            ctx.summary.model_dump(mode="json"),
            project_dir / self.config.meta_dir / "run-summary.json",
        )
        self._print_final_summary(ctx.summary, time.monotonic() - started)
        return ctx.summary

    # ------------------------------------------------------------------
    # Stage handlers
    # ------------------------------------------------------------------

    async def _request(self, ctx: RunContext) -> Stage:
        if ctx.pass_number == 1:
            ctx.raw = await ctx.client.request_spec(ctx.system_text, ctx.user_text, label="spec")
        else:
            console.print(f"  Requesting missing components: {', '.join(sorted(ctx.missing))}")
            ctx.raw = await ctx.client.request_named_spec(
                ctx.missing,
                ctx.system_text,
                ctx.user_text,
                label=f"missing-pass{ctx.pass_number}",
            )
        return Stage.PARSING

    async def _parse(self, ctx: RunContext) -> Stage:
        first = ctx.pass_number == 1
        try:
            ctx.spec = self.parser.parse(ctx.raw, require_root=first)
        except SpecFormatError as exc:
            if first:
                raise
            ctx.summary.warn(WarningKind.MISSING_COMPONENTS, message=str(exc))
            ctx.spec = ProjectSpec()

        if first:
            ctx.root = ctx.spec.root
        elif not ctx.spec.components:
            ctx.summary.warn(
                WarningKind.MISSING_COMPONENTS,
                message=f"pass {ctx.pass_number} returned no components",
            )
        console.print(f"  Parsed {len(ctx.spec.components)} component(s)")
        return Stage.GENERATING

    async def _generate(self, ctx: RunContext) -> Stage:
        for name in ctx.spec.duplicate_names():
            ctx.summary.warn(
                WarningKind.DUPLICATE_ARTIFACT, name, f"{name} generated more than once; keeping the last"
            )

        pending: list[ArtifactSpec] = []
        for artifact in ctx.spec.unique_components():
            if artifact.name in ctx.generated_names:
                ctx.summary.warn(
                    WarningKind.SHADOWED_ARTIFACT, artifact.name, f"{artifact.name} already generated; ignored"
                )
                continue
            pending.append(artifact.with_content(relativize_component_imports(artifact.raw_content)))
        ctx.pending = pending

        if ctx.pass_number == 1:
            scaffolder = ProjectScaffolder(
                ScaffoldConfig(
                    name=f"dashgen-{ctx.run_id}",
                    styles=sorted(ctx.request.style_hints),
                    root_file=ctx.root_artifact.file_name,
                )
            )
            written = await scaffolder.generate(ctx.store.project_dir)
            console.print(f"  Scaffolded {len(written)} project file(s)")
        return Stage.VALIDATING

    async def _validate(self, ctx: RunContext) -> Stage:
        for artifact in ctx.pending:
            result = self.validator.validate(artifact)
            if result.ok:
                console.print(f"  [green]+[/green] {artifact.name}")
            else:
                ctx.summary.degraded.append(artifact.name)
                ctx.summary.warn(
                    WarningKind.VALIDATION_DEGRADED,
                    artifact.name,
                    f"still invalid after {result.attempts} attempt(s): {result.last_error}",
                )
                print_warning(escape(f"  ! {artifact.name}: {result.last_error}"))
            await ctx.store.write_artifact(artifact.name, result.content)
            ctx.generated_names.add(artifact.name)
            ctx.summary.generated.append(artifact.name)

        ctx.pending = []
        ctx.summary.generation_passes = ctx.pass_number
        return Stage.RESOLVING

    async def _resolve(self, ctx: RunContext) -> Stage:
        contents = await ctx.store.read_all()
        known = set(contents)
        # Keyed by file name so a component called like the root stays distinct.
        root = ctx.root_artifact
        contents[root.file_name] = root.raw_content
        ctx.missing = self.resolver.compute_missing(contents, known)

        if not ctx.missing:
            return Stage.ASSEMBLING
        console.print(f"  Missing: {', '.join(sorted(ctx.missing))}")
        if ctx.stubbed:
            ctx.summary.missing_after_run = sorted(ctx.missing)
            return Stage.ASSEMBLING
        if ctx.pass_number < self.config.generation.max_passes:
            ctx.pass_number += 1
            return Stage.REQUESTING
        return Stage.STUBBING

    async def _stub(self, ctx: RunContext) -> Stage:
        for name in sorted(ctx.missing):
            await ctx.store.write_artifact(name, self.stubs.stub(name).raw_content)
            ctx.summary.stubbed.append(name)
            ctx.summary.warn(WarningKind.UNRESOLVED_REFERENCE, name, f"{name} was never generated; stubbed")
            print_warning(f"  ! stub written for {name}")
        ctx.stubbed = True
        return Stage.RESOLVING

    async def _assemble(self, ctx: RunContext) -> Stage:
        root = ctx.root_artifact
        content = self.assembler.assemble(root, ctx.generated_names)
        path = await ctx.store.write_root(root.file_name, content)
        ctx.summary.root_file = str(path)
        return Stage.DONE

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_final_summary(self, summary: RunSummary, elapsed: float) -> None:
        print_summary_table(
            {
                "Project": summary.project_dir,
                "Generated": ", ".join(summary.generated) or "none",
                "Stubbed": ", ".join(summary.stubbed) or "none",
                "Degraded": ", ".join(summary.degraded) or "none",
                "Passes": str(summary.generation_passes),
                "Generator calls": str(summary.external_calls),
                "Duration": format_duration(elapsed),
            },
            title="Run Summary",
        )
        for warning in summary.warnings:
            print_warning(escape(f"[{warning.kind.value}] {warning.message}"))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for ``python -m src.pipeline`` and ``dashgen``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Dashgen -- generate a Vue 3 dashboard from a description",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  python -m src.pipeline "Sales dashboard with KPI cards"\n'
            '  python -m src.pipeline "Server monitor" --styles tailwind -o ./out\n'
        ),
    )
    parser.add_argument("description", help="Natural-language description of the dashboard")
    parser.add_argument(
        "--styles",
        default=None,
        help="Comma-separated style libraries (default: tailwind,element-plus)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: $DASHGEN_OUTPUT_DIR or ./workspace)",
    )
    parser.add_argument("--model", default=None, help="Override the Ollama model")

    args = parser.parse_args()

    if not args.description.strip():
        console.print("[bold red]Error:[/bold red] The description must not be empty")
        sys.exit(1)

    config = Config.from_env()
    if args.output:
        config.output_dir = Path(args.output)
    if args.model:
        config.ollama.model = args.model

    request = GenerationRequest.from_cli(
        args.description, args.styles, config.generation.default_styles
    )

    try:
        summary = asyncio.run(Pipeline(config).run(request))
    except DashgenError:
        console.print("[bold red]Generation failed.[/bold red]")
        sys.exit(1)

    print_success("Project generated successfully!")
    console.print(f"  cd {summary.project_dir} && npm install && npm run dev")


if __name__ == "__main__":
    main()

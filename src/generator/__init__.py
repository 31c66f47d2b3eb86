"""Dashgen generator -- turns raw generator replies into a consistent set of Vue components.

Quick usage::

    from src.generator import LenientSpecParser, StructuralValidator

    spec = LenientSpecParser().parse(raw_reply)
    for component in spec.components:
        result = StructuralValidator().validate(component)
"""

from src.generator.assembler import RootAssembler, relativize_component_imports
from src.generator.balancer import MarkupBalancer, balance
from src.generator.client import GenerationClient, OllamaGenerator
from src.generator.errors import DashgenError, GenerationError, SFCSyntaxError, SpecFormatError
from src.generator.models import (
    ArtifactSpec,
    BalanceResult,
    GenerationRequest,
    PipelineWarning,
    ProjectSpec,
    RunSummary,
    Stage,
    ValidationResult,
    WarningKind,
)
from src.generator.resolver import DependencyResolver, extract_references
from src.generator.sfc import parse_sfc
from src.generator.spec_parser import LenientSpecParser
from src.generator.store import ArtifactStore, RawResponseLog
from src.generator.stubs import StubSynthesizer
from src.generator.validator import StructuralValidator

__all__ = [
    "ArtifactSpec",
    "ArtifactStore",
    "BalanceResult",
    "DashgenError",
    "DependencyResolver",
    "GenerationClient",
    "GenerationError",
    "GenerationRequest",
    "LenientSpecParser",
    "MarkupBalancer",
    "OllamaGenerator",
    "PipelineWarning",
    "ProjectSpec",
    "RawResponseLog",
    "RootAssembler",
    "RunSummary",
    "SFCSyntaxError",
    "SpecFormatError",
    "Stage",
    "StructuralValidator",
    "StubSynthesizer",
    "ValidationResult",
    "WarningKind",
    "balance",
    "extract_references",
    "parse_sfc",
    "relativize_component_imports",
]

"""Exception types raised by the generation pipeline.

Only unrecoverable conditions are exceptions.  Per-artifact problems that the
pipeline can work around (degraded validation, unresolved references) are
recorded as :class:`~src.generator.models.PipelineWarning` entries instead.
"""

from __future__ import annotations


class DashgenError(Exception):
    """Base class for fatal pipeline errors."""


class GenerationError(DashgenError):
    """The external generator failed or never produced an extractable payload."""

    def __init__(self, message: str, *, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(message)


class SpecFormatError(DashgenError):
    """No usable structured payload could be read from the generator output."""

    def __init__(self, message: str, *, context: str = "") -> None:
        self.context = context
        if context:
            message = f"{message} (near: {context!r})"
        super().__init__(message)


class SFCSyntaxError(Exception):
    """A single-file component failed the structural grammar check."""

    def __init__(self, message: str, offset: int = -1) -> None:
        self.offset = offset
        super().__init__(message if offset < 0 else f"{message} (offset {offset})")

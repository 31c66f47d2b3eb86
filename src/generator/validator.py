"""Bounded validate-then-repair loop for generated components.

Each attempt runs the single-file-component grammar check.  On failure the
template block is pulled out, passed through the :class:`MarkupBalancer` and
spliced back in; script and style blocks are never touched.  The loop stops
early when there is no template to repair or when the balancer has nothing
left to change.
"""

from __future__ import annotations

from .balancer import MarkupBalancer
from .errors import SFCSyntaxError
from .models import ArtifactSpec, ValidationResult
from .sfc import find_template_span, parse_sfc


class StructuralValidator:
    """Validates components and repairs their template markup.

    Parameters
    ----------
    max_attempts:
        Number of grammar checks to run before giving up.
    balancer:
        Markup balancer used for repairs.  A fresh one is created if omitted.
    """

    def __init__(self, max_attempts: int = 3, balancer: MarkupBalancer | None = None) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.balancer = balancer or MarkupBalancer()

    def validate(self, artifact: ArtifactSpec, max_attempts: int | None = None) -> ValidationResult:
        """Check *artifact* and return the best available content.

        ``ok`` is ``False`` when the component still fails the check after the
        allowed attempts; ``content`` then holds the most-repaired version,
        including the repair that follows the final failed check, which
        callers persist anyway.
        """
        limit = max_attempts if max_attempts is not None else self.max_attempts
        content = artifact.raw_content
        last_error: str | None = None

        for attempt in range(1, limit + 1):
            try:
                parse_sfc(content)
                return ValidationResult(ok=True, content=content, attempts=attempt)
            except SFCSyntaxError as exc:
                last_error = str(exc)

            span = find_template_span(content)
            if span is None:
                # No template block: nothing to repair.
                return ValidationResult(ok=False, content=content, last_error=last_error, attempts=attempt)

            start, end = span
            result = self.balancer.balance(content[start:end])
            if not result.was_modified:
                return ValidationResult(ok=False, content=content, last_error=last_error, attempts=attempt)
            content = content[:start] + result.repaired + content[end:]

        # The repair after the final check is kept unconfirmed.
        return ValidationResult(ok=False, content=content, last_error=last_error, attempts=limit)

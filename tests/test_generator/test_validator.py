"""Tests for the validate-then-repair loop (src.generator.validator)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.generator.models import ArtifactSpec, BalanceResult
from src.generator.sfc import parse_sfc
from src.generator.validator import StructuralValidator


pytestmark = pytest.mark.unit


BROKEN_CARD = """<template>
  <div class="card">
    <span>Revenue
  </div>
</template>

<script setup>
const label = '<div>'
</script>

<style scoped>
.card { color: red; }
</style>
"""


def _tail(source: str) -> str:
    """Everything after the template block."""
    return source.split("</template>", 1)[1]


class TestStructuralValidator:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            StructuralValidator(max_attempts=0)

    def test_valid_component_passes_first_time(self, header_vue):
        result = StructuralValidator().validate(ArtifactSpec(name="Header", raw_content=header_vue))
        assert result.ok is True
        assert result.attempts == 1
        assert result.content == header_vue
        assert result.last_error is None

    def test_unclosed_tag_converges(self):
        result = StructuralValidator().validate(ArtifactSpec(name="Card", raw_content=BROKEN_CARD))
        assert result.ok is True
        assert result.attempts <= 3
        assert "<span>Revenue\n  </span></div>" in result.content

    def test_repair_leaves_script_and_style_untouched(self):
        result = StructuralValidator().validate(ArtifactSpec(name="Card", raw_content=BROKEN_CARD))
        assert _tail(result.content) == _tail(BROKEN_CARD)
        assert result.content.startswith("<template>\n  <div class=\"card\">")

    def test_degraded_when_attempts_run_out(self):
        result = StructuralValidator(max_attempts=1).validate(
            ArtifactSpec(name="Card", raw_content=BROKEN_CARD)
        )
        assert result.ok is False
        assert result.attempts == 1
        assert "missing end tag" in result.last_error

    def test_final_repair_is_kept_when_attempts_run_out(self):
        result = StructuralValidator(max_attempts=1).validate(
            ArtifactSpec(name="Card", raw_content=BROKEN_CARD)
        )
        assert result.ok is False
        assert "<span>Revenue\n  </span></div>" in result.content
        assert _tail(result.content) == _tail(BROKEN_CARD)
        parse_sfc(result.content)

    def test_per_call_attempt_override(self):
        validator = StructuralValidator(max_attempts=3)
        result = validator.validate(ArtifactSpec(name="Card", raw_content=BROKEN_CARD), max_attempts=1)
        assert result.ok is False

    def test_stops_without_template(self):
        source = "<script setup>\nconst a = 1\n"
        result = StructuralValidator().validate(ArtifactSpec(name="Broken", raw_content=source))
        assert result.ok is False
        assert result.attempts == 1
        assert result.content == source

    def test_stops_when_balancer_changes_nothing(self):
        source = "<template><p>a</p></template>\n<template><p>b</p></template>"
        result = StructuralValidator().validate(ArtifactSpec(name="Twice", raw_content=source))
        assert result.ok is False
        assert result.attempts == 1
        assert "only one <template>" in result.last_error

    def test_uses_injected_balancer(self):
        balancer = MagicMock()
        balancer.balance.return_value = BalanceResult(repaired="<p>fixed</p>", was_modified=True)
        validator = StructuralValidator(balancer=balancer)

        result = validator.validate(ArtifactSpec(name="X", raw_content="<template><p>x</template>"))

        balancer.balance.assert_called_once_with("<p>x")
        assert result.ok is True
        assert result.content == "<template><p>fixed</p></template>"
        assert result.attempts == 2

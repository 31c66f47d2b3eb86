"""Unit tests for utility functions (src.utils).

Tests cover:
- save_json (use tmp_path)
- format_duration
- STAGE_COLORS constants
- Rich output helpers (print_stage_header, print_summary_table, etc.)
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from src.generator.models import Stage
from src.utils import (
    STAGE_COLORS,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
)


# ---------------------------------------------------------------------------
# save_json
# ---------------------------------------------------------------------------


class TestSaveJson:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_parents(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "summary.json"
        await save_json({"ok": True, "names": ["Header"]}, target)
        assert json.loads(target.read_text(encoding="utf-8")) == {"ok": True, "names": ["Header"]}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_ascii_and_paths(self, tmp_path: Path):
        target = tmp_path / "data.json"
        await save_json({"title": "Ventas año", "dir": tmp_path}, target)
        text = target.read_text(encoding="utf-8")
        assert "año" in text
        assert json.loads(text)["dir"] == str(tmp_path)


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0.0s"),
            (3.7, "3.7s"),
            (65.2, "1m 5s"),
            (3661.0, "1h 1m 1s"),
            (-5, "0.0s"),
        ],
    )
    def test_values(self, seconds, expected):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    @pytest.mark.unit
    def test_every_working_stage_has_a_color(self):
        working = {stage.value for stage in Stage if stage is not Stage.DONE}
        assert working == set(STAGE_COLORS)

    @pytest.mark.unit
    def test_stage_header(self):
        with patch("src.utils.console") as console:
            print_stage_header("validating", "pass 1")
        rule = console.print.call_args[0][0]
        assert "VALIDATING (pass 1)" in str(rule.title)

    @pytest.mark.unit
    def test_unknown_stage_header(self):
        with patch("src.utils.console") as console:
            print_stage_header("mystery")
        console.print.assert_called_once()

    @pytest.mark.unit
    def test_summary_table(self):
        with patch("src.utils.console") as console:
            print_summary_table({"Generated": "Header, Footer"}, title="Run Summary")
        table = console.print.call_args_list[0][0][0]
        assert table.title == "Run Summary"
        assert table.row_count == 1

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "func,color",
        [(print_success, "green"), (print_error, "red"), (print_warning, "yellow")],
    )
    def test_colored_messages(self, func, color):
        with patch("src.utils.console") as console:
            func("hello")
        assert console.print.call_args[0][0] == f"[bold {color}]hello[/bold {color}]"

"""Shared pytest fixtures for the dashgen test suite.

Provides reusable fixtures for:
- Temporary output directories and configuration
- Sample generator payloads (valid, broken, wrapped in commentary)
- A scripted fake generator that records every call
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from src.config import Config, GenerationConfig


# ---------------------------------------------------------------------------
# Sample component sources
# ---------------------------------------------------------------------------

HEADER_VUE = """<template>
  <header class="p-4">
    <h1>{{ title }}</h1>
  </header>
</template>

<script setup>
const title = 'Sales'
</script>
"""

FOOTER_VUE = """<template>
  <footer class="p-2">
    <span>2024</span>
  </footer>
</template>

<script setup>
</script>
"""

APP_VUE = """<template>
  <div id="app">
    <Header />
    <Sidebar :items="menu">
      <span>menu</span>
    </Sidebar>
    <Footer></Footer>
  </div>
</template>

<script setup>
import Header from './components/Header.vue'
import Footer from './components/Footer.vue'
import Sidebar from './components/Sidebar.vue'
const menu = []
</script>
"""


def make_payload(components: list[tuple[str, str]], app: str | None = APP_VUE) -> str:
    """Serialise a generator payload the way a well-behaved model would."""
    data: dict[str, Any] = {
        "components": [{"filename": f"{name}.vue", "content": content} for name, content in components]
    }
    if app is not None:
        data["app"] = {"filename": "App.vue", "content": app}
    return json.dumps(data)


class ScriptedGenerator:
    """Fake generator boundary: returns canned replies in order and records calls."""

    def __init__(self, replies: list[str]) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, system_text: str, user_text: str) -> str:
        self.calls.append((system_text, user_text))
        if not self.replies:
            raise AssertionError("generator called more often than scripted")
        return self.replies.pop(0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def header_vue() -> str:
    return HEADER_VUE


@pytest.fixture
def footer_vue() -> str:
    return FOOTER_VUE


@pytest.fixture
def app_vue() -> str:
    return APP_VUE


@pytest.fixture
def sample_payload() -> str:
    """First-pass payload: Header and Footer, root also references Sidebar."""
    return make_payload([("Header", HEADER_VUE), ("Footer", FOOTER_VUE)])


@pytest.fixture
def wrapped_payload(sample_payload: str) -> str:
    """The sample payload wrapped in commentary and a fenced block."""
    return f"Sure! Here is your dashboard:\n\n```json\n{sample_payload}\n```\n\nLet me know {{if}} you need more."


@pytest.fixture
def no_json_reply() -> str:
    return "I'm sorry, here is some text.\n```\nno structured data here\n```\nHope that helps!"


@pytest.fixture
def scripted_generator():
    """Factory for :class:`ScriptedGenerator` instances."""
    return ScriptedGenerator


@pytest.fixture
def tmp_config(tmp_path: Path) -> Config:
    """Config writing into a temporary output directory."""
    return Config(output_dir=tmp_path / "workspace", generation=GenerationConfig())

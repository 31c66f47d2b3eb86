"""Placeholder components for references nothing else could satisfy."""

from __future__ import annotations

import html

from .models import ArtifactSpec


STUB_TEMPLATE = (
    '<template><div class="dashgen-stub" style="color:red;">Stub: {label}</div></template>\n'
    "<script setup>\n"
    "</script>\n"
)


class StubSynthesizer:
    """Builds a minimal, always-valid component that visibly says what is missing."""

    def stub(self, name: str) -> ArtifactSpec:
        return ArtifactSpec(name=name, raw_content=STUB_TEMPLATE.format(label=html.escape(name)))

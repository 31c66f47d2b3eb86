"""Import rewriting for components and final assembly of the root artifact.

The root is assembled last, against the set of names that really exist:

1. ``.vue`` imports of known artifacts are normalised to
   ``./components/<Name>.vue``.
2. Import lines whose target is unknown are dropped.
3. Usage tags of unknown components are cut out of the template together
   with their attributes and inner content.

These are blunt textual transforms; the root is not reflowed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from .models import ArtifactSpec
from .resolver import VUE_IMPORT_PATTERN, usage_tag_names
from .sfc import template_region_span


_IMPORT_LINE = re.compile(
    r"""^\s*import\s+(?P<binding>[\w$]+)\s+from\s+['"](?P<path>[^'"]+?\.vue)['"]\s*;?\s*$"""
)
_VUE_IMPORT = re.compile(
    r"""(?P<head>\bimport\s+(?P<binding>[\w$]+)\s+from\s+)(?P<quote>['"])(?P<path>[^'"]+?\.vue)(?P=quote)"""
)
_COMPONENT_DIR_IMPORT = re.compile(
    r"""(?P<head>\bfrom\s+)(?P<quote>['"])(?:\./|@/|/)?(?:src/)?components/(?P<file>[^'"/]+\.vue)(?P=quote)"""
)
_ATTRS = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""


def relativize_component_imports(content: str) -> str:
    """Rewrite ``components/X.vue`` imports inside a component to the sibling form ``./X.vue``."""
    return _COMPONENT_DIR_IMPORT.sub(
        lambda m: f"{m.group('head')}{m.group('quote')}./{m.group('file')}{m.group('quote')}",
        content,
    )


class RootAssembler:
    """Makes the root artifact reference only names that exist."""

    components_prefix = "./components/"

    def assemble(self, root: ArtifactSpec, generated_names: Iterable[str]) -> str:
        """Return the root content ready to persist."""
        known = set(generated_names)
        content = self.normalize_imports(root.raw_content, known)
        content = self.drop_unknown_imports(content, known)
        return self.strip_unknown_tags(content, known)

    def normalize_imports(self, content: str, known: set[str]) -> str:
        def _rewrite(match: re.Match[str]) -> str:
            name = PurePosixPath(match.group("path")).stem
            if name not in known:
                return match.group(0)
            quote = match.group("quote")
            return f"{match.group('head')}{quote}{self.components_prefix}{name}.vue{quote}"

        return _VUE_IMPORT.sub(_rewrite, content)

    @staticmethod
    def drop_unknown_imports(content: str, known: set[str]) -> str:
        kept = []
        for line in content.split("\n"):
            match = _IMPORT_LINE.match(line)
            if match and PurePosixPath(match.group("path")).stem not in known:
                continue
            kept.append(line)
        content = "\n".join(kept)

        # Imports sharing a line with other code.
        def _drop(match: re.Match[str]) -> str:
            if PurePosixPath(match.group("path")).stem in known:
                return match.group(0)
            return ""

        return re.sub(VUE_IMPORT_PATTERN.pattern + r"[ \t]*;?", _drop, content)

    @staticmethod
    def strip_unknown_tags(content: str, known: set[str]) -> str:
        span = template_region_span(content)
        if span is None:
            return content
        start, end = span
        markup = content[start:end]
        for tag in sorted(usage_tag_names(content) - known):
            markup = _excise_tag(markup, tag)
        return content[:start] + markup + content[end:]


def _excise_tag(markup: str, tag: str) -> str:
    """Remove every ``<tag>`` element (attributes and inner content included)."""
    name = re.escape(tag)
    self_closing = re.compile(rf"<{name}\b{_ATTRS}/>")
    paired = re.compile(rf"<{name}\b{_ATTRS}>.*?</{name}\s*>", re.DOTALL)
    stray = re.compile(rf"<{name}\b{_ATTRS}>|</{name}\s*>")
    markup = self_closing.sub("", markup)
    markup = paired.sub("", markup)
    return stray.sub("", markup)

"""Cross-artifact reference extraction.

Purely textual: references are found with regular expressions, so the
resolver works on components that fail the grammar check just as well as on
valid ones.  Two kinds of reference are recognised:

* ``import Foo from './components/Foo.vue'`` -- the file stem (``Foo``) is
  the referenced name.
* ``<Foo ...>`` -- a capitalised tag inside the template markup.

Built-in Vue components and names imported from non-``.vue`` modules (for
example ``import { ElButton } from 'element-plus'``) are not references.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import PurePosixPath

from .sfc import template_region


VUE_IMPORT_PATTERN = re.compile(
    r"""\bimport\s+(?:[\w$\s{},*]+?\s+from\s+)?['"](?P<path>[^'"]+?\.vue)['"]"""
)
MODULE_IMPORT_PATTERN = re.compile(
    r"""\bimport\s+(?P<clause>[\w$\s{},*]+?)\s+from\s+['"](?P<path>[^'"]+)['"]"""
)
USAGE_TAG_PATTERN = re.compile(r"<([A-Z][A-Za-z0-9_]*)\b")

BUILTIN_COMPONENTS: frozenset[str] = frozenset({
    "Component",
    "KeepAlive",
    "RouterLink",
    "RouterView",
    "Suspense",
    "Teleport",
    "Transition",
    "TransitionGroup",
})

# Globally registered Element Plus components (ElButton, ElTable, ...).
LIBRARY_TAG_PATTERN = re.compile(r"^El[A-Z]")


def vue_import_names(content: str) -> set[str]:
    """Names referenced through ``.vue`` imports."""
    return {PurePosixPath(m.group("path")).stem for m in VUE_IMPORT_PATTERN.finditer(content)}


def library_bindings(content: str) -> set[str]:
    """Local names bound by imports from modules other than ``.vue`` files."""
    bindings: set[str] = set()
    for match in MODULE_IMPORT_PATTERN.finditer(content):
        if match.group("path").endswith(".vue"):
            continue
        clause = match.group("clause").replace("{", ",").replace("}", ",")
        for part in clause.split(","):
            part = part.strip()
            if not part:
                continue
            # "A as B" binds B; "* as ns" binds ns.
            bindings.add(part.split(" as ")[-1].strip())
    return bindings


def usage_tag_names(content: str) -> set[str]:
    """Capitalised tag names used in the template markup, minus built-ins and library components."""
    tags = {
        tag for tag in USAGE_TAG_PATTERN.findall(template_region(content))
        if not LIBRARY_TAG_PATTERN.match(tag)
    }
    return tags - BUILTIN_COMPONENTS - library_bindings(content)


def extract_references(content: str) -> set[str]:
    """Every artifact name *content* expects to exist."""
    return vue_import_names(content) | usage_tag_names(content)


class DependencyResolver:
    """Computes which referenced artifacts do not exist yet."""

    def references(self, contents: Mapping[str, str]) -> dict[str, set[str]]:
        """Map each artifact name to the names it references, self excluded."""
        return {name: extract_references(content) - {name} for name, content in contents.items()}

    def compute_missing(self, contents: Mapping[str, str], known_names: Iterable[str]) -> set[str]:
        """Referenced names that are not in *known_names*.

        Always computed from scratch over the full *contents* mapping.
        """
        referenced: set[str] = set()
        for refs in self.references(contents).values():
            referenced |= refs
        return referenced - set(known_names)

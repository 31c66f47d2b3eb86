"""Stack-based tag-nesting repair for template markup.

The balancer streams a markup fragment as open-tag, close-tag and text
tokens while keeping a stack of open element names.  It never tries to infer
what the author meant: stray close tags are dropped, elements left open when
an ancestor closes are closed right there, and anything still open at the end
of input is closed in LIFO order.  Open tags (with their attributes), text and
comments are reproduced byte-for-byte, so running the balancer over its own
output changes nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from .models import BalanceResult


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

# Elements that never take a closing tag.
VOID_ELEMENTS: frozenset[str] = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

_ATTR_VALUE = r"""(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+)"""
_ATTR = rf"""(?:\s+[^\s"'>/=]+(?:\s*=\s*{_ATTR_VALUE})?|\s*/(?!>))"""

_TOKEN_PATTERN = re.compile(
    rf"""
    (?P<comment><!--(?:.*?(?P<comment_end>-->)|.*\Z))
    |(?P<close></(?P<close_name>[A-Za-z][\w.:-]*)\s*>)
    |(?P<open><(?P<open_name>[A-Za-z][\w.:-]*)(?:{_ATTR})*\s*(?P<self_close>/?)>)
    """,
    re.DOTALL | re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    """A lexical unit of template markup."""

    kind: str  # "open" | "close" | "self_close" | "text" | "comment"
    text: str
    name: str = ""
    start: int = 0
    terminated: bool = True  # comments only: the literal "-->" was found


def tokenize(fragment: str) -> Iterator[Token]:
    """Split *fragment* into tokens; concatenating ``token.text`` yields the input."""
    pos = 0
    for match in _TOKEN_PATTERN.finditer(fragment):
        if match.start() > pos:
            yield Token("text", fragment[pos:match.start()], start=pos)
        if match.group("comment") is not None:
            yield Token(
                "comment", match.group(0), start=match.start(),
                terminated=match.group("comment_end") is not None,
            )
        elif match.group("close") is not None:
            yield Token("close", match.group(0), match.group("close_name"), match.start())
        else:
            name = match.group("open_name")
            kind = "self_close" if match.group("self_close") or name.lower() in VOID_ELEMENTS else "open"
            yield Token(kind, match.group(0), name, match.start())
        pos = match.end()
    if pos < len(fragment):
        yield Token("text", fragment[pos:], start=pos)


# ---------------------------------------------------------------------------
# Balancer
# ---------------------------------------------------------------------------

class MarkupBalancer:
    """Best-effort syntactic closer for tag-nested markup."""

    def balance(self, fragment: str) -> BalanceResult:
        """Return a well-nested version of *fragment*.

        ``was_modified`` is ``True`` whenever a close tag was dropped or a
        missing close tag was inserted.
        """
        out: list[str] = []
        stack: list[str] = []
        modified = False

        for token in tokenize(fragment):
            if token.kind == "open":
                stack.append(token.name)
                out.append(token.text)
            elif token.kind == "close":
                if token.name.lower() in VOID_ELEMENTS:
                    modified = True
                    continue
                index = _find_open(stack, token.name)
                if index is None:
                    # Stray close tag with no open ancestor.
                    modified = True
                    continue
                while len(stack) - 1 > index:
                    out.append(f"</{stack.pop()}>")
                    modified = True
                stack.pop()
                out.append(token.text)
            elif token.kind == "comment" and not token.terminated:
                # An unterminated comment would swallow the closers appended below.
                out.append(token.text + "-->")
                modified = True
            else:
                out.append(token.text)

        while stack:
            out.append(f"</{stack.pop()}>")
            modified = True

        return BalanceResult(repaired="".join(out), was_modified=modified)


def _find_open(stack: list[str], name: str) -> int | None:
    """Index of the nearest open element called *name*, scanning from the top."""
    for index in range(len(stack) - 1, -1, -1):
        if stack[index] == name:
            return index
    return None


def balance(fragment: str) -> BalanceResult:
    """Module-level shortcut for :meth:`MarkupBalancer.balance`."""
    return MarkupBalancer().balance(fragment)

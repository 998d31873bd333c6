"""Locate markdown headings and the source lines they start on.

Mistune v3 decides which headings exist, so a ``###`` line inside a fenced
code block, an HTML block or comment, a block quote or a list item is never
taken for one.  Its tokens carry no source positions, so the block parser
is subclassed to note the line each top-level heading starts on while it
parses.

Only top-level headings are reported: a heading nested in a block quote or
a list item does not delimit spec sections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import mistune
from mistune.plugins import import_plugin

# Same line terminators mistune normalises to "\n".
_LINE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")
_ENV_KEY = "teamwerx_headings"


@dataclass(frozen=True)
class Heading:
    """A top-level heading found in a document.

    Attributes
    ----------
    level:
        1 to 6.
    text:
        Plain heading text with inline markup removed, trimmed.
    line:
        Zero-based index of the line the heading starts on.  For a setext
        heading this is the first line of its text, not the underline.
    offset:
        Character offset of the start of that line.
    """

    level: int
    text: str
    line: int
    offset: int


class _PositionedBlockParser(mistune.BlockParser):
    """Block parser that records ``(line, token)`` for top-level headings."""

    def parse_atx_heading(self, m: re.Match[str], state: mistune.BlockState) -> int:
        end = super().parse_atx_heading(m, state)
        if state.parent is None:
            _record(state, state.src.count("\n", 0, m.start()), state.last_token())
        return end

    def parse_setex_heading(self, m: re.Match[str], state: mistune.BlockState) -> int | None:
        last = state.last_token()
        para_lines = 0
        if last is not None and last.get("type") == "paragraph":
            para_lines = len(last["text"].splitlines())
        end = super().parse_setex_heading(m, state)
        if (
            end
            and state.parent is None
            and para_lines
            and state.last_token() is last
            and last.get("type") == "heading"
        ):
            underline = state.src.count("\n", 0, m.start())
            _record(state, underline - para_lines, last)
        return end


def _record(state: mistune.BlockState, line: int, token: dict[str, Any]) -> None:
    state.env.setdefault(_ENV_KEY, []).append((line, token))


def _plain_text(tokens: list[dict]) -> str:
    """Concatenate the visible text of inline tokens."""
    parts: list[str] = []
    for token in tokens:
        token_type = token.get("type", "")
        if token_type in ("softbreak", "linebreak"):
            parts.append(" ")
        elif "children" in token:
            parts.append(_plain_text(token["children"]))
        else:
            parts.append(token.get("raw", ""))
    return "".join(parts)


class HeadingScanner:
    """Parse markdown and report its top-level headings with positions."""

    def __init__(self) -> None:
        self._parser = mistune.Markdown(
            renderer=None,
            block=_PositionedBlockParser(),
            inline=mistune.InlineParser(),
            plugins=[import_plugin(name) for name in ("strikethrough", "table", "task_lists")],
        )

    def scan(self, markdown: str) -> list[Heading]:
        """Return the top-level headings of *markdown* in document order."""
        if not markdown.strip():
            return []

        offsets: list[int] = []
        pos = 0
        for line in _LINE.findall(markdown):
            offsets.append(pos)
            pos += len(line)

        # Tokens are rendered in place, so recorded headings gain children.
        _, state = self._parser.parse(markdown)
        headings: list[Heading] = []
        for line, token in state.env.get(_ENV_KEY, []):
            if line >= len(offsets):
                continue
            level = int(token.get("attrs", {}).get("level", 0))
            text = _plain_text(token.get("children") or []).strip()
            headings.append(Heading(level=level, text=text, line=line, offset=offsets[line]))
        return headings

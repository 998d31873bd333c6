"""Spec document model: requirements located inside free-form markdown.

A spec is cut into an ordered arena of :class:`Block` records at the
positions of its significant headings:

* a **requirement** heading (configured level, text starting with the
  requirement prefix) opens a keyed block;
* a heading of a *higher* level (fewer ``#``) opens a keyless section
  block and so ends the requirement before it.

Deeper headings and same-level headings without the prefix are inert: they
stay inside whatever block encloses them.  Text before the first
significant heading is a keyless preamble block.

Concatenating the blocks reproduces the document byte for byte, so edits
are made on the arena (append, replace, delete a record) and the document
is serialised once at the end.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from teamwerx.config import DEFAULT_REQUIREMENT_LEVEL, DEFAULT_REQUIREMENT_PREFIX
from teamwerx.document.headings import HeadingScanner
from teamwerx.models import Requirement
from teamwerx.utils.text import kebab_case

_scanner: HeadingScanner | None = None


def _get_scanner() -> HeadingScanner:
    global _scanner
    if _scanner is None:
        _scanner = HeadingScanner()
    return _scanner


@dataclass
class Block:
    """One record of the document arena.

    Attributes
    ----------
    content:
        Verbatim text of the block, starting at the beginning of its
        heading line (or of the document for the preamble).
    key:
        Requirement id for requirement blocks, ``None`` otherwise.  May be
        ``""`` when the heading has an empty title.
    title:
        Requirement title, ``""`` for keyless blocks.
    """

    content: str
    key: str | None = None
    title: str = ""

    @property
    def is_requirement(self) -> bool:
        return self.key is not None


@dataclass
class SpecDocument:
    """Ordered block arena for one markdown document."""

    blocks: list[Block] = field(default_factory=list)
    level: int = DEFAULT_REQUIREMENT_LEVEL
    prefix: str = DEFAULT_REQUIREMENT_PREFIX

    @classmethod
    def parse(
        cls,
        content: str,
        level: int = DEFAULT_REQUIREMENT_LEVEL,
        prefix: str = DEFAULT_REQUIREMENT_PREFIX,
    ) -> SpecDocument:
        """Split *content* into blocks.  Never fails on malformed markdown."""
        return cls(blocks=_split_blocks(content, level, prefix), level=level, prefix=prefix)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def render(self) -> str:
        return "".join(block.content for block in self.blocks)

    def index_of(self, requirement_id: str) -> int | None:
        """Index of the first requirement block keyed *requirement_id*.

        An empty id never matches, so a heading with an empty title cannot
        be hit by an operation whose target id is missing.
        """
        if not requirement_id:
            return None
        for idx, block in enumerate(self.blocks):
            if block.key == requirement_id:
                return idx
        return None

    def requirements(self) -> list[Requirement]:
        """Requirement records with spans into :meth:`render`'s output."""
        result: list[Requirement] = []
        pos = 0
        for block in self.blocks:
            end = pos + len(block.content)
            if block.is_requirement:
                result.append(
                    Requirement(
                        id=block.key or "",
                        title=block.title,
                        content=block.content,
                        start=pos,
                        end=end,
                    )
                )
            pos = end
        return result

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def append(self, text: str) -> int:
        """Append *text* at the end of the document.

        A newline is inserted first when the document is non-empty and
        does not already end in one.  Returns the index of the first
        appended block.
        """
        if self.blocks and not self.blocks[-1].content.endswith("\n"):
            self.blocks[-1].content += "\n"
        start = len(self.blocks)
        self.blocks.extend(self._fragment(text))
        return start

    def replace(self, index: int, text: str) -> None:
        """Replace the block at *index* with *text*."""
        self.blocks[index : index + 1] = self._fragment(text)

    def remove(self, index: int) -> None:
        del self.blocks[index]

    def _fragment(self, text: str) -> list[Block]:
        # Re-key from the new text: a replacement may rename the requirement.
        return _split_blocks(text, self.level, self.prefix) if text else []


def _split_blocks(content: str, level: int, prefix: str) -> list[Block]:
    if not content:
        return []

    # (offset, key, title); key is None for section boundaries.
    cuts: list[tuple[int, str | None, str]] = []
    for heading in _get_scanner().scan(content):
        if heading.level == level and heading.text.startswith(prefix):
            title = heading.text[len(prefix) :].strip()
            cuts.append((heading.offset, kebab_case(title), title))
        elif heading.level < level:
            cuts.append((heading.offset, None, ""))

    blocks: list[Block] = []
    if not cuts or cuts[0][0] > 0:
        first_end = cuts[0][0] if cuts else len(content)
        blocks.append(Block(content=content[:first_end]))

    for idx, (offset, key, title) in enumerate(cuts):
        end = cuts[idx + 1][0] if idx + 1 < len(cuts) else len(content)
        blocks.append(Block(content=content[offset:end], key=key, title=title))

    return blocks


def parse_requirements(
    content: str,
    level: int = DEFAULT_REQUIREMENT_LEVEL,
    prefix: str = DEFAULT_REQUIREMENT_PREFIX,
) -> list[Requirement]:
    """Return the requirements of *content* in document order.

    A document without requirement headings yields an empty list.
    """
    return SpecDocument.parse(content, level, prefix).requirements()

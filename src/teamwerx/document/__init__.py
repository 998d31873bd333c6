"""Heading-based document model for spec markdown.

Public API:

- :class:`SpecDocument`: ordered block arena of a spec, editable by
  requirement id.
- :func:`parse_requirements`: requirement blocks with spans.
- :class:`HeadingScanner`: mistune-backed top-level heading locator.
- :func:`read_spec`: build a :class:`~teamwerx.models.Spec` from raw text.
"""

from teamwerx.document.headings import Heading, HeadingScanner
from teamwerx.document.model import Block, SpecDocument, parse_requirements
from teamwerx.document.spec import read_spec

__all__ = [
    "Block",
    "Heading",
    "HeadingScanner",
    "SpecDocument",
    "parse_requirements",
    "read_spec",
]

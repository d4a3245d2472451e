"""Node definitions produced by the Markdown scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Heading:
    """A section heading (ATX ``## Title`` or setext underline)."""

    level: int
    text: str
    line: int
    anchor: str = ""
    style: str = "atx"

    @property
    def normalized(self) -> str:
        return normalize_title(self.text)


@dataclass
class CodeFence:
    """A fenced code block opened by backticks or tildes."""

    marker: str
    length: int
    info: str
    start_line: int
    end_line: Optional[int] = None
    closed: bool = False
    content_lines: List[str] = field(default_factory=list)

    @property
    def language(self) -> Optional[str]:
        if not self.info:
            return None
        return self.info.split()[0].lower()


@dataclass
class Link:
    """A hyperlink or image reference found in prose."""

    target: Optional[str]
    text: str
    line: int
    column: int
    kind: str = "inline"
    label: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return bool(self.target) and self.target.lower().startswith(("http://", "https://"))

    @property
    def is_fragment(self) -> bool:
        return bool(self.target) and self.target.startswith("#")

    @property
    def has_scheme(self) -> bool:
        if not self.target:
            return False
        head, sep, _ = self.target.partition(":")
        return bool(sep) and head.isalpha() and len(head) > 1 and "/" not in head


@dataclass
class LinkDefinition:
    """A reference definition such as ``[label]: https://example.com``."""

    label: str
    target: str
    line: int
    title: Optional[str] = None


@dataclass
class Document:
    """In-memory representation of one Markdown draft."""

    path: str
    source: str
    headings: List[Heading] = field(default_factory=list)
    fences: List[CodeFence] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    definitions: Dict[str, LinkDefinition] = field(default_factory=dict)

    def lines(self) -> List[str]:
        return self.source.splitlines()

    def line(self, number: int) -> Optional[str]:
        """Return a specific source line (1-indexed)."""
        lines = self.lines()
        if 1 <= number <= len(lines):
            return lines[number - 1]
        return None

    def anchors(self) -> List[str]:
        return [heading.anchor for heading in self.headings]

    def section(self, title: str) -> Optional[Heading]:
        wanted = normalize_title(title)
        for heading in self.headings:
            if heading.normalized == wanted:
                return heading
        return None

    def has_section(self, title: str) -> bool:
        return self.section(title) is not None


def normalize_title(text: str) -> str:
    """Case-fold a heading title and collapse internal whitespace."""
    return " ".join(text.split()).casefold()


def normalize_label(label: str) -> str:
    """Normalise a reference label the way Markdown matches them."""
    return " ".join(label.split()).casefold()


__all__ = [
    "Heading",
    "CodeFence",
    "Link",
    "LinkDefinition",
    "Document",
    "normalize_title",
    "normalize_label",
]

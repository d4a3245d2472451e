"""Line scanner that turns Markdown source into a :class:`Document`."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from draftlint.errors import DraftReadError
from draftlint.observability.logging import get_logger

from .nodes import CodeFence, Document, Heading, Link, LinkDefinition, normalize_label

logger = get_logger("draftlint.document")

_FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_FENCE_CLOSE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")
_ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_ATX_CLOSER = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_CONTAINER_START = re.compile(r"^ {0,3}(?:>|[-+*](?:[ \t]|$)|\d{1,9}[.)](?:[ \t]|$))")
_DEFINITION = re.compile(
    r"""^ {0,3}\[([^\]]+)\]:[ \t]*(<[^>]*>|\S+)(?:[ \t]+("[^"]*"|'[^']*'|\([^)]*\)))?[ \t]*$"""
)
_CODE_SPAN = re.compile(r"(`+)(.+?)\1")
_INLINE_LINK = re.compile(
    r"""(!?)\[([^\]]*)\]\([ \t]*(<[^>]*>|[^\s()]*(?:\([^\s()]*\)[^\s()]*)*)"""
    r"""(?:[ \t]+("[^"]*"|'[^']*'|\([^)]*\)))?[ \t]*\)"""
)
_FULL_REFERENCE = re.compile(r"(!?)\[([^\]]+)\]\[([^\]]*)\]")
_AUTOLINK = re.compile(r"<([a-zA-Z][a-zA-Z0-9+.\-]{1,31}:[^\s<>]*)>")
_BARE_URL = re.compile(r"https?://[^\s<>()\[\]]+")
_SHORTCUT_REFERENCE = re.compile(r"(!?)\[([^\]]+)\](?![(\[:])")
_TRAILING_PUNCTUATION = ".,;:!?'\""
_SLUG_STRIP = re.compile(r"[^\w\- ]", re.UNICODE)
_HEADING_LINK = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")

SourceLike = Union[str, Path]


def slugify(text: str) -> str:
    """Return the GitHub-style anchor for a heading text (without de-duplication)."""
    rendered = _HEADING_LINK.sub(lambda m: m.group(1), text)
    slug = _SLUG_STRIP.sub("", rendered.strip().lower())
    return slug.replace(" ", "-")


def _mask(line: str, start: int, end: int) -> str:
    return line[:start] + " " * (end - start) + line[end:]


def _mask_code_spans(line: str) -> str:
    masked = line
    for match in _CODE_SPAN.finditer(line):
        masked = _mask(masked, match.start(), match.end())
    return masked


def _clean_target(raw: str) -> str:
    target = raw.strip()
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    return target


class _LineScanner:
    """Stateful scanner; one instance per document."""

    def __init__(self, source: str, path: str):
        self.source = source.lstrip("\ufeff")
        self.path = path
        self.headings: List[Heading] = []
        self.fences: List[CodeFence] = []
        self.links: List[Link] = []
        self.definitions: Dict[str, LinkDefinition] = {}
        self._shortcuts: List[Link] = []
        self._open_fence: Optional[CodeFence] = None
        self._paragraph: List[Tuple[int, str]] = []
        self._in_container = False
        self._anchor_counts: Dict[str, int] = {}

    def scan(self) -> Document:
        for number, raw in enumerate(self.source.splitlines(), start=1):
            self._scan_line(number, raw)
        if self._open_fence is not None:
            logger.debug("Unclosed fence at %s:%d", self.path, self._open_fence.start_line)
            self._open_fence = None
        self._resolve_references()
        return Document(
            path=self.path,
            source=self.source,
            headings=self.headings,
            fences=self.fences,
            links=sorted(self.links, key=lambda link: (link.line, link.column)),
            definitions=self.definitions,
        )

    def _scan_line(self, number: int, raw: str) -> None:
        fence = self._open_fence
        if fence is not None:
            close = _FENCE_CLOSE.match(raw)
            if close and close.group(1)[0] == fence.marker and len(close.group(1)) >= fence.length:
                fence.end_line = number
                fence.closed = True
                self._open_fence = None
            else:
                fence.content_lines.append(raw)
            return

        opening = _FENCE_OPEN.match(raw)
        if opening:
            run, info = opening.group(1), opening.group(2).strip()
            # Backtick fences may not carry backticks in their info string.
            if not (run[0] == "`" and "`" in info):
                self._open_fence = CodeFence(marker=run[0], length=len(run), info=info, start_line=number)
                self.fences.append(self._open_fence)
                self._paragraph = []
                self._in_container = False
                return

        if not raw.strip():
            self._paragraph = []
            self._in_container = False
            return

        atx = _ATX_HEADING.match(raw)
        if atx:
            text = _ATX_CLOSER.sub("", atx.group(2) or "").strip()
            self._add_heading(len(atx.group(1)), text, number, "atx")
            self._scan_links(number, raw)
            self._paragraph = []
            self._in_container = False
            return

        underline = _SETEXT_UNDERLINE.match(raw)
        if underline and not self._paragraph:
            # thematic break
            self._in_container = False
            return
        if underline:
            first_line = self._paragraph[0][0]
            text = " ".join(part.strip() for _, part in self._paragraph)
            level = 1 if underline.group(1)[0] == "=" else 2
            self._add_heading(level, text, first_line, "setext")
            self._paragraph = []
            return

        # List items and block quotes never become setext heading text
        if self._in_container or _CONTAINER_START.match(raw):
            self._in_container = True
            self._paragraph = []
            self._scan_links(number, raw)
            return

        definition = _DEFINITION.match(raw)
        if definition and not self._paragraph:
            label = normalize_label(definition.group(1))
            title = definition.group(3)[1:-1] if definition.group(3) else None
            if label not in self.definitions:
                self.definitions[label] = LinkDefinition(
                    label=label,
                    target=_clean_target(definition.group(2)),
                    line=number,
                    title=title,
                )
            return

        self._paragraph.append((number, raw))
        self._scan_links(number, raw)

    def _add_heading(self, level: int, text: str, line: int, style: str) -> None:
        base = slugify(text)
        seen = self._anchor_counts.get(base, 0)
        anchor = base if seen == 0 else f"{base}-{seen}"
        self._anchor_counts[base] = seen + 1
        self.headings.append(Heading(level=level, text=text, line=line, anchor=anchor, style=style))

    def _scan_links(self, number: int, raw: str) -> None:
        line = _mask_code_spans(raw)

        for match in _INLINE_LINK.finditer(line):
            kind = "image" if match.group(1) else "inline"
            self.links.append(
                Link(
                    target=_clean_target(match.group(3)),
                    text=match.group(2),
                    line=number,
                    column=match.start() + 1,
                    kind=kind,
                )
            )
            line = _mask(line, match.start(), match.end())

        for match in _FULL_REFERENCE.finditer(line):
            label = match.group(3) or match.group(2)
            self.links.append(
                Link(
                    target=None,
                    text=match.group(2),
                    line=number,
                    column=match.start() + 1,
                    kind="reference",
                    label=normalize_label(label),
                )
            )
            line = _mask(line, match.start(), match.end())

        for match in _AUTOLINK.finditer(line):
            self.links.append(
                Link(
                    target=match.group(1),
                    text=match.group(1),
                    line=number,
                    column=match.start() + 1,
                    kind="autolink",
                )
            )
            line = _mask(line, match.start(), match.end())

        for match in _BARE_URL.finditer(line):
            url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
            self.links.append(
                Link(target=url, text=url, line=number, column=match.start() + 1, kind="bare")
            )
            line = _mask(line, match.start(), match.start() + len(url))

        for match in _SHORTCUT_REFERENCE.finditer(line):
            self._shortcuts.append(
                Link(
                    target=None,
                    text=match.group(2),
                    line=number,
                    column=match.start() + 1,
                    kind="reference",
                    label=normalize_label(match.group(2)),
                )
            )

    def _resolve_references(self) -> None:
        # A bare ``[label]`` is only a link when a matching definition exists.
        for link in self._shortcuts:
            if link.label in self.definitions:
                self.links.append(link)
        for link in self.links:
            if link.kind == "reference" and link.label in self.definitions:
                link.target = self.definitions[link.label].target


def parse_document(source: str, path: str = "untitled.md") -> Document:
    """
    Scan Markdown source into a :class:`Document`.

    Args:
        source: Markdown text of the draft
        path: Path used for locations in findings

    Returns:
        Document with headings, fences, links and reference definitions
    """
    return _LineScanner(source, path).scan()


def load_document(path: SourceLike) -> Document:
    """Read a UTF-8 draft from disk and scan it."""
    file_path = Path(path)
    try:
        source = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DraftReadError(
            f"Draft is not valid UTF-8: {exc.reason}",
            path=str(file_path),
            hint="Re-save the file with UTF-8 encoding",
        ) from exc
    except OSError as exc:
        raise DraftReadError(f"Cannot read draft: {exc.strerror or exc}", path=str(file_path)) from exc
    return parse_document(source, str(file_path))


__all__ = ["parse_document", "load_document", "slugify"]

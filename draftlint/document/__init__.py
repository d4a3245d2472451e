"""Markdown document model and scanner."""

from __future__ import annotations

from .nodes import (
    CodeFence,
    Document,
    Heading,
    Link,
    LinkDefinition,
    normalize_label,
    normalize_title,
)
from .scanner import load_document, parse_document, slugify

__all__ = [
    "CodeFence",
    "Document",
    "Heading",
    "Link",
    "LinkDefinition",
    "normalize_label",
    "normalize_title",
    "load_document",
    "parse_document",
    "slugify",
]

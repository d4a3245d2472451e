"""Similarity analysis across near-duplicate drafts."""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Sequence, Tuple

from draftlint.document import Document
from draftlint.observability.logging import get_logger

logger = get_logger("draftlint.compare")

_WHITESPACE = re.compile(r"\s+")


@dataclass
class DraftPair:
    first: str
    second: str
    ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {"first": self.first, "second": self.second, "ratio": round(self.ratio, 4)}


@dataclass
class DraftComparison:
    """Pairwise similarity plus a section-presence matrix for a set of drafts."""

    paths: List[str]
    pairs: List[DraftPair]
    threshold: float
    sections: Dict[str, List[str]] = field(default_factory=dict)
    titles: Dict[str, str] = field(default_factory=dict)

    @property
    def near_duplicates(self) -> List[DraftPair]:
        return [pair for pair in self.pairs if pair.ratio >= self.threshold]

    def ratio(self, first: str, second: str) -> float:
        for pair in self.pairs:
            if {pair.first, pair.second} == {first, second}:
                return pair.ratio
        raise KeyError(f"No comparison between '{first}' and '{second}'")

    def missing_sections(self, path: str) -> List[str]:
        """Section titles present in another draft but absent from ``path``."""
        if path not in self.paths:
            raise KeyError(f"Unknown draft '{path}'")
        return [
            self.titles[key]
            for key, owners in self.sections.items()
            if path not in owners
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paths": list(self.paths),
            "threshold": self.threshold,
            "pairs": [pair.to_dict() for pair in self.pairs],
            "near_duplicates": [pair.to_dict() for pair in self.near_duplicates],
            "missing_sections": {path: self.missing_sections(path) for path in self.paths},
        }


def normalize_text(source: str) -> str:
    return _WHITESPACE.sub(" ", source).strip().lower()


def similarity(first: str, second: str) -> float:
    """Similarity ratio of two texts after whitespace and case normalisation."""
    matcher = difflib.SequenceMatcher(None, normalize_text(first), normalize_text(second), autojunk=False)
    return matcher.ratio()


def compare_drafts(documents: Sequence[Document], threshold: float = 0.85) -> DraftComparison:
    """
    Compare every pair of drafts.

    Args:
        documents: Scanned drafts, at least two
        threshold: Ratio at or above which a pair counts as a near duplicate

    Returns:
        DraftComparison with pairs in input order
    """
    if len(documents) < 2:
        raise ValueError("At least two drafts are needed for a comparison")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")

    pairs: List[DraftPair] = []
    for first, second in combinations(documents, 2):
        ratio = similarity(first.source, second.source)
        logger.debug("Similarity %s <-> %s: %.3f", first.path, second.path, ratio)
        pairs.append(DraftPair(first=first.path, second=second.path, ratio=ratio))

    sections: Dict[str, List[str]] = {}
    titles: Dict[str, str] = {}
    for document in documents:
        for heading in document.headings:
            key = heading.normalized
            titles.setdefault(key, heading.text)
            owners = sections.setdefault(key, [])
            if document.path not in owners:
                owners.append(document.path)

    return DraftComparison(
        paths=[document.path for document in documents],
        pairs=pairs,
        threshold=threshold,
        sections=sections,
        titles=titles,
    )


def section_matrix(comparison: DraftComparison) -> List[Tuple[str, List[bool]]]:
    """Rows of ``(title, [present in draft i, ...])`` in first-seen order."""
    return [
        (comparison.titles[key], [path in owners for path in comparison.paths])
        for key, owners in comparison.sections.items()
    ]

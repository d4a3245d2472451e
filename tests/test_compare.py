"""Tests for near-duplicate draft comparison."""

import pytest

from draftlint.compare import compare_drafts, section_matrix, similarity
from draftlint.document import parse_document


DRAFT_A = "# clojure.spec\n\n## Predicates\n\nText.\n\n## Example spec\n\nMore text.\n"
DRAFT_B = "# clojure.spec\n\n## Predicates\n\nText!\n\n## Generative testing\n\nMore text.\n"


def docs(*sources):
    return [parse_document(source, f"draft{index}.md") for index, source in enumerate(sources, start=1)]


def test_identical_drafts_are_near_duplicates():
    comparison = compare_drafts(docs(DRAFT_A, DRAFT_A))
    assert comparison.ratio("draft1.md", "draft2.md") == 1.0
    assert len(comparison.near_duplicates) == 1


def test_similarity_ignores_whitespace_and_case():
    assert similarity("Spec  is\nDATA", "spec is data") == 1.0


def test_pairs_cover_all_combinations():
    comparison = compare_drafts(docs(DRAFT_A, DRAFT_B, DRAFT_A, DRAFT_B))
    assert len(comparison.pairs) == 6
    assert comparison.ratio("draft2.md", "draft4.md") == 1.0
    assert 0.5 < comparison.ratio("draft1.md", "draft2.md") < 1.0


def test_missing_sections():
    comparison = compare_drafts(docs(DRAFT_A, DRAFT_B))
    assert comparison.missing_sections("draft1.md") == ["Generative testing"]
    assert comparison.missing_sections("draft2.md") == ["Example spec"]
    with pytest.raises(KeyError):
        comparison.missing_sections("draft9.md")


def test_section_matrix():
    comparison = compare_drafts(docs(DRAFT_A, DRAFT_B))
    assert section_matrix(comparison) == [
        ("clojure.spec", [True, True]),
        ("Predicates", [True, True]),
        ("Example spec", [True, False]),
        ("Generative testing", [False, True]),
    ]


def test_threshold_controls_near_duplicates():
    comparison = compare_drafts(docs(DRAFT_A, DRAFT_B), threshold=1.0)
    assert comparison.near_duplicates == []
    payload = comparison.to_dict()
    assert payload["near_duplicates"] == []
    assert payload["missing_sections"]["draft2.md"] == ["Example spec"]


def test_requires_two_drafts():
    with pytest.raises(ValueError):
        compare_drafts(docs(DRAFT_A))


def test_rejects_invalid_threshold():
    with pytest.raises(ValueError):
        compare_drafts(docs(DRAFT_A, DRAFT_B), threshold=1.5)

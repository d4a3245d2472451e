"""Tests for the Markdown scanner."""

import pytest

from draftlint.document import load_document, parse_document, slugify
from draftlint.errors import DraftReadError


class TestHeadings:
    """Heading detection and anchors."""

    def test_atx_headings_with_closing_hashes(self):
        doc = parse_document("# Title\n\n## Section ##\n")
        assert [(h.level, h.text, h.line) for h in doc.headings] == [
            (1, "Title", 1),
            (2, "Section", 3),
        ]

    def test_hash_without_space_is_not_a_heading(self):
        doc = parse_document("#hashtag\n####### seven\n")
        assert doc.headings == []

    def test_setext_headings(self):
        doc = parse_document("Example spec\n============\n\nDetails\n-------\n")
        assert [(h.level, h.text, h.line, h.style) for h in doc.headings] == [
            (1, "Example spec", 1, "setext"),
            (2, "Details", 4, "setext"),
        ]

    def test_thematic_break_is_not_a_heading(self):
        doc = parse_document("Paragraph\n\n---\n\nMore text\n")
        assert doc.headings == []

    def test_list_items_are_not_setext_text(self):
        doc = parse_document("# Title\n\n- a\n- b\n---\n\n1. one\n2) two\n===\n")
        assert [h.text for h in doc.headings] == ["Title"]

    def test_block_quote_is_not_setext_text(self):
        doc = parse_document("> quoted [link](a.md)\n---\nPlain\n---\n")
        assert [(h.level, h.text, h.line) for h in doc.headings] == [(2, "Plain", 3)]
        assert [link.target for link in doc.links] == ["a.md"]

    def test_duplicate_anchors_are_numbered(self):
        doc = parse_document("## Usage\n\n## Usage\n\n## Usage\n")
        assert doc.anchors() == ["usage", "usage-1", "usage-2"]

    def test_section_lookup_is_case_and_space_insensitive(self):
        doc = parse_document("## Example   Spec\n")
        assert doc.has_section("example spec")
        assert doc.section("EXAMPLE SPEC").line == 1
        assert not doc.has_section("Generative testing")


class TestSlugify:

    def test_punctuation_removed(self):
        assert slugify("What's new?") == "whats-new"

    def test_code_and_slashes_removed(self):
        assert slugify("`s/valid?` and friends") == "svalid-and-friends"

    def test_link_text_is_kept(self):
        assert slugify("See [the guide](https://clojure.org)") == "see-the-guide"

    def test_hyphen_and_underscore_kept(self):
        assert slugify("gen_test - part 2") == "gen_test---part-2"


class TestFences:
    """Fenced code block detection."""

    def test_closed_fence(self):
        doc = parse_document("```clojure\n(+ 1 2)\n```\n")
        fence = doc.fences[0]
        assert fence.closed
        assert fence.language == "clojure"
        assert (fence.start_line, fence.end_line) == (1, 3)
        assert fence.content_lines == ["(+ 1 2)"]

    def test_closing_fence_must_be_long_enough(self):
        doc = parse_document("````\n```\n````\n")
        assert len(doc.fences) == 1
        assert doc.fences[0].content_lines == ["```"]
        assert doc.fences[0].end_line == 3

    def test_fence_indented_up_to_three_spaces(self):
        doc = parse_document("   ```clojure\n   (s/def ::x int?)\n   ```\n    ```\n")
        assert len(doc.fences) == 1
        fence = doc.fences[0]
        assert fence.closed
        assert fence.language == "clojure"
        assert (fence.start_line, fence.end_line) == (1, 3)

    def test_tilde_fence_ignores_backtick_lines(self):
        doc = parse_document("~~~\n```\n~~~\n")
        assert len(doc.fences) == 1
        assert doc.fences[0].closed
        assert doc.fences[0].content_lines == ["```"]

    def test_unclosed_fence_hides_following_content(self):
        doc = parse_document("```\n# not a heading\n[link](nowhere.md)\n")
        fence = doc.fences[0]
        assert not fence.closed
        assert fence.end_line is None
        assert doc.headings == []
        assert doc.links == []

    def test_info_string_language_is_first_word(self):
        doc = parse_document("``` Clojure title=example\n```\n")
        assert doc.fences[0].language == "clojure"

    def test_backticks_in_info_string_is_not_a_fence(self):
        doc = parse_document("```not `a` fence\n")
        assert doc.fences == []


class TestLinks:
    """Link extraction."""

    def test_inline_link_and_image(self):
        doc = parse_document("See [guide](https://clojure.org/guides/spec) ![logo](img/logo.png)\n")
        assert [(link.kind, link.target) for link in doc.links] == [
            ("inline", "https://clojure.org/guides/spec"),
            ("image", "img/logo.png"),
        ]
        assert doc.links[0].column == 5

    def test_links_in_code_spans_are_ignored(self):
        doc = parse_document("Use `[x](y)` literally\n")
        assert doc.links == []

    def test_bare_url_trailing_punctuation(self):
        doc = parse_document("Visit https://clojure.org/guides/spec.\n")
        assert len(doc.links) == 1
        assert doc.links[0].kind == "bare"
        assert doc.links[0].target == "https://clojure.org/guides/spec"

    def test_autolink(self):
        doc = parse_document("Mail <mailto:team@example.com> or <https://example.com>\n")
        assert [link.target for link in doc.links] == ["mailto:team@example.com", "https://example.com"]
        assert all(link.kind == "autolink" for link in doc.links)

    def test_reference_link_resolved_from_definition(self):
        doc = parse_document("Read the [Spec][S]\n\n[s]: https://clojure.org/about/spec\n")
        link = doc.links[0]
        assert link.kind == "reference"
        assert link.label == "s"
        assert link.target == "https://clojure.org/about/spec"
        assert doc.definitions["s"].line == 3

    def test_shortcut_reference_only_when_defined(self):
        doc = parse_document("[rationale] and [x]\n\n[rationale]: https://example.com\n")
        assert [(link.kind, link.label) for link in doc.links] == [("reference", "rationale")]

    def test_link_with_parentheses_in_target(self):
        doc = parse_document("[wiki](https://en.wikipedia.org/wiki/Spec_(disambiguation))\n")
        assert doc.links[0].target == "https://en.wikipedia.org/wiki/Spec_(disambiguation)"

    def test_link_properties(self):
        doc = parse_document("[a](#top) [b](other.md) [c](mailto:x@example.com) [d](http://x.org)\n")
        fragment, local, mail, web = doc.links
        assert fragment.is_fragment and not fragment.has_scheme
        assert not local.has_scheme and not local.is_external
        assert mail.has_scheme and not mail.is_external
        assert web.is_external


class TestLoadDocument:

    def test_reads_utf8(self, write_draft):
        path = write_draft("# Café\n")
        doc = load_document(path)
        assert doc.path == str(path)
        assert doc.headings[0].text == "Café"

    def test_byte_order_mark_is_stripped(self, write_draft):
        path = write_draft("\ufeff# Title\n")
        assert load_document(path).headings[0].text == "Title"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DraftReadError) as exc_info:
            load_document(tmp_path / "absent.md")
        assert "absent.md" in exc_info.value.format()

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "latin1.md"
        path.write_bytes("# Caf\xe9\n".encode("latin-1"))
        with pytest.raises(DraftReadError) as exc_info:
            load_document(path)
        assert exc_info.value.hint is not None

    def test_empty_source(self):
        doc = parse_document("")
        assert doc.headings == [] and doc.fences == [] and doc.links == []
        assert doc.line(1) is None

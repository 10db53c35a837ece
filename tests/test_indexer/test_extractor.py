"""Tests for the markdown metadata extractor."""

from synapse_mcp.indexer.extractor import (
    count_words,
    index_note,
    infer_title,
    normalize_tag,
    scan_headings,
    scan_tags,
    scan_wikilinks,
)
from synapse_mcp.indexer.models import Heading


class TestScanWikilinks:
    def test_strips_alias_and_heading(self):
        text = "Hello [[World]] and [[Another Note|alias]] stuff [[Note#Heading]]"
        assert scan_wikilinks(text) == ["World", "Another Note", "Note"]

    def test_strips_block_reference(self):
        assert scan_wikilinks("See [[Note^abc123]]") == ["Note"]

    def test_first_marker_wins(self):
        assert scan_wikilinks("[[Note#Section|shown]]") == ["Note"]

    def test_trims_whitespace(self):
        assert scan_wikilinks("[[  Spaced Out  ]]") == ["Spaced Out"]

    def test_keeps_duplicates_in_order(self):
        assert scan_wikilinks("[[B]] then [[A]] then [[B]]") == ["B", "A", "B"]

    def test_balanced_inner_brackets_kept(self):
        assert scan_wikilinks("[[Array [0] notes]]") == ["Array [0] notes"]

    def test_empty_targets_discarded(self):
        assert scan_wikilinks("[[]] and [[ ]] and [[|alias]] and [[#heading]]") == []

    def test_unterminated_link_yields_nothing(self):
        assert scan_wikilinks("Broken [[link without end") == []

    def test_unterminated_link_does_not_hide_later_link(self):
        assert scan_wikilinks("Broken [[start and later [[Good]]") == ["Good"]

    def test_single_brackets_ignored(self):
        assert scan_wikilinks("[not a link] and [another]") == []

    def test_no_links(self):
        assert scan_wikilinks("") == []
        assert scan_wikilinks("Plain text") == []


class TestScanTags:
    def test_tag_boundary_rule(self):
        text = "This has #tag1 and #nested/tag and #multi-word\nNo #heading here"
        tags = scan_tags(text)
        assert {"#tag1", "#nested/tag", "#multi-word"} <= tags

    def test_heading_marker_is_not_a_tag(self):
        assert scan_tags("# Heading\n## Sub") == set()

    def test_line_initial_tag(self):
        assert scan_tags("#start of line") == {"#start"}

    def test_requires_boundary(self):
        assert scan_tags("email@example#nope and a#b") == set()

    def test_comma_is_a_boundary(self):
        assert scan_tags("tags:#one,#two") == {"#two"}

    def test_underscores_and_digits(self):
        assert scan_tags("see #snake_case and #v2") == {"#snake_case", "#v2"}

    def test_punctuation_ends_tag(self):
        assert scan_tags("Done with #work.") == {"#work"}

    def test_bare_hash_discarded(self):
        assert scan_tags("a # b and # ") == set()

    def test_deduplicates(self):
        assert scan_tags("#a1 #a1\n#a1") == {"#a1"}

    def test_skips_fenced_code(self):
        text = "#before\n```python\n#not-a-tag = 1\n```\n#after"
        assert scan_tags(text) == {"#before", "#after"}

    def test_skips_inline_code(self):
        assert scan_tags("use `#fake` but #real") == {"#real"}

    def test_inline_code_state_resets_per_line(self):
        assert scan_tags("open `code\n#real") == {"#real"}


class TestScanHeadings:
    def test_levels_and_text(self):
        headings = scan_headings("# Title\n## Section\n### Subsection\nRegular text")
        assert [h.level for h in headings] == [1, 2, 3]
        assert headings[0].text == "Title"
        assert [h.line for h in headings] == [1, 2, 3]

    def test_leading_whitespace_allowed(self):
        assert scan_headings("   ## Indented") == [Heading(text="Indented", level=2, line=1)]

    def test_empty_heading_skipped(self):
        assert scan_headings("#\n##   \n# Real") == [Heading(text="Real", level=1, line=3)]

    def test_level_seven_skipped(self):
        assert scan_headings("####### Too deep") == []

    def test_first_line_offset(self):
        headings = scan_headings("text\n# Heading", first_line=5)
        assert headings == [Heading(text="Heading", level=1, line=6)]


class TestCountWords:
    def test_counts_whitespace_tokens(self):
        assert count_words("one two  three\nfour\tfive") == 5

    def test_skips_fenced_code(self):
        assert count_words("one\n```\nskipped words here\n```\ntwo") == 2

    def test_empty(self):
        assert count_words("") == 0


class TestInferTitle:
    def test_frontmatter_title_wins(self):
        headings = [Heading(text="Heading", level=1, line=1)]
        assert infer_title("notes/file.md", headings, "From Frontmatter") == "From Frontmatter"

    def test_first_heading(self):
        headings = [Heading(text="First", level=2, line=3), Heading(text="Second", level=1, line=5)]
        assert infer_title("notes/file.md", headings) == "First"

    def test_filename_stem(self):
        assert infer_title("notes/My Note.md", []) == "My Note"

    def test_blank_frontmatter_title_ignored(self):
        assert infer_title("a.md", [], "   ") == "a"


def test_normalize_tag():
    assert normalize_tag("project") == "#project"
    assert normalize_tag("#project") == "#project"
    assert normalize_tag("  spaced ") == "#spaced"


class TestIndexNote:
    NOTE = """---
title: Graph Theory
tags: [math]
---

# Graphs

Links to [[Euler]] and [[Trees|trees]] #study

```
#ignored [[In Code]]
```
"""

    def test_builds_full_index(self):
        index = index_note("math/graphs.md", self.NOTE, ["math"], "Graph Theory")

        assert index.path == "math/graphs.md"
        assert index.title == "Graph Theory"
        # Wikilinks are scanned on raw characters, fences included
        assert index.outgoing_links == ["Euler", "Trees", "In Code"]
        assert index.tags == ["#math", "#study"]
        # Headings are not fence aware either
        assert index.headings == [
            Heading(text="Graphs", level=1, line=6),
            Heading(text="ignored [[In Code]]", level=1, line=11),
        ]

    def test_frontmatter_not_scanned(self):
        text = "---\ntitle: x\nnote: '#yaml-tag'\n---\nBody"
        index = index_note("a.md", text, [])
        assert index.tags == []
        assert index.word_count == 1

    def test_title_falls_back_to_heading(self):
        index = index_note("a.md", "# Heading Title\ntext", [])
        assert index.title == "Heading Title"

    def test_is_deterministic(self):
        first = index_note("n.md", self.NOTE, ["math", "b", "a"], "Graph Theory")
        second = index_note("n.md", self.NOTE, ["math", "b", "a"], "Graph Theory")
        assert first == second
        assert repr(first) == repr(second)

    def test_blank_frontmatter_tags_ignored(self):
        index = index_note("a.md", "text", ["", "  ", "ok"])
        assert index.tags == ["#ok"]

"""Tests for highlight rendering."""

import pytest

from docspan.core.highlighter import (
    HighlightRenderer,
    clamp_range,
    merge_ranges,
    ranges_from_results,
    render,
)
from docspan.core.types import HighlightRange, SearchMatch, SearchResult, ValueType
from docspan.utils.text import unescape_html


def _joined(segments):
    return "".join(unescape_html(s.text) for s in segments)


class TestClampRange:
    """Tests for range clamping."""

    def test_inside(self):
        """Test that a valid range is unchanged."""
        clamped = clamp_range(HighlightRange(1, 3, id="a"), 10)
        assert (clamped.start, clamped.end, clamped.id) == (1, 3, "a")

    def test_out_of_bounds(self):
        """Test clamping to the text."""
        clamped = clamp_range(HighlightRange(-5, 50), 10)
        assert (clamped.start, clamped.end) == (0, 10)

    @pytest.mark.parametrize("start,end", [(5, 5), (6, 2), (20, 30)])
    def test_empty_after_clamp(self, start, end):
        """Test that empty or inverted ranges are dropped."""
        assert clamp_range(HighlightRange(start, end), 10) is None

    def test_non_numeric(self):
        """Test that garbage offsets are dropped."""
        assert clamp_range(HighlightRange("a", None), 10) is None


class TestMergeRanges:
    """Tests for merging overlapping ranges."""

    def test_overlap_becomes_union(self):
        """Test that overlapping ranges merge into their union."""
        merged = merge_ranges([HighlightRange(5, 10), HighlightRange(0, 7)], 20)
        assert [(r.start, r.end) for r in merged] == [(0, 10)]

    def test_adjacent_kept_apart_by_default(self):
        """Test that touching ranges stay separate."""
        merged = merge_ranges([HighlightRange(0, 5), HighlightRange(5, 8)], 20)
        assert [(r.start, r.end) for r in merged] == [(0, 5), (5, 8)]

    def test_adjacent_merged_when_enabled(self):
        """Test adjacent merging."""
        merged = merge_ranges([HighlightRange(0, 5), HighlightRange(5, 8)], 20, merge_adjacent=True)
        assert [(r.start, r.end) for r in merged] == [(0, 8)]

    def test_adjacent_threshold(self):
        """Test merging across a small gap."""
        ranges = [HighlightRange(0, 5), HighlightRange(6, 8)]
        assert len(merge_ranges(ranges, 20, merge_adjacent=True)) == 2
        assert len(merge_ranges(ranges, 20, merge_adjacent=True, adjacent_threshold=1)) == 1

    def test_metadata_of_highest_priority(self):
        """Test attribution of a merged range."""
        ranges = [
            HighlightRange(0, 6, id="low", priority=1, score=0.9),
            HighlightRange(4, 10, id="high", priority=2, score=0.1),
        ]
        assert merge_ranges(ranges, 20)[0].id == "high"

    def test_score_breaks_priority_tie(self):
        """Test that score decides between equal priorities."""
        ranges = [
            HighlightRange(0, 6, id="a", score=0.2),
            HighlightRange(4, 10, id="b", score=0.8),
        ]
        assert merge_ranges(ranges, 20)[0].id == "b"


class TestHighlightRenderer:
    """Tests for HighlightRenderer.render()."""

    def test_segments_cover_text(self, contract_text):
        """Test that the unescaped segments reproduce the original text."""
        ranges = [HighlightRange(3, 9), HighlightRange(40, 52), HighlightRange(45, 80)]
        segments = render(contract_text, ranges)
        assert _joined(segments) == contract_text
        assert segments[0].start == 0
        assert segments[-1].end == len(contract_text)
        for previous, current in zip(segments, segments[1:]):
            assert previous.end == current.start

    def test_escaping(self):
        """Test that segment texts are escaped while offsets stay original."""
        segments = render("a<b>c", [HighlightRange(1, 4)])
        assert [(s.text, s.is_highlighted) for s in segments] == [
            ("a", False),
            ("&lt;b&gt;", True),
            ("c", False),
        ]
        assert (segments[1].start, segments[1].end) == (1, 4)

    def test_escape_disabled(self):
        """Test rendering without escaping."""
        segments = render("a<b>c", [HighlightRange(1, 4)], escape=None)
        assert segments[1].text == "<b>"

    def test_overlaps_merged(self):
        """Test that overlapping ranges yield one highlighted segment."""
        segments = render("0123456789", [HighlightRange(2, 5), HighlightRange(4, 7)])
        highlighted = [(s.start, s.end) for s in segments if s.is_highlighted]
        assert highlighted == [(2, 7)]

    def test_out_of_bounds_ranges(self):
        """Test that out-of-range input is clamped or dropped."""
        segments = render("abc", [HighlightRange(-3, 1), HighlightRange(10, 20)])
        assert [(s.text, s.is_highlighted) for s in segments] == [("a", True), ("bc", False)]

    def test_whole_text(self):
        """Test a range covering everything."""
        segments = render("abc", [HighlightRange(0, 3)])
        assert [(s.text, s.is_highlighted) for s in segments] == [("abc", True)]

    def test_no_ranges(self):
        """Test a document without highlights."""
        segments = render("abc", [])
        assert [(s.text, s.is_highlighted) for s in segments] == [("abc", False)]
        assert render("abc", None)[0].text == "abc"

    def test_empty_text(self):
        """Test that empty text has no segments."""
        assert render("", [HighlightRange(0, 1)]) == []
        assert render(None, []) == []

    def test_merge_adjacent_override(self):
        """Test the per-call override of adjacent merging."""
        renderer = HighlightRenderer(merge_adjacent=False)
        ranges = [HighlightRange(0, 2), HighlightRange(2, 4)]
        assert len([s for s in renderer.render("abcdef", ranges) if s.is_highlighted]) == 2
        merged = renderer.render("abcdef", ranges, merge_adjacent=True)
        assert len([s for s in merged if s.is_highlighted]) == 1

    def test_range_attached(self):
        """Test that highlighted segments carry their range."""
        segments = render("abcdef", [HighlightRange(1, 3, id="r1", type=ValueType.TEXT)])
        assert segments[1].range.id == "r1"
        assert segments[0].range is None


class TestRangesFromResults:
    """Tests for converting results to ranges."""

    def test_priorities_follow_rank(self):
        """Test that better-ranked results get higher priority."""
        first = SearchResult(id="first", label="", value="ab", score=0.9)
        first.add_match(SearchMatch(0, 2, "ab"))
        second = SearchResult(id="second", label="", value="bc", score=0.5)
        second.add_match(SearchMatch(1, 3, "bc"))
        second.add_match(SearchMatch(5, 7, "bc"))

        ranges = ranges_from_results([first, second])
        assert [(r.id, r.priority) for r in ranges] == [("first", 2), ("second", 1), ("second", 1)]
        assert merge_ranges(ranges, 10)[0].id == "first"

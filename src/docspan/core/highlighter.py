"""Highlight rendering.

Turns possibly overlapping highlight ranges into a flat list of segments
covering the original text. Overlapping ranges become one highlighted
segment spanning their union; joining the unescaped segment texts always
reproduces the original text.
"""

from typing import Callable, Iterable, Optional

from docspan.core.types import HighlightRange, SearchResult, Segment
from docspan.utils.text import escape_html

Escape = Callable[[str], str]


def _rank_key(item: HighlightRange) -> tuple[float, float]:
    priority = item.priority if item.priority is not None else float("-inf")
    score = item.score if item.score is not None else float("-inf")
    return priority, score


def clamp_range(item: HighlightRange, length: int) -> Optional[HighlightRange]:
    """Clamp a range to [0, length]; None when nothing is left of it."""
    try:
        start = min(max(int(item.start), 0), length)
        end = min(max(int(item.end), 0), length)
    except (TypeError, ValueError):
        return None
    if start >= end:
        return None
    return HighlightRange(
        start=start,
        end=end,
        id=item.id,
        type=item.type,
        score=item.score,
        priority=item.priority,
    )


def merge_ranges(
    ranges: Iterable[HighlightRange],
    length: int,
    merge_adjacent: bool = False,
    adjacent_threshold: int = 0,
) -> list[HighlightRange]:
    """Clamp, filter and merge ranges into disjoint unions.

    Args:
        ranges: Input ranges, in any order.
        length: Length of the text the ranges point into.
        merge_adjacent: Also merge ranges separated by at most adjacent_threshold characters.
        adjacent_threshold: Gap tolerated between merged adjacent ranges.

    Returns:
        Disjoint ranges sorted by start. A merged range carries the
        metadata of its highest priority member, then highest score.
    """
    clamped = [r for r in (clamp_range(item, length) for item in ranges) if r is not None]
    clamped.sort(key=lambda r: (r.start, r.end))

    merged: list[HighlightRange] = []
    for item in clamped:
        if merged:
            current = merged[-1]
            gap = item.start - current.end
            if gap < 0 or (merge_adjacent and gap <= adjacent_threshold):
                winner = item if _rank_key(item) > _rank_key(current) else current
                merged[-1] = HighlightRange(
                    start=current.start,
                    end=max(current.end, item.end),
                    id=winner.id,
                    type=winner.type,
                    score=winner.score,
                    priority=winner.priority,
                )
                continue
        merged.append(item)
    return merged


class HighlightRenderer:
    """Segment a document for display.

    Example:
        >>> renderer = HighlightRenderer()
        >>> [(s.text, s.is_highlighted) for s in renderer.render("a<b>c", [HighlightRange(1, 4)])]
        [('a', False), ('&lt;b&gt;', True), ('c', False)]
    """

    def __init__(
        self,
        escape: Optional[Escape] = escape_html,
        merge_adjacent: bool = False,
        adjacent_threshold: int = 0,
    ) -> None:
        """Initialize the renderer.

        Args:
            escape: Applied to every segment text; None leaves text as is.
            merge_adjacent: Merge touching ranges into one segment.
            adjacent_threshold: Largest gap still treated as touching.
        """
        self.escape = escape
        self.merge_adjacent = merge_adjacent
        self.adjacent_threshold = adjacent_threshold

    def _segment(
        self,
        text: str,
        start: int,
        end: int,
        highlighted: bool,
        item: Optional[HighlightRange] = None,
    ) -> Segment:
        piece = text[start:end]
        if self.escape is not None:
            piece = self.escape(piece)
        return Segment(text=piece, is_highlighted=highlighted, start=start, end=end, range=item)

    def render(
        self,
        text: Optional[str],
        ranges: Optional[Iterable[HighlightRange]],
        merge_adjacent: Optional[bool] = None,
    ) -> list[Segment]:
        """Split text into plain and highlighted segments.

        Ranges are clamped and merged first, then segment boundaries are
        inserted from the end of the text backwards, so inserting one
        boundary never shifts a range still to be processed.

        Args:
            text: Original document text.
            ranges: Highlight ranges; invalid ones are dropped.
            merge_adjacent: Overrides the renderer's setting for this call.

        Returns:
            Segments in document order.
        """
        if not text:
            return []
        if merge_adjacent is None:
            merge_adjacent = self.merge_adjacent

        merged = merge_ranges(ranges or [], len(text), merge_adjacent, self.adjacent_threshold)

        segments: list[Segment] = []
        cursor = len(text)
        for item in reversed(merged):
            if item.end < cursor:
                segments.append(self._segment(text, item.end, cursor, False))
            segments.append(self._segment(text, item.start, item.end, True, item))
            cursor = item.start
        if cursor > 0:
            segments.append(self._segment(text, 0, cursor, False))

        segments.reverse()
        return segments


def ranges_from_results(results: Iterable[SearchResult]) -> list[HighlightRange]:
    """Highlight ranges of every match of ranked results.

    Better-ranked results get higher priority so they win attribution when
    their matches overlap others.
    """
    results = list(results)
    ranges = []
    for position, result in enumerate(results):
        priority = len(results) - position
        for match in result.matches:
            ranges.append(
                HighlightRange(
                    start=match.start,
                    end=match.end,
                    id=result.id,
                    type=result.type,
                    score=result.score,
                    priority=priority,
                )
            )
    return ranges


def render(
    text: Optional[str],
    ranges: Optional[Iterable[HighlightRange]],
    merge_adjacent: bool = False,
    escape: Optional[Escape] = escape_html,
) -> list[Segment]:
    """Render with a one-off HighlightRenderer."""
    return HighlightRenderer(escape=escape, merge_adjacent=merge_adjacent).render(text, ranges)

"""
Text marks: the correspondence between logical page text and glyph geometry.

A TextMark ties a substring of a page's logical text (by code point offset) to
the bounding box of the glyph(s) that produced it. TextMarkArray is a view over
an ordered run of marks that answers range queries from text offsets back to
geometry.
"""

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from textmarks.utils.errors import InvalidRange, NoMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle in default page space (llx <= urx, lly <= ury)."""
    llx: float
    lly: float
    urx: float
    ury: float

    @property
    def width(self) -> float:
        return self.urx - self.llx

    @property
    def height(self) -> float:
        return self.ury - self.lly

    def union(self, other: 'Rectangle') -> 'Rectangle':
        return Rectangle(
            llx=min(self.llx, other.llx),
            lly=min(self.lly, other.lly),
            urx=max(self.urx, other.urx),
            ury=max(self.ury, other.ury),
        )

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return self.llx, self.lly, self.urx, self.ury

    def __str__(self) -> str:
        return f"({self.llx:.1f}, {self.lly:.1f}) ({self.urx:.1f}, {self.ury:.1f})"


@dataclass(frozen=True)
class TextMark:
    """
    One span of logical text and the geometry that produced it.

    `text` is usually one character. A ligature mark spans several characters,
    and a base glyph shares its offset and text with the marks of the
    diacritics drawn over it. Marks with `meta` set are separators inserted
    during assembly and carry no bounding box.
    """
    offset: int
    text: str
    bbox: Optional[Rectangle]
    font_name: str = ""
    font_size: float = 0.0
    fill_color: str = "#000000"
    invisible: bool = False
    meta: bool = False

    @property
    def end(self) -> int:
        """Offset one past the last character this mark covers."""
        return self.offset + len(self.text)

    def __str__(self) -> str:
        box = str(self.bbox) if self.bbox is not None else "(no box)"
        flags = ""
        if self.invisible:
            flags += " invisible"
        if self.meta:
            flags += " meta"
        return f"{{TextMark: {self.offset} {self.text!r} {box} {self.font_name}{flags}}}"


class TextMarkArray:
    """
    Ordered view over TextMarks of one page.

    Views created by range_offset() share the page's marks and remember the
    length of the page text, so further range queries stay bounded by it.
    """

    def __init__(self, marks: Sequence[TextMark], text_length: int):
        self._marks: Tuple[TextMark, ...] = tuple(marks)
        self._text_length = text_length
        self._offsets = [mark.offset for mark in self._marks]
        self._ends = [mark.end for mark in self._marks]

    @property
    def text_length(self) -> int:
        return self._text_length

    def elements(self) -> List[TextMark]:
        """Marks of this view as a new list."""
        return list(self._marks)

    def __len__(self) -> int:
        return len(self._marks)

    def __iter__(self) -> Iterator[TextMark]:
        return iter(self._marks)

    def __getitem__(self, index: Union[int, slice]) -> Union[TextMark, 'TextMarkArray']:
        if isinstance(index, slice):
            return TextMarkArray(self._marks[index], self._text_length)
        return self._marks[index]

    def range_offset(self, start: int, end: int) -> 'TextMarkArray':
        """
        Marks whose coverage intersects the text range [start, end).

        Coverage of a mark is [offset, offset + len(text)), so a range that
        starts or ends inside a ligature returns the whole ligature mark.

        Raises:
            InvalidRange: If start < 0, end > text length or start >= end
            NoMatch: If no mark intersects the range (separators only)
        """
        if start < 0 or end > self._text_length or start >= end:
            raise InvalidRange(start, end, self._text_length)

        # Mark ends are non-decreasing, so the first intersecting mark is the
        # first one ending after start
        first = bisect_right(self._ends, start)
        last = bisect_left(self._offsets, end)
        if first >= last:
            raise NoMatch(f"No marks in range [{start}, {end})")

        return TextMarkArray(self._marks[first:last], self._text_length)

    def bbox(self) -> Optional[Rectangle]:
        """Minimal rectangle enclosing the marks' boxes, or None if there are none."""
        result: Optional[Rectangle] = None
        for mark in self._marks:
            if mark.bbox is None:
                continue
            result = mark.bbox if result is None else result.union(mark.bbox)
        return result

    def __repr__(self) -> str:
        return f"TextMarkArray({len(self._marks)} marks, text_length={self._text_length})"


@dataclass(frozen=True)
class ExtractionStats:
    """Counters collected while interpreting one page."""
    glyphs: int = 0
    unmapped: int = 0
    skipped_operators: int = 0
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PageText:
    """Logical text of one page and its marks. Immutable once built."""
    text: str
    mark_list: Tuple[TextMark, ...] = ()
    stats: ExtractionStats = field(default_factory=ExtractionStats)
    page_number: Optional[int] = None
    rotation: int = 0
    _index: TextMarkArray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_index', TextMarkArray(self.mark_list, len(self.text)))

    @property
    def marks(self) -> TextMarkArray:
        return self._index

    def find_term(self, term: str, start: int = 0) -> TextMarkArray:
        """
        Marks covering the first occurrence of `term` at or after `start`.

        Raises:
            NoMatch: If the term does not occur or covers only separators
        """
        if not term:
            raise NoMatch("Empty search term")
        position = self.text.find(term, start)
        if position < 0:
            raise NoMatch(f"Term {term!r} not found")
        return self.marks.range_offset(position, position + len(term))

    def find_all(self, term: str) -> List[Tuple[int, TextMarkArray]]:
        """Every occurrence of `term` as (offset, marks) pairs."""
        matches = []
        if not term:
            return matches
        position = self.text.find(term)
        while position >= 0:
            try:
                matches.append((position, self.marks.range_offset(position, position + len(term))))
            except NoMatch:
                logger.debug(f"Occurrence of {term!r} at {position} has no marks")
            position = self.text.find(term, position + 1)
        return matches

    def term_bbox(self, term: str) -> Optional[Rectangle]:
        """Enclosing box of the first occurrence of `term`, or None if absent."""
        try:
            return self.find_term(term).bbox()
        except NoMatch:
            return None

    def __str__(self) -> str:
        return self.text

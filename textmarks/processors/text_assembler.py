"""
Logical Text Assembler

Turns the glyph events of one page into a single logical string in reading
order plus the marks that map every character back to the glyph boxes that
produced it.

Stages:
    1. Orientation grouping: each glyph's baseline angle is snapped to 0, 90,
       180 or 270 degrees; groups are emitted in that order.
    2. Line segmentation: consecutive glyphs whose baselines diverge by more
       than line_break_ratio x font size, that jump back along the baseline,
       or that follow T*, ' or " start a new segment. Segments are ordered
       top to bottom in the group's upright frame and segments sharing a
       baseline are merged left to right.
    3. Clustering: diacritic glyphs are attached to the base glyph they
       overlap and composed with NFC where Unicode allows it.
    4. Emission: word gaps become spaces, lines are joined with newlines,
       and each glyph cluster becomes one TextMark per glyph, all sharing
       the cluster's offset.
"""

import logging
import math
import unicodedata
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from textmarks.models.text_marks import ExtractionStats, PageText, Rectangle, TextMark
from textmarks.processors.content_interpreter import GlyphEvent
from textmarks.processors.glyph_geometry import PositionedGlyph
from textmarks.utils.pdf_transforms import quantize_orientation, rotate_point

if TYPE_CHECKING:
    from textmarks.engine.config import ExtractionConfig

logger = logging.getLogger(__name__)

ORIENTATION_ORDER = (0, 90, 180, 270)
LIGATURE_CHARACTERS = frozenset(
    [chr(code) for code in range(0xFB00, 0xFB07)] + ['\u0132', '\u0133']
)
DIACRITIC_OVERLAP_TOLERANCE = 0.1  # x font size, around the base glyph
LINE_SEPARATOR = "\n"
WORD_SEPARATOR = " "

# Spacing (stand-alone) accents and the combining marks they compose as
SPACING_DIACRITICS: Dict[str, str] = {
    '\u00b4': '\u0301',  # acute
    '\u02ca': '\u0301',  # modifier acute
    '\u02cb': '\u0300',  # modifier grave
    '\u00a8': '\u0308',  # diaeresis
    '\u02c6': '\u0302',  # circumflex
    '\u02dc': '\u0303',  # small tilde
    '\u00b8': '\u0327',  # cedilla
    '\u02d8': '\u0306',  # breve
    '\u02c7': '\u030c',  # caron
    '\u02d9': '\u0307',  # dot above
    '\u02da': '\u030a',  # ring above
    '\u02db': '\u0328',  # ogonek
    '\u02dd': '\u030b',  # double acute
    '\u00af': '\u0304',  # macron
}


def expand_ligature_text(text: str) -> str:
    """NFKC-expand presentation-form ligatures, leaving other characters alone."""
    if not any(ch in LIGATURE_CHARACTERS for ch in text):
        return text
    return ''.join(
        unicodedata.normalize('NFKC', ch) if ch in LIGATURE_CHARACTERS else ch
        for ch in text
    )


def combining_form(text: str) -> Optional[str]:
    """Combining mark for a diacritic glyph's text, or None if it is not one."""
    if len(text) != 1:
        return None
    if unicodedata.combining(text):
        return text
    return SPACING_DIACRITICS.get(text)


@dataclass
class _Glyph:
    """Positioned glyph with the values the assembler needs precomputed."""
    positioned: PositionedGlyph
    text: str
    size: float
    direction: Tuple[float, float]
    upright_origin: Tuple[float, float]
    upright_start: float
    upright_end: float
    advance_length: float

    @property
    def event(self) -> GlyphEvent:
        return self.positioned.event

    @property
    def bbox(self) -> Rectangle:
        return self.positioned.bbox

    @property
    def is_ghost(self) -> bool:
        """Unmapped glyph dropped from the text; it still counts for spacing."""
        return self.text == ""

    @property
    def diacritic(self) -> Optional[str]:
        return combining_form(self.text)


@dataclass
class _Segment:
    glyphs: List[_Glyph]
    baseline: float = 0.0
    start: float = 0.0
    size: float = 0.0


@dataclass
class _Cluster:
    """A base glyph and the diacritic glyphs drawn over it."""
    base: _Glyph
    diacritics: List[_Glyph] = field(default_factory=list)


class TextAssembler:
    """
    Builds a PageText from the glyph events of one page.

    Example:
        >>> assembler = TextAssembler(ExtractionConfig())
        >>> page_text = assembler.assemble(events, stats, page_number=1)
    """

    def __init__(self, config: 'ExtractionConfig'):
        self.config = config
        self._text: List[str] = []
        self._length = 0
        self._marks: List[TextMark] = []

    def assemble(
        self,
        events: Sequence[GlyphEvent],
        stats: Optional[ExtractionStats] = None,
        page_number: Optional[int] = None,
        rotation: int = 0,
    ) -> PageText:
        self._text = []
        self._length = 0
        self._marks = []

        groups: Dict[int, List[_Glyph]] = {orientation: [] for orientation in ORIENTATION_ORDER}
        for event in events:
            if event.invisible and not self.config.include_invisible:
                continue
            positioned = PositionedGlyph.from_event(event)
            orientation = quantize_orientation(positioned.angle)
            groups[orientation].append(self._prepare(positioned, orientation))

        first_line = True
        for orientation in ORIENTATION_ORDER:
            if not groups[orientation]:
                continue
            for line in self._lines(groups[orientation]):
                if not first_line:
                    self._append_separator(LINE_SEPARATOR)
                first_line = False
                self._emit_line(line)

        text = ''.join(self._text)
        logger.debug(
            f"Assembled page {page_number}: {len(text)} characters, {len(self._marks)} marks"
        )
        return PageText(
            text=text,
            mark_list=tuple(self._marks),
            stats=stats or ExtractionStats(glyphs=len(events)),
            page_number=page_number,
            rotation=rotation,
        )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _prepare(self, positioned: PositionedGlyph, orientation: int) -> _Glyph:
        event = positioned.event
        text = event.text
        if self.config.expand_ligatures:
            text = expand_ligature_text(text)

        matrix = event.matrix
        # Page-space height of one em
        size = math.hypot(float(matrix[0][1]), float(matrix[1][1]))

        upright_origin = rotate_point(event.origin[0], event.origin[1], -orientation)
        corners = (
            rotate_point(positioned.bbox.llx, positioned.bbox.lly, -orientation),
            rotate_point(positioned.bbox.urx, positioned.bbox.ury, -orientation),
        )
        return _Glyph(
            positioned=positioned,
            text=text,
            size=size,
            direction=positioned.direction,
            upright_origin=upright_origin,
            upright_start=min(corners[0][0], corners[1][0]),
            upright_end=max(corners[0][0], corners[1][0]),
            advance_length=math.hypot(*event.advance),
        )

    def _breaks_line(self, previous: _Glyph, glyph: _Glyph) -> bool:
        if glyph.event.new_line:
            return True
        dx = glyph.event.origin[0] - previous.event.origin[0]
        dy = glyph.event.origin[1] - previous.event.origin[1]
        ux, uy = previous.direction
        perpendicular = ux * dy - uy * dx
        tolerance = self.config.line_break_ratio * max(previous.size, glyph.size)
        if abs(perpendicular) > tolerance:
            return True
        # Jumping back along the baseline starts a new segment
        along = ux * dx + uy * dy
        return along < -tolerance

    def _lines(self, glyphs: List[_Glyph]) -> List[List[_Glyph]]:
        """Split a group into segments, then merge segments into ordered lines."""
        segments: List[_Segment] = []
        for glyph in glyphs:
            if not segments or self._breaks_line(segments[-1].glyphs[-1], glyph):
                segments.append(_Segment(glyphs=[glyph]))
            else:
                segments[-1].glyphs.append(glyph)

        for segment in segments:
            segment.baseline = segment.glyphs[0].upright_origin[1]
            segment.start = min(g.upright_origin[0] for g in segment.glyphs)
            segment.size = max(g.size for g in segment.glyphs)

        # Top to bottom; sorted() keeps visitation order for equal baselines
        ordered = sorted(segments, key=lambda s: -s.baseline)

        lines: List[List[_Segment]] = []
        for segment in ordered:
            if lines:
                anchor = lines[-1][0]
                tolerance = self.config.line_break_ratio * max(anchor.size, segment.size)
                if abs(anchor.baseline - segment.baseline) <= tolerance:
                    lines[-1].append(segment)
                    continue
            lines.append([segment])

        result = []
        for line in lines:
            line.sort(key=lambda s: s.start)
            result.append([glyph for segment in line for glyph in segment.glyphs])
        return result

    # ------------------------------------------------------------------
    # Clustering
    # ------------------------------------------------------------------

    @staticmethod
    def _overlaps(base: _Glyph, diacritic: _Glyph) -> bool:
        centre = (diacritic.upright_start + diacritic.upright_end) / 2
        tolerance = DIACRITIC_OVERLAP_TOLERANCE * base.size
        return base.upright_start - tolerance <= centre <= base.upright_end + tolerance

    def _clusters(self, line: List[_Glyph]) -> List[_Cluster]:
        """
        Attach diacritics to the base they overlap, preferring the previous
        base and then the next one. Unattached diacritics stand alone.
        """
        clusters: List[_Cluster] = []
        pending: List[_Glyph] = []
        for glyph in line:
            if glyph.diacritic is not None:
                previous = clusters[-1] if clusters and not pending else None
                if previous is not None and not previous.base.is_ghost and self._overlaps(previous.base, glyph):
                    previous.diacritics.append(glyph)
                else:
                    pending.append(glyph)
                continue

            cluster = _Cluster(base=glyph)
            for accent in pending:
                if not glyph.is_ghost and self._overlaps(glyph, accent):
                    cluster.diacritics.append(accent)
                else:
                    clusters.append(_Cluster(base=accent))
            pending = []
            clusters.append(cluster)

        clusters.extend(_Cluster(base=accent) for accent in pending)
        return clusters

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit_line(self, line: List[_Glyph]) -> None:
        previous: Optional[_Glyph] = None
        for cluster in self._clusters(line):
            if previous is not None and self._needs_word_gap(previous, cluster.base):
                self._append_separator(WORD_SEPARATOR)
            self._emit_cluster(cluster)
            previous = cluster.base

    def _needs_word_gap(self, previous: _Glyph, glyph: _Glyph) -> bool:
        if not self._text or self._text[-1][-1:].isspace():
            return False
        if glyph.text[:1].isspace() or glyph.is_ghost:
            return False
        previous_end = previous.upright_origin[0] + previous.advance_length
        gap = glyph.upright_origin[0] - previous_end
        return gap > self.config.word_gap_ratio * max(previous.advance_length, previous.size)

    def _emit_cluster(self, cluster: _Cluster) -> None:
        base = cluster.base
        if base.is_ghost:
            return

        if not cluster.diacritics:
            self._append_glyph(base, base.text)
            return

        # Every glyph of the cluster marks the same span, composed or not
        combining = ''.join(accent.diacritic for accent in cluster.diacritics)
        text = unicodedata.normalize('NFC', base.text + combining)
        offset = self._length
        self._text.append(text)
        self._length += len(text)
        for glyph in [base] + cluster.diacritics:
            self._add_mark(offset, text, glyph)

    def _append_glyph(self, glyph: _Glyph, text: str) -> None:
        offset = self._length
        self._text.append(text)
        self._length += len(text)
        self._add_mark(offset, text, glyph)

    def _add_mark(self, offset: int, text: str, glyph: _Glyph) -> None:
        event = glyph.event
        mark = TextMark(
            offset=offset,
            text=text,
            bbox=glyph.bbox,
            font_name=event.font_name,
            font_size=event.font_size,
            fill_color=event.fill_color,
            invisible=event.invisible,
        )
        self._marks.append(mark)
        if self.config.emit_debug_events:
            logger.debug(f"mark {mark}")

    def _append_separator(self, separator: str) -> None:
        if self.config.include_separator_marks:
            self._marks.append(TextMark(offset=self._length, text=separator, bbox=None, meta=True))
        self._text.append(separator)
        self._length += len(separator)

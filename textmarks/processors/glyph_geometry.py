"""
Glyph geometry: bounding boxes and baselines of glyph events in default page space.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from textmarks.models.text_marks import Rectangle
from textmarks.processors.content_interpreter import GlyphEvent
from textmarks.utils.pdf_transforms import apply_matrix_transform, matrix_to_list, transform_rect


def resolve_glyph_bbox(event: GlyphEvent) -> Rectangle:
    """
    Axis-aligned box of a glyph in default page space.

    The four corners of the glyph-space box are mapped through the event's
    matrix and the min/max taken. Rotated or skewed glyphs get the enclosing
    rectangle of their parallelogram.
    """
    x0, y0, x1, y1 = transform_rect(event.matrix, event.font_box)
    return Rectangle(llx=x0, lly=y0, urx=x1, ury=y1)


@dataclass
class PositionedGlyph:
    """A glyph event with its resolved box and baseline geometry."""
    event: GlyphEvent
    bbox: Rectangle

    @classmethod
    def from_event(cls, event: GlyphEvent) -> 'PositionedGlyph':
        return cls(event=event, bbox=resolve_glyph_bbox(event))

    @property
    def baseline_start(self) -> Tuple[float, float]:
        """Baseline origin including text rise."""
        return apply_matrix_transform(0.0, 0.0, matrix_to_list(self.event.matrix))

    @property
    def baseline_end(self) -> Tuple[float, float]:
        return apply_matrix_transform(self.event.font_box[2], 0.0, matrix_to_list(self.event.matrix))

    @property
    def direction(self) -> Tuple[float, float]:
        """Unit vector along the baseline, (1, 0) for zero-width glyphs without advance."""
        dx, dy = self.event.advance
        if math.hypot(dx, dy) < 1e-9:
            (sx, sy), (ex, ey) = self.baseline_start, self.baseline_end
            dx, dy = ex - sx, ey - sy
        length = math.hypot(dx, dy)
        if length < 1e-9:
            return self._matrix_direction()
        return dx / length, dy / length

    @property
    def angle(self) -> float:
        """Baseline angle in degrees, counter-clockwise from the page x axis."""
        dx, dy = self.direction
        return math.degrees(math.atan2(dy, dx))

    def _matrix_direction(self) -> Tuple[float, float]:
        a, b = float(self.event.matrix[0][0]), float(self.event.matrix[1][0])
        length = math.hypot(a, b)
        if length < 1e-9:
            return 1.0, 0.0
        return a / length, b / length

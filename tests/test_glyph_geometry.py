import numpy as np
import pytest

from textmarks.processors.content_interpreter import GlyphEvent
from textmarks.processors.glyph_geometry import PositionedGlyph, resolve_glyph_bbox
from textmarks.utils.pdf_transforms import make_matrix


def event(matrix, advance=(6.0, 0.0), font_box=(0.0, -0.2, 0.6, 0.8), origin=(0.0, 0.0)):
    return GlyphEvent(
        sequence=0,
        text="A",
        code=65,
        font_name="Courier",
        font_size=10.0,
        font_box=font_box,
        matrix=matrix,
        origin=origin,
        advance=advance,
    )


def test_upright_glyph_box() -> None:
    box = resolve_glyph_bbox(event(make_matrix(10, 0, 0, 10, 72, 700)))
    assert box.to_tuple() == pytest.approx((72, 698, 78, 708))


def test_rotated_glyph_box_encloses_all_corners() -> None:
    box = resolve_glyph_bbox(event(make_matrix(0, 10, -10, 0, 100, 100), advance=(0.0, 6.0)))
    assert box.to_tuple() == pytest.approx((92, 100, 102, 106))


def test_half_turn_negates_box() -> None:
    upright = resolve_glyph_bbox(event(make_matrix(10, 0, 0, 10, 0, 0)))
    turned = resolve_glyph_bbox(event(make_matrix(-10, 0, 0, -10, 0, 0), advance=(-6.0, 0.0)))
    assert turned.to_tuple() == pytest.approx((-upright.urx, -upright.ury, -upright.llx, -upright.lly))


def test_skewed_glyph_box() -> None:
    box = resolve_glyph_bbox(event(make_matrix(10, 0, 5, 10, 0, 0)))
    assert box.llx == pytest.approx(-1)
    assert box.urx == pytest.approx(10)


@pytest.mark.parametrize("matrix,advance,angle", [
    (make_matrix(10, 0, 0, 10, 0, 0), (6.0, 0.0), 0),
    (make_matrix(0, 10, -10, 0, 0, 0), (0.0, 6.0), 90),
    (make_matrix(-10, 0, 0, -10, 0, 0), (-6.0, 0.0), 180),
    (make_matrix(0, -10, 10, 0, 0, 0), (0.0, -6.0), -90),
])
def test_baseline_angle(matrix, advance, angle) -> None:
    assert PositionedGlyph.from_event(event(matrix, advance)).angle == pytest.approx(angle)


def test_zero_width_glyph_direction_comes_from_matrix() -> None:
    glyph = PositionedGlyph.from_event(
        event(make_matrix(0, 10, -10, 0, 0, 0), advance=(0.0, 0.0), font_box=(0.0, -0.2, 0.0, 0.8))
    )
    assert glyph.direction == pytest.approx((0, 1))


def test_baseline_includes_rise() -> None:
    matrix = np.array(make_matrix(10, 0, 0, 10, 0, 3))
    glyph = PositionedGlyph.from_event(event(matrix))
    assert glyph.baseline_start == pytest.approx((0, 3))
    assert glyph.baseline_end == pytest.approx((6, 3))

import numpy as np
import pytest

from textmarks.processors.transform_stack import TransformStack
from textmarks.utils.pdf_transforms import (
    apply_matrix_transform,
    make_matrix,
    matrix_to_list,
    normalize_rotation,
    page_orientation_matrix,
    quantize_orientation,
    rotate_point,
    transform_rect,
)

PORTRAIT = (0.0, 0.0, 612.0, 792.0)
LANDSCAPE = (0.0, 0.0, 792.0, 612.0)


def test_make_matrix_round_trips_to_pdf_form() -> None:
    assert matrix_to_list(make_matrix(1, 2, 3, 4, 5, 6)) == [1, 2, 3, 4, 5, 6]


def test_apply_matrix_transform() -> None:
    assert apply_matrix_transform(1, 1, [2, 0, 0, 3, 10, 20]) == (12, 23)


def test_transform_rect_handles_rotation() -> None:
    rotated = make_matrix(0, 1, -1, 0, 0, 0)
    assert transform_rect(rotated, (0, 0, 10, 2)) == pytest.approx((-2, 0, 0, 10))


@pytest.mark.parametrize("value,expected", [(0, 0), (90, 90), (-90, 270), (450, 90), (720, 0)])
def test_normalize_rotation(value: int, expected: int) -> None:
    assert normalize_rotation(value) == expected


def test_normalize_rotation_rejects_odd_angles() -> None:
    with pytest.raises(ValueError):
        normalize_rotation(45)


@pytest.mark.parametrize("angle,expected", [(0, 0), (3, 0), (-2, 0), (89, 90), (180, 180), (-179, 180), (-90, 270)])
def test_quantize_orientation(angle: float, expected: int) -> None:
    assert quantize_orientation(angle) == expected


def test_rotate_point() -> None:
    assert rotate_point(1, 0, 90) == pytest.approx((0, 1))


@pytest.mark.parametrize("rotation,mediabox", [(0, PORTRAIT), (90, LANDSCAPE), (180, PORTRAIT), (270, LANDSCAPE)])
def test_orientation_matrix_maps_media_box_onto_upright_page(rotation, mediabox) -> None:
    matrix = page_orientation_matrix(mediabox, rotation)
    assert transform_rect(matrix, mediabox) == pytest.approx(PORTRAIT)


def test_orientation_matrix_turns_page_clockwise() -> None:
    # Top-left corner of a landscape media box ends up top-right
    matrix = page_orientation_matrix(LANDSCAPE, 90)
    x, y, _ = matrix @ np.array([0.0, 612.0, 1.0])
    assert (x, y) == pytest.approx((612.0, 792.0))


def test_saved_restores_ctm_on_error() -> None:
    stack = TransformStack()
    with pytest.raises(RuntimeError):
        with stack.saved():
            stack.concat(2, 0, 0, 2, 5, 5)
            assert stack.depth == 1
            raise RuntimeError("boom")
    assert stack.depth == 0
    assert np.allclose(stack.ctm, np.identity(3))


def test_concat_applies_new_matrix_first() -> None:
    stack = TransformStack()
    stack.concat(1, 0, 0, 1, 100, 0)
    stack.concat(2, 0, 0, 2, 0, 0)
    assert stack.text_point(1, 1) == pytest.approx((102, 2))


def test_move_line_is_relative_to_line_start() -> None:
    stack = TransformStack()
    stack.begin_text()
    stack.move_line(72, 700)
    stack.advance(30)
    stack.move_line(0, -14)
    assert stack.text_point(0, 0) == pytest.approx((72, 686))


def test_set_text_matrix_replaces_both_matrices() -> None:
    stack = TransformStack()
    stack.move_line(50, 50)
    stack.set_text_matrix(1, 0, 0, 1, 10, 20)
    stack.advance(5)
    assert stack.text_point(0, 0) == pytest.approx((15, 20))
    stack.move_line(0, 0)
    assert stack.text_point(0, 0) == pytest.approx((10, 20))


def test_glyph_matrix_is_a_snapshot() -> None:
    stack = TransformStack()
    stack.begin_text()
    matrix = stack.glyph_matrix(12, 1.0, 3)
    stack.advance(100)
    assert matrix_to_list(matrix) == pytest.approx([12, 0, 0, 12, 0, 3])


def test_for_page_starts_in_upright_frame() -> None:
    stack = TransformStack.for_page(PORTRAIT, 180)
    assert stack.text_point(0, 0) == pytest.approx((612, 792))

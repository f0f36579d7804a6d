"""PDF transformation utilities for text geometry."""

import math
from typing import List, Sequence, Tuple

import numpy as np

RIGHT_ANGLE = 90
FULL_TURN = 360

# --- Matrix Construction ---
def make_matrix(a: float, b: float, c: float, d: float, e: float, f: float) -> np.ndarray:
    """Build a 3x3 column-vector matrix from PDF operands [a b c d e f]."""
    return np.array([[a, c, e], [b, d, f], [0, 0, 1]], dtype=float)

def translation_matrix(tx: float, ty: float) -> np.ndarray:
    return make_matrix(1, 0, 0, 1, tx, ty)

def matrix_to_list(matrix: np.ndarray) -> List[float]:
    """Convert a 3x3 matrix back to the 6-element PDF form [a, b, c, d, e, f]."""
    return [
        float(matrix[0, 0]), float(matrix[1, 0]),
        float(matrix[0, 1]), float(matrix[1, 1]),
        float(matrix[0, 2]), float(matrix[1, 2]),
    ]

# --- Core Transformation Functions ---
def apply_matrix_transform(x: float, y: float, ctm: Sequence[float]) -> Tuple[float, float]:
    """Apply CTM transformation to a point.

    Args:
        x, y: Point coordinates
        ctm: 6-element CTM matrix [a, b, c, d, e, f]

    Returns:
        Transformed (x, y) coordinates
    """
    a, b, c, d, e, f = ctm
    tx = a * x + c * y + e
    ty = b * x + d * y + f
    return tx, ty

def transform_rect(
    matrix: np.ndarray, rect: Tuple[float, float, float, float]
) -> Tuple[float, float, float, float]:
    """Transform a rectangle and return its axis-aligned bounds.

    All four corners are mapped, since the matrix may rotate or mirror the
    rectangle. Degenerate matrices produce zero-area bounds.

    Args:
        matrix: 3x3 transformation matrix
        rect: (x0, y0, x1, y1) in the matrix's source space

    Returns:
        Tuple of (min_x, min_y, max_x, max_y) in target space
    """
    x0, y0, x1, y1 = rect
    corners = np.array([
        [x0, x1, x1, x0],
        [y0, y0, y1, y1],
        [1.0, 1.0, 1.0, 1.0],
    ])
    transformed = matrix @ corners

    x_coords = transformed[0]
    y_coords = transformed[1]

    return (
        float(x_coords.min()), float(y_coords.min()),
        float(x_coords.max()), float(y_coords.max()),
    )

# --- Page Orientation ---
def normalize_rotation(rotation: int) -> int:
    """Normalise a /Rotate value to 0, 90, 180 or 270.

    Raises:
        ValueError: If the value is not a multiple of 90
    """
    rotation = int(rotation)
    if rotation % RIGHT_ANGLE != 0:
        raise ValueError(f"Page rotation must be a multiple of 90, got {rotation}")
    return rotation % FULL_TURN

def page_orientation_matrix(
    mediabox: Tuple[float, float, float, float], rotation: int
) -> np.ndarray:
    """Matrix from PDF user space to the upright (displayed) page frame.

    /Rotate turns the page clockwise when displayed. The upright frame keeps
    the media box's lower-left corner as its origin, so an unrotated page maps
    to itself.
    """
    x0, y0, x1, y1 = mediabox
    rotation = normalize_rotation(rotation)

    if rotation == 90:
        return make_matrix(0, -1, 1, 0, x0 - y0, y0 + x1)
    if rotation == 180:
        return make_matrix(-1, 0, 0, -1, x0 + x1, y0 + y1)
    if rotation == 270:
        return make_matrix(0, 1, -1, 0, x0 + y1, y0 - x0)
    return np.identity(3, dtype=float)

def quantize_orientation(angle_degrees: float) -> int:
    """Snap a baseline angle to the nearest of 0, 90, 180 or 270 degrees."""
    return int(round(angle_degrees / RIGHT_ANGLE)) * RIGHT_ANGLE % FULL_TURN

def rotate_point(x: float, y: float, angle_degrees: float) -> Tuple[float, float]:
    """Rotate a point counter-clockwise about the origin."""
    angle_rad = math.radians(angle_degrees)
    sin_a, cos_a = math.sin(angle_rad), math.cos(angle_rad)
    return x * cos_a - y * sin_a, x * sin_a + y * cos_a

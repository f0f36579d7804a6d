"""
Transform stack for content stream interpretation.

Tracks the current transformation matrix (CTM) on top of the page's base
orientation transform, and the text matrix / text line matrix of the current
text object. Matrices are 3x3 numpy arrays in column-vector form, so a matrix
applied first sits on the right of a product.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Tuple

import numpy as np

from textmarks.utils.pdf_transforms import (
    make_matrix,
    page_orientation_matrix,
    translation_matrix,
)

logger = logging.getLogger(__name__)


class TransformStack:
    """
    Composition of base, graphics and text matrices for one page.

    The base transform maps PDF user space into the upright page frame, so
    every matrix produced here ends in default page space. Graphics state
    save/restore is scoped: use `with stack.saved():` around nested content.
    """

    def __init__(self, base: np.ndarray = None):
        self.base = np.identity(3, dtype=float) if base is None else np.array(base, dtype=float)
        self.ctm = self.base.copy()
        self.text_matrix = np.identity(3, dtype=float)
        self.text_line_matrix = np.identity(3, dtype=float)
        self._saved: List[np.ndarray] = []

    @classmethod
    def for_page(cls, mediabox: Tuple[float, float, float, float], rotation: int) -> 'TransformStack':
        """Stack whose base transform normalises the page's rotation."""
        return cls(page_orientation_matrix(mediabox, rotation))

    @property
    def depth(self) -> int:
        return len(self._saved)

    @contextmanager
    def saved(self) -> Iterator['TransformStack']:
        """Save the CTM and restore it on every exit path."""
        self._saved.append(self.ctm.copy())
        try:
            yield self
        finally:
            self.ctm = self._saved.pop()

    def concat(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        """Pre-multiply the CTM by [a b c d e f] (cm operator)."""
        self.ctm = self.ctm @ make_matrix(a, b, c, d, e, f)

    # --- Text object ---

    def begin_text(self) -> None:
        self.text_matrix = np.identity(3, dtype=float)
        self.text_line_matrix = np.identity(3, dtype=float)

    def set_text_matrix(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        self.text_matrix = make_matrix(a, b, c, d, e, f)
        self.text_line_matrix = self.text_matrix.copy()

    def move_line(self, tx: float, ty: float) -> None:
        """Start a new line offset from the start of the current one (Td)."""
        self.text_line_matrix = self.text_line_matrix @ translation_matrix(tx, ty)
        self.text_matrix = self.text_line_matrix.copy()

    def advance(self, tx: float, ty: float = 0.0) -> None:
        """Move the text matrix after a glyph or a TJ adjustment."""
        self.text_matrix = self.text_matrix @ translation_matrix(tx, ty)

    # --- Snapshots ---

    def text_to_page(self) -> np.ndarray:
        """Text space to default page space."""
        return self.ctm @ self.text_matrix

    def glyph_matrix(self, font_size: float, horizontal_scaling: float, rise: float) -> np.ndarray:
        """
        Glyph space to default page space for the next glyph.

        Returns a new array; later state changes do not affect it.
        """
        text_state = np.array([
            [font_size * horizontal_scaling, 0.0, 0.0],
            [0.0, font_size, rise],
            [0.0, 0.0, 1.0],
        ])
        return self.ctm @ self.text_matrix @ text_state

    def text_point(self, tx: float, ty: float) -> Tuple[float, float]:
        """Page-space position of a point given in current text space."""
        point = self.text_to_page() @ np.array([tx, ty, 1.0])
        return float(point[0]), float(point[1])

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pikepdf
import pytest

from textmarks.engine.config import ExtractionConfig
from textmarks.models.page_source import FormXObject, PageSource
from textmarks.processors.fonts import standard_font
from textmarks.utils.errors import UnmappedGlyph


class FakeFont:
    """Single-byte font with explicit code -> text and code -> width tables."""

    def __init__(
        self,
        mapping: Dict[int, str],
        widths: Optional[Dict[int, float]] = None,
        name: str = "FakeSerif",
        default_width: float = 0.5,
        ascent: float = 0.75,
        descent: float = -0.25,
    ):
        self.mapping = mapping
        self.widths = widths or {}
        self.name = name
        self.default_width = default_width
        self.ascent = ascent
        self.descent = descent
        self.multibyte = False

    def codes(self, data: bytes) -> Iterable[int]:
        return list(data)

    def to_text(self, code: int) -> str:
        if code not in self.mapping:
            raise UnmappedGlyph(self.name, code)
        return self.mapping[code]

    def width(self, code: int) -> float:
        return self.widths.get(code, self.default_width)


def ascii_font(**overrides) -> FakeFont:
    """FakeFont mapping printable ASCII to itself, with overrides applied."""
    mapping = {code: chr(code) for code in range(32, 127)}
    mapping.update(overrides.pop('extra', {}))
    return FakeFont(mapping, **overrides)


@pytest.fixture(scope="session")
def courier():
    return standard_font("Courier")


@pytest.fixture(scope="session")
def helvetica():
    return standard_font("Helvetica")


@pytest.fixture()
def default_config() -> ExtractionConfig:
    return ExtractionConfig()


@pytest.fixture()
def make_page(courier) -> Callable[..., PageSource]:
    """Build a PageSource whose /F1 is Courier unless fonts are given."""
    def _create(
        content: bytes,
        fonts=None,
        rotation: int = 0,
        mediabox=(0.0, 0.0, 612.0, 792.0),
        xobjects: Optional[Dict[str, FormXObject]] = None,
    ) -> PageSource:
        return PageSource(
            content=content,
            fonts=fonts if fonts is not None else {"F1": courier},
            mediabox=mediabox,
            rotation=rotation,
            xobjects=xobjects or {},
            page_number=1,
        )

    return _create


def _font_resources(base_font: str) -> pikepdf.Dictionary:
    return pikepdf.Dictionary(
        Font=pikepdf.Dictionary(
            F1=pikepdf.Dictionary(
                Type=pikepdf.Name.Font,
                Subtype=pikepdf.Name.Type1,
                BaseFont=pikepdf.Name("/" + base_font),
            )
        )
    )


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    """
    Write a PDF with one page per spec dict.

    Spec keys: content (bytes), rotate (int), size ((w, h)), font (base font
    name), forms ({name: (content, matrix)}).
    """
    def _create(pages: List[dict], filename: str = "doc.pdf") -> Path:
        path = tmp_path / filename
        pdf = pikepdf.new()
        for spec in pages:
            page = pdf.add_blank_page(page_size=spec.get('size', (612, 792)))
            resources = _font_resources(spec.get('font', 'Courier'))

            forms = spec.get('forms') or {}
            if forms:
                xobjects = pikepdf.Dictionary()
                for name, (form_content, matrix) in forms.items():
                    form = pikepdf.Stream(pdf, form_content)
                    form.Type = pikepdf.Name.XObject
                    form.Subtype = pikepdf.Name.Form
                    form.BBox = pikepdf.Array([0, 0, 612, 792])
                    form.Matrix = pikepdf.Array(list(matrix))
                    xobjects["/" + name] = pdf.make_indirect(form)
                resources.XObject = xobjects

            page.obj.Resources = resources
            page.obj.Contents = pdf.make_stream(spec['content'])
            if spec.get('rotate'):
                page.obj.Rotate = spec['rotate']
        pdf.save(path)
        pdf.close()
        return path

    return _create

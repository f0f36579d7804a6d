import pytest

from textmarks.processors.fonts import PdfMinerFont, standard_font
from textmarks.utils.errors import UnmappedGlyph


def test_courier_metrics(courier) -> None:
    assert isinstance(courier, PdfMinerFont)
    assert courier.name == "Courier"
    assert not courier.multibyte
    assert courier.width(ord("A")) == pytest.approx(0.6)
    assert courier.width(ord(" ")) == pytest.approx(0.6)
    assert -1 < courier.descent < 0 < courier.ascent


def test_helvetica_is_proportional(helvetica) -> None:
    assert helvetica.width(ord("i")) < helvetica.width(ord("W"))


def test_codes_are_single_bytes(courier) -> None:
    assert list(courier.codes(b"Hi!")) == [72, 105, 33]


def test_to_text(courier) -> None:
    assert courier.to_text(ord("H")) == "H"


def test_unmapped_code_raises(courier) -> None:
    with pytest.raises(UnmappedGlyph) as excinfo:
        courier.to_text(1)
    assert excinfo.value.code == 1
    assert excinfo.value.font_name == "Courier"


def test_bold_variant_keeps_its_name() -> None:
    assert standard_font("Courier-Bold").name == "Courier-Bold"

from concurrent.futures import ThreadPoolExecutor

import pytest

from textmarks.engine.config import EngineConfig, ExtractionConfig
from textmarks.engine.page_extractor import PageTextExtractor, extract_page_text
from textmarks.engine.pdf_engine import PDFEngine
from textmarks.utils.errors import PageExtractionError

HELLO_LINES = b"(Hello World!)Tj 0 -25 Td (Doink)Tj ET"
TEXT_MATRICES = {
    "identity": b"",
    "landscape": b"0 1 -1 0 0 0 Tm ",
    "half-turn": b"-1 0 0 -1 0 0 Tm ",
}

# cm operators that undo each /Rotate, with the media box that keeps the
# displayed page at 612 x 792
COMPENSATED_ROTATIONS = {
    0: ((612, 792), b""),
    90: ((792, 612), b"0 1 -1 0 792 0 cm "),
    180: ((612, 792), b"-1 0 0 -1 612 792 cm "),
    270: ((792, 612), b"0 -1 1 0 0 612 cm "),
}

PRICE_LIST = b"BT /F1 12 Tf 72 700 Td (PRICE LIST) Tj 0 -20 Td (Apples 1.20) Tj ET"


def hello_content(text_matrix: bytes) -> bytes:
    return b"BT /F 24 Tf " + text_matrix + HELLO_LINES


def glyph_marks(page_text):
    return [mark for mark in page_text.mark_list if not mark.meta]


@pytest.fixture()
def hello_page(make_page, courier):
    def _create(name: str, rotation: int = 0):
        return make_page(hello_content(TEXT_MATRICES[name]), fonts={"F": courier}, rotation=rotation)

    return _create


@pytest.mark.parametrize("name", sorted(TEXT_MATRICES))
def test_hello_world_reading_order(hello_page, name) -> None:
    page_text = extract_page_text(hello_page(name))
    assert page_text.text == "Hello World!\nDoink"
    assert len(page_text.mark_list) == 18
    assert page_text.mark_list[12].meta
    assert page_text.mark_list[13].text == "D"
    assert page_text.mark_list[13].offset == 13


def test_hello_world_boxes(hello_page, courier) -> None:
    page_text = extract_page_text(hello_page("identity"))
    h = page_text.mark_list[0].bbox
    assert h.to_tuple() == pytest.approx((0, 24 * courier.descent, 14.4, 24 * (courier.descent + 1)))
    d = page_text.mark_list[13].bbox
    assert (d.llx, d.lly) == pytest.approx((0, -25 + 24 * courier.descent))


def test_half_turn_boxes_are_negated(hello_page) -> None:
    upright = extract_page_text(hello_page("identity"))
    turned = extract_page_text(hello_page("half-turn"))
    for up, down in zip(glyph_marks(upright), glyph_marks(turned)):
        assert up.text == down.text
        assert down.bbox.to_tuple() == pytest.approx(
            (-up.bbox.urx, -up.bbox.ury, -up.bbox.llx, -up.bbox.lly)
        )


def test_landscape_boxes_are_rotated(hello_page) -> None:
    upright = extract_page_text(hello_page("identity"))
    landscape = extract_page_text(hello_page("landscape"))
    for up, side in zip(glyph_marks(upright), glyph_marks(landscape)):
        assert side.bbox.to_tuple() == pytest.approx(
            (-up.bbox.ury, up.bbox.llx, -up.bbox.lly, up.bbox.urx)
        )


def test_declared_rotation_moves_boxes_into_displayed_frame(make_page, courier) -> None:
    content = b"BT /F1 12 Tf 72 700 Td (A) Tj ET"
    upright = extract_page_text(make_page(content))
    rotated = extract_page_text(make_page(content, rotation=180))
    assert rotated.text == "A"
    assert rotated.rotation == 180
    a, b = upright.mark_list[0].bbox, rotated.mark_list[0].bbox
    assert b.to_tuple() == pytest.approx((612 - a.urx, 792 - a.ury, 612 - a.llx, 792 - a.lly))


def test_price_list_term_box(make_page, courier) -> None:
    page_text = extract_page_text(make_page(PRICE_LIST))
    assert page_text.text == "PRICE LIST\nApples 1.20"
    bbox = page_text.term_bbox("PRICE LIST")
    expected = (72, 700 + 12 * courier.descent, 72 + 10 * 7.2, 700 + 12 * (courier.descent + 1))
    assert bbox.to_tuple() == pytest.approx(expected, abs=0.01)


def test_invalid_config_is_rejected(make_page) -> None:
    with pytest.raises(ValueError):
        extract_page_text(make_page(PRICE_LIST), ExtractionConfig(line_break_ratio=0))


def test_page_text_extractor_reuses_config(make_page) -> None:
    extractor = PageTextExtractor(ExtractionConfig(include_invisible=False))
    page_text = extractor.extract(make_page(b"BT /F1 12 Tf 3 Tr (hidden) Tj ET"))
    assert page_text.text == ""


def test_structural_failure_propagates(make_page) -> None:
    with pytest.raises(PageExtractionError):
        extract_page_text(make_page(b"/F1 12 Tf (x) Tj"))


def _extract_rotated(pdf_factory, rotation: int):
    size, compensation = COMPENSATED_ROTATIONS[rotation]
    path = pdf_factory(
        [{'content': compensation + PRICE_LIST, 'rotate': rotation, 'size': size}],
        filename=f"rotated-{rotation}.pdf",
    )
    with PDFEngine(str(path), config=EngineConfig()) as engine:
        return engine.extract_page_text(0)


def test_rotation_invariance(pdf_factory) -> None:
    reference = _extract_rotated(pdf_factory, 0)
    assert reference.text == "PRICE LIST\nApples 1.20"

    for rotation in (90, 180, 270):
        page_text = _extract_rotated(pdf_factory, rotation)
        assert page_text.rotation == rotation
        assert page_text.text == reference.text
        assert len(page_text.mark_list) == len(reference.mark_list)
        for expected, actual in zip(reference.mark_list, page_text.mark_list):
            assert actual.offset == expected.offset
            if expected.meta:
                assert actual.meta and actual.bbox is None
                continue
            assert actual.bbox.to_tuple() == pytest.approx(expected.bbox.to_tuple(), abs=0.5)


def test_open_array_does_not_drop_the_rest_of_the_page(make_page) -> None:
    content = (
        b"BT /F1 10 Tf 10 700 Td (ok) Tj ET\n"
        b"BT /F1 10 Tf 10 680 Td [ (a) ET\n"
        b"BT /F1 10 Tf 10 660 Td (good) Tj ET"
    )
    page_text = extract_page_text(make_page(content))
    assert page_text.text == "ok\ngood"
    assert len(page_text.stats.errors) == 1
    assert "unparsable content skipped" in page_text.stats.errors[0]


def test_concurrent_extraction_matches_sequential(make_page, courier) -> None:
    pages = [
        make_page(PRICE_LIST),
        make_page(PRICE_LIST, rotation=90),
        make_page(hello_content(TEXT_MATRICES["half-turn"]), fonts={"F": courier}),
        make_page(hello_content(TEXT_MATRICES["landscape"]), fonts={"F": courier}),
    ] * 4
    sequential = [extract_page_text(page) for page in pages]
    with ThreadPoolExecutor(max_workers=4) as executor:
        concurrent = list(executor.map(extract_page_text, pages))
    assert concurrent == sequential

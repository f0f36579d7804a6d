import pytest

from textmarks.engine.page_extractor import extract_page_text
from textmarks.models.text_marks import PageText, Rectangle, TextMark, TextMarkArray
from textmarks.utils.errors import InvalidRange, NoMatch

from conftest import ascii_font

HELLO = b"BT /F 24 Tf (Hello World!)Tj 0 -25 Td (Doink)Tj ET"


def box(x: float) -> Rectangle:
    return Rectangle(x, 0, x + 5, 10)


@pytest.fixture()
def ligature_text() -> PageText:
    # "a" + ligature "ffi" + separator + "b"
    marks = (
        TextMark(0, "a", box(0)),
        TextMark(1, "ffi", box(5)),
        TextMark(4, " ", None, meta=True),
        TextMark(5, "b", box(20)),
    )
    return PageText(text="affi b", mark_list=marks)


@pytest.fixture()
def hello(make_page, courier) -> PageText:
    return extract_page_text(make_page(HELLO, fonts={"F": courier}))


@pytest.fixture()
def mixed(make_page) -> PageText:
    # Ligature, composed accent and word gap; uncomposable accent; plain line
    font = ascii_font(extra={1: "\ufb01", 2: "\u0301"}, widths={2: 0.0})
    content = (
        b"BT /F1 10 Tf 10 700 Td [(o\\001ce) -1000 (cafe) 400 (\\002)] TJ "
        b"0 -20 Td [(q) 400 (\\002) -400 (ed)] TJ "
        b"0 -20 Td (last line) Tj ET"
    )
    return extract_page_text(make_page(content, fonts={"F1": font}))


def test_rectangle_union_and_size() -> None:
    rect = Rectangle(0, 0, 2, 3).union(Rectangle(1, -1, 4, 2))
    assert rect.to_tuple() == (0, -1, 4, 3)
    assert (rect.width, rect.height) == (4, 4)


def test_mark_end() -> None:
    assert TextMark(3, "ffi", None).end == 6


@pytest.mark.parametrize("start,end", [(-1, 0), (0, 10 ** 9), (1, 0), (2, 2)])
def test_invalid_ranges(hello, start, end) -> None:
    with pytest.raises(InvalidRange):
        hello.marks.range_offset(start, end)


def test_invalid_range_is_a_value_error(ligature_text) -> None:
    with pytest.raises(ValueError):
        ligature_text.marks.range_offset(0, 7)


def test_range_inside_ligature_returns_whole_mark(ligature_text) -> None:
    for start in (1, 2, 3):
        view = ligature_text.marks.range_offset(start, start + 1)
        assert [m.text for m in view] == ["ffi"]


def test_range_spanning_marks(ligature_text) -> None:
    view = ligature_text.marks.range_offset(0, 3)
    assert [m.text for m in view] == ["a", "ffi"]
    assert view.bbox().to_tuple() == (0, 0, 10, 10)


def test_separator_only_range(ligature_text) -> None:
    with pytest.raises(NoMatch):
        PageText(text="affi b", mark_list=tuple(m for m in ligature_text.mark_list if not m.meta)).marks.range_offset(4, 5)


def test_bbox_skips_separators(ligature_text) -> None:
    view = ligature_text.marks.range_offset(3, 6)
    assert [m.text for m in view] == ["ffi", " ", "b"]
    assert view.bbox().to_tuple() == (5, 0, 25, 10)


def test_views_keep_page_length(ligature_text) -> None:
    view = ligature_text.marks.range_offset(0, 2)
    assert view.text_length == 6
    with pytest.raises(NoMatch):
        view.range_offset(4, 6)
    with pytest.raises(InvalidRange):
        view.range_offset(0, 7)


def test_slicing_and_indexing(ligature_text) -> None:
    marks = ligature_text.marks
    assert len(marks) == 4
    assert marks[0].text == "a"
    assert isinstance(marks[1:3], TextMarkArray)
    assert [m.text for m in marks[1:3]] == ["ffi", " "]
    assert marks.elements()[-1].text == "b"


def test_empty_view_has_no_box() -> None:
    assert TextMarkArray([], 0).bbox() is None


def test_mark_index_is_built_once(ligature_text) -> None:
    assert ligature_text.marks is ligature_text.marks
    assert ligature_text == PageText(text="affi b", mark_list=ligature_text.mark_list)


def starts_with_tail(term: str, mark_text: str) -> bool:
    """True if term begins with some suffix of mark_text."""
    return any(term.startswith(mark_text[i:]) for i in range(len(mark_text)))


def ends_with_head(term: str, mark_text: str) -> bool:
    """True if term ends with some prefix of mark_text."""
    return any(term.endswith(mark_text[:i]) for i in range(len(mark_text), 0, -1))


def assert_windows_are_covered(page_text: PageText) -> None:
    text = page_text.text
    marks = page_text.marks
    for width in range(1, len(text) // 2 + 1):
        for start in range(len(text) - width + 1):
            end = start + width
            term = text[start:end]
            view = marks.range_offset(start, end)
            assert len(view) > 0, (start, end)
            first, last = view[0], view[-1]
            if len(first.text) <= width:
                assert starts_with_tail(term, first.text), (term, first)
            if len(last.text) <= width:
                assert ends_with_head(term, last.text), (term, last)


def test_range_query_containment(hello) -> None:
    assert_windows_are_covered(hello)


def test_range_query_containment_with_ligatures_and_accents(mixed) -> None:
    assert mixed.text == "ofice caf\u00e9\nq\u0301ed\nlast line"
    assert_windows_are_covered(mixed)


def test_find_term(hello) -> None:
    marks = hello.find_term("World")
    assert "".join(m.text for m in marks) == "World"
    with pytest.raises(NoMatch):
        hello.find_term("absent")
    with pytest.raises(NoMatch):
        hello.find_term("")


def test_find_all(make_page, courier) -> None:
    page_text = extract_page_text(make_page(b"BT /F 10 Tf (abc abc) Tj ET", fonts={"F": courier}))
    matches = page_text.find_all("abc")
    assert [offset for offset, _ in matches] == [0, 4]
    assert matches[1][1].bbox().llx == pytest.approx(24)
    assert page_text.find_all("") == []


def test_term_bbox_missing_term(hello) -> None:
    assert hello.term_bbox("nothing here") is None

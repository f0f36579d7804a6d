"""
Pydantic models for the Text Marks API

Field names are camelCase to match the JSON consumed by the web client.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from textmarks.models.text_marks import ExtractionStats, PageText, Rectangle, TextMark, TextMarkArray


class BoundingBox(BaseModel):
    """Box in default page space (PDF points, origin at the media box's lower left)"""
    llx: float
    lly: float
    urx: float
    ury: float


class TextMarkModel(BaseModel):
    """One mark: a span of the page text and the glyph box that produced it"""
    offset: int
    text: str
    bbox: Optional[BoundingBox] = None  # None for inserted separators
    fontName: str = ""
    fontSize: float = 0.0
    fillColor: str = "#000000"
    invisible: bool = False
    meta: bool = False


class ExtractionStatsModel(BaseModel):
    glyphs: int = 0
    unmapped: int = 0
    skippedOperators: int = 0
    errors: List[str] = Field(default_factory=list)


class PageTextResponse(BaseModel):
    """Logical text and marks of one page"""
    pageNumber: int
    rotation: int = 0
    text: str
    marks: List[TextMarkModel] = Field(default_factory=list)
    stats: ExtractionStatsModel = Field(default_factory=ExtractionStatsModel)
    error: Optional[str] = Field(None, description="Set when the page could not be extracted")


class TermLocation(BaseModel):
    """One occurrence of a searched term"""
    pageNumber: int
    start: int = Field(..., description="Code point offset of the occurrence in the page text")
    end: int
    bbox: Optional[BoundingBox] = None
    marks: List[TextMarkModel] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    detail: str


def rectangle_to_bbox(rect: Optional[Rectangle]) -> Optional[BoundingBox]:
    if rect is None:
        return None
    return BoundingBox(llx=rect.llx, lly=rect.lly, urx=rect.urx, ury=rect.ury)


def mark_to_model(mark: TextMark) -> TextMarkModel:
    return TextMarkModel(
        offset=mark.offset,
        text=mark.text,
        bbox=rectangle_to_bbox(mark.bbox),
        fontName=mark.font_name,
        fontSize=mark.font_size,
        fillColor=mark.fill_color,
        invisible=mark.invisible,
        meta=mark.meta,
    )


def stats_to_model(stats: ExtractionStats) -> ExtractionStatsModel:
    return ExtractionStatsModel(
        glyphs=stats.glyphs,
        unmapped=stats.unmapped,
        skippedOperators=stats.skipped_operators,
        errors=list(stats.errors),
    )


def page_text_to_response(page_text: PageText, page_number: int) -> PageTextResponse:
    """Convert an extracted page into its API representation."""
    return PageTextResponse(
        pageNumber=page_number,
        rotation=page_text.rotation,
        text=page_text.text,
        marks=[mark_to_model(mark) for mark in page_text.mark_list],
        stats=stats_to_model(page_text.stats),
    )


def term_location(page_number: int, start: int, term: str, marks: TextMarkArray) -> TermLocation:
    return TermLocation(
        pageNumber=page_number,
        start=start,
        end=start + len(term),
        bbox=rectangle_to_bbox(marks.bbox()),
        marks=[mark_to_model(mark) for mark in marks],
    )

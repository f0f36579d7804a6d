"""
Content stream interpreter for text extraction.

Walks the typed operators of one page (and any Form XObjects it paints),
tracking the text state and the transform stack, and emits one GlyphEvent per
character code shown. Problems local to an operator or a glyph are recovered
from and counted; only structural failures raise PageExtractionError.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import IntFlag
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from textmarks.constants.pdf_operators import (
    INVISIBLE_RENDER_MODES, RENDER_CLIP, RENDER_FILL, RENDER_FILL_CLIP, RENDER_FILL_STROKE,
    RENDER_FILL_STROKE_CLIP, RENDER_INVISIBLE, RENDER_STROKE, RENDER_STROKE_CLIP,
)
from textmarks.models.page_source import FormXObject, GlyphFont, PageSource
from textmarks.models.text_marks import ExtractionStats
from textmarks.processors.content_operators import (
    BeginText, ConcatMatrix, ContentOperator, EndText, GraphicsBlock, MoveText,
    NextLine, PaintXObject, RestoreState, SaveState, SetCharSpacing, SetColor,
    SetColorSpace, SetFont, SetHorizontalScaling, SetLeading, SetRenderMode,
    SetTextMatrix, SetTextRise, SetWordSpacing, ShowText, parse_content,
)
from textmarks.processors.transform_stack import TransformStack
from textmarks.utils.colors import DEFAULT_COLOR, DEVICE_GRAY, initial_components, resolve_color
from textmarks.utils.errors import (
    PageExtractionError,
    StreamDecodeError,
    UnmappedGlyph,
    UnsupportedColorspace,
)

if TYPE_CHECKING:
    from textmarks.engine.config import ExtractionConfig

logger = logging.getLogger(__name__)

SCALING_PERCENTAGE_DIVISOR = 0.01
DISPLACEMENT_MULTIPLIER = 0.001
SPACE_CODE = 32


class RenderMode(IntFlag):
    """Painting effects of a text rendering mode (Tr)."""
    NONE = 0
    STROKE = 1
    FILL = 2
    CLIP = 4


_RENDER_MODE_FLAGS = {
    RENDER_FILL: RenderMode.FILL,
    RENDER_STROKE: RenderMode.STROKE,
    RENDER_FILL_STROKE: RenderMode.FILL | RenderMode.STROKE,
    RENDER_INVISIBLE: RenderMode.NONE,
    RENDER_FILL_CLIP: RenderMode.FILL | RenderMode.CLIP,
    RENDER_STROKE_CLIP: RenderMode.STROKE | RenderMode.CLIP,
    RENDER_FILL_STROKE_CLIP: RenderMode.FILL | RenderMode.STROKE | RenderMode.CLIP,
    RENDER_CLIP: RenderMode.CLIP,
}


def render_mode_flags(mode: int) -> RenderMode:
    return _RENDER_MODE_FLAGS.get(mode, RenderMode.FILL)


@dataclass
class TextState:
    """Text and colour parameters saved and restored with the graphics state."""
    font: Optional[GlyphFont] = None
    font_name: str = ""
    font_size: float = 0.0
    char_spacing: float = 0.0
    word_spacing: float = 0.0
    horizontal_scaling: float = 100.0
    leading: float = 0.0
    rise: float = 0.0
    render_mode: int = 0
    fill_space: str = DEVICE_GRAY
    stroke_space: str = DEVICE_GRAY
    fill_color: str = DEFAULT_COLOR
    stroke_color: str = DEFAULT_COLOR


@dataclass
class GlyphEvent:
    """
    One shown character code.

    `matrix` maps glyph space to default page space and is a private copy.
    `font_box` is the glyph's nominal box in glyph space (em units), `origin`
    the baseline start in page space (text rise excluded) and `advance` the
    page-space vector the cursor moved by.
    """
    sequence: int
    text: str
    code: int
    font_name: str
    font_size: float
    font_box: Tuple[float, float, float, float]
    matrix: np.ndarray
    origin: Tuple[float, float]
    advance: Tuple[float, float]
    render_mode: int = 0
    fill_color: str = DEFAULT_COLOR
    stroke_color: str = DEFAULT_COLOR
    unmapped: bool = False
    new_line: bool = False

    @property
    def invisible(self) -> bool:
        return self.render_mode in INVISIBLE_RENDER_MODES

    @property
    def render_flags(self) -> RenderMode:
        return render_mode_flags(self.render_mode)


class ContentStreamInterpreter:
    """
    Text state machine over one page's content.

    The state moves Outside-Text-Object -> In-Text-Object on BT and back on
    ET. Each operator variant has exactly one handler in the dispatch table.
    """

    def __init__(
        self,
        page: PageSource,
        transforms: TransformStack,
        config: 'ExtractionConfig',
    ):
        self.page = page
        self.transforms = transforms
        self.config = config
        self.state = TextState()
        self.events: List[GlyphEvent] = []

        self._report_level = self.config.report_level()
        self._fonts: Mapping[str, GlyphFont] = page.fonts
        self._xobjects: Mapping[str, FormXObject] = page.xobjects
        self._active_forms: Set[int] = set()
        self._in_text_object = False
        self._entered_text_object = False
        self._shows_outside_text = 0
        self._pending_new_line = False
        self._unmapped = 0
        self._skipped = 0
        self._errors: List[str] = []

        self._handlers: Dict[type, Callable[[ContentOperator], None]] = {
            SaveState: self._unscoped_state,
            RestoreState: self._unscoped_state,
            GraphicsBlock: self._graphics_block,
            ConcatMatrix: self._concat_matrix,
            BeginText: self._begin_text,
            EndText: self._end_text,
            MoveText: self._move_text,
            SetTextMatrix: self._set_text_matrix,
            NextLine: self._next_line,
            SetFont: self._set_font,
            SetCharSpacing: self._set_char_spacing,
            SetWordSpacing: self._set_word_spacing,
            SetHorizontalScaling: self._set_horizontal_scaling,
            SetLeading: self._set_leading,
            SetTextRise: self._set_text_rise,
            SetRenderMode: self._set_render_mode,
            ShowText: self._show_text,
            SetColorSpace: self._set_color_space,
            SetColor: self._set_color,
            PaintXObject: self._paint_xobject,
        }

    @property
    def handled_operators(self) -> Set[type]:
        return set(self._handlers)

    @property
    def stats(self) -> ExtractionStats:
        return ExtractionStats(
            glyphs=len(self.events),
            unmapped=self._unmapped,
            skipped_operators=self._skipped,
            errors=tuple(self._errors),
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> List[GlyphEvent]:
        """
        Interpret the page content and return its glyph events in order.

        Raises:
            PageExtractionError: If no operator could be recovered from a
                non-empty stream, or text was shown but no text object was
                ever entered
        """
        parsed = parse_content(self.page.content)
        for error in parsed.errors:
            self._skip(error)

        if parsed.errors and parsed.recovered_count == 0:
            raise PageExtractionError(
                f"Content stream is unparsable: {len(parsed.errors)} error(s), no operators recovered"
            )

        self._execute(parsed.operators)

        if self._shows_outside_text and not self._entered_text_object:
            raise PageExtractionError(
                f"{self._shows_outside_text} text operator(s) shown but no text object was entered"
            )

        if self._unmapped:
            self._report(
                logging.INFO,
                f"Page {self.page.page_number}: {self._unmapped} glyph(s) without Unicode mapping",
            )
        return self.events

    def _execute(self, operators: Sequence[ContentOperator]) -> None:
        for operator in operators:
            handler = self._handlers[type(operator)]
            try:
                handler(operator)
            except StreamDecodeError as e:
                self._skip(e)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _report(self, level: int, message: str) -> None:
        if level >= self._report_level:
            logger.log(level, message)

    def _skip(self, error: StreamDecodeError) -> None:
        self._skipped += 1
        self._errors.append(str(error))
        self._report(logging.WARNING, f"Skipping operator: {error}")

    # ------------------------------------------------------------------
    # Graphics state
    # ------------------------------------------------------------------

    @contextmanager
    def _graphics_scope(self) -> Iterator[None]:
        saved_state = replace(self.state)
        with self.transforms.saved():
            try:
                yield
            finally:
                self.state = saved_state

    def _unscoped_state(self, operator: ContentOperator) -> None:
        # q/Q are folded into GraphicsBlock by the decoder
        raise StreamDecodeError("graphics state operator outside a block", operator=type(operator).__name__)

    def _graphics_block(self, operator: GraphicsBlock) -> None:
        with self._graphics_scope():
            self._execute(operator.body)

    def _concat_matrix(self, operator: ConcatMatrix) -> None:
        self.transforms.concat(*operator.matrix)

    # ------------------------------------------------------------------
    # Text objects and positioning
    # ------------------------------------------------------------------

    def _require_text_object(self, op: str) -> None:
        if not self._in_text_object:
            raise StreamDecodeError("used outside a text object", operator=op)

    def _begin_text(self, operator: BeginText) -> None:
        if self._in_text_object:
            self._report(logging.DEBUG, "BT inside a text object, restarting it")
        self._in_text_object = True
        self._entered_text_object = True
        self.transforms.begin_text()

    def _end_text(self, operator: EndText) -> None:
        self._require_text_object("ET")
        self._in_text_object = False

    def _move_text(self, operator: MoveText) -> None:
        self._require_text_object("TD" if operator.set_leading else "Td")
        if operator.set_leading:
            self.state.leading = -operator.ty
        self.transforms.move_line(operator.tx, operator.ty)

    def _set_text_matrix(self, operator: SetTextMatrix) -> None:
        self._require_text_object("Tm")
        self.transforms.set_text_matrix(*operator.matrix)

    def _next_line(self, operator: Optional[NextLine] = None) -> None:
        self._require_text_object("T*")
        self.transforms.move_line(0.0, -self.state.leading)
        self._pending_new_line = True

    # ------------------------------------------------------------------
    # Text state
    # ------------------------------------------------------------------

    def _set_font(self, operator: SetFont) -> None:
        self.state.font_name = operator.name
        self.state.font_size = operator.size
        self.state.font = self._fonts.get(operator.name)
        if self.state.font is None:
            raise StreamDecodeError(f"font {operator.name} is not in the page resources", operator="Tf")

    def _set_char_spacing(self, operator: SetCharSpacing) -> None:
        self.state.char_spacing = operator.value

    def _set_word_spacing(self, operator: SetWordSpacing) -> None:
        self.state.word_spacing = operator.value

    def _set_horizontal_scaling(self, operator: SetHorizontalScaling) -> None:
        self.state.horizontal_scaling = operator.value

    def _set_leading(self, operator: SetLeading) -> None:
        self.state.leading = operator.value

    def _set_text_rise(self, operator: SetTextRise) -> None:
        self.state.rise = operator.value

    def _set_render_mode(self, operator: SetRenderMode) -> None:
        self.state.render_mode = operator.mode

    # ------------------------------------------------------------------
    # Colour
    # ------------------------------------------------------------------

    def _resolve_color(self, space: str, components: Sequence[float]) -> str:
        try:
            return resolve_color(space, components)
        except UnsupportedColorspace as e:
            self._report(logging.INFO, f"{e}, using {DEFAULT_COLOR}")
            return DEFAULT_COLOR

    def _set_color_space(self, operator: SetColorSpace) -> None:
        color = self._resolve_color(operator.name, initial_components(operator.name))
        if operator.stroke:
            self.state.stroke_space = operator.name
            self.state.stroke_color = color
        else:
            self.state.fill_space = operator.name
            self.state.fill_color = color

    def _set_color(self, operator: SetColor) -> None:
        if operator.stroke:
            space = operator.space or self.state.stroke_space
            self.state.stroke_space = space
            self.state.stroke_color = self._resolve_color(space, operator.components)
        else:
            space = operator.space or self.state.fill_space
            self.state.fill_space = space
            self.state.fill_color = self._resolve_color(space, operator.components)

    # ------------------------------------------------------------------
    # Text showing
    # ------------------------------------------------------------------

    def _show_text(self, operator: ShowText) -> None:
        if not self._in_text_object:
            self._shows_outside_text += 1
            raise StreamDecodeError("text shown outside a text object", operator=operator.operator)

        if operator.spacing is not None:
            self.state.word_spacing, self.state.char_spacing = operator.spacing
        if operator.new_line:
            self._next_line()

        font = self.state.font
        if font is None:
            raise StreamDecodeError(f"no usable font selected ({self.state.font_name or 'none'})", operator=operator.operator)

        h_scale = self.state.horizontal_scaling * SCALING_PERCENTAGE_DIVISOR
        for segment in operator.segments:
            if isinstance(segment, bytes):
                self._show_string(font, segment, h_scale)
            else:
                displacement = -segment * DISPLACEMENT_MULTIPLIER * self.state.font_size * h_scale
                self.transforms.advance(displacement)

    def _decode_code(self, font: GlyphFont, code: int) -> Tuple[str, bool]:
        try:
            return font.to_text(code), False
        except UnmappedGlyph as e:
            self._unmapped += 1
            self._report(logging.DEBUG, str(e))
            return self.config.unmapped_placeholder, True

    def _show_string(self, font: GlyphFont, data: bytes, h_scale: float) -> None:
        state = self.state
        for code in font.codes(data):
            text, unmapped = self._decode_code(font, code)
            width = font.width(code)

            spacing = state.char_spacing
            if code == SPACE_CODE and not font.multibyte:
                spacing += state.word_spacing
            advance = (width * state.font_size + spacing) * h_scale

            origin = self.transforms.text_point(0.0, 0.0)
            end = self.transforms.text_point(advance, 0.0)
            event = GlyphEvent(
                sequence=len(self.events),
                text=text,
                code=code,
                font_name=font.name,
                font_size=state.font_size,
                font_box=(0.0, font.descent, width, font.descent + 1.0),
                matrix=self.transforms.glyph_matrix(state.font_size, h_scale, state.rise),
                origin=origin,
                advance=(end[0] - origin[0], end[1] - origin[1]),
                render_mode=state.render_mode,
                fill_color=state.fill_color,
                stroke_color=state.stroke_color,
                unmapped=unmapped,
                new_line=self._pending_new_line,
            )
            self._pending_new_line = False
            self.events.append(event)

            if self.config.emit_debug_events:
                logger.debug(
                    f"glyph {event.sequence}: {text!r} code={code} font={font.name} "
                    f"size={state.font_size} origin=({origin[0]:.2f}, {origin[1]:.2f}) mode={state.render_mode}"
                )

            self.transforms.advance(advance)

    # ------------------------------------------------------------------
    # XObjects
    # ------------------------------------------------------------------

    def _paint_xobject(self, operator: PaintXObject) -> None:
        form = self._xobjects.get(operator.name)
        if form is None:
            # Images and unknown XObjects carry no text
            return

        if id(form) in self._active_forms:
            raise StreamDecodeError(f"form {operator.name} paints itself", operator="Do")
        if len(self._active_forms) >= self.config.max_form_depth:
            raise StreamDecodeError(
                f"form {operator.name} exceeds nesting depth {self.config.max_form_depth}", operator="Do"
            )

        parsed = parse_content(form.content)
        for error in parsed.errors:
            self._skip(error)

        saved_resources = (self._fonts, self._xobjects)
        saved_in_text = self._in_text_object
        self._active_forms.add(id(form))
        try:
            with self._graphics_scope():
                self.transforms.concat(*form.matrix)
                self._fonts = form.fonts or saved_resources[0]
                self._xobjects = form.xobjects
                self._in_text_object = False
                self._execute(parsed.operators)
        finally:
            self._fonts, self._xobjects = saved_resources
            self._in_text_object = saved_in_text
            self._active_forms.discard(id(form))

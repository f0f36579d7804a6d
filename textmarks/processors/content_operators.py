"""
Typed content stream operators.

Content bytes are tokenised with pikepdf and each instruction the text
interpreter cares about becomes one of a closed set of frozen dataclasses.
q/Q pairs are folded into nested GraphicsBlock operators, so graphics state
scoping is structural by the time the interpreter sees the stream.
"""

import logging
import re
import warnings
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple, Union

import pikepdf

from textmarks.constants.pdf_operators import (
    COLOR_SPACE_OPS, IMPLICIT_COLOR_SPACES, STROKE_COLOR_OPS, SUPPORTED_OPS,
    OP_BEGIN_TEXT, OP_CTM, OP_DO_XOBJECT, OP_END_TEXT,
    OP_MOVE_TEXT, OP_MOVE_TEXT_SET_LEADING, OP_NEXT_LINE,
    OP_NEXT_LINE_SHOW_TEXT, OP_RESTORE_STATE, OP_SAVE_STATE,
    OP_SET_CHAR_SPACING, OP_SET_FONT, OP_SET_HORIZ_SCALING, OP_SET_LEADING,
    OP_SET_SPACING_SHOW_TEXT, OP_SET_TEXT_MATRIX, OP_SET_TEXT_RENDER,
    OP_SET_TEXT_RISE, OP_SET_WORD_SPACING, OP_SHOW_TEXT, OP_SHOW_TEXT_ARRAY,
)
from textmarks.utils.errors import StreamDecodeError

logger = logging.getLogger(__name__)

Matrix6 = Tuple[float, float, float, float, float, float]

# Text object ends used to resynchronise after a tokeniser failure
_TEXT_OBJECT_END = re.compile(rb'(?:^|(?<=\s))ET(?=\s|$)')
# pikepdf warns, instead of failing, when an array, dictionary or string is
# still open at the end of the data and keeps only what it parsed before it
_TRUNCATED_STREAM = re.compile(r'end of (?:stream|content|input|file)', re.IGNORECASE)


# ==============================================================================
# Operator variants
# ==============================================================================

@dataclass(frozen=True)
class SaveState:
    pass

@dataclass(frozen=True)
class RestoreState:
    pass

@dataclass(frozen=True)
class GraphicsBlock:
    """Operators between a q and its matching Q."""
    body: Tuple[Any, ...] = ()

@dataclass(frozen=True)
class ConcatMatrix:
    matrix: Matrix6

@dataclass(frozen=True)
class BeginText:
    pass

@dataclass(frozen=True)
class EndText:
    pass

@dataclass(frozen=True)
class MoveText:
    tx: float
    ty: float
    set_leading: bool = False

@dataclass(frozen=True)
class SetTextMatrix:
    matrix: Matrix6

@dataclass(frozen=True)
class NextLine:
    pass

@dataclass(frozen=True)
class SetFont:
    name: str
    size: float

@dataclass(frozen=True)
class SetCharSpacing:
    value: float

@dataclass(frozen=True)
class SetWordSpacing:
    value: float

@dataclass(frozen=True)
class SetHorizontalScaling:
    value: float

@dataclass(frozen=True)
class SetLeading:
    value: float

@dataclass(frozen=True)
class SetTextRise:
    value: float

@dataclass(frozen=True)
class SetRenderMode:
    mode: int

@dataclass(frozen=True)
class ShowText:
    """
    Tj, TJ, ' and ".

    Segments are strings of character codes or TJ position adjustments in
    thousandths of text space. `new_line` is set for ' and ", and `spacing`
    carries the (word, character) spacing of ".
    """
    segments: Tuple[Union[bytes, float], ...]
    operator: str = "Tj"
    new_line: bool = False
    spacing: Optional[Tuple[float, float]] = None

@dataclass(frozen=True)
class SetColorSpace:
    name: str
    stroke: bool = False

@dataclass(frozen=True)
class SetColor:
    """Colour components; `space` is set for operators with an implicit space (g, rg, k)."""
    components: Tuple[float, ...]
    stroke: bool = False
    space: Optional[str] = None

@dataclass(frozen=True)
class PaintXObject:
    name: str

ContentOperator = Union[
    SaveState, RestoreState, GraphicsBlock, ConcatMatrix,
    BeginText, EndText, MoveText, SetTextMatrix, NextLine,
    SetFont, SetCharSpacing, SetWordSpacing, SetHorizontalScaling,
    SetLeading, SetTextRise, SetRenderMode, ShowText,
    SetColorSpace, SetColor, PaintXObject,
]


@dataclass
class ParsedContent:
    """Decoded operators of one content stream and the errors recovered from."""
    operators: List[ContentOperator] = field(default_factory=list)
    errors: List[StreamDecodeError] = field(default_factory=list)
    instruction_count: int = 0
    recovered_count: int = 0


# ==============================================================================
# Operand helpers
# ==============================================================================

def normalize_operator(instruction) -> bytes:
    op_name = instruction.operator
    if isinstance(op_name, bytes):
        return op_name
    if isinstance(op_name, str):
        return op_name.encode('latin-1')
    try:
        return bytes(op_name.unparse())
    except (AttributeError, TypeError):
        return str(op_name).encode('latin-1')

def _number(value: Any, op: str) -> float:
    if isinstance(value, bool):
        raise StreamDecodeError(f"expected a number, got {value!r}", operator=op)
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise StreamDecodeError(f"expected a number, got {value!r}", operator=op)

def _numbers(operands: Sequence[Any], count: int, op: str) -> Tuple[float, ...]:
    if len(operands) != count:
        raise StreamDecodeError(f"expected {count} operands, got {len(operands)}", operator=op)
    return tuple(_number(value, op) for value in operands)

def _name(value: Any, op: str) -> str:
    if isinstance(value, pikepdf.Name) or (isinstance(value, str) and value.startswith('/')):
        return str(value)[1:]
    raise StreamDecodeError(f"expected a name, got {value!r}", operator=op)

def _string(value: Any, op: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, pikepdf.String):
        return bytes(value)
    raise StreamDecodeError(f"expected a string, got {value!r}", operator=op)

def _text_array(value: Any, op: str) -> Tuple[Union[bytes, float], ...]:
    if not isinstance(value, (list, tuple, pikepdf.Array)):
        raise StreamDecodeError(f"expected an array, got {value!r}", operator=op)
    segments: List[Union[bytes, float]] = []
    for item in value:
        if isinstance(item, (bytes, bytearray, pikepdf.String)):
            segments.append(_string(item, op))
        else:
            segments.append(_number(item, op))
    return tuple(segments)

def _single(operands: Sequence[Any], op: str) -> Any:
    if len(operands) != 1:
        raise StreamDecodeError(f"expected 1 operand, got {len(operands)}", operator=op)
    return operands[0]


# ==============================================================================
# Decoding
# ==============================================================================

def decode_instruction(operator: bytes, operands: Sequence[Any]) -> Optional[ContentOperator]:
    """
    Convert one tokenised instruction into its typed operator.

    Returns:
        The operator, or None for operators the text interpreter ignores

    Raises:
        StreamDecodeError: If the operands do not fit the operator
    """
    if operator not in SUPPORTED_OPS:
        return None
    op = operator.decode('latin-1')

    if operator == OP_SAVE_STATE:
        return SaveState()
    if operator == OP_RESTORE_STATE:
        return RestoreState()
    if operator == OP_CTM:
        return ConcatMatrix(_numbers(operands, 6, op))
    if operator == OP_BEGIN_TEXT:
        return BeginText()
    if operator == OP_END_TEXT:
        return EndText()
    if operator in (OP_MOVE_TEXT, OP_MOVE_TEXT_SET_LEADING):
        tx, ty = _numbers(operands, 2, op)
        return MoveText(tx, ty, set_leading=operator == OP_MOVE_TEXT_SET_LEADING)
    if operator == OP_SET_TEXT_MATRIX:
        return SetTextMatrix(_numbers(operands, 6, op))
    if operator == OP_NEXT_LINE:
        return NextLine()
    if operator == OP_SET_FONT:
        if len(operands) != 2:
            raise StreamDecodeError(f"expected 2 operands, got {len(operands)}", operator=op)
        return SetFont(_name(operands[0], op), _number(operands[1], op))
    if operator == OP_SET_CHAR_SPACING:
        return SetCharSpacing(_number(_single(operands, op), op))
    if operator == OP_SET_WORD_SPACING:
        return SetWordSpacing(_number(_single(operands, op), op))
    if operator == OP_SET_HORIZ_SCALING:
        return SetHorizontalScaling(_number(_single(operands, op), op))
    if operator == OP_SET_LEADING:
        return SetLeading(_number(_single(operands, op), op))
    if operator == OP_SET_TEXT_RISE:
        return SetTextRise(_number(_single(operands, op), op))
    if operator == OP_SET_TEXT_RENDER:
        mode = _number(_single(operands, op), op)
        if mode != int(mode) or not 0 <= mode <= 7:
            raise StreamDecodeError(f"invalid rendering mode {mode}", operator=op)
        return SetRenderMode(int(mode))
    if operator == OP_SHOW_TEXT:
        return ShowText((_string(_single(operands, op), op),), operator=op)
    if operator == OP_SHOW_TEXT_ARRAY:
        return ShowText(_text_array(_single(operands, op), op), operator=op)
    if operator == OP_NEXT_LINE_SHOW_TEXT:
        return ShowText((_string(_single(operands, op), op),), operator=op, new_line=True)
    if operator == OP_SET_SPACING_SHOW_TEXT:
        if len(operands) != 3:
            raise StreamDecodeError(f"expected 3 operands, got {len(operands)}", operator=op)
        word_spacing, char_spacing = _number(operands[0], op), _number(operands[1], op)
        return ShowText(
            (_string(operands[2], op),), operator=op, new_line=True,
            spacing=(word_spacing, char_spacing),
        )
    if operator == OP_DO_XOBJECT:
        return PaintXObject(_name(_single(operands, op), op))

    # Colour operators
    stroke = operator in STROKE_COLOR_OPS
    if operator in COLOR_SPACE_OPS:
        return SetColorSpace(_name(_single(operands, op), op), stroke=stroke)
    # scn/SCN may end with a pattern name, which carries no usable colour
    numeric = [value for value in operands if not isinstance(value, pikepdf.Name)]
    return SetColor(
        tuple(_number(value, op) for value in numeric),
        stroke=stroke,
        space=IMPLICIT_COLOR_SPACES.get(operator),
    )


def nest_graphics_blocks(
    operators: Sequence[ContentOperator], errors: List[StreamDecodeError]
) -> List[ContentOperator]:
    """
    Fold q/Q pairs into GraphicsBlock operators.

    An unmatched Q is dropped and recorded in `errors`; blocks still open at
    the end of the stream are closed there.
    """
    root: List[ContentOperator] = []
    stack: List[List[ContentOperator]] = [root]

    for operator in operators:
        if isinstance(operator, SaveState):
            stack.append([])
        elif isinstance(operator, RestoreState):
            if len(stack) == 1:
                errors.append(StreamDecodeError("restore without matching save", operator="Q"))
                continue
            body = stack.pop()
            stack[-1].append(GraphicsBlock(tuple(body)))
        else:
            stack[-1].append(operator)

    if len(stack) > 1:
        logger.debug(f"Closing {len(stack) - 1} unterminated graphics state block(s)")
    while len(stack) > 1:
        body = stack.pop()
        stack[-1].append(GraphicsBlock(tuple(body)))

    return root


def _decode_chunk(data: bytes, parsed: ParsedContent, decoded: List[ContentOperator]) -> None:
    with pikepdf.new() as pdf:
        stream = pikepdf.Stream(pdf, data)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            instructions = pikepdf.parse_content_stream(stream)
        for warning in caught:
            message = str(warning.message)
            if _TRUNCATED_STREAM.search(message):
                raise StreamDecodeError(f"content stream truncated: {message}")
            logger.debug(f"pikepdf: {message}")
        for instruction in instructions:
            parsed.instruction_count += 1
            try:
                operator = decode_instruction(normalize_operator(instruction), list(instruction.operands))
            except StreamDecodeError as e:
                parsed.errors.append(e)
                continue
            parsed.recovered_count += 1
            if operator is not None:
                decoded.append(operator)


def _split_text_objects(data: bytes) -> List[bytes]:
    chunks = []
    start = 0
    for match in _TEXT_OBJECT_END.finditer(data):
        chunks.append(data[start:match.end()])
        start = match.end()
    if start < len(data):
        chunks.append(data[start:])
    return chunks


def parse_content(data: bytes) -> ParsedContent:
    """
    Tokenise and decode a content stream.

    If pikepdf rejects the stream as a whole, or stops early because an
    object is left open, it is split after each ET and every chunk is parsed
    on its own; chunks that still fail are recorded as StreamDecodeError and
    skipped.
    """
    parsed = ParsedContent()
    decoded: List[ContentOperator] = []
    if not data or not data.strip():
        return parsed

    try:
        _decode_chunk(data, parsed, decoded)
    except (pikepdf.PdfError, StreamDecodeError) as e:
        logger.debug(f"Content stream rejected as a whole ({e}), parsing text objects separately")
        parsed = ParsedContent()
        decoded = []
        for chunk in _split_text_objects(data):
            chunk_operators: List[ContentOperator] = []
            try:
                _decode_chunk(chunk, parsed, chunk_operators)
            except (pikepdf.PdfError, StreamDecodeError) as chunk_error:
                logger.debug(f"Skipping unparsable text object: {chunk_error}")
                parsed.errors.append(StreamDecodeError(f"unparsable content skipped: {chunk_error}"))
                continue
            decoded.extend(chunk_operators)

    parsed.operators = nest_graphics_blocks(decoded, parsed.errors)
    return parsed

"""
Extraction error taxonomy.

Recoverable conditions (StreamDecodeError, UnmappedGlyph, UnsupportedColorspace)
are raised close to where they occur and caught by the interpreter, which logs
and counts them. InvalidRange, NoMatch and PageExtractionError reach the caller.
"""

from typing import Optional


class TextMarksError(Exception):
    """Base class for all text extraction errors"""
    pass


class StreamDecodeError(TextMarksError):
    """Malformed operator or operands at the current stream position"""

    def __init__(self, message: str, operator: Optional[str] = None):
        self.operator = operator
        if operator:
            message = f"{operator}: {message}"
        super().__init__(message)


class UnmappedGlyph(TextMarksError):
    """Character code has no Unicode mapping in the active font"""

    def __init__(self, font_name: str, code: int):
        self.font_name = font_name
        self.code = code
        super().__init__(f"No Unicode mapping for code {code} in font {font_name}")


class UnsupportedColorspace(TextMarksError):
    """Colour space that the colour resolver cannot convert"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unsupported colour space: {name}")


class InvalidRange(TextMarksError, ValueError):
    """Range query with start < 0, end > len(text) or start >= end"""

    def __init__(self, start: int, end: int, length: int):
        self.start = start
        self.end = end
        self.length = length
        super().__init__(f"Invalid range [{start}, {end}) for text of length {length}")


class NoMatch(TextMarksError, LookupError):
    """Range covers only inserted separators, or a term was not found"""

    def __init__(self, message: str):
        super().__init__(message)


class PageExtractionError(TextMarksError):
    """Structural failure that prevents extracting a page"""
    pass

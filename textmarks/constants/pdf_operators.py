"""
PDF Operator Constants

Content stream operators understood by the text interpreter, grouped by
functional category. Anything not listed here is ignored by the decoder.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state
OP_CTM = b'cm'                       # Modify current transformation matrix

GRAPHICS_STATE_OPS = {OP_SAVE_STATE, OP_RESTORE_STATE, OP_CTM}

# ==============================================================================
# Color Operators (PDF spec 8.6.8)
# ==============================================================================
# Stroke
OP_SET_GRAY_STROKE = b'G'            # Set Gray color for stroking
OP_SET_RGB_COLOR_STROKE = b'RG'      # Set RGB color for stroking
OP_SET_CMYK_COLOR_STROKE = b'K'      # Set CMYK color for stroking
OP_SET_COLOR_STROKE = b'SC'          # Set color for stroking (general)
OP_SET_COLOR_STROKE_N = b'SCN'       # Set color for stroking (general + name)
OP_SET_COLOR_SPACE_STROKE = b'CS'    # Set color space for stroking

# Fill (Non-Stroke)
OP_SET_GRAY_FILL = b'g'              # Set Gray color for non-stroking
OP_SET_RGB_COLOR_FILL = b'rg'        # Set RGB color for non-stroking
OP_SET_CMYK_COLOR_FILL = b'k'        # Set CMYK color for non-stroking
OP_SET_COLOR_FILL = b'sc'            # Set color for non-stroking (general)
OP_SET_COLOR_FILL_N = b'scn'         # Set color for non-stroking (general + name)
OP_SET_COLOR_SPACE_FILL = b'cs'      # Set color space for non-stroking

# Operators that carry an implicit device colour space
IMPLICIT_COLOR_SPACES = {
    OP_SET_GRAY_STROKE: 'DeviceGray',
    OP_SET_RGB_COLOR_STROKE: 'DeviceRGB',
    OP_SET_CMYK_COLOR_STROKE: 'DeviceCMYK',
    OP_SET_GRAY_FILL: 'DeviceGray',
    OP_SET_RGB_COLOR_FILL: 'DeviceRGB',
    OP_SET_CMYK_COLOR_FILL: 'DeviceCMYK',
}

STROKE_COLOR_OPS = {
    OP_SET_GRAY_STROKE, OP_SET_RGB_COLOR_STROKE, OP_SET_CMYK_COLOR_STROKE,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_STROKE_N, OP_SET_COLOR_SPACE_STROKE,
}

COLOR_SPACE_OPS = {OP_SET_COLOR_SPACE_STROKE, OP_SET_COLOR_SPACE_FILL}

COLOR_OPS = {
    OP_SET_GRAY_STROKE, OP_SET_RGB_COLOR_STROKE, OP_SET_CMYK_COLOR_STROKE,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_STROKE_N, OP_SET_COLOR_SPACE_STROKE,
    OP_SET_GRAY_FILL, OP_SET_RGB_COLOR_FILL, OP_SET_CMYK_COLOR_FILL,
    OP_SET_COLOR_FILL, OP_SET_COLOR_FILL_N, OP_SET_COLOR_SPACE_FILL
}

# ==============================================================================
# Text Object and Text State Operators (PDF spec 9.3, 9.4.1)
# ==============================================================================
OP_BEGIN_TEXT = b'BT'            # Begin text object
OP_END_TEXT = b'ET'              # End text object
OP_SET_FONT = b'Tf'              # Set text font and size
OP_SET_CHAR_SPACING = b'Tc'      # Set character spacing
OP_SET_WORD_SPACING = b'Tw'      # Set word spacing
OP_SET_HORIZ_SCALING = b'Tz'     # Set horizontal text scaling
OP_SET_LEADING = b'TL'           # Set text leading
OP_SET_TEXT_RISE = b'Ts'         # Set text rise
OP_SET_TEXT_RENDER = b'Tr'       # Set text rendering mode

TEXT_STATE_OPS = {
    OP_BEGIN_TEXT, OP_END_TEXT, OP_SET_FONT, OP_SET_CHAR_SPACING,
    OP_SET_WORD_SPACING, OP_SET_HORIZ_SCALING, OP_SET_LEADING,
    OP_SET_TEXT_RISE, OP_SET_TEXT_RENDER
}

# ==============================================================================
# Text Positioning Operators (PDF spec 9.4.2)
# ==============================================================================
OP_MOVE_TEXT = b'Td'              # Move text position
OP_MOVE_TEXT_SET_LEADING = b'TD'  # Move text position and set leading
OP_SET_TEXT_MATRIX = b'Tm'        # Set text matrix and text line matrix
OP_NEXT_LINE = b'T*'              # Move to start of next text line

TEXT_POSITIONING_OPS = {OP_MOVE_TEXT, OP_MOVE_TEXT_SET_LEADING, OP_SET_TEXT_MATRIX, OP_NEXT_LINE}

# ==============================================================================
# Text Showing Operators (PDF spec 9.4.3)
# ==============================================================================
OP_SHOW_TEXT = b'Tj'              # Show a text string
OP_SHOW_TEXT_ARRAY = b'TJ'        # Show text strings with positioning
OP_NEXT_LINE_SHOW_TEXT = b"'"     # Move to next line and show text
OP_SET_SPACING_SHOW_TEXT = b'"'   # Set spacing, move to next line, show text

TEXT_SHOWING_OPS = {OP_SHOW_TEXT, OP_SHOW_TEXT_ARRAY, OP_NEXT_LINE_SHOW_TEXT, OP_SET_SPACING_SHOW_TEXT}

# ==============================================================================
# XObject Operators (PDF spec 8.8)
# ==============================================================================
OP_DO_XOBJECT = b'Do'     # Invoke named XObject (image, form, etc.)

XOBJECT_OPS = {OP_DO_XOBJECT}

# ==============================================================================
# Text Rendering Modes (PDF spec 9.3.6, Table 106)
# ==============================================================================
RENDER_FILL = 0
RENDER_STROKE = 1
RENDER_FILL_STROKE = 2
RENDER_INVISIBLE = 3
RENDER_FILL_CLIP = 4
RENDER_STROKE_CLIP = 5
RENDER_FILL_STROKE_CLIP = 6
RENDER_CLIP = 7

INVISIBLE_RENDER_MODES = {RENDER_INVISIBLE, RENDER_CLIP}

# ==============================================================================
# Composite Operator Groups
# ==============================================================================

# Every operator the decoder turns into a typed variant
SUPPORTED_OPS = (
    GRAPHICS_STATE_OPS | COLOR_OPS | TEXT_STATE_OPS |
    TEXT_POSITIONING_OPS | TEXT_SHOWING_OPS | XOBJECT_OPS
)

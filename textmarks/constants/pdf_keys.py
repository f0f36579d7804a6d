"""
PDF Dictionary Keys and Name Constants

Keys as they appear in pdfminer.six resolved dictionaries (no leading slash).
"""

# Resource Dictionary Keys
KEY_RESOURCES = "Resources"
KEY_XOBJECT = "XObject"
KEY_FONT = "Font"

# Object Types and Subtypes
KEY_TYPE = "Type"
KEY_SUBTYPE = "Subtype"
KEY_BASE_FONT = "BaseFont"
VAL_FONT = "Font"
VAL_FORM = "Form"
VAL_TYPE1 = "Type1"

# Form Properties
KEY_MATRIX = "Matrix"

# Default US Letter media box used when a page declares none
DEFAULT_MEDIABOX = (0.0, 0.0, 612.0, 792.0)
IDENTITY_MATRIX = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

"""
Builds PageSource objects from pdfminer.six page objects.

pdfplumber exposes the underlying pdfminer PDFPage as `page.page_obj`; this
module reads its content streams, fonts and Form XObjects so the rest of the
pipeline never touches the document object graph.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdftypes import PDFObjRef, PDFStream, dict_value, list_value, resolve1, stream_value
from pdfminer.psparser import literal_name

from textmarks.constants.pdf_keys import (
    DEFAULT_MEDIABOX,
    IDENTITY_MATRIX,
    KEY_FONT,
    KEY_MATRIX,
    KEY_RESOURCES,
    KEY_SUBTYPE,
    KEY_XOBJECT,
    VAL_FORM,
)
from textmarks.models.page_source import FormXObject, GlyphFont, PageSource
from textmarks.processors.fonts import load_fonts
from textmarks.utils.pdf_transforms import normalize_rotation

logger = logging.getLogger(__name__)


def read_content(contents: Any) -> bytes:
    """Concatenate a page's content streams (separated by whitespace)."""
    if contents is None:
        return b""
    contents = resolve1(contents)
    if not isinstance(contents, list):
        contents = [contents]

    chunks = []
    for stream in contents:
        try:
            chunks.append(stream_value(stream).get_data())
        except Exception as e:
            logger.warning(f"Skipping unreadable content stream: {e}")
    return b"\n".join(chunks)


def _read_matrix(stream: PDFStream, name: str):
    matrix = list_value(stream.get(KEY_MATRIX, list(IDENTITY_MATRIX)))
    if len(matrix) != 6:
        logger.warning(f"Form {name} has a malformed /Matrix {matrix}, using identity")
        return IDENTITY_MATRIX
    return tuple(float(resolve1(v)) for v in matrix)


class PageSourceLoader:
    """
    Resolves the resources of one pdfminer page into a PageSource.

    Form XObjects shared between pages or nested forms are loaded once per
    loader; a form that paints itself resolves to the same FormXObject so the
    interpreter can detect the cycle. A form without its own fonts borrows the
    fonts of whatever paints it, so it is reused only under the same fonts.
    """

    def __init__(self, rsrcmgr: Optional[PDFResourceManager] = None, max_form_depth: int = 8):
        self.rsrcmgr = rsrcmgr or PDFResourceManager()
        self.max_form_depth = max_form_depth
        # objid -> (form, whether its fonts are inherited)
        self._forms: Dict[int, Tuple[FormXObject, bool]] = {}

    def load(self, page_obj: PDFPage, page_number: Optional[int] = None) -> PageSource:
        resources = dict_value(page_obj.resources) if page_obj.resources else {}
        fonts = load_fonts(self.rsrcmgr, resources.get(KEY_FONT))
        xobjects = self._load_xobjects(resources.get(KEY_XOBJECT), fonts, depth=0)

        mediabox = page_obj.mediabox or DEFAULT_MEDIABOX
        try:
            rotation = normalize_rotation(int(page_obj.rotate or 0))
        except ValueError as e:
            logger.warning(f"Page {page_number}: {e}, treating page as unrotated")
            rotation = 0

        return PageSource(
            content=read_content(page_obj.contents),
            fonts=fonts,
            mediabox=tuple(float(v) for v in mediabox),
            rotation=rotation,
            xobjects=xobjects,
            page_number=page_number,
        )

    def _load_xobjects(
        self,
        xobject_dict: Any,
        inherited_fonts: Dict[str, GlyphFont],
        depth: int,
    ) -> Dict[str, FormXObject]:
        forms: Dict[str, FormXObject] = {}
        if not xobject_dict:
            return forms
        if depth >= self.max_form_depth:
            logger.warning(f"Form XObjects nested deeper than {self.max_form_depth} are not loaded")
            return forms

        for name, ref in dict_value(xobject_dict).items():
            objid = ref.objid if isinstance(ref, PDFObjRef) else None
            cached = self._forms.get(objid) if objid is not None else None
            if cached is not None:
                form, inherits_fonts = cached
                if not inherits_fonts or form.fonts is inherited_fonts:
                    forms[str(name)] = form
                    continue

            try:
                stream = stream_value(ref)
            except Exception as e:
                logger.warning(f"Could not resolve XObject {name}: {e}")
                continue
            if literal_name(stream.get(KEY_SUBTYPE)) != VAL_FORM:
                continue

            form = self._load_form(str(name), stream, objid, inherited_fonts, depth)
            if form is not None:
                forms[str(name)] = form

        return forms

    def _load_form(
        self,
        name: str,
        stream: PDFStream,
        objid: Optional[int],
        inherited_fonts: Dict[str, GlyphFont],
        depth: int,
    ) -> Optional[FormXObject]:
        try:
            content = stream.get_data()
        except Exception as e:
            logger.warning(f"Could not decode Form XObject {name}: {e}")
            return None

        resources = dict_value(stream.get(KEY_RESOURCES)) if stream.get(KEY_RESOURCES) else {}
        own_fonts = load_fonts(self.rsrcmgr, resources.get(KEY_FONT))
        fonts = own_fonts or inherited_fonts

        form = FormXObject(content=content, matrix=_read_matrix(stream, name), fonts=fonts, name=name)
        # Registered before its children so a self-reference resolves to it
        if objid is not None:
            self._forms[objid] = (form, not own_fonts)

        form.xobjects = self._load_xobjects(resources.get(KEY_XOBJECT), fonts, depth + 1)
        logger.debug(f"Loaded Form XObject {name} ({len(content)} bytes, {len(fonts)} fonts)")
        return form


def load_page_source(
    page_obj: PDFPage,
    rsrcmgr: Optional[PDFResourceManager] = None,
    page_number: Optional[int] = None,
    max_form_depth: int = 8,
) -> PageSource:
    """
    Build the PageSource of a pdfminer page.

    Args:
        page_obj: pdfminer PDFPage (pdfplumber's `page.page_obj`)
        rsrcmgr: Resource manager used to build fonts (new one if None)
        page_number: 1-based page number recorded on the result
        max_form_depth: Nesting limit for Form XObjects
    """
    return PageSourceLoader(rsrcmgr, max_form_depth).load(page_obj, page_number)

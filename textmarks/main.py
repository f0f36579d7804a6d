"""PDF Text Marks Python Server"""

import sys
import logging
import asyncio
import os
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rich.console import Console
from rich.logging import RichHandler

from textmarks.extractors.text_marks_extractor import extract_text_marks, locate_text
from textmarks.models.api_types import ErrorResponse, PageTextResponse, TermLocation
from textmarks.utils.endpoint_decorators import handle_pdf_processing

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600
DEFAULT_PORT = 8000
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Not a PDF, too large, or unreadable"},
    408: {"model": ErrorResponse, "description": "Processing timed out"},
    500: {"model": ErrorResponse, "description": "Unexpected extraction failure"},
}

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Text Marks API",
    description="Extract reading-order text from PDF pages with per-character bounding boxes",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Service information"""
    return {
        "message": "PDF Text Marks API",
        "version": API_VERSION,
        "features": [
            "Reading-order page text",
            "Per-character text marks with bounding boxes",
            "Rotation-invariant page coordinates",
            "Ligature and diacritic aware offsets",
            "Term location with enclosing boxes",
        ]
    }


@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import pdfminer
        import pdfplumber
        import pikepdf
        import numpy

        return {
            "status": "healthy",
            "version": API_VERSION,
            "features": {
                "document_model": "pdfplumber / pdfminer.six",
                "content_stream_parsing": "pikepdf",
                "geometry": "numpy",
            },
            "dependencies": {
                "pdfminer": pdfminer.__version__,
                "pdfplumber": pdfplumber.__version__,
                "pikepdf": pikepdf.__version__,
                "numpy": numpy.__version__,
            }
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )


@app.post("/extract-text-marks", response_model=List[PageTextResponse], responses=ERROR_RESPONSES)
@handle_pdf_processing
async def extract_pdf_text_marks(
    *,
    request: Request,
    file: UploadFile = File(...),
    start_page: int = Form(1, ge=1, description="First page to extract (1-based)"),
    end_page: Optional[int] = Form(None, ge=1, description="Last page to extract (default: last page)"),
    expand_ligatures: bool = Form(True, description="Expand ligature glyphs such as 'fi' into letters"),
    include_invisible: bool = Form(True, description="Keep invisible text (e.g. OCR layers)"),
    include_separator_marks: bool = Form(True, description="Emit marks without geometry for inserted spaces and newlines"),
    strict_mode: bool = Form(False, description="Fail the request if any page cannot be extracted"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Extract the logical text of each page and its text marks.

    **Returns:**
    - One entry per page with `text`, `marks` (offset, text, bounding box,
      font, colour) and extraction `stats`
    - Boxes are in PDF points in the page's displayed (rotation-applied) frame
    """
    temp_file_path = request.state.temp_file_path

    logger.info(f"Extracting text marks from pages {start_page}-{end_page or 'end'}")

    result = await asyncio.to_thread(
        extract_text_marks,
        temp_file_path,
        start_page=start_page,
        end_page=end_page,
        text_config={
            'expand_ligatures': expand_ligatures,
            'include_invisible': include_invisible,
            'include_separator_marks': include_separator_marks,
        },
        strict_mode=strict_mode,
    )

    logger.info(f"Successfully extracted text marks from {len(result)} pages")
    return result


@app.post("/locate-text", response_model=List[TermLocation], responses=ERROR_RESPONSES)
@handle_pdf_processing
async def locate_pdf_text(
    *,
    request: Request,
    file: UploadFile = File(...),
    term: str = Form(..., min_length=1, description="Literal text to search for"),
    expand_ligatures: bool = Form(True, description="Expand ligature glyphs before matching"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Locate every occurrence of a term.

    **Returns:**
    - One entry per occurrence with page number, text offsets, the box
      enclosing its glyphs and the marks involved
    """
    temp_file_path = request.state.temp_file_path

    logger.info(f"Locating {term!r}")

    locations = await asyncio.to_thread(
        locate_text,
        temp_file_path,
        term,
        text_config={'expand_ligatures': expand_ligatures},
    )

    if locations is None:
        logger.error("Text search returned None")
        raise HTTPException(status_code=500, detail="Text search failed")

    return locations


def _configure_server_logging():
    """Configure logging with Rich handler and filters for clean output"""
    console = Console(force_terminal=True)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    class ShutdownFilter(logging.Filter):
        """Filter out shutdown-related log messages"""
        def filter(self, record):
            if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
                return False
            if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
                return False
            return True

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])

    # Allow server startup logs
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)

    for module_name in ["rich", "textmarks"]:
        logging.getLogger(module_name).setLevel(log_level)

    return console


def run():
    """Console entry point: serve the API with uvicorn."""
    console = _configure_server_logging()
    port = int(os.getenv("PORT", DEFAULT_PORT))
    console.print(f"[bold green]Starting server on http://localhost:{port}[/bold green]")

    try:
        uvicorn.run(app, host="0.0.0.0", port=port, log_config=None)
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Server stopped.[/bold yellow]")
        sys.exit(0)


if __name__ == "__main__":
    run()

"""
Decorators for FastAPI upload endpoints.

Wraps an endpoint that receives a PDF upload: validates the upload, stages it
in a temporary file, enforces the processing timeout and maps extraction
failures to HTTP errors.
"""

import os
import tempfile
import logging
import asyncio
from functools import wraps
from typing import Callable, Optional

from fastapi import UploadFile, HTTPException, Request

from textmarks.utils.validation import (
    DEFAULT_MAX_FILE_SIZE_MB,
    PdfValidationError,
    ProcessingTimeoutError,
    validate_file_content,
)

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_TIMEOUT_SECONDS = 300


def _stage_upload(content: bytes) -> str:
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix='.pdf')
    try:
        temp_file.write(content)
        temp_file.flush()
    finally:
        temp_file.close()  # Close handle to allow processing on Windows
    return temp_file.name


def _remove_staged(path: str) -> None:
    if not os.path.exists(path):
        return
    try:
        os.unlink(path)
        logger.debug(f"Cleaned up temporary file: {path}")
    except OSError as e:
        logger.warning(f"Failed to clean up temporary file {path}: {e}")


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Decorator for endpoints taking `request: Request` and `file: UploadFile`.

    The staged upload path is stored in `request.state.temp_file_path`; the
    optional `processing_timeout` keyword bounds the endpoint's run time.
    Status codes: 400 for bad uploads or documents, 408 on timeout, 500 for
    anything unexpected.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        if not request:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: UploadFile = kwargs.get('file')
        if not file:
            raise HTTPException(status_code=400, detail="File parameter is required")

        processing_timeout: Optional[int] = kwargs.get('processing_timeout')
        timeout_seconds = processing_timeout or DEFAULT_PROCESSING_TIMEOUT_SECONDS

        if not file.filename or not file.filename.lower().endswith('.pdf'):
            raise HTTPException(status_code=400, detail="Only PDF files are supported")

        try:
            content = await file.read()
        except Exception as e:
            logger.error(f"Error reading uploaded file: {e}")
            raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {e}")

        is_valid_content, content_error = validate_file_content(content, max_size_mb=DEFAULT_MAX_FILE_SIZE_MB)
        if not is_valid_content:
            logger.warning(f"File content validation failed for {file.filename}: {content_error}")
            raise HTTPException(status_code=400, detail=content_error)

        temp_file_path = _stage_upload(content)
        request.state.temp_file_path = temp_file_path
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)

        except asyncio.TimeoutError:
            logger.error(f"Processing timed out after {timeout_seconds}s for {file.filename}")
            raise HTTPException(
                status_code=408,
                detail=f"PDF processing timed out after {timeout_seconds} seconds."
            )
        except PdfValidationError as e:
            logger.warning(f"PDF validation failed for {file.filename}: {e}")
            raise HTTPException(status_code=400, detail=f"PDF validation failed: {e}")
        except ProcessingTimeoutError as e:
            logger.error(f"Processing timeout for {file.filename}: {e}")
            raise HTTPException(status_code=408, detail=f"Processing timeout: {e}")
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error processing {file.filename}: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Internal server error during PDF processing: {e}"
            )
        finally:
            _remove_staged(temp_file_path)

    return wrapper

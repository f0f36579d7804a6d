"""
Input validation for documents handed to the extractors.

Checks uploaded bytes and files on disk before pdfplumber opens them, and
defines the file-level exceptions the API layer maps to HTTP status codes.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b'%PDF'
DEFAULT_MAX_FILE_SIZE_MB = 50
MIN_AVAILABLE_MEMORY_MB = 100
MIN_FREE_DISK_MB = 100
SUPPORTED_PDF_VERSIONS = ('1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0')
BYTES_PER_MB = 1024 * 1024


class PdfValidationError(Exception):
    """Document could not be validated, opened or extracted"""
    pass


class ProcessingTimeoutError(Exception):
    """Extraction did not finish within the allowed time"""
    pass


def check_signature(header: bytes) -> Tuple[bool, Optional[str]]:
    """
    Check the %PDF magic bytes and log unusual versions.

    Args:
        header: First bytes of the document (at least 8 for the version)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(header) < len(PDF_SIGNATURE):
        return False, "File too small to be a valid PDF"

    if not header.startswith(PDF_SIGNATURE):
        return False, f"Invalid PDF signature. Expected {PDF_SIGNATURE!r}, got {header[:4]!r}"

    if len(header) >= 8:
        version = header[5:8].decode('ascii', errors='replace')
        if version not in SUPPORTED_PDF_VERSIONS:
            # Most such files still parse
            logger.warning(f"Unsupported PDF version: {version}")

    return True, None


def validate_pdf_signature(file_path: str) -> Tuple[bool, Optional[str]]:
    """Validate the signature of a PDF file on disk."""
    try:
        with open(file_path, 'rb') as f:
            return check_signature(f.read(8))
    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except PermissionError:
        return False, f"Permission denied accessing file: {file_path}"
    except OSError as e:
        return False, f"Error validating PDF signature: {e}"


def validate_file_size(file_path: str, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate that a file on disk is within the size limit."""
    max_size_mb = max_size_mb or DEFAULT_MAX_FILE_SIZE_MB
    try:
        size_mb = os.path.getsize(file_path) / BYTES_PER_MB
    except OSError as e:
        return False, f"Error checking file size: {e}"

    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    logger.debug(f"File size validation passed: {size_mb:.1f}MB")
    return True, None


def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate uploaded bytes before they are written to disk.

    Returns:
        Tuple of (is_valid, error_message)
    """
    max_size_mb = max_size_mb or DEFAULT_MAX_FILE_SIZE_MB
    size_mb = len(content) / BYTES_PER_MB
    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    return check_signature(content[:8])


def validate_processing_environment() -> Tuple[bool, Optional[str]]:
    """
    Check that memory and temporary disk space are available for extraction.

    Returns:
        Tuple of (is_valid, error_message)
    """
    available_mb = psutil.virtual_memory().available / BYTES_PER_MB
    if available_mb < MIN_AVAILABLE_MEMORY_MB:
        return False, (
            f"Insufficient memory available: {available_mb:.1f}MB "
            f"(need at least {MIN_AVAILABLE_MEMORY_MB}MB)"
        )

    temp_dir = tempfile.gettempdir()
    free_mb = psutil.disk_usage(temp_dir).free / BYTES_PER_MB
    if free_mb < MIN_FREE_DISK_MB:
        return False, (
            f"Insufficient disk space in {temp_dir}: {free_mb:.1f}MB "
            f"(need at least {MIN_FREE_DISK_MB}MB)"
        )

    logger.debug(f"Environment validation passed: {available_mb:.1f}MB memory, {free_mb:.1f}MB disk")
    return True, None


@dataclass
class ValidationReport:
    """Outcome of validate_pdf_file()."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    file_info: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)


def validate_pdf_file(file_path: str, max_size_mb: Optional[int] = None) -> ValidationReport:
    """
    Run every file-level check and collect the failures.

    Args:
        file_path: Path to the PDF file
        max_size_mb: Maximum file size in MB

    Returns:
        ValidationReport listing all errors found
    """
    report = ValidationReport()
    if not os.path.exists(file_path):
        report.add_error(f"File not found: {file_path}")
        return report

    for check in (
        lambda: validate_file_size(file_path, max_size_mb),
        lambda: validate_pdf_signature(file_path),
        validate_processing_environment,
    ):
        ok, error = check()
        if not ok:
            report.add_error(error)

    report.file_info['size_mb'] = round(os.path.getsize(file_path) / BYTES_PER_MB, 2)
    return report

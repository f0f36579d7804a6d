from textmarks.utils.validation import (
    check_signature,
    validate_file_content,
    validate_file_size,
    validate_pdf_file,
    validate_processing_environment,
)


def test_check_signature() -> None:
    assert check_signature(b"%PDF-1.7") == (True, None)
    ok, error = check_signature(b"PK\x03\x04")
    assert not ok
    assert "Invalid PDF signature" in error
    assert check_signature(b"%P")[0] is False


def test_validate_file_content_size_limit() -> None:
    ok, error = validate_file_content(b"%PDF-1.4" + b"0" * (2 * 1024 * 1024), max_size_mb=1)
    assert not ok
    assert "too large" in error


def test_validate_file_size(tmp_path) -> None:
    path = tmp_path / "small.pdf"
    path.write_bytes(b"%PDF-1.4\n")
    assert validate_file_size(str(path), 1) == (True, None)
    assert validate_file_size(str(tmp_path / "missing.pdf"))[0] is False


def test_validate_pdf_file_collects_errors(tmp_path) -> None:
    path = tmp_path / "bad.pdf"
    path.write_bytes(b"not a pdf at all")
    report = validate_pdf_file(str(path))
    assert not report.is_valid
    assert any("signature" in error for error in report.errors)
    assert report.file_info["size_mb"] == 0.0


def test_validate_pdf_file_missing(tmp_path) -> None:
    report = validate_pdf_file(str(tmp_path / "missing.pdf"))
    assert report.errors == [f"File not found: {tmp_path / 'missing.pdf'}"]


def test_processing_environment() -> None:
    ok, error = validate_processing_environment()
    assert ok, error

"""
Configuration system for text mark extraction.

Provides structured configuration using dataclasses with clear defaults,
type safety, and conversion from dict-based configs (e.g. API form fields).
"""

from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _filter_known_keys(cls, config: Dict[str, Any]) -> Dict[str, Any]:
    """Keep keys that are dataclass fields of cls, warning about the rest."""
    valid_keys = {f.name for f in fields(cls)}
    filtered_config = {}
    for key, value in config.items():
        if key in valid_keys:
            filtered_config[key] = value
        else:
            logger.warning(f"Unknown config key '{key}' will be ignored")
    return filtered_config


@dataclass
class ExtractionConfig:
    """
    Options for turning one page's glyphs into logical text and marks.

    Thresholds are ratios of the font size, so they hold at any scale.

    Example:
        >>> config = ExtractionConfig(word_gap_ratio=0.2, include_invisible=False)
        >>> page_text = extract_page_text(page, config)
    """

    # Layout thresholds
    line_break_ratio: float = 0.5  # Baseline offset (x font size) that starts a new line
    word_gap_ratio: float = 0.1  # Gap (x max(glyph width, font size)) that inserts a space

    # Text normalisation
    expand_ligatures: bool = True  # NFKC-expand presentation-form ligatures
    unmapped_placeholder: str = "\ufffd"  # Text for glyphs without Unicode ("" drops them)

    # Mark selection
    include_invisible: bool = True  # Keep glyphs drawn with render mode 3 or 7
    include_separator_marks: bool = True  # Emit meta marks for inserted spaces/newlines

    # Form XObjects
    max_form_depth: int = 8

    # Reporting
    log_level: str = "WARNING"  # Minimum severity for recoverable issues
    emit_debug_events: bool = False  # Log every glyph event and mark

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.line_break_ratio <= 0:
            logger.error("line_break_ratio must be positive")
            return False

        if self.word_gap_ratio < 0:
            logger.error("word_gap_ratio must be non-negative")
            return False

        if self.max_form_depth < 0:
            logger.error("max_form_depth must be non-negative")
            return False

        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            logger.error(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
            return False

        return True

    def report_level(self) -> int:
        """Numeric logging level for recoverable issues."""
        return logging.getLevelName(str(self.log_level).upper())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'line_break_ratio': self.line_break_ratio,
            'word_gap_ratio': self.word_gap_ratio,
            'expand_ligatures': self.expand_ligatures,
            'unmapped_placeholder': self.unmapped_placeholder,
            'include_invisible': self.include_invisible,
            'include_separator_marks': self.include_separator_marks,
            'max_form_depth': self.max_form_depth,
            'log_level': self.log_level,
            'emit_debug_events': self.emit_debug_events,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ExtractionConfig':
        """
        Create ExtractionConfig from dictionary.

        Unknown keys are ignored with a warning.
        """
        return cls(**_filter_known_keys(cls, config))

    @classmethod
    def default(cls) -> 'ExtractionConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"ExtractionConfig("
            f"line={self.line_break_ratio}, "
            f"word={self.word_gap_ratio}, "
            f"ligatures={self.expand_ligatures}, "
            f"invisible={self.include_invisible}, "
            f"separators={self.include_separator_marks})"
        )


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Example:
        >>> config = EngineConfig(enable_caching=True, max_cache_pages=20)
        >>> engine = PDFEngine(file_path, config=config)
    """

    # Resource management
    enable_caching: bool = True
    max_cache_pages: int = 10

    # Performance
    max_file_size_mb: int = 50

    # Validation
    validate_on_open: bool = True
    strict_mode: bool = False  # A failing page aborts the whole document

    # Text extraction options (as a dictionary for flexibility)
    text_options: Optional[Dict[str, Any]] = None

    # Logging
    log_level: str = "INFO"

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.max_cache_pages < 0:
            logger.error("max_cache_pages must be non-negative")
            return False

        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            logger.error(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
            return False

        if self.text_options is not None and not self.extraction_config().validate():
            return False

        return True

    def extraction_config(self) -> ExtractionConfig:
        """Text options as an ExtractionConfig (defaults if unset)."""
        if not self.text_options:
            return ExtractionConfig.default()
        return ExtractionConfig.from_dict(self.text_options)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Useful for serialization, logging, and debugging.
        """
        return {
            'enable_caching': self.enable_caching,
            'max_cache_pages': self.max_cache_pages,
            'max_file_size_mb': self.max_file_size_mb,
            'validate_on_open': self.validate_on_open,
            'strict_mode': self.strict_mode,
            'text_options': dict(self.text_options) if self.text_options else None,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Unknown keys are ignored with a warning.

        Args:
            config: Dictionary of configuration values

        Returns:
            EngineConfig instance
        """
        return cls(**_filter_known_keys(cls, config))

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"EngineConfig("
            f"caching={self.enable_caching}, "
            f"cache_pages={self.max_cache_pages}, "
            f"strict={self.strict_mode}, "
            f"max_size={self.max_file_size_mb}MB)"
        )


@dataclass
class PageRange:
    """
    Represents a range of pages to process in a PDF document.

    Uses 1-based page numbering consistent with PDF specification.

    Example:
        >>> page_range = PageRange(start=5, end=None)  # page 5 to the end
        >>> page_range.to_page_numbers(7)
        [5, 6, 7]
    """

    start: int  # 1-based page number
    end: Optional[int] = None  # None means "to end of document"

    def __post_init__(self):
        """Validate page range on construction."""
        if self.start < 1:
            raise ValueError(f"start page must be >= 1, got {self.start}")

        if self.end is not None:
            if self.end < 1:
                raise ValueError(f"end page must be >= 1, got {self.end}")
            if self.end < self.start:
                raise ValueError(
                    f"end page ({self.end}) must be >= start page ({self.start})"
                )

    def to_page_numbers(self, total_pages: int) -> List[int]:
        """
        Convert range to explicit list of page numbers, clamped to the document.

        Args:
            total_pages: Total number of pages in document

        Returns:
            List of 1-based page numbers to process
        """
        if total_pages < 1:
            return []

        start = max(1, min(self.start, total_pages))
        end = total_pages if self.end is None else min(self.end, total_pages)

        if start > end:
            return []

        return list(range(start, end + 1))

    def validate(self, total_pages: int) -> bool:
        """
        Validate that range is within document bounds.

        Returns:
            True if range is valid for document
        """
        if total_pages < 1:
            logger.error("total_pages must be >= 1")
            return False

        if self.start > total_pages:
            logger.error(f"start page {self.start} exceeds total pages {total_pages}")
            return False

        if self.end is not None and self.end > total_pages:
            logger.error(f"end page {self.end} exceeds total pages {total_pages}")
            return False

        return True

    @classmethod
    def all_pages(cls) -> 'PageRange':
        """Create range representing all pages in document."""
        return cls(start=1, end=None)

    @classmethod
    def single_page(cls, page_num: int) -> 'PageRange':
        return cls(start=page_num, end=page_num)

    def __repr__(self) -> str:
        """String representation for debugging."""
        if self.end is None:
            return f"PageRange({self.start}\u2192end)"
        elif self.start == self.end:
            return f"PageRange(page {self.start})"
        else:
            return f"PageRange({self.start}\u2192{self.end})"

"""
Base class for processors attached to a PDFEngine.

A processor borrows the engine's open document and page cache and adds one
family of operations on top of it. The engine drives its lifecycle.
"""

from abc import ABC
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from textmarks.engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Abstract base class for engine processors.

    Subclasses may override initialize() and cleanup(); both are idempotent.
    """

    def __init__(self, engine: 'PDFEngine'):
        self.engine = engine
        self._initialized = False
        logger.debug(f"{self.__class__.__name__} created with engine reference")

    def initialize(self) -> None:
        """Set up processor state. Called by the engine when it opens."""
        if self._initialized:
            logger.warning(f"{self.__class__.__name__} already initialized")
            return

        self._initialized = True
        logger.debug(f"{self.__class__.__name__} initialized")

    def cleanup(self) -> None:
        """Release processor state. Safe to call more than once."""
        if not self._initialized:
            return

        self._initialized = False
        logger.debug(f"{self.__class__.__name__} cleaned up")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def validate_state(self) -> bool:
        """
        Validate that processor is in a valid state for operations.

        Returns:
            True if processor is ready, False otherwise
        """
        if not self._initialized:
            logger.error(f"{self.__class__.__name__} not initialized")
            return False

        if self.engine is None:
            logger.error(f"{self.__class__.__name__} has no engine reference")
            return False

        return True

    def __repr__(self) -> str:
        status = "initialized" if self._initialized else "not initialized"
        return f"{self.__class__.__name__}({status})"

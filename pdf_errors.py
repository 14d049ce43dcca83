#!/usr/bin/env python3
"""
pdf_errors.py - Error types shared by the PDF pipelines

Only StrategyFailure is recoverable (the compress pipeline logs it and moves
on). Everything else ends the run with a non-zero exit status.
"""

from typing import Optional


class PdfToolError(Exception):
    """Base error. Carries the file and the stage that failed."""

    def __init__(self, message: str, path: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.stage = stage

    def __str__(self):
        text = self.message
        if self.stage:
            text = f"{self.stage}: {text}"
        if self.path:
            text = f"{text} ({self.path})"
        return text


class ValidationError(PdfToolError):
    """Bad input path. Raised before the PDF engine is touched."""


class SourceReadError(PdfToolError):
    """An input document could not be read or split."""


class PageCombineError(PdfToolError):
    """Combining one page pair failed."""

    def __init__(self, message: str, page: int, path: Optional[str] = None, stage: Optional[str] = "overlay"):
        super().__init__(message, path=path, stage=stage)
        self.page = page


class StrategyFailure(PdfToolError):
    """A single compression strategy failed."""

    def __init__(self, message: str, strategy: str, path: Optional[str] = None):
        super().__init__(message, path=path, stage=strategy)
        self.strategy = strategy


class OutputWriteError(PdfToolError):
    """The declared output could not be written."""

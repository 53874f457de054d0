"""
Exception hierarchy for slide canvas.

Every failure path in the package surfaces as one of these so callers can
report a condition instead of crashing.
"""

from typing import Any, Dict, Optional


class SlideCanvasError(Exception):
    """Base exception for all slide canvas errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {self.cause})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


class InputError(SlideCanvasError):
    """Submitted text is empty or whitespace only"""
    pass


class NothingParsedError(SlideCanvasError):
    """Text produced zero valid slides"""
    pass


class RemoteServiceError(SlideCanvasError):
    """Structuring service unavailable, failed, or answered with the wrong shape"""
    pass


class PreconditionError(SlideCanvasError):
    """Operation requires state that is not present (e.g. no regions)"""
    pass


class ExportError(SlideCanvasError):
    """Document export aborted"""
    pass

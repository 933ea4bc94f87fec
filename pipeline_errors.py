"""
Error Types for BMP Grayscale Pipeline
======================================

I/O faults and strict-validation failures are fatal to a run and are never
retried. Worker faults raised inside the pool are not wrapped here; they
propagate unchanged from the transform.
"""

import time
import traceback
from typing import Any, Dict, Optional


class NonRetryableError(Exception):
    """Base class for errors that abort a pipeline run"""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize a non-retryable error.

        Args:
            message: Error description
            cause: Original exception that caused this error
            error_code: Specific error code for categorization
            details: Additional error context
        """
        super().__init__(message)
        self.cause = cause
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc() if cause else None

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.cause:
            return f"{base_msg} (caused by {type(self.cause).__name__}: {self.cause})"
        return base_msg

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(message={super().__str__()!r}, "
                f"cause={self.cause!r}, error_code={self.error_code!r}, "
                f"details={self.details!r})")

    def log_context(self) -> Dict[str, Any]:
        """Get error context for structured logging"""
        return {
            'error_type': type(self).__name__,
            'error_code': self.error_code,
            'message': str(self),
            'timestamp': self.timestamp,
            'details': self.details,
            'cause': str(self.cause) if self.cause else None
        }


class PipelineIOError(NonRetryableError):
    """
    Any failure of the byte source or sink: open, read, seek, write or flush.

    ``error_code`` names the step that failed.
    """


class HeaderValidationError(NonRetryableError):
    """Raised only in strict mode when a decoded header has error-level issues"""

"""Error types and error codes.

This module defines the error hierarchy for manifest discovery, providing
specific error codes for the different ways a lookup can come up empty.

None of these errors are fatal: the public operations catch them, report a
notice and return without running anything.

Classes:
    - ScriptsErrorCode: Enum of error codes for categorizing failures
    - ScriptsError: Base exception for all discovery-related errors
"""

from enum import Enum
from pathlib import Path


class ScriptsErrorCode(str, Enum):
    """Error codes for discovery operations.

    Used to pick the notice level and message shown to the user.
    """

    # Lookup errors
    NOT_FOUND = "NOT_FOUND"
    NOT_READABLE = "NOT_READABLE"

    # Content errors
    PARSE_ERROR = "PARSE_ERROR"
    EMPTY_SCRIPTS = "EMPTY_SCRIPTS"
    NO_WORKSPACES = "NO_WORKSPACES"


class ScriptsError(Exception):
    """Base exception for discovery errors.

    Attributes:
        code: The error code categorizing this error.
        message: Human-readable error message.
        path: The manifest or directory involved (if applicable).
        cause: The underlying exception that caused this error (if any).

    Example:
        raise ScriptsError(
            code=ScriptsErrorCode.PARSE_ERROR,
            message="Invalid JSON",
            path=Path("packages/a/package.json"),
            cause=original_exception,
        )
    """

    def __init__(
        self,
        code: ScriptsErrorCode,
        message: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: The error code for this error.
            message: Human-readable error message.
            path: The path involved (optional).
            cause: The underlying exception (optional).
        """
        self.code = code
        self.message = message
        self.path = path
        self.cause = cause

        super().__init__(f"[{code.value}] {message}")

"""
Centralized error handling for SketchSolve.

Provides a hierarchy of custom exceptions with user-friendly messages,
suggestions for fixes, and error recovery hints.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, List


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    INFO = auto()  # Informational, operation may have partially succeeded
    WARNING = auto()  # Non-fatal, can continue with degraded functionality
    ERROR = auto()  # Operation failed, but can retry
    CRITICAL = auto()  # Unrecoverable error


@dataclass
class ErrorContext:
    """
    Rich context for error reporting.

    Provides user-friendly information beyond the raw exception.
    """

    title: str  # Short title for dialog/toast
    message: str  # User-friendly message
    technical_details: Optional[str]  # Debug info (shown on expand)
    suggestions: List[str]  # Actionable suggestions
    severity: ErrorSeverity
    recoverable: bool = True  # Can user retry?

    @classmethod
    def from_exception(cls, exc: Exception, context: str = "") -> "ErrorContext":
        """Create ErrorContext from any exception using smart detection."""
        exc_type = type(exc).__name__
        exc_msg = str(exc)

        if isinstance(exc, SketchSolveError):
            return exc.to_context()

        # Image library failures (PIL.UnidentifiedImageError and friends)
        if "image" in exc_type.lower() or "cannot identify image" in exc_msg.lower():
            return cls(
                title="Image Error",
                message="The image could not be read.",
                technical_details=f"{exc_type}: {exc_msg}",
                suggestions=[
                    "Use a PNG or JPEG file",
                    "Check that the file is not corrupted",
                ],
                severity=ErrorSeverity.ERROR,
            )

        # Timeout errors
        if "timeout" in exc_msg.lower() or "timed out" in exc_msg.lower():
            return cls(
                title="Timeout",
                message="The operation took too long and was cancelled.",
                technical_details=f"{exc_type}: {exc_msg}",
                suggestions=[
                    "Check that the relay server is running",
                    "Try again with a smaller drawing",
                ],
                severity=ErrorSeverity.WARNING,
            )

        # Import/dependency errors
        if isinstance(exc, ImportError):
            return cls(
                title="Missing Dependency",
                message="A required component is not installed.",
                technical_details=f"{exc_type}: {exc_msg}",
                suggestions=[
                    "Check that all dependencies are installed",
                    "Run: pip install -e .[dev]",
                    "Restart the application",
                ],
                severity=ErrorSeverity.CRITICAL,
                recoverable=False,
            )

        # Generic fallback
        return cls(
            title="Error",
            message=f"An unexpected error occurred: {exc_msg}",
            technical_details=f"{exc_type}: {exc_msg}\nContext: {context}",
            suggestions=["Try again", "Restart the application"],
            severity=ErrorSeverity.ERROR,
        )


class SketchSolveError(Exception):
    """
    Base exception for all SketchSolve errors.

    Subclasses provide rich error context for user-friendly reporting.
    """

    default_title = "Error"
    default_suggestions: List[str] = []
    default_severity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        *,
        suggestions: Optional[List[str]] = None,
        technical_details: Optional[str] = None,
        severity: Optional[ErrorSeverity] = None,
    ):
        super().__init__(message)
        self.user_message = message
        self.suggestions = suggestions or self.default_suggestions.copy()
        self.technical_details = technical_details
        self.severity = severity or self.default_severity

    def to_context(self) -> ErrorContext:
        """Convert to ErrorContext for display."""
        return ErrorContext(
            title=self.default_title,
            message=self.user_message,
            technical_details=self.technical_details,
            suggestions=self.suggestions,
            severity=self.severity,
            recoverable=self.severity != ErrorSeverity.CRITICAL,
        )


# === Input Errors ===


class ImageGeometryError(SketchSolveError):
    """Raised when an image has zero or negative dimensions."""

    default_title = "Invalid Image"
    default_suggestions = [
        "The image has no visible area",
        "Try a different image",
    ]

    def __init__(self, width: float, height: float):
        super().__init__(
            f"Invalid image size {width}x{height}",
            technical_details=f"width={width!r}, height={height!r}",
        )
        self.width = width
        self.height = height


class ImageDecodeError(SketchSolveError):
    """Raised when uploaded or captured data cannot be decoded as an image."""

    default_title = "Image Error"
    default_suggestions = [
        "Use a PNG or JPEG file",
        "Check that the file is not corrupted",
        "Draw the problem on the canvas instead",
    ]


class ExpressionParseError(SketchSolveError):
    """Raised when an expression for the equivalence checker is malformed."""

    default_title = "Expression Error"
    default_suggestions = [
        "Check for unbalanced parentheses ( )",
        "Use ^ or ** for powers (e.g. x^2)",
        "Supported functions: sin, cos, tan, log, ln, exp, sqrt, abs",
    ]

    def __init__(self, message: str, *, expression: str = "", position: int = -1):
        details = None
        if expression and position >= 0:
            details = f"{expression}\n{' ' * position}^"
        super().__init__(message, technical_details=details)
        self.expression = expression
        self.position = position


# === Resource Errors ===


class CameraError(SketchSolveError):
    """Raised when the camera cannot be opened or read."""

    default_title = "Camera Error"
    default_severity = ErrorSeverity.WARNING
    default_suggestions = [
        "Check that a camera is connected",
        "Allow camera access for this application",
        "Close other applications using the camera",
        "Upload a photo instead",
    ]


# === External Service Errors ===


class RelayError(SketchSolveError):
    """Raised when the relay (or the upstream model API) fails."""

    default_title = "Solve Error"
    default_suggestions = [
        "Start the relay with: sketchsolve --serve",
        "Check that the relay has an API key configured for the provider",
        "Check your network connection",
    ]

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("technical_details", details)
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.details = details


# === Export Errors ===


class ExportError(SketchSolveError):
    """Raised when export fails."""

    default_title = "Export Error"
    default_suggestions = [
        "Check that you have write permission to the location",
        "Try exporting to a different location",
        "Ensure enough disk space is available",
    ]


# === Utility functions ===


def format_error_for_user(exc: Exception, context: str = "") -> str:
    """
    Format an exception into a user-friendly string.

    Returns a single string suitable for status bar or simple display.
    """
    ctx = ErrorContext.from_exception(exc, context)

    result = ctx.message
    if ctx.suggestions:
        result += f" Try: {ctx.suggestions[0]}"

    return result


def format_error_for_dialog(exc: Exception, context: str = "") -> dict:
    """
    Format an exception into a dict suitable for QMessageBox.

    Returns dict with 'title', 'text', 'detailed_text', 'icon' keys.
    """
    from PyQt6.QtWidgets import QMessageBox

    ctx = ErrorContext.from_exception(exc, context)

    # Build detailed text with suggestions
    detailed_parts = []
    if ctx.suggestions:
        detailed_parts.append("Suggestions:")
        for i, sugg in enumerate(ctx.suggestions, 1):
            detailed_parts.append(f"  {i}. {sugg}")
    if ctx.technical_details:
        detailed_parts.append("")
        detailed_parts.append("Technical details:")
        detailed_parts.append(ctx.technical_details)

    # Map severity to icon
    icon_map = {
        ErrorSeverity.INFO: QMessageBox.Icon.Information,
        ErrorSeverity.WARNING: QMessageBox.Icon.Warning,
        ErrorSeverity.ERROR: QMessageBox.Icon.Critical,
        ErrorSeverity.CRITICAL: QMessageBox.Icon.Critical,
    }

    return {
        "title": ctx.title,
        "text": ctx.message,
        "detailed_text": "\n".join(detailed_parts) if detailed_parts else None,
        "icon": icon_map.get(ctx.severity, QMessageBox.Icon.Warning),
    }

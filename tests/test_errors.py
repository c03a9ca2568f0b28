"""
Tests for error handling module.

Tests the centralized error handling with rich context and suggestions.
"""

import pytest


class TestErrorContext:
    """Test ErrorContext creation and conversion."""

    def test_from_expression_parse_error(self):
        """Test ErrorContext from ExpressionParseError."""
        from sketchsolve.utils.errors import ExpressionParseError, ErrorContext

        exc = ExpressionParseError(
            "Unexpected ')' at position 3", expression="x+)", position=2
        )

        ctx = ErrorContext.from_exception(exc)

        assert ctx.title == "Expression Error"
        assert "Unexpected" in ctx.message
        assert ctx.technical_details == "x+)\n  ^"
        assert ctx.recoverable is True

    def test_from_camera_error(self):
        """Test ErrorContext from CameraError."""
        from sketchsolve.utils.errors import CameraError, ErrorContext, ErrorSeverity

        ctx = ErrorContext.from_exception(CameraError("Could not open camera 0"))

        assert ctx.title == "Camera Error"
        assert ctx.severity == ErrorSeverity.WARNING
        assert any("upload" in s.lower() for s in ctx.suggestions)

    def test_from_relay_error(self):
        """Test ErrorContext from RelayError keeps the upstream details."""
        from sketchsolve.utils.errors import RelayError, ErrorContext

        exc = RelayError("HTTP 401: openai API error: 401", status_code=401, details="bad key")
        ctx = ErrorContext.from_exception(exc)

        assert ctx.title == "Solve Error"
        assert ctx.technical_details == "bad key"
        assert any("--serve" in s for s in ctx.suggestions)

    def test_from_geometry_error(self):
        """Test ErrorContext from ImageGeometryError."""
        from sketchsolve.utils.errors import ImageGeometryError, ErrorContext

        exc = ImageGeometryError(0, 200)
        ctx = ErrorContext.from_exception(exc)

        assert ctx.title == "Invalid Image"
        assert "0x200" in ctx.message
        assert exc.width == 0

    def test_from_timeout_message(self):
        """Plain exceptions mentioning a timeout are recognized."""
        from sketchsolve.utils.errors import ErrorContext, ErrorSeverity

        ctx = ErrorContext.from_exception(RuntimeError("read timed out"))

        assert ctx.title == "Timeout"
        assert ctx.severity == ErrorSeverity.WARNING

    def test_from_import_error(self):
        """Missing dependencies are critical."""
        from sketchsolve.utils.errors import ErrorContext

        ctx = ErrorContext.from_exception(ImportError("No module named 'cv2'"))

        assert ctx.title == "Missing Dependency"
        assert ctx.recoverable is False

    def test_from_generic_exception(self):
        """Test ErrorContext from generic exception."""
        from sketchsolve.utils.errors import ErrorContext

        exc = ValueError("Something went wrong")
        ctx = ErrorContext.from_exception(exc, context="during upload")

        assert ctx.title == "Error"
        assert "Something went wrong" in ctx.message
        assert "upload" in ctx.technical_details


class TestSketchSolveError:
    """Test base SketchSolveError class."""

    def test_custom_suggestions(self):
        """Test error with custom suggestions."""
        from sketchsolve.utils.errors import ExportError

        exc = ExportError("Could not write out.pdf", suggestions=["Try X", "Try Y"])

        assert exc.suggestions == ["Try X", "Try Y"]

    def test_default_suggestions_not_shared(self):
        """Mutating one error's suggestions leaves the class defaults alone."""
        from sketchsolve.utils.errors import ExportError

        first = ExportError("a")
        first.suggestions.append("extra")

        assert "extra" not in ExportError("b").suggestions

    def test_to_context_conversion(self):
        """Test conversion to ErrorContext."""
        from sketchsolve.utils.errors import ImageDecodeError

        exc = ImageDecodeError("Failed to decode image", technical_details="truncated")
        ctx = exc.to_context()

        assert ctx.title == "Image Error"
        assert ctx.message == "Failed to decode image"
        assert ctx.technical_details == "truncated"

    def test_hierarchy(self):
        from sketchsolve.utils import errors

        for cls in (
            errors.ImageGeometryError,
            errors.ImageDecodeError,
            errors.ExpressionParseError,
            errors.CameraError,
            errors.RelayError,
            errors.ExportError,
        ):
            assert issubclass(cls, errors.SketchSolveError)


class TestFormatFunctions:
    """Test error formatting utility functions."""

    def test_format_error_for_user(self):
        """Test brief user-friendly formatting."""
        from sketchsolve.utils.errors import format_error_for_user, ImageDecodeError

        msg = format_error_for_user(ImageDecodeError("Bad image"), "testing")

        assert "Bad image" in msg
        assert "Try:" in msg

    def test_format_error_for_dialog(self):
        """Test dialog formatting."""
        pytest.importorskip("PyQt6.QtWidgets")
        from sketchsolve.utils.errors import format_error_for_dialog, CameraError

        info = format_error_for_dialog(CameraError("No camera"), "testing camera")

        assert set(info) >= {"title", "text", "detailed_text", "icon"}
        assert info["title"] == "Camera Error"
        assert "Suggestions:" in info["detailed_text"]


class TestErrorSeverity:
    """Test error severity levels."""

    def test_critical_not_recoverable(self):
        """Test that CRITICAL errors are not recoverable."""
        from sketchsolve.utils.errors import ExportError, ErrorSeverity

        exc = ExportError("Disk gone", severity=ErrorSeverity.CRITICAL)

        assert exc.to_context().recoverable is False

    def test_warning_is_recoverable(self):
        """Test that WARNING errors are recoverable by default."""
        from sketchsolve.utils.errors import CameraError

        assert CameraError("busy").to_context().recoverable is True


class TestIntegrationWithChecker:
    """Test that the parser uses the error types correctly."""

    def test_parser_raises_parse_error(self):
        """Parser errors carry the expression and a caret position."""
        from sketchsolve.checking.expression import parse_expression
        from sketchsolve.utils.errors import ExpressionParseError

        with pytest.raises(ExpressionParseError) as exc_info:
            parse_expression("(x+1")

        exc = exc_info.value
        assert exc.expression == "(x+1"
        assert exc.position == 4
        assert len(exc.suggestions) > 0

"""
MathJax rendering widget for PyQt6.

Displays model answers written in Markdown with LaTeX math. Markdown is
converted with Qt's own Markdown support and the math is typeset by MathJax
inside a QWebEngineView. Falls back to QTextEdit's Markdown view if
WebEngine is not available.
"""

from PyQt6.QtWidgets import QWidget, QVBoxLayout, QTextEdit
from PyQt6.QtGui import QFont, QTextDocument
from PyQt6.QtCore import pyqtSignal

from .markdown_math import protect_math, restore_math, html_body

# Try to import PyQt6 WebEngine
try:
    from PyQt6.QtWebEngineWidgets import QWebEngineView

    WEBENGINE_AVAILABLE = True
except ImportError:
    WEBENGINE_AVAILABLE = False
    QWebEngineView = None


# MathJax HTML template (loads from CDN)
MATHJAX_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{
            font-family: 'Segoe UI', Arial, sans-serif;
            font-size: 14px;
            margin: 10px;
            padding: 0;
            background: {bg_color};
            color: {text_color};
            line-height: 1.5;
        }}
        h1, h2, h3 {{
            color: {accent_color};
        }}
        strong {{
            color: {result_accent};
        }}
        pre, code {{
            background: {code_bg};
            border-radius: 4px;
            padding: 2px 4px;
        }}
        table {{
            border-collapse: collapse;
        }}
        td, th {{
            border: 1px solid {border_color};
            padding: 4px 8px;
        }}
        .error {{
            border-left: 3px solid {error_color};
            padding: 10px;
            white-space: pre-wrap;
        }}
        mjx-container {{
            margin: 0 !important;
        }}
    </style>
    <script>
        MathJax = {{
            tex: {{
                inlineMath: [['$', '$'], ['\\\\(', '\\\\)']],
                displayMath: [['$$', '$$'], ['\\\\[', '\\\\]']],
                processEscapes: true
            }},
            svg: {{
                fontCache: 'global'
            }}
        }};
    </script>
    <script id="MathJax-script" async
        src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-svg.js">
    </script>
</head>
<body>
    {content}
</body>
</html>
"""

# Color themes
LIGHT_THEME = {
    "bg_color": "#ffffff",
    "text_color": "#333333",
    "accent_color": "#007bff",
    "result_accent": "#28a745",
    "code_bg": "#f3f4f6",
    "border_color": "#dee2e6",
    "error_color": "#dc3545",
}

DARK_THEME = {
    "bg_color": "#0b0f19",
    "text_color": "#e6edf7",
    "accent_color": "#569cd6",
    "result_accent": "#4ec9b0",
    "code_bg": "#1b2336",
    "border_color": "#1b2336",
    "error_color": "#f14c4c",
}


class MathJaxRenderer:
    """
    Renders Markdown with LaTeX to an HTML page with MathJax.
    """

    def __init__(self, dark_mode: bool = True):
        """Initialize renderer with theme."""
        self.theme = DARK_THEME if dark_mode else LIGHT_THEME

    def render_markdown(self, text: str) -> str:
        """
        Render a Markdown answer to a complete HTML document.

        Math spans are protected from the Markdown converter and restored
        verbatim for MathJax.
        """
        protected, spans = protect_math(text)

        document = QTextDocument()
        document.setMarkdown(protected)
        body = html_body(document.toHtml())

        content = restore_math(body, spans)
        return MATHJAX_TEMPLATE.format(content=content, **self.theme)

    def render_error(self, message: str) -> str:
        """Render an error message in place of a solution."""
        from html import escape

        content = f'<div class="error">{escape(message)}</div>'
        return MATHJAX_TEMPLATE.format(content=content, **self.theme)

    def set_dark_mode(self, enabled: bool):
        """Toggle dark mode theme."""
        self.theme = DARK_THEME if enabled else LIGHT_THEME


class MathJaxWidget(QWidget):
    """
    Widget for displaying a rendered solution.

    Uses QWebEngineView if available, falls back to a Markdown QTextEdit.
    """

    # Signal emitted when content is loaded
    contentLoaded = pyqtSignal()

    def __init__(self, parent=None, dark_mode: bool = True):
        super().__init__(parent)

        self.renderer = MathJaxRenderer(dark_mode=dark_mode)
        self._use_webengine = WEBENGINE_AVAILABLE
        self._text = ""

        self._init_ui()

    def _init_ui(self):
        """Initialize the UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        if self._use_webengine:
            self.web_view = QWebEngineView()
            self.web_view.loadFinished.connect(self._on_load_finished)
            layout.addWidget(self.web_view)
        else:
            self.fallback_view = QTextEdit()
            self.fallback_view.setReadOnly(True)
            self.fallback_view.setFont(QFont("Sans Serif", 11))
            self.fallback_view.setPlaceholderText("The solution will appear here...")
            layout.addWidget(self.fallback_view)

    @property
    def text(self) -> str:
        """The raw Markdown currently shown."""
        return self._text

    def display_markdown(self, text: str):
        """Display a Markdown + LaTeX answer."""
        self._text = text
        if self._use_webengine:
            self.web_view.setHtml(self.renderer.render_markdown(text))
        else:
            self.fallback_view.setMarkdown(text)

    def display_error(self, message: str):
        """Display an error in place of the solution."""
        self._text = message
        if self._use_webengine:
            self.web_view.setHtml(self.renderer.render_error(message))
        else:
            self.fallback_view.setPlainText(message)

    def display_status(self, message: str):
        """Display a short plain status line (e.g. while waiting)."""
        self.display_error(message)
        self._text = ""

    def clear(self):
        """Clear the display."""
        self._text = ""
        if self._use_webengine:
            self.web_view.setHtml("")
        else:
            self.fallback_view.clear()

    def set_dark_mode(self, enabled: bool):
        """Toggle dark mode."""
        self.renderer.set_dark_mode(enabled)
        if self._text:
            self.display_markdown(self._text)

    def _on_load_finished(self, ok: bool):
        """Handle page load completion."""
        if ok:
            self.contentLoaded.emit()

    @property
    def using_webengine(self) -> bool:
        """Check if using WebEngine rendering."""
        return self._use_webengine

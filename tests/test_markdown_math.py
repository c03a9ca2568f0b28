"""
Tests for protecting LaTeX from the Markdown converter.
"""

from sketchsolve.output.markdown_math import protect_math, restore_math, html_body


class TestProtectMath:
    """Test math span extraction."""

    def test_inline_and_display(self):
        text = "Let $a_1 * b_2$ be\n\n$$x^2 + y^2$$\n\nand \\(z\\)."
        protected, spans = protect_math(text)

        assert spans == ["$a_1 * b_2$", "$$x^2 + y^2$$", "\\(z\\)"]
        assert "$" not in protected
        assert "_" not in protected

    def test_bracket_display(self):
        _, spans = protect_math("\\[\\frac{1}{2}\\]")
        assert spans == ["\\[\\frac{1}{2}\\]"]

    def test_currency_not_math(self):
        """Dollar amounts separated by spaces are left alone."""
        protected, spans = protect_math("It costs $ 5 and $ 6.")
        assert spans == []
        assert protected == "It costs $ 5 and $ 6."

    def test_no_math(self):
        assert protect_math("plain **bold**") == ("plain **bold**", [])


class TestRestoreMath:
    """Test putting spans back."""

    def test_round_trip(self):
        text = "Answer: $x < 2$ and $$y_1$$"
        protected, spans = protect_math(text)
        html = f"<p>{protected}</p>"

        assert restore_math(html, spans) == "<p>Answer: $x &lt; 2$ and $$y_1$$</p>"

    def test_many_spans(self):
        """Placeholder 1 does not clobber placeholder 10."""
        text = " ".join(f"${i}$" for i in range(12))
        protected, spans = protect_math(text)

        assert restore_math(protected, spans) == text


class TestHtmlBody:
    """Test body extraction."""

    def test_extracts_body(self):
        doc = '<html><head></head><body style="x"><p>hi</p></body></html>'
        assert html_body(doc) == "<p>hi</p>"

    def test_fragment_passthrough(self):
        assert html_body("<p>hi</p>") == "<p>hi</p>"

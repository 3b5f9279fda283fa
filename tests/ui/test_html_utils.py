"""Tests for HTML helpers used by the pages."""
from src.ui.html_utils import (
    CATEGORY_GRADIENTS,
    capacity_card_html,
    fill_percentage,
    html_block,
    stat_card_html,
)


class TestHtmlBlock:
    """Tests for html_block normalisation."""

    def test_strips_indentation(self):
        """Indented lines must not turn into Markdown code blocks."""
        html = html_block(
            """
                <div>
                    <span>x</span>
                </div>
            """
        )

        assert html == "<div>\n<span>x</span>\n</div>"


class TestFillPercentage:
    """Tests for progress bar width."""

    def test_half(self):
        assert fill_percentage(25, 50) == 50.0

    def test_clamped_when_over(self):
        assert fill_percentage(60, 50) == 100.0

    def test_zero_ceiling(self):
        assert fill_percentage(5, 0) == 0.0


class TestCapacityCard:
    """Tests for capacity card rendering."""

    def test_open_card(self):
        html = capacity_card_html("Technical Events", 12, 50, True, category="Technical")

        assert "12/50" in html
        assert "Open for Registration" in html
        assert CATEGORY_GRADIENTS["Technical"] in html
        assert "width: 24%" in html

    def test_closed_card(self):
        html = capacity_card_html("Total Registrations", 100, 100, False)

        assert "Registration Closed" in html
        assert "width: 100%" in html

    def test_label_escaped(self):
        html = capacity_card_html("<b>x</b>", 0, 10, True)
        assert "&lt;b&gt;x&lt;/b&gt;" in html


class TestStatCard:
    """Tests for admin stat cards."""

    def test_value_and_label(self):
        html = stat_card_html("Non-Technical Events", 7, "Non-Technical")

        assert ">7<" in html
        assert "Non-Technical Events" in html
        assert CATEGORY_GRADIENTS["Non-Technical"] in html

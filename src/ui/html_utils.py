"""Utilities for preparing HTML snippets before rendering in Streamlit."""
from html import escape
from textwrap import dedent

CATEGORY_GRADIENTS = {
    "Technical": "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
    "Non-Technical": "linear-gradient(135deg, #f97316 0%, #ec4899 100%)",
}
DEFAULT_GRADIENT = "linear-gradient(135deg, #0ea5e9 0%, #22d3ee 100%)"


def html_block(template: str) -> str:
    """
    Normalize multi-line HTML so Streamlit doesn't treat it as Markdown code.

    Streamlit's Markdown renderer interprets lines with >=4 leading spaces as
    code blocks. We dedent and strip leading whitespace on each line to avoid
    that while keeping the markup intact.
    """
    lines = dedent(template).splitlines()
    return "\n".join(line.lstrip() for line in lines).strip()


def fill_percentage(used: int, ceiling: int) -> float:
    """Share of a ceiling in use, clamped to 0-100."""
    if ceiling <= 0:
        return 0.0
    return max(0.0, min(used / ceiling * 100.0, 100.0))


def capacity_card_html(label: str, used: int, ceiling: int, is_open: bool, category: str = "") -> str:
    """Card showing ``used/ceiling`` with a progress bar and open/closed badge."""
    gradient = CATEGORY_GRADIENTS.get(category, DEFAULT_GRADIENT)
    status_label = "Open for Registration" if is_open else "Registration Closed"
    status_color = "#22d3ee" if is_open else "#f87171"
    progress = fill_percentage(used, ceiling)

    return html_block(
        f"""
        <div class="capacity-card" style="background: {gradient};">
            <div class="capacity-card__label">{escape(label)}</div>
            <div class="capacity-card__count">{used}/{ceiling}</div>
            <div class="capacity-card__track">
                <div class="capacity-card__fill" style="width: {progress:.0f}%;"></div>
            </div>
            <div class="capacity-card__status" style="color: {status_color};">{status_label}</div>
        </div>
        """
    )


def stat_card_html(label: str, value: int, category: str = "") -> str:
    """Plain statistic card for the admin panel."""
    gradient = CATEGORY_GRADIENTS.get(category, DEFAULT_GRADIENT)
    return html_block(
        f"""
        <div class="stat-card" style="background: {gradient};">
            <div class="stat-card__value">{value}</div>
            <div class="stat-card__label">{escape(label)}</div>
        </div>
        """
    )

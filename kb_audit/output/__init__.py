"""Report renderers."""

from .renderer import render_html, render_json, render_markdown

__all__ = ["render_html", "render_json", "render_markdown"]

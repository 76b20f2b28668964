"""Exporters for rendering a cross reference in various output formats."""

from .html_exporter import to_html
from .mermaid_exporter import to_mermaid
from .ascii_exporter import to_ascii
from .json_exporter import to_json

__all__ = ["to_html", "to_mermaid", "to_ascii", "to_json"]

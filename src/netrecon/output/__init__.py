"""Output package - File formatters and terminal reporters for scan results."""

from netrecon.output.formatters import (
    CsvFormatter,
    Formatter,
    FormatterRegistry,
    HtmlFormatter,
    JsonFormatter,
    XmlFormatter,
    YamlFormatter,
)

__all__ = [
    "CsvFormatter",
    "Formatter",
    "FormatterRegistry",
    "HtmlFormatter",
    "JsonFormatter",
    "XmlFormatter",
    "YamlFormatter",
]

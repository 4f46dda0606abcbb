"""Enrichment, report schemes, converters and output formatters for security-posture findings."""

__version__ = "0.1.0"

__all__ = [
    "version",
    "errlog",
    "enrichers",
    "enricher",
    "scheme",
    "converter",
    "formatting",
    "human_formatter",
    "markdown_formatter",
    "json_formatter",
    "sarif_formatter",
    "csv_formatter",
    "output_format",
    "outputer",
]
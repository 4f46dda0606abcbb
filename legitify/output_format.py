"""Registry of output formats."""

from __future__ import annotations

import enum
from typing import Any

from legitify.csv_formatter import CsvFormatter
from legitify.human_formatter import HumanFormatter
from legitify.json_formatter import JsonFormatter
from legitify.markdown_formatter import MarkdownFormatter
from legitify.sarif_formatter import SarifFormatter
from legitify.scheme import SchemeType


class FormatName(str, enum.Enum):
    HUMAN = "human"
    JSON = "json"
    SARIF = "sarif"
    MARKDOWN = "markdown"
    CSV = "csv"

    def __str__(self) -> str:
        return self.value

    def __format__(self, spec: str) -> str:
        return format(self.value, spec)


_FORMATTERS: dict[FormatName, type] = {
    FormatName.HUMAN: HumanFormatter,
    FormatName.JSON: JsonFormatter,
    FormatName.MARKDOWN: MarkdownFormatter,
    FormatName.SARIF: SarifFormatter,
    FormatName.CSV: CsvFormatter,
}


def validate_output_format(output_format: FormatName | str, scheme_type: SchemeType | str) -> None:
    """Raise ValueError if the format is unknown or cannot render the scheme type."""
    creator = _FORMATTERS.get(output_format)
    if creator is None:
        raise ValueError(f"unsupported output format: {output_format}")
    if not creator().is_scheme_supported(scheme_type):
        raise ValueError(
            f"scheme Type ({scheme_type}) does not support output format: {output_format}"
        )


def output_formats() -> list[FormatName]:
    return list(_FORMATTERS)


def format_output(output_format: FormatName | str, scheme: Any, failed_only: bool) -> str:
    """Render ``scheme`` in the named format."""
    creator = _FORMATTERS.get(output_format)
    if creator is None:
        raise ValueError(f"no output generator for {output_format}")
    return creator().format(scheme, failed_only)
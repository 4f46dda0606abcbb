"""Terminal-oriented output with colors and grid tables."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import Any

from tabulate import tabulate

from legitify.enricher import Severity
from legitify.formatting import (
    Colorizer,
    PoliciesContent,
    PolicyFormatter,
    TableContent,
    TableFormatter,
    ThemeColor,
    UnsupportedSchemeError,
    amplify_indent,
    indent_multiline,
    severity_to_theme_color,
)
from legitify.scheme import Flattened, SchemeType

_ANSI_CODES = {
    ThemeColor.BOLD: 1,
    ThemeColor.SUCCESS: 92,
    ThemeColor.FAILURE: 91,
    ThemeColor.INTERESTING: 94,
    ThemeColor.NEUTRAL: 94,
    ThemeColor.ALERT: 93,
    ThemeColor.WARNING: 33,
}
_RESET = 0


def _colors_wanted() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty()) and "NO_COLOR" not in os.environ


class HumanColorizer(Colorizer):
    """ANSI colors; disabled by default when stdout is not a terminal or NO_COLOR is set."""

    def __init__(self, enabled: bool | None = None):
        self.enabled = _colors_wanted() if enabled is None else enabled

    def colorize(self, color: ThemeColor, text: Any) -> str:
        if not self.enabled:
            return f"{text}"
        return f"\x1b[{_ANSI_CODES.get(color, _RESET)}m{text}\x1b[{_RESET}m"


class HumanPolicyFormatter(PolicyFormatter):
    def __init__(self, colorizer: HumanColorizer):
        self._colorizer = colorizer

    def format_title(self, title: str, severity: Severity | str) -> str:
        bold = self._colorizer.colorize(ThemeColor.BOLD, title)
        colored = self._colorizer.colorize(severity_to_theme_color(severity), bold)
        return f"{colored}\n{'-' * len(title)}"

    def format_subtitle(self, title: str) -> str:
        return self._colorizer.colorize(ThemeColor.BOLD, title) + self.linebreak() + self.separator()

    def format_text(self, depth: int, text: str) -> str:
        return indent_multiline(depth, text)

    def format_list(
        self, depth: int, title: str, items: Sequence[str], ordered: bool, add_list_prefix: bool
    ) -> str:
        lines = [title, *items] if items else []
        return "".join(self.format_text(depth, f"{line}\n") for line in lines)

    def linebreak(self) -> str:
        return "\n"

    def separator(self) -> str:
        return "------------"

    def indent(self, depth: int) -> str:
        return amplify_indent(depth)


class TextTableFormatter(TableFormatter):
    """Grid table with a line between every row."""

    def __init__(self) -> None:
        self._title = ""
        self._headers: list[str] = []
        self._rows: list[list[str]] = []

    def set_title(self, title: str) -> None:
        self._title = title

    def set_headers(self, headers: Sequence[str]) -> None:
        self._headers = list(headers)

    def write_row(self, row: Sequence[str]) -> None:
        self._rows.append(list(row))

    def render(self) -> str:
        table = tabulate(self._rows, headers=self._headers, tablefmt="grid", disable_numparse=True)
        return f"\n{self._title}:\n{table}\n"


class HumanFormatter:
    """Failed policies followed by a summary table."""

    def __init__(self, colorizer: HumanColorizer | None = None):
        self._colorizer = colorizer if colorizer is not None else HumanColorizer()

    def format(self, scheme: Any, failed_only: bool) -> str:
        if not isinstance(scheme, Flattened):
            raise UnsupportedSchemeError(scheme)
        policies = PoliciesContent(HumanPolicyFormatter(self._colorizer), self._colorizer)
        parts = [policies.format_failed_policies(scheme.only_failed_violations())]
        if not failed_only:
            table = TableContent(TextTableFormatter(), self._colorizer)
            parts.append(table.format_summary(scheme))
        return "".join(parts)

    def is_scheme_supported(self, scheme_type: SchemeType | str) -> bool:
        return scheme_type == SchemeType.FLATTENED
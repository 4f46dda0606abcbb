"""Markdown output with emoji for severities and results."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from legitify.enricher import Severity
from legitify.formatting import (
    Colorizer,
    PoliciesContent,
    PolicyFormatter,
    TableContent,
    TableFormatter,
    ThemeColor,
    UnsupportedSchemeError,
    indent_multiline,
    severity_to_theme_color,
)
from legitify.scheme import Flattened, SchemeType

DANGER_EMOJI = ":no_entry:"
WARNING_EMOJI = ":warning:"
ROCKET_EMOJI = ":rocket:"
EYES_EMOJI = ":eyes:"

_UNORDERED_ITEM = re.compile(r"^[\-\*\+] ")
_ORDERED_ITEM = re.compile(r"^\d+\.\s", re.ASCII)


def _as_row(row: Sequence[str]) -> str:
    return "|" + "|".join(row) + "|\n"


def _as_header(header: Sequence[str]) -> str:
    return _as_row(header) + _as_row(["--"] * len(header))


def _as_title(title: str) -> str:
    return f"# {title}"


def _as_subtitle(title: str) -> str:
    return f"## {title}"


def is_markdown_list_item(text: str) -> bool:
    return bool(_UNORDERED_ITEM.match(text) or _ORDERED_ITEM.match(text))


class MarkdownColorizer(Colorizer):
    _EMOJI = {
        ThemeColor.FAILURE: DANGER_EMOJI,
        ThemeColor.ALERT: WARNING_EMOJI,
        ThemeColor.SUCCESS: ROCKET_EMOJI,
        ThemeColor.INTERESTING: EYES_EMOJI,
        ThemeColor.WARNING: EYES_EMOJI,
    }

    def colorize(self, color: ThemeColor, text: Any) -> str:
        if color is ThemeColor.BOLD:
            lines = f"{text}".strip().split("\n")
            return "\n".join(f"**{line}**" for line in lines)
        emoji = self._EMOJI.get(color)
        if emoji is None:
            return f"{text}"
        return f"{text} {emoji}"


class MarkdownPolicyFormatter(PolicyFormatter):
    def __init__(self, colorizer: MarkdownColorizer | None = None):
        self._colorizer = colorizer if colorizer is not None else MarkdownColorizer()

    def format_title(self, title: str, severity: Severity | str) -> str:
        return _as_title(self._colorizer.colorize(severity_to_theme_color(severity), title))

    def format_subtitle(self, title: str) -> str:
        return _as_subtitle(title)

    def format_text(self, depth: int, text: str) -> str:
        return indent_multiline(depth, text, self.indent(1), self.linebreak())

    def format_list(
        self, depth: int, title: str, items: Sequence[str], ordered: bool, add_list_prefix: bool
    ) -> str:
        if not items:
            return ""
        parts = [self.format_text(depth, f"{title}\n\n")]
        bullet = "-"
        for number, step in enumerate(items, start=1):
            if add_list_prefix:
                if ordered:
                    bullet = f"{number}."
                parts.append(self.format_text(depth, f"{bullet} {step}\n"))
            else:
                parts.append(self.format_text(depth, f"{step}\n"))
                if not is_markdown_list_item(step):
                    parts.append(self.format_text(depth, "\n"))
        return "".join(parts)

    def linebreak(self) -> str:
        return "  \n"

    def separator(self) -> str:
        return "---"

    def indent(self, depth: int) -> str:
        return "> " * depth


class MarkdownTableFormatter(TableFormatter):
    def __init__(self) -> None:
        self._title = ""
        self._header: list[str] = []
        self._rows: list[str] = []

    def set_title(self, title: str) -> None:
        self._title = title

    def set_headers(self, headers: Sequence[str]) -> None:
        self._header = list(headers)

    def write_row(self, row: Sequence[str]) -> None:
        self._rows.append(_as_row(row))

    def render(self) -> str:
        return _as_title(self._title) + "\n" + _as_header(self._header) + "".join(self._rows)


class MarkdownFormatter:
    """Summary table followed by the failed policies."""

    def __init__(self) -> None:
        self._colorizer = MarkdownColorizer()

    def format(self, scheme: Any, failed_only: bool) -> str:
        if not isinstance(scheme, Flattened):
            raise UnsupportedSchemeError(scheme)
        summary = "" if failed_only else self._format_summary_table(scheme)
        return summary + self._format_failed_policies(scheme)

    def is_scheme_supported(self, scheme_type: SchemeType | str) -> bool:
        return scheme_type == SchemeType.FLATTENED

    def _format_summary_table(self, output: Flattened) -> str:
        return TableContent(MarkdownTableFormatter(), self._colorizer).format_summary(output)

    def _format_failed_policies(self, output: Flattened) -> str:
        content = PoliciesContent(MarkdownPolicyFormatter(self._colorizer), self._colorizer)
        return content.format_failed_policies(output.only_failed_violations())
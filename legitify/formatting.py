"""Shared building blocks for the text output formats."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from legitify.enricher import PolicyStatus, Severity
from legitify.enrichers import Enrichment
from legitify.scheme import Flattened, PolicyInfo, Violation

DEFAULT_OUTPUT_INDENT = "  "


class ThemeColor(enum.Enum):
    SUCCESS = enum.auto()
    FAILURE = enum.auto()
    NEUTRAL = enum.auto()
    INTERESTING = enum.auto()
    ALERT = enum.auto()
    WARNING = enum.auto()
    BOLD = enum.auto()
    NONE = enum.auto()


class UnsupportedSchemeError(TypeError):
    """Raised when a formatter is given a scheme it cannot render."""

    def __init__(self, scheme: Any):
        super().__init__(f"unsupported scheme type: {type(scheme).__name__}")
        self.scheme = scheme


def amplify_indent(depth: int, indent: str = DEFAULT_OUTPUT_INDENT) -> str:
    """Return ``indent`` repeated ``depth`` times."""
    return indent * depth


def indent_multiline(
    depth: int,
    text: str,
    indent: str = DEFAULT_OUTPUT_INDENT,
    linebreak: str = "\n",
) -> str:
    """Indent every non-blank line of ``text``; blank lines are left empty."""
    prefix = amplify_indent(depth, indent)
    if linebreak not in text:
        return prefix + text
    return linebreak.join(
        prefix + line if line.strip() else "" for line in text.split(linebreak)
    )


def camel_case_to_title(text: str) -> str:
    """Split a camelCase name into capitalised, space-separated words."""
    parts = []
    for position, char in enumerate(text):
        if char.islower():
            parts.append(char.upper() if position == 0 else char)
        else:
            parts.append(" " + char)
    return "".join(parts)


def severity_to_theme_color(severity: Severity | str) -> ThemeColor:
    if severity in (Severity.CRITICAL, Severity.HIGH):
        return ThemeColor.FAILURE
    if severity == Severity.MEDIUM:
        return ThemeColor.ALERT
    if severity == Severity.LOW:
        return ThemeColor.WARNING
    return ThemeColor.NONE


class Colorizer(ABC):
    """Decorates text according to a theme color."""

    @abstractmethod
    def colorize(self, color: ThemeColor, text: Any) -> str:
        """Return ``text`` rendered in ``color``."""


class PolicyFormatter(ABC):
    """Layout rules of one output format for policy descriptions."""

    @abstractmethod
    def format_title(self, title: str, severity: Severity | str) -> str: ...

    @abstractmethod
    def format_subtitle(self, title: str) -> str: ...

    @abstractmethod
    def format_text(self, depth: int, text: str) -> str: ...

    @abstractmethod
    def format_list(
        self,
        depth: int,
        title: str,
        items: Sequence[str],
        ordered: bool,
        add_list_prefix: bool,
    ) -> str: ...

    @abstractmethod
    def linebreak(self) -> str: ...

    @abstractmethod
    def separator(self) -> str: ...

    @abstractmethod
    def indent(self, depth: int) -> str: ...


class TableFormatter(ABC):
    """Layout rules of one output format for tables."""

    @abstractmethod
    def set_title(self, title: str) -> None: ...

    @abstractmethod
    def set_headers(self, headers: Sequence[str]) -> None: ...

    @abstractmethod
    def write_row(self, row: Sequence[str]) -> None: ...

    @abstractmethod
    def render(self) -> str: ...


class PoliciesContent:
    """Renders policies and their violations with a given layout and colorizer."""

    def __init__(self, policy_formatter: PolicyFormatter, colorizer: Colorizer):
        self._pf = policy_formatter
        self._colorizer = colorizer
        self._parts: list[str] = []
        self._depth = 0

    def format_policy(self, output: Flattened, policy_name: str) -> str:
        """Describe one policy without its violations; empty if it is absent."""
        if policy_name not in output:
            return ""
        self._parts = []
        self._format_policy_info(policy_name, output, with_violations=False)
        return "".join(self._parts)

    def format_violation(self, violation: Violation) -> str:
        self._parts = []
        self._write_violation(violation)
        return "".join(self._parts)

    def format_failed_policies(self, output: Flattened) -> str:
        """Describe every policy of ``output`` together with its violations."""
        self._parts = []
        names = output.policy_names()
        for position, policy_name in enumerate(names):
            self._format_policy_info(policy_name, output, with_violations=True)
            if position < len(names) - 1:
                self._write_line_break()
        return "".join(self._parts)

    def _format_policy_info(self, policy_name: str, output: Flattened, with_violations: bool) -> None:
        data = output.get_policy_data(policy_name)
        self._write_line(self._pf.format_title(data.policy_info.title, data.policy_info.severity))
        self._depth += 1
        self._write_policy_info(data.policy_info)
        self._write_line_break()
        if with_violations:
            self._write_violations(data.violations)
        self._depth -= 1

    def _write(self, text: str) -> None:
        self._parts.append(self._pf.format_text(self._depth, text))

    def _write_line(self, text: str) -> None:
        self._write(text)
        self._write(self._pf.linebreak())

    def _write_line_break(self) -> None:
        self._write_line("")

    def _write_list(self, title: str, items: Sequence[str], ordered: bool, add_list_prefix: bool) -> None:
        title = f"{self._bold(title)}:"
        self._parts.append(self._pf.format_list(self._depth, title, items, ordered, add_list_prefix))

    def _write_keyval(self, key: str, value: Any) -> None:
        key = f"{self._bold(key)}:"
        self._parts.append(self._pf.format_text(self._depth, f"{key} {value}") + self._pf.linebreak())

    def _write_policy_info(self, info: PolicyInfo) -> None:
        self._write_line(self._bold(info.description))
        self._write_line_break()

        self._write_keyval("Policy Name", info.policy_name)
        self._write_keyval("Namespace", info.namespace)
        colored = self._colorizer.colorize(severity_to_theme_color(info.severity), info.severity)
        self._write_keyval("Severity", colored)

        self._write_line_break()
        self._write_list("Threat", info.threat, ordered=False, add_list_prefix=True)

        self._write_line_break()
        self._write_list("Remediation Steps", info.remediation_steps, ordered=False, add_list_prefix=False)

    def _bold(self, text: Any) -> str:
        return self._colorizer.colorize(ThemeColor.BOLD, text)

    def _write_violations(self, violations: Sequence[Violation]) -> None:
        self._write_line(self._pf.format_subtitle("Violations:"))
        for position, violation in enumerate(violations):
            self._write_violation(violation)
            if position < len(violations) - 1:
                self._write_line(self._pf.separator())

    def _write_violation(self, violation: Violation) -> None:
        self._write_keyval(f"Link to {violation.violation_entity_type}", violation.canonical_link)
        self._write_aux(violation.aux)

    def _write_aux(self, aux: Mapping[str, Enrichment | None] | None) -> None:
        if not aux:
            return
        self._write_list("Auxiliary Info", self._aux_as_list(aux), ordered=False, add_list_prefix=True)

    def _aux_as_list(self, aux: Mapping[str, Enrichment | None]) -> list[str]:
        linebreak = self._pf.linebreak()
        prefix = self._pf.indent(self._depth)
        result = []
        for name, enrichment in aux.items():
            text = "" if enrichment is None else enrichment.human_readable(prefix, linebreak)
            text = text.removesuffix(linebreak)
            result.append(f"{self._bold(camel_case_to_title(name))}: {text}")
        return result


class TableContent:
    """Renders the findings summary table."""

    def __init__(self, table_formatter: TableFormatter, colorizer: Colorizer):
        self._tf = table_formatter
        self._colorizer = colorizer

    def _count_colorize(self, count: int, color: ThemeColor) -> str:
        return self._colorizer.colorize(ThemeColor.NONE if count == 0 else color, count)

    def format_summary(self, output: Flattened) -> str:
        output = output.sorted_by_namespace()
        bold = ThemeColor.BOLD

        self._tf.set_title(self._colorizer.colorize(bold, "Legitify Findings Summary"))
        headers = ["#", "Namespace", "Policy", "Severity", "Passed", "Failed", "Skipped"]
        self._tf.set_headers([self._colorizer.colorize(bold, h) for h in headers])

        for number, (_, data) in enumerate(output.items(), start=1):
            info = data.policy_info
            statuses = [v.status for v in data.violations]
            passed = statuses.count(PolicyStatus.PASSED)
            failed = statuses.count(PolicyStatus.FAILED)
            skipped = statuses.count(PolicyStatus.SKIPPED)
            self._tf.write_row(
                [
                    self._colorizer.colorize(bold, number),
                    str(info.namespace),
                    info.title,
                    self._colorizer.colorize(severity_to_theme_color(info.severity), info.severity),
                    self._count_colorize(passed, ThemeColor.SUCCESS),
                    self._count_colorize(failed, ThemeColor.FAILURE),
                    self._count_colorize(skipped, ThemeColor.INTERESTING),
                ]
            )

        return self._tf.render()
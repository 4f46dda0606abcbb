"""SARIF 2.1.0 output for code-scanning dashboards."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from legitify.enricher import PolicyStatus, Severity
from legitify.formatting import (
    DEFAULT_OUTPUT_INDENT,
    Colorizer,
    PoliciesContent,
    PolicyFormatter,
    ThemeColor,
    UnsupportedSchemeError,
    indent_multiline,
    severity_to_theme_color,
)
from legitify.markdown_formatter import MarkdownColorizer, MarkdownPolicyFormatter
from legitify.scheme import Flattened, PolicyInfo, SchemeType, Violation, scheme_types

SARIF_VERSION = "2.1.0"
TOOL_NAME = "legitify"
TOOL_INFORMATION_URI = "https://legitify.dev/"

_HTTPS_PREFIX = "https://"
_HTTP_PREFIX = "http://"

_LEVELS = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
}

_PROBLEM_SEVERITIES = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "recommendation",
}

_SECURITY_SEVERITIES = {
    Severity.CRITICAL: "9.0",
    Severity.HIGH: "7.0",
    Severity.MEDIUM: "4.0",
    Severity.LOW: "1.0",
}


def sarif_severity(severity: Severity | str) -> str:
    """SARIF result level for a severity."""
    return _LEVELS.get(severity, "none")


def sarif_problem_severity(severity: Severity | str) -> str:
    """Value of the ``problem.severity`` rule property."""
    return _PROBLEM_SEVERITIES.get(severity, "recommendation")


def sarif_security_severity(severity: Severity | str) -> str:
    """Value of the ``security-severity`` rule property."""
    return _SECURITY_SEVERITIES.get(severity, "1.0")


class SarifColorizer(Colorizer):
    """Plain text: SARIF carries no colors."""

    def colorize(self, color: ThemeColor, text: Any) -> str:
        return f"{text}"


class SarifPolicyFormatter(PolicyFormatter):
    def __init__(self, colorizer: SarifColorizer | None = None):
        self._colorizer = colorizer if colorizer is not None else SarifColorizer()

    def format_title(self, title: str, severity: Severity | str) -> str:
        return self._colorizer.colorize(severity_to_theme_color(severity), title)

    def format_subtitle(self, title: str) -> str:
        return title

    def format_text(self, depth: int, text: str) -> str:
        return indent_multiline(depth, text, self.indent(1), self.linebreak())

    def format_list(
        self, depth: int, title: str, items: Sequence[str], ordered: bool, add_list_prefix: bool
    ) -> str:
        if not items:
            return ""
        return "".join(
            self.format_text(depth, f"{line}{self.linebreak()}") for line in [title, *items]
        )

    def linebreak(self) -> str:
        return "  \n"

    def separator(self) -> str:
        return "---"

    def indent(self, depth: int) -> str:
        return " " * depth


def _sarif_content() -> PoliciesContent:
    colorizer = SarifColorizer()
    return PoliciesContent(SarifPolicyFormatter(colorizer), colorizer)


def _markdown_content() -> PoliciesContent:
    colorizer = MarkdownColorizer()
    return PoliciesContent(MarkdownPolicyFormatter(colorizer), colorizer)


def _violation_message(violation: Violation, info: PolicyInfo) -> str:
    formatter = SarifPolicyFormatter()
    return (
        formatter.format_text(0, info.description).strip()
        + formatter.linebreak()
        + _sarif_content().format_violation(violation)
    )


class SarifFormatter:
    """One rule per policy and one result per failed violation."""

    def uri_from_link(self, link: str) -> tuple[str, str]:
        """Split a link into its scheme prefix and the rest."""
        for prefix in (_HTTPS_PREFIX, _HTTP_PREFIX):
            if link.startswith(prefix):
                return prefix, link[len(prefix):]
        return "", link

    def format(self, scheme: Any, failed_only: bool) -> str:
        if not isinstance(scheme, Flattened):
            raise UnsupportedSchemeError(scheme)

        rules: list[dict[str, Any]] = []
        results: list[dict[str, Any]] = []
        artifacts: list[dict[str, Any]] = []
        seen_artifacts: set[str] = set()

        for policy_name, data in scheme.items():
            info = data.policy_info
            rules.append(
                {
                    "id": info.fully_qualified_policy_name,
                    "shortDescription": {"text": info.title},
                    "fullDescription": {"text": info.description},
                    "help": {
                        "text": _sarif_content().format_policy(scheme, policy_name),
                        "markdown": _markdown_content().format_policy(scheme, policy_name),
                    },
                    "properties": {
                        "impact": list(info.threat),
                        "resolution": list(info.remediation_steps),
                        "precision": "high",
                        "problem.severity": sarif_problem_severity(info.severity),
                        "security-severity": sarif_security_severity(info.severity),
                    },
                }
            )

            for violation in data.violations:
                if violation.status != PolicyStatus.FAILED:
                    continue
                base, uri = self.uri_from_link(violation.canonical_link)
                entity_type = violation.violation_entity_type
                if entity_type not in seen_artifacts:
                    seen_artifacts.add(entity_type)
                    artifacts.append({"location": {"uri": entity_type}, "length": -1})
                results.append(
                    {
                        "ruleId": info.fully_qualified_policy_name,
                        "level": sarif_severity(info.severity),
                        "message": {"text": _violation_message(violation, info)},
                        "locations": [
                            {
                                "physicalLocation": {
                                    "artifactLocation": {"uri": uri, "uriBaseId": base}
                                }
                            }
                        ],
                        "hostedViewerUri": violation.canonical_link,
                    }
                )

        run: dict[str, Any] = {
            "tool": {
                "driver": {
                    "name": TOOL_NAME,
                    "informationUri": TOOL_INFORMATION_URI,
                    "rules": rules,
                }
            },
        }
        if artifacts:
            run["artifacts"] = artifacts
        run["results"] = results

        report = {"version": SARIF_VERSION, "runs": [run]}
        return json.dumps(report, indent=len(DEFAULT_OUTPUT_INDENT), ensure_ascii=False)

    def is_scheme_supported(self, scheme_type: SchemeType | str) -> bool:
        """Every known scheme type can be rendered as SARIF."""
        return scheme_type in scheme_types()
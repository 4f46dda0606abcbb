"""Collects enriched results and renders them in the chosen scheme and format."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TextIO

from legitify.converter import convert
from legitify.enricher import EnrichedData
from legitify.output_format import FormatName, format_output
from legitify.scheme import (
    Flattened,
    OutputData,
    PolicyInfo,
    SchemeType,
    Violation,
    append_violations,
)


def enriched_to_policy_info(enriched: EnrichedData) -> PolicyInfo:
    return PolicyInfo(
        title=enriched.title,
        description=enriched.description,
        policy_name=enriched.policy_name,
        fully_qualified_policy_name=enriched.fully_qualified_policy_name,
        severity=enriched.severity,
        threat=list(enriched.threat),
        remediation_steps=list(enriched.remediation_steps),
        namespace=enriched.namespace,
    )


def enriched_to_violation(enriched: EnrichedData) -> Violation:
    enrichers = enriched.enrichers or {}
    return Violation(
        violation_entity_type=enriched.entity.violation_entity_type,
        canonical_link=enriched.canonical_link,
        aux={name: enrichers[name] for name in sorted(enrichers)},
        status=enriched.status,
    )


class Outputer:
    """Turns a stream of enriched data into the final report text."""

    def __init__(
        self,
        output_format: FormatName | str,
        scheme_type: SchemeType | str,
        failed_only: bool = False,
    ):
        self.output_format = output_format
        self.scheme_type = scheme_type
        self.failed_only = failed_only
        self._output = ""

    def _receive(self, enriched_items: Iterable[EnrichedData]) -> Flattened:
        violations = Flattened()
        for enriched in enriched_items:
            name = enriched.fully_qualified_policy_name
            if name not in violations:
                violations.set_policy_data(name, OutputData(enriched_to_policy_info(enriched)))
            violations.set_policy_data(
                name,
                append_violations(violations.get_policy_data(name), enriched_to_violation(enriched)),
            )
        return violations

    def digest(self, enriched_items: Iterable[EnrichedData]) -> str:
        """Consume all items, render the report and return it."""
        ordered = self._receive(enriched_items).sorted_by_severity()
        if self.failed_only:
            ordered = ordered.only_failed_violations()
        converted = convert(self.scheme_type, ordered)
        self._output = format_output(self.output_format, converted, self.failed_only)
        return self._output

    def output(self, writer: TextIO) -> None:
        """Write the last rendered report."""
        writer.write(self._output)
"""CSV output: a summary table followed by the failed policies."""

from __future__ import annotations

import csv
import io
from typing import Any

from legitify.enricher import PolicyStatus
from legitify.formatting import UnsupportedSchemeError
from legitify.scheme import Flattened, SchemeType

SUMMARY_HEADERS = ["#", "Namespace", "Policy", "Severity", "Passed", "Failed", "Skipped"]
FAILED_HEADERS = [
    "#",
    "Policy Name",
    "Namespace",
    "Severity",
    "Threat",
    "Violations",
    "Remediation Steps",
]


class CsvFormatter:
    def format(self, scheme: Any, failed_only: bool) -> str:
        if not isinstance(scheme, Flattened):
            raise UnsupportedSchemeError(scheme)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        if not failed_only:
            self._write_summary(scheme, writer)
        self._write_failed_policies(scheme, writer)
        return buffer.getvalue()

    def is_scheme_supported(self, scheme_type: SchemeType | str) -> bool:
        return scheme_type == SchemeType.FLATTENED

    @staticmethod
    def _write_summary(output: Flattened, writer: Any) -> None:
        writer.writerow(SUMMARY_HEADERS)
        for number, (_, data) in enumerate(output.items(), start=1):
            info = data.policy_info
            statuses = [v.status for v in data.violations]
            writer.writerow(
                [
                    str(number),
                    str(info.namespace),
                    info.title,
                    str(info.severity),
                    str(statuses.count(PolicyStatus.PASSED)),
                    str(statuses.count(PolicyStatus.FAILED)),
                    str(statuses.count(PolicyStatus.SKIPPED)),
                ]
            )

    @staticmethod
    def _write_failed_policies(output: Flattened, writer: Any) -> None:
        writer.writerow(FAILED_HEADERS)
        failed = output.only_failed_violations()
        for number, policy_name in enumerate(failed.policy_names(), start=1):
            # Violations listed are all of the policy's, not only the failed ones.
            data = output.get_policy_data(policy_name)
            info = data.policy_info
            violations = "\n".join(
                f"{v.violation_entity_type} {v.canonical_link}" for v in data.violations
            )
            writer.writerow(
                [
                    str(number),
                    info.policy_name,
                    str(info.namespace),
                    str(info.severity),
                    "\n".join(info.threat),
                    violations,
                    "\n".join(info.remediation_steps),
                ]
            )
        writer.writerow(["\n"])
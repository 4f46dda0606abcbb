"""Conversion of the flattened scheme into the other schemes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from legitify.scheme import (
    ByNamespace,
    ByResource,
    BySeverity,
    Flattened,
    OutputData,
    PolicyInfo,
    SchemeType,
    Violation,
    append_violations,
)

ElementOf = Callable[[PolicyInfo, Violation], str]


def convert_to_group_by(element_of: ElementOf, group_class: type, output: Flattened) -> Any:
    """Group every violation under ``element_of(policy_info, violation)``."""
    grouped = group_class()
    for policy_name, output_data in output.items():
        for violation in output_data.violations:
            element = element_of(output_data.policy_info, violation)
            if element not in grouped:
                grouped[element] = Flattened()
            by_policy = grouped[element]
            if policy_name not in by_policy:
                by_policy.set_policy_data(policy_name, OutputData(output_data.policy_info))
            by_policy.set_policy_data(
                policy_name,
                append_violations(by_policy.get_policy_data(policy_name), violation),
            )
    return grouped


_GROUPINGS: dict[SchemeType, tuple[ElementOf, type]] = {
    SchemeType.GROUP_BY_NAMESPACE: (lambda info, _: info.namespace, ByNamespace),
    SchemeType.GROUP_BY_RESOURCE: (lambda _, violation: violation.canonical_link, ByResource),
    SchemeType.GROUP_BY_SEVERITY: (lambda info, _: info.severity, BySeverity),
}


def convert(scheme_type: SchemeType | str, output: Flattened) -> Any:
    """Convert a flattened scheme into the requested scheme type."""
    if scheme_type == SchemeType.FLATTENED:
        return output
    try:
        element_of, group_class = _GROUPINGS[scheme_type]
    except KeyError:
        raise ValueError(f"no output converter for {scheme_type}") from None
    return convert_to_group_by(element_of, group_class, output)


def validate_output_scheme(scheme_type: SchemeType | str) -> None:
    if scheme_type != SchemeType.FLATTENED and scheme_type not in _GROUPINGS:
        raise ValueError(f"unsupported output scheme type: {scheme_type}")
"""Output schemes: results keyed by policy, or grouped by a property."""

from __future__ import annotations

import enum
import functools
import json
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from legitify.enricher import (
    EnricherManager,
    Namespace,
    PolicyStatus,
    Severity,
    severity_less,
)
from legitify.enrichers import Enrichment


class SchemeType(str, enum.Enum):
    FLATTENED = "flattened"
    GROUP_BY_NAMESPACE = "group-by-namespace"
    GROUP_BY_RESOURCE = "group-by-resource"
    GROUP_BY_SEVERITY = "group-by-severity"

    def __str__(self) -> str:
        return self.value

    def __format__(self, spec: str) -> str:
        return format(self.value, spec)


DEFAULT_SCHEME = SchemeType.FLATTENED


def scheme_types() -> list[SchemeType]:
    return list(SchemeType)


def _coerce(enum_cls: type[enum.Enum], value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _str_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r}: expecting a string, found {type(value).__name__}")
    return value


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"field {key!r}: expecting a list of strings")
    return list(value)


@dataclass
class PolicyInfo:
    title: str = ""
    description: str = ""
    policy_name: str = ""
    fully_qualified_policy_name: str = ""
    severity: Severity | str = ""
    threat: list[str] = field(default_factory=list)
    remediation_steps: list[str] = field(default_factory=list)
    namespace: Namespace | str = ""


def _policy_info_to_json(info: PolicyInfo) -> dict[str, Any]:
    return {
        "title": info.title,
        "description": info.description,
        "policyName": info.policy_name,
        "fullyQualifiedPolicyName": info.fully_qualified_policy_name,
        "severity": str(info.severity),
        "threat": list(info.threat),
        "remediationSteps": list(info.remediation_steps),
        "namespace": str(info.namespace),
    }


def _policy_info_from_json(data: Any) -> PolicyInfo:
    if not isinstance(data, Mapping):
        raise ValueError("policy info must be an object")
    return PolicyInfo(
        title=_str_field(data, "title"),
        description=_str_field(data, "description"),
        policy_name=_str_field(data, "policyName"),
        fully_qualified_policy_name=_str_field(data, "fullyQualifiedPolicyName"),
        severity=_coerce(Severity, _str_field(data, "severity")),
        threat=_str_list(data, "threat"),
        remediation_steps=_str_list(data, "remediationSteps"),
        namespace=_coerce(Namespace, _str_field(data, "namespace")),
    )


@dataclass
class Violation:
    violation_entity_type: str = ""
    canonical_link: str = ""
    aux: dict[str, Enrichment | None] | None = None
    status: PolicyStatus | str = ""


def _violation_to_json(violation: Violation) -> dict[str, Any]:
    aux = None
    if violation.aux is not None:
        aux = {
            name: None if value is None else value.to_json_obj()
            for name, value in violation.aux.items()
        }
    return {
        "violationEntityType": violation.violation_entity_type,
        "canonicalLink": violation.canonical_link,
        "aux": aux,
        "status": str(violation.status),
    }


def _aux_from_json(data: Any) -> dict[str, Enrichment | None] | None:
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise ValueError("aux must be an object")
    manager = EnricherManager()
    aux: dict[str, Enrichment | None] = {}
    for name, value in data.items():
        if value is None:
            aux[name] = None
            continue
        try:
            aux[name] = manager.parse(name, value)
        except (ValueError, TypeError) as exc:
            raise ValueError(
                f"failed to parse aux for violation: failed to enrich {name}: {exc}"
            ) from exc
    return aux


def _violation_from_json(data: Any) -> Violation:
    if not isinstance(data, Mapping):
        raise ValueError("violation must be an object")
    return Violation(
        violation_entity_type=_str_field(data, "violationEntityType"),
        canonical_link=_str_field(data, "canonicalLink"),
        aux=_aux_from_json(data.get("aux")),
        status=_coerce(PolicyStatus, _str_field(data, "status")),
    )


@dataclass
class OutputData:
    """A policy's description and its violations."""

    policy_info: PolicyInfo
    violations: list[Violation] = field(default_factory=list)

    def clone(self) -> OutputData:
        return append_violations(OutputData(replace(self.policy_info)), *self.violations)

    def to_json_obj(self) -> dict[str, Any]:
        return {
            "policyInfo": _policy_info_to_json(self.policy_info),
            "violations": [_violation_to_json(v) for v in self.violations],
        }


def _output_data_from_json(data: Any) -> OutputData:
    if not isinstance(data, Mapping) or "policyInfo" not in data or "violations" not in data:
        raise ValueError("output data missing fields")
    violations = data["violations"]
    if violations is None:
        violations = []
    if not isinstance(violations, list):
        raise ValueError("violations must be a list")
    return OutputData(
        policy_info=_policy_info_from_json(data["policyInfo"]),
        violations=[_violation_from_json(v) for v in violations],
    )


def append_violations(output_data: OutputData, *args: Violation) -> OutputData:
    """Return a copy of ``output_data`` with the given violations appended."""
    return replace(output_data, violations=[*output_data.violations, *args])


def _compare_severity(a: Severity | str, b: Severity | str) -> int:
    if severity_less(a, b):
        return -1
    if severity_less(b, a):
        return 1
    return 0


_severity_key = functools.cmp_to_key(_compare_severity)

_NAMESPACE_ORDER = {
    Namespace.ORGANIZATION: 0,
    Namespace.ACTIONS: 1,
    Namespace.MEMBER: 2,
    Namespace.REPOSITORY: 3,
    Namespace.RUNNER_GROUP: 4,
}


def _by_severity(policy_name: str, output_data: OutputData) -> tuple:
    return (_severity_key(output_data.policy_info.severity), policy_name)


def _by_namespace(policy_name: str, output_data: OutputData) -> tuple:
    order = _NAMESPACE_ORDER.get(output_data.policy_info.namespace, 0)
    return (order, *_by_severity(policy_name, output_data))


def _sorted_violations(output_data: OutputData) -> OutputData:
    ordered = sorted(output_data.violations, key=lambda v: v.canonical_link)
    return replace(output_data, violations=ordered)


class Flattened:
    """Ordered mapping of fully qualified policy names to their output data."""

    def __init__(self, policies: Mapping[str, OutputData] | None = None):
        self._policies: dict[str, OutputData] = dict(policies or {})

    def __contains__(self, policy_name: object) -> bool:
        return policy_name in self._policies

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Flattened):
            return NotImplemented
        return list(self._policies.items()) == list(other._policies.items())

    def __repr__(self) -> str:
        return f"Flattened({self._policies!r})"

    def items(self) -> list[tuple[str, OutputData]]:
        return list(self._policies.items())

    def get_policy_data(self, policy_name: str) -> OutputData:
        """Return a policy's data; raise KeyError if it is absent."""
        return self._policies[policy_name]

    def set_policy_data(self, policy_name: str, output_data: OutputData) -> None:
        self._policies[policy_name] = output_data

    def policy_names(self) -> list[str]:
        return list(self._policies)

    def shallow_clone(self) -> Flattened:
        return Flattened(self._policies)

    def sorted(self, key: Callable[[str, OutputData], Any]) -> Flattened:
        """Order policies by ``key(name, data)`` and each policy's violations by link."""
        ordered = sorted(self._policies.items(), key=lambda item: key(*item))
        return Flattened({name: _sorted_violations(data) for name, data in ordered})

    def sorted_by_severity(self) -> Flattened:
        return self.sorted(_by_severity)

    def sorted_by_namespace(self) -> Flattened:
        return self.sorted(_by_namespace)

    def only_failed_violations(self) -> Flattened:
        return self.filtered_by_status(PolicyStatus.FAILED)

    def filtered_by_status(self, status: PolicyStatus | str) -> Flattened:
        return self.filter_by_violation(lambda violation: violation.status == status)

    def filter_by_violation(self, predicate: Callable[[Violation], bool]) -> Flattened:
        """Keep matching violations; drop policies left with none."""
        filtered = Flattened()
        for name, data in self._policies.items():
            kept = [v for v in data.violations if predicate(v)]
            if kept:
                filtered.set_policy_data(name, replace(data, violations=kept))
        return filtered

    def to_json_obj(self) -> dict[str, Any]:
        return {name: data.to_json_obj() for name, data in self._policies.items()}

    @staticmethod
    def from_json_obj(data: Any) -> Flattened:
        """Rebuild from the JSON form; raise ValueError if malformed."""
        if not isinstance(data, Mapping):
            raise ValueError("flattened scheme must be an object")
        return Flattened({name: _output_data_from_json(v) for name, v in data.items()})


class _Grouped:
    """Ordered mapping of a grouping key to a flattened scheme."""

    def __init__(self, groups: Mapping[str, Flattened] | None = None):
        self._groups: dict[str, Flattened] = dict(groups or {})

    def __getitem__(self, key: str) -> Flattened:
        return self._groups[key]

    def __setitem__(self, key: str, value: Flattened) -> None:
        self._groups[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return list(self._groups.items()) == list(other._groups.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._groups!r})"

    def keys(self) -> list[str]:
        return list(self._groups)

    def items(self) -> list[tuple[str, Flattened]]:
        return list(self._groups.items())

    def to_json_obj(self) -> dict[str, Any]:
        return {str(key): group.to_json_obj() for key, group in self._groups.items()}


class ByNamespace(_Grouped):
    def get(self, namespace: str) -> Flattened:
        """Return the group; raise KeyError if it is absent."""
        return self._groups[namespace]


class ByResource(_Grouped):
    def get(self, resource: str) -> Flattened:
        """Return the group; raise KeyError if it is absent."""
        return self._groups[resource]


class BySeverity(_Grouped):
    def get(self, severity: str) -> Flattened:
        """Return the group; raise KeyError if it is absent."""
        return self._groups[severity]


Scheme = Flattened | ByNamespace | ByResource | BySeverity


def detect_scheme_type(scheme: Any) -> SchemeType:
    if isinstance(scheme, Flattened):
        return SchemeType.FLATTENED
    if isinstance(scheme, ByNamespace):
        return SchemeType.GROUP_BY_NAMESPACE
    if isinstance(scheme, ByResource):
        return SchemeType.GROUP_BY_RESOURCE
    if isinstance(scheme, BySeverity):
        return SchemeType.GROUP_BY_SEVERITY
    raise TypeError(f"invalid scheme type: {type(scheme).__name__}")


def to_typed(scheme_type: SchemeType | str, scheme: Any) -> dict[str, Any]:
    """Wrap a scheme's JSON form together with its type name."""
    return {"type": str(scheme_type), "content": scheme.to_json_obj()}


def unmarshal(data: str | bytes) -> Flattened:
    """Parse a typed JSON document holding a flattened scheme."""
    try:
        typed = json.loads(data)
    except ValueError as exc:
        raise ValueError(f"failed to parse input: {exc}") from exc
    if not isinstance(typed, dict):
        raise ValueError("failed to parse input: expecting an object")
    if typed.get("type") != SchemeType.FLATTENED.value:
        raise ValueError("unmarshaling is only supported for the flattened scheme")
    try:
        return Flattened.from_json_obj(typed.get("content"))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"failed to parse flattened scheme: {exc}") from exc
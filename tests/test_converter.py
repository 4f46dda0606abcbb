import pytest

from legitify.converter import convert, convert_to_group_by, validate_output_scheme
from legitify.enricher import Namespace, PolicyStatus, Severity
from legitify.enrichers import BasicEnrichment
from legitify.scheme import (
    ByNamespace,
    ByResource,
    BySeverity,
    Flattened,
    OutputData,
    PolicyInfo,
    SchemeType,
    append_violations,
)
from legitify.scheme import Violation

_POLICIES = {
    "full/policy1": (
        dict(
            policy_name="policy1",
            title="My policy example",
            description="This is an example policy that checks for a specific pattern in a file",
            remediation_steps=["do", "that"],
            severity=Severity.LOW,
            namespace=Namespace.ORGANIZATION,
        ),
        "organization",
        "link1",
        [{"A": "foo", "B": "42"}, None],
    ),
    "full/policy2": (
        dict(
            policy_name="policy2",
            title="My other policy",
            description="This is a different example policy\nthat checks for multiline",
            remediation_steps=["dont", "do", "that"],
            severity=Severity.HIGH,
            namespace=Namespace.REPOSITORY,
        ),
        "repository",
        "link2",
        [{"BAR": "xxx", "BLUE": "purple"}] * 2,
    ),
}


def _scheme_sample():
    sample = Flattened()
    for fq_name, (info, entity_type, link, auxes) in _POLICIES.items():
        violations = [
            Violation(
                entity_type,
                link + suffix,
                None if aux is None else {k: BasicEnrichment(v) for k, v in aux.items()},
                PolicyStatus.FAILED,
            )
            for suffix, aux in zip("ab", auxes)
        ]
        sample.set_policy_data(
            fq_name, OutputData(PolicyInfo(fully_qualified_policy_name=fq_name, **info), violations)
        )
    return sample


def _to_flattened(grouped):
    result = Flattened()
    for key in grouped.keys():
        for policy_name, output_data in grouped[key].items():
            if policy_name not in result:
                result.set_policy_data(policy_name, OutputData(output_data.policy_info))
            result.set_policy_data(
                policy_name,
                append_violations(result.get_policy_data(policy_name), *output_data.violations),
            )
    return result


@pytest.mark.parametrize(
    "scheme_type, group_class, key_of",
    [
        (SchemeType.GROUP_BY_NAMESPACE, ByNamespace, lambda data, _: data.policy_info.namespace),
        (SchemeType.GROUP_BY_RESOURCE, ByResource, lambda _, v: v.canonical_link),
        (SchemeType.GROUP_BY_SEVERITY, BySeverity, lambda data, _: data.policy_info.severity),
    ],
)
def test_grouping_converters_round_trip(scheme_type, group_class, key_of):
    sample = _scheme_sample()
    converted = convert(scheme_type, sample)
    assert isinstance(converted, group_class)
    for key in converted.keys():
        sub = converted.get(key)
        for policy_name in sub.policy_names():
            data = sub.get_policy_data(policy_name)
            assert all(key_of(data, v) == key for v in data.violations)
    assert _to_flattened(converted) == sample


def test_by_resource_keys_in_order():
    converted = convert(SchemeType.GROUP_BY_RESOURCE, _scheme_sample())
    assert converted.keys() == ["link1a", "link1b", "link2a", "link2b"]


def test_flattened_converter_is_identity():
    sample = _scheme_sample()
    assert convert("flattened", sample) is sample


def test_convert_unknown_scheme_raises():
    with pytest.raises(ValueError):
        convert("group-by-colour", _scheme_sample())


def test_validate_output_scheme():
    validate_output_scheme("group-by-namespace")
    validate_output_scheme(SchemeType.FLATTENED)
    with pytest.raises(ValueError):
        validate_output_scheme("nope")


def test_convert_to_group_by_custom_element():
    grouped = convert_to_group_by(lambda _, v: v.violation_entity_type, ByResource, _scheme_sample())
    assert grouped.keys() == ["organization", "repository"]
    assert grouped.get("organization").policy_names() == ["full/policy1"]
    assert len(grouped.get("repository").get_policy_data("full/policy2").violations) == 2
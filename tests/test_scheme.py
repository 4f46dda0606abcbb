import json

import pytest

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
    Violation,
    append_violations,
    detect_scheme_type,
    to_typed,
    unmarshal,
)


def _info(name, severity, namespace):
    return PolicyInfo(
        title=f"title of {name}",
        description=f"description of {name}",
        policy_name=name,
        fully_qualified_policy_name=f"full/{name}",
        severity=severity,
        remediation_steps=["do", "that"],
        namespace=namespace,
    )


def _violation(link, status=PolicyStatus.FAILED, aux=None):
    return Violation(
        violation_entity_type="organization",
        canonical_link=link,
        aux=aux,
        status=status,
    )


def _sample():
    aux = {"entityId": BasicEnrichment("666"), "entityName": BasicEnrichment("arbitrary")}
    sample = Flattened()
    sample.set_policy_data(
        "full/policy1",
        OutputData(
            _info("policy1", Severity.LOW, Namespace.REPOSITORY),
            [_violation("link1b", aux=aux), _violation("link1a")],
        ),
    )
    sample.set_policy_data(
        "full/policy2",
        OutputData(
            _info("policy2", Severity.HIGH, Namespace.ORGANIZATION),
            [_violation("link2a", status=PolicyStatus.PASSED, aux=aux)],
        ),
    )
    return sample


def test_json_round_trip():
    sample = _sample()
    text = json.dumps(to_typed(detect_scheme_type(sample), sample))
    assert unmarshal(text) == sample


def test_typed_wraps_type_and_content():
    sample = _sample()
    typed = to_typed(SchemeType.FLATTENED, sample)
    assert typed["type"] == "flattened"
    assert set(typed["content"]["full/policy1"]) == {"policyInfo", "violations"}
    assert typed["content"]["full/policy1"]["policyInfo"]["policyName"] == "policy1"


def test_unmarshal_rejects_grouped_scheme():
    with pytest.raises(ValueError):
        unmarshal(json.dumps({"type": "group-by-severity", "content": {}}))


def test_unmarshal_rejects_invalid_json():
    with pytest.raises(ValueError):
        unmarshal("{not json")


def test_unmarshal_rejects_missing_fields():
    with pytest.raises(ValueError):
        unmarshal(json.dumps({"type": "flattened", "content": {"p": {"policyInfo": {}}}}))


def test_unmarshal_rejects_unknown_aux():
    doc = to_typed(SchemeType.FLATTENED, _sample())
    doc["content"]["full/policy1"]["violations"][0]["aux"] = {"nope": "x"}
    with pytest.raises(ValueError):
        unmarshal(json.dumps(doc))


def test_detect_scheme_type():
    assert detect_scheme_type(Flattened()) is SchemeType.FLATTENED
    assert detect_scheme_type(ByNamespace()) is SchemeType.GROUP_BY_NAMESPACE
    assert detect_scheme_type(ByResource()) is SchemeType.GROUP_BY_RESOURCE
    assert detect_scheme_type(BySeverity()) is SchemeType.GROUP_BY_SEVERITY
    with pytest.raises(TypeError):
        detect_scheme_type({})


def test_sorted_by_severity_puts_more_severe_first_and_sorts_links():
    result = _sample().sorted_by_severity()
    assert result.policy_names() == ["full/policy2", "full/policy1"]
    links = [v.canonical_link for v in result.get_policy_data("full/policy1").violations]
    assert links == ["link1a", "link1b"]


def test_sorted_leaves_original_untouched():
    sample = _sample()
    sample.sorted_by_severity()
    links = [v.canonical_link for v in sample.get_policy_data("full/policy1").violations]
    assert links == ["link1b", "link1a"]


def test_sorted_by_namespace_puts_organization_first():
    result = _sample().sorted_by_namespace()
    assert result.policy_names() == ["full/policy2", "full/policy1"]


def test_only_failed_violations_drops_policies_without_failures():
    result = _sample().only_failed_violations()
    assert result.policy_names() == ["full/policy1"]
    assert all(
        v.status == PolicyStatus.FAILED for v in result.get_policy_data("full/policy1").violations
    )


def test_filtered_by_status_passed():
    result = _sample().filtered_by_status(PolicyStatus.PASSED)
    assert result.policy_names() == ["full/policy2"]


def test_filter_by_violation_with_predicate():
    result = _sample().filter_by_violation(lambda v: v.canonical_link.endswith("a"))
    assert result.policy_names() == ["full/policy1", "full/policy2"]
    assert len(result.get_policy_data("full/policy1").violations) == 1


def test_get_policy_data_missing_raises():
    with pytest.raises(KeyError):
        Flattened().get_policy_data("missing")


def test_append_violations_returns_new_copy():
    data = OutputData(_info("p", Severity.LOW, Namespace.MEMBER))
    extended = append_violations(data, _violation("a"), _violation("b"))
    assert data.violations == []
    assert [v.canonical_link for v in extended.violations] == ["a", "b"]


def test_clone_is_equal_and_independent():
    data = _sample().get_policy_data("full/policy1")
    clone = data.clone()
    assert clone == data
    clone.violations.append(_violation("extra"))
    assert len(data.violations) == 2


def test_shallow_clone_independent_keys():
    sample = _sample()
    clone = sample.shallow_clone()
    assert clone == sample
    clone.set_policy_data("other", OutputData(PolicyInfo()))
    assert "other" not in sample


def test_grouped_get_and_equality():
    group = ByNamespace()
    group["organization"] = _sample()
    assert group.get("organization") == _sample()
    with pytest.raises(KeyError):
        group.get("repository")
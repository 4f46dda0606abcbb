import json

import pytest

from legitify.enricher import Namespace, PolicyStatus, Severity
from legitify.enrichers import BasicEnrichment
from legitify.formatting import ThemeColor, UnsupportedSchemeError
from legitify.sarif_formatter import (
    SarifColorizer,
    SarifFormatter,
    sarif_problem_severity,
    sarif_security_severity,
    sarif_severity,
)
from legitify.scheme import ByNamespace, Flattened, OutputData, PolicyInfo, Violation

DESC_1 = "This is an example policy that checks for a specific pattern in a file"
DESC_2 = "This is a different example policy\nthat checks for multiline"


def scheme_sample() -> Flattened:
    sample = Flattened()
    sample.set_policy_data(
        "full/policy1",
        OutputData(
            PolicyInfo(
                title="My policy example",
                description=DESC_1,
                policy_name="policy1",
                fully_qualified_policy_name="full/policy1",
                severity=Severity.LOW,
                remediation_steps=["do", "that"],
                namespace=Namespace.ORGANIZATION,
            ),
            [
                Violation(
                    "organization",
                    "link1a",
                    {"A": BasicEnrichment("foo"), "B": BasicEnrichment("42")},
                    PolicyStatus.FAILED,
                ),
                Violation("organization", "link1b", None, PolicyStatus.FAILED),
            ],
        ),
    )
    aux2 = {"BAR": BasicEnrichment("xxx"), "BLUE": BasicEnrichment("purple")}
    sample.set_policy_data(
        "full/policy2",
        OutputData(
            PolicyInfo(
                title="My other policy",
                description=DESC_2,
                policy_name="policy2",
                fully_qualified_policy_name="full/policy2",
                severity=Severity.HIGH,
                remediation_steps=["dont", "do", "that"],
                namespace=Namespace.REPOSITORY,
            ),
            [
                Violation("repository", "link2a", dict(aux2), PolicyStatus.FAILED),
                Violation("repository", "link2b", dict(aux2), PolicyStatus.FAILED),
            ],
        ),
    )
    return sample


@pytest.mark.parametrize("failed_only", [True, False])
def test_format_sarif_structure(failed_only):
    report = json.loads(SarifFormatter().format(scheme_sample(), failed_only))
    assert report["version"] == "2.1.0"
    run = report["runs"][0]
    assert run["tool"]["driver"]["name"] == "legitify"
    assert [r["id"] for r in run["tool"]["driver"]["rules"]] == ["full/policy1", "full/policy2"]
    assert [r["ruleId"] for r in run["results"]] == [
        "full/policy1",
        "full/policy1",
        "full/policy2",
        "full/policy2",
    ]
    assert [r["level"] for r in run["results"]] == ["note", "note", "error", "error"]
    assert [a["location"]["uri"] for a in run["artifacts"]] == ["organization", "repository"]


def test_rule_properties_and_descriptions():
    report = json.loads(SarifFormatter().format(scheme_sample(), False))
    rule = report["runs"][0]["tool"]["driver"]["rules"][1]
    assert rule["shortDescription"] == {"text": "My other policy"}
    assert rule["fullDescription"] == {"text": DESC_2}
    assert rule["properties"] == {
        "impact": [],
        "resolution": ["dont", "do", "that"],
        "precision": "high",
        "problem.severity": "error",
        "security-severity": "7.0",
    }
    assert "My other policy" in rule["help"]["text"]
    assert "# My other policy :no_entry:" in rule["help"]["markdown"]


def test_result_message_and_location():
    report = json.loads(SarifFormatter().format(scheme_sample(), False))
    results = report["runs"][0]["results"]
    assert results[1]["message"]["text"] == DESC_1 + "  \nLink to organization: link1b  \n"
    first = results[0]["message"]["text"]
    assert first.startswith(DESC_1 + "  \nLink to organization: link1a  \n")
    assert "A: foo" in first
    assert results[0]["hostedViewerUri"] == "link1a"
    location = results[0]["locations"][0]["physicalLocation"]["artifactLocation"]
    assert location == {"uri": "link1a", "uriBaseId": ""}


def test_only_failed_violations_become_results():
    scheme = Flattened()
    scheme.set_policy_data(
        "full/p",
        OutputData(
            PolicyInfo(title="T", fully_qualified_policy_name="full/p", severity=Severity.MEDIUM),
            [Violation("repository", "https://example.com/r", None, PolicyStatus.PASSED)],
        ),
    )
    run = json.loads(SarifFormatter().format(scheme, False))["runs"][0]
    assert len(run["tool"]["driver"]["rules"]) == 1
    assert run["results"] == []


def test_failed_only_does_not_change_output():
    formatter = SarifFormatter()
    assert formatter.format(scheme_sample(), True) == formatter.format(scheme_sample(), False)


@pytest.mark.parametrize(
    "link, expected",
    [
        ("https://example.com/org", ("https://", "example.com/org")),
        ("http://example.com/org", ("http://", "example.com/org")),
        ("link1a", ("", "link1a")),
    ],
)
def test_uri_from_link(link, expected):
    assert SarifFormatter().uri_from_link(link) == expected


@pytest.mark.parametrize(
    "severity, level, problem, security",
    [
        (Severity.CRITICAL, "error", "error", "9.0"),
        (Severity.HIGH, "error", "error", "7.0"),
        (Severity.MEDIUM, "warning", "warning", "4.0"),
        (Severity.LOW, "note", "recommendation", "1.0"),
        ("OTHER", "none", "recommendation", "1.0"),
    ],
)
def test_severity_mappings(severity, level, problem, security):
    assert sarif_severity(severity) == level
    assert sarif_problem_severity(severity) == problem
    assert sarif_security_severity(severity) == security


def test_colorizer_is_plain():
    assert SarifColorizer().colorize(ThemeColor.FAILURE, 3) == "3"


def test_rejects_grouped_scheme():
    with pytest.raises(UnsupportedSchemeError):
        SarifFormatter().format(ByNamespace(), False)
import json

import pytest

from legitify.converter import convert
from legitify.enricher import Namespace, PolicyStatus, Severity
from legitify.enrichers import BasicEnrichment
from legitify.output_format import (
    FormatName,
    format_output,
    output_formats,
    validate_output_format,
)
from legitify.scheme import Flattened, OutputData, PolicyInfo, SchemeType, Violation


def scheme_sample() -> Flattened:
    sample = Flattened()
    sample.set_policy_data(
        "full/policy1",
        OutputData(
            PolicyInfo(
                title="My policy example",
                description="This is an example policy that checks for a specific pattern in a file",
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
    sample.set_policy_data(
        "full/policy2",
        OutputData(
            PolicyInfo(
                title="My other policy",
                description="This is a different example policy\nthat checks for multiline",
                policy_name="policy2",
                fully_qualified_policy_name="full/policy2",
                severity=Severity.HIGH,
                remediation_steps=["dont", "do", "that"],
                namespace=Namespace.REPOSITORY,
            ),
            [
                Violation("repository", "link2a", {"BAR": BasicEnrichment("xxx")}, PolicyStatus.FAILED),
                Violation("repository", "link2b", {"BAR": BasicEnrichment("xxx")}, PolicyStatus.FAILED),
            ],
        ),
    )
    return sample


def test_output_formats_lists_all():
    assert set(output_formats()) == {"human", "json", "sarif", "markdown", "csv"}


@pytest.mark.parametrize("name", list(FormatName))
def test_every_format_renders_sample(name):
    output = format_output(name, scheme_sample(), True)
    assert "My other policy" in output
    assert "policy1" in output


@pytest.mark.parametrize(
    ("name", "key", "expected"),
    [("json", "type", "flattened"), ("sarif", "version", "2.1.0")],
)
def test_machine_formats_are_json(name, key, expected):
    parsed = json.loads(format_output(name, scheme_sample(), True))
    assert parsed[key] == expected


def test_json_renders_grouped_scheme():
    grouped = convert(SchemeType.GROUP_BY_NAMESPACE, scheme_sample())
    parsed = json.loads(format_output(FormatName.JSON, grouped, False))
    assert parsed["type"] == "group-by-namespace"
    assert list(parsed["content"]) == ["organization", "repository"]


def test_unknown_format_rejected():
    with pytest.raises(ValueError, match="no output generator"):
        format_output("xml", scheme_sample(), False)


def test_validate_unknown_format():
    with pytest.raises(ValueError, match="unsupported output format"):
        validate_output_format("xml", SchemeType.FLATTENED)


@pytest.mark.parametrize("name", ["human", "markdown", "csv"])
def test_validate_unsupported_scheme(name):
    with pytest.raises(ValueError, match="does not support output format"):
        validate_output_format(name, SchemeType.GROUP_BY_SEVERITY)
"""Attaching enrichments to analysed policy results.

Entities are duck-typed: enrichers read ``id`` and ``name`` from them, and the
outputer reads ``violation_entity_type``. An entity that belongs to an
organization may expose ``organization.id``.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from legitify import enrichers as _enr

logger = logging.getLogger(__name__)

ORGANIZATION_ID = "organizationId"

DEFAULT_ENRICHERS = [_enr.ENTITY_ID, _enr.ENTITY_NAME]


class _ValueEnum(str, enum.Enum):
    def __str__(self) -> str:
        return self.value

    def __format__(self, spec: str) -> str:
        return format(self.value, spec)


class Severity(_ValueEnum):
    UNKNOWN = "UNKNOWN"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Namespace(_ValueEnum):
    ORGANIZATION = "organization"
    ACTIONS = "actions"
    MEMBER = "member"
    REPOSITORY = "repository"
    RUNNER_GROUP = "runner_group"


class PolicyStatus(_ValueEnum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


def severity_less(a: Severity | str, b: Severity | str) -> bool:
    """Return True when ``a`` sorts before ``b``: more severe comes first."""
    return _SEVERITY_RANK.get(a, 0) > _SEVERITY_RANK.get(b, 0)


@dataclass
class _PolicyResult:
    """Fields shared by a policy result before and after enrichment."""

    entity: Any
    namespace: Namespace | str = ""
    policy_name: str = ""
    fully_qualified_policy_name: str = ""
    annotations: Any = None
    title: str = ""
    description: str = ""
    threat: list[str] = field(default_factory=list)
    remediation_steps: list[str] = field(default_factory=list)
    severity: Severity | str = ""
    canonical_link: str = ""
    status: PolicyStatus | str = PolicyStatus.FAILED


@dataclass
class AnalyzedData(_PolicyResult):
    """A policy evaluated against one entity."""

    required_enrichers: list[str] | None = None
    extra_data: Any = None


@dataclass
class EnrichedData(_PolicyResult):
    """Analysed data together with the enrichments computed for it."""

    enrichers: dict[str, _enr.Enrichment] = field(default_factory=dict)


def _organization_id(data: Any) -> str | None:
    organization = getattr(data.entity, "organization", None)
    org_id = getattr(organization, "id", None)
    return None if org_id is None else str(int(org_id))


_ENRICHERS: dict[str, _enr.Enricher] = {
    _enr.ENTITY_ID: _enr.EntityIdEnricher(),
    _enr.ENTITY_NAME: _enr.EntityNameEnricher(),
    ORGANIZATION_ID: _enr.BasicEnricher(_organization_id),
    _enr.SCORECARD: _enr.ScorecardEnricher(),
    _enr.MEMBERS_LIST: _enr.MembersListEnricher(),
    _enr.HOOKS_LIST: _enr.HooksListEnricher(),
    _enr.SECRETS_LIST: _enr.SecretsListEnricher(),
}


def _lookup(name: str) -> _enr.Enricher:
    try:
        return _ENRICHERS[name]
    except KeyError:
        raise ValueError(f"failed to find enricher {name}") from None


def _enrichments(item: AnalyzedData, context: Mapping[str, Any] | None) -> dict[str, _enr.Enrichment]:
    result: dict[str, _enr.Enrichment] = {}
    for name in [*(item.required_enrichers or []), *DEFAULT_ENRICHERS]:
        try:
            enricher = _lookup(name)
        except ValueError as exc:
            logger.error("failed to find enricher: %s", exc)
            continue
        enrichment = enricher.enrich(context, item)
        if enrichment is not None:
            result[name] = enrichment
    return result


class EnricherManager:
    """Runs the enrichers each policy asks for, plus the default ones."""

    def enrich(
        self,
        analyzed: Iterable[AnalyzedData],
        context: Mapping[str, Any] | None = None,
    ) -> Iterator[EnrichedData]:
        for item in analyzed:
            shared = {f.name: getattr(item, f.name) for f in fields(_PolicyResult)}
            yield EnrichedData(**shared, enrichers=_enrichments(item, context))

    def parse(self, name: str, data: Any) -> _enr.Enrichment:
        """Rebuild the named enrichment from its JSON form."""
        return _lookup(name).parse(data)
"""Enrichments attached to violations and the enrichers that produce them.

Enrichers read duck-typed analysed data: ``data.entity`` exposes ``id`` and
``name`` attributes and ``data.extra_data`` holds what the policy returned.
A context, where used, is a mapping of run options.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

ENTITY_ID = "entityId"
ENTITY_NAME = "entityName"
SCORECARD = "scorecard"
MEMBERS_LIST = "violatedUsers"
HOOKS_LIST = "hooksList"
SECRETS_LIST = "secretsList"

MAX_SCORE = 10


def _prepended(prepend: str, parts: Iterable[str]) -> str:
    return "".join(prepend + part for part in parts)


class Enrichment(ABC):
    """Extra information shown next to a violation."""

    @abstractmethod
    def human_readable(self, prepend: str, linebreak: str) -> str:
        """Render for people; each line starts with ``prepend``."""

    @abstractmethod
    def to_json_obj(self) -> Any:
        """Return a JSON-serialisable form that ``parse`` accepts back."""


class Enricher(ABC):
    """Produces an enrichment from analysed data, or parses a stored one."""

    @abstractmethod
    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        """Return an enrichment, or None when none applies."""

    @abstractmethod
    def parse(self, data: Any) -> Enrichment:
        """Rebuild an enrichment from its JSON form; raise TypeError if malformed."""


@dataclass(frozen=True)
class BasicEnrichment(Enrichment):
    value: str

    def human_readable(self, prepend: str, linebreak: str) -> str:
        return self.value

    def to_json_obj(self) -> str:
        return self.value

    @staticmethod
    def from_value(data: Any) -> BasicEnrichment:
        if not isinstance(data, str):
            raise TypeError(f"expecting a string, found {type(data).__name__}")
        return BasicEnrichment(data)


def _as_mapping_list(data: Any, what: str) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise TypeError(f"{what}: expecting a list of mappings, found {type(data).__name__}")
    result = []
    for item in data:
        if not isinstance(item, Mapping):
            raise TypeError(f"{what}: expecting a mapping, found {type(item).__name__}")
        result.append(dict(item))
    return result


@dataclass(frozen=True)
class GenericListEnrichment(Enrichment):
    items: list[dict[str, str]] = field(default_factory=list)

    def human_readable(self, prepend: str, linebreak: str) -> str:
        parts = []
        for number, item in enumerate(self.items, start=1):
            for position, (key, value) in enumerate(item.items()):
                if position == 0:
                    parts.append(f"{number}. {key}: {value}{linebreak}")
                else:
                    parts.append(f"   {key}: {value}{linebreak}")
        return linebreak + _prepended(prepend, parts)

    def to_json_obj(self) -> list[dict[str, str]]:
        return [dict(item) for item in self.items]

    @staticmethod
    def from_value(data: Any) -> GenericListEnrichment:
        return GenericListEnrichment(_as_mapping_list(data, "generic list"))


def _member_user(member: Mapping[str, Any]) -> Mapping[str, Any]:
    user = member.get("user")
    if not isinstance(user, Mapping):
        raise ValueError("member has no user")
    return user


@dataclass(frozen=True)
class MembersListEnrichment(Enrichment):
    members: list[dict[str, Any]] = field(default_factory=list)

    def human_readable(self, prepend: str, linebreak: str) -> str:
        parts = []
        for number, member in enumerate(self.members, start=1):
            user = _member_user(member)
            parts.append(f"{number}. {user.get('html_url')} ({user.get('id')}){linebreak}")
        return _prepended(prepend, parts)

    def to_json_obj(self) -> list[dict[str, Any]]:
        return [dict(member) for member in self.members]


@dataclass(frozen=True)
class ScorecardCheck:
    reason: str
    docs_url: str
    details: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScorecardEnrichment(Enrichment):
    checks: list[ScorecardCheck] = field(default_factory=list)

    def human_readable(self, prepend: str, linebreak: str) -> str:
        parts = []
        for number, check in enumerate(self.checks, start=1):
            parts.append(f"{number}. {check.reason}:{linebreak}")
            parts.append(f"docs: {check.docs_url}{linebreak}")
            if check.details:
                parts.append(f"details: {linebreak}")
                for index, detail in enumerate(check.details, start=1):
                    clean = detail.replace("\t", "").replace("\n", " ")
                    parts.append(f"  {index}. {clean}{linebreak}")
        return linebreak + _prepended(prepend, parts)

    def to_json_obj(self) -> list[dict[str, Any]]:
        return [
            {"Reason": c.reason, "DocsUrl": c.docs_url, "Details": list(c.details)}
            for c in self.checks
        ]


class BasicEnricher(Enricher):
    """Enricher built from a function returning a string or None."""

    def __init__(self, enrich_with: Callable[[Any], str | None]):
        self._enrich_with = enrich_with

    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        value = self._enrich_with(data)
        if value is None:
            return None
        return BasicEnrichment(value)

    def parse(self, data: Any) -> Enrichment:
        return BasicEnrichment.from_value(data)


class EntityIdEnricher(BasicEnricher):
    def __init__(self) -> None:
        super().__init__(lambda data: str(int(data.entity.id)))


class EntityNameEnricher(BasicEnricher):
    def __init__(self) -> None:
        super().__init__(lambda data: data.entity.name)


def _decode_string_maps(extra_data: Any) -> list[dict[str, str]]:
    if not isinstance(extra_data, Mapping):
        raise ValueError("invalid list extra data")
    result = []
    for key in extra_data:
        decoded = json.loads(key)
        if not isinstance(decoded, dict) or not all(isinstance(v, str) for v in decoded.values()):
            raise ValueError(f"expecting a mapping of strings, found {key!r}")
        result.append({k: decoded[k] for k in sorted(decoded)})
    return result


class HooksListEnricher(Enricher):
    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        try:
            hooks = _decode_string_maps(data.extra_data)
        except ValueError as exc:
            logger.error("failed to enrich hooks list: %s", exc)
            return None
        hooks.sort(key=lambda hook: hook.get("url", ""))
        return GenericListEnrichment(hooks)

    def parse(self, data: Any) -> Enrichment:
        return GenericListEnrichment.from_value(data)


class SecretsListEnricher(Enricher):
    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        try:
            secrets = _decode_string_maps(data.extra_data)
        except ValueError as exc:
            logger.error("failed to enrich secrets list: %s", exc)
            return None
        return GenericListEnrichment(secrets)

    def parse(self, data: Any) -> Enrichment:
        return GenericListEnrichment.from_value(data)


class MembersListEnricher(Enricher):
    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        extra = data.extra_data
        if not isinstance(extra, Mapping):
            return None
        try:
            members = [json.loads(key) for key in extra]
            members.sort(key=lambda member: _member_user(member)["id"])
        except (ValueError, KeyError, TypeError, AttributeError):
            return None
        return MembersListEnrichment(members)

    def parse(self, data: Any) -> Enrichment:
        return MembersListEnrichment(_as_mapping_list(data, "members list"))


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


class ScorecardEnricher(Enricher):
    """Lists scorecard checks below the maximum score.

    Active only when the context has ``scorecard_verbose`` set. The entity's
    ``scorecard`` holds ``checks``; each check has ``score``, ``reason``,
    ``docs_url`` and ``details`` items with ``type`` and ``text``.
    """

    def enrich(self, context: Mapping[str, Any] | None, data: Any) -> Enrichment | None:
        if not context or not context.get("scorecard_verbose", False):
            return None
        scorecard = _field(data.entity, "scorecard")
        if scorecard is None:
            return None
        checks = []
        for check in _field(scorecard, "checks", []) or []:
            if _field(check, "score") == MAX_SCORE:
                continue
            details = [
                _field(detail, "text", "")
                for detail in _field(check, "details", []) or []
                if _field(detail, "type") == "warn"
            ]
            checks.append(
                ScorecardCheck(
                    reason=_field(check, "reason", ""),
                    docs_url=_field(check, "docs_url", ""),
                    details=details,
                )
            )
        return ScorecardEnrichment(checks)

    def parse(self, data: Any) -> Enrichment:
        checks = []
        for item in _as_mapping_list(data, "scorecard enricher"):
            reason = item.get("Reason")
            url = item.get("DocsUrl")
            details = item.get("Details")
            if not isinstance(details, list) or not all(isinstance(d, str) for d in details):
                details = []
            checks.append(
                ScorecardCheck(
                    reason=reason if isinstance(reason, str) else "",
                    docs_url=url if isinstance(url, str) else "",
                    details=list(details),
                )
            )
        return ScorecardEnrichment(checks)
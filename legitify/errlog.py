"""Error, permission-issue and skipped-policy logging."""

from __future__ import annotations

import enum
import json
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, TextIO


def _filtered_effects(effects: set[str]) -> list[str]:
    return [effect for effect in sorted(effects) if effect]


@dataclass(frozen=True)
class PermIssue:
    """A missing permission and the effect it had on one entity."""

    permission: str
    entity: str
    effect: str


def new_perm_issue(permission: str, entity: str, namespace: str, effect: str) -> PermIssue:
    """Build a permission issue whose entity is qualified by its namespace."""
    return PermIssue(permission=permission, entity=f"{namespace}:{entity}", effect=effect)


class PermLog:
    """Missing permissions grouped by permission, then by entity."""

    def __init__(self) -> None:
        self._permissions: dict[str, dict[str, set[str]]] = {}
        self._lock = threading.Lock()

    def add(self, issue: PermIssue) -> None:
        with self._lock:
            entities = self._permissions.setdefault(issue.permission, {})
            entities.setdefault(issue.entity, set()).add(issue.effect)

    def empty(self) -> bool:
        return not self._permissions

    def to_json_obj(self) -> dict[str, dict[str, list[str]]]:
        """Permissions in insertion order, entities sorted by name, effects sorted."""
        with self._lock:
            return {
                permission: {
                    entity: _filtered_effects(entities[entity])
                    for entity in sorted(entities)
                }
                for permission, entities in self._permissions.items()
            }


class _ReasonType(enum.Enum):
    PREREQUISITE = 0
    PERMISSION = 1


@dataclass(frozen=True)
class SkipReason:
    """Why a policy was skipped for an entity."""

    reason: str
    reason_type: _ReasonType

    @staticmethod
    def prerequisite(reason: str) -> SkipReason:
        return SkipReason(reason, _ReasonType.PREREQUISITE)

    @staticmethod
    def permission(reason: str) -> SkipReason:
        return SkipReason(reason, _ReasonType.PERMISSION)

    def reason_prefix(self) -> str:
        if self.reason_type is _ReasonType.PREREQUISITE:
            return "Unmet prerequisite"
        if self.reason_type is _ReasonType.PERMISSION:
            return "Missing permission"
        return f"Unknown reason type: {self.reason_type}"

    def to_json_obj(self) -> str:
        return f"{self.reason_prefix()}: {self.reason}"


class SkipLog:
    """Skipped policies mapped to the entities they were skipped for."""

    def __init__(self) -> None:
        self._policies: dict[str, dict[str, SkipReason]] = {}
        self._lock = threading.Lock()

    def add(self, policy_name: str, entity_name: str, skip_reason: SkipReason) -> None:
        with self._lock:
            self._policies.setdefault(policy_name, {})[entity_name] = skip_reason

    def empty(self) -> bool:
        return not self._policies

    def to_json_obj(self) -> dict[str, dict[str, str]]:
        """Policies and entities sorted by name, reasons as readable strings."""
        with self._lock:
            return {
                policy: {
                    entity: entities[entity].to_json_obj() for entity in sorted(entities)
                }
                for policy, entities in sorted(self._policies.items())
            }


class ErrorLog:
    """Collects errors, permission issues and skipped policies for one run."""

    def __init__(self, output: TextIO | None = None, permissions_output: TextIO | None = None):
        self._output = output if output is not None else sys.stderr
        self._perm_writer = permissions_output
        self._ever_written = False
        self._perm_issues = False
        self._write_lock = threading.Lock()
        self.skip_log = SkipLog()
        self.perm_log = PermLog()

    def set_output(self, writer: TextIO) -> None:
        self._output = writer

    def set_permissions_output(self, writer: TextIO) -> None:
        self._perm_writer = writer

    def _log(self, message: str) -> None:
        if not message.endswith("\n"):
            message += "\n"
        stamp = time.strftime("%Y/%m/%d %H:%M:%S")
        with self._write_lock:
            self._output.write(f"{stamp} {message}")

    def printf(self, fmt: str, *args: Any) -> None:
        """Log a printf-style message and remember that an error occurred."""
        self._ever_written = True
        self._log(fmt % args if args else fmt)

    def add_perm_issue(self, issue: PermIssue) -> None:
        self.perm_log.add(issue)

    def add_skip_issue(self, policy_name: str, entity_name: str, skip_reason: SkipReason) -> None:
        self.skip_log.add(policy_name, entity_name, skip_reason)

    def flush_all(self) -> None:
        """Write collected permission issues and skipped policies as JSON."""
        if self.perm_log.empty() and self.skip_log.empty():
            return
        self._perm_issues = True

        payload = {
            "missing_permissions": self.perm_log.to_json_obj(),
            "skipped_policies": self.skip_log.to_json_obj(),
        }
        try:
            text = json.dumps(payload, indent=2)
        except (TypeError, ValueError) as exc:
            self._log(f"Failed to marshal permission issues: {exc}")
            return

        if self._perm_writer is None:
            self._log("Failed to dump permission issues: no permissions output set")
            return
        try:
            self._perm_writer.write(text)
        except OSError as exc:
            self._log(f"Failed to dump permission issues: {exc}")

    def had_errors(self) -> bool:
        return self._ever_written

    def had_perm_issues(self) -> bool:
        return self._perm_issues
"""
Rule Versioning and Resolution

Rules are never edited in place. Every edit appends a new version with a
later effective_from, and callers resolve "the rule in effect at instant T"
instead of reading a single current rule.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from ..models import IncentiveRuleVersion, parse_timestamp
from ..validators import InputValidator

logger = logging.getLogger(__name__)


class RuleVersionLog:
    """Append-only store of rule versions, keyed by (tenant, type)."""

    def __init__(self):
        self._versions: dict[tuple[str, str], list[IncentiveRuleVersion]] = {}
        self._validator = InputValidator()

    @classmethod
    def from_versions(cls, versions: Iterable[IncentiveRuleVersion]) -> "RuleVersionLog":
        """Build a log from versions read back from storage, in any order."""
        log = cls()
        for version in sorted(versions, key=lambda v: (v.effective_from, v.version_id)):
            log.append(version)
        return log

    def append(self, version: IncentiveRuleVersion) -> IncentiveRuleVersion:
        """
        Append a version and return it with its version id assigned.

        Raises ValueError if the version would take effect before the
        latest existing version of the same tenant and type.
        """
        self._validator.validate_rule(version)
        key = (version.tenant_id, version.rule_type)
        history = self._versions.setdefault(key, [])

        if history:
            latest = history[-1]
            if version.effective_from < latest.effective_from:
                raise ValueError(
                    f"{version.rule_type} rule cannot take effect at {version.effective_from}, "
                    f"before the latest version ({latest.effective_from})"
                )

        used_ids = {v.version_id for v in history}
        if version.version_id == 0:
            version = replace(version, version_id=max(used_ids, default=0) + 1)
        elif version.version_id in used_ids:
            raise ValueError(f"Duplicate {version.rule_type} rule version id: {version.version_id}")

        history.append(version)
        logger.debug(
            "Appended %s rule v%s for tenant=%s effective %s",
            version.rule_type,
            version.version_id,
            version.tenant_id,
            version.effective_from,
        )
        return version

    def revise(self, tenant_id: str, rule_type: str, effective_from, **changes) -> IncentiveRuleVersion:
        """Create a new version from the latest one with some fields changed."""
        latest = self.latest(tenant_id, rule_type)
        if latest is None:
            raise ValueError(f"No {rule_type} rule to revise for tenant {tenant_id}")
        return self.append(
            replace(
                latest,
                effective_from=parse_timestamp(effective_from),
                version_id=0,
                **changes,
            )
        )

    def versions(self, tenant_id: str, rule_type: str) -> list[IncentiveRuleVersion]:
        return list(self._versions.get((tenant_id, rule_type), []))

    def latest(self, tenant_id: str, rule_type: str) -> Optional[IncentiveRuleVersion]:
        history = self._versions.get((tenant_id, rule_type))
        return history[-1] if history else None


class RuleResolver:
    """Resolves the rule version in effect for one tenant at a given instant."""

    def __init__(self, log: RuleVersionLog, tenant_id: str):
        self.log = log
        self.tenant_id = tenant_id

    def resolve(self, rule_type: str, as_of: datetime) -> Optional[IncentiveRuleVersion]:
        """
        Return the version with the latest effective_from <= as_of, ties
        broken by the latest version id. None when no version applies,
        never a default rule.
        """
        candidates = [
            v for v in self.log.versions(self.tenant_id, rule_type)
            if v.effective_from <= as_of
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda v: (v.effective_from, v.version_id))

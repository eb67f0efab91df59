"""
Config Linter - reports suspicious parts of a user-authored form configuration.

The rule engine treats all of these as silent no-ops; the linter only makes
them visible to the editor (CLI ``check``, API ``/lint``). It never raises.

Checks:
- Duplicate field ids (ERROR)
- Rules whose source/target field does not exist
- populateOptions rules without apiConfig
- paramMapping entries pointing at unknown fields
- Unknown actions/events
- sourceFieldType guards that can never match the current source type
- Rules targeting their own source field (may oscillate when re-triggered)
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from form_builder.schemas.form import FormConfig, RuleAction, RuleEvent

logger = logging.getLogger(__name__)

KNOWN_ACTIONS = {a.value for a in RuleAction}
KNOWN_EVENTS = {e.value for e in RuleEvent}


class IssueType(str, Enum):
    """Types of configuration issues."""
    DUPLICATE_FIELD_ID = "DUPLICATE_FIELD_ID"
    DANGLING_SOURCE = "DANGLING_SOURCE"
    DANGLING_TARGET = "DANGLING_TARGET"
    MISSING_API_CONFIG = "MISSING_API_CONFIG"
    UNMAPPED_PARAM = "UNMAPPED_PARAM"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"
    TYPE_GUARD_MISMATCH = "TYPE_GUARD_MISMATCH"
    SELF_REFERENCE = "SELF_REFERENCE"


class Severity(str, Enum):
    """Issue severity levels."""
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass
class LintIssue:
    """A single configuration issue."""
    type: IssueType
    severity: Severity
    message: str
    rule_index: Optional[int] = None
    field_id: Optional[str] = None


@dataclass
class LintReport:
    """All issues found in a configuration."""
    issues: List[LintIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def summary(self) -> Dict[str, int]:
        counts = Counter(issue.severity.value for issue in self.issues)
        return {"total": len(self.issues), "errors": counts["ERROR"], "warnings": counts["WARNING"]}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": self.summary(),
            "issues": [
                {**asdict(issue), "type": issue.type.value, "severity": issue.severity.value}
                for issue in self.issues
            ],
        }


def lint_config(config: FormConfig) -> LintReport:
    """Check a configuration for issues the engine would silently ignore."""
    report = LintReport()
    issues = report.issues

    id_counts = Counter(f.id for f in config.fields)
    for field_id, count in id_counts.items():
        if count > 1:
            issues.append(LintIssue(
                IssueType.DUPLICATE_FIELD_ID, Severity.ERROR,
                f"Field id '{field_id}' is used by {count} fields",
                field_id=field_id,
            ))

    for index, rule in enumerate(config.rules):
        source = config.get_field(rule.source_field_id)
        target = config.get_field(rule.target_field_id)

        if source is None:
            issues.append(LintIssue(
                IssueType.DANGLING_SOURCE, Severity.WARNING,
                f"Rule {index}: source field '{rule.source_field_id}' does not exist",
                rule_index=index, field_id=rule.source_field_id,
            ))
        elif rule.source_field_type and source.type != rule.source_field_type:
            issues.append(LintIssue(
                IssueType.TYPE_GUARD_MISMATCH, Severity.WARNING,
                f"Rule {index}: guard type '{rule.source_field_type}' never matches "
                f"'{source.id}' (type '{source.type}')",
                rule_index=index, field_id=source.id,
            ))

        if target is None:
            issues.append(LintIssue(
                IssueType.DANGLING_TARGET, Severity.WARNING,
                f"Rule {index}: target field '{rule.target_field_id}' does not exist",
                rule_index=index, field_id=rule.target_field_id,
            ))

        if rule.event not in KNOWN_EVENTS:
            issues.append(LintIssue(
                IssueType.UNKNOWN_EVENT, Severity.WARNING,
                f"Rule {index}: unknown event '{rule.event}'",
                rule_index=index,
            ))

        if rule.action not in KNOWN_ACTIONS:
            issues.append(LintIssue(
                IssueType.UNKNOWN_ACTION, Severity.WARNING,
                f"Rule {index}: unknown action '{rule.action}'",
                rule_index=index,
            ))
        elif rule.action == RuleAction.POPULATE_OPTIONS:
            if rule.api_config is None:
                issues.append(LintIssue(
                    IssueType.MISSING_API_CONFIG, Severity.WARNING,
                    f"Rule {index}: populateOptions without apiConfig",
                    rule_index=index,
                ))
            else:
                for local_id in (rule.api_config.param_mapping or {}):
                    if config.get_field(local_id) is None:
                        issues.append(LintIssue(
                            IssueType.UNMAPPED_PARAM, Severity.WARNING,
                            f"Rule {index}: paramMapping references unknown field '{local_id}'",
                            rule_index=index, field_id=local_id,
                        ))

        if rule.source_field_id == rule.target_field_id:
            issues.append(LintIssue(
                IssueType.SELF_REFERENCE, Severity.WARNING,
                f"Rule {index}: '{rule.source_field_id}' targets itself",
                rule_index=index, field_id=rule.source_field_id,
            ))

    if issues:
        logger.debug("Config lint found %d issues", len(issues))
    return report

"""
Rule evaluation engine.

Responsibility: apply the rules triggered by one field change to the form
state, in a single synchronous pass.

Callers depend on the IRuleEvaluator abstraction; the store accepts any
implementation so the pass can be swapped or instrumented without touching
the store or the outer surfaces.

Rule pass:
1. The changed value is written into a copy of the state.
2. Rules run in stored order; later rules see earlier rules' writes.
3. populateOptions rules only emit FetchRequests; the caller resolves them
   asynchronously.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from form_builder.schemas.form import (
    EvaluationResult,
    FetchRequest,
    FormConfig,
    FormRule,
    FormState,
    RuleAction,
    RuleEvent,
)

logger = logging.getLogger(__name__)


class IRuleEvaluator(ABC):
    """
    Abstract interface for rule evaluation engines.

    Stateless: accepts (config + state + change) and returns a new state.
    The input state is never mutated.
    """

    @abstractmethod
    def evaluate(
        self,
        config: FormConfig,
        state: FormState,
        changed_field_id: str,
        new_value: Any,
    ) -> EvaluationResult:
        """
        Apply every eligible rule for a field change.

        Args:
            config: Form configuration (fields + ordered rules)
            state: Current runtime state
            changed_field_id: Id of the field the user changed
            new_value: The field's new value

        Returns:
            EvaluationResult with the new state and pending option fetches
        """
        pass


class RuleEvaluator(IRuleEvaluator):
    """Default rule engine implementing show/hide/enable/disable/setValue/toggle/populateOptions."""

    def evaluate(
        self,
        config: FormConfig,
        state: FormState,
        changed_field_id: str,
        new_value: Any,
    ) -> EvaluationResult:
        next_state = state.model_copy(deep=True)
        next_state.values[changed_field_id] = new_value

        pending: List[FetchRequest] = []
        fired: List[int] = []

        for index, rule in enumerate(config.rules):
            if not self.is_eligible(config, rule, changed_field_id):
                continue

            if rule.action == RuleAction.POPULATE_OPTIONS:
                request = self._build_fetch_request(rule, next_state, new_value)
                if request is None:
                    logger.debug("Rule %d: populateOptions without apiConfig, skipped", index)
                    continue
                pending.append(request)
                fired.append(index)
                continue

            if self._apply_action(rule, next_state):
                fired.append(index)
                logger.debug(
                    "Rule %d fired: %s -> %s %s",
                    index, rule.source_field_id, rule.action, rule.target_field_id,
                )
            else:
                logger.debug("Rule %d: unknown action %r ignored", index, rule.action)

        return EvaluationResult(state=next_state, pending_fetches=pending, fired_rules=fired)

    @staticmethod
    def is_eligible(config: FormConfig, rule: FormRule, changed_field_id: str) -> bool:
        """
        Check whether a rule is triggered by a change of ``changed_field_id``.

        A rule with a ``source_field_type`` guard only fires when the source
        field exists and currently has that declared type.
        """
        if rule.source_field_id != changed_field_id or rule.event != RuleEvent.CHANGE:
            return False

        if rule.source_field_type:
            source = config.get_field(changed_field_id)
            if source is None or source.type != rule.source_field_type:
                return False

        return True

    @staticmethod
    def _build_fetch_request(rule: FormRule, state: FormState, new_value: Any) -> Optional[FetchRequest]:
        if rule.api_config is None:
            return None

        params: Dict[str, Any] = {}
        for local_field_id, remote_param in (rule.api_config.param_mapping or {}).items():
            value = state.values.get(local_field_id)
            params[remote_param] = new_value if value is None else value

        return FetchRequest(
            target_field_id=rule.target_field_id,
            api_config=rule.api_config,
            params=params,
        )

    @staticmethod
    def _apply_action(rule: FormRule, state: FormState) -> bool:
        """Apply a synchronous action in place. Returns False for unknown actions."""
        target = rule.target_field_id
        action = rule.action

        if action == RuleAction.SHOW:
            state.visible_fields.add(target)
        elif action == RuleAction.HIDE:
            state.visible_fields.discard(target)
        elif action == RuleAction.ENABLE:
            state.disabled_fields.discard(target)
        elif action == RuleAction.DISABLE:
            state.disabled_fields.add(target)
        elif action == RuleAction.SET_VALUE:
            state.values[target] = rule.impact
        elif action == RuleAction.TOGGLE:
            state.values[target] = not state.values.get(target)
        else:
            return False
        return True


_default_evaluator = RuleEvaluator()


def evaluate(
    config: FormConfig,
    state: FormState,
    changed_field_id: str,
    new_value: Any,
) -> EvaluationResult:
    """Run one rule pass with the default RuleEvaluator."""
    return _default_evaluator.evaluate(config, state, changed_field_id, new_value)

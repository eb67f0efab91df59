"""
Runtime components for rule-driven dynamic forms.

1. Rule engine - evaluator (synchronous rule pass)
2. Option extraction - option_extractor (remote payload -> options)
3. Form state store - store (authoritative state, async option merges)
4. Config linter - config_linter (reports what the engine silently ignores)
"""

from form_builder.runtime.config_linter import LintReport, lint_config
from form_builder.runtime.evaluator import IRuleEvaluator, RuleEvaluator, evaluate
from form_builder.runtime.option_extractor import extract_options, get_nested_value
from form_builder.runtime.store import FormStateStore

__all__ = [
    "IRuleEvaluator",
    "RuleEvaluator",
    "evaluate",
    "extract_options",
    "get_nested_value",
    "FormStateStore",
    "LintReport",
    "lint_config",
]

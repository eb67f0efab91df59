"""
Form Builder - rule-driven dynamic forms.

This package provides the rule engine that reacts to field changes
(visibility, enablement, values, remotely populated options), together with
the form state store, persistence, a CLI and an HTTP API.
"""

__version__ = "0.1.0"

from form_builder.runtime import FormStateStore, RuleEvaluator, evaluate, extract_options

__all__ = [
    "FormStateStore",
    "RuleEvaluator",
    "evaluate",
    "extract_options",
]

"""Pydantic schemas for form configuration, runtime state and storage."""

from form_builder.schemas.form import (
    ApiConfig,
    EvaluationResult,
    FetchRequest,
    FieldOption,
    FieldType,
    FormConfig,
    FormField,
    FormRule,
    FormState,
    RuleAction,
    RuleEvent,
    StorageRecord,
)

__all__ = [
    "ApiConfig",
    "EvaluationResult",
    "FetchRequest",
    "FieldOption",
    "FieldType",
    "FormConfig",
    "FormField",
    "FormRule",
    "FormState",
    "RuleAction",
    "RuleEvent",
    "StorageRecord",
]

"""Pydantic schemas for form configuration and runtime form state.

Python attributes are snake_case. JSON (persisted records, API payloads)
uses camelCase aliases such as ``sourceFieldId`` and ``apiConfig``; both
spellings are accepted on input.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FieldType(str, Enum):
    """Field types known to the editor. Other strings are accepted as-is."""

    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"


class RuleEvent(str, Enum):
    """Events a rule can react to."""

    CHANGE = "change"


class RuleAction(str, Enum):
    """Actions the rule engine knows how to apply."""

    SHOW = "show"
    HIDE = "hide"
    ENABLE = "enable"
    DISABLE = "disable"
    SET_VALUE = "setValue"
    TOGGLE = "toggle"
    POPULATE_OPTIONS = "populateOptions"


class _CamelModel(BaseModel):
    """Base model serializing to camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        """Dump with camelCase aliases, JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)


class FieldOption(_CamelModel):
    """A selectable choice on a field."""

    label: str
    value: str


class FormField(_CamelModel):
    """A single input slot in the form."""

    id: str = Field(..., min_length=1, description="Unique field identifier")
    label: str = Field(default="", description="Human-readable label")
    type: str = Field(default=FieldType.TEXT.value, description="Field type (text, select, ...)")
    default_value: Any = Field(default=None, description="Initial value")
    visible: bool = Field(default=True, description="Initially visible")
    options: List[FieldOption] = Field(default_factory=list)


class ApiConfig(_CamelModel):
    """Remote endpoint used by a populateOptions rule."""

    url: str
    method: str = "GET"
    param_mapping: Optional[Dict[str, str]] = Field(
        default=None,
        description="Local field id -> remote parameter name",
    )
    body: Any = Field(default=None, description="JSON body, sent for non-GET methods only")
    response_path: Optional[str] = Field(
        default=None, description="Dot path to the option list in the response"
    )
    label_key: Optional[str] = None
    value_key: Optional[str] = None


class FormRule(_CamelModel):
    """Declarative reaction binding a source field's change to an effect on a target.

    ``event`` and ``action`` are plain strings so that rules authored against
    a newer editor still load; unknown values are ignored by the engine.
    """

    source_field_id: str
    source_field_type: Optional[str] = Field(
        default=None, description="Only fire when the source field has this type"
    )
    event: str = RuleEvent.CHANGE.value
    action: str
    target_field_id: str
    impact: Any = Field(default=None, description="Value written by setValue")
    api_config: Optional[ApiConfig] = None

    def references(self, field_id: str) -> bool:
        """True if this rule reads from or writes to ``field_id``."""
        return self.source_field_id == field_id or self.target_field_id == field_id


class FormConfig(_CamelModel):
    """Persisted, versionless form configuration."""

    fields: List[FormField] = Field(default_factory=list)
    rules: List[FormRule] = Field(default_factory=list)

    def get_field(self, field_id: str) -> Optional[FormField]:
        """Get a field by id."""
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def field_ids(self) -> List[str]:
        return [field.id for field in self.fields]


class FormState(_CamelModel):
    """Runtime form state.

    ``field_options`` holds options fetched by populateOptions rules. The
    synchronous rule pass never writes it.
    """

    values: Dict[str, Any] = Field(default_factory=dict)
    visible_fields: Set[str] = Field(default_factory=set)
    disabled_fields: Set[str] = Field(default_factory=set)
    field_options: Dict[str, List[FieldOption]] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Dump with sets sorted so output is stable."""
        data = super().to_json_dict()
        data["visibleFields"] = sorted(self.visible_fields)
        data["disabledFields"] = sorted(self.disabled_fields)
        return data


class FetchRequest(_CamelModel):
    """Remote option fetch emitted by a populateOptions rule."""

    target_field_id: str
    api_config: ApiConfig
    params: Dict[str, Any] = Field(default_factory=dict)
    request_id: int = 0
    generation: int = Field(
        default=0, description="Store config generation the request was issued under"
    )


class EvaluationResult(_CamelModel):
    """Outcome of one rule pass."""

    state: FormState
    pending_fetches: List[FetchRequest] = Field(default_factory=list)
    fired_rules: List[int] = Field(
        default_factory=list, description="Indices of rules that fired, in order"
    )


class StorageRecord(_CamelModel):
    """Persisted configuration record.

    ``form_state`` holds the field values. Visibility, disabled fields and
    fetched options are saved beside it so runtime effects survive a reload.
    """

    config: FormConfig = Field(default_factory=FormConfig)
    form_state: Dict[str, Any] = Field(default_factory=dict)
    visible_fields: Optional[List[str]] = Field(
        default=None, description="Visible field ids; None means derive from the config"
    )
    disabled_fields: List[str] = Field(default_factory=list)
    field_options: Dict[str, List[FieldOption]] = Field(default_factory=dict)
    timestamp: int = Field(default=0, description="Epoch milliseconds of last save")

"""Form router: field/rule editing and change events over HTTP."""

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from form_builder.api.dependencies import get_store
from form_builder.runtime.config_linter import lint_config
from form_builder.schemas.form import FormField, FormRule

router = APIRouter(prefix="/api/form", tags=["form"])


# ── Request/Response models ─────────────────────────────────────────


class ChangeRequest(BaseModel):
    """A field change event. Accepts fieldId or field_id."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_id: str
    value: Any = None


class ChangeResponse(BaseModel):
    """Result of the synchronous rule pass.

    Option fetches continue in the background; poll GET /api/form for
    their results.
    """

    fired_rules: List[int]
    pending_fetches: int
    state: Dict[str, Any]


# ── Endpoints ───────────────────────────────────────────────────────


@router.get("")
def get_form() -> Dict[str, Any]:
    """Get the configuration and the current runtime state."""
    store = get_store()
    return {
        "config": store.config.to_json_dict(),
        "state": store.state.to_json_dict(),
    }


@router.put("/fields")
def upsert_field(field: FormField) -> Dict[str, Any]:
    """Add a field, or replace the field with the same id."""
    replaced = get_store().upsert_field(field)
    return {"field": field.to_json_dict(), "replaced": replaced}


@router.delete("/fields/{field_id}")
def delete_field(field_id: str) -> Dict[str, Any]:
    """Delete a field and every rule referencing it."""
    store = get_store()
    if store.config.get_field(field_id) is None:
        raise HTTPException(status_code=404, detail=f"Field not found: {field_id}")
    removed = store.delete_field(field_id)
    return {"deleted": field_id, "rules_removed": removed}


@router.post("/rules")
def add_rule(rule: FormRule) -> Dict[str, Any]:
    """Append a rule."""
    index = get_store().upsert_rule(rule)
    return {"index": index, "rule": rule.to_json_dict()}


@router.put("/rules/{index}")
def replace_rule(index: int, rule: FormRule) -> Dict[str, Any]:
    """Replace the rule at an index."""
    try:
        get_store().upsert_rule(rule, index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"index": index, "rule": rule.to_json_dict()}


@router.delete("/rules/{index}")
def delete_rule(index: int) -> Dict[str, Any]:
    """Delete the rule at an index."""
    try:
        removed = get_store().delete_rule(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": index, "rule": removed.to_json_dict()}


@router.post("/change", response_model=ChangeResponse)
async def change(request: ChangeRequest) -> ChangeResponse:
    """Apply a field change; option fetches are scheduled in the background."""
    store = get_store()
    result = await store.dispatch(request.field_id, request.value)
    return ChangeResponse(
        fired_rules=result.fired_rules,
        pending_fetches=len(result.pending_fetches),
        state=result.state.to_json_dict(),
    )


@router.post("/reset")
def reset() -> Dict[str, Any]:
    """Clear configuration, state and saved data."""
    get_store().reset()
    return {"reset": True}


@router.get("/lint")
def lint() -> Dict[str, Any]:
    """Report dangling references and other rule problems."""
    return lint_config(get_store().config).to_dict()

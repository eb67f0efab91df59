"""Form state store.

Owns the authoritative ``(config, state)`` pair and serializes change
events through the rule engine. Two channels:

- Synchronous: each change event runs one rule pass under a lock and
  replaces the state wholesale (copy-on-write).
- Asynchronous: populateOptions fetches run as asyncio tasks and, when they
  resolve, replace only the ``field_options`` entry of their own target.

Editor operations (fields, rules, reset) persist the configuration through
FormStorage and rebuild the runtime state from it.
"""

import asyncio
import functools
import itertools
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from form_builder.runtime.evaluator import IRuleEvaluator, RuleEvaluator
from form_builder.runtime.option_extractor import extract_options
from form_builder.schemas.form import (
    EvaluationResult,
    FetchRequest,
    FieldOption,
    FormConfig,
    FormField,
    FormRule,
    FormState,
)
from form_builder.services.remote_fetcher import DEFAULT_TIMEOUT_SECONDS, fetch_json
from form_builder.storage.form_storage import FormStorage

logger = logging.getLogger(__name__)

# (url, method, query_params, body) -> parsed JSON or None
Fetcher = Callable[[str, str, Optional[Dict[str, Any]], Any], Awaitable[Optional[Any]]]


class FormStateStore:
    """Holds the form configuration and runtime state.

    Args:
        config: Initial configuration (empty when omitted)
        storage: Optional persistence; every config edit and change event saves
        evaluator: Rule engine (defaults to RuleEvaluator)
        fetcher: Coroutine used for remote option requests (defaults to fetch_json)
        discard_stale_options: Ignore option responses older than the latest
            request issued for the same field
        fetch_timeout: Timeout passed to the default fetcher
    """

    def __init__(
        self,
        config: Optional[FormConfig] = None,
        *,
        storage: Optional[FormStorage] = None,
        evaluator: Optional[IRuleEvaluator] = None,
        fetcher: Optional[Fetcher] = None,
        discard_stale_options: bool = False,
        fetch_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._lock = threading.Lock()
        self._config = config or FormConfig()
        self._state = self.initial_state(self._config)
        self.storage = storage
        self.evaluator = evaluator or RuleEvaluator()
        self.fetcher = fetcher or functools.partial(fetch_json, timeout=fetch_timeout)
        self.discard_stale_options = discard_stale_options

        self._request_ids = itertools.count(1)
        self._generation = 0
        self._latest_request: Dict[str, int] = {}
        self._tasks: Set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    @property
    def config(self) -> FormConfig:
        """Current configuration. Treat as read-only."""
        return self._config

    @property
    def state(self) -> FormState:
        """Current runtime state. Treat as read-only."""
        return self._state

    @property
    def pending_count(self) -> int:
        """Number of option fetches still in flight."""
        return len(self._tasks)

    @staticmethod
    def initial_state(config: FormConfig) -> FormState:
        """Build the runtime state a freshly loaded configuration starts from."""
        return FormState(
            values={f.id: f.default_value for f in config.fields if f.default_value is not None},
            visible_fields={f.id for f in config.fields if f.visible},
        )

    def options_for(self, field_id: str) -> List[FieldOption]:
        """Fetched options for a field, falling back to its configured options."""
        if field_id in self._state.field_options:
            return list(self._state.field_options[field_id])
        field = self._config.get_field(field_id)
        return list(field.options) if field else []

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """Restore config, values and runtime state from storage.

        Returns:
            True if a non-expired record was restored.
        """
        if self.storage is None:
            return False

        record = self.storage.load()
        if record is None:
            return False

        state = self.initial_state(record.config)
        state.values.update(record.form_state)
        if record.visible_fields is not None:
            state.visible_fields = set(record.visible_fields)
        state.disabled_fields = set(record.disabled_fields)
        state.field_options = {k: list(v) for k, v in record.field_options.items()}
        with self._lock:
            self._config = record.config
            self._state = state
            self._new_generation()
        logger.info(
            "Restored form with %d fields and %d rules",
            len(record.config.fields), len(record.config.rules),
        )
        return True

    def _persist(self) -> None:
        if self.storage is not None:
            self.storage.save(self._config, self._state.values, runtime=self._state)

    def _new_generation(self) -> None:
        """Invalidate fetches issued against the previous config. Caller holds the lock."""
        self._generation += 1
        self._latest_request.clear()

    def _replace_config(self, config: FormConfig) -> None:
        """Swap in a new configuration and reset runtime state. Caller holds the lock."""
        self._config = config
        self._state = self.initial_state(config)
        self._new_generation()
        self._persist()

    # -------------------------------------------------------------------------
    # Editor operations
    # -------------------------------------------------------------------------

    def replace_config(self, config: FormConfig) -> None:
        """Replace the whole configuration (e.g. on import)."""
        with self._lock:
            self._replace_config(config.model_copy(deep=True))

    def upsert_field(self, field: FormField) -> bool:
        """Add a field, or replace the field with the same id.

        Returns:
            True if an existing field was replaced.

        Raises:
            ValueError: If the field id is empty.
        """
        if not field.id:
            raise ValueError("Field id must not be empty")

        with self._lock:
            fields = list(self._config.fields)
            replaced = False
            for i, existing in enumerate(fields):
                if existing.id == field.id:
                    fields[i] = field
                    replaced = True
                    break
            if not replaced:
                fields.append(field)
            self._replace_config(self._config.model_copy(update={"fields": fields}))
        return replaced

    def delete_field(self, field_id: str) -> int:
        """Delete a field and every rule whose source or target is that field.

        Returns:
            Number of rules removed.
        """
        with self._lock:
            fields = [f for f in self._config.fields if f.id != field_id]
            rules = [r for r in self._config.rules if not r.references(field_id)]
            removed = len(self._config.rules) - len(rules)
            self._replace_config(FormConfig(fields=fields, rules=rules))
        if removed:
            logger.info("Deleted field %s and %d dependent rules", field_id, removed)
        return removed

    def upsert_rule(self, rule: FormRule, index: Optional[int] = None) -> int:
        """Append a rule, or replace the rule at ``index``.

        Returns:
            The index the rule now occupies.

        Raises:
            IndexError: If ``index`` is out of range.
        """
        with self._lock:
            rules = list(self._config.rules)
            if index is None:
                rules.append(rule)
                position = len(rules) - 1
            else:
                if not 0 <= index < len(rules):
                    raise IndexError(f"Rule index {index} out of range (0..{len(rules) - 1})")
                rules[index] = rule
                position = index
            self._replace_config(self._config.model_copy(update={"rules": rules}))
        return position

    def delete_rule(self, index: int) -> FormRule:
        """Remove the rule at ``index``.

        Raises:
            IndexError: If ``index`` is out of range.
        """
        with self._lock:
            rules = list(self._config.rules)
            if not 0 <= index < len(rules):
                raise IndexError(f"Rule index {index} out of range (0..{len(rules) - 1})")
            removed = rules.pop(index)
            self._replace_config(self._config.model_copy(update={"rules": rules}))
        return removed

    def reset(self) -> None:
        """Clear storage, configuration and runtime state."""
        with self._lock:
            if self.storage is not None:
                self.storage.clear()
            self._config = FormConfig()
            self._state = FormState()
            self._new_generation()

    # -------------------------------------------------------------------------
    # Change events
    # -------------------------------------------------------------------------

    def handle_change(self, field_id: str, value: Any) -> EvaluationResult:
        """Run one synchronous rule pass for a field change.

        The returned pending fetches are tagged with request ids but not run;
        use dispatch() to also schedule them.
        """
        with self._lock:
            result = self.evaluator.evaluate(self._config, self._state, field_id, value)
            for request in result.pending_fetches:
                request.request_id = next(self._request_ids)
                request.generation = self._generation
                self._latest_request[request.target_field_id] = request.request_id
            self._state = result.state
            self._persist()

        logger.debug(
            "Change %s: %d rules fired, %d fetches pending",
            field_id, len(result.fired_rules), len(result.pending_fetches),
        )
        return result

    async def dispatch(self, field_id: str, value: Any) -> EvaluationResult:
        """Apply a change and schedule its option fetches as background tasks."""
        result = self.handle_change(field_id, value)
        for request in result.pending_fetches:
            task = asyncio.create_task(self.run_fetch(request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return result

    async def drain(self) -> None:
        """Wait until every in-flight option fetch has been merged."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def run_fetch(self, request: FetchRequest) -> Optional[List[FieldOption]]:
        """Fetch, extract and merge options for one request.

        Returns:
            The merged options, or None when the fetch failed or the
            response was discarded (existing options are left untouched).
        """
        api = request.api_config
        response = await self.fetcher(api.url, api.method, request.params or None, api.body)
        if response is None:
            logger.info("No options fetched for %s, keeping existing options", request.target_field_id)
            return None

        options = extract_options(response, api.response_path, api.label_key, api.value_key)
        if not self.merge_options(
            request.target_field_id, options, request.request_id, request.generation,
        ):
            return None
        return options

    def merge_options(
        self,
        field_id: str,
        options: List[FieldOption],
        request_id: Optional[int] = None,
        generation: Optional[int] = None,
    ) -> bool:
        """Replace the fetched options of a single field and persist them.

        Responses issued before the last config edit, reset or load are always
        dropped. With ``discard_stale_options``, responses older than the
        latest request for the same field are dropped too.

        Returns:
            False if the response was discarded as stale.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.info(
                    "Discarding options for %s fetched before the form was reloaded or edited",
                    field_id,
                )
                return False

            latest = self._latest_request.get(field_id, 0)
            if self.discard_stale_options and request_id is not None and request_id < latest:
                logger.info(
                    "Discarding stale options for %s (request %d, latest %d)",
                    field_id, request_id, latest,
                )
                return False

            field_options = dict(self._state.field_options)
            field_options[field_id] = list(options)
            self._state = self._state.model_copy(update={"field_options": field_options})
            self._persist()

        logger.debug("Merged %d options into %s", len(options), field_id)
        return True

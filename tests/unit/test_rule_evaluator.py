"""Tests for the rule evaluation engine."""

import pytest

from form_builder.runtime.evaluator import RuleEvaluator, evaluate
from form_builder.schemas.form import ApiConfig, FormConfig, FormField, FormRule, FormState


def _config(*rules, fields=None):
    if fields is None:
        fields = [
            FormField(id="A", type="select"),
            FormField(id="B", type="text"),
            FormField(id="C", type="checkbox"),
        ]
    return FormConfig(fields=fields, rules=list(rules))


def _rule(action, target="B", source="A", **kwargs):
    return FormRule(source_field_id=source, action=action, target_field_id=target, **kwargs)


class TestChangedValue:
    """Tests for writing the changed value itself."""

    def test_new_value_written_without_rules(self):
        """The changed value is stored even when no rule matches."""
        result = evaluate(_config(), FormState(), "A", "x")
        assert result.state.values == {"A": "x"}
        assert result.pending_fetches == []
        assert result.fired_rules == []

    def test_input_state_not_mutated(self):
        """The caller's state object is left untouched."""
        state = FormState(values={"A": "old"}, visible_fields={"B"})
        evaluate(_config(_rule("hide")), state, "A", "new")
        assert state.values == {"A": "old"}
        assert state.visible_fields == {"B"}

    def test_unknown_field_change_allowed(self):
        """Changing an undeclared field id is recorded, not rejected."""
        result = evaluate(_config(), FormState(), "ghost", 1)
        assert result.state.values["ghost"] == 1


class TestActions:
    """Tests for each synchronous action."""

    def test_show_adds_target(self):
        result = evaluate(_config(_rule("show")), FormState(), "A", "x")
        assert result.state.visible_fields == {"B"}

    def test_hide_removes_target(self):
        state = FormState(visible_fields={"B", "C"})
        result = evaluate(_config(_rule("hide")), state, "A", "x")
        assert result.state.visible_fields == {"C"}

    def test_hide_absent_target_is_noop(self):
        result = evaluate(_config(_rule("hide")), FormState(), "A", "x")
        assert result.state.visible_fields == set()

    def test_disable_then_enable(self):
        """disable adds to the disabled set; enable removes it."""
        disabled = evaluate(_config(_rule("disable")), FormState(), "A", "x").state
        assert disabled.disabled_fields == {"B"}

        enabled = evaluate(_config(_rule("enable")), disabled, "A", "y").state
        assert enabled.disabled_fields == set()

    def test_set_value_writes_impact(self):
        result = evaluate(_config(_rule("setValue", impact="filled")), FormState(), "A", "x")
        assert result.state.values["B"] == "filled"

    def test_set_value_without_impact_writes_none(self):
        result = evaluate(_config(_rule("setValue")), FormState(values={"B": "old"}), "A", "x")
        assert result.state.values["B"] is None

    def test_toggle_absent_becomes_true_then_false(self):
        """Toggling an absent value yields True; a second event yields False."""
        config = _config(_rule("toggle", target="C"))
        first = evaluate(config, FormState(), "A", "x").state
        assert first.values["C"] is True

        second = evaluate(config, first, "A", "y").state
        assert second.values["C"] is False

    def test_toggle_uses_truthiness(self):
        config = _config(_rule("toggle", target="C"))
        result = evaluate(config, FormState(values={"C": "yes"}), "A", "x")
        assert result.state.values["C"] is False

    def test_unknown_action_ignored(self):
        """Unknown actions do nothing and are not reported as fired."""
        result = evaluate(_config(_rule("explode")), FormState(), "A", "x")
        assert result.state.values == {"A": "x"}
        assert result.fired_rules == []


class TestEligibility:
    """Tests for which rules fire."""

    def test_other_source_does_not_fire(self):
        result = evaluate(_config(_rule("show", source="C")), FormState(), "A", "x")
        assert result.state.visible_fields == set()

    def test_non_change_event_does_not_fire(self):
        result = evaluate(_config(_rule("show", event="blur")), FormState(), "A", "x")
        assert result.state.visible_fields == set()

    def test_matching_type_guard_fires(self):
        result = evaluate(_config(_rule("show", source_field_type="select")), FormState(), "A", "x")
        assert result.state.visible_fields == {"B"}

    @pytest.mark.parametrize("guard", ["text", "number", "checkbox", "radio", "date"])
    def test_mismatched_type_guard_never_fires(self, guard):
        """A guard that differs from the source type blocks the rule."""
        result = evaluate(_config(_rule("show", source_field_type=guard)), FormState(), "A", "x")
        assert result.state.visible_fields == set()
        assert result.fired_rules == []

    def test_type_guard_on_missing_source_does_not_fire(self):
        config = _config(_rule("show", source="ghost", source_field_type="text"))
        result = evaluate(config, FormState(), "ghost", "x")
        assert result.state.visible_fields == set()

    def test_dangling_target_is_tolerated(self):
        """A rule targeting an undeclared field still applies to runtime state."""
        result = evaluate(_config(_rule("disable", target="nowhere")), FormState(), "A", "x")
        assert result.state.disabled_fields == {"nowhere"}

    def test_is_eligible_helper(self):
        config = _config()
        assert RuleEvaluator.is_eligible(config, _rule("show"), "A")
        assert not RuleEvaluator.is_eligible(config, _rule("show"), "B")


class TestOrdering:
    """Tests for rule order within one pass."""

    def test_later_hide_wins_over_earlier_show(self):
        config = _config(_rule("show"), _rule("hide"))
        result = evaluate(config, FormState(), "A", "x")
        assert "B" not in result.state.visible_fields
        assert result.fired_rules == [0, 1]

    def test_later_show_wins_over_earlier_hide(self):
        config = _config(_rule("hide"), _rule("show"))
        result = evaluate(config, FormState(), "A", "x")
        assert "B" in result.state.visible_fields

    def test_later_rule_sees_earlier_write(self):
        """A populateOptions param reads the value an earlier setValue wrote."""
        api = ApiConfig(url="https://x.test", param_mapping={"B": "b"})
        config = _config(
            _rule("setValue", impact="written"),
            _rule("populateOptions", target="C", api_config=api),
        )
        result = evaluate(config, FormState(), "A", "x")
        assert result.pending_fetches[0].params == {"b": "written"}

    def test_self_targeting_rule_runs(self):
        config = _config(_rule("setValue", target="A", impact="overridden"))
        result = evaluate(config, FormState(), "A", "x")
        assert result.state.values["A"] == "overridden"


class TestPopulateOptions:
    """Tests for populateOptions fetch requests."""

    def test_emits_fetch_request(self, form_config):
        result = evaluate(form_config, FormState(), "country", "fr")
        assert len(result.pending_fetches) == 1
        request = result.pending_fetches[0]
        assert request.target_field_id == "city"
        assert request.params == {"country_code": "fr"}
        assert request.api_config.url == "https://api.example.test/cities"

    def test_missing_api_config_skipped(self):
        """Without apiConfig nothing is fetched and the pass is unaffected."""
        config = _config(_rule("populateOptions", target="C"), _rule("show"))
        result = evaluate(config, FormState(), "A", "x")
        assert result.pending_fetches == []
        assert result.state.visible_fields == {"B"}
        assert result.fired_rules == [1]

    def test_param_falls_back_to_new_value(self):
        """Unmapped or empty local fields resolve to the changed value."""
        api = ApiConfig(url="https://x.test", param_mapping={"B": "b", "missing": "m"})
        config = _config(_rule("populateOptions", target="C", api_config=api))
        result = evaluate(config, FormState(values={"B": None}), "A", "x")
        assert result.pending_fetches[0].params == {"b": "x", "m": "x"}

    def test_param_keeps_falsy_present_value(self):
        api = ApiConfig(url="https://x.test", param_mapping={"B": "b"})
        config = _config(_rule("populateOptions", target="C", api_config=api))
        result = evaluate(config, FormState(values={"B": 0}), "A", "x")
        assert result.pending_fetches[0].params == {"b": 0}

    def test_no_param_mapping_gives_empty_params(self):
        api = ApiConfig(url="https://x.test")
        config = _config(_rule("populateOptions", target="C", api_config=api))
        result = evaluate(config, FormState(), "A", "x")
        assert result.pending_fetches[0].params == {}

    def test_does_not_touch_options_or_visibility(self, form_config):
        state = FormState(visible_fields={"city"})
        result = evaluate(form_config, state, "country", "fr")
        assert result.state.visible_fields == {"city"}
        assert result.state.field_options == {}


class TestDeterminism:
    """Same inputs, same outputs."""

    def test_repeated_evaluation_identical(self):
        config = _config(
            _rule("show"), _rule("disable", target="C"),
            _rule("toggle", target="C"), _rule("setValue", impact=3),
            _rule("hide", target="C"),
        )
        state = FormState(values={"C": True}, visible_fields={"C"})

        first = evaluate(config, state, "A", "x")
        second = evaluate(config, state, "A", "x")

        assert first.state == second.state
        assert first.fired_rules == second.fired_rules

"""Tests for the configuration linter."""

from form_builder.runtime.config_linter import IssueType, Severity, lint_config
from form_builder.schemas.form import ApiConfig, FormConfig, FormField, FormRule


def _types(report):
    return [issue.type for issue in report.issues]


class TestCleanConfig:
    """A well-formed configuration has no issues."""

    def test_no_issues(self, form_config):
        report = lint_config(form_config)
        assert report.ok
        assert report.summary() == {"total": 0, "errors": 0, "warnings": 0}

    def test_empty_config(self):
        assert lint_config(FormConfig()).ok


class TestFieldIssues:
    """Tests for field-level checks."""

    def test_duplicate_ids_are_errors(self):
        config = FormConfig(fields=[FormField(id="a"), FormField(id="a"), FormField(id="b")])
        report = lint_config(config)

        assert _types(report) == [IssueType.DUPLICATE_FIELD_ID]
        assert report.issues[0].severity == Severity.ERROR
        assert report.summary()["errors"] == 1


class TestRuleIssues:
    """Tests for rule-level checks."""

    def test_dangling_source_and_target(self):
        config = FormConfig(
            fields=[FormField(id="a")],
            rules=[FormRule(source_field_id="ghost", action="show", target_field_id="phantom")],
        )
        report = lint_config(config)

        assert _types(report) == [IssueType.DANGLING_SOURCE, IssueType.DANGLING_TARGET]
        assert all(issue.rule_index == 0 for issue in report.issues)
        assert all(issue.severity == Severity.WARNING for issue in report.issues)

    def test_unknown_action_and_event(self):
        config = FormConfig(
            fields=[FormField(id="a"), FormField(id="b")],
            rules=[FormRule(source_field_id="a", event="blur", action="explode", target_field_id="b")],
        )
        assert _types(lint_config(config)) == [IssueType.UNKNOWN_EVENT, IssueType.UNKNOWN_ACTION]

    def test_populate_without_api_config(self):
        config = FormConfig(
            fields=[FormField(id="a"), FormField(id="b")],
            rules=[FormRule(source_field_id="a", action="populateOptions", target_field_id="b")],
        )
        assert _types(lint_config(config)) == [IssueType.MISSING_API_CONFIG]

    def test_param_mapping_to_unknown_field(self):
        api = ApiConfig(url="https://x.test", param_mapping={"a": "p", "gone": "q"})
        config = FormConfig(
            fields=[FormField(id="a"), FormField(id="b")],
            rules=[FormRule(source_field_id="a", action="populateOptions",
                            target_field_id="b", api_config=api)],
        )
        report = lint_config(config)

        assert _types(report) == [IssueType.UNMAPPED_PARAM]
        assert report.issues[0].field_id == "gone"

    def test_type_guard_mismatch(self):
        config = FormConfig(
            fields=[FormField(id="a", type="select"), FormField(id="b")],
            rules=[FormRule(source_field_id="a", source_field_type="checkbox",
                            action="show", target_field_id="b")],
        )
        assert _types(lint_config(config)) == [IssueType.TYPE_GUARD_MISMATCH]

    def test_self_reference(self):
        config = FormConfig(
            fields=[FormField(id="a")],
            rules=[FormRule(source_field_id="a", action="toggle", target_field_id="a")],
        )
        assert _types(lint_config(config)) == [IssueType.SELF_REFERENCE]


class TestReportSerialization:
    """Tests for LintReport.to_dict."""

    def test_to_dict(self):
        config = FormConfig(
            fields=[FormField(id="a"), FormField(id="a")],
            rules=[FormRule(source_field_id="a", action="show", target_field_id="z")],
        )
        data = lint_config(config).to_dict()

        assert data["summary"] == {"total": 2, "errors": 1, "warnings": 1}
        assert data["issues"][0]["type"] == "DUPLICATE_FIELD_ID"
        assert data["issues"][1] == {
            "type": "DANGLING_TARGET",
            "severity": "WARNING",
            "message": "Rule 0: target field 'z' does not exist",
            "rule_index": 0,
            "field_id": "z",
        }

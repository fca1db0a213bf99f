"""Tests for turning raw provider text into a ReviewResult."""

import json

import pytest

from codeflow_core.errors import SchemaError
from codeflow_core.normalizer import extract_json_object, normalize, strip_fences

CATEGORIES = {"security": 90, "performance": 80, "readability": 70, "bestPractices": 60}

FULL = {
    "score": 72,
    "summary": "Mostly fine.",
    "categories": CATEGORIES,
    "issues": [
        {
            "id": "issue-1",
            "severity": "critical",
            "line": 4,
            "title": "SQL injection",
            "description": "User input goes into the query.",
            "fix": {"description": "parametrize", "before": "q + name", "after": "q, (name,)"},
        }
    ],
    "suggestions": [{"id": "suggestion-1", "title": "Rename", "description": "d", "before": "a", "after": "b"}],
    "proposedChanges": [{"id": "issue-1", "title": "SQL injection", "description": "d", "before": "q + name", "after": "q, (name,)"}],
    "actionItems": [{"id": "action-1", "priority": "high", "title": "Fix the query", "relatedIssueId": "issue-1"}],
}

BRACES_IN_STRING = (
    '{"score":80,"categories":{"security":90,"performance":80,"readability":80,"bestPractices":80},'
    '"issues":[{"id":"issue-1","severity":"warning","line":1,"title":"t","description":"uses { and } in code"}],'
    '"suggestions":[],"proposedChanges":[],"actionItems":[]}'
)


class TestStripFences:
    def test_strips_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self):
        assert strip_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_leaves_unfenced_text_alone(self):
        assert strip_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_keeps_fences_inside_values(self):
        payload = json.dumps({"after": "```python\nfoo()\n```"})
        assert strip_fences(f"```json\n{payload}\n```") == payload


class TestExtractJsonObject:
    def test_returns_none_without_brace(self):
        assert extract_json_object("no json here") is None

    def test_returns_none_when_unbalanced(self):
        assert extract_json_object('{"a": {"b": 1}') is None

    def test_skips_leading_and_trailing_prose(self):
        text = 'Here is the review: {"a": 1} Hope that helps! {"b": 2}'
        assert extract_json_object(text) == '{"a": 1}'

    def test_braces_inside_strings_do_not_count(self):
        assert extract_json_object(BRACES_IN_STRING) == BRACES_IN_STRING

    def test_escaped_quote_inside_string(self):
        text = r'{"a": "say \"}\" loudly", "b": 2} trailing'
        assert json.loads(extract_json_object(text)) == {"a": 'say "}" loudly', "b": 2}


class TestNormalize:
    def test_full_result(self):
        result = normalize(json.dumps(FULL))
        assert result.score == 72
        assert result.summary == "Mostly fine."
        assert result.categories.best_practices == 60
        assert result.issues[0].fix.after == "q, (name,)"
        assert result.suggestions[0].before == "a"
        assert result.proposed_changes[0].id == "issue-1"
        assert result.action_items[0].related_issue_id == "issue-1"

    def test_fenced_and_unfenced_are_equal(self):
        raw = json.dumps(FULL)
        assert normalize(f"```json\n{raw}\n```") == normalize(raw)
        assert normalize(f"```\n{raw}\n```") == normalize(raw)

    def test_braces_in_string_values(self):
        result = normalize(BRACES_IN_STRING)
        assert result.score == 80
        assert result.issues[0].description == "uses { and } in code"

    def test_missing_lists_become_empty(self):
        result = normalize(json.dumps({"score": 55, "summary": "s", "categories": CATEGORIES}))
        assert result.issues == []
        assert result.suggestions == []
        assert result.proposed_changes == []
        assert result.action_items == []
        assert result.score == 55
        assert result.summary == "s"
        assert result.categories.security == 90

    def test_non_list_fields_become_empty(self):
        data = {**FULL, "issues": None, "actionItems": {"id": "x"}}
        result = normalize(json.dumps(data))
        assert result.issues == []
        assert result.action_items == []
        assert len(result.suggestions) == 1

    def test_round_trips_through_to_dict(self):
        result = normalize(json.dumps(FULL))
        assert normalize(json.dumps(result.to_dict())) == result

    def test_no_json(self):
        with pytest.raises(SchemaError) as exc:
            normalize("I could not review this code.")
        assert exc.value.code == "no_json"

    def test_invalid_json(self):
        with pytest.raises(SchemaError) as exc:
            normalize('{"score": 80, categories: {}}')
        assert exc.value.code == "invalid_json"

    @pytest.mark.parametrize("score", [None, "80", True])
    def test_score_must_be_numeric(self, score):
        data = {**FULL, "score": score}
        if score is None:
            del data["score"]
        with pytest.raises(SchemaError) as exc:
            normalize(json.dumps(data))
        assert exc.value.code == "missing_required_fields"

    def test_categories_must_be_object(self):
        with pytest.raises(SchemaError) as exc:
            normalize(json.dumps({**FULL, "categories": [1, 2]}))
        assert exc.value.code == "missing_required_fields"

    def test_scores_are_clamped_integers(self):
        data = {**FULL, "score": 104.6, "categories": {**CATEGORIES, "security": -3, "readability": 70.4}}
        result = normalize(json.dumps(data))
        assert result.score == 100
        assert result.categories.security == 0
        assert result.categories.readability == 70

    def test_missing_category_takes_overall_score(self):
        data = {**FULL, "categories": {"security": 10}}
        result = normalize(json.dumps(data))
        assert result.categories.security == 10
        assert result.categories.performance == 72

    def test_unknown_severity_and_priority_are_coerced(self):
        data = {
            **FULL,
            "issues": [{"id": "i", "severity": "blocker", "title": "t", "description": "d"}],
            "actionItems": [{"id": "a", "priority": "urgent", "title": "t"}],
        }
        result = normalize(json.dumps(data))
        assert result.issues[0].severity == "warning"
        assert result.action_items[0].priority == "low"

    def test_entries_without_id_get_positional_ids(self):
        data = {**FULL, "suggestions": [{"title": "a"}, {"title": "b"}]}
        result = normalize(json.dumps(data))
        assert [s.id for s in result.suggestions] == ["suggestion-1", "suggestion-2"]

    def test_non_object_entries_are_dropped(self):
        data = {**FULL, "issues": ["oops", FULL["issues"][0]]}
        result = normalize(json.dumps(data))
        assert [i.id for i in result.issues] == ["issue-1"]

    def test_bundled_change_is_flattened(self):
        bundled = {
            "id": "change-1",
            "title": "Fix all",
            "description": "several fixes",
            "fixedCode": "whole file",
            "fixes": [{"before": "a", "after": "b"}, {"before": "c", "after": "d"}],
        }
        result = normalize(json.dumps({**FULL, "proposedChanges": [bundled]}))
        assert [c.id for c in result.proposed_changes] == ["change-1-1", "change-1-2"]
        assert [(c.before, c.after) for c in result.proposed_changes] == [("a", "b"), ("c", "d")]
        assert all(c.fixed_code is None for c in result.proposed_changes)

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_score_is_schema_error(self, token):
        raw = '{"score": %s, "categories": {"security": 50}}' % token
        with pytest.raises(SchemaError) as exc:
            normalize(raw)
        assert exc.value.code == "missing_required_fields"

    @pytest.mark.parametrize("token", ["NaN", "Infinity"])
    def test_non_finite_category_takes_overall_score(self, token):
        raw = '{"score": 64, "categories": {"security": %s, "performance": 80}}' % token
        result = normalize(raw)
        assert result.categories.security == 64
        assert result.categories.performance == 80

    def test_positional_ids_skip_explicit_ones(self):
        data = {**FULL, "suggestions": [{"id": "suggestion-2", "title": "a"}, {"title": "b"}]}
        result = normalize(json.dumps(data))
        ids = [s.id for s in result.suggestions]
        assert ids[0] == "suggestion-2"
        assert len(set(ids)) == 2

    def test_repeated_explicit_id_is_renamed(self):
        data = {**FULL, "issues": [FULL["issues"][0], {**FULL["issues"][0], "title": "again"}]}
        result = normalize(json.dumps(data))
        assert result.issues[0].id == "issue-1"
        assert result.issues[1].id == "issue-2"

    def test_flattened_ids_do_not_clash(self):
        changes = [
            {"id": "change-1-1", "title": "t", "description": "d", "before": "x", "after": "y"},
            {"id": "change-1", "title": "t", "description": "d", "fixes": [{"before": "a", "after": "b"}]},
        ]
        result = normalize(json.dumps({**FULL, "proposedChanges": changes}))
        ids = [c.id for c in result.proposed_changes]
        assert ids[0] == "change-1-1"
        assert len(set(ids)) == len(ids) == 2

    def test_issue_fix_without_after_keeps_none(self):
        data = {**FULL, "issues": [{**FULL["issues"][0], "fix": {"before": "x == 1"}}]}
        fix = normalize(json.dumps(data)).issues[0].fix
        assert fix.before == "x == 1"
        assert fix.after is None

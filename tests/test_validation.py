"""Tests for the validation rule catalog and scoring."""

import pytest

from flow_advisor.analysis.validation import grade_for, validate
from flow_advisor.errors import InvalidFlow, RuleEvaluationError
from flow_advisor.rules.models import Rule, Severity
from flow_advisor.rules.validation_rules import VALIDATION_RULES


LOOP_OVER_ITEMS = [
    {"key": "sharepoint-item-created", "type": "trigger"},
    {"key": "sharepoint-get-items"},
    {"key": "control-apply-each", "config": {"concurrency": 1}},
    {"key": "sharepoint-update-item"},
    {"key": "control-apply-each-end"},
]


def test_loop_directly_over_get_items(make_flow):
    """Test an unfiltered Get items looped sequentially without a Select."""
    result = validate(make_flow(*LOOP_OVER_ITEMS))

    assert result.critical == []
    assert [r.id for r in result.warnings] == ["unfiltered-get-items", "no-concurrency", "missing-select"]
    assert result.suggestions == []
    assert result.score == 70
    assert result.grade.letter == "C"
    assert result.grade.label == "Fair"


def test_select_between_get_items_and_loop(make_flow):
    """Test that a Select before the loop clears the missing-select warning."""
    nodes = LOOP_OVER_ITEMS[:2] + [{"key": "data-select"}] + LOOP_OVER_ITEMS[2:]
    result = validate(make_flow(*nodes))

    assert [r.id for r in result.warnings] == ["unfiltered-get-items", "no-concurrency"]
    assert result.score == 80
    assert result.grade.letter == "B"
    assert result.grade.colour == "#40e0d0"


def test_clean_flow_scores_100(make_flow):
    """Test a small, well-formed flow triggers nothing."""
    flow = make_flow(
        "recurrence",
        {"key": "sharepoint-get-items", "config": {"filterQuery": "Status eq 'Open'"}},
        "data-select",
        {"key": "control-apply-each", "config": {"concurrency": 20}},
        "sharepoint-update-item",
        "control-apply-each-end",
    )
    result = validate(flow)

    assert result.rule_ids == ()
    assert result.score == 100
    assert result.grade.letter == "A"


def test_empty_flow_has_no_trigger(make_flow):
    """Test that a flow with no nodes is valid input but lacks a trigger."""
    result = validate(make_flow())
    assert [r.id for r in result.critical] == ["no-trigger"]
    assert result.score == 75


def test_missing_nodes_raises_before_rules_run():
    """Test that a mapping without nodes is rejected."""
    with pytest.raises(InvalidFlow, match="nodes"):
        validate({"name": "broken"})


def test_infinite_loop_needs_prevention_flag(make_flow):
    """Test the modified-trigger / update-item loop and its prevention flag."""
    nodes = ["sharepoint-item-modified", "sharepoint-update-item"]

    assert "infinite-loop" in validate(make_flow(*nodes)).rule_ids
    assert "infinite-loop" not in validate(make_flow(*nodes, hasLoopPrevention=True)).rule_ids


def test_unlicensed_premium(make_flow):
    """Test premium nodes on a Standard licence."""
    nodes = ["recurrence", {"key": "sql-get-rows", "data": {"licence": "Premium"}}]

    assert "unlicensed-premium" in validate(make_flow(*nodes, config={"licence": "Standard"})).rule_ids
    assert "unlicensed-premium" not in validate(make_flow(*nodes, config={"licence": "Premium"})).rule_ids
    assert "unlicensed-premium" not in validate(make_flow(*nodes)).rule_ids


def test_score_is_clamped_at_zero(make_flow):
    """Test that penalties beyond 100 never push the score negative."""
    nodes = [
        {"key": "sharepoint-item-modified", "type": "action"},
        "sharepoint-update-item",
        {"key": "sql-get-rows", "data": {"licence": "Premium"}},
    ] + ["sharepoint-get-items"] * 8
    result = validate(make_flow(*nodes, config={"licence": "Standard"}))

    assert [r.id for r in result.critical] == [
        "no-trigger", "infinite-loop", "missing-error-handling", "unlicensed-premium",
    ]
    assert result.score == 0
    assert result.grade.letter == "F"
    assert result.grade.label == "Critical Issues"


def test_error_handling_only_for_large_flows(make_flow):
    """Test that flows of 10 nodes or fewer do not need a scope."""
    small = make_flow("recurrence", *["data-compose"] * 9)
    large = make_flow("recurrence", *["data-compose"] * 10)
    scoped = make_flow("recurrence", "control-scope", *["data-compose"] * 10)

    assert "missing-error-handling" not in validate(small).rule_ids
    assert "missing-error-handling" in validate(large).rule_ids
    assert "missing-error-handling" not in validate(scoped).rule_ids


def test_nested_loops(make_flow):
    """Test that a loop inside a loop is flagged."""
    flow = make_flow(
        "recurrence",
        {"key": "control-apply-each", "config": {"concurrency": 10}},
        {"key": "control-apply-each", "config": {"concurrency": 10}},
        "sharepoint-update-item",
        "control-apply-each-end",
        "control-apply-each-end",
    )
    assert validate(flow).rule_ids == ("nested-loops",)


def test_frequent_polling(make_flow):
    """Test the minute-interval recurrence check."""
    def polling(config):
        return "frequent-polling" in validate(make_flow({"key": "recurrence", "config": config})).rule_ids

    assert polling({"frequency": "Minute", "interval": 1})
    assert not polling({"frequency": "Minute", "interval": 5})
    assert not polling({"frequency": "Hour", "interval": 1})
    assert not polling({"frequency": "Minute"})


def test_suggestions(make_flow):
    """Test the three suggestion-tier rules."""
    flow = make_flow(
        "recurrence",
        {"key": "sharepoint-get-items", "config": {"filterQuery": "a"}, "hasLookups": True},
        {"key": "sharepoint-get-items", "config": {"filterQuery": "b"}},
        "sql-get-rows",
        *["sharepoint-create-item"] * 4,
        "control-scope",
    )
    result = validate(flow)

    assert [r.id for r in result.suggestions] == ["use-batch", "cache-static-data", "use-odata-expand"]
    assert result.score == 85


def test_rule_messages_and_fixes():
    """Test that rule records carry their user-facing text."""
    rule = VALIDATION_RULES.get("unfiltered-get-items")
    assert rule.message == "Get Items without filter will retrieve all items (poor performance)"
    assert rule.fix == "Add Filter Query to retrieve only needed items"
    assert rule.impact == "90% performance improvement possible"


def test_failing_predicate_aborts_with_rule_id(make_flow):
    """Test that a predicate error surfaces as RuleEvaluationError."""
    def broken(flow):
        return flow.nodes[99].key == "never"

    bad_rule = Rule(id="broken-rule", severity=Severity.WARNING, predicate=broken, message="m", fix="f")

    with pytest.raises(RuleEvaluationError, match="broken-rule") as exc_info:
        validate(make_flow("recurrence"), rules=[bad_rule])
    assert exc_info.value.rule_id == "broken-rule"
    assert isinstance(exc_info.value.__cause__, IndexError)


def test_validate_accepts_mapping():
    """Test validating a raw mapping."""
    result = validate({"name": "raw", "nodes": [{"key": "recurrence"}]})
    assert result.score == 100


def test_grade_boundaries():
    """Test the score-to-grade table."""
    assert grade_for(100).letter == "A"
    assert grade_for(90).letter == "A"
    assert grade_for(89).letter == "B"
    assert grade_for(70).letter == "C"
    assert grade_for(60).letter == "D"
    assert grade_for(59).letter == "F"


def test_to_dict_omits_predicates(make_flow):
    """Test that the plain-data view carries ids and text, not callables."""
    data = validate(make_flow(*LOOP_OVER_ITEMS)).to_dict()
    assert data["score"] == 70
    assert data["grade"] == {"letter": "C", "label": "Fair", "colour": "#ff8c00"}
    assert data["warnings"][0]["id"] == "unfiltered-get-items"
    assert "predicate" not in data["warnings"][0]


def test_validate_is_idempotent(make_flow):
    """Test that validating the same flow twice gives identical results."""
    flow = make_flow(*LOOP_OVER_ITEMS)
    assert validate(flow) == validate(flow)

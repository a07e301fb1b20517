"""Tests for pattern recognition and optimisation suggestions."""

from flow_advisor.analysis.patterns import (
    Pattern,
    get_optimisation_for_pattern,
    get_suggestions,
    recognise_patterns,
)


def test_sequential_same_source_is_one_pattern_per_run(make_flow):
    """Test that a run of SharePoint actions yields a single pattern."""
    flow = make_flow("recurrence", "sharepoint-get-items", "sharepoint-update-item", "sharepoint-create-item")
    patterns = recognise_patterns(flow)

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.type == "sequential-same-source"
    assert pattern.data_source == "SharePoint"
    assert pattern.count == 3
    assert pattern.node_ids == ("node-2", "node-3", "node-4")

    (suggestion,) = get_suggestions(flow)
    assert suggestion.title == "Batch Operations Possible"
    assert suggestion.description == "Multiple sequential operations on SharePoint"
    assert suggestion.impact == 8
    assert suggestion.time_reduction == 60


def test_nodes_without_category_never_match(make_flow):
    """Test that uncategorised nodes are not treated as one data source."""
    assert recognise_patterns(make_flow("custom-a", "custom-b")) == []


def test_condition_chain_and_sorting(make_flow):
    """Test a chain of four conditions and impact ordering of suggestions."""
    flow = make_flow("recurrence", *["control-condition"] * 4, "outlook-send-email")
    patterns = recognise_patterns(flow)

    conditions = [p for p in patterns if p.type == "multiple-conditions"]
    assert len(conditions) == 1
    assert conditions[0].count == 4

    suggestions = get_suggestions(flow)
    assert [s.pattern_type for s in suggestions] == [
        "sequential-same-source", "repeated-action", "multiple-conditions",
    ]
    assert [s.impact for s in suggestions] == [8, 7, 5]
    assert suggestions[2].description == "4 conditions in sequence"


def test_two_conditions_are_not_a_chain(make_flow):
    """Test that two consecutive conditions are below the threshold."""
    flow = make_flow("recurrence", "control-condition", "control-condition", "outlook-send-email")
    assert not [p for p in recognise_patterns(flow) if p.type == "multiple-conditions"]


def test_repeated_action_counts_exactly(make_flow):
    """Test repeated keys with the exact occurrence count."""
    flow = make_flow(
        "recurrence",
        "teams-post-message", "outlook-send-email",
        "teams-post-message", "outlook-send-email",
        "teams-post-message",
    )
    patterns = recognise_patterns(flow)

    assert len(patterns) == 1
    assert patterns[0].type == "repeated-action"
    assert patterns[0].action == "teams-post-message"
    assert patterns[0].count == 3

    (suggestion,) = get_suggestions(flow)
    assert suggestion.description == "teams-post-message used 3 times"
    assert suggestion.count == 3


def test_unknown_pattern_gets_generic_suggestion():
    """Test the fallback suggestion."""
    suggestion = get_optimisation_for_pattern(Pattern(type="mystery"))

    assert suggestion.title == "Optimisation Opportunity"
    assert suggestion.impact == 3
    assert suggestion.difficulty == "easy"
    assert suggestion.time_reduction == 10


def test_equal_impact_keeps_detection_order(make_flow):
    """Test that sorting is stable for suggestions with the same impact."""
    flow = make_flow(
        "recurrence",
        "sharepoint-get-items", "sharepoint-update-item",
        "data-compose",
        "teams-post-message", "teams-post-message",
    )
    suggestions = get_suggestions(flow)

    assert [s.description for s in suggestions] == [
        "Multiple sequential operations on SharePoint",
        "Multiple sequential operations on Teams",
    ]

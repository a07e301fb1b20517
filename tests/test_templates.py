"""Tests for the flow template library."""

import pytest

from flow_advisor.analysis.validation import validate
from flow_advisor.catalog.templates import apply_template, get_template, list_templates
from flow_advisor.errors import UnknownTemplate
from flow_advisor.flow.models import Flow, NodeType


def test_list_templates():
    """Test the template ids, optionally filtered by category."""
    assert [t.id for t in list_templates()] == [
        "simple-approval", "multi-stage-approval", "sharepoint-to-sql", "daily-summary", "excel-processing",
    ]
    assert [t.id for t in list_templates("approval")] == ["simple-approval", "multi-stage-approval"]


def test_unknown_template():
    """Test that an unknown id raises UnknownTemplate (a KeyError)."""
    with pytest.raises(UnknownTemplate, match="Template not found: nope"):
        get_template("nope")
    with pytest.raises(KeyError):
        apply_template("nope")


def test_apply_template_builds_flow():
    """Test that a template becomes a tagged Flow with ids and positions."""
    flow = apply_template("sharepoint-to-sql")

    assert isinstance(flow, Flow)
    assert flow.name == "SharePoint to SQL Sync"
    assert flow.setting("licence") == "Premium"
    assert flow.nodes[0].type == NodeType.TRIGGER
    assert [n.position for n in flow.nodes] == list(range(len(flow.nodes)))
    assert flow.first("sql-insert-row").is_premium


def test_apply_template_returns_independent_flows():
    """Test that two applications do not share state."""
    first = apply_template("daily-summary")
    second = apply_template("daily-summary")
    assert first == second
    assert first is not second


@pytest.mark.parametrize("template_id", [t.id for t in list_templates()])
def test_templates_are_valid_flows(template_id):
    """Test that every template validates without critical issues."""
    result = validate(apply_template(template_id))
    assert result.critical == []

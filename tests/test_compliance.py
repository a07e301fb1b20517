"""Tests for the governance policy checks."""

import pytest

from flow_advisor.analysis.compliance import check_compliance
from flow_advisor.errors import InvalidFlow, RuleEvaluationError
from flow_advisor.rules.models import Policy, PolicySeverity
from flow_advisor.rules.policies import POLICIES

GOOD_DESCRIPTION = "Routes new leave requests to the line manager and records the decision in Teams."


def compliant_flow(make_flow, **overrides):
    fields = {
        "name": "HR-Leave-Approval",
        "description": GOOD_DESCRIPTION,
        "config": {"accountType": "service"},
    }
    fields.update(overrides)
    return make_flow(
        "forms-response-submitted",
        "control-scope",
        "approval-start",
        "teams-post-message",
        **fields,
    )


def test_compliant_flow(make_flow):
    """Test a flow that satisfies every policy."""
    result = check_compliance(compliant_flow(make_flow))

    assert result.compliant
    assert result.violations == []
    assert result.warnings == []
    assert result.score == 100


def test_naming_convention_is_a_warning(make_flow):
    """Test that a low-severity failure keeps the flow compliant."""
    result = check_compliance(compliant_flow(make_flow, name="leave approval"))

    assert result.compliant
    assert [p.id for p in result.warnings] == ["naming-convention"]
    assert result.score == 90


def test_every_policy_failing(make_flow):
    """Test violation/warning split, registry order and the score floor."""
    flow = make_flow(
        "sharepoint-item-created",
        {"key": "sharepoint-get-items", "config": {"fields": ["email", "department"]}},
        "sharepoint-delete-item",
        "outlook-send-email",
        name="cleanup",
        config={"environment": "production"},
    )
    result = check_compliance(flow)

    assert not result.compliant
    assert [p.id for p in result.violations] == [
        "data-loss-prevention", "error-handling", "approval-required", "gdpr-compliance",
    ]
    assert [p.id for p in result.warnings] == [
        "service-account", "naming-convention", "documentation", "retention-policy",
    ]
    assert result.score == 0


def test_mitigations_clear_policies(make_flow):
    """Test approval, retention and GDPR flags."""
    flow = make_flow(
        "forms-response-submitted",
        "control-scope",
        {"key": "dataverse-list-rows", "config": {"fields": ["name"]}},
        "sharepoint-delete-item",
        name="HR-Leaver-Cleanup",
        description=GOOD_DESCRIPTION,
        config={"environment": "production", "users": 1, "retentionDays": 30, "gdprCompliant": True},
        metadata={"approved": True},
    )
    result = check_compliance(flow)

    assert result.compliant
    assert result.warnings == []
    assert result.score == 100


def test_short_description_fails_documentation(make_flow):
    """Test that descriptions of 50 characters or fewer are not enough."""
    result = check_compliance(compliant_flow(make_flow, description="x" * 50))
    assert [p.id for p in result.warnings] == ["documentation"]


@pytest.mark.parametrize("fields", [5, None, {"email": True}])
def test_malformed_fields_mean_no_personal_data(make_flow, fields):
    """Test that a non-list fields setting is treated as not configured."""
    flow = make_flow(
        "forms-response-submitted",
        "control-scope",
        {"key": "dataverse-list-rows", "config": {"fields": fields}},
        name="HR-Leave-Report",
        description=GOOD_DESCRIPTION,
        config={"accountType": "service"},
    )
    result = check_compliance(flow)

    assert "gdpr-compliance" not in [p.id for p in result.violations]
    assert result.compliant


def test_policy_catalog():
    """Test the catalog order and policy records."""
    assert [p.id for p in POLICIES] == [
        "data-loss-prevention", "service-account", "error-handling", "naming-convention",
        "documentation", "approval-required", "retention-policy", "gdpr-compliance",
    ]
    assert POLICIES.get("gdpr-compliance").requirement == "Personal data processing must be GDPR compliant"


def test_failing_check_raises(make_flow):
    """Test that a policy check error is not reported as a violation."""
    def broken(flow):
        raise KeyError("accountType")

    bad = Policy(id="broken-policy", name="Broken", severity=PolicySeverity.LOW,
                 check=broken, requirement="n/a")
    with pytest.raises(RuleEvaluationError, match="broken-policy"):
        check_compliance(make_flow("recurrence"), policies=[bad])


def test_missing_nodes_rejected():
    """Test that a mapping without nodes raises InvalidFlow."""
    with pytest.raises(InvalidFlow):
        check_compliance({"name": "HR-Leave-Approval"})

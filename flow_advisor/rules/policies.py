"""
Governance policy catalog. A policy's check returns True when the flow complies.
"""

import re

from ..flow import structure
from ..flow.models import Flow
from .models import Policy, PolicySeverity
from .registry import RuleRegistry, policy

POLICIES: "RuleRegistry[Policy]" = RuleRegistry("governance")

EXTERNAL_KEYS = ("http-request", "outlook-send-email")
INTERNAL_MARKERS = ("sharepoint", "sql")
PERSONAL_FIELDS = ("email", "name")
NAME_PATTERN = re.compile(r"^[A-Z]{2,4}-[A-Z][a-z]+-[A-Z][a-z]+")
MIN_DESCRIPTION_LENGTH = 50


@policy(POLICIES, "data-loss-prevention", "Data Loss Prevention", PolicySeverity.HIGH,
        requirement="Prevent sensitive data from leaving organisation")
def data_loss_prevention(flow: Flow) -> bool:
    has_external = flow.has_key(*EXTERNAL_KEYS)
    has_internal = any(marker in n.key for n in flow.nodes for marker in INTERNAL_MARKERS)
    return not (has_external and has_internal)


@policy(POLICIES, "service-account", "Service Account Usage", PolicySeverity.MEDIUM,
        requirement="Use service accounts for automated processes")
def service_account(flow: Flow) -> bool:
    return flow.setting("accountType") == "service" or flow.setting("users") == 1


@policy(POLICIES, "error-handling", "Error Handling", PolicySeverity.HIGH,
        requirement="All flows must have error handling")
def error_handling(flow: Flow) -> bool:
    return flow.has_key(structure.SCOPE)


@policy(POLICIES, "naming-convention", "Naming Convention", PolicySeverity.LOW,
        requirement="Follow naming pattern: DEPT-Process-Action")
def naming_convention(flow: Flow) -> bool:
    return bool(NAME_PATTERN.match(flow.name or ""))


@policy(POLICIES, "documentation", "Documentation", PolicySeverity.MEDIUM,
        requirement="Flows must have detailed descriptions")
def documentation(flow: Flow) -> bool:
    return len(flow.description or "") > MIN_DESCRIPTION_LENGTH


@policy(POLICIES, "approval-required", "Approval for Production", PolicySeverity.HIGH,
        requirement="Production flows require approval")
def approval_required(flow: Flow) -> bool:
    is_production = flow.setting("environment") == "production"
    return not is_production or bool(flow.metadata.get("approved"))


@policy(POLICIES, "retention-policy", "Data Retention", PolicySeverity.MEDIUM,
        requirement="Define retention period for deleted data")
def retention_policy(flow: Flow) -> bool:
    has_delete = any("delete" in n.key for n in flow.nodes)
    return not has_delete or bool(flow.setting("retentionDays"))


@policy(POLICIES, "gdpr-compliance", "GDPR Compliance", PolicySeverity.HIGH,
        requirement="Personal data processing must be GDPR compliant")
def gdpr_compliance(flow: Flow) -> bool:
    has_personal_data = any(
        field in fields
        for fields in (n.setting("fields") for n in flow.nodes)
        if isinstance(fields, (list, tuple, str))
        for field in PERSONAL_FIELDS
    )
    return not has_personal_data or bool(flow.setting("gdprCompliant"))

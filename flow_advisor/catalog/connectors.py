"""
Connector catalog - static facts about every trigger and action the flow
builder offers: display name, data-source category, licence tier and the
per-minute API limits of the underlying service.
"""

from dataclasses import dataclass
from typing import Dict, Optional

STANDARD = "Standard"
PREMIUM = "Premium"


@dataclass(frozen=True)
class Connector:
    key: str
    name: str
    category: str
    licence: str = STANDARD
    kind: str = "action"  # trigger, action or control


@dataclass(frozen=True)
class ApiLimit:
    """Calls per minute, per user and for a service account."""
    per_user: int
    service: int


TRIGGERS: Dict[str, Connector] = {c.key: c for c in [
    Connector("recurrence", "Recurrence", "Schedule", kind="trigger"),
    Connector("sharepoint-item-created", "When an item is created", "SharePoint", kind="trigger"),
    Connector("sharepoint-item-modified", "When an item is modified", "SharePoint", kind="trigger"),
    Connector("sharepoint-file-created", "When a file is created", "SharePoint", kind="trigger"),
    Connector("outlook-email-arrives", "When a new email arrives", "Outlook", kind="trigger"),
    Connector("teams-message-posted", "When a message is posted", "Teams", kind="trigger"),
    Connector("forms-response-submitted", "When a response is submitted", "Forms", kind="trigger"),
    Connector("http-request", "When HTTP request received", "HTTP", PREMIUM, kind="trigger"),
    Connector("sql-row-inserted", "When an item is created (SQL)", "SQL Server", PREMIUM, kind="trigger"),
    Connector("dataverse-row-added", "When a row is added", "Dataverse", kind="trigger"),
]}

ACTIONS: Dict[str, Connector] = {c.key: c for c in [
    Connector("sharepoint-get-items", "Get items", "SharePoint"),
    Connector("sharepoint-create-item", "Create item", "SharePoint"),
    Connector("sharepoint-update-item", "Update item", "SharePoint"),
    Connector("sharepoint-delete-item", "Delete item", "SharePoint"),
    Connector("sharepoint-send-http", "Send HTTP request to SharePoint", "SharePoint"),
    Connector("sql-get-rows", "Get rows", "SQL Server", PREMIUM),
    Connector("sql-insert-row", "Insert row", "SQL Server", PREMIUM),
    Connector("sql-execute-procedure", "Execute stored procedure", "SQL Server", PREMIUM),
    Connector("teams-post-message", "Post message", "Teams"),
    Connector("teams-post-adaptive-card", "Post adaptive card", "Teams"),
    Connector("outlook-send-email", "Send an email", "Outlook"),
    Connector("http-request", "HTTP", "HTTP", PREMIUM),
    Connector("dataverse-list-rows", "List rows", "Dataverse"),
    Connector("dataverse-add-row", "Add a new row", "Dataverse"),
    Connector("onedrive-create-file", "Create file", "OneDrive"),
    Connector("excel-add-row", "Add a row into a table", "Excel"),
    Connector("excel-get-rows", "List rows present in a table", "Excel"),
    Connector("approval-start", "Start and wait for approval", "Approvals"),
    Connector("control-condition", "Condition", "Control", kind="control"),
    Connector("control-apply-each", "Apply to each", "Control", kind="control"),
    Connector("control-apply-each-end", "End apply to each", "Control", kind="control"),
    Connector("control-scope", "Scope", "Control", kind="control"),
    Connector("variable-initialize", "Initialize variable", "Variable"),
    Connector("data-compose", "Compose", "Data Operations"),
    Connector("data-select", "Select", "Data Operations"),
    Connector("data-filter", "Filter array", "Data Operations"),
    Connector("data-parse-json", "Parse JSON", "Data Operations"),
    Connector("ai-builder-extract", "Extract information from documents", "AI Builder", PREMIUM),
    Connector("gpt-text", "Create text with GPT", "AI", PREMIUM),
]}

AI_CATEGORIES = frozenset({"AI", "AI Builder"})

# Categories without a published limit fall back to DEFAULT_API_LIMIT
API_LIMITS: Dict[str, ApiLimit] = {
    "SharePoint": ApiLimit(per_user=300, service=600),
    "SQL Server": ApiLimit(per_user=100, service=300),
    "Dataverse": ApiLimit(per_user=500, service=6000),
    "Teams": ApiLimit(per_user=300, service=1800),
    "Outlook": ApiLimit(per_user=150, service=300),
    "OneDrive": ApiLimit(per_user=500, service=2000),
    "HTTP": ApiLimit(per_user=50, service=100),
}
DEFAULT_API_LIMIT = ApiLimit(per_user=100, service=500)

# Categories that never call an external service
LOCAL_CATEGORIES = frozenset({"Control", "Variable", "Data Operations", "Schedule"})

# Standard-licence replacements suggested for premium data sources
STANDARD_ALTERNATIVES: Dict[str, str] = {
    "SQL Server": "SharePoint Lists or Dataverse",
    "HTTP": "Power Automate Management connector",
    "Azure Functions": "Office Scripts or Power Fx",
    "Custom Connector": "Built-in connectors with workarounds",
}
NO_KNOWN_ALTERNATIVE = "Check documentation"


def lookup(key: str, kind: Optional[str] = None) -> Optional[Connector]:
    """
    Find a connector by key. When `kind` is 'trigger' the trigger table is
    searched first (a few keys, like 'http-request', exist in both).
    """
    if kind == "trigger":
        return TRIGGERS.get(key) or ACTIONS.get(key)
    return ACTIONS.get(key) or TRIGGERS.get(key)


def api_limit(category: str, account_type: str = "user") -> int:
    limits = API_LIMITS.get(category, DEFAULT_API_LIMIT)
    return limits.service if account_type == "service" else limits.per_user


def standard_alternative(category: Optional[str]) -> str:
    return STANDARD_ALTERNATIVES.get(category or "", NO_KNOWN_ALTERNATIVE)

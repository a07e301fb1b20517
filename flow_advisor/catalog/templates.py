""" Starter flow templates, grouped by category. """

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import UnknownTemplate
from ..flow.loader import flow_from_dict
from ..flow.models import Flow


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    nodes: Tuple[Tuple[str, str], ...]  # (key, type) in execution order
    best_for: str
    estimated_time: str
    licence: Optional[str] = None


@dataclass(frozen=True)
class TemplateCategory:
    id: str
    name: str
    templates: Tuple[Template, ...]


CATEGORIES: Tuple[TemplateCategory, ...] = (
    TemplateCategory("approval", "Approval Workflows", (
        Template(
            id="simple-approval",
            name="Simple Document Approval",
            description="Single-stage approval for documents",
            nodes=(
                ("sharepoint-item-created", "trigger"),
                ("approval-start", "action"),
                ("control-condition", "control"),
                ("sharepoint-update-item", "action"),
                ("outlook-send-email", "action"),
            ),
            best_for="Document libraries, simple approvals",
            estimated_time="5 minutes to configure",
        ),
        Template(
            id="multi-stage-approval",
            name="Multi-Stage Approval",
            description="Manager then director approval",
            nodes=(
                ("forms-response-submitted", "trigger"),
                ("approval-start", "action"),
                ("control-condition", "control"),
                ("approval-start", "action"),
                ("control-condition", "control"),
                ("sharepoint-create-item", "action"),
                ("teams-post-message", "action"),
            ),
            best_for="Purchase requests, leave applications",
            estimated_time="15 minutes to configure",
        ),
    )),
    TemplateCategory("integration", "System Integration", (
        Template(
            id="sharepoint-to-sql",
            name="SharePoint to SQL Sync",
            description="Sync SharePoint list to SQL database",
            nodes=(
                ("recurrence", "trigger"),
                ("sharepoint-get-items", "action"),
                ("data-select", "action"),
                ("control-apply-each", "control"),
                ("sql-insert-row", "action"),
                ("control-apply-each-end", "control"),
            ),
            best_for="Data warehouse, reporting",
            estimated_time="20 minutes to configure",
            licence="Premium",
        ),
    )),
    TemplateCategory("notification", "Notifications & Alerts", (
        Template(
            id="daily-summary",
            name="Daily Summary Email",
            description="Send daily summary of activities",
            nodes=(
                ("recurrence", "trigger"),
                ("sharepoint-get-items", "action"),
                ("data-compose", "action"),
                ("outlook-send-email", "action"),
            ),
            best_for="Status reports, daily digests",
            estimated_time="10 minutes to configure",
        ),
    )),
    TemplateCategory("data-processing", "Data Processing", (
        Template(
            id="excel-processing",
            name="Excel File Processing",
            description="Process uploaded Excel files",
            nodes=(
                ("sharepoint-file-created", "trigger"),
                ("excel-get-rows", "action"),
                ("data-filter", "action"),
                ("control-apply-each", "control"),
                ("sharepoint-create-item", "action"),
                ("control-apply-each-end", "control"),
            ),
            best_for="Bulk data import, Excel automation",
            estimated_time="25 minutes to configure",
        ),
    )),
)


def list_templates(category: Optional[str] = None) -> List[Template]:
    return [
        t for c in CATEGORIES
        if category is None or c.id == category
        for t in c.templates
    ]


def get_template(template_id: str) -> Template:
    for template in list_templates():
        if template.id == template_id:
            return template
    raise UnknownTemplate(template_id)


def apply_template(template_id: str) -> Flow:
    """
    Build a new Flow from a template. Ids and positions are assigned in node
    order, and nodes are tagged with their catalog licence.
    """
    template = get_template(template_id)
    data: Dict = {
        "name": template.name,
        "description": template.description,
        "nodes": [{"key": key, "type": node_type} for key, node_type in template.nodes],
    }
    if template.licence:
        data["config"] = {"licence": template.licence}
    return flow_from_dict(data, tag_licences=True)

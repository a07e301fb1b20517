"""
Connector throttling check.

Spreads the flow's daily runs over the day, multiplies calls made inside
loops by the loop's iterations, and compares each connector's call rate
with the published per-minute limit for the account type.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from ..catalog import connectors
from ..config import AdvisorSettings, get_settings
from ..flow import structure
from ..flow.loader import ensure_flow
from ..flow.models import Flow, NodeType, as_count
from .impact import RiskLevel

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
BURST_FACTOR = 3  # scheduled flows fire together instead of spreading out
RISK_THRESHOLD = 80  # percent of the limit


@dataclass(frozen=True)
class ConnectorThrottling:
    connector: str
    calls_per_minute: float
    limit: int
    usage_percent: float
    pattern: str  # "burst" or "distributed"
    severity: RiskLevel
    impact: str
    solution: str

    @property
    def title(self) -> str:
        return f"{self.connector} Throttling Risk"

    @property
    def description(self) -> str:
        return (f"{self.usage_percent:.0f}% of API limit "
                f"({self.calls_per_minute:.0f}/{self.limit} calls/min)")


def throttling_solution(usage_percent: float) -> str:
    if usage_percent > 200:
        return "URGENT: Implement request queuing, caching, and batch operations"
    if usage_percent > 100:
        return "Add delays between operations, implement retry logic with exponential backoff"
    return "Consider implementing caching or reducing execution frequency"


def connector_usage(flow: Flow, runs_per_day: float, default_items: int) -> Dict[str, float]:
    """Estimated calls per minute for every external connector category in the flow."""
    enclosing = structure.enclosing_loops(flow)
    usage: Dict[str, float] = {}
    for index, node in enumerate(flow.nodes):
        if node.type == NodeType.TRIGGER or not node.category:
            continue
        if node.category in connectors.LOCAL_CATEGORIES:
            continue

        calls = runs_per_day / MINUTES_PER_DAY
        loop = enclosing[index]
        while loop is not None:
            items = as_count(flow.nodes[loop].setting("estimatedItems"))
            calls *= default_items if items is None else items
            loop = enclosing[loop]
        usage[node.category] = usage.get(node.category, 0.0) + calls
    return usage


def assess_connector_throttling(flow: Union[Flow, Mapping[str, Any]],
                                runs_per_day: Optional[float] = None, *,
                                settings: Optional[AdvisorSettings] = None) -> List[ConnectorThrottling]:
    """
    Connectors whose estimated call rate exceeds 80% of their limit. Above
    100% the flow will be throttled and the risk is CRITICAL.
    """
    flow = ensure_flow(flow)
    settings = settings or get_settings()

    if runs_per_day is None:
        runs_per_day = as_count(flow.setting("runsPerDay")) or settings.impact.default_daily_runs
    scheduled = flow.has_key(structure.RECURRENCE)
    account_type = flow.setting("accountType") or "user"

    risks = []
    usage = connector_usage(flow, runs_per_day, settings.impact.default_item_count)
    for category, calls_per_minute in usage.items():
        if scheduled:
            calls_per_minute *= BURST_FACTOR
        limit = connectors.api_limit(category, account_type)
        usage_percent = calls_per_minute / limit * 100
        if usage_percent <= RISK_THRESHOLD:
            continue

        logger.debug("%s at %.0f%% of its %d calls/min limit", category, usage_percent, limit)
        risks.append(ConnectorThrottling(
            connector=category,
            calls_per_minute=calls_per_minute,
            limit=limit,
            usage_percent=usage_percent,
            pattern="burst" if scheduled else "distributed",
            severity=RiskLevel.CRITICAL if usage_percent > 100 else RiskLevel.HIGH,
            impact="FLOW WILL FAIL" if usage_percent > 100 else "High failure risk",
            solution=throttling_solution(usage_percent),
        ))
    return risks

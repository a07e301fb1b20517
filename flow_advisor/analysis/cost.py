""" Licensing cost calculator for usage scenarios. """

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..catalog import connectors
from ..config import AdvisorSettings, get_settings
from ..flow.loader import ensure_flow
from ..flow.models import Flow, Node, NodeType

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30

STANDARD = "Standard"
PROCESS = "Process"
PREMIUM_PER_USER = "Premium Per-User"
PROCESS_PPR_LIMIT = "Process (PPR limit)"


@dataclass(frozen=True)
class Scenario:
    key: str
    name: str
    users: int
    runs_per_day: int
    description: str = ""


SCENARIOS: Dict[str, Scenario] = {s.key: s for s in [
    Scenario("small-team", "Small Team", users=5, runs_per_day=50, description="Department automation"),
    Scenario("department", "Department", users=25, runs_per_day=500, description="Cross-team processes"),
    Scenario("enterprise", "Enterprise", users=100, runs_per_day=5000, description="Organisation-wide"),
    Scenario("high-volume", "High Volume", users=10, runs_per_day=10000, description="Transaction processing"),
]}


@dataclass(frozen=True)
class CostResult:
    monthly_cost: float
    licence: str
    recommendation: str
    monthly_ppr: int
    cost_per_run: float   # nan when the scenario has no runs
    cost_per_user: float  # nan when the scenario has no users


@dataclass(frozen=True)
class LicenceOption:
    name: str
    monthly_cost: float
    when_best: str


@dataclass(frozen=True)
class PremiumAlternative:
    node_id: str
    connector: str
    alternative: str


@dataclass(frozen=True)
class LicensingComparison:
    per_user: LicenceOption
    per_flow: LicenceOption
    hosted_rpa: LicenceOption
    breakeven: int
    alternatives: Tuple[PremiumAlternative, ...] = ()


def is_ai_node(node: Node) -> bool:
    """AI usage is billed by tokens on top of the licence fee."""
    if node.category in connectors.AI_CATEGORIES:
        return True
    if "gpt" in node.key or node.key.startswith("ai-"):
        return True
    return bool(node.tag("ai"))


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else float("nan")


def calculate(flow: Union[Flow, Mapping[str, Any]], scenario: Scenario, *,
              settings: Optional[AdvisorSettings] = None) -> CostResult:
    """
    Monthly cost of running the flow under one usage scenario.

    Premium connectors need per-user licences for small teams and a per-flow
    licence above the user or run thresholds. AI actions add a token cost.
    A Standard flow whose monthly platform requests exceed the per-flow
    ceiling still needs a Process licence.
    """
    flow = ensure_flow(flow)
    licensing = (settings or get_settings()).licensing

    has_premium = any(n.is_premium for n in flow.nodes)
    has_ai = any(is_ai_node(n) for n in flow.nodes)

    licence_cost = 0.0
    licence = STANDARD
    recommendation = ""

    if has_premium:
        if (scenario.users > licensing.per_flow_user_threshold
                or scenario.runs_per_day > licensing.per_flow_runs_threshold):
            licence_cost = licensing.per_flow_cost
            licence = PROCESS
            recommendation = "Per-flow licensing recommended for scale"
        else:
            licence_cost = licensing.per_user_cost * scenario.users
            licence = PREMIUM_PER_USER
            recommendation = f"{scenario.users} Premium licences required"

    ai_cost = 0.0
    if has_ai:
        ai_calls = scenario.runs_per_day * DAYS_PER_MONTH
        tokens = ai_calls * licensing.ai_tokens_per_call
        ai_cost = tokens / 1000 * licensing.ai_price_per_k_tokens

    actions_per_run = flow.count(NodeType.ACTION)
    monthly_ppr = scenario.runs_per_day * actions_per_run * DAYS_PER_MONTH

    if monthly_ppr > licensing.ppr_ceiling and licence == STANDARD:
        licence_cost = licensing.per_flow_cost
        licence = PROCESS_PPR_LIMIT
        recommendation = "Process licence required due to high PPR usage"

    monthly_cost = licence_cost + ai_cost
    logger.debug("Scenario '%s': %s licence, %.2f %s/month, %d PPR",
                 scenario.key, licence, monthly_cost, licensing.currency, monthly_ppr)

    return CostResult(
        monthly_cost=monthly_cost,
        licence=licence,
        recommendation=recommendation,
        monthly_ppr=monthly_ppr,
        cost_per_run=_ratio(monthly_cost, scenario.runs_per_day * DAYS_PER_MONTH),
        cost_per_user=_ratio(monthly_cost, scenario.users),
    )


def calculate_scenarios(flow: Union[Flow, Mapping[str, Any]],
                        scenarios: Optional[Iterable[Scenario]] = None, *,
                        settings: Optional[AdvisorSettings] = None) -> Dict[str, CostResult]:
    """Cost per scenario, keyed by scenario key. Defaults to the predefined scenarios."""
    flow = ensure_flow(flow)
    scenarios = list(scenarios) if scenarios is not None else list(SCENARIOS.values())
    return {s.key: calculate(flow, s, settings=settings) for s in scenarios}


def standard_alternatives(flow: Union[Flow, Mapping[str, Any]]) -> List[PremiumAlternative]:
    """Suggested Standard-licence replacement for each premium node."""
    flow = ensure_flow(flow)
    return [
        PremiumAlternative(
            node_id=n.id,
            connector=n.name or n.key,
            alternative=connectors.standard_alternative(n.category),
        )
        for n in flow.nodes if n.is_premium
    ]


def compare_options(flow: Union[Flow, Mapping[str, Any]], user_count: int, *,
                    settings: Optional[AdvisorSettings] = None) -> LicensingComparison:
    flow = ensure_flow(flow)
    licensing = (settings or get_settings()).licensing
    return LicensingComparison(
        per_user=LicenceOption(
            PREMIUM_PER_USER,
            licensing.per_user_cost * user_count,
            "Best for <7 users with premium needs",
        ),
        per_flow=LicenceOption(
            "Process (Per-Flow)",
            licensing.per_flow_cost,
            "Best for >7 users or service accounts",
        ),
        hosted_rpa=LicenceOption(
            "Hosted RPA",
            licensing.hosted_rpa_cost,
            "Required for desktop automation",
        ),
        breakeven=math.ceil(licensing.per_flow_cost / licensing.per_user_cost),
        alternatives=tuple(standard_alternatives(flow)),
    )

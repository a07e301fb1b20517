"""
Apply-to-each impact estimator.

Every iteration of a loop runs every action inside it, and every action is a
separate API call. Nested loops multiply: 100 orders x 50 line items x 2
actions is 10,000 calls for a single run.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..config import AdvisorSettings, ImpactSettings, get_settings
from ..errors import InvalidLoopConfig
from ..flow import structure
from ..flow.loader import ensure_flow
from ..flow.models import Flow, as_count
from ..flow.schema import validate_loop_config

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2, RiskLevel.CRITICAL: 3}


@dataclass(frozen=True)
class NestedLoop:
    item_count: Optional[int] = None
    actions_in_loop: Optional[int] = None


@dataclass(frozen=True)
class LoopConfig:
    """
    Shape of one apply-each loop. `item_count` / `actions_in_loop` left as
    None mean "unknown": the estimator substitutes defaults and says so.
    """
    item_count: Optional[int] = None
    actions_in_loop: Optional[int] = None
    nested_loops: Tuple[NestedLoop, ...] = ()
    concurrency: int = 1
    daily_runs: int = 10
    has_filter: bool = False
    has_select: bool = False

    def __post_init__(self):
        nested = []
        for entry in self.nested_loops or ():
            if isinstance(entry, Mapping):
                entry = NestedLoop(
                    item_count=entry.get("item_count", entry.get("itemCount")),
                    actions_in_loop=entry.get("actions_in_loop", entry.get("actionsInLoop")),
                )
            if not isinstance(entry, NestedLoop):
                raise InvalidLoopConfig(f"Nested loop entries must be NestedLoop or mappings, got {entry!r}")
            _check_count("nested itemCount", entry.item_count)
            _check_count("nested actionsInLoop", entry.actions_in_loop)
            nested.append(entry)
        object.__setattr__(self, "nested_loops", tuple(nested))

        _check_count("itemCount", self.item_count)
        _check_count("actionsInLoop", self.actions_in_loop)
        _check_count("dailyRuns", self.daily_runs)
        if self.concurrency is None:
            object.__setattr__(self, "concurrency", 1)
        elif isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise InvalidLoopConfig(f"concurrency must be a positive integer, got {self.concurrency!r}")


def _check_count(name: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidLoopConfig(f"{name} must be a non-negative integer, got {value!r}")


def loop_config_from_mapping(raw: Mapping[str, Any]) -> LoopConfig:
    """Validate a camelCase or snake_case mapping into a LoopConfig."""
    spec = validate_loop_config(dict(raw))
    return LoopConfig(
        item_count=spec.item_count,
        actions_in_loop=spec.actions_in_loop,
        nested_loops=tuple(NestedLoop(n.item_count, n.actions_in_loop) for n in spec.nested_loops),
        concurrency=spec.concurrency,
        daily_runs=spec.daily_runs,
        has_filter=spec.has_filter,
        has_select=spec.has_select,
    )


@dataclass(frozen=True)
class ThrottlingRisk:
    level: RiskLevel
    message: str
    description: str
    calls_per_minute: int


@dataclass(frozen=True)
class LoopRecommendation:
    id: str
    priority: str
    title: str
    impact: str
    explanation: str
    example: str = ""
    calculation: Optional[str] = None
    warning: Optional[str] = None
    alternatives: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImpactResult:
    single_run_api_calls: int
    daily_api_calls: int
    monthly_api_calls: int
    estimated_time_seconds: float
    estimated_time_minutes: float
    calls_per_minute: int
    throttling_risk: ThrottlingRisk
    concurrency_impact: str
    warning: Optional[str]
    recommendations: List[LoopRecommendation]
    assumptions: List[str] = field(default_factory=list)

    @property
    def estimated(self) -> bool:
        """True when any input was defaulted rather than supplied."""
        return bool(self.assumptions)


def calculate_throttling_risk(calls_per_minute: int, *,
                              settings: Optional[AdvisorSettings] = None) -> ThrottlingRisk:
    """
    Map a calls-per-minute rate onto a risk tier. SharePoint allows 300
    calls/min per user and 600/min in total.
    """
    limits = (settings or get_settings()).impact

    if calls_per_minute > limits.critical_risk_calls_per_minute:
        return ThrottlingRisk(
            RiskLevel.CRITICAL,
            "Will hit API throttling limits!",
            f"SharePoint: 300 calls/min per user limit (600/min total). Your loop: {calls_per_minute} calls/min",
            calls_per_minute,
        )
    if calls_per_minute > limits.high_risk_calls_per_minute:
        return ThrottlingRisk(
            RiskLevel.HIGH,
            "Approaching throttling limits",
            "Getting close to API limits. Consider reducing concurrency or adding delays.",
            calls_per_minute,
        )
    if calls_per_minute > limits.medium_risk_calls_per_minute:
        return ThrottlingRisk(
            RiskLevel.MEDIUM,
            "Moderate API usage",
            "Within limits but monitor during peak times",
            calls_per_minute,
        )
    return ThrottlingRisk(RiskLevel.LOW, "Safe API usage", "Well within API limits", calls_per_minute)


def calculate_impact(loop_config: Union[LoopConfig, Mapping[str, Any]], *,
                     settings: Optional[AdvisorSettings] = None) -> ImpactResult:
    """
    Project the API calls, run time and throttling risk of one loop.
    """
    if isinstance(loop_config, Mapping):
        loop_config = loop_config_from_mapping(loop_config)
    elif not isinstance(loop_config, LoopConfig):
        raise InvalidLoopConfig(f"Expected a LoopConfig or mapping, got {type(loop_config).__name__}")

    limits = (settings or get_settings()).impact
    assumptions: List[str] = []

    item_count = loop_config.item_count
    if item_count is None:
        item_count = limits.default_item_count
        assumptions.append(f"Item count unknown - assumed {item_count} items")

    actions = loop_config.actions_in_loop
    if actions is None:
        actions = limits.default_actions_in_loop
        assumptions.append(f"Actions in loop unknown - assumed {actions} actions")

    daily_runs = loop_config.daily_runs if loop_config.daily_runs is not None else limits.default_daily_runs

    nested = []
    for position, loop in enumerate(loop_config.nested_loops, start=1):
        nested_items = loop.item_count
        if nested_items is None:
            nested_items = limits.default_nested_item_count
            assumptions.append(f"Nested loop {position} item count unknown - assumed {nested_items} items")
        nested_actions = loop.actions_in_loop
        if nested_actions is None:
            nested_actions = limits.default_nested_actions
            assumptions.append(f"Nested loop {position} actions unknown - assumed {nested_actions} actions")
        nested.append((nested_items, nested_actions))

    total_calls = item_count * actions
    for nested_items, nested_actions in nested:
        total_calls *= nested_items * nested_actions

    daily_calls = total_calls * daily_runs
    monthly_calls = daily_calls * DAYS_PER_MONTH

    concurrency = loop_config.concurrency
    per_call = limits.sequential_call_seconds if concurrency <= 1 else limits.parallel_call_seconds
    total_seconds = total_calls * per_call / concurrency

    calls_per_minute = actions * concurrency if concurrency > 1 else actions
    risk = calculate_throttling_risk(calls_per_minute, settings=settings)

    warning = None
    if total_calls > limits.warning_call_threshold:
        warning = f"CRITICAL: This loop will make {total_calls} API calls PER RUN!"

    logger.debug("Loop impact: %d calls/run, %d calls/month, risk %s", total_calls, monthly_calls, risk.level.value)

    return ImpactResult(
        single_run_api_calls=total_calls,
        daily_api_calls=daily_calls,
        monthly_api_calls=monthly_calls,
        estimated_time_seconds=total_seconds,
        estimated_time_minutes=total_seconds / 60,
        calls_per_minute=calls_per_minute,
        throttling_risk=risk,
        concurrency_impact=(
            "Reduced time but increased API rate" if concurrency > 1 else "Sequential - slow but safe"
        ),
        warning=warning,
        recommendations=get_recommendations(loop_config, total_calls, item_count, actions, nested, limits),
        assumptions=assumptions,
    )


def get_recommendations(config: LoopConfig, total_calls: int, item_count: int, actions: int,
                        nested: List[Tuple[int, int]], limits: ImpactSettings) -> List[LoopRecommendation]:
    """
    Rule-based loop advice, emitted in escalating order: filter at source,
    Select, batch, nested loops, concurrency, then architecture.
    """
    recommendations = []

    if item_count > limits.filter_item_threshold and not config.has_filter:
        recommendations.append(LoopRecommendation(
            id="filter-at-source",
            priority="CRITICAL",
            title="Add Filter Query to Get Items",
            impact="90% reduction in API calls",
            explanation="Instead of getting 1000 items and looping, filter to get only 100 needed items",
            example="Filter Query: Status eq 'Active' and Modified gt '@{addDays(utcNow(), -7)}'",
        ))

    if not config.has_select:
        recommendations.append(LoopRecommendation(
            id="select-before-loop",
            priority="HIGH",
            title="Use Select Action Before Loop",
            impact="50% performance improvement",
            explanation="Map data to simpler structure before Apply to each",
            example="Select only the fields you need, not entire objects",
        ))

    if actions > limits.batch_action_threshold:
        recommendations.append(LoopRecommendation(
            id="batch-operations",
            priority="HIGH",
            title="Consider Batch Operations",
            impact="Reduce API calls by 80%",
            explanation="Instead of updating items one by one, use batch update",
            example='Use "Send HTTP request to SharePoint" with $batch endpoint',
        ))

    if nested:
        inner_items = nested[0][0]
        recommendations.append(LoopRecommendation(
            id="eliminate-nested-loops",
            priority="CRITICAL",
            title="ELIMINATE NESTED LOOPS",
            impact="Exponential reduction in API calls",
            explanation="Nested Apply to each multiplies API calls exponentially!",
            example="100 outer × 50 inner = 5,000 API calls! Use Filter array or Select instead",
            calculation=f"Current: {item_count} × {inner_items} = {item_count * inner_items} iterations!",
        ))

    if config.concurrency == 1 and total_calls > limits.enable_concurrency_call_threshold:
        recommendations.append(LoopRecommendation(
            id="enable-concurrency",
            priority="MEDIUM",
            title="Enable Concurrency Control",
            impact="5-10x speed improvement",
            explanation="Process items in parallel, but watch API limits",
            example="Set concurrency to 20-50 for parallel processing",
            warning="This increases API calls per minute - monitor throttling!",
        ))
    elif config.concurrency > limits.max_safe_concurrency:
        recommendations.append(LoopRecommendation(
            id="reduce-concurrency",
            priority="HIGH",
            title="Reduce Concurrency",
            impact="Avoid throttling",
            explanation="Too high concurrency will hit API limits",
            example="Reduce to 20-30 for safe parallel processing",
        ))

    if total_calls > limits.architecture_call_threshold:
        recommendations.append(LoopRecommendation(
            id="alternative-architecture",
            priority="CRITICAL",
            title="Consider Alternative Architecture",
            impact="Complete redesign needed",
            explanation="This many API calls indicates a design problem",
            alternatives=(
                "Use stored procedures in SQL for bulk operations",
                "Use Power BI dataflows for large data processing",
                "Consider Azure Logic Apps with better batching",
                "Use SharePoint REST API $batch for bulk updates",
                "Implement pagination with Do Until loop",
            ),
        ))

    return recommendations


# ============================================================
# Loops found in a flow
# ============================================================

@dataclass(frozen=True)
class LoopAnalysis:
    loop_index: int        # 1-based, in flow order
    node_id: str
    position: int
    is_nested: bool
    config: LoopConfig
    impact: ImpactResult
    severity: str


def derive_loop_config(flow: Flow, loop: structure.LoopView, loops_by_index: Dict[int, structure.LoopView],
                       limits: ImpactSettings) -> LoopConfig:
    """Build the LoopConfig of one loop from its node and its neighbourhood."""
    nested = []
    for child_index in loop.descendants:
        child = loops_by_index[child_index]
        nested.append(NestedLoop(
            item_count=as_count(child.node.setting("estimatedItems")),
            actions_in_loop=child.direct_actions or None,
        ))

    window = limits.source_lookback_window
    return LoopConfig(
        item_count=as_count(loop.node.setting("estimatedItems")),
        actions_in_loop=loop.direct_actions or None,
        nested_loops=tuple(nested),
        concurrency=as_count(loop.node.setting("concurrency"), minimum=1) or 1,
        daily_runs=as_count(flow.setting("runsPerDay")) or limits.default_daily_runs,
        has_filter=structure.has_filtered_source(flow, loop.index, window),
        has_select=structure.has_select_before(flow, loop.index, window),
    )


def analyse_loops(flow: Union[Flow, Mapping[str, Any]], *,
                  settings: Optional[AdvisorSettings] = None) -> List[LoopAnalysis]:
    """
    Estimate the impact of every apply-each loop in the flow.

    Descendant loops are folded into the outer loop's `nested_loops`, so the
    outer estimate carries the full multiplication.
    """
    flow = ensure_flow(flow)
    settings = settings or get_settings()
    limits = settings.impact

    loops = structure.find_loops(flow)
    loops_by_index = {loop.index: loop for loop in loops}

    analysis = []
    for number, loop in enumerate(loops, start=1):
        config = derive_loop_config(flow, loop, loops_by_index, limits)
        impact = calculate_impact(config, settings=settings)
        calls = impact.single_run_api_calls
        if calls > limits.critical_loop_calls:
            severity = "CRITICAL"
        elif calls > limits.high_loop_calls:
            severity = "HIGH"
        else:
            severity = "MEDIUM"
        analysis.append(LoopAnalysis(
            loop_index=number,
            node_id=loop.node.id,
            position=loop.node.position,
            is_nested=loop.is_nested,
            config=config,
            impact=impact,
            severity=severity,
        ))
    return analysis


# ============================================================
# Cost and before/after projections
# ============================================================

@dataclass(frozen=True)
class LoopCostProjection:
    monthly_api_calls: int
    ppr_usage: int
    ppr_limit: int
    ppr_percentage: float
    delay_cost: float
    throttling: str
    licence_needed: str
    monthly_cost: float


def project_loop_costs(impact: ImpactResult, *,
                       settings: Optional[AdvisorSettings] = None) -> LoopCostProjection:
    """Translate a loop's monthly calls into PPR usage, delay cost and licence needs."""
    licensing = (settings or get_settings()).licensing

    monthly = impact.monthly_api_calls
    minutes = impact.estimated_time_minutes
    delay_cost = (minutes / 60) * licensing.delay_cost_per_hour if minutes > 60 else 0.0
    needs_premium = monthly > licensing.standard_call_allowance

    return LoopCostProjection(
        monthly_api_calls=monthly,
        ppr_usage=monthly,
        ppr_limit=licensing.ppr_ceiling,
        ppr_percentage=monthly / licensing.ppr_ceiling * 100,
        delay_cost=delay_cost,
        throttling=(
            "Flow will fail - infinite cost!"
            if impact.throttling_risk.level == RiskLevel.CRITICAL else "Within limits"
        ),
        licence_needed="Premium/Process required" if needs_premium else "Standard sufficient",
        monthly_cost=licensing.per_flow_cost if needs_premium else 0.0,
    )


@dataclass(frozen=True)
class OptimisedProjection:
    calls_before: int
    calls_after: int
    minutes_before: float
    minutes_after: float
    risk_before: RiskLevel
    risk_after: RiskLevel
    message: str


def optimised_projection(impact: ImpactResult, *,
                         settings: Optional[AdvisorSettings] = None) -> OptimisedProjection:
    """Before/after view of a loop once filtering and batching are applied."""
    limits = (settings or get_settings()).impact
    return OptimisedProjection(
        calls_before=impact.single_run_api_calls,
        # 300 * 0.1 is 30.000000000000004 in binary floating point
        calls_after=math.ceil(round(impact.single_run_api_calls * limits.optimised_call_ratio, 9)),
        minutes_before=impact.estimated_time_minutes,
        minutes_after=impact.estimated_time_minutes * limits.optimised_time_ratio,
        risk_before=impact.throttling_risk.level,
        risk_after=RiskLevel.LOW,
        message=impact.warning or "Loop impact calculated",
    )

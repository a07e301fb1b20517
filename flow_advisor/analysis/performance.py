""" Per-node timing profile and bottleneck report. """

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import AdvisorSettings, get_settings
from ..flow import structure
from ..flow.loader import ensure_flow
from ..flow.models import Flow, Node, as_count

BOTTLENECK_SECONDS = 5.0
DEFAULT_SECONDS = 0.5


@dataclass(frozen=True)
class TimingProfile:
    base: float
    issue: Optional[str] = None
    solution: Optional[str] = None
    improvement: int = 0  # percent saved once the solution is applied


PROFILES: Dict[str, TimingProfile] = {
    structure.GET_ITEMS: TimingProfile(2.0, "Unfiltered query", "Add Filter Query", 90),
    structure.APPLY_EACH: TimingProfile(0.5, "Sequential processing", "Enable concurrency", 80),
    "http-request": TimingProfile(1.0, "External API call", "Implement caching", 50),
    "sql-get-rows": TimingProfile(3.0, "Database query", "Add indexes", 70),
}

UNFILTERED_GET_ITEMS_SECONDS = 30.0
SECONDS_PER_LOOP_ITEM = 0.5


@dataclass(frozen=True)
class NodeTiming:
    seconds: float
    impact: str  # high, medium or low
    profile: Optional[TimingProfile]


@dataclass(frozen=True)
class Bottleneck:
    node: str
    node_id: str
    position: int  # 1-based
    estimated_time: float
    issue: Optional[str]
    solution: Optional[str]
    potential_improvement: int


@dataclass(frozen=True)
class PerformanceReport:
    bottlenecks: List[Bottleneck]
    total_estimated_time: float
    optimised_time: float
    potential_improvement: int


def node_timing(node: Node, *, settings: Optional[AdvisorSettings] = None) -> NodeTiming:
    profile = PROFILES.get(node.key)
    if profile is None:
        return NodeTiming(DEFAULT_SECONDS, "low", None)

    seconds = profile.base
    if node.key == structure.GET_ITEMS and not node.setting("filterQuery"):
        seconds = UNFILTERED_GET_ITEMS_SECONDS
    elif node.key == structure.APPLY_EACH:
        items = as_count(node.setting("estimatedItems"))
        if items is None:
            items = (settings or get_settings()).impact.default_item_count
        concurrency = as_count(node.setting("concurrency"), minimum=1) or 1
        seconds = profile.base + SECONDS_PER_LOOP_ITEM * items / concurrency

    if seconds > BOTTLENECK_SECONDS:
        impact = "high"
    elif seconds > 2:
        impact = "medium"
    else:
        impact = "low"
    return NodeTiming(seconds, impact, profile)


def _optimised(timing: NodeTiming) -> float:
    if timing.profile is None or not timing.profile.improvement:
        return timing.seconds
    return timing.seconds * (1 - timing.profile.improvement / 100)


def analyse_bottlenecks(flow: Union[Flow, Mapping[str, Any]], *,
                        settings: Optional[AdvisorSettings] = None) -> PerformanceReport:
    """
    Estimate run time node by node and list the nodes slow enough to matter.
    """
    flow = ensure_flow(flow)
    timings = [node_timing(n, settings=settings) for n in flow.nodes]

    bottlenecks = []
    for index, (node, timing) in enumerate(zip(flow.nodes, timings)):
        if timing.impact != "high":
            continue
        bottlenecks.append(Bottleneck(
            node=node.name or node.key,
            node_id=node.id,
            position=index + 1,
            estimated_time=timing.seconds,
            issue=timing.profile.issue,
            solution=timing.profile.solution,
            potential_improvement=timing.profile.improvement,
        ))

    total = sum(t.seconds for t in timings)
    optimised = sum(_optimised(t) for t in timings)
    improvement = round((total - optimised) / total * 100) if total else 0

    return PerformanceReport(
        bottlenecks=bottlenecks,
        total_estimated_time=total,
        optimised_time=optimised,
        potential_improvement=improvement,
    )

"""
Pattern recogniser and optimisation advisor.

Spots structural patterns in the node sequence (runs of operations on the
same data source, chains of conditions, keys used over and over) and maps
each one to a canned optimisation suggestion.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple, Union

from ..flow import structure
from ..flow.loader import ensure_flow
from ..flow.models import Flow

SEQUENTIAL_SAME_SOURCE = "sequential-same-source"
MULTIPLE_CONDITIONS = "multiple-conditions"
REPEATED_ACTION = "repeated-action"

CONDITION_RUN_LIMIT = 2
REPEAT_LIMIT = 2


@dataclass(frozen=True)
class Pattern:
    type: str
    data_source: Optional[str] = None
    action: Optional[str] = None
    count: int = 0
    node_ids: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OptimisationSuggestion:
    pattern_type: str
    title: str
    description: str
    solution: str
    impact: int
    difficulty: str
    time_reduction: int  # percent
    example: Optional[str] = None
    node_ids: Tuple[str, ...] = field(default_factory=tuple)
    count: int = 0


def _runs(flow: Flow, same) -> List[List[int]]:
    """Maximal runs of consecutive node indices where same(prev, node) holds."""
    runs: List[List[int]] = []
    current: List[int] = []
    nodes = flow.nodes
    for index, node in enumerate(nodes):
        if current and same(nodes[current[-1]], node):
            current.append(index)
        else:
            if len(current) > 1:
                runs.append(current)
            current = [index]
    if len(current) > 1:
        runs.append(current)
    return runs


def recognise_patterns(flow: Union[Flow, Mapping[str, Any]]) -> List[Pattern]:
    flow = ensure_flow(flow)
    nodes = flow.nodes
    patterns: List[Pattern] = []

    for run in _runs(flow, lambda prev, node: bool(node.category) and node.category == prev.category):
        patterns.append(Pattern(
            type=SEQUENTIAL_SAME_SOURCE,
            data_source=nodes[run[0]].category,
            count=len(run),
            node_ids=tuple(nodes[i].id for i in run),
        ))

    is_condition = lambda n: n.key == structure.CONDITION
    for run in _runs(flow, lambda prev, node: is_condition(prev) and is_condition(node)):
        if len(run) > CONDITION_RUN_LIMIT:
            patterns.append(Pattern(
                type=MULTIPLE_CONDITIONS,
                count=len(run),
                node_ids=tuple(nodes[i].id for i in run),
            ))

    counts = Counter(n.key for n in nodes)
    for key, count in counts.items():
        if count > REPEAT_LIMIT:
            patterns.append(Pattern(
                type=REPEATED_ACTION,
                action=key,
                count=count,
                node_ids=tuple(n.id for n in nodes if n.key == key),
            ))

    return patterns


def get_optimisation_for_pattern(pattern: Pattern) -> OptimisationSuggestion:
    if pattern.type == SEQUENTIAL_SAME_SOURCE:
        return OptimisationSuggestion(
            pattern_type=pattern.type,
            title="Batch Operations Possible",
            description=f"Multiple sequential operations on {pattern.data_source}",
            solution="Combine into single batch operation",
            impact=8,
            difficulty="medium",
            time_reduction=60,
            example="Use Send HTTP request to SharePoint with $batch endpoint",
            count=pattern.count,
            node_ids=pattern.node_ids,
        )
    if pattern.type == MULTIPLE_CONDITIONS:
        return OptimisationSuggestion(
            pattern_type=pattern.type,
            title="Complex Conditional Logic",
            description=f"{pattern.count} conditions in sequence",
            solution="Replace with Switch action for cleaner logic",
            impact=5,
            difficulty="easy",
            time_reduction=20,
            example="Switch on status field instead of nested conditions",
            count=pattern.count,
            node_ids=pattern.node_ids,
        )
    if pattern.type == REPEATED_ACTION:
        return OptimisationSuggestion(
            pattern_type=pattern.type,
            title="Repeated Operations Detected",
            description=f"{pattern.action} used {pattern.count} times",
            solution="Consider loop or batch processing",
            impact=7,
            difficulty="medium",
            time_reduction=40,
            example="Use Apply to each with array of items",
            count=pattern.count,
            node_ids=pattern.node_ids,
        )
    return OptimisationSuggestion(
        pattern_type=pattern.type,
        title="Optimisation Opportunity",
        description="Pattern detected",
        solution="Review flow structure",
        impact=3,
        difficulty="easy",
        time_reduction=10,
        count=pattern.count,
        node_ids=pattern.node_ids,
    )


def get_suggestions(flow: Union[Flow, Mapping[str, Any]]) -> List[OptimisationSuggestion]:
    """One suggestion per recognised pattern, highest impact first."""
    suggestions = [get_optimisation_for_pattern(p) for p in recognise_patterns(flow)]
    # stable: equal impacts keep detection order
    return sorted(suggestions, key=lambda s: s.impact, reverse=True)

"""
Structural view over a flow's node sequence.

Flows have no explicit parent/child tree: loop nesting is implied by paired
'control-apply-each' / 'control-apply-each-end' markers, so everything here
is derived from one linear scan of `flow.nodes`.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .models import Flow, Node, NodeType

APPLY_EACH = "control-apply-each"
APPLY_EACH_END = "control-apply-each-end"
CONDITION = "control-condition"
SCOPE = "control-scope"
RECURRENCE = "recurrence"
GET_ITEMS = "sharepoint-get-items"
SELECT = "data-select"


@dataclass(frozen=True)
class LoopView:
    """An apply-each loop located in the node sequence."""
    index: int                      # position of the start marker in flow.nodes
    node: Node
    end_index: Optional[int]        # None when the loop is never closed
    depth: int                      # number of loops enclosing this one
    parent_index: Optional[int]
    direct_actions: int             # action nodes directly inside (not in child loops)
    descendants: Tuple[int, ...] = field(default_factory=tuple)  # nested loop start indices, in order

    @property
    def is_nested(self) -> bool:
        return self.depth > 0


def running_depths(flow: Flow) -> List[int]:
    """Loop depth after each node: +1 on a loop start, -1 on its end marker."""
    depth = 0
    depths = []
    for node in flow.nodes:
        if node.key == APPLY_EACH:
            depth += 1
        elif node.key == APPLY_EACH_END:
            depth -= 1
        depths.append(depth)
    return depths


def max_loop_depth(flow: Flow) -> int:
    return max(running_depths(flow), default=0)


def enclosing_loops(flow: Flow) -> List[Optional[int]]:
    """
    For every node, the index of the innermost loop it sits inside (None at top level).
    A loop's own start marker reports its parent loop.
    """
    stack: List[int] = []
    enclosing: List[Optional[int]] = []
    for index, node in enumerate(flow.nodes):
        if node.key == APPLY_EACH_END:
            if stack:
                stack.pop()
            enclosing.append(stack[-1] if stack else None)
            continue
        enclosing.append(stack[-1] if stack else None)
        if node.key == APPLY_EACH:
            stack.append(index)
    return enclosing


def find_loops(flow: Flow) -> List[LoopView]:
    """Locate every apply-each loop with its extent, depth and direct action count."""
    nodes = flow.nodes
    enclosing = enclosing_loops(flow)

    starts = [i for i, n in enumerate(nodes) if n.key == APPLY_EACH]
    ends = {}
    stack: List[int] = []
    for index, node in enumerate(nodes):
        if node.key == APPLY_EACH:
            stack.append(index)
        elif node.key == APPLY_EACH_END and stack:
            ends[stack.pop()] = index

    loops = []
    for start in starts:
        end = ends.get(start)
        stop = end if end is not None else len(nodes)
        body = range(start + 1, stop)

        direct = sum(
            1 for i in body
            if nodes[i].type == NodeType.ACTION and enclosing[i] == start
        )
        descendants = tuple(i for i in body if nodes[i].key == APPLY_EACH)

        depth = 0
        parent = enclosing[start]
        while parent is not None:
            depth += 1
            parent = enclosing[parent]

        loops.append(LoopView(
            index=start,
            node=nodes[start],
            end_index=end,
            depth=depth,
            parent_index=enclosing[start],
            direct_actions=direct,
            descendants=descendants,
        ))
    return loops


def adjacent_pairs(flow: Flow, first_key: str, second_key: str) -> List[int]:
    """Indices i where nodes[i] has `first_key` and nodes[i + 1] has `second_key`."""
    nodes = flow.nodes
    return [
        i for i in range(len(nodes) - 1)
        if nodes[i].key == first_key and nodes[i + 1].key == second_key
    ]


def preceded_by(flow: Flow, index: int, match: Callable[[Node], bool], window: int) -> bool:
    """True if any of the `window` nodes before `index` satisfies `match`."""
    start = max(0, index - window)
    return any(match(n) for n in flow.nodes[start:index])


def has_filtered_source(flow: Flow, index: int, window: int) -> bool:
    return preceded_by(flow, index, lambda n: n.key == GET_ITEMS and bool(n.setting("filterQuery")), window)


def has_select_before(flow: Flow, index: int, window: int) -> bool:
    return preceded_by(flow, index, lambda n: n.key == SELECT, window)

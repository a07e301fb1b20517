""" Data models for flow representation """

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..errors import InvalidFlow


class NodeType(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CONTROL = "control"


@dataclass(frozen=True)
class Node:
    key: str
    type: NodeType
    config: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    id: str = ""
    position: int = 0
    name: str = ""
    category: str = ""
    has_lookups: bool = False

    def setting(self, name: str, default: Any = None) -> Any:
        """ Read a kind-specific setting; absent config counts as not configured. """
        return (self.config or {}).get(name, default)

    def tag(self, name: str, default: Any = None) -> Any:
        """ Read a value from the node's data mapping (e.g. 'licence'). """
        return (self.data or {}).get(name, default)

    @property
    def is_premium(self) -> bool:
        return self.tag("licence") == "Premium"


@dataclass(frozen=True)
class Flow:
    name: str
    nodes: Optional[Tuple[Node, ...]] = None
    description: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    has_loop_prevention: bool = False

    def __post_init__(self):
        if self.nodes is None:
            raise InvalidFlow(f"Flow '{self.name}' has no 'nodes'")
        if isinstance(self.nodes, (str, bytes, dict)):
            raise InvalidFlow(f"Flow '{self.name}' nodes must be a sequence of Node")
        try:
            nodes = tuple(self.nodes)
        except TypeError:
            raise InvalidFlow(f"Flow '{self.name}' nodes must be a sequence of Node")
        for node in nodes:
            if not isinstance(node, Node):
                raise InvalidFlow(f"Flow '{self.name}' contains a non-Node entry: {node!r}")
        object.__setattr__(self, "nodes", nodes)
        object.__setattr__(self, "config", dict(self.config or {}))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    def setting(self, name: str, default: Any = None) -> Any:
        return self.config.get(name, default)

    def nodes_with_key(self, *keys: str) -> Tuple[Node, ...]:
        return tuple(n for n in self.nodes if n.key in keys)

    def has_key(self, *keys: str) -> bool:
        return any(n.key in keys for n in self.nodes)

    def count(self, node_type: NodeType) -> int:
        return sum(1 for n in self.nodes if n.type == node_type)

    def first(self, key: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.key == key), None)


def as_count(value: Any, minimum: int = 0) -> Optional[int]:
    """Read a count from flow settings; anything that is not a whole number is unknown."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int) or value < minimum:
        return None
    return value

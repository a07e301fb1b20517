""" Load and validate a Flow from YAML/JSON text or a parsed mapping. """

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from ..catalog import connectors
from ..errors import InvalidFlow
from .models import Flow, Node, NodeType
from .schema import NodeSpec, validate_flow

logger = logging.getLogger(__name__)


def load_flow(text: str, *, tag_licences: bool = False) -> Flow:
    """
    Load a Flow from a YAML (or JSON) string.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidFlow(f"Flow is not valid YAML/JSON: {e}") from e
    return flow_from_dict(data, tag_licences=tag_licences)


def load_flow_file(path: Union[str, Path], *, tag_licences: bool = False) -> Flow:
    with open(path, "r") as f:
        return load_flow(f.read(), tag_licences=tag_licences)


def flow_from_dict(data: Any, *, tag_licences: bool = False) -> Flow:
    """
    Build a Flow from a parsed mapping.

    Missing node ids, positions, names, categories and types are filled in
    from the node's index and the connector catalog. With `tag_licences`,
    nodes without a `data.licence` tag also get the catalog's licence tier,
    the way the flow builder tags nodes as they are dropped on the canvas.
    """
    spec = validate_flow(data)

    nodes = [_build_node(node_spec, index, tag_licences) for index, node_spec in enumerate(spec.nodes)]
    flow = Flow(
        name=spec.name,
        description=spec.description or "",
        nodes=tuple(nodes),
        config=spec.config,
        metadata=spec.metadata,
        has_loop_prevention=spec.has_loop_prevention,
    )
    logger.debug("Loaded flow '%s' with %d nodes", flow.name, len(flow.nodes))
    return flow


def ensure_flow(flow: Union[Flow, Mapping[str, Any]]) -> Flow:
    """Accept a Flow or a raw mapping; anything else is a contract violation."""
    if isinstance(flow, Flow):
        return flow
    if isinstance(flow, Mapping):
        return flow_from_dict(dict(flow))
    raise InvalidFlow(f"Expected a Flow with 'nodes', got {type(flow).__name__}")


def _build_node(spec: NodeSpec, index: int, tag_licences: bool) -> Node:
    connector = connectors.lookup(spec.key, spec.type)

    node_type = spec.type or (connector.kind if connector else None)
    if node_type is None:
        node_type = "control" if spec.key.startswith("control-") else "action"

    data: Dict[str, Any] = dict(spec.data or {})
    if tag_licences and connector and "licence" not in data:
        data["licence"] = connector.licence

    return Node(
        key=spec.key,
        type=NodeType(node_type),
        config=dict(spec.config or {}),
        data=data,
        id=str(spec.id) if spec.id is not None else f"node-{index + 1}",
        position=spec.position if spec.position is not None else index,
        name=spec.name or (connector.name if connector else spec.key),
        category=spec.category or (connector.category if connector else ""),
        has_lookups=spec.has_lookups,
    )

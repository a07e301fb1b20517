"""Tests for flow loading and the Flow model."""

import pytest

from flow_advisor.errors import InvalidFlow
from flow_advisor.flow.loader import ensure_flow, flow_from_dict, load_flow, load_flow_file
from flow_advisor.flow.models import Flow, Node, NodeType


def test_load_flow_from_valid_yaml():
    """Test loading a flow from YAML fills ids, positions and catalog details."""
    yaml_text = """
name: HR-Leave-Request
description: Leave requests
config: { licence: Standard, runsPerDay: 20 }
nodes:
  - key: forms-response-submitted
    type: trigger
  - key: sharepoint-get-items
    config: { filterQuery: "Status eq 'New'" }
  - key: control-apply-each
  - key: custom-connector-call
"""
    flow = load_flow(yaml_text)

    assert flow.name == "HR-Leave-Request"
    assert flow.setting("runsPerDay") == 20
    assert len(flow.nodes) == 4
    assert [n.id for n in flow.nodes] == ["node-1", "node-2", "node-3", "node-4"]
    assert [n.position for n in flow.nodes] == [0, 1, 2, 3]

    get_items = flow.nodes[1]
    assert get_items.type == NodeType.ACTION
    assert get_items.name == "Get items"
    assert get_items.category == "SharePoint"
    assert get_items.setting("filterQuery") == "Status eq 'New'"

    assert flow.nodes[2].type == NodeType.CONTROL
    assert flow.nodes[3].type == NodeType.ACTION
    assert flow.nodes[3].category == ""


def test_trigger_type_inferred_from_catalog():
    """Test that trigger-only keys become trigger nodes without an explicit type."""
    flow = flow_from_dict({"name": "f", "nodes": [{"key": "recurrence"}, {"key": "http-request"}]})

    assert flow.nodes[0].type == NodeType.TRIGGER
    # http-request is both a trigger and an action; without a type it is an action
    assert flow.nodes[1].type == NodeType.ACTION


def test_licence_tags_only_when_requested():
    """Test that catalog licences are applied only with tag_licences."""
    data = {"name": "f", "nodes": [{"key": "sql-get-rows"}, {"key": "teams-post-message"}]}

    untagged = flow_from_dict(data)
    assert untagged.nodes[0].tag("licence") is None

    tagged = flow_from_dict(data, tag_licences=True)
    assert tagged.nodes[0].is_premium
    assert tagged.nodes[1].tag("licence") == "Standard"


def test_explicit_licence_tag_is_kept():
    """Test that a licence in the node data wins over the catalog."""
    data = {"name": "f", "nodes": [{"key": "sql-get-rows", "data": {"licence": "Standard"}}]}
    flow = flow_from_dict(data, tag_licences=True)
    assert not flow.nodes[0].is_premium


def test_missing_nodes_rejected():
    """Test that a flow without nodes raises InvalidFlow."""
    with pytest.raises(InvalidFlow, match="nodes"):
        load_flow("name: no_nodes\ndescription: nothing here\n")


def test_malformed_nodes_rejected():
    """Test that nodes which are not a list of mappings raise InvalidFlow."""
    with pytest.raises(InvalidFlow, match="validation error"):
        flow_from_dict({"name": "f", "nodes": 5})


def test_unknown_node_type_rejected():
    """Test that node types outside trigger/action/control are rejected."""
    with pytest.raises(InvalidFlow, match="node type"):
        flow_from_dict({"name": "f", "nodes": [{"key": "recurrence", "type": "loop"}]})


def test_invalid_yaml_rejected():
    """Test that unparsable text raises InvalidFlow."""
    with pytest.raises(InvalidFlow, match="not valid YAML"):
        load_flow("nodes: [unclosed")


def test_non_mapping_document_rejected():
    """Test that a YAML list is not accepted as a flow."""
    with pytest.raises(InvalidFlow, match="mapping"):
        load_flow("- key: recurrence\n")


def test_flow_requires_node_sequence():
    """Test the Flow constructor contract."""
    with pytest.raises(InvalidFlow):
        Flow(name="no nodes")
    with pytest.raises(InvalidFlow):
        Flow(name="string nodes", nodes="recurrence")
    with pytest.raises(InvalidFlow):
        Flow(name="dict entries", nodes=[{"key": "recurrence"}])


def test_flow_nodes_are_immutable():
    """Test that node order cannot be changed after construction."""
    nodes = [Node(key="recurrence", type=NodeType.TRIGGER)]
    flow = Flow(name="f", nodes=nodes)
    nodes.append(Node(key="data-compose", type=NodeType.ACTION))

    assert isinstance(flow.nodes, tuple)
    assert len(flow.nodes) == 1


def test_missing_settings_read_as_none():
    """Test that absent config and data read as None instead of raising."""
    node = Node(key="sharepoint-get-items", type=NodeType.ACTION, config=None, data=None)
    assert node.setting("filterQuery") is None
    assert node.tag("licence") is None
    assert not node.is_premium


def test_ensure_flow():
    """Test that ensure_flow accepts a Flow or a mapping and nothing else."""
    flow = flow_from_dict({"name": "f", "nodes": []})
    assert ensure_flow(flow) is flow
    assert ensure_flow({"name": "g", "nodes": []}).name == "g"

    with pytest.raises(InvalidFlow, match="Expected a Flow"):
        ensure_flow(42)


def test_load_flow_file(tmp_path):
    """Test loading a flow from a file on disk."""
    path = tmp_path / "flow.yaml"
    path.write_text("name: from-file\nnodes:\n  - key: recurrence\n")

    flow = load_flow_file(path)
    assert flow.name == "from-file"
    assert flow.nodes[0].type == NodeType.TRIGGER


def test_camel_case_flags():
    """Test that builder export keys map onto the model."""
    flow = flow_from_dict({
        "name": "f",
        "hasLoopPrevention": True,
        "nodes": [{"key": "sharepoint-get-items", "hasLookups": True, "icon": "ignored"}],
    })
    assert flow.has_loop_prevention
    assert flow.nodes[0].has_lookups

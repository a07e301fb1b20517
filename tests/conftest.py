import pytest

from flow_advisor.flow.loader import flow_from_dict


def _node(entry):
    if isinstance(entry, str):
        return {"key": entry}
    return dict(entry)


@pytest.fixture
def make_flow():
    """
    Build a Flow from node keys (or node dicts) plus flow-level fields:
    make_flow("recurrence", {"key": "sharepoint-get-items", "config": {...}}, name="x")
    """
    def _make(*nodes, **fields):
        data = {"name": "test-flow", **fields, "nodes": [_node(n) for n in nodes]}
        return flow_from_dict(data)
    return _make

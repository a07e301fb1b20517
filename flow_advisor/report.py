""" Convert a FlowReport into plain JSON/YAML-friendly data. """

import dataclasses
import math
from enum import Enum
from typing import Any, Dict

from .advisor import FlowReport
from .analysis.impact import ImpactResult
from .analysis.throttling import ConnectorThrottling

# Derived properties worth exporting alongside the dataclass fields
EXTRA_PROPERTIES = {
    ImpactResult: ("estimated",),
    ConnectorThrottling: ("title", "description"),
}


def to_plain(value: Any) -> Any:
    """
    Recursively turn dataclasses, enums and tuples into dicts, strings and
    lists. Callables (rule predicates, policy checks) are dropped and NaN
    becomes None so the result is valid JSON.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out: Dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if callable(item) and not isinstance(item, type):
                continue
            out[f.name] = to_plain(item)
        for name in EXTRA_PROPERTIES.get(type(value), ()):
            out[name] = to_plain(getattr(value, name))
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def report_to_dict(report: FlowReport) -> Dict[str, Any]:
    return to_plain(report)

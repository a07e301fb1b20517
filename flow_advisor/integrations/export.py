import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..advisor import FlowAdvisor
from ..config import AdvisorSettings
from ..flow.loader import load_flow
from ..report import report_to_dict

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def dump_report(data: Dict[str, Any], fmt: str = "json") -> str:
    """Serialise a plain report dict as JSON or YAML text."""
    if fmt == "json":
        return json.dumps(data, indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False)
    raise ValueError(f"Unsupported report format: {fmt}")


def flow_file_to_report(flow_path: Union[str, Path], out_path: Union[str, Path], *,
                        settings: Optional[AdvisorSettings] = None,
                        tag_licences: bool = False) -> Dict[str, Any]:
    """
    Load a YAML/JSON flow file, analyse it, and write the report.

    The output format follows the suffix of `out_path`: .yaml/.yml writes
    YAML, anything else writes JSON.
    """
    flow_path = Path(flow_path)
    out_path = Path(out_path)

    flow = load_flow(flow_path.read_text(), tag_licences=tag_licences)
    report = FlowAdvisor(settings).analyse(flow)
    data = report_to_dict(report)

    fmt = "yaml" if out_path.suffix.lower() in YAML_SUFFIXES else "json"
    out_path.write_text(dump_report(data, fmt))
    logger.info("Wrote %s report for '%s' to %s", fmt, flow.name, out_path)
    return data

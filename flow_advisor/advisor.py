"""
Flow advisor: runs every analyser over one flow and bundles the results.

Each analyser is independent and can be called on its own; the advisor only
collects their output into a single FlowReport.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .analysis.compliance import ComplianceResult, check_compliance
from .analysis.cost import CostResult, LicensingComparison, Scenario, calculate_scenarios, compare_options
from .analysis.impact import LoopAnalysis, analyse_loops
from .analysis.patterns import OptimisationSuggestion, get_suggestions
from .analysis.performance import PerformanceReport, analyse_bottlenecks
from .analysis.throttling import ConnectorThrottling, assess_connector_throttling
from .analysis.validation import ValidationResult, validate
from .config import AdvisorSettings, get_settings
from .flow.loader import ensure_flow
from .flow.models import Flow, as_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowReport:
    flow_name: str
    node_count: int
    validation: ValidationResult
    compliance: ComplianceResult
    loops: List[LoopAnalysis]
    costs: Dict[str, CostResult]
    licensing: LicensingComparison
    suggestions: List[OptimisationSuggestion]
    performance: PerformanceReport
    throttling: List[ConnectorThrottling]
    generated_at: float = field(default_factory=time.time)


class FlowAdvisor:
    """
    Runs validation, compliance, loop impact, cost, pattern, performance and
    throttling analysis with one shared set of settings. `analysis_log` holds
    the messages of the most recent `analyse` call.
    """

    def __init__(self, settings: Optional[AdvisorSettings] = None):
        self.settings = settings or get_settings()
        self.analysis_log: List[Dict[str, Any]] = []

    def analyse(self, flow: Union[Flow, Mapping[str, Any]],
                scenarios: Optional[Iterable[Scenario]] = None) -> FlowReport:
        flow = ensure_flow(flow)
        settings = self.settings
        self.analysis_log = []
        self._log(f"Analysing flow '{flow.name}' ({len(flow.nodes)} nodes)")

        validation = validate(flow, settings=settings)
        self._log(f"Validation score {validation.score} ({validation.grade.letter}), "
                  f"{len(validation.critical)} critical issue(s)")

        compliance = check_compliance(flow, settings=settings)
        self._log(f"Compliance score {compliance.score}, compliant={compliance.compliant}")

        loops = analyse_loops(flow, settings=settings)
        if loops:
            worst = max(loops, key=lambda loop: loop.impact.single_run_api_calls)
            self._log(f"{len(loops)} loop(s); worst makes {worst.impact.single_run_api_calls} calls per run")

        costs = calculate_scenarios(flow, scenarios, settings=settings)
        users = as_count(flow.setting("users"), minimum=1) or 1
        licensing = compare_options(flow, users, settings=settings)

        report = FlowReport(
            flow_name=flow.name,
            node_count=len(flow.nodes),
            validation=validation,
            compliance=compliance,
            loops=loops,
            costs=costs,
            licensing=licensing,
            suggestions=get_suggestions(flow),
            performance=analyse_bottlenecks(flow, settings=settings),
            throttling=assess_connector_throttling(flow, settings=settings),
        )
        self._log(f"Report ready: {len(report.suggestions)} suggestion(s), "
                  f"{len(report.performance.bottlenecks)} bottleneck(s), "
                  f"{len(report.throttling)} throttling risk(s)")
        return report

    def _log(self, message: str):
        """Add a message to the analysis log."""
        self.analysis_log.append({"timestamp": time.time(), "message": message})
        logger.info(message)

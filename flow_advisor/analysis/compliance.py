""" Governance/compliance checker. """

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..config import AdvisorSettings, get_settings
from ..flow.loader import ensure_flow
from ..flow.models import Flow
from ..rules.models import Policy, PolicySeverity
from ..rules.policies import POLICIES
from .validation import run_check

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplianceResult:
    compliant: bool
    violations: List[Policy]
    warnings: List[Policy]
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compliant": self.compliant,
            "violations": [p.to_dict() for p in self.violations],
            "warnings": [p.to_dict() for p in self.warnings],
            "score": self.score,
        }


def check_compliance(flow: Union[Flow, Mapping[str, Any]], *,
                     settings: Optional[AdvisorSettings] = None,
                     policies: Optional[Iterable[Policy]] = None) -> ComplianceResult:
    """
    Evaluate every governance policy. Failed high-severity policies are
    violations and make the flow non-compliant; other failures are warnings.
    """
    flow = ensure_flow(flow)
    scoring = (settings or get_settings()).scoring
    catalog = list(policies) if policies is not None else list(POLICIES)

    violations: List[Policy] = []
    warnings: List[Policy] = []
    score = 100
    for entry in catalog:
        if run_check(entry.id, entry.check, flow):
            continue
        logger.debug("Policy '%s' failed on flow '%s'", entry.id, flow.name)
        if entry.severity == PolicySeverity.HIGH:
            violations.append(entry)
            score -= scoring.violation_penalty
        else:
            warnings.append(entry)
            score -= scoring.policy_warning_penalty

    return ComplianceResult(
        compliant=not violations,
        violations=violations,
        warnings=warnings,
        score=max(0, score),
    )

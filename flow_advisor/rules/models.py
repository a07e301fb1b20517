""" Rule and policy records held by the catalogs. """

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..flow.models import Flow


class Severity(str, Enum):
    """Validation tiers, in evaluation order."""
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class PolicySeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Rule:
    """
    A validation check. `predicate` returns True when the flow HAS the issue.
    """
    id: str
    severity: Severity
    predicate: Callable[[Flow], bool]
    message: str
    fix: str
    impact: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "message": self.message,
            "fix": self.fix,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class Policy:
    """
    A governance policy. `check` returns True when the flow COMPLIES.
    """
    id: str
    name: str
    severity: PolicySeverity
    check: Callable[[Flow], bool]
    requirement: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "severity": self.severity.value,
            "requirement": self.requirement,
        }

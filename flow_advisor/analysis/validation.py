""" Validation engine: runs the rule catalog and scores the flow. """

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..config import AdvisorSettings, ScoringSettings, get_settings
from ..errors import RuleEvaluationError
from ..flow.loader import ensure_flow
from ..flow.models import Flow
from ..rules.models import Rule, Severity
from ..rules.validation_rules import VALIDATION_RULES

logger = logging.getLogger(__name__)

TIER_ORDER = (Severity.CRITICAL, Severity.WARNING, Severity.SUGGESTION)


@dataclass(frozen=True)
class Grade:
    letter: str
    label: str
    colour: str


@dataclass(frozen=True)
class ValidationResult:
    critical: List[Rule]
    warnings: List[Rule]
    suggestions: List[Rule]
    score: int
    grade: Grade

    @property
    def rule_ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self.critical + self.warnings + self.suggestions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "critical": [r.to_dict() for r in self.critical],
            "warnings": [r.to_dict() for r in self.warnings],
            "suggestions": [r.to_dict() for r in self.suggestions],
            "score": self.score,
            "grade": {"letter": self.grade.letter, "label": self.grade.label, "colour": self.grade.colour},
        }


def grade_for(score: int, scoring: Optional[ScoringSettings] = None) -> Grade:
    scoring = scoring or get_settings().scoring
    for minimum, letter, label, colour in scoring.grades:
        if score >= minimum:
            return Grade(letter, label, colour)
    letter, label, colour = scoring.failing_grade
    return Grade(letter, label, colour)


def run_check(entry_id: str, check, flow: Flow) -> bool:
    """
    Run one catalog predicate. A predicate that raises is a catalog bug, so
    the whole run is aborted rather than reporting a false negative.
    """
    try:
        return bool(check(flow))
    except Exception as e:
        raise RuleEvaluationError(entry_id, f"{type(e).__name__}: {e}") from e


def validate(flow: Union[Flow, Mapping[str, Any]], *,
             settings: Optional[AdvisorSettings] = None,
             rules: Optional[Iterable[Rule]] = None) -> ValidationResult:
    """
    Evaluate every validation rule against the flow.

    Tiers are checked critical -> warning -> suggestion; each hit deducts its
    tier penalty from a score that starts at 100 and is clamped to [0, 100].
    """
    flow = ensure_flow(flow)
    scoring = (settings or get_settings()).scoring
    catalog = list(rules) if rules is not None else list(VALIDATION_RULES)
    penalties = {
        Severity.CRITICAL: scoring.critical_penalty,
        Severity.WARNING: scoring.warning_penalty,
        Severity.SUGGESTION: scoring.suggestion_penalty,
    }

    hits: Dict[Severity, List[Rule]] = {tier: [] for tier in TIER_ORDER}
    score = 100
    for tier in TIER_ORDER:
        for entry in catalog:
            if entry.severity != tier:
                continue
            if run_check(entry.id, entry.predicate, flow):
                logger.debug("Rule '%s' (%s) triggered on flow '%s'", entry.id, tier.value, flow.name)
                hits[tier].append(entry)
                score -= penalties[tier]

    score = max(0, min(100, score))
    return ValidationResult(
        critical=hits[Severity.CRITICAL],
        warnings=hits[Severity.WARNING],
        suggestions=hits[Severity.SUGGESTION],
        score=score,
        grade=grade_for(score, scoring),
    )

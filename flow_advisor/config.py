"""
Settings for the flow advisor.

Every number the analysers use (penalties, licence prices, throttling limits,
defaults for unknown loop sizes) lives here so a deployment can adjust them
from a YAML file without touching the rule catalog.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

CONFIG_ENV_VAR = "FLOW_ADVISOR_CONFIG"


class ScoringSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    critical_penalty: int = 25
    warning_penalty: int = 10
    suggestion_penalty: int = 5

    violation_penalty: int = 20  # failed high-severity policy
    policy_warning_penalty: int = 10

    # (minimum score, letter, label, colour token), checked top to bottom
    grades: tuple = (
        (90, "A", "Excellent", "#107c10"),
        (80, "B", "Good", "#40e0d0"),
        (70, "C", "Fair", "#ff8c00"),
        (60, "D", "Poor", "#ff8c00"),
    )
    failing_grade: tuple = ("F", "Critical Issues", "#d13438")


class LicensingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    currency: str = "GBP"
    per_user_cost: float = 12.20
    per_flow_cost: float = 81.90
    hosted_rpa_cost: float = 118.60

    # Premium flows switch to per-flow licensing above either threshold
    per_flow_user_threshold: int = 7
    per_flow_runs_threshold: int = 1000

    ppr_ceiling: int = 250_000  # monthly Power Platform requests per flow
    standard_call_allowance: int = 40_000  # monthly calls before Premium/Process is needed
    ai_tokens_per_call: int = 500
    ai_price_per_k_tokens: float = 0.01

    delay_cost_per_hour: float = 50.0


class ImpactSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    default_item_count: int = 100
    default_actions_in_loop: int = 3
    default_nested_item_count: int = 50
    default_nested_actions: int = 2
    default_daily_runs: int = 10

    sequential_call_seconds: float = 1.5
    parallel_call_seconds: float = 0.5

    medium_risk_calls_per_minute: int = 100
    high_risk_calls_per_minute: int = 200
    critical_risk_calls_per_minute: int = 300

    warning_call_threshold: int = 100
    filter_item_threshold: int = 100
    batch_action_threshold: int = 3
    enable_concurrency_call_threshold: int = 50
    max_safe_concurrency: int = 50
    architecture_call_threshold: int = 1000

    # Per-loop severity in analyse_loops
    critical_loop_calls: int = 500
    high_loop_calls: int = 100

    # Expected effect of filtering + batching, used for before/after projections
    optimised_call_ratio: float = 0.1
    optimised_time_ratio: float = 0.2

    # How many preceding nodes are searched for a filtered source or a Select
    source_lookback_window: int = Field(default=5, ge=1)


class AdvisorSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    licensing: LicensingSettings = Field(default_factory=LicensingSettings)
    impact: ImpactSettings = Field(default_factory=ImpactSettings)


def settings_from_mapping(raw: Optional[Dict[str, Any]]) -> AdvisorSettings:
    """Validate a raw mapping (e.g. parsed YAML) into AdvisorSettings."""
    try:
        return AdvisorSettings.model_validate(raw or {})
    except ValidationError as e:
        raise ValueError(f"Invalid advisor settings: {e}") from e


def load_settings(path: Optional[Union[str, Path]] = None) -> AdvisorSettings:
    """
    Load settings from a YAML file.

    Falls back to the FLOW_ADVISOR_CONFIG environment variable, and to the
    built-in defaults when neither is set.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    if not path:
        return AdvisorSettings()

    with open(path, "r") as f:
        raw = yaml.safe_load(f)
    return settings_from_mapping(raw)


_default_settings: Optional[AdvisorSettings] = None


def get_settings() -> AdvisorSettings:
    """Get or create the process-wide default settings."""
    global _default_settings
    if _default_settings is None:
        _default_settings = load_settings()
    return _default_settings

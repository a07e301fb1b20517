from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InvalidFlow, InvalidLoopConfig

NODE_TYPES = ("trigger", "action", "control")


class NodeSpec(BaseModel):
    # Flow builder exports carry UI-only keys (icons, coordinates); ignore them
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: str
    type: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    data: Optional[Dict[str, Any]] = None
    id: Optional[Union[str, int]] = None
    position: Optional[int] = None
    name: Optional[str] = None
    category: Optional[str] = None
    has_lookups: bool = Field(default=False, alias="hasLookups")

    @field_validator("type")
    @classmethod
    def _known_type(cls, value):
        if value is not None and value not in NODE_TYPES:
            raise ValueError(f"node type must be one of {NODE_TYPES}, got '{value}'")
        return value


class FlowSpec(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    description: Optional[str] = None
    nodes: List[NodeSpec]
    config: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    has_loop_prevention: bool = Field(default=False, alias="hasLoopPrevention")


class NestedLoopSpec(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item_count: Optional[int] = Field(default=None, alias="itemCount", ge=0)
    actions_in_loop: Optional[int] = Field(default=None, alias="actionsInLoop", ge=0)


class LoopConfigSpec(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item_count: Optional[int] = Field(default=None, alias="itemCount", ge=0)
    actions_in_loop: Optional[int] = Field(default=None, alias="actionsInLoop", ge=0)
    nested_loops: List[NestedLoopSpec] = Field(default_factory=list, alias="nestedLoops")
    concurrency: int = Field(default=1, ge=1)
    daily_runs: int = Field(default=10, alias="dailyRuns", ge=0)
    has_filter: bool = Field(default=False, alias="hasFilter")
    has_select: bool = Field(default=False, alias="hasSelect")


def validate_flow(raw: Any) -> FlowSpec:
    """Validate a raw flow mapping (parsed YAML/JSON) against FlowSpec."""
    if not isinstance(raw, dict):
        raise InvalidFlow(f"Flow must be a mapping, got {type(raw).__name__}")
    if raw.get("nodes") is None:
        raise InvalidFlow("Flow is missing required field: nodes")
    try:
        return FlowSpec.model_validate(raw)
    except ValidationError as e:
        raise InvalidFlow(f"Flow validation error: {e}") from e


def validate_loop_config(raw: Any) -> LoopConfigSpec:
    """Validate a raw loop configuration mapping."""
    if not isinstance(raw, dict):
        raise InvalidLoopConfig(f"Loop configuration must be a mapping, got {type(raw).__name__}")
    try:
        return LoopConfigSpec.model_validate(raw)
    except ValidationError as e:
        raise InvalidLoopConfig(f"Loop configuration error: {e}") from e

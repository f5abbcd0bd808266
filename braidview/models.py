"""Pydantic models for braidview."""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkTransition(str, Enum):
    DECREASE = "decrease"
    PLATEAU = "plateau"
    INCREASE = "increase"


class CohortTransitionType(str, Enum):
    SAME = "same"
    NEXT = "next"
    BACKWARD = "backward"
    LEAP = "leap"


class RevealStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"


class NodeRole(str, Enum):
    GENESIS = "genesis"
    TIP = "tip"
    CRITICAL = "critical"
    NON_CRITICAL = "non_critical"


class EdgeKind(str, Enum):
    CRITICAL = "critical"  # consecutive nodes on the highest-work path
    FROM_CRITICAL = "from_critical"
    COHORT = "cohort"


# --- Input ---


def _as_id(value: Any) -> str:
    return str(value)


class Braid(BaseModel):
    """A braid as loaded from a braid JSON file.

    Node ids are normalized to strings; some braid files write them as
    integers. Unknown top-level keys are kept.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    description: str = ""
    parents: dict[str, list[str]] = Field(default_factory=dict)
    cohorts: list[list[str]] = Field(default_factory=list)
    work: dict[str, float] | None = None
    bead_work: dict[str, float] | None = None
    highest_work_path: list[str] = Field(default_factory=list)

    @field_validator("parents", mode="before")
    @classmethod
    def _normalize_parents(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {_as_id(k): [_as_id(p) for p in (ps or [])] for k, ps in v.items()}
        return v

    @field_validator("cohorts", mode="before")
    @classmethod
    def _normalize_cohorts(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [[_as_id(n) for n in cohort] for cohort in v]
        return v

    @field_validator("work", "bead_work", mode="before")
    @classmethod
    def _normalize_work(cls, v: Any) -> Any:
        # null work is treated as absent: it reads as zero and shows up in missing_work
        if isinstance(v, dict):
            return {_as_id(k): w for k, w in v.items() if w is not None}
        return v

    @field_validator("highest_work_path", mode="before")
    @classmethod
    def _normalize_path(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_as_id(n) for n in v]
        return v


# --- Graph accessor output ---


class ConnectionMap(BaseModel):
    parents: list[str]
    children: list[str]
    siblings: list[str]
    grandparents: list[str]
    grandchildren: list[str]


class IntegrityReport(BaseModel):
    """Malformed-input findings. Diagnostic only, nothing here is fatal."""
    missing_parents_entry: list[str] = Field(default_factory=list)
    missing_cohort: list[str] = Field(default_factory=list)
    multiple_cohorts: list[str] = Field(default_factory=list)
    undefined_parents: list[str] = Field(default_factory=list)
    missing_work: list[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (
            self.missing_parents_entry
            or self.missing_cohort
            or self.multiple_cohorts
            or self.undefined_parents
            or self.missing_work
        )


# --- Path analysis ---


class WorkAnomaly(BaseModel):
    index: int  # position of the later node in the offending pair
    type: WorkTransition


class WorkPathAnalysis(BaseModel):
    is_strictly_decreasing: bool
    anomalies: list[WorkAnomaly] = Field(default_factory=list)


class CohortTransition(BaseModel):
    from_node: str
    from_cohort: int
    to_node: str
    to_cohort: int
    is_valid: bool
    type: CohortTransitionType


class CohortTransitionAnalysis(BaseModel):
    transitions: list[CohortTransition] = Field(default_factory=list)

    @property
    def invalid(self) -> list[CohortTransition]:
        return [t for t in self.transitions if not t.is_valid]


class CohortColumns(BaseModel):
    """Highest-work path nodes grouped by cohort."""
    max_cohort: int
    columns: dict[int, list[str]]


# --- Layout ---


class NodeCoordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    offset_x: float = 0.0  # cosmetic horizontal arc component, never part of x

    @property
    def cell(self) -> tuple[int, int]:
        return grid_cell(self.x, self.y)


def grid_cell(x: float, y: float) -> tuple[int, int]:
    """Integer cell used for overlap checks. Halves round up."""
    return (math.floor(x + 0.5), math.floor(y + 0.5))


# --- Reveal ---


class RevealEvent(BaseModel):
    """Emitted each time the reveal controller shows a node."""
    node_id: str
    cohort: int
    work: float
    parents_count: int
    parent_ids: list[str]
    edges_revealed: list[tuple[str, str]]
    cursor: int
    total: int


class RevealState(BaseModel):
    status: RevealStatus
    cursor: int
    total: int
    animation_speed: int
    visible_nodes: list[str]
    revealed_edges: list[tuple[str, str]]
    pending_edges: list[tuple[str, str]]
    animating_edges: list[tuple[str, str]]


# --- Catalog / session ---


class BraidEntry(BaseModel):
    name: str
    filename: str


class BraidSnapshot(BaseModel):
    """Everything derived from one braid. Rebuilt in full on every load."""
    model_config = ConfigDict(frozen=True)

    braid_name: str
    description: str
    node_count: int
    edge_count: int
    highest_work_path: list[str]
    node_coordinates: dict[str, NodeCoordinate]
    work_path_analysis: WorkPathAnalysis | None
    cohort_analysis: CohortTransitionAnalysis | None
    cohort_columns: CohortColumns | None
    non_critical_nodes_by_cohort: dict[int, list[str]]
    parents_count: dict[str, int]
    hubs: list[str]
    integrity: IntegrityReport

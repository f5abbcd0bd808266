"""Highest-work path diagnostics: work monotonicity and cohort transitions.

Anomalies are reported, never raised. A malformed braid still gets a full
report so the caller can flag the offending nodes.
"""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from braidview.models import (
    CohortColumns,
    CohortTransition,
    CohortTransitionAnalysis,
    CohortTransitionType,
    WorkAnomaly,
    WorkPathAnalysis,
    WorkTransition,
)

logger = logging.getLogger(__name__)

WorkLookup = Callable[[str], float] | Mapping[str, float]
CohortLookup = Callable[[str], int] | Mapping[str, int]


def _work_fn(lookup: WorkLookup) -> Callable[[str], float]:
    if isinstance(lookup, Mapping):
        return lambda node: lookup.get(node, 0)
    return lookup


def _cohort_fn(lookup: CohortLookup) -> Callable[[str], int]:
    if isinstance(lookup, Mapping):
        return lambda node: lookup.get(node, -1)
    return lookup


def classify_work_transition(prev_work: float, work: float) -> WorkTransition:
    if work > prev_work:
        return WorkTransition.INCREASE
    if work == prev_work:
        return WorkTransition.PLATEAU
    return WorkTransition.DECREASE


def classify_cohort_transition(from_cohort: int, to_cohort: int) -> CohortTransitionType:
    if to_cohort == from_cohort:
        return CohortTransitionType.SAME
    if to_cohort == from_cohort + 1:
        return CohortTransitionType.NEXT
    if to_cohort < from_cohort:
        return CohortTransitionType.BACKWARD
    return CohortTransitionType.LEAP


def analyze_work_monotonicity(
    path: Sequence[str],
    work: WorkLookup,
) -> WorkPathAnalysis | None:
    """Check that work strictly decreases along the path.

    Returns None for an empty path. Each anomaly's index is the position of
    the later node in the offending pair.
    """
    if not path:
        return None

    work_of = _work_fn(work)
    values = [work_of(node) for node in path]

    anomalies: list[WorkAnomaly] = []
    for i in range(1, len(values)):
        kind = classify_work_transition(values[i - 1], values[i])
        if kind is not WorkTransition.DECREASE:
            anomalies.append(WorkAnomaly(index=i, type=kind))

    if anomalies:
        logger.info(
            "Highest-work path is not strictly decreasing: %d anomalies", len(anomalies),
        )
    return WorkPathAnalysis(is_strictly_decreasing=not anomalies, anomalies=anomalies)


def analyze_cohort_transitions(
    path: Sequence[str],
    cohort: CohortLookup,
) -> CohortTransitionAnalysis | None:
    """Classify each step of the path by how its cohort index moves.

    Only `same` and `next` are valid. Paths of length <= 1 yield None.
    """
    if len(path) <= 1:
        return None

    cohort_of = _cohort_fn(cohort)
    transitions: list[CohortTransition] = []
    for from_node, to_node in zip(path, path[1:]):
        from_cohort = cohort_of(from_node)
        to_cohort = cohort_of(to_node)
        kind = classify_cohort_transition(from_cohort, to_cohort)
        transitions.append(CohortTransition(
            from_node=from_node,
            from_cohort=from_cohort,
            to_node=to_node,
            to_cohort=to_cohort,
            is_valid=kind in (CohortTransitionType.SAME, CohortTransitionType.NEXT),
            type=kind,
        ))

    result = CohortTransitionAnalysis(transitions=transitions)
    for t in result.invalid:
        logger.info(
            "Invalid cohort transition %s(%d) -> %s(%d): %s",
            t.from_node, t.from_cohort, t.to_node, t.to_cohort, t.type.value,
        )
    return result


def organize_cohort_columns(
    path: Sequence[str],
    cohort: CohortLookup,
    cohorts: Sequence[Iterable[str]],
) -> CohortColumns | None:
    """Group highest-work path nodes by cohort index, in path order."""
    if not path or not cohorts:
        return None

    cohort_of = _cohort_fn(cohort)
    columns: dict[int, list[str]] = {}
    for node in path:
        columns.setdefault(cohort_of(node), []).append(node)

    return CohortColumns(max_cohort=max(len(cohorts) - 1, 0), columns=columns)


def non_critical_by_cohort(
    cohorts: Sequence[Iterable[str]],
    path: Sequence[str],
) -> dict[int, list[str]]:
    """Nodes off the highest-work path, per cohort. Empty cohorts are omitted."""
    critical = set(path)
    result: dict[int, list[str]] = {}
    for index, nodes in enumerate(cohorts):
        off_path = [n for n in nodes if n not in critical]
        if off_path:
            result[index] = off_path
    return result

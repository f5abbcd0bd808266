"""Presentation hints derived from a braid: node roles, work bands, edge kinds, edge curves.

None of this feeds back into layout or analysis.
"""

import logging
import random

from braidview.graph import BraidGraph
from braidview.models import EdgeKind, NodeCoordinate, NodeRole

logger = logging.getLogger(__name__)

WORK_BANDS = 5
COHORT_PALETTE_SIZE = 5


def node_role(graph: BraidGraph, node_id: str) -> NodeRole:
    path = graph.braid.highest_work_path
    if node_id not in path:
        return NodeRole.NON_CRITICAL
    if node_id == path[0]:
        return NodeRole.GENESIS
    if node_id == path[-1]:
        return NodeRole.TIP
    return NodeRole.CRITICAL


def work_band(graph: BraidGraph, node_id: str, nodes: list[str] | None = None) -> int:
    """Work of a node normalized over `nodes` and bucketed into 0..WORK_BANDS-1.

    When every node has the same work the result is the middle band.
    """
    nodes = nodes if nodes is not None else graph.node_ids
    values = [graph.work_of(n) for n in nodes] or [0]
    low, high = min(values), max(values)
    normalized = 0.5 if high == low else (graph.work_of(node_id) - low) / (high - low)
    return min(int(normalized * WORK_BANDS), WORK_BANDS - 1)


def edge_kind(graph: BraidGraph, parent: str, child: str) -> EdgeKind:
    path = graph.braid.highest_work_path
    if parent in path and child in path and path.index(parent) == path.index(child) - 1:
        return EdgeKind.CRITICAL
    if parent in path:
        return EdgeKind.FROM_CRITICAL
    return EdgeKind.COHORT


def edge_palette_index(graph: BraidGraph, parent: str) -> int:
    """Color slot for a cohort edge, cycling by the parent's cohort."""
    return graph.cohort_of(parent) % COHORT_PALETTE_SIZE


class EdgeCurves:
    """SVG path data for edges, with a per-edge random bend remembered for reuse.

    Edges between nodes in the same column are drawn as cubic curves whose
    control points sit 100-200 units to the right; the exact distance is
    random but fixed per edge once drawn. Other edges are straight lines.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._offsets: dict[tuple[str, str], float] = {}

    def offset(self, parent: str, child: str) -> float:
        key = (parent, child)
        if key not in self._offsets:
            self._offsets[key] = self._rng.random()
        return self._offsets[key]

    def path(
        self,
        parent: str,
        child: str,
        coordinates: dict[str, NodeCoordinate],
    ) -> str | None:
        if parent not in coordinates or child not in coordinates:
            logger.debug("No coordinates for edge %s -> %s", parent, child)
            return None

        src = coordinates[parent]
        dst = coordinates[child]
        if src.x == dst.x:
            control_x = src.x + self.offset(parent, child) * 100 + 100
            return (
                f"M{src.x},{src.y} C{control_x},{src.y} "
                f"{control_x},{dst.y} {dst.x},{dst.y}"
            )
        return f"M{src.x},{src.y} L{dst.x},{dst.y}"

    def clear(self) -> None:
        self._offsets.clear()

"""Deterministic 2D layout for braid nodes.

Placement runs in four passes over a working position table:

1. Highest-work path nodes, stacked per cohort from y=0 in path order.
2. Off-path nodes per cohort, heaviest first, alternating above and below
   the critical band.
3. Hub arcs: same-cohort, off-path connections of a hub are spread over a
   semicircle around it.
4. Collision pass: any node landing on an occupied integer cell is pushed
   down until the cell is free.

x is always cohort index * spacing_x. The arc's horizontal component is kept
in NodeCoordinate.offset_x for renderers and ignored everywhere else.
"""

import logging
import math

from braidview.config import LayoutConfig
from braidview.graph import UNKNOWN_COHORT, BraidGraph
from braidview.models import NodeCoordinate, grid_cell

logger = logging.getLogger(__name__)


class _Placement:
    """Mutable working table used while a layout is being computed."""

    def __init__(self) -> None:
        self.y: dict[str, float] = {}
        self.x: dict[str, float] = {}
        self.offset_x: dict[str, float] = {}

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.y

    def put(self, node_id: str, x: float, y: float, offset_x: float = 0.0) -> None:
        # dict keeps first-insertion order, which is the collision processing order
        self.x[node_id] = x
        self.y[node_id] = y
        self.offset_x[node_id] = offset_x


def compute_layout(
    graph: BraidGraph,
    config: LayoutConfig | None = None,
) -> dict[str, NodeCoordinate]:
    """Assign a coordinate to every node in the braid.

    Pure function of the braid: the same graph and config always give the
    same result, in the same key order.
    """
    config = config or LayoutConfig()
    placement = _Placement()

    rows = _place_critical(graph, config, placement)
    _place_non_critical(graph, config, placement, rows)
    _place_unassigned(graph, config, placement, rows)
    _place_hub_arcs(graph, config, placement)
    coordinates = _resolve_collisions(config, placement)

    logger.debug(
        "Layout: %d nodes (%d on highest-work path)",
        len(coordinates), len(set(graph.braid.highest_work_path)),
    )
    return coordinates


def column_x(cohort: int, config: LayoutConfig) -> float:
    return cohort * config.spacing_x


def _place_critical(
    graph: BraidGraph,
    config: LayoutConfig,
    placement: _Placement,
) -> dict[int, float]:
    """Stack path nodes per cohort. Returns the next free row per cohort."""
    rows: dict[int, float] = {}
    for node in dict.fromkeys(graph.braid.highest_work_path):
        cohort = graph.cohort_of(node)
        y = rows.get(cohort, 0.0)
        placement.put(node, column_x(cohort, config), y)
        rows[cohort] = y + config.row_height
        logger.debug("Critical node %s at (%s, %s), cohort %d", node, column_x(cohort, config), y, cohort)
    return rows


def _place_non_critical(
    graph: BraidGraph,
    config: LayoutConfig,
    placement: _Placement,
    rows: dict[int, float],
) -> None:
    for cohort, nodes in enumerate(graph.braid.cohorts):
        pending = [
            n for n in dict.fromkeys(nodes)
            if n not in placement and graph.cohort_of(n) == cohort
        ]
        if not pending:
            continue

        # sorted() is stable, so equal work keeps cohort order
        ranked = sorted(pending, key=lambda n: -graph.work_of(n))
        x = column_x(cohort, config)
        above = -config.row_height
        below = rows.get(cohort) or config.row_height

        for rank, node in enumerate(ranked):
            if rank % 2 == 0:
                placement.put(node, x, above)
                above -= config.row_height
            else:
                placement.put(node, x, below)
                below += config.row_height


def _place_unassigned(
    graph: BraidGraph,
    config: LayoutConfig,
    placement: _Placement,
    rows: dict[int, float],
) -> None:
    """Nodes no cohort lists go in the -1 column below anything already there."""
    orphans = [n for n in graph.node_ids if n not in placement]
    if not orphans:
        return

    logger.warning("%d nodes have no cohort: %s", len(orphans), ", ".join(orphans))
    x = column_x(UNKNOWN_COHORT, config)
    y = rows.get(UNKNOWN_COHORT, 0.0)
    for node in orphans:
        placement.put(node, x, y)
        y += config.row_height
    rows[UNKNOWN_COHORT] = y


def arc_angles(total: int, top_half: bool) -> list[float]:
    """Angles in radians for `total` nodes spread over a hub's arc.

    Top half spans -60..60 degrees, bottom half 120..240. A single node sits
    at 90 degrees.
    """
    if total <= 0:
        return []
    if total == 1:
        return [math.pi / 2]

    start = -math.pi / 3 if top_half else 2 * math.pi / 3
    span = 2 * math.pi / 3
    return [start + span * (i / (total - 1)) for i in range(total)]


def _place_hub_arcs(
    graph: BraidGraph,
    config: LayoutConfig,
    placement: _Placement,
) -> None:
    critical = set(graph.braid.highest_work_path)

    for hub in graph.hubs():
        if hub not in placement:
            continue
        cohort = graph.cohort_of(hub)
        same_cohort = list(dict.fromkeys(
            c for c in graph.connections_of(hub)
            if c in placement and c not in critical and graph.cohort_of(c) == cohort
        ))
        if len(same_cohort) < 2:
            continue

        hub_y = placement.y[hub]
        x = column_x(cohort, config)
        ordered = sorted(same_cohort, key=lambda n: placement.y[n])
        angles = arc_angles(len(ordered), top_half=hub_y > 0)

        for node, angle in zip(ordered, angles):
            y = hub_y + math.sin(angle) * config.hub_radius
            offset_x = math.cos(angle) * config.hub_radius
            placement.put(node, x, y, offset_x)
            logger.debug(
                "Arc node %s around hub %s at y=%.1f, angle %.1f deg",
                node, hub, y, math.degrees(angle),
            )


def _resolve_collisions(
    config: LayoutConfig,
    placement: _Placement,
) -> dict[str, NodeCoordinate]:
    used: dict[tuple[int, int], str] = {}
    coordinates: dict[str, NodeCoordinate] = {}

    for node, y in placement.y.items():
        x = placement.x[node]
        cell = grid_cell(x, y)
        if cell in used:
            original = y
            while cell in used:
                y += config.collision_step
                cell = grid_cell(x, y)
            logger.warning(
                "Overlap: node %s and %s at (%s, %s); moved %s to y=%s",
                node, used[grid_cell(x, original)], x, original, node, y,
            )
        used[cell] = node
        coordinates[node] = NodeCoordinate(x=x, y=y, offset_x=placement.offset_x[node])

    return coordinates


def bounds(
    coordinates: dict[str, NodeCoordinate],
    padding: float = 100.0,
) -> dict[str, float]:
    """Viewport covering every node plus padding, anchored so all nodes are positive."""
    xs = [c.x for c in coordinates.values()] + [0.0]
    ys = [c.y for c in coordinates.values()] + [0.0]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return {
        "width": max_x - min_x + padding * 2,
        "height": max_y - min_y + padding * 2,
        "translate_x": -min_x + padding,
        "translate_y": -min_y + padding,
    }

"""Animated replay of braid construction, one node per tick.

The controller owns at most one scheduled tick. Every transition that
cancels or replaces the tick also bumps a generation counter, and a tick only
commits if it still carries the current generation, so a callback that was
already queued when stop() or reset() ran is discarded instead of reviving
cleared state.

Scheduling goes through any object with asyncio's
``call_later(delay, callback, *args)`` returning a cancellable handle.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence

from braidview.config import RevealConfig
from braidview.graph import BraidGraph
from braidview.models import NodeCoordinate, RevealEvent, RevealState, RevealStatus

logger = logging.getLogger(__name__)

Edge = tuple[str, str]


def default_reveal_order(
    graph: BraidGraph,
    coordinates: dict[str, NodeCoordinate],
) -> list[str]:
    """Layout order, regrouped by cohort so parents tend to appear first.

    Nodes without a cohort come last.
    """
    def key(node: str) -> tuple[int, int]:
        cohort = graph.cohort_of(node)
        return (1, 0) if cohort < 0 else (0, cohort)

    return sorted(coordinates, key=key)


class RevealController:
    """State machine: idle -> running -> {stopped, completed} -> (reset) -> idle."""

    def __init__(
        self,
        graph: BraidGraph,
        order: Sequence[str],
        config: RevealConfig | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        on_reveal: Callable[[RevealEvent], None] | None = None,
    ) -> None:
        self.graph = graph
        self.config = config or RevealConfig()
        self.on_reveal = on_reveal
        self._loop = loop

        self._order = list(dict.fromkeys(order))
        self._all_edges: list[Edge] = graph.edges
        self._parents_count = graph.parents_count
        self._speed = self._clamp(self.config.animation_speed)

        self._status = RevealStatus.IDLE
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._animation_timers: dict[Edge, asyncio.TimerHandle] = {}

        self._cursor = 0
        self._visible: dict[str, None] = {}
        self._revealed: list[Edge] = []
        self._pending: list[Edge] = list(self._all_edges)

    # --- read-only view ---

    @property
    def status(self) -> RevealStatus:
        return self._status

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def total(self) -> int:
        return len(self._order)

    @property
    def animation_speed(self) -> int:
        return self._speed

    @property
    def has_pending_tick(self) -> bool:
        return self._timer is not None

    @property
    def visible_nodes(self) -> set[str]:
        return set(self._visible)

    @property
    def revealed_edges(self) -> list[Edge]:
        return list(self._revealed)

    @property
    def pending_edges(self) -> list[Edge]:
        return list(self._pending)

    @property
    def animating_edges(self) -> set[Edge]:
        return set(self._animation_timers)

    def state(self) -> RevealState:
        return RevealState(
            status=self._status,
            cursor=self._cursor,
            total=self.total,
            animation_speed=self._speed,
            visible_nodes=list(self._visible),
            revealed_edges=list(self._revealed),
            pending_edges=list(self._pending),
            animating_edges=list(self._animation_timers),
        )

    # --- transitions ---

    def start(self) -> bool:
        """Reveal the next node now and schedule the rest.

        Starting a completed run replays it from the beginning. Returns False
        if already running.
        """
        if self._status is RevealStatus.RUNNING:
            logger.debug("start() ignored: already running")
            return False
        if self._status is RevealStatus.COMPLETED:
            self.reset()

        self._cancel_tick()
        self._status = RevealStatus.RUNNING
        generation = self._generation
        logger.info("Reveal started at %d/%d, every %d ms", self._cursor, self.total, self._speed)

        if self._cursor < self.total:
            self._reveal_next()
        if self._still_running(generation):
            self._advance()
        return True

    def stop(self) -> bool:
        """Pause a running reveal. Revealed nodes and edges are kept."""
        if self._status is not RevealStatus.RUNNING:
            return False
        self._cancel_tick()
        self._status = RevealStatus.STOPPED
        logger.info("Reveal stopped at %d/%d", self._cursor, self.total)
        return True

    def reset(self) -> None:
        """Back to idle with nothing revealed. Safe to call from any state."""
        self._cancel_tick()
        for handle in self._animation_timers.values():
            handle.cancel()
        self._animation_timers.clear()

        self._status = RevealStatus.IDLE
        self._cursor = 0
        self._visible.clear()
        self._revealed.clear()
        self._pending = list(self._all_edges)
        logger.debug("Reveal reset (%d nodes, %d edges)", self.total, len(self._all_edges))

    def set_speed(self, milliseconds: int) -> int:
        """Change the tick interval, clamped to the configured range.

        A running reveal is rescheduled at the new interval and continues
        from the current cursor.
        """
        self._speed = self._clamp(milliseconds)
        if self._status is RevealStatus.RUNNING:
            self._cancel_tick()
            self._schedule_tick()
        return self._speed

    # --- internals ---

    def _clamp(self, milliseconds: int) -> int:
        return max(self.config.min_speed, min(self.config.max_speed, int(milliseconds)))

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _cancel_tick(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_tick(self) -> None:
        self._timer = self._get_loop().call_later(
            self._speed / 1000, self._tick, self._generation,
        )

    def _still_running(self, generation: int) -> bool:
        # on_reveal may have called stop() or reset()
        return generation == self._generation and self._status is RevealStatus.RUNNING

    def _advance(self) -> None:
        if self._cursor >= self.total:
            self._cancel_tick()
            self._status = RevealStatus.COMPLETED
            logger.info("Reveal completed: %d nodes, %d edges", self.total, len(self._revealed))
        else:
            self._schedule_tick()

    def _tick(self, generation: int) -> None:
        if generation != self._generation or self._status is not RevealStatus.RUNNING:
            logger.debug("Discarding stale reveal tick (generation %d)", generation)
            return
        self._timer = None
        if self._cursor < self.total:
            self._reveal_next()
        if self._still_running(generation):
            self._advance()

    def _reveal_next(self) -> None:
        node = self._order[self._cursor]
        self._cursor += 1
        self._visible[node] = None

        wanted = self._parents_count.get(node, 0)
        matching = [e for e in self._pending if e[1] == node][:wanted]
        if len(matching) < wanted:
            logger.debug(
                "Node %s declares %d parents, only %d pending edges", node, wanted, len(matching),
            )
        for edge in matching:
            self._pending.remove(edge)
            self._revealed.append(edge)
            self._animate(edge)

        if self.on_reveal is not None:
            self.on_reveal(RevealEvent(
                node_id=node,
                cohort=self.graph.cohort_of(node),
                work=self.graph.work_of(node),
                parents_count=wanted,
                parent_ids=self.graph.parents_of(node),
                edges_revealed=matching,
                cursor=self._cursor,
                total=self.total,
            ))

    def _animate(self, edge: Edge) -> None:
        previous = self._animation_timers.pop(edge, None)
        if previous is not None:
            previous.cancel()
        self._animation_timers[edge] = self._get_loop().call_later(
            self.config.edge_animation_ms / 1000, self._end_animation, edge,
        )

    def _end_animation(self, edge: Edge) -> None:
        self._animation_timers.pop(edge, None)

"""Shared test fixtures for braidview tests."""

import heapq
import itertools
import shutil
from pathlib import Path

import pytest

from braidview.catalog import BraidCatalog
from braidview.config import Config, LayoutConfig, RevealConfig
from braidview.graph import BraidGraph
from braidview.models import Braid

BRAIDS_DIR = Path(__file__).parent / "braids"


class FakeHandle:
    def __init__(self, when: float, callback, args) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual clock exposing the subset of asyncio's loop the controller uses."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, FakeHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback, *args) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for _, _, h in self._queue if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Run every callback due within the next `seconds`, in time order."""
        target = self.now + seconds + 1e-9
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if not handle.cancelled:
                handle.callback(*handle.args)
        self.now = max(self.now, target)


def _make_braid(
    parents: dict[str, list[str]],
    cohorts: list[list[str]],
    path: list[str],
    work: dict[str, float] | None = None,
    **extra,
) -> Braid:
    return Braid(
        description="test braid",
        parents=parents,
        cohorts=cohorts,
        highest_work_path=path,
        work=work,
        **extra,
    )


@pytest.fixture()
def make_braid():
    """Factory for in-memory braids: make_braid(parents, cohorts, path, work=None, **extra)."""
    return _make_braid


@pytest.fixture()
def fake_loop():
    return FakeLoop()


@pytest.fixture()
def config(tmp_path):
    """Config pointing at a temp copy of the sample braids."""
    braids = tmp_path / "braids"
    shutil.copytree(BRAIDS_DIR, braids)
    return Config(
        braids_dir=str(braids),
        current_dag_path=str(tmp_path / "data" / "dag.json"),
        layout=LayoutConfig(),
        reveal=RevealConfig(),
    )


@pytest.fixture()
def catalog(config):
    return BraidCatalog(config.resolved_braids_dir)


@pytest.fixture()
def diamond_graph(catalog):
    """0 -> {1, 2} -> 3, path 0-1-3."""
    return BraidGraph(catalog.load("diamond"))


@pytest.fixture()
def hub_graph(catalog):
    """Bead 4 merges same-cohort beads 1, 2, 3. Uses bead_work."""
    return BraidGraph(catalog.load("hub"))


@pytest.fixture()
def malformed_graph(catalog):
    return BraidGraph(catalog.load("malformed"))

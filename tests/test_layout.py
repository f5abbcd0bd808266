"""Tests for the layout engine."""

import math
import random

import pytest

from braidview.config import LayoutConfig
from braidview.graph import BraidGraph
from braidview.layout import arc_angles, bounds, compute_layout


def _xy(coords, node):
    c = coords[node]
    return (c.x, c.y)


def _generated_braid(make_braid, seed: int, cohorts: int = 8):
    """Random layered DAG with same-cohort edges, ties in work, and a one-per-cohort path."""
    rng = random.Random(seed)
    parents: dict[str, list[str]] = {}
    layers: list[list[str]] = []
    work: dict[str, int] = {}
    earlier: list[str] = []
    for k in range(cohorts):
        layer = [f"{k}-{i}" for i in range(rng.randint(1, 5))]
        for i, node in enumerate(layer):
            pool = earlier + layer[:i]
            picks = rng.sample(pool, min(len(pool), rng.randint(1, 3))) if pool else []
            parents[node] = picks
            work[node] = rng.randint(0, 3)
        layers.append(layer)
        earlier.extend(layer)
    path = [layer[0] for layer in layers]
    return make_braid(parents, layers, path, work=work)


SAMPLES = ["simple", "diamond", "hub", "malformed"]


@pytest.fixture(params=range(25))
def generated(request, make_braid):
    """One of 25 seeded random braids."""
    return _generated_braid(make_braid, request.param)


class TestCriticalPath:
    def test_linear_chain(self, catalog):
        coords = compute_layout(BraidGraph(catalog.load("simple")))
        assert [_xy(coords, n) for n in "0123"] == [
            (0, 0), (200, 0), (400, 0), (600, 0),
        ]

    def test_same_cohort_path_nodes_stack(self, make_braid):
        g = BraidGraph(make_braid(
            {"g": [], "a": ["g"], "b": ["a"]}, [["g"], ["a", "b"]], ["g", "a", "b"],
        ))
        coords = compute_layout(g)
        assert _xy(coords, "a") == (200, 0)
        assert _xy(coords, "b") == (200, 100)


class TestNonCritical:
    def test_diamond(self, diamond_graph):
        coords = compute_layout(diamond_graph)
        assert _xy(coords, "2") == (200, -100)
        assert list(coords) == ["0", "1", "3", "2"]

    def test_alternates_by_descending_work(self, make_braid):
        """Heaviest off-path node goes above, the next below the critical rows."""
        g = BraidGraph(make_braid(
            {"g": [], "a": ["g"], "b": ["a"], "c": ["g"], "d": ["g"], "e": ["g"]},
            [["g"], ["a", "b", "c", "d", "e"]],
            ["g", "a", "b"],
            work={"g": 20, "a": 10, "b": 8, "c": 5, "d": 9, "e": 7},
        ))
        coords = compute_layout(g)
        assert _xy(coords, "d") == (200, -100)  # heaviest, above
        assert _xy(coords, "e") == (200, 200)   # below the two critical rows
        assert _xy(coords, "c") == (200, -200)

    def test_below_starts_at_one_row_without_critical(self, make_braid):
        g = BraidGraph(make_braid(
            {"g": [], "x": ["g"], "y": ["g"]}, [["g"], ["x", "y"]], ["g"],
            work={"x": 2, "y": 1},
        ))
        coords = compute_layout(g)
        assert _xy(coords, "x") == (200, -100)
        assert _xy(coords, "y") == (200, 100)

    def test_equal_work_keeps_cohort_order(self, make_braid):
        g = BraidGraph(make_braid(
            {"g": [], "p": ["g"], "q": ["g"], "r": ["g"]}, [["g"], ["p", "q", "r"]], ["g"],
        ))
        coords = compute_layout(g)
        assert _xy(coords, "p") == (200, -100)
        assert _xy(coords, "q") == (200, 100)
        assert _xy(coords, "r") == (200, -200)

    def test_node_without_cohort(self, malformed_graph):
        """Nodes no cohort lists land in the column left of genesis."""
        coords = compute_layout(malformed_graph)
        assert _xy(coords, "7") == (-200, 0)
        assert _xy(coords, "9") == (600, 0)
        assert _xy(coords, "2") == (400, -100)


class TestHubArc:
    def test_arc_around_hub(self, hub_graph):
        coords = compute_layout(hub_graph)
        r = 200 * math.sin(math.radians(120))

        assert _xy(coords, "4") == (200, 0)
        # hub at y=0 uses the 120..240 degree half; nodes taken in y order 3, 1, 2
        assert coords["3"].y == pytest.approx(r)
        assert coords["3"].offset_x == pytest.approx(-100)
        assert coords["2"].y == pytest.approx(-r)
        assert coords["2"].offset_x == pytest.approx(-100)
        # 180 degrees lands on the hub's own row and gets pushed down once
        assert coords["1"].y == pytest.approx(60)
        assert coords["1"].offset_x == pytest.approx(-200)

    def test_arc_keeps_cohort_column(self, hub_graph):
        coords = compute_layout(hub_graph)
        for node in ("1", "2", "3"):
            assert coords[node].x == 200

    def test_top_half_when_hub_below_center(self, make_braid):
        # h sits on the second critical row (y=100) and has two same-cohort children
        g = BraidGraph(make_braid(
            {"g": [], "c": ["g"], "h": ["c"], "u": ["h"], "v": ["h"]},
            [["g"], ["c", "h", "u", "v"]],
            ["g", "c", "h"],
            work={"u": 2, "v": 1},
        ))
        coords = compute_layout(g)
        r = 200 * math.sin(math.radians(60))
        assert coords["u"].y == pytest.approx(100 - r)
        assert coords["v"].y == pytest.approx(100 + r)
        assert coords["u"].offset_x == pytest.approx(100)

    def test_no_arc_with_single_same_cohort_connection(self, diamond_graph):
        coords = compute_layout(diamond_graph)
        assert all(c.offset_x == 0 for c in coords.values())

    def test_arc_angles(self):
        assert arc_angles(0, True) == []
        assert arc_angles(1, True) == [math.pi / 2]
        top = [math.degrees(a) for a in arc_angles(3, True)]
        assert top == pytest.approx([-60, 0, 60])
        bottom = [math.degrees(a) for a in arc_angles(3, False)]
        assert bottom == pytest.approx([120, 180, 240])


class TestInvariants:
    @pytest.mark.parametrize("name", SAMPLES)
    def test_samples_deterministic(self, catalog, name):
        braid = catalog.load(name)
        assert compute_layout(BraidGraph(braid)) == compute_layout(BraidGraph(braid))

    def test_no_overlap(self, generated):
        """No two nodes share a rounded cell."""
        coords = compute_layout(BraidGraph(generated))
        cells = [c.cell for c in coords.values()]
        assert len(cells) == len(set(cells))

    def test_x_is_cohort_times_spacing(self, generated):
        g = BraidGraph(generated)
        for node, c in compute_layout(g).items():
            assert c.x == g.cohort_of(node) * 200

    def test_every_node_placed(self, generated):
        g = BraidGraph(generated)
        assert set(compute_layout(g)) == set(g.node_ids)

    def test_generated_deterministic(self, generated):
        assert compute_layout(BraidGraph(generated)) == compute_layout(BraidGraph(generated))

    def test_input_not_mutated(self, hub_graph):
        before = hub_graph.braid.model_dump()
        compute_layout(hub_graph)
        assert hub_graph.braid.model_dump() == before

    def test_custom_spacing(self, diamond_graph):
        config = LayoutConfig(spacing_x=50, row_height=10)
        coords = compute_layout(diamond_graph, config)
        assert _xy(coords, "3") == (100, 0)
        assert _xy(coords, "2") == (50, -10)


class TestBounds:
    def test_bounds(self, diamond_graph):
        b = bounds(compute_layout(diamond_graph))
        assert b == {"width": 600, "height": 300, "translate_x": 100, "translate_y": 200}

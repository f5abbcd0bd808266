"""Tests for braid selection and snapshot building."""

import pytest

from braidview.catalog import BraidCatalog
from braidview.config import load_config
from braidview.models import CohortTransitionType, RevealStatus, WorkTransition
from braidview.session import BraidSession, build_snapshot


@pytest.fixture()
def session(catalog, config, fake_loop):
    return BraidSession(catalog, config, loop=fake_loop)


class TestSelect:
    def test_auto_selects_first(self, session):
        assert session.select() is True
        assert session.selected == "diamond"
        assert session.snapshot.braid_name == "diamond"
        assert session.controller.status is RevealStatus.IDLE

    def test_select_by_name(self, session):
        assert session.select("hub.json") is True
        assert session.selected == "hub"
        assert session.snapshot.hubs == ["1", "4"]

    def test_failed_load_keeps_previous_state(self, session):
        """A failed load leaves the current braid, snapshot and controller in place."""
        session.select("simple")
        snapshot, graph, controller = session.snapshot, session.graph, session.controller

        assert session.select("missing") is False
        assert "missing" in session.last_error
        assert session.selected == "simple"
        assert session.snapshot is snapshot
        assert session.graph is graph
        assert session.controller is controller

    def test_empty_catalog(self, tmp_path, config, fake_loop):
        (tmp_path / "empty").mkdir()
        s = BraidSession(BraidCatalog(tmp_path / "empty"), config, loop=fake_loop)
        assert s.select() is False
        assert s.snapshot is None
        assert s.last_error

    def test_new_braid_replaces_reveal_state(self, session, fake_loop):
        session.select("diamond")
        old = session.controller
        old.start()
        fake_loop.advance(1.0)

        session.select("simple")
        assert old.status is RevealStatus.IDLE
        assert not old.has_pending_tick
        assert session.controller is not old
        assert session.controller.visible_nodes == set()
        assert session.controller.pending_edges == session.graph.edges


class TestSnapshot:
    def test_malformed_snapshot(self, catalog, config):
        _, snap = build_snapshot("malformed", catalog.load("malformed"), config)
        assert snap.node_count == 5
        assert snap.edge_count == 3
        assert snap.work_path_analysis.is_strictly_decreasing is False
        assert [(a.index, a.type) for a in snap.work_path_analysis.anomalies] == [
            (1, WorkTransition.PLATEAU),
        ]
        assert [t.type for t in snap.cohort_analysis.invalid] == [CohortTransitionType.LEAP]
        assert snap.cohort_columns.columns == {0: ["0"], 1: ["1"], 3: ["9"]}
        assert snap.non_critical_nodes_by_cohort == {2: ["2"]}
        assert snap.integrity.missing_parents_entry == ["9"]
        assert set(snap.node_coordinates) == {"0", "1", "2", "7", "9"}

    def test_rebuild_is_identical(self, catalog, config):
        braid = catalog.load("hub")
        _, first = build_snapshot("hub", braid, config)
        _, second = build_snapshot("hub", braid, config)
        assert first == second

    def test_snapshot_serializes(self, catalog, config):
        _, snap = build_snapshot("diamond", catalog.load("diamond"), config)
        data = snap.model_dump(mode="json")
        assert data["node_coordinates"]["2"] == {"x": 200.0, "y": -100.0, "offset_x": 0.0}
        assert data["parents_count"] == {"0": 0, "1": 1, "2": 1, "3": 2}


class TestConfig:
    def test_defaults_when_missing(self, tmp_path):
        config = load_config(tmp_path / "config.yaml")
        assert config.layout.spacing_x == 200
        assert config.reveal.animation_speed == 1000

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("layout:\n  spacing_x: 120\nreveal:\n  animation_speed: 500\n")
        config = load_config(path)
        assert config.layout.spacing_x == 120
        assert config.layout.row_height == 100
        assert config.reveal.animation_speed == 500

    def test_relative_paths_resolve_to_project_root(self):
        config = load_config()
        assert config.resolved_braids_dir.is_absolute()
        assert config.resolved_braids_dir.name == "braids"

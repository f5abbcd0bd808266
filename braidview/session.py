"""The currently selected braid, its derived snapshot and its reveal controller."""

import asyncio
import logging
from collections.abc import Callable

from braidview.analysis.path_analyzer import (
    analyze_cohort_transitions,
    analyze_work_monotonicity,
    non_critical_by_cohort,
    organize_cohort_columns,
)
from braidview.catalog import BraidCatalog, BraidSourceError
from braidview.config import Config
from braidview.graph import BraidGraph
from braidview.layout import compute_layout
from braidview.models import Braid, BraidEntry, BraidSnapshot, RevealEvent
from braidview.reveal import RevealController, default_reveal_order

logger = logging.getLogger(__name__)


def build_snapshot(name: str, braid: Braid, config: Config) -> tuple[BraidGraph, BraidSnapshot]:
    """Derive everything the presentation layer needs from one braid."""
    graph = BraidGraph(braid, hub_threshold=config.layout.hub_threshold)
    path = braid.highest_work_path

    snapshot = BraidSnapshot(
        braid_name=name,
        description=braid.description,
        node_count=len(graph.node_ids),
        edge_count=len(graph.edges),
        highest_work_path=list(path),
        node_coordinates=compute_layout(graph, config.layout),
        work_path_analysis=analyze_work_monotonicity(path, graph.work_of),
        cohort_analysis=analyze_cohort_transitions(path, graph.cohort_of),
        cohort_columns=organize_cohort_columns(path, graph.cohort_of, braid.cohorts),
        non_critical_nodes_by_cohort=non_critical_by_cohort(braid.cohorts, path),
        parents_count=graph.parents_count,
        hubs=graph.hubs(),
        integrity=graph.integrity_report(),
    )
    return graph, snapshot


class BraidSession:
    """Holds one loaded braid at a time.

    A failed load leaves the previous braid, snapshot and controller in
    place and records the error in `last_error`.
    """

    def __init__(
        self,
        catalog: BraidCatalog,
        config: Config,
        loop: asyncio.AbstractEventLoop | None = None,
        on_reveal: Callable[[RevealEvent], None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config
        self.loop = loop
        self.on_reveal = on_reveal

        self.entries: list[BraidEntry] = []
        self.selected: str | None = None
        self.graph: BraidGraph | None = None
        self.snapshot: BraidSnapshot | None = None
        self.controller: RevealController | None = None
        self.last_error: str | None = None

    def refresh_catalog(self) -> list[BraidEntry]:
        try:
            self.entries = self.catalog.list_braids()
            self.last_error = None
        except BraidSourceError as e:
            logger.error("Failed to list braids: %s", e)
            self.last_error = str(e)
        return self.entries

    def select(self, selector: str | None = None) -> bool:
        """Load a braid and rebuild all derived state.

        With no selector the first catalog entry is used. Returns False on
        failure, in which case nothing already loaded is touched.
        """
        if selector is None:
            if not self.entries:
                self.refresh_catalog()
            if not self.entries:
                self.last_error = self.last_error or "No braids available"
                logger.warning("Nothing to select: %s", self.last_error)
                return False
            selector = self.entries[0].filename
            logger.info("Auto-selecting first braid: %s", selector)

        try:
            braid = self.catalog.load(selector)
        except BraidSourceError as e:
            logger.error("Failed to load braid %s: %s", selector, e)
            self.last_error = str(e)
            return False

        name = selector.removesuffix(".json")
        graph, snapshot = build_snapshot(name, braid, self.config)

        if self.controller is not None:
            self.controller.reset()

        self.selected = name
        self.graph = graph
        self.snapshot = snapshot
        self.controller = RevealController(
            graph,
            default_reveal_order(graph, snapshot.node_coordinates),
            config=self.config.reveal,
            loop=self.loop,
            on_reveal=self.on_reveal,
        )
        self.last_error = None
        return True

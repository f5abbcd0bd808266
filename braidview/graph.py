"""Derived lookups over a braid's parent adjacency."""

import logging
from collections import defaultdict

from braidview.models import Braid, ConnectionMap, IntegrityReport

logger = logging.getLogger(__name__)

HUB_THRESHOLD = 3
UNKNOWN_COHORT = -1


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class BraidGraph:
    """Read-only view of a braid with child, cohort and work lookups.

    Everything is built once in the constructor. Lookups on nodes that the
    braid references but never defines degrade to "no parents", "no
    children", cohort -1 and work 0 instead of raising.
    """

    def __init__(self, braid: Braid, hub_threshold: int = HUB_THRESHOLD) -> None:
        self.braid = braid
        self.hub_threshold = hub_threshold

        self._children: dict[str, list[str]] = defaultdict(list)
        for child, parents in braid.parents.items():
            for parent in parents:
                self._children[parent].append(child)

        self._cohort: dict[str, int] = {}
        self._duplicate_cohort: list[str] = []
        for index, cohort in enumerate(braid.cohorts):
            for node in cohort:
                if node in self._cohort:
                    # first cohort wins, same as a linear scan would
                    self._duplicate_cohort.append(node)
                    continue
                self._cohort[node] = index

        if braid.work is not None:
            self._work = braid.work
        elif braid.bead_work is not None:
            self._work = braid.bead_work
        else:
            self._work = {}

        seen: dict[str, None] = {}
        for node in braid.parents:
            seen[node] = None
        for cohort in braid.cohorts:
            for node in cohort:
                seen[node] = None
        for node in braid.highest_work_path:
            seen[node] = None
        self._node_ids = list(seen)

        self._edges = [
            (parent, child)
            for child, parents in braid.parents.items()
            for parent in parents
        ]

    # --- basic lookups ---

    @property
    def node_ids(self) -> list[str]:
        """Every node named anywhere in the braid, in first-seen order."""
        return list(self._node_ids)

    @property
    def edges(self) -> list[tuple[str, str]]:
        """All (parent, child) edges in declaration order."""
        return list(self._edges)

    @property
    def parents_count(self) -> dict[str, int]:
        return {node: len(self.parents_of(node)) for node in self._node_ids}

    @property
    def cohort_count(self) -> int:
        return len(self.braid.cohorts)

    def parents_of(self, node_id: str) -> list[str]:
        return list(self.braid.parents.get(node_id, []))

    def children_of(self, node_id: str) -> list[str]:
        return list(self._children.get(node_id, []))

    def connections_of(self, node_id: str) -> list[str]:
        """Parents followed by children. Duplicates are kept."""
        return self.parents_of(node_id) + self.children_of(node_id)

    def cohort_of(self, node_id: str) -> int:
        """Cohort index of a node, or -1 if no cohort lists it."""
        return self._cohort.get(node_id, UNKNOWN_COHORT)

    def work_of(self, node_id: str) -> float:
        return self._work.get(node_id, 0)

    def is_hub(self, node_id: str) -> bool:
        return len(self.connections_of(node_id)) >= self.hub_threshold

    def hubs(self) -> list[str]:
        return [n for n in self._node_ids if self.is_hub(n)]

    def connection_map(self, node_id: str) -> ConnectionMap:
        parents = self.parents_of(node_id)
        children = self.children_of(node_id)

        siblings: list[str] = []
        for parent in parents:
            siblings.extend(c for c in self._children.get(parent, []) if c != node_id)

        grandparents: list[str] = []
        for parent in parents:
            grandparents.extend(self.parents_of(parent))

        grandchildren: list[str] = []
        for child in children:
            grandchildren.extend(self._children.get(child, []))

        return ConnectionMap(
            parents=parents,
            children=children,
            siblings=_dedupe(siblings),
            grandparents=_dedupe(grandparents),
            grandchildren=_dedupe(grandchildren),
        )

    # --- diagnostics ---

    def integrity_report(self) -> IntegrityReport:
        """Collect malformed-input findings without changing any lookup."""
        defined = set(self.braid.parents)
        referenced_parents = _dedupe([p for ps in self.braid.parents.values() for p in ps])

        report = IntegrityReport(
            missing_parents_entry=[n for n in self._node_ids if n not in defined],
            missing_cohort=[n for n in self._node_ids if n not in self._cohort],
            multiple_cohorts=_dedupe(self._duplicate_cohort),
            undefined_parents=[p for p in referenced_parents if p not in defined],
            missing_work=[n for n in self._node_ids if n not in self._work],
        )
        if not report.is_clean:
            logger.warning(
                "Braid integrity: %d undefined, %d without cohort, %d in several cohorts, "
                "%d without work",
                len(report.missing_parents_entry),
                len(report.missing_cohort),
                len(report.multiple_cohorts),
                len(report.missing_work),
            )
        return report

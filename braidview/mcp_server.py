#!/usr/bin/env python3
"""braidview MCP server: read-only braid snapshots for presentation clients."""

import json
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from braidview.catalog import BraidCatalog, BraidSourceError
from braidview.config import Config, load_config
from braidview.hints import EdgeCurves, edge_kind, node_role, work_band
from braidview.session import BraidSession

mcp = FastMCP("braidview")
logger = logging.getLogger(__name__)

# Redirect all logging to stderr so stdout stays clean for MCP stdio transport
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_config: Config | None = None
_session: BraidSession | None = None
_curves = EdgeCurves()


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_session() -> BraidSession:
    global _session
    if _session is None:
        config = _get_config()
        _session = BraidSession(BraidCatalog(config.resolved_braids_dir), config)
    return _session


def _load(braid_name: Optional[str]) -> BraidSession:
    session = _get_session()
    if braid_name is not None and session.selected == braid_name.removesuffix(".json"):
        return session
    if not session.select(braid_name):
        raise BraidSourceError(session.last_error or "Braid could not be loaded")
    _curves.clear()
    return session


@mcp.tool()
def list_braids() -> str:
    """List the braid files available for inspection."""
    try:
        entries = _get_session().catalog.list_braids()
        return json.dumps([e.model_dump() for e in entries])
    except BraidSourceError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def get_snapshot(braid_name: Optional[str] = None) -> str:
    """Full derived view of a braid: coordinates, path analysis, cohorts, hubs. Defaults to the first braid."""
    try:
        session = _load(braid_name)
        return session.snapshot.model_dump_json()
    except BraidSourceError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def analyze_path(braid_name: str) -> str:
    """Work monotonicity and cohort transitions along the highest-work path."""
    try:
        snap = _load(braid_name).snapshot
        return json.dumps({
            "highest_work_path": snap.highest_work_path,
            "work": snap.work_path_analysis.model_dump(mode="json") if snap.work_path_analysis else None,
            "cohorts": snap.cohort_analysis.model_dump(mode="json") if snap.cohort_analysis else None,
        })
    except BraidSourceError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def get_connections(braid_name: str, node_id: str) -> str:
    """Parents, children, siblings, grandparents and grandchildren of one node."""
    try:
        graph = _load(braid_name).graph
        if node_id not in graph.node_ids:
            raise ValueError(f"Unknown node: {node_id}")
        result = graph.connection_map(node_id).model_dump()
        result.update(
            cohort=graph.cohort_of(node_id),
            work=graph.work_of(node_id),
            is_hub=graph.is_hub(node_id),
            role=node_role(graph, node_id).value,
            work_band=work_band(graph, node_id),
        )
        return json.dumps(result)
    except (BraidSourceError, ValueError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def get_edges(braid_name: str) -> str:
    """Every edge with its kind and SVG path data."""
    try:
        session = _load(braid_name)
        coords = session.snapshot.node_coordinates
        return json.dumps([
            {
                "parent": parent,
                "child": child,
                "kind": edge_kind(session.graph, parent, child).value,
                "path": _curves.path(parent, child, coords),
            }
            for parent, child in session.graph.edges
        ])
    except BraidSourceError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def get_integrity(braid_name: str) -> str:
    """Malformed-input findings: undefined nodes, missing cohorts, missing work values."""
    try:
        snap = _load(braid_name).snapshot
        return json.dumps(snap.integrity.model_dump() | {"is_clean": snap.integrity.is_clean})
    except BraidSourceError as e:
        return json.dumps({"error": str(e)})


if __name__ == "__main__":
    mcp.run()

"""CLI entry point for braidview."""

import argparse
import asyncio
import json
import logging
from pathlib import Path

from braidview.catalog import BraidCatalog, BraidSourceError
from braidview.config import Config, load_config
from braidview.hints import node_role
from braidview.models import RevealEvent, RevealStatus
from braidview.session import BraidSession


def _print_event(event: RevealEvent) -> None:
    parents = ", ".join(event.parent_ids) or "-"
    print(
        f"  [{event.cursor}/{event.total}] {event.node_id} "
        f"(cohort {event.cohort}, work {event.work:g}) parents: {parents}"
        f" ({len(event.edges_revealed)}/{event.parents_count} edges)"
    )


def _cmd_list(session: BraidSession) -> None:
    entries = session.refresh_catalog()
    if session.last_error:
        print(f"Failed to list braids: {session.last_error}")
        return
    if not entries:
        print("No braids found.")
        return
    for e in entries:
        print(f"  {e.name} ({e.filename})")


def _cmd_analyze(session: BraidSession) -> None:
    snap = session.snapshot
    if snap is None:
        print("No braid loaded.")
        return
    print(f"{snap.braid_name}: {snap.description}")
    print(f"  {snap.node_count} nodes, {snap.edge_count} edges, path length {len(snap.highest_work_path)}")
    print(f"  Highest work path: {' -> '.join(snap.highest_work_path)}")

    work = snap.work_path_analysis
    if work is None:
        print("  Work: no path")
    elif work.is_strictly_decreasing:
        print("  Work: strictly decreasing")
    else:
        print(f"  Work: {len(work.anomalies)} anomalies")
        for a in work.anomalies:
            print(f"    index {a.index} ({snap.highest_work_path[a.index]}): {a.type.value}")

    cohorts = snap.cohort_analysis
    if cohorts is not None:
        invalid = cohorts.invalid
        print(f"  Cohort transitions: {len(cohorts.transitions)} ({len(invalid)} invalid)")
        for t in invalid:
            print(f"    {t.from_node}({t.from_cohort}) -> {t.to_node}({t.to_cohort}): {t.type.value}")

    if snap.hubs:
        print(f"  Hubs: {', '.join(snap.hubs)}")
    if not snap.integrity.is_clean:
        print("  Integrity:")
        for field, nodes in snap.integrity.model_dump().items():
            if nodes:
                print(f"    {field}: {', '.join(nodes)}")


def _cmd_layout(session: BraidSession, as_json: bool) -> None:
    snap = session.snapshot
    graph = session.graph
    if snap is None or graph is None:
        print("No braid loaded.")
        return
    if as_json:
        print(json.dumps({
            n: c.model_dump() for n, c in snap.node_coordinates.items()
        }, indent=2))
        return
    for node, c in snap.node_coordinates.items():
        print(
            f"  {node}: ({c.x:.1f}, {c.y:.1f}) cohort {graph.cohort_of(node)} "
            f"{node_role(graph, node).value}"
        )


def _cmd_connections(session: BraidSession, node_id: str) -> None:
    graph = session.graph
    if graph is None:
        print("No braid loaded.")
        return
    cmap = graph.connection_map(node_id)
    for field, nodes in cmap.model_dump().items():
        print(f"  {field}: {', '.join(nodes) or '-'}")
    print(f"  hub: {graph.is_hub(node_id)}")


async def _replay(config: Config, selector: str | None, speed: int | None) -> None:
    session = BraidSession(
        BraidCatalog(config.resolved_braids_dir), config,
        loop=asyncio.get_running_loop(), on_reveal=_print_event,
    )
    if not session.select(selector):
        print(f"Failed to load braid: {session.last_error}")
        return
    controller = session.controller
    if controller is None:
        print("No reveal controller for this braid.")
        return
    if speed is not None:
        controller.set_speed(speed)

    print(f"Replaying {session.selected} ({controller.total} nodes, {controller.animation_speed} ms/step)")
    controller.start()
    try:
        while controller.status is RevealStatus.RUNNING:
            await asyncio.sleep(0.05)
    finally:
        controller.stop()
    print(f"Revealed {len(controller.revealed_edges)} of {len(controller.graph.edges)} edges")


def main() -> None:
    parser = argparse.ArgumentParser(description="Braid inspector")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("list", help="List available braids")

    analyze_parser = sub.add_parser("analyze", help="Check the highest-work path")
    analyze_parser.add_argument("braid", nargs="?", help="Braid name. Defaults to the first one.")

    layout_parser = sub.add_parser("layout", help="Print node coordinates")
    layout_parser.add_argument("braid", nargs="?", help="Braid name. Defaults to the first one.")
    layout_parser.add_argument("--json", action="store_true", help="Emit JSON")

    conn_parser = sub.add_parser("connections", help="Show a node's neighbourhood")
    conn_parser.add_argument("braid", help="Braid name")
    conn_parser.add_argument("node", help="Node id")

    replay_parser = sub.add_parser("replay", help="Reveal the braid node by node")
    replay_parser.add_argument("braid", nargs="?", help="Braid name. Defaults to the first one.")
    replay_parser.add_argument("--speed", type=int, default=None, help="Milliseconds per node (100-2000)")

    publish_parser = sub.add_parser("publish", help="Make a braid the current DAG")
    publish_parser.add_argument("braid", help="Braid name")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(Path(args.config) if args.config else None)
    catalog = BraidCatalog(config.resolved_braids_dir)
    session = BraidSession(catalog, config)

    if args.command == "list":
        _cmd_list(session)

    elif args.command in ("analyze", "layout", "connections"):
        if not session.select(args.braid):
            print(f"Failed to load braid: {session.last_error}")
            return
        if args.command == "analyze":
            _cmd_analyze(session)
        elif args.command == "layout":
            _cmd_layout(session, args.json)
        else:
            _cmd_connections(session, args.node)

    elif args.command == "replay":
        asyncio.run(_replay(config, args.braid, args.speed))

    elif args.command == "publish":
        try:
            dest = catalog.publish(args.braid, config.resolved_current_dag_path)
        except BraidSourceError as e:
            print(f"Failed to publish: {e}")
            return
        print(f"Published {args.braid} to {dest}")

    else:
        parser.print_help()


if __name__ == "__main__":
    main()

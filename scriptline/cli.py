"""CLI entry point for scriptline."""

import argparse
import json
import logging
import sys
from fractions import Fraction
from pathlib import Path

from scriptline.config import Config, load_config
from scriptline.output.flow import build_story_flow, load_story_summary, to_mermaid
from scriptline.output.export import timeline_to_dict
from scriptline.output.search import search_inventories
from scriptline.project import ProjectLoadResult, build_project_timeline, load_project
from scriptline.tracks import TrackAggregator


def _clock_value(text: str) -> Fraction:
    try:
        value = Fraction(text)
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"not a clock value: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"clock value must not be negative: {text!r}")
    return value


def _load(path: str, config: Config) -> ProjectLoadResult | None:
    loaded = load_project(Path(path), config)
    if not loaded.files:
        print(f"No script files found under {path}", file=sys.stderr)
        return None
    return loaded


def _cmd_timeline(args: argparse.Namespace, config: Config) -> int:
    loaded = _load(args.project_path, config)
    if loaded is None:
        return 1
    timeline = build_project_timeline(loaded, config)
    aggregator = TrackAggregator(timeline)

    if args.at is not None:
        active = aggregator.events_active_at(args.at)
        if args.json:
            print(json.dumps([e.model_dump(mode="json") for e in active], ensure_ascii=False, indent=2))
        else:
            for e in active:
                label = e.text or e.storage or ""
                print(f"  {e.channel.value:<6} {e.sub_key or '':<12} {label}")
        return 0

    if args.json:
        print(json.dumps(timeline_to_dict(timeline), ensure_ascii=False, indent=2))
        return 0

    stats = aggregator.stats()
    print(
        f"Tracks: {stats.track_count} | Events: {stats.total_events} "
        f"| Total time: {float(stats.total_time):g} [p]"
    )
    for track in aggregator.tracks():
        print(f"  {track.display_name:<24} {len(track.events)} events")
    return 0


def _cmd_inventory(args: argparse.Namespace, config: Config) -> int:
    loaded = _load(args.project_path, config)
    if loaded is None:
        return 1
    if args.json:
        data = {name: inv.model_dump(mode="json") for name, inv in loaded.inventories.items()}
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return 0
    for script in loaded.story_files + loaded.system_files:
        inv = loaded.inventories.get(script.filename)
        if inv is None:
            continue
        marker = " (system)" if script.is_system else ""
        print(
            f"{script.relative_path}{marker}: clicks={inv.click_count} "
            f"jumps={len(inv.jumps)} images={len(inv.images)} "
            f"bgm={inv.bgm_count} se={inv.se_count} videos={len(inv.videos)}"
        )
    return 0


def _cmd_search(args: argparse.Namespace, config: Config) -> int:
    loaded = _load(args.project_path, config)
    if loaded is None:
        return 1
    hits = search_inventories(loaded.inventories, args.query)
    if not hits:
        print(f"No matches for {args.query!r}")
        return 0
    for hit in hits:
        where = f"{hit.filename}:{hit.line}" if hit.line else hit.filename
        speaker = f"{hit.speaker}: " if hit.speaker else ""
        print(f"  [{hit.kind}] {where}  {speaker}{hit.text}")
    return 0


def _cmd_flow(args: argparse.Namespace, config: Config) -> int:
    loaded = _load(args.project_path, config)
    if loaded is None:
        return 1
    summary = {}
    if args.detail:
        summary_path = args.summary or loaded.root / config.project.story_summary_file
        summary = load_story_summary(summary_path)
    flow = build_story_flow(loaded, summary, detail=args.detail)
    if args.json:
        print(json.dumps(flow.model_dump(mode="json"), ensure_ascii=False, indent=2))
    else:
        print(to_mermaid(flow), end="")
    return 0


def _cmd_files(args: argparse.Namespace, config: Config) -> int:
    loaded = _load(args.project_path, config)
    if loaded is None:
        return 1
    print(f"Scenario directory: {loaded.scenario_dir}")
    for script in loaded.story_files:
        print(f"  {script.relative_path}")
    if loaded.system_files:
        print("System files:")
        for script in loaded.system_files:
            print(f"  {script.relative_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scenario script timeline tool")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command")

    # timeline command
    timeline_parser = sub.add_parser("timeline", help="Build the pacing timeline of a project")
    timeline_parser.add_argument("project_path", help="Project root, data or scenario directory")
    timeline_parser.add_argument("--json", action="store_true", help="Print stats and tracks as JSON")
    timeline_parser.add_argument(
        "--at", type=_clock_value, default=None,
        help="Only list events active at this clock value (e.g. 3 or 2.5)",
    )

    # inventory command
    inventory_parser = sub.add_parser("inventory", help="Per-file labels, jumps and resources")
    inventory_parser.add_argument("project_path", help="Project root, data or scenario directory")
    inventory_parser.add_argument("--json", action="store_true", help="Print inventories as JSON")

    # search command
    search_parser = sub.add_parser("search", help="Search dialogue, labels, jumps and choices")
    search_parser.add_argument("project_path", help="Project root, data or scenario directory")
    search_parser.add_argument("query", help="Case-insensitive text to find")

    # flow command
    flow_parser = sub.add_parser("flow", help="Story flow chart of jumps, calls and choices")
    flow_parser.add_argument("project_path", help="Project root, data or scenario directory")
    flow_parser.add_argument("--json", action="store_true", help="Print nodes and edges as JSON")
    flow_parser.add_argument("--detail", action="store_true", help="Label nodes from the story summary file")
    flow_parser.add_argument("--summary", type=Path, default=None, help="Path to story-summary.json")

    # files command
    files_parser = sub.add_parser("files", help="List script files in story order")
    files_parser.add_argument("project_path", help="Project root, data or scenario directory")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    commands = {
        "timeline": _cmd_timeline,
        "inventory": _cmd_inventory,
        "search": _cmd_search,
        "flow": _cmd_flow,
        "files": _cmd_files,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, config)


if __name__ == "__main__":
    sys.exit(main())

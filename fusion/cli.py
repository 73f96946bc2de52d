"""CLI entrypoints for fusion commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from .config import load_config
from .errors import FusionError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .report import graphs_to_dict, plans_to_list, resolution_to_dict


def _add_log_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    """Logging flags, accepted both before and after the subcommand."""
    flag_default: object = argparse.SUPPRESS if suppress_default else False
    path_default: object = argparse.SUPPRESS if suppress_default else None
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=flag_default,
        help="Log per-entity details at DEBUG level.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=flag_default,
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        default=path_default,
        help="Also write a DEBUG log to this file.",
    )


def _add_snapshot_options(parser: argparse.ArgumentParser, *, tsconfig: bool = False) -> None:
    parser.add_argument(
        "snapshot",
        help="Path to a JSON or YAML snapshot of per-file analyses.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .fusion.yml (defaults to the snapshot's directory).",
    )
    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the JSON report to this file instead of stdout.",
    )
    if tsconfig:
        parser.add_argument(
            "--tsconfig",
            default=None,
            help="tsconfig.json whose compilerOptions.paths provide import aliases.",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fusion",
        description="Resolve shared entities, dependency graphs and merge plans across front-end projects.",
    )
    _add_log_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Group same-named entities across projects and report conflicts.",
    )
    _add_log_options(resolve_parser, suppress_default=True)
    _add_snapshot_options(resolve_parser)

    graph_parser = subparsers.add_parser(
        "graph",
        help="Build one dependency graph per project.",
    )
    _add_log_options(graph_parser, suppress_default=True)
    _add_snapshot_options(graph_parser, tsconfig=True)

    plan_parser = subparsers.add_parser(
        "plan",
        help="Resolve entities and emit proceed/skip merge plans.",
    )
    _add_log_options(plan_parser, suppress_default=True)
    _add_snapshot_options(plan_parser, tsconfig=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for fusion commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=log_file)

    snapshot_path = Path(args.snapshot).expanduser()
    config_path = Path(args.config).expanduser() if args.config else snapshot_path.parent
    tsconfig = getattr(args, "tsconfig", None)
    tsconfig_path = Path(tsconfig).expanduser() if tsconfig else None

    try:
        orchestrator = Orchestrator(load_config(config_path))
        snapshot = orchestrator.load(snapshot_path)
        if args.command == "resolve":
            payload: Dict[str, Any] = resolution_to_dict(orchestrator.resolve(snapshot.projects))
        elif args.command == "graph":
            aliases = orchestrator.aliases_for(snapshot, tsconfig_path)
            payload = graphs_to_dict(orchestrator.build_graphs(snapshot.projects, aliases))
        elif args.command == "plan":
            run = orchestrator.run_snapshot(snapshot, tsconfig_path)
            payload = resolution_to_dict(run.resolution)
            payload["plans"] = plans_to_list(run.plans)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except FusionError as exc:
        parser.exit(1, f"fusion {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    rendered = json.dumps(payload, indent=2)
    if args.output:
        output_path = Path(args.output).expanduser()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered + "\n", encoding="utf-8")
        print(f"Report written to {_relativize(output_path)}")
    else:
        print(rendered)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

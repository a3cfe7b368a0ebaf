"""Command-line entrypoint for inspecting and syncing the plugin cache."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from loguru import logger

from .config import HostConfig, load_config
from .logging_utils import configure_logging
from .plugins import PluginError, PluginHost


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="pluginhost")
    p.add_argument(
        "--config",
        default=os.environ.get("PLUGINHOST_CONFIG"),
        help="Path to config YAML (default: PLUGINHOST_CONFIG, else built-in defaults).",
    )
    p.add_argument("--archive-dir", type=Path, default=None, help="Override archive_dir.")
    p.add_argument("--cache-dir", type=Path, default=None, help="Override cache_dir.")
    p.add_argument("--log-level", default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("plan", help="Show what a sync would extract and evict.")
    sub.add_parser("sync", help="Extract new archives and evict stale cache entries.")
    sub.add_parser("print-config", help="Load config and print resolved values.")

    return p.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> HostConfig:
    config = load_config(args.config) if args.config else HostConfig()
    updates = {}
    if args.archive_dir is not None:
        updates["archive_dir"] = args.archive_dir
    if args.cache_dir is not None:
        updates["cache_dir"] = args.cache_dir
    if updates:
        config = config.model_copy(update=updates)
    return config


def _print_plan(extract: dict[str, Path], evict: tuple[Path, ...]) -> None:
    payload = {
        "extract": {digest: str(path) for digest, path in sorted(extract.items())},
        "evict": [str(path) for path in evict],
    }
    print(json.dumps(payload, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = _resolve_config(args)
    configure_logging(config.logging, level=args.log_level)

    if args.cmd == "print-config":
        print(config.model_dump_json(indent=2))
        return 0

    try:
        host = PluginHost.from_config(config)
        plan = host.plan() if args.cmd == "plan" else host.sync()
    except (PluginError, OSError) as exc:
        logger.error("{} failed: {}", args.cmd, exc)
        return 2
    _print_plan(plan.to_extract, plan.to_evict)
    return 0


if __name__ == "__main__":
    sys.exit(main())

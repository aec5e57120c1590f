"""chatbar command line: run the session tree UI over a snapshot file."""

from __future__ import annotations

import argparse
import curses
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from chatbar import __version__
from chatbar.config import load_chatbar_config
from chatbar.logging_config import setup_logging
from chatbar.store import InMemorySessionStore
from chatbar.store.snapshot import SnapshotWatcher, load_store
from chatbar.tui.app import ChatbarApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatbar", description="Chat session tree with a docked sidebar.")
    parser.add_argument("--config", type=Path, default=None, help="Config YAML (default: $CHATBAR_CONFIG).")
    parser.add_argument("--snapshot", type=Path, default=None, help="YAML snapshot of connections and targets.")
    parser.add_argument("--watch", action="store_true", help="Reload the snapshot when the file changes.")
    parser.add_argument("--browser", action="store_true", help="Start with the tree in its own full panel.")
    parser.add_argument(
        "--sidebar",
        type=int,
        default=None,
        metavar="N",
        help="Positive opens the sidebar at startup, zero or negative keeps it closed.",
    )
    parser.add_argument("--log-level", default=None, help="Override CHATBAR_LOG_LEVEL.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_chatbar_config(args.config)
    except ValidationError as e:
        sys.stderr.write(f"chatbar error: invalid config: {e}\n")
        return 2

    watcher: SnapshotWatcher | None = None
    if args.snapshot is not None:
        try:
            store = load_store(args.snapshot)
        except (OSError, yaml.YAMLError, ValueError) as e:
            sys.stderr.write(f"chatbar error: cannot load snapshot {args.snapshot}: {e}\n")
            return 2
        if args.watch:
            watcher = SnapshotWatcher(args.snapshot, store)
    else:
        if args.watch:
            sys.stderr.write("chatbar error: --watch needs --snapshot\n")
            return 2
        store = InMemorySessionStore()

    app = ChatbarApp(store, config, watcher=watcher)
    sidebar = args.sidebar
    if sidebar is None and not args.browser and config.sidebar.auto_open:
        sidebar = 1
    app.start(browser=args.browser, sidebar=sidebar)
    logger.info("Starting chatbar (snapshot=%s, watch=%s)", args.snapshot, args.watch)

    try:
        curses.wrapper(app.run)
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

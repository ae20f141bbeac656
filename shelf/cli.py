"""CLI entrypoints for shelf commands."""

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from .compiler import CompilationError
from .config import ConfigError, ShelfConfig, load_config
from .graph import ResolutionError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .paths import absolute
from .report import format_report

EXIT_FAILED = 1
EXIT_PREFLIGHT = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Package directories (or manifests) to operate on (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .shelf.yml file or its directory (defaults to current directory).",
    )
    parser.add_argument(
        "--dest",
        default=None,
        help="Install root; overrides the configured dest and SHELF_DEST.",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Compile every manifest and report all compilation errors together.",
    )
    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Treat existing, differing destinations as conflicts instead of replacing them.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON instead of text.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shelf",
        description="Install dotfile packages described by package.py manifests.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    install_parser = subparsers.add_parser(
        "install",
        help="Compile, resolve and install packages into the install root.",
    )
    _add_common_options(install_parser)

    plan_parser = subparsers.add_parser(
        "plan",
        help="Print the install order without touching the filesystem.",
    )
    _add_common_options(plan_parser)

    check_parser = subparsers.add_parser(
        "check",
        help="Compile and resolve packages, reporting any manifest or dependency errors.",
    )
    _add_common_options(check_parser)

    return parser


def _effective_config(args: argparse.Namespace) -> ShelfConfig:
    config = load_config(args.config if args.config is not None else Path.cwd())
    if args.dest:
        config.dest = absolute(args.dest)
    if args.keep_going:
        config.keep_going = True
    if args.no_overwrite:
        config.overwrite = False
    return config


def _install_interrupt_handler(cancel: threading.Event) -> Optional[Any]:
    """Set ``cancel`` on the first SIGINT; a second one interrupts immediately."""
    if threading.current_thread() is not threading.main_thread():
        return None

    def handler(signum: int, frame: Any) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()
        print("shelf: interrupt received; finishing the current package", file=sys.stderr)

    return signal.signal(signal.SIGINT, handler)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for shelf commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    paths = args.paths or ["."]

    try:
        config = _effective_config(args)
    except ConfigError as exc:
        parser.exit(EXIT_PREFLIGHT, f"shelf: {exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)
    orchestrator = Orchestrator(config)

    if args.command == "install":
        cancel = threading.Event()
        previous = _install_interrupt_handler(cancel)
        try:
            report = _preflight(parser, lambda: orchestrator.run_install(paths, cancel=cancel))
        finally:
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            print(format_report(report))
        if not report.ok:
            parser.exit(EXIT_FAILED)
    elif args.command == "plan":
        _, plan = _preflight(parser, lambda: orchestrator.plan(paths))
        if args.json:
            print(json.dumps(list(plan)))
        else:
            for name in plan:
                print(name)
    elif args.command == "check":
        _, plan = _preflight(parser, lambda: orchestrator.plan(paths))
        if args.json:
            print(json.dumps({"ok": True, "packages": len(plan)}))
        else:
            print(f"{len(plan)} package(s) compiled and resolved")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_PREFLIGHT, "Unknown command\n")


def _preflight(parser: argparse.ArgumentParser, step: Callable[[], Any]) -> Any:
    try:
        return step()
    except (CompilationError, ResolutionError) as exc:
        parser.exit(EXIT_PREFLIGHT, f"shelf: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])

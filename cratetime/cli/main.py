# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for cratetime.

Usage:
    cratetime run [options] <package-name>...
    cratetime report <output-dir>...
    cratetime info

`run` builds or tests the latest version of packages from crates.io, saving
timing information and other results. The special package name `*` means
every package in the index (quote it so the shell doesn't expand it).

WARNING: building or testing packages from crates.io executes arbitrary
code. Be wary.
"""

import argparse
import sys

from cratetime.cli.commands import handle_info, handle_report, handle_run
from cratetime.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """Parent parser with the options every subcommand accepts."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    return parent


def _register_run(subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser) -> None:  # type: ignore[type-arg]
    parser = subparsers.add_parser(
        "run",
        parents=[parent],
        help="Build, test or bench packages and capture their output.",
    )
    parser.add_argument("packages", nargs="+", metavar="package-name",
                        help="`name`, `name=version`, or `*` for every package.")
    parser.add_argument("-o", "--out", default=None, metavar="DIR",
                        help="Output directory (default: out).")
    # store_true with default=None so an absent flag doesn't override the config file.
    parser.add_argument("-t", "--test", action="store_true", default=None, help="Run tests.")
    parser.add_argument("-b", "--bench", action="store_true", default=None, help="Run benchmarks.")
    parser.add_argument("--release", action="store_true", default=None,
                        help="Use release mode instead of debug.")
    parser.add_argument("--force", action="store_true", default=None,
                        help="Delete results left over from prior runs.")
    parser.add_argument("--stop-on-error", action="store_true", default=None, dest="stop_on_error",
                        help="Stop if an error results from processing a crate.")
    parser.add_argument("--no-index-update", action="store_true", default=False,
                        dest="no_index_update", help="Use the local index as-is.")
    parser.add_argument("--timeout", type=int, default=None, metavar="SECONDS",
                        help="Per-phase timeout for cargo (default: none).")
    parser.set_defaults(func=handle_run)


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    _register_run(subparsers, parent)

    report = subparsers.add_parser(
        "report",
        parents=[parent],
        help="Print per-pass timings for every package directory.",
    )
    report.add_argument("directories", nargs="+", metavar="output-dir",
                        help="Directory holding one subdirectory per package.")
    report.set_defaults(func=handle_report)

    info = subparsers.add_parser(
        "info",
        parents=[parent],
        help="Display environment and config info.",
    )
    info.set_defaults(func=handle_info)


def main() -> None:
    """Entry point referenced by pyproject.toml's [project.scripts]."""
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="cratetime",
        description="Corpus-wide build and test timing harness for crates.io packages.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

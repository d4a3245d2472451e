"""
draftlint CLI entry point.

This module builds the argument parser, resolves the workspace
configuration and dispatches to the focused command modules.
"""

import argparse
import sys
from typing import Optional

from draftlint import __version__
from draftlint.observability.logging import configure_cli_logging

from .commands import add_compare_command, add_lint_command, add_rules_command
from .context import CLIContext, build_cli_context
from .errors import CLIError, EXIT_USAGE, handle_cli_exception


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check Markdown tutorial drafts for required sections, well-formed code fences and resolvable links",
        prog="draftlint"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        '--config',
        default=None,
        help='Path to a draftlint.toml (or JSON .draftlintrc) configuration file'
    )
    parser.add_argument(
        '--workspace',
        default=None,
        help='Workspace root directory (defaults to current working directory)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print full tracebacks and detailed CLI errors (or set DRAFTLINT_VERBOSE=1)'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'warning', 'error'],
        default=None,
        help='Set logging level (or set DRAFTLINT_LOG_LEVEL)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    add_lint_command(subparsers)
    add_compare_command(subparsers)
    add_rules_command(subparsers)
    return parser


def main(argv: Optional[list] = None) -> None:
    """
    Main CLI entrypoint with subcommand support.

    Args:
        argv: Command-line arguments (None uses sys.argv[1:])

    Examples:
        Lint every draft under the current directory:
        >>> main(['lint'])  # doctest: +SKIP

        Compare four drafts:
        >>> main(['compare', 'drafts/'])  # doctest: +SKIP
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        sys.exit(EXIT_USAGE)

    configure_cli_logging(args.log_level)

    try:
        args.cli_context = build_cli_context(args.workspace, args.config)
    except CLIError as exc:
        handle_cli_exception(exc, verbose=args.verbose)

    args.func(args)


__all__ = ["CLIContext", "build_parser", "main"]


if __name__ == '__main__':  # pragma: no cover
    main()

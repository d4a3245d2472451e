"""Compare command: similarity across near-duplicate drafts."""

import argparse
from typing import List

from ...compare import compare_drafts
from ...document import Document, load_document
from ...errors import DraftLintError
from ..context import get_cli_context, resolve_targets
from ..errors import CLIError, CLIRuntimeError, CLIValidationError, handle_cli_exception
from ..output import print_comparison


def run_compare(args: argparse.Namespace) -> int:
    ctx = get_cli_context(args)
    threshold = getattr(args, "threshold", None)
    if threshold is None:
        threshold = ctx.config.defaults.similarity_threshold
    if not 0.0 <= threshold <= 1.0:
        raise CLIValidationError(f"Threshold must be between 0 and 1, got {threshold}")

    documents: List[Document] = []
    for _, drafts in resolve_targets(ctx, getattr(args, "paths", None) or []):
        for draft in drafts:
            try:
                documents.append(load_document(draft))
            except DraftLintError as exc:
                raise CLIRuntimeError(exc.format()) from exc

    if len(documents) < 2:
        raise CLIValidationError(
            f"Need at least two drafts to compare, found {len(documents)}",
            hint="Pass two or more Markdown files or a directory containing them",
        )

    print_comparison(compare_drafts(documents, threshold), getattr(args, "format", "text"))
    return 0


def cmd_compare(args: argparse.Namespace) -> None:
    """Handle the 'compare' subcommand."""
    try:
        run_compare(args)
    except CLIError as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))


def add_compare_command(subparsers) -> None:
    compare_parser = subparsers.add_parser('compare', help='Report similarity between drafts')
    compare_parser.add_argument('paths', nargs='*', help='Draft files or directories')
    compare_parser.add_argument(
        '--threshold', type=float, default=None,
        help='Similarity ratio that marks a near duplicate (default: 0.85)'
    )
    compare_parser.add_argument('--format', choices=['text', 'json'], default='text')
    compare_parser.set_defaults(func=cmd_compare)

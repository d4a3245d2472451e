"""
Lint command.

Checks Markdown drafts against the built-in rules and, on request,
probes their external links.
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List

from ...document import Document, load_document
from ...errors import DraftLintError
from ...linter import EXTERNAL_LINK_RULE, DraftLinter, LintResult, LintSeverity, get_default_rules, select_rules, summarize
from ...links import check_external_links
from ...observability.logging import get_logger
from ..context import get_cli_context, resolve_targets
from ..errors import CLIError, CLIValidationError, EXIT_FINDINGS, handle_cli_exception, wrap_exception
from ..output import print_lint_results

logger = get_logger("draftlint.cli.lint")


def _parse_fail_on(value: str) -> LintSeverity:
    try:
        return LintSeverity.parse(value)
    except ValueError as exc:
        raise CLIValidationError(str(exc), hint="Use error, warning, info or hint") from exc


def run_lint(args: argparse.Namespace) -> int:
    """
    Lint the drafts named by ``args`` and print the results.

    Returns:
        0 when no finding reaches the failure threshold, 1 otherwise
    """
    ctx = get_cli_context(args)
    config = ctx.config

    disabled = list(config.disabled_rules()) + list(getattr(args, "disable", None) or [])
    try:
        rules = select_rules(get_default_rules(), disabled)
    except KeyError as exc:
        raise CLIValidationError(str(exc.args[0]), hint="Run 'draftlint rules' to list rule ids") from exc

    fail_on = _parse_fail_on(getattr(args, "fail_on", None) or config.defaults.fail_on)
    check_external = bool(getattr(args, "check_external", False) or config.defaults.check_external)
    if EXTERNAL_LINK_RULE in disabled:
        check_external = False
    overrides = config.severity_overrides()

    batches = resolve_targets(
        ctx,
        getattr(args, "paths", None) or [],
        getattr(args, "group", None) or [],
        getattr(args, "required_section", None) or None,
    )

    results: List[LintResult] = []
    documents: Dict[str, Document] = {}
    for options, drafts in batches:
        linter = DraftLinter(rules, options, overrides)
        for draft in drafts:
            try:
                document = load_document(draft)
            except DraftLintError as exc:
                results.append(LintResult(path=str(draft), findings=[], errors=[exc.format()], warnings=[]))
                continue
            documents[document.path] = document
            results.append(linter.lint(document))

    fmt = getattr(args, "format", "text")
    if not results:
        if fmt == "json":
            print_lint_results(results, summarize(results), fmt)
        else:
            print("No Markdown drafts found to lint")
        return 0

    if check_external:
        logger.info("Checking external links in %d draft(s)", len(documents))
        check_external_links(
            results,
            documents,
            config.link_options(),
            severity=overrides.get(EXTERNAL_LINK_RULE, LintSeverity.ERROR),
        )

    summary = summarize(results)
    print_lint_results(results, summary, fmt)

    failing = any(
        not result.success() or result.count_at_least(fail_on) > 0
        for result in results
    )
    return EXIT_FINDINGS if failing else 0


def cmd_lint(args: argparse.Namespace) -> None:
    """
    Handle the 'lint' subcommand.

    Raises:
        SystemExit: With the lint exit code, or 2 on usage/config errors
    """
    try:
        code = run_lint(args)
    except CLIError as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))
    except Exception as exc:  # pragma: no cover - unexpected failures
        handle_cli_exception(
            wrap_exception(exc, message=f"Lint failed: {exc}"),
            verbose=getattr(args, "verbose", False),
        )
    else:
        if code:
            sys.exit(code)


def add_lint_command(subparsers) -> None:
    lint_parser = subparsers.add_parser('lint', help='Check Markdown drafts for editorial problems')
    lint_parser.add_argument(
        'paths', nargs='*',
        help='Draft files or directories (default: the workspace root)'
    )
    lint_parser.add_argument(
        '--format', choices=['text', 'json'], default='text',
        help='Output format (default: text)'
    )
    lint_parser.add_argument(
        '--required-section', action='append', default=[], metavar='TITLE',
        help='Section heading every draft must contain (may be repeated; replaces the configured list)'
    )
    lint_parser.add_argument(
        '--disable', action='append', default=[], metavar='RULE',
        help='Disable a rule by id (may be repeated)'
    )
    lint_parser.add_argument(
        '--fail-on', choices=['error', 'warning', 'info', 'hint'], default=None,
        help='Lowest severity that makes the command fail (default: error)'
    )
    lint_parser.add_argument(
        '--check-external', action='store_true',
        help='Probe http(s) links over the network'
    )
    lint_parser.add_argument(
        '--group', action='append', default=[], metavar='NAME',
        help='Lint a draft group defined under [drafts.NAME] (may be repeated)'
    )
    lint_parser.set_defaults(func=cmd_lint)

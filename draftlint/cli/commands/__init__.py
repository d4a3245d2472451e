"""Subcommand handlers for the draftlint CLI."""

from .compare import add_compare_command, cmd_compare
from .lint import add_lint_command, cmd_lint
from .rules import add_rules_command, cmd_rules

__all__ = [
    "add_compare_command",
    "add_lint_command",
    "add_rules_command",
    "cmd_compare",
    "cmd_lint",
    "cmd_rules",
]

"""
Draft linter for draftlint.

This module provides the rule engine and the built-in rules that check
Markdown drafts for required sections, well-formed code fences and
resolvable links.
"""

from __future__ import annotations

__all__ = [
    "EXTERNAL_LINK_RULE",
    "DraftLinter",
    "LintContext",
    "LintFinding",
    "LintOptions",
    "LintResult",
    "LintRule",
    "LintSeverity",
    "get_default_rules",
    "get_rule",
    "known_rule_ids",
    "select_rules",
    "summarize",
]

from .core import DraftLinter, LintContext, LintFinding, LintOptions, LintResult, LintSeverity, summarize
from .rules import LintRule
from .builtin_rules import EXTERNAL_LINK_RULE, get_default_rules, get_rule, known_rule_ids, select_rules

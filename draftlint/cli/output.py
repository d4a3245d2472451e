"""
Output formatting for CLI operations.

This module provides functions for printing lint results, draft
comparisons and the rule catalogue in text or JSON form.
"""

import json
from typing import Any, Dict, List, Sequence

from ..compare import DraftComparison, section_matrix
from ..linter import LintResult, LintRule

_ICONS = {
    "error": "❌",
    "warning": "⚠️",
    "info": "💡",
    "hint": "💡",
}


def pluralize(word: str, count: int) -> str:
    return word if count == 1 else f"{word}s"


def print_lint_results(results: Sequence[LintResult], summary: Dict[str, int], fmt: str = "text") -> None:
    """
    Print lint results grouped by file.

    Args:
        results: Results in the order the drafts were linted
        summary: Aggregate counts (see ``draftlint.linter.summarize``)
        fmt: ``text`` or ``json``

    Examples:
        >>> print_lint_results(results, summarize(results))  # doctest: +SKIP
        drafts/intro.md:
          ❌ ERROR:1 [required-section] Missing required section 'Example spec'
             💡 Add a '## Example spec' section
    """
    if fmt == "json":
        payload = {"results": [result.to_dict() for result in results], "summary": summary}
        print(json.dumps(payload, indent=2))
        return

    for result in results:
        if result.errors:
            print(f"\n{result.path}: ERRORS")
            for error in result.errors:
                print(f"  {error}")
            continue

        for warning in result.warnings:
            print(f"Warning: {warning}")

        if result.findings:
            print(f"\n{result.path}:")
            for finding in result.findings:
                icon = _ICONS.get(finding.severity.value, "•")
                location = f":{finding.line}" if finding.line else ""
                if finding.line and finding.column:
                    location += f":{finding.column}"
                print(
                    f"  {icon} {finding.severity.value.upper()}{location} "
                    f"[{finding.rule_id}] {finding.message}"
                )
                if finding.suggestion:
                    print(f"     💡 {finding.suggestion}")

    files = summary["files"]
    print(
        f"\n→ {files} {pluralize('draft', files)} checked: "
        f"{summary['errors']} {pluralize('error', summary['errors'])}, "
        f"{summary['warnings']} {pluralize('warning', summary['warnings'])}, "
        f"{summary['infos'] + summary['hints']} {pluralize('note', summary['infos'] + summary['hints'])}"
    )


def print_comparison(comparison: DraftComparison, fmt: str = "text") -> None:
    """Print pairwise similarity, near duplicates and missing sections."""
    if fmt == "json":
        print(json.dumps(comparison.to_dict(), indent=2))
        return

    print("Pairwise similarity:")
    for pair in comparison.pairs:
        marker = "  ≈" if pair.ratio >= comparison.threshold else "   "
        print(f"{marker} {pair.ratio:6.1%}  {pair.first} <-> {pair.second}")

    duplicates = comparison.near_duplicates
    print(
        f"\n{len(duplicates)} near-duplicate {pluralize('pair', len(duplicates))} "
        f"(threshold {comparison.threshold:.0%})"
    )

    rows = section_matrix(comparison)
    if rows:
        print("\nSections:")
        for title, presence in rows:
            cells = " ".join("x" if present else "." for present in presence)
            print(f"  {cells}  {title}")

    gaps: List[str] = []
    for path in comparison.paths:
        missing = comparison.missing_sections(path)
        if missing:
            gaps.append(f"  {path}: {', '.join(missing)}")
    if gaps:
        print("\nMissing sections:")
        for line in gaps:
            print(line)


def rules_payload(rules: Sequence[LintRule]) -> List[Dict[str, Any]]:
    return [
        {"id": rule.rule_id, "severity": rule.severity.value, "description": rule.description}
        for rule in rules
    ]


def print_rules(rules: Sequence[LintRule], fmt: str = "text") -> None:
    if fmt == "json":
        print(json.dumps(rules_payload(rules), indent=2))
        return
    width = max((len(rule.rule_id) for rule in rules), default=0)
    for rule in rules:
        print(f"{rule.rule_id.ljust(width)}  {rule.severity.value:<7}  {rule.description}")

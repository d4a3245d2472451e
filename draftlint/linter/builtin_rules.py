"""Built-in lint rules for Markdown drafts."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import unquote

from draftlint.document import Link
from .rules import LintRule
from .core import LintContext, LintFinding, LintSeverity

# Reported by draftlint.links after network probes
EXTERNAL_LINK_RULE = "external-link"


class RequiredSectionRule(LintRule):
    """Every draft must contain the configured section headings."""

    def __init__(self):
        super().__init__(
            rule_id="required-section",
            description="Require configured section headings (default: 'Example spec')",
            severity=LintSeverity.ERROR,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        document = context.document
        titles = [heading.text for heading in document.headings]

        for title in context.options.required_sections:
            if document.has_section(title):
                continue
            close = difflib.get_close_matches(title, titles, n=1, cutoff=0.6)
            if close:
                suggestion = f"Rename the heading '{close[0]}' to '{title}'"
            else:
                suggestion = f"Add a '## {title}' section"
            findings.append(LintFinding(
                rule_id=self.rule_id,
                message=f"Missing required section '{title}'",
                severity=self.severity,
                line=1,
                suggestion=suggestion,
            ))

        return findings


class UnclosedCodeFenceRule(LintRule):
    """Detect code fences that are never closed."""

    def __init__(self):
        super().__init__(
            rule_id="unclosed-code-fence",
            description="Every fenced code block must be closed by a matching fence",
            severity=LintSeverity.ERROR,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        for fence in context.document.fences:
            if fence.closed:
                continue
            opener = fence.marker * fence.length
            findings.append(LintFinding(
                rule_id=self.rule_id,
                message=f"Code fence opened with {opener} is never closed",
                severity=self.severity,
                line=fence.start_line,
                code_context=context.get_line(fence.start_line),
                suggestion=f"Close the block with a line containing at least {fence.length} '{fence.marker}' characters",
            ))
        return findings


class FenceLanguageRule(LintRule):
    """Fences should declare a language; optionally restricted to a known list."""

    def __init__(self):
        super().__init__(
            rule_id="fence-language",
            description="Code fences should declare a (known) language",
            severity=LintSeverity.INFO,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        allowed = {language.lower() for language in context.options.fence_languages}

        for fence in context.document.fences:
            language = fence.language
            if language is None:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message="Code fence has no language",
                    severity=self.severity,
                    line=fence.start_line,
                    suggestion="Add an info string such as ```clojure",
                ))
            elif allowed and language not in allowed:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Code fence language '{language}' is not in the allowed list",
                    severity=LintSeverity.WARNING,
                    line=fence.start_line,
                    suggestion=f"Use one of: {', '.join(sorted(allowed))}",
                ))

        return findings


_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {value: key for key, value in _OPENERS.items()}


class UnbalancedDelimitersRule(LintRule):
    """Lisp-family snippets must have balanced (), [] and {}."""

    def __init__(self):
        super().__init__(
            rule_id="unbalanced-delimiters",
            description="Clojure/EDN code fences must have balanced delimiters",
            severity=LintSeverity.WARNING,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        languages = {language.lower() for language in context.options.lisp_languages}

        for fence in context.document.fences:
            if fence.language not in languages:
                continue
            problem = find_unbalanced(fence.content_lines)
            if problem is None:
                continue
            message, offset, column = problem
            line = fence.start_line + 1 + offset
            findings.append(LintFinding(
                rule_id=self.rule_id,
                message=message,
                severity=self.severity,
                line=line,
                column=column,
                code_context=context.get_line(line),
            ))

        return findings


def find_unbalanced(lines: List[str]) -> Optional[Tuple[str, int, int]]:
    """
    Scan Lisp source for the first delimiter problem.

    Strings, ``;`` comments and character literals (``\\(``) are skipped.

    Returns:
        ``(message, line_offset, column)`` or ``None`` when balanced
    """
    stack: List[Tuple[str, int, int]] = []
    in_string: Optional[Tuple[int, int]] = None

    for offset, text in enumerate(lines):
        index = 0
        while index < len(text):
            char = text[index]
            if in_string is not None:
                if char == "\\":
                    index += 2
                    continue
                if char == '"':
                    in_string = None
                index += 1
                continue
            if char == ";":
                break
            if char == "\\":
                index += 2
                continue
            if char == '"':
                in_string = (offset, index + 1)
            elif char in _OPENERS:
                stack.append((char, offset, index + 1))
            elif char in _CLOSERS:
                if not stack:
                    return f"Unexpected '{char}' with no matching '{_CLOSERS[char]}'", offset, index + 1
                opener, open_offset, open_column = stack.pop()
                if _OPENERS[opener] != char:
                    return (
                        f"Mismatched '{char}': expected '{_OPENERS[opener]}' to close "
                        f"'{opener}' from line {open_offset + 1} of the block",
                        offset,
                        index + 1,
                    )
            index += 1

    if in_string is not None:
        return "Unterminated string literal", in_string[0], in_string[1]
    if stack:
        opener, offset, column = stack[-1]
        return f"Unclosed '{opener}'", offset, column
    return None


class BrokenAnchorRule(LintRule):
    """In-page ``#fragment`` links must point at an existing heading."""

    def __init__(self):
        super().__init__(
            rule_id="broken-anchor",
            description="Fragment links must resolve to a heading anchor in the same draft",
            severity=LintSeverity.ERROR,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        anchors = context.document.anchors()

        for link in context.document.links:
            if not link.is_fragment:
                continue
            fragment = unquote(link.target[1:])
            if not fragment or fragment in anchors:
                continue
            findings.append(_anchor_finding(self, link, fragment, anchors))

        return findings


def _anchor_finding(rule: LintRule, link: Link, fragment: str, anchors: List[str], where: str = "") -> LintFinding:
    close = difflib.get_close_matches(fragment, anchors, n=1, cutoff=0.6)
    return LintFinding(
        rule_id=rule.rule_id,
        message=f"Link target '#{fragment}' does not match any heading{where}",
        severity=rule.severity,
        line=link.line,
        column=link.column,
        suggestion=f"Did you mean '#{close[0]}'?" if close else None,
    )


class MissingLocalFileRule(LintRule):
    """Relative links must point at files that exist."""

    def __init__(self):
        super().__init__(
            rule_id="missing-local-file",
            description="Relative links must resolve to existing files (and anchors in linked drafts)",
            severity=LintSeverity.ERROR,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []

        for link in context.document.links:
            if not link.target or link.is_fragment or link.has_scheme or link.target.startswith("//"):
                continue
            path_part, _, fragment = link.target.partition("#")
            path_part = unquote(path_part.split("?", 1)[0])
            if not path_part:
                continue
            resolved = self._resolve(context, path_part)
            if not resolved.exists():
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Linked file '{path_part}' does not exist",
                    severity=self.severity,
                    line=link.line,
                    column=link.column,
                ))
                continue
            if fragment and resolved.is_file() and resolved.suffix.lower() in (".md", ".markdown"):
                linked = context.load_linked(resolved)
                fragment = unquote(fragment)
                if linked is not None and fragment not in linked.anchors():
                    findings.append(
                        _anchor_finding(self, link, fragment, linked.anchors(), where=f" in '{path_part}'")
                    )

        return findings

    def _resolve(self, context: LintContext, path_part: str) -> Path:
        if path_part.startswith("/"):
            root = context.options.root or Path.cwd()
            return root / path_part.lstrip("/")
        return context.base_dir / path_part


class UndefinedReferenceRule(LintRule):
    """Reference-style links must have a matching definition."""

    def __init__(self):
        super().__init__(
            rule_id="undefined-reference",
            description="Reference links must have a matching [label]: definition",
            severity=LintSeverity.ERROR,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        definitions = context.document.definitions

        for link in context.document.links:
            if link.kind != "reference" or link.label in definitions:
                continue
            findings.append(LintFinding(
                rule_id=self.rule_id,
                message=f"Reference '[{link.label}]' has no definition",
                severity=self.severity,
                line=link.line,
                column=link.column,
                suggestion=f"Add a line like '[{link.label}]: https://...'",
            ))

        return findings


class UnusedReferenceRule(LintRule):
    """Report reference definitions nothing links to."""

    def __init__(self):
        super().__init__(
            rule_id="unused-reference",
            description="Reference definitions should be used",
            severity=LintSeverity.HINT,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        used: Set[str] = {link.label for link in context.document.links if link.kind == "reference"}
        return [
            LintFinding(
                rule_id=self.rule_id,
                message=f"Reference definition '[{definition.label}]' is never used",
                severity=self.severity,
                line=definition.line,
            )
            for definition in context.document.definitions.values()
            if definition.label not in used
        ]


class EmptyLinkRule(LintRule):
    """Links and definitions must have a target."""

    def __init__(self):
        super().__init__(
            rule_id="empty-link",
            description="Links must not have an empty target",
            severity=LintSeverity.WARNING,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        for link in context.document.links:
            if link.kind in ("inline", "image") and not link.target:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Link '{link.text}' has an empty target",
                    severity=self.severity,
                    line=link.line,
                    column=link.column,
                ))
        for definition in context.document.definitions.values():
            if not definition.target:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Reference definition '[{definition.label}]' has an empty target",
                    severity=self.severity,
                    line=definition.line,
                ))
        return findings


class HeadingIncrementRule(LintRule):
    """Heading levels should only increase one step at a time."""

    def __init__(self):
        super().__init__(
            rule_id="heading-increment",
            description="Heading levels should not skip (e.g. '#' followed by '###')",
            severity=LintSeverity.WARNING,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        previous: Optional[int] = None

        for heading in context.document.headings:
            if previous is not None and heading.level > previous + 1:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Heading '{heading.text}' jumps from level {previous} to {heading.level}",
                    severity=self.severity,
                    line=heading.line,
                    suggestion=f"Use a level {previous + 1} heading",
                ))
            previous = heading.level

        return findings


class DuplicateHeadingRule(LintRule):
    """Flag repeated headings at the same level."""

    def __init__(self):
        super().__init__(
            rule_id="duplicate-heading",
            description="Headings at the same level should be unique",
            severity=LintSeverity.INFO,
        )

    def check(self, context: LintContext) -> List[LintFinding]:
        findings = []
        seen: Dict[Tuple[int, str], int] = {}

        for heading in context.document.headings:
            key = (heading.level, heading.normalized)
            if key in seen:
                findings.append(LintFinding(
                    rule_id=self.rule_id,
                    message=f"Duplicate heading '{heading.text}' (first seen on line {seen[key]})",
                    severity=self.severity,
                    line=heading.line,
                ))
            else:
                seen[key] = heading.line

        return findings


def get_default_rules() -> List[LintRule]:
    """Get the default set of lint rules."""
    return [
        RequiredSectionRule(),
        UnclosedCodeFenceRule(),
        FenceLanguageRule(),
        UnbalancedDelimitersRule(),
        BrokenAnchorRule(),
        MissingLocalFileRule(),
        UndefinedReferenceRule(),
        UnusedReferenceRule(),
        EmptyLinkRule(),
        HeadingIncrementRule(),
        DuplicateHeadingRule(),
    ]


def get_rule(rule_id: str) -> LintRule:
    for rule in get_default_rules():
        if rule.rule_id == rule_id:
            return rule
    raise KeyError(f"Unknown lint rule '{rule_id}'")


def known_rule_ids() -> Set[str]:
    """Ids accepted by ``[rules]`` and ``--disable``, including ``external-link``."""
    return {rule.rule_id for rule in get_default_rules()} | {EXTERNAL_LINK_RULE}


def select_rules(rules: Iterable[LintRule], disabled: Iterable[str]) -> List[LintRule]:
    """Drop disabled rules; unknown ids raise ``KeyError``.

    ``external-link`` is not a document rule; disabling it is accepted here
    and honoured by the link checking step.
    """
    rules = list(rules)
    known = {rule.rule_id for rule in rules} | {EXTERNAL_LINK_RULE}
    disabled_ids = set(disabled)
    unknown = disabled_ids - known
    if unknown:
        raise KeyError(f"Unknown lint rule(s): {', '.join(sorted(unknown))}")
    return [rule for rule in rules if rule.rule_id not in disabled_ids]


__all__ = [
    "EXTERNAL_LINK_RULE",
    "RequiredSectionRule",
    "UnclosedCodeFenceRule",
    "FenceLanguageRule",
    "UnbalancedDelimitersRule",
    "BrokenAnchorRule",
    "MissingLocalFileRule",
    "UndefinedReferenceRule",
    "UnusedReferenceRule",
    "EmptyLinkRule",
    "HeadingIncrementRule",
    "DuplicateHeadingRule",
    "find_unbalanced",
    "get_default_rules",
    "get_rule",
    "known_rule_ids",
    "select_rules",
]

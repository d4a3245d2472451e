"""Core draft linter infrastructure."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from draftlint.document import Document, load_document, parse_document
from draftlint.errors import DraftLintError
from draftlint.observability.logging import get_logger
from .rules import LintRule


class LintSeverity(Enum):
    """Severity levels for lint findings."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: Union[str, "LintSeverity"]) -> "LintSeverity":
        if isinstance(value, LintSeverity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {choices})") from None


_SEVERITY_RANK = {
    LintSeverity.HINT: 0,
    LintSeverity.INFO: 1,
    LintSeverity.WARNING: 2,
    LintSeverity.ERROR: 3,
}


@dataclass
class LintFinding:
    """A single lint finding."""
    rule_id: str
    message: str
    severity: LintSeverity
    line: Optional[int] = None
    column: Optional[int] = None
    suggestion: Optional[str] = None
    code_context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "message": self.message,
            "severity": self.severity.value,
            "line": self.line,
            "column": self.column,
            "suggestion": self.suggestion,
            "code_context": self.code_context,
        }


@dataclass
class LintResult:
    """Result of linting one draft."""
    path: str
    findings: List[LintFinding]
    errors: List[str]
    warnings: List[str]

    def success(self) -> bool:
        """Check if linting completed without errors."""
        return len(self.errors) == 0

    def has_issues(self) -> bool:
        """Check if any issues were found."""
        return len(self.findings) > 0

    def error_count(self) -> int:
        """Count of error-level findings."""
        return sum(1 for f in self.findings if f.severity == LintSeverity.ERROR)

    def warning_count(self) -> int:
        """Count of warning-level findings."""
        return sum(1 for f in self.findings if f.severity == LintSeverity.WARNING)

    def count_at_least(self, severity: LintSeverity) -> int:
        return sum(1 for f in self.findings if f.severity.rank >= severity.rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "findings": [finding.to_dict() for finding in self.findings],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class LintOptions:
    """Knobs shared by all rules during a lint run."""
    required_sections: List[str] = field(default_factory=lambda: ["Example spec"])
    fence_languages: List[str] = field(default_factory=list)
    lisp_languages: List[str] = field(default_factory=lambda: ["clojure", "clj", "cljs", "cljc", "edn"])
    root: Optional[Path] = None


@dataclass
class LintContext:
    """Context provided to lint rules for analysis."""
    document: Document
    options: LintOptions = field(default_factory=LintOptions)
    linked_documents: Dict[str, Optional[Document]] = field(default_factory=dict)

    @property
    def file_path(self) -> str:
        return self.document.path

    @property
    def base_dir(self) -> Path:
        return Path(self.document.path).parent

    def get_lines(self) -> List[str]:
        """Get source lines for line-based analysis."""
        return self.document.lines()

    def get_line(self, line_number: int) -> Optional[str]:
        """Get a specific source line (1-indexed)."""
        return self.document.line(line_number)

    def load_linked(self, path: Path) -> Optional[Document]:
        """Load another draft referenced by a link; ``None`` if unreadable."""
        key = str(path.resolve())
        if key not in self.linked_documents:
            try:
                self.linked_documents[key] = load_document(path)
            except DraftLintError as exc:
                get_logger(__name__).debug("Cannot load linked draft %s: %s", path, exc.message)
                self.linked_documents[key] = None
        return self.linked_documents[key]


class DraftLinter:
    """
    Rule-based linter for Markdown drafts.

    Each rule is a predicate over a scanned :class:`Document`. The linter
    runs every rule, applies configured severity overrides and collects
    the findings. A rule that raises is reported as a warning on the
    result instead of aborting the run.
    """

    def __init__(
        self,
        rules: Optional[List[LintRule]] = None,
        options: Optional[LintOptions] = None,
        severity_overrides: Optional[Dict[str, LintSeverity]] = None,
    ):
        self.rules = rules or []
        self.options = options or LintOptions()
        self.severity_overrides = dict(severity_overrides or {})
        self.logger = get_logger(__name__)
        self._linked_documents: Dict[str, Optional[Document]] = {}

    def lint_document(self, source_text: str, file_path: str = "untitled.md") -> LintResult:
        """
        Lint one draft given as text.

        Args:
            source_text: Markdown source of the draft
            file_path: File path for context and relative link resolution

        Returns:
            LintResult with findings and status
        """
        try:
            document = parse_document(source_text, file_path)
        except Exception as exc:
            self.logger.error("Scanning %s failed: %s", file_path, exc)
            return LintResult(path=file_path, findings=[], errors=[f"Scan error: {exc}"], warnings=[])
        return self.lint(document)

    def lint(self, document: Document) -> LintResult:
        findings: List[LintFinding] = []
        warnings: List[str] = []
        context = LintContext(
            document=document,
            options=self.options,
            linked_documents=self._linked_documents,
        )

        for rule in self.rules:
            try:
                rule_findings = rule.check(context)
            except Exception as exc:
                self.logger.warning("Rule %s failed on %s: %s", rule.rule_id, document.path, exc)
                warnings.append(f"Rule {rule.rule_id} encountered an error: {exc}")
                continue
            override = self.severity_overrides.get(rule.rule_id)
            if override is not None:
                for finding in rule_findings:
                    finding.severity = override
            findings.extend(rule_findings)

        findings.sort(key=lambda f: (f.line or 0, f.column or 0, f.rule_id))
        self.logger.debug("Linted %s: %d finding(s)", document.path, len(findings))
        return LintResult(path=document.path, findings=findings, errors=[], warnings=warnings)

    def lint_file(self, path: Union[str, Path]) -> LintResult:
        try:
            document = load_document(path)
        except DraftLintError as exc:
            return LintResult(path=str(path), findings=[], errors=[exc.format()], warnings=[])
        return self.lint(document)

    def lint_paths(self, paths: Iterable[Union[str, Path]]) -> List[LintResult]:
        return [self.lint_file(path) for path in paths]


def summarize(results: Sequence[LintResult]) -> Dict[str, int]:
    """Aggregate counts across a lint run."""
    summary = {"files": len(results), "errors": 0, "warnings": 0, "infos": 0, "hints": 0, "failed": 0}
    for result in results:
        if not result.success():
            summary["failed"] += 1
        for finding in result.findings:
            summary[f"{finding.severity.value}s"] += 1
    return summary

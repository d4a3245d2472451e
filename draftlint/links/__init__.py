"""External hyperlink resolution for drafts."""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional, Sequence

import httpx

from draftlint.document import Document
from draftlint.linter.builtin_rules import EXTERNAL_LINK_RULE
from draftlint.linter.core import LintFinding, LintResult, LintSeverity
from .checker import LinkChecker, LinkCheckOptions, LinkCheckResult, LinkStatus


async def _check_all(urls, options, transport):
    async with LinkChecker(options, transport=transport) as checker:
        return await checker.check_many(urls)


def check_external_links(
    results: Sequence[LintResult],
    documents: Mapping[str, Document],
    options: Optional[LinkCheckOptions] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    severity: LintSeverity = LintSeverity.ERROR,
) -> Mapping[str, LinkCheckResult]:
    """
    Probe every external link of the linted drafts and record failures.

    Each URL is probed once even when several drafts share it. Broken or
    unreachable links are appended to the matching ``LintResult`` as
    ``external-link`` findings.

    Args:
        results: Lint results to extend, keyed by their ``path``
        documents: Scanned drafts keyed by path
        options: Timeout/retry/concurrency settings
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        severity: Severity assigned to the findings

    Returns:
        Mapping of URL to probe result
    """
    urls = [
        link.target
        for result in results
        for link in _external_links(documents.get(result.path))
    ]
    if not urls:
        return {}

    checked = asyncio.run(_check_all(urls, options, transport))

    for result in results:
        for link in _external_links(documents.get(result.path)):
            outcome = checked[link.target]
            if outcome.ok:
                continue
            if outcome.status_code is not None:
                message = f"External link '{link.target}' returned HTTP {outcome.status_code}"
            else:
                message = f"External link '{link.target}' is unreachable"
            result.findings.append(LintFinding(
                rule_id=EXTERNAL_LINK_RULE,
                message=message,
                severity=severity,
                line=link.line,
                column=link.column,
                suggestion=outcome.detail,
            ))
        result.findings.sort(key=lambda f: (f.line or 0, f.column or 0, f.rule_id))
    return checked


def _external_links(document: Optional[Document]):
    if document is None:
        return []
    return [link for link in document.links if link.is_external]


__all__ = [
    "EXTERNAL_LINK_RULE",
    "LinkChecker",
    "LinkCheckOptions",
    "LinkCheckResult",
    "LinkStatus",
    "check_external_links",
]

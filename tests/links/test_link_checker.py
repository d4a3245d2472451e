"""Tests for the external link checker."""

import httpx
import pytest

from draftlint.document import parse_document
from draftlint.errors import LinkCheckError
from draftlint.linter import DraftLinter, LintSeverity, get_default_rules
from draftlint.links import (
    EXTERNAL_LINK_RULE,
    LinkChecker,
    LinkCheckOptions,
    LinkStatus,
    check_external_links,
)

FAST = LinkCheckOptions(retry_base_delay=0.0, retry_max_delay=0.0, retry_max_attempts=3)


def recording_transport(responses):
    """MockTransport answering from a dict of url -> list of status codes."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        calls.append((request.method, url))
        queue = responses[url]
        status = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(status, Exception):
            raise status
        return httpx.Response(status, request=request)

    return httpx.MockTransport(handler), calls


@pytest.mark.asyncio
async def test_ok_link():
    transport, calls = recording_transport({"https://clojure.org/guides/spec": [200]})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("https://clojure.org/guides/spec")

    assert result.status == LinkStatus.OK
    assert result.status_code == 200
    assert result.attempts == 1
    assert calls == [("HEAD", "https://clojure.org/guides/spec")]


@pytest.mark.asyncio
async def test_not_found_is_not_retried():
    transport, calls = recording_transport({"https://example.com/gone": [404]})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("https://example.com/gone")

    assert result.status == LinkStatus.BROKEN
    assert result.status_code == 404
    assert len(calls) == 1
    assert not result.ok


@pytest.mark.asyncio
async def test_transient_error_is_retried():
    transport, calls = recording_transport({"https://example.com/flaky": [503, 200]})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("https://example.com/flaky")

    assert result.status == LinkStatus.OK
    assert result.attempts == 2
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_persistent_server_error_is_broken():
    transport, calls = recording_transport({"https://example.com/down": [500]})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("https://example.com/down")

    assert result.status == LinkStatus.BROKEN
    assert result.status_code == 500
    assert result.attempts == 3
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_head_not_allowed_falls_back_to_get():
    transport, calls = recording_transport({"https://example.com/page": [405, 200]})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("https://example.com/page")

    assert result.status == LinkStatus.OK
    assert result.attempts == 1
    assert [method for method, _ in calls] == ["HEAD", "GET"]


@pytest.mark.asyncio
async def test_connection_error_is_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with LinkChecker(FAST, transport=httpx.MockTransport(handler)) as checker:
        result = await checker.check("https://unreachable.invalid/")

    assert result.status == LinkStatus.UNREACHABLE
    assert result.status_code is None
    assert result.attempts == 3
    assert "ConnectError" in result.detail


@pytest.mark.asyncio
async def test_non_http_scheme_is_skipped():
    transport, calls = recording_transport({})
    async with LinkChecker(FAST, transport=transport) as checker:
        result = await checker.check("mailto:team@example.com")

    assert result.status == LinkStatus.SKIPPED
    assert result.ok
    assert calls == []


@pytest.mark.asyncio
async def test_check_many_deduplicates_and_caches():
    transport, calls = recording_transport({
        "https://a.example/": [200],
        "https://b.example/": [404],
    })
    async with LinkChecker(FAST, transport=transport) as checker:
        results = await checker.check_many(["https://a.example/", "https://b.example/", "https://a.example/"])
        again = await checker.check("https://a.example/")

    assert list(results) == ["https://a.example/", "https://b.example/"]
    assert results["https://b.example/"].status == LinkStatus.BROKEN
    assert again is results["https://a.example/"]
    assert len(calls) == 2


def test_backoff_is_capped():
    options = LinkCheckOptions(retry_base_delay=0.5, retry_max_delay=1.5)
    assert [options.backoff(n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 1.5, 1.5]


def test_invalid_options_rejected():
    with pytest.raises(LinkCheckError):
        LinkChecker(LinkCheckOptions(retry_max_attempts=0))
    with pytest.raises(LinkCheckError):
        LinkChecker(LinkCheckOptions(concurrency_limit=0))


def test_check_external_links_adds_findings():
    source = (
        "## Example spec\n"
        "\n"
        "See [guide](https://clojure.org/guides/spec) and https://example.com/gone.\n"
    )
    document = parse_document(source, "draft.md")
    result = DraftLinter(get_default_rules()).lint(document)
    assert not result.has_issues()

    transport, _ = recording_transport({
        "https://clojure.org/guides/spec": [200],
        "https://example.com/gone": [404],
    })
    checked = check_external_links([result], {"draft.md": document}, FAST, transport=transport)

    assert set(checked) == {"https://clojure.org/guides/spec", "https://example.com/gone"}
    assert len(result.findings) == 1
    finding = result.findings[0]
    assert finding.rule_id == EXTERNAL_LINK_RULE
    assert finding.severity == LintSeverity.ERROR
    assert finding.line == 3
    assert "HTTP 404" in finding.message


def test_check_external_links_without_links():
    document = parse_document("## Example spec\n", "draft.md")
    result = DraftLinter(get_default_rules()).lint(document)
    assert check_external_links([result], {"draft.md": document}) == {}

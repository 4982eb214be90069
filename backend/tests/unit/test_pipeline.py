"""
Unit tests for TrackerPipeline

Tests cover:
    - Pull and push end to end with one slow source
    - Partial and total source failure
    - Push authorization happening before any fetch or RPC work
    - Static trackers merged ahead of fetched sources
    - Idempotent runs over unchanged sources
"""

import asyncio

import httpx
import pytest

from trackarr.config import PipelineConfig
from trackarr.processors.pipeline import TrackerPipeline
from trackarr.services.aria2_client import Aria2RpcClient
from trackarr.services.exceptions import AuthenticationError, RpcDeliveryError
from trackarr.services.source_fetcher import SourceFetcher


SOURCE_A = "https://lists.example.com/a.txt"
SOURCE_B = "https://lists.example.com/b.txt"
RPC_URL = "http://localhost:6800/jsonrpc"
PUSH_TOKEN = "push-secret"


def slow_source_transport(bodies: dict, slow: str) -> httpx.MockTransport:
    """Serve bodies, but never answer the slow source within the fetch timeout."""
    async def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == slow:
            await asyncio.sleep(5)
        return httpx.Response(200, text=bodies.get(url, ""))

    return httpx.MockTransport(handler)


@pytest.fixture
def scenario_fetcher():
    """Source A serves two trackers with a blank line, source B times out."""
    transport = slow_source_transport({SOURCE_A: "http://t1\n\nhttp://t2\n"}, slow=SOURCE_B)
    return SourceFetcher(timeout=0.1, transport=transport)


def make_pipeline(fetcher, rpc_transport=None, **overrides) -> TrackerPipeline:
    settings = dict(
        sources=(SOURCE_A, SOURCE_B),
        fetch_timeout=0.1,
        rpc_url=RPC_URL,
        rpc_dialect="generic",
        push_token=PUSH_TOKEN,
    )
    settings.update(overrides)
    config = PipelineConfig(**settings)

    rpc_client = None
    if config.rpc_url:
        rpc_client = Aria2RpcClient(
            config.rpc_url,
            secret=config.rpc_secret,
            dialect=config.rpc_dialect,
            method=config.rpc_method,
            transport=rpc_transport,
        )
    return TrackerPipeline(config, fetcher=fetcher, rpc_client=rpc_client)


# ============================================================================
# End-to-end Scenario
# ============================================================================

@pytest.mark.asyncio
async def test_pull_with_slow_source_and_extra(scenario_fetcher):
    pipeline = make_pipeline(scenario_fetcher)

    body = await pipeline.pull(extra=["http://t3"])

    assert body.splitlines() == ["http://t1", "http://t2", "http://t3"]


@pytest.mark.asyncio
async def test_push_with_slow_source_and_extra(scenario_fetcher, rpc_transport):
    transport = rpc_transport()
    pipeline = make_pipeline(scenario_fetcher, rpc_transport=transport)

    outcome = await pipeline.push(extra=["http://t3"], credential=PUSH_TOKEN)

    assert outcome.tracker_count == 3
    assert len(transport.calls) == 1
    assert transport.calls[0]["method"] == "addTrackers"
    assert transport.calls[0]["params"] == [["http://t1", "http://t2", "http://t3"]]


@pytest.mark.asyncio
async def test_push_aria2_dialect(scenario_fetcher, rpc_transport):
    transport = rpc_transport()
    pipeline = make_pipeline(
        scenario_fetcher, rpc_transport=transport, rpc_dialect="aria2", rpc_secret="s3cret"
    )

    outcome = await pipeline.push(extra=["http://t3"], credential=PUSH_TOKEN)

    assert outcome.method == "aria2.changeGlobalOption"
    assert transport.calls[0]["params"] == [
        "token:s3cret",
        {"bt-tracker": "http://t1,http://t2,http://t3"},
    ]


# ============================================================================
# Failure Handling
# ============================================================================

@pytest.mark.asyncio
async def test_all_sources_failed_still_serves_extras(source_transport):
    fetcher = SourceFetcher(transport=source_transport({
        SOURCE_A: (500, "boom"),
        SOURCE_B: httpx.ConnectError("refused"),
    }))
    pipeline = make_pipeline(fetcher)

    body = await pipeline.pull(extra=["udp://t9:80/announce"])

    assert body == "udp://t9:80/announce\n"


@pytest.mark.asyncio
async def test_all_sources_failed_without_extras_gives_empty_body(source_transport):
    fetcher = SourceFetcher(transport=source_transport({}))
    pipeline = make_pipeline(fetcher)

    assert await pipeline.pull() == ""


@pytest.mark.asyncio
async def test_malformed_extras_dropped(source_transport):
    fetcher = SourceFetcher(transport=source_transport({SOURCE_A: "http://t1\n"}))
    pipeline = make_pipeline(fetcher, sources=(SOURCE_A,))

    body = await pipeline.pull(extra=["  http://t2  ", "garbage", "http://t1"])

    assert body.splitlines() == ["http://t1", "http://t2"]


@pytest.mark.asyncio
async def test_rpc_failure_propagates(source_transport, rpc_transport):
    fetcher = SourceFetcher(transport=source_transport({SOURCE_A: "http://t1\n"}))
    transport = rpc_transport(lambda payload: httpx.Response(400, json={
        "jsonrpc": "2.0", "id": payload["id"], "error": {"code": 1, "message": "Unauthorized"},
    }))
    pipeline = make_pipeline(fetcher, rpc_transport=transport, sources=(SOURCE_A,))

    with pytest.raises(RpcDeliveryError):
        await pipeline.push(credential=PUSH_TOKEN)


@pytest.mark.asyncio
async def test_push_without_daemon_fails_before_fetching(source_transport):
    transport = source_transport({SOURCE_A: "http://t1\n"})
    pipeline = make_pipeline(SourceFetcher(transport=transport), rpc_url="")

    with pytest.raises(RpcDeliveryError, match="not configured"):
        await pipeline.push(credential=PUSH_TOKEN)

    assert transport.requested == []


# ============================================================================
# Authorization Ordering
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("credential", [None, "wrong-token"])
async def test_unauthorized_push_does_no_work(source_transport, rpc_transport, credential):
    sources = source_transport({SOURCE_A: "http://t1\n"})
    daemon = rpc_transport()
    pipeline = make_pipeline(SourceFetcher(transport=sources), rpc_transport=daemon)

    with pytest.raises(AuthenticationError):
        await pipeline.push(credential=credential)

    assert sources.requested == []
    assert daemon.calls == []


@pytest.mark.asyncio
async def test_scheduled_push_needs_no_credential(source_transport, rpc_transport):
    daemon = rpc_transport()
    fetcher = SourceFetcher(transport=source_transport({SOURCE_A: "http://t1\n"}))
    pipeline = make_pipeline(fetcher, rpc_transport=daemon, sources=(SOURCE_A,), push_token="")

    outcome = await pipeline.push(scheduled=True)

    assert outcome.tracker_count == 1
    assert len(daemon.calls) == 1


# ============================================================================
# Ordering and Idempotence
# ============================================================================

@pytest.mark.asyncio
async def test_static_trackers_come_first(source_transport):
    fetcher = SourceFetcher(transport=source_transport({SOURCE_A: "http://t1\nudp://s1:80/announce\n"}))
    pipeline = make_pipeline(
        fetcher, sources=(SOURCE_A,), static_trackers=("udp://s1:80/announce",)
    )

    body = await pipeline.pull()

    assert body.splitlines() == ["udp://s1:80/announce", "http://t1"]


@pytest.mark.asyncio
async def test_repeated_runs_identical(source_transport):
    fetcher = SourceFetcher(transport=source_transport({
        SOURCE_A: "http://t1\nhttp://t2\n",
        SOURCE_B: "http://t2\nhttp://t3\n",
    }))
    pipeline = make_pipeline(fetcher)

    first = await pipeline.pull()
    second = await pipeline.pull()

    assert first == second == "http://t1\nhttp://t2\nhttp://t3\n"


@pytest.mark.asyncio
async def test_aggregate_reports_sources(source_transport):
    fetcher = SourceFetcher(transport=source_transport({SOURCE_A: "http://t1\n"}))
    pipeline = make_pipeline(fetcher)

    result = await pipeline.aggregate()

    assert result.merged.to_list() == ["http://t1"]
    assert [r.source for r in result.report.succeeded] == [SOURCE_A]
    assert [r.source for r in result.report.failed] == [SOURCE_B]

"""
Tracker Aggregation Pipeline

This module wires the pipeline stages together for a single invocation:

    1. Trigger Gate   - classify pull / push and authorize pushes
    2. Source Fetcher - retrieve every configured source concurrently
    3. Normalizer     - parse each successful body into tracker URLs
    4. Merge Engine   - union sources (in order) with caller-supplied extras
    5. Dispatcher     - plain-text body for pulls, JSON-RPC call for pushes

The pipeline holds no state between invocations. Its only inputs are the
PipelineConfig it was built with and the per-invocation arguments.

Usage Example:
    pipeline = TrackerPipeline(PipelineConfig.from_env())

    body = await pipeline.pull(extra=["udp://tracker.example:1337/announce"])
    outcome = await pipeline.push(credential=token)
    outcome = await pipeline.push(scheduled=True)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from trackarr.config import PipelineConfig
from trackarr.services.aria2_client import Aria2RpcClient, get_rpc_client_from_config
from trackarr.services.delivery import PushOutcome, emit_as_response, push_to_daemon
from trackarr.services.exceptions import AllSourcesFailedError, RpcDeliveryError
from trackarr.services.source_fetcher import FetchReport, SourceFetcher
from trackarr.services.structured_logging import set_trigger
from trackarr.services.tracker_list import (
    MergedTrackerSet,
    merge_tracker_lists,
    normalize_tracker_lines,
    normalize_tracker_list,
)
from trackarr.services.trigger_gate import Invocation, TriggerGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Merged trackers plus the fetch report they were built from."""

    merged: MergedTrackerSet
    report: FetchReport


class TrackerPipeline:
    """
    Aggregation-and-delivery pipeline.

    Args:
        config: Resolved pipeline configuration
        fetcher: Source fetcher (defaults to one built from config)
        rpc_client: Daemon RPC client (defaults to one built from config,
                    None when no endpoint is configured)
        gate: Trigger gate (defaults to one using config.push_token)
    """

    def __init__(
        self,
        config: PipelineConfig,
        fetcher: Optional[SourceFetcher] = None,
        rpc_client: Optional[Aria2RpcClient] = None,
        gate: Optional[TriggerGate] = None,
    ):
        self.config = config
        self.fetcher = fetcher or SourceFetcher(timeout=config.fetch_timeout)
        self.rpc_client = rpc_client if rpc_client is not None else get_rpc_client_from_config(config)
        self.gate = gate or TriggerGate(config.push_token)

    async def aggregate(self, extra: Optional[Iterable[str]] = None) -> PipelineResult:
        """
        Fetch, normalize and merge all sources with optional extras.

        Args:
            extra: Caller-supplied trackers (normalized, merged last)

        Returns:
            PipelineResult with the merged set and fetch report
        """
        report = await self.fetcher.fetch_all(self.config.sources)

        try:
            report.raise_if_all_failed()
        except AllSourcesFailedError as e:
            logger.warning(f"⚠ {e.message}. Continuing with static and caller-supplied trackers only.")

        lists: List[List[str]] = []
        if self.config.static_trackers:
            lists.append(normalize_tracker_lines(
                self.config.static_trackers, self.config.allowed_schemes
            ))
        for result in report.succeeded:
            lists.append(normalize_tracker_list(result.body, self.config.allowed_schemes))

        extra_trackers = normalize_tracker_lines(extra or [], self.config.allowed_schemes)
        merged = merge_tracker_lists(lists, extra_trackers)

        logger.info(
            f"Merged {len(merged)} unique tracker(s) from "
            f"{len(report.succeeded)}/{len(report.results)} source(s)"
            f"{f' + {len(extra_trackers)} extra' if extra_trackers else ''}"
        )
        return PipelineResult(merged=merged, report=report)

    async def pull(self, extra: Optional[Iterable[str]] = None) -> str:
        """
        On-demand pull: return the merged list as a plain-text body.

        Args:
            extra: Caller-supplied trackers

        Returns:
            Newline-joined tracker list
        """
        invocation = self.gate.admit()
        set_trigger(invocation.trigger_name)

        result = await self.aggregate(extra)
        return emit_as_response(result.merged)

    async def push(
        self,
        extra: Optional[Iterable[str]] = None,
        credential: Optional[str] = None,
        scheduled: bool = False,
    ) -> PushOutcome:
        """
        Push the merged list into the daemon.

        Authorization happens before any fetch or merge work.

        Args:
            extra: Caller-supplied trackers
            credential: Shared-secret credential for request-triggered pushes
            scheduled: True when invoked by the scheduler

        Returns:
            PushOutcome on daemon acknowledgement

        Raises:
            AuthenticationError: If a request-triggered push is not authorized
            RpcDeliveryError: If the RPC call fails
        """
        invocation: Invocation = self.gate.admit(
            scheduled=scheduled, wants_push=True, credential=credential
        )
        set_trigger(invocation.trigger_name)
        logger.info(f"Push invocation accepted ({invocation.trigger_name})")

        if self.rpc_client is None:
            raise RpcDeliveryError("Daemon RPC endpoint not configured (ARIA2_RPC_URL)")

        result = await self.aggregate(extra)
        return await push_to_daemon(result.merged, self.rpc_client)

"""TVL pipeline orchestration — discovery, fetch passes, report."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..chains.sui import SuiClient
from ..config import AppConfig
from ..interfaces.chain import ChainClient
from ..interfaces.position_source import PositionDataSource
from ..models import CapabilityRecord, TVLReport
from ..protocols.suilend import ObligationReader
from .aggregator import TVLAccumulator, build_report, summary_lines
from .batching import AdaptiveBatchFetcher
from .cleanup import CleanupPass, pending_records
from .discovery import EventPaginator, ObjectResolver, dedupe_candidates, extract_records
from .fetching import PositionFetcher, Sleep
from .progress import ProgressLog

logger = logging.getLogger(__name__)

SourceFactory = Callable[[ChainClient, str, str], Awaitable[PositionDataSource]]


class TVLService:
    """Runs the strategy wrapper TVL pipeline.

    Every call to :meth:`run_aggregation` builds its own controller,
    accumulator and progress log, so overlapping calls do not share state.
    """

    def __init__(
        self,
        config: AppConfig,
        chain_client: ChainClient | None = None,
        source_factory: SourceFactory = ObligationReader.initialize,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._client: ChainClient = chain_client or SuiClient(config.chain)
        self._source_factory = source_factory
        self._sleep = sleep

    async def discover(self, progress: ProgressLog) -> list[CapabilityRecord]:
        """Find every live strategy cap and extract its obligation record."""
        contracts = self._config.contracts
        discovery = self._config.discovery

        progress.emit("🔍 Searching for CreatedStrategyOwnerCap events...")
        paginator = EventPaginator(self._client, discovery, progress)
        cap_ids = await paginator.collect(contracts.created_cap_event_type)

        if discovery.dedupe_candidates:
            unique = dedupe_candidates(cap_ids)
            if len(unique) != len(cap_ids):
                progress.emit(f"🧾 Dropped {len(cap_ids) - len(unique)} duplicate cap IDs")
            cap_ids = unique

        resolver = ObjectResolver(
            self._client, discovery, progress, type_marker=contracts.strategy_cap_type
        )
        resolution = await resolver.resolve(cap_ids)
        return extract_records(resolution.objects, progress)

    async def _aggregate(self, progress: ProgressLog) -> TVLReport:
        records = await self.discover(progress)
        accumulator = TVLAccumulator()

        if not records:
            progress.warning("⚠️ No StrategyOwnerCap objects found")
            report = build_report(accumulator, records_attempted=0)
            for line in summary_lines(report):
                progress.emit(line)
            return report

        contracts = self._config.contracts
        progress.emit("🔗 Initializing Suilend obligation reader...")
        source = await self._source_factory(
            self._client, contracts.lending_market_id, contracts.lending_market_type
        )
        fetcher = PositionFetcher(source, progress, sleep=self._sleep)

        main_pass = AdaptiveBatchFetcher(
            fetcher, self._config.batching, progress, sleep=self._sleep
        )
        await main_pass.run(records, accumulator)

        # Counted per obligation id, not per record.
        main_pass_failures = len(pending_records(records, accumulator.fetched_ids))
        final_failures = main_pass_failures
        if main_pass_failures:
            cleanup = CleanupPass(fetcher, self._config.cleanup, progress, sleep=self._sleep)
            cleanup_result = await cleanup.run(records, accumulator.fetched_ids, accumulator)
            final_failures = cleanup_result.still_failed

        report = build_report(
            accumulator,
            records_attempted=len(records),
            main_pass_failures=main_pass_failures,
            final_failures=final_failures,
        )

        progress.emit("🎉 TVL CALCULATION COMPLETE! 🎉")
        for line in summary_lines(report):
            progress.emit(line)
        return report

    async def run_aggregation(self, progress: ProgressLog | None = None) -> TVLReport | None:
        """Run the full pipeline; returns None when a stage fails outright."""
        progress = progress or ProgressLog()
        progress.emit("🚀 Starting TVL calculation for all strategy wrappers...")
        try:
            return await self._aggregate(progress)
        except Exception as e:
            logger.exception("TVL run failed")
            progress.emit(f"❌ Error calculating TVL: {e}", logging.ERROR)
            return None

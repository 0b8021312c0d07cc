"""Sequential second pass over positions the main pass could not fetch."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..config import CleanupConfig
from ..models import CapabilityRecord
from .aggregator import TVLAccumulator
from .fetching import PositionFetcher, Sleep
from .progress import ProgressLog

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    attempted: int = 0
    recovered: int = 0

    @property
    def still_failed(self) -> int:
        return self.attempted - self.recovered


def pending_records(
    records: list[CapabilityRecord], fetched_ids: set[str]
) -> list[CapabilityRecord]:
    """Records whose position id has no summary yet, one per id, in original order."""
    pending: dict[str, CapabilityRecord] = {}
    for record in records:
        if record.position_id not in fetched_ids:
            pending.setdefault(record.position_id, record)
    return list(pending.values())


class CleanupPass:
    """One record at a time, more attempts, longer fixed pacing."""

    def __init__(
        self,
        fetcher: PositionFetcher,
        config: CleanupConfig,
        progress: ProgressLog,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._progress = progress
        self._sleep = sleep

    async def run(
        self,
        records: list[CapabilityRecord],
        fetched_ids: set[str],
        accumulator: TVLAccumulator,
    ) -> CleanupResult:
        pending = pending_records(records, fetched_ids)
        result = CleanupResult(attempted=len(pending))
        if not pending:
            return result

        self._progress.emit(
            f"🧹 Cleanup pass: retrying {len(pending)} failed obligations sequentially"
        )

        for position, record in enumerate(pending, start=1):
            summary = await self._fetcher.fetch(
                record,
                self._config.max_attempts,
                self._config.backoff_ms,
                label=f"cleanup {position}/{len(pending)} ",
            )
            if summary is not None:
                accumulator.add(summary)
                result.recovered += 1

            if position < len(pending):
                await self._sleep(self._config.pause_ms / 1000)

        self._progress.emit(
            f"🧹 Cleanup complete: {result.recovered}/{result.attempted} recovered in cleanup"
        )
        return result

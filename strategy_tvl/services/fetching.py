"""Per-position fetch with retry and linear backoff."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..interfaces.position_source import PositionDataSource
from ..models import CapabilityRecord, PositionSummary
from .progress import ProgressLog

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PositionFetcher:
    """Fetch one record's obligation, retrying transient failures."""

    def __init__(
        self,
        source: PositionDataSource,
        progress: ProgressLog,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._source = source
        self._progress = progress
        self._sleep = sleep

    async def fetch(
        self,
        record: CapabilityRecord,
        max_attempts: int,
        backoff_ms: int,
        label: str = "",
    ) -> PositionSummary | None:
        """Return the record's summary, or None after ``max_attempts`` failures.

        Attempt ``n`` failing waits ``n * backoff_ms`` before attempt ``n + 1``.
        """
        short_id = f"{record.position_id[:10]}..."
        for attempt in range(1, max_attempts + 1):
            try:
                logger.debug("Fetching %s %s (attempt %d)", label, short_id, attempt)
                obligation = await self._source.get_obligation(record.position_id)
            except Exception as e:
                self._progress.warning(
                    f"      ⚠️ {short_id} attempt {attempt} failed: {e}"
                )
                if attempt == max_attempts:
                    self._progress.warning(
                        f"      ❌ {short_id} final failure after {max_attempts} attempts"
                    )
                    return None
                await self._sleep(attempt * backoff_ms / 1000)
                continue

            summary = PositionSummary.from_obligation(record, obligation)
            self._progress.emit(
                f"      ✅ {label}{short_id} Deposits: ${summary.deposited_usd:,.2f} "
                f"| Borrows: ${summary.borrowed_usd:,.2f}"
            )
            return summary
        return None

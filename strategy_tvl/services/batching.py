"""Adaptive batch fetching of obligation data.

The controller is an additive-increase/additive-decrease loop with
hysteresis: a bad batch shrinks the batch and widens the pause at once,
while growing back needs a streak of clean batches, and leaving recovery
mode needs a longer streak than a normal speed-up.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import math
from dataclasses import dataclass, field

from ..config import BatchConfig
from ..models import CapabilityRecord
from .aggregator import TVLAccumulator
from .fetching import PositionFetcher, Sleep
from .progress import ProgressLog

logger = logging.getLogger(__name__)


class BatchOutcome(enum.Enum):
    SLOW_DOWN = "slow_down"
    EASE_OFF = "ease_off"
    SPEED_UP = "speed_up"
    RECOVERED = "recovered"
    HEALTHY = "healthy"
    STABLE = "stable"
    DEGENERATE = "degenerate"


@dataclass
class BatchState:
    batch_size: int
    delay_ms: int
    consecutive_successes: int = 0
    consecutive_failures: int = 0
    recovery_mode: bool = False


class BatchController:
    """Tune batch size and inter-batch delay from per-batch success rates."""

    def __init__(self, config: BatchConfig) -> None:
        self._config = config
        self.state = BatchState(
            batch_size=config.initial_size, delay_ms=config.initial_delay_ms
        )

    def record(self, successes: int, attempted: int) -> BatchOutcome:
        """Update state after a batch and return how it was classified."""
        c = self._config
        s = self.state
        failures = attempted - successes
        success_rate = successes / attempted if attempted else 0.0
        failure_fraction = failures / attempted if attempted else 0.0

        if failures > 0 and (
            failure_fraction > c.failure_fraction_threshold
            or success_rate < c.low_success_threshold
        ):
            s.batch_size = max(s.batch_size - c.aggressive_size_step, c.min_size)
            s.delay_ms = min(s.delay_ms + c.aggressive_delay_step_ms, c.max_delay_ms)
            s.recovery_mode = True
            s.consecutive_successes = 0
            s.consecutive_failures += 1
            return BatchOutcome.SLOW_DOWN

        if failures > 0:
            # Never grow a batch that is already below the moderate floor.
            floor = min(s.batch_size, max(c.moderate_size_floor, c.min_size))
            s.batch_size = max(s.batch_size - c.moderate_size_step, floor)
            s.delay_ms = min(s.delay_ms + c.moderate_delay_step_ms, c.max_delay_ms)
            # A degraded batch breaks the clean streak too.
            s.consecutive_successes = 0
            return BatchOutcome.EASE_OFF

        if success_rate >= c.high_success_threshold:
            s.consecutive_successes += 1
            s.consecutive_failures = 0
            if s.recovery_mode:
                if s.consecutive_successes >= c.recovery_exit_streak:
                    s.recovery_mode = False
                    return BatchOutcome.RECOVERED
                return BatchOutcome.HEALTHY
            if s.consecutive_successes >= c.speedup_streak:
                s.batch_size = min(s.batch_size + c.speedup_size_step, c.max_size)
                s.delay_ms = max(s.delay_ms - c.speedup_delay_step_ms, c.min_delay_ms)
                return BatchOutcome.SPEED_UP
            return BatchOutcome.HEALTHY

        if success_rate >= c.stable_success_threshold:
            s.consecutive_successes += 1
            s.consecutive_failures = 0
            return BatchOutcome.STABLE

        s.consecutive_successes = 0
        return BatchOutcome.DEGENERATE


@dataclass
class MainPassResult:
    attempted: int = 0
    succeeded: int = 0
    failed: list[CapabilityRecord] = field(default_factory=list)
    batches: int = 0

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class AdaptiveBatchFetcher:
    """Fetch every record's obligation in adaptively sized concurrent batches."""

    def __init__(
        self,
        fetcher: PositionFetcher,
        config: BatchConfig,
        progress: ProgressLog,
        sleep: Sleep = asyncio.sleep,
        controller: BatchController | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._progress = progress
        self._sleep = sleep
        self.controller = controller or BatchController(config)

    def _describe(self, outcome: BatchOutcome, successes: int, attempted: int) -> str:
        s = self.controller.state
        rate = (successes / attempted * 100) if attempted else 0.0
        head = f"    📈 Batch result: {successes}/{attempted} ({rate:.0f}%)"
        if outcome is BatchOutcome.SLOW_DOWN:
            return (
                f"{head} 🐌 slowing down: batch size {s.batch_size}, "
                f"delay {s.delay_ms}ms, recovery mode on"
            )
        if outcome is BatchOutcome.EASE_OFF:
            return f"{head} ↘️ easing off: batch size {s.batch_size}, delay {s.delay_ms}ms"
        if outcome is BatchOutcome.SPEED_UP:
            return f"{head} 🚀 speeding up: batch size {s.batch_size}, delay {s.delay_ms}ms"
        if outcome is BatchOutcome.RECOVERED:
            return f"{head} ✅ leaving recovery mode"
        return f"{head} (streak {s.consecutive_successes})"

    async def run(
        self, records: list[CapabilityRecord], accumulator: TVLAccumulator
    ) -> MainPassResult:
        result = MainPassResult(attempted=len(records))
        total = len(records)
        index = 0

        self._progress.emit(
            f"💼 Fetching obligation data for {total} strategies "
            f"(batch size {self.controller.state.batch_size}, "
            f"delay {self.controller.state.delay_ms}ms)"
        )

        while index < total:
            state = self.controller.state
            batch = records[index : index + state.batch_size]
            result.batches += 1
            remaining_batches = result.batches + math.ceil(
                (total - index - len(batch)) / state.batch_size
            )
            self._progress.emit(
                f"  📦 Batch {result.batches}/~{remaining_batches} "
                f"({len(batch)} obligations, {index + 1}-{index + len(batch)} of {total})"
                + (" [recovery mode]" if state.recovery_mode else "")
            )

            summaries = await asyncio.gather(
                *(
                    self._fetcher.fetch(
                        record,
                        self._config.max_attempts,
                        self._config.retry_backoff_ms,
                        label=f"{index + offset + 1}/{total} ",
                    )
                    for offset, record in enumerate(batch)
                )
            )

            successes = 0
            for record, summary in zip(batch, summaries):
                if summary is None:
                    result.failed.append(record)
                else:
                    accumulator.add(summary)
                    successes += 1
            result.succeeded += successes

            outcome = self.controller.record(successes, len(batch))
            logger.debug("Batch %d outcome: %s", result.batches, outcome.value)
            self._progress.emit(self._describe(outcome, successes, len(batch)))

            index += len(batch)
            if index < total:
                delay_ms = self.controller.state.delay_ms
                self._progress.emit(f"    ⏳ Waiting {delay_ms}ms before next batch...")
                await self._sleep(delay_ms / 1000)

        self._progress.emit(
            f"📊 Main pass complete: {result.succeeded}/{total} succeeded, "
            f"{result.failure_count} failed"
        )
        return result

"""Capability discovery — event pagination, object resolution, extraction."""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from ..config import DiscoveryConfig
from ..interfaces.chain import ChainClient
from ..models import CandidateId, CapabilityRecord, ResolvedObject
from ..protocols.strategy_wrapper import parser
from .progress import ProgressLog

logger = logging.getLogger(__name__)


class EventPaginator:
    """Walk an event stream newest-first and collect announced cap ids."""

    def __init__(
        self, chain_client: ChainClient, config: DiscoveryConfig, progress: ProgressLog
    ) -> None:
        self._client = chain_client
        self._page_size = config.page_size
        self._max_pages = config.max_pages
        self._progress = progress

    async def collect(self, event_type: str) -> list[CandidateId]:
        """Return every cap id found, in event order (duplicates kept).

        A failing page query propagates to the caller.
        """
        events: list[dict[str, Any]] = []
        cursor = None
        page_count = 0
        has_next = True

        while has_next and page_count < self._max_pages:
            page = await self._client.query_events(
                event_type, cursor=cursor, limit=self._page_size, descending=True
            )
            data = page.get("data") or []
            events.extend(data)
            page_count += 1

            cursor = page.get("nextCursor")
            has_next = bool(page.get("hasNextPage")) and cursor is not None

            self._progress.emit(
                f"📄 Fetched page {page_count}: {len(data)} events (total: {len(events)})"
            )

        if has_next:
            self._progress.warning(
                f"⚠️ Stopped after {self._max_pages} pages; older events were not scanned"
            )

        self._progress.emit(
            f"📅 Found {len(events)} total events across {page_count} pages"
        )

        cap_ids: list[CandidateId] = []
        malformed = 0
        for event in events:
            cap_id = parser.extract_cap_id(event)
            if cap_id is None:
                malformed += 1
                continue
            cap_ids.append(cap_id)

        if malformed:
            logger.debug("Skipped %d events without a cap id", malformed)
        self._progress.emit(f"📦 Extracted {len(cap_ids)} strategy cap IDs from events")
        return cap_ids


def dedupe_candidates(cap_ids: list[CandidateId]) -> list[CandidateId]:
    """Drop repeated ids, keeping first-seen order."""
    return list(dict.fromkeys(cap_ids))


@dataclass
class ResolutionResult:
    objects: list[ResolvedObject] = field(default_factory=list)
    not_found: int = 0


class ObjectResolver:
    """Fetch cap objects in fixed-size concurrent chunks."""

    def __init__(
        self,
        chain_client: ChainClient,
        config: DiscoveryConfig,
        progress: ProgressLog,
        type_marker: str = "",
    ) -> None:
        self._client = chain_client
        self._chunk_size = config.resolve_chunk_size
        self._type_marker = type_marker
        self._progress = progress

    async def _fetch(self, cap_id: CandidateId) -> ResolvedObject | None:
        try:
            obj = await self._client.get_object(cap_id)
        except Exception as e:
            logger.debug("Object %s could not be fetched: %s", cap_id, e)
            return None

        data = obj.get("data")
        if not data or obj.get("error"):
            return None

        obj_type = data.get("type") or ""
        if self._type_marker and obj_type and self._type_marker not in obj_type:
            logger.debug("Object %s has type %s, skipping", cap_id, obj_type)
            return None
        return obj

    async def resolve(self, cap_ids: list[CandidateId]) -> ResolutionResult:
        result = ResolutionResult()
        if not cap_ids:
            return result

        total_chunks = math.ceil(len(cap_ids) / self._chunk_size)
        self._progress.emit(f"🔄 Checking {len(cap_ids)} strategy cap objects...")

        for start in range(0, len(cap_ids), self._chunk_size):
            chunk = cap_ids[start : start + self._chunk_size]
            self._progress.emit(
                f"  📦 Processing batch {start // self._chunk_size + 1}/{total_chunks} "
                f"({len(chunk)} objects)"
            )

            resolved = await asyncio.gather(*(self._fetch(cap_id) for cap_id in chunk))

            for obj in resolved:
                if obj is None:
                    result.not_found += 1
                else:
                    result.objects.append(obj)

        if result.not_found:
            self._progress.warning(
                f"⚠️ {result.not_found} strategy caps no longer exist as "
                f"StrategyOwnerCap objects (possibly converted to WrappedObligationCap)"
            )
        self._progress.emit(f"📦 Found {len(result.objects)} StrategyOwnerCap objects")
        return result


def extract_records(
    objects: list[ResolvedObject], progress: ProgressLog
) -> list[CapabilityRecord]:
    """Turn resolved caps into records, logging every skipped cap."""
    records: list[CapabilityRecord] = []
    for obj in objects:
        record, reason = parser.extract_capability(obj)
        if record is None:
            object_id = (obj.get("data") or {}).get("objectId", "?")
            progress.warning(f"⚠️ Cap {object_id[:10]}... skipped: {reason}")
            continue
        records.append(record)

    progress.emit(f"📋 Extracted {len(records)} valid obligations")
    return records

"""Position data source — per-obligation financial lookups."""
from typing import Protocol

from ..models import ObligationData


class PositionDataSource(Protocol):
    """Abstract interface for fetching a lending position's USD values."""

    async def get_obligation(self, obligation_id: str) -> ObligationData: ...

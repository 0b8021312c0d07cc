"""Suilend obligation reader — fetches per-obligation USD values."""
from __future__ import annotations

import logging

from ...interfaces.chain import ChainClient
from ...models import ObligationData
from . import parser

logger = logging.getLogger(__name__)


class LendingMarketError(RuntimeError):
    """The configured lending market could not be loaded."""


class ObligationNotFoundError(LookupError):
    """An obligation id did not resolve to an Obligation object."""


class ObligationReader:
    """Read Suilend obligations belonging to one lending market."""

    def __init__(
        self, chain_client: ChainClient, lending_market_id: str, lending_market_type: str
    ) -> None:
        self._client = chain_client
        self.lending_market_id = lending_market_id
        self.lending_market_type = lending_market_type

    @classmethod
    async def initialize(
        cls,
        chain_client: ChainClient,
        lending_market_id: str,
        lending_market_type: str,
    ) -> ObligationReader:
        """Load and check the lending market, then return a ready reader.

        Raises:
            LendingMarketError: the market is missing or has another pool type.
        """
        try:
            market = await chain_client.get_object(
                lending_market_id, show_content=False, show_owner=False
            )
        except Exception as e:
            raise LendingMarketError(
                f"Could not load lending market {lending_market_id}: {e}"
            ) from e

        if not parser.matches_lending_market(market, lending_market_type):
            raise LendingMarketError(
                f"Object {lending_market_id} is not a {lending_market_type} lending market"
            )

        logger.info("Lending market %s loaded", lending_market_id)
        return cls(chain_client, lending_market_id, lending_market_type)

    async def get_obligation(self, obligation_id: str) -> ObligationData:
        """Fetch one obligation.

        RPC failures propagate; a missing object raises ObligationNotFoundError.
        """
        result = await self._client.get_object(obligation_id, show_owner=False)
        obligation = parser.parse_obligation(result)
        if obligation is None:
            raise ObligationNotFoundError(f"Obligation {obligation_id} not found")
        return obligation

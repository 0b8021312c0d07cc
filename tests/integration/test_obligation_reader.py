"""Integration tests for the Suilend obligation reader with a mocked chain client."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from strategy_tvl.models import to_float
from strategy_tvl.protocols.suilend import (
    LendingMarketError,
    ObligationNotFoundError,
    ObligationReader,
)

POOL = "0xf95b::suilend::MAIN_POOL"


@pytest.fixture()
def mock_chain_client() -> AsyncMock:
    return AsyncMock()


class TestInitialize:
    @pytest.mark.asyncio
    async def test_loads_market(
        self, mock_chain_client: AsyncMock, market_object: dict[str, Any]
    ) -> None:
        mock_chain_client.get_object.return_value = market_object

        reader = await ObligationReader.initialize(mock_chain_client, "0xMARKET", POOL)

        assert reader.lending_market_id == "0xMARKET"
        mock_chain_client.get_object.assert_awaited_once_with(
            "0xMARKET", show_content=False, show_owner=False
        )

    @pytest.mark.asyncio
    async def test_missing_market_raises(self, mock_chain_client: AsyncMock) -> None:
        mock_chain_client.get_object.return_value = {"error": {"code": "notExists"}}
        with pytest.raises(LendingMarketError, match="not a"):
            await ObligationReader.initialize(mock_chain_client, "0xMARKET", POOL)

    @pytest.mark.asyncio
    async def test_wrong_pool_raises(
        self, mock_chain_client: AsyncMock, market_object: dict[str, Any]
    ) -> None:
        mock_chain_client.get_object.return_value = market_object
        with pytest.raises(LendingMarketError):
            await ObligationReader.initialize(
                mock_chain_client, "0xMARKET", "0xf95b::suilend::OTHER"
            )

    @pytest.mark.asyncio
    async def test_rpc_failure_wrapped(self, mock_chain_client: AsyncMock) -> None:
        mock_chain_client.get_object.side_effect = RuntimeError("All RPC endpoints failed")
        with pytest.raises(LendingMarketError, match="Could not load"):
            await ObligationReader.initialize(mock_chain_client, "0xMARKET", POOL)


class TestGetObligation:
    @pytest.mark.asyncio
    async def test_returns_values(
        self,
        mock_chain_client: AsyncMock,
        obligation_factory: Callable[..., dict[str, Any]],
    ) -> None:
        mock_chain_client.get_object.return_value = obligation_factory("0xobl", 2500.0, 1000.0)
        reader = ObligationReader(mock_chain_client, "0xMARKET", POOL)

        obligation = await reader.get_obligation("0xobl")

        assert to_float(obligation.deposited_value_usd) == pytest.approx(2500.0)
        assert to_float(obligation.unweighted_borrowed_value_usd) == pytest.approx(1000.0)

    @pytest.mark.asyncio
    async def test_missing_obligation_raises(self, mock_chain_client: AsyncMock) -> None:
        mock_chain_client.get_object.return_value = {"error": {"code": "notExists"}}
        reader = ObligationReader(mock_chain_client, "0xMARKET", POOL)

        with pytest.raises(ObligationNotFoundError):
            await reader.get_obligation("0xgone")

    @pytest.mark.asyncio
    async def test_rpc_failure_propagates(self, mock_chain_client: AsyncMock) -> None:
        mock_chain_client.get_object.side_effect = RuntimeError("HTTP 429")
        reader = ObligationReader(mock_chain_client, "0xMARKET", POOL)

        with pytest.raises(RuntimeError, match="429"):
            await reader.get_obligation("0xobl")

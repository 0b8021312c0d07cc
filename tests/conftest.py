"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from strategy_tvl.config import (
    AppConfig,
    BatchConfig,
    ChainConfig,
    CleanupConfig,
    ContractsConfig,
    DiscoveryConfig,
)
from strategy_tvl.models import CapabilityRecord, ObligationData, Scaled
from strategy_tvl.services.progress import ProgressLog

PACKAGE = "0xba97"
CAP_TYPE = f"{PACKAGE}::strategy_wrapper::StrategyOwnerCap<0x2::sui::SUI>"
OBLIGATION_TYPE = "0xf95b::obligation::Obligation<0xf95b::suilend::MAIN_POOL>"
MARKET_TYPE = "0xf95b::lending_market::LendingMarket<0xf95b::suilend::MAIN_POOL>"
WAD = 10**18


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_contracts() -> ContractsConfig:
    return ContractsConfig(
        strategy_wrapper_package=PACKAGE,
        lending_market_id="0xMARKET",
        lending_market_type="0xf95b::suilend::MAIN_POOL",
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig, sample_contracts: ContractsConfig
) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        contracts=sample_contracts,
        discovery=DiscoveryConfig(page_size=50, max_pages=20, resolve_chunk_size=10),
        batching=BatchConfig(),
        cleanup=CleanupConfig(),
    )


class RecordingProgress(ProgressLog):
    """ProgressLog with a substring lookup over emitted messages."""

    def contains(self, text: str) -> bool:
        return any(text in event.message for event in self.events)


@pytest.fixture()
def progress() -> RecordingProgress:
    return RecordingProgress()


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


# ---------------------------------------------------------------------------
# On-chain data builders
# ---------------------------------------------------------------------------


def make_event(cap_id: Any) -> dict[str, Any]:
    return {
        "id": {"txDigest": "digest", "eventSeq": "0"},
        "type": f"{PACKAGE}::strategy_wrapper::CreatedStrategyOwnerCap",
        "parsedJson": {"cap_id": cap_id, "obligation_id": "0xob"},
    }


def make_cap_object(
    cap_id: str,
    obligation_id: str | None,
    strategy_type: int = 1,
    owner: str = "0xOWNER",
    inner_cap: bool = True,
) -> dict[str, Any]:
    inner: dict[str, Any] | None = None
    if inner_cap:
        inner = {
            "type": "0xf95b::lending_market::ObligationOwnerCap<0xf95b::suilend::MAIN_POOL>",
            "fields": {"id": {"id": "0xinner"}, "obligation_id": obligation_id},
        }
    return {
        "data": {
            "objectId": cap_id,
            "type": CAP_TYPE,
            "owner": {"AddressOwner": owner},
            "content": {
                "dataType": "moveObject",
                "type": CAP_TYPE,
                "fields": {
                    "id": {"id": cap_id},
                    "inner_cap": inner,
                    "strategy_type": str(strategy_type),
                },
            },
        }
    }


def make_obligation_object(
    obligation_id: str, deposited: float, borrowed: float
) -> dict[str, Any]:
    def decimal(v: float) -> dict[str, Any]:
        return {"type": "0xf95b::decimal::Decimal", "fields": {"value": str(int(v * WAD))}}

    return {
        "data": {
            "objectId": obligation_id,
            "type": OBLIGATION_TYPE,
            "content": {
                "dataType": "moveObject",
                "type": OBLIGATION_TYPE,
                "fields": {
                    "id": {"id": obligation_id},
                    "deposits": [{"fields": {}}],
                    "borrows": [],
                    "deposited_value_usd": decimal(deposited),
                    "unweighted_borrowed_value_usd": decimal(borrowed),
                    "weighted_borrowed_value_usd": decimal(borrowed),
                    "allowed_borrow_value_usd": decimal(deposited * 0.8),
                    "unhealthy_borrow_value_usd": decimal(deposited * 0.9),
                },
            },
        }
    }


@pytest.fixture()
def event_factory() -> Callable[..., dict[str, Any]]:
    return make_event


@pytest.fixture()
def cap_factory() -> Callable[..., dict[str, Any]]:
    return make_cap_object


@pytest.fixture()
def obligation_factory() -> Callable[..., dict[str, Any]]:
    return make_obligation_object


# ---------------------------------------------------------------------------
# Position source
# ---------------------------------------------------------------------------


class ScriptedSource:
    """Position source that fails each id a scripted number of times.

    ``failures[id] = n`` makes the first ``n`` lookups of ``id`` raise.
    """

    def __init__(
        self,
        values: dict[str, tuple[float, float]],
        failures: dict[str, int] | None = None,
    ) -> None:
        self.values = values
        self.failures = dict(failures or {})
        self.calls: list[str] = []

    async def get_obligation(self, obligation_id: str) -> ObligationData:
        self.calls.append(obligation_id)
        if self.failures.get(obligation_id, 0) > 0:
            self.failures[obligation_id] -= 1
            raise RuntimeError("429 Too Many Requests")
        deposited, borrowed = self.values[obligation_id]
        return ObligationData(
            obligation_id=obligation_id,
            deposited_value_usd=Scaled(int(deposited * WAD)),
            unweighted_borrowed_value_usd=Scaled(int(borrowed * WAD)),
        )


@pytest.fixture()
def source_factory() -> Callable[..., ScriptedSource]:
    return ScriptedSource


def make_records(count: int) -> list[CapabilityRecord]:
    return [
        CapabilityRecord(
            object_id=f"0xcap{i:02d}",
            position_id=f"0xobl{i:02d}",
            strategy_type=1 + i % 2,
            owner=f"0xowner{i:02d}",
        )
        for i in range(count)
    ]


@pytest.fixture()
def records_factory() -> Callable[[int], list[CapabilityRecord]]:
    return make_records


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    contracts:
      strategy_wrapper_package: "0xba97"
      lending_market_id: "0x8403"
      lending_market_type: "0xf95b::suilend::MAIN_POOL"
    discovery:
      page_size: 100
      max_pages: 5
      resolve_chunk_size: 25
      dedupe_candidates: false
    batching:
      initial_size: 10
      max_delay_ms: 3000
      failure_fraction_threshold: 0.25
    cleanup:
      max_attempts: 4
    strategy_types:
      1: "Looping A"
      3: "Looping C"
    notifications:
      telegram:
        enabled: true
        log_bot_token: "tok"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


@pytest.fixture()
def market_object() -> dict[str, Any]:
    return {"data": {"objectId": "0xMARKET", "type": MARKET_TYPE}}

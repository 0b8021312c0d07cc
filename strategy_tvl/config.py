"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class ContractsConfig:
    strategy_wrapper_package: str = ""
    lending_market_id: str = ""
    lending_market_type: str = ""

    @property
    def created_cap_event_type(self) -> str:
        return f"{self.strategy_wrapper_package}::strategy_wrapper::CreatedStrategyOwnerCap"

    @property
    def strategy_cap_type(self) -> str:
        return "::strategy_wrapper::StrategyOwnerCap"


@dataclass(frozen=True)
class DiscoveryConfig:
    page_size: int = 250
    max_pages: int = 20
    resolve_chunk_size: int = 50
    dedupe_candidates: bool = True


@dataclass(frozen=True)
class BatchConfig:
    """Adaptive batch controller tuning.

    The thresholds and step sizes were picked empirically against public
    fullnodes and are kept configurable for tuning.
    """

    initial_size: int = 15
    min_size: int = 3
    max_size: int = 20
    initial_delay_ms: int = 300
    min_delay_ms: int = 100
    max_delay_ms: int = 2000
    max_attempts: int = 3
    retry_backoff_ms: int = 1000
    failure_fraction_threshold: float = 0.20
    low_success_threshold: float = 0.70
    stable_success_threshold: float = 0.90
    high_success_threshold: float = 0.95
    aggressive_size_step: int = 5
    aggressive_delay_step_ms: int = 400
    moderate_size_step: int = 2
    moderate_size_floor: int = 5
    moderate_delay_step_ms: int = 200
    speedup_size_step: int = 3
    speedup_delay_step_ms: int = 100
    speedup_streak: int = 2
    recovery_exit_streak: int = 3


@dataclass(frozen=True)
class CleanupConfig:
    max_attempts: int = 5
    backoff_ms: int = 2000
    pause_ms: int = 1500


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


DEFAULT_STRATEGY_TYPES: dict[int, str] = {
    1: "SUI Looping (sSUI)",
    2: "SUI Looping (StratSUI)",
}


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    batching: BatchConfig = field(default_factory=BatchConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)
    strategy_types: dict[int, str] = field(
        default_factory=lambda: dict(DEFAULT_STRATEGY_TYPES)
    )
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    endpoints = raw.get("rpc_endpoints", [])
    # A single ${SUI_RPC_URL} override may interpolate to "", drop those.
    return ChainConfig(
        rpc_endpoints=tuple(e for e in endpoints if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_contracts(raw: dict[str, Any]) -> ContractsConfig:
    return ContractsConfig(
        strategy_wrapper_package=raw.get("strategy_wrapper_package", ""),
        lending_market_id=raw.get("lending_market_id", ""),
        lending_market_type=raw.get("lending_market_type", ""),
    )


def _build_discovery(raw: dict[str, Any]) -> DiscoveryConfig:
    return DiscoveryConfig(
        page_size=int(raw.get("page_size", 250)),
        max_pages=int(raw.get("max_pages", 20)),
        resolve_chunk_size=int(raw.get("resolve_chunk_size", 50)),
        dedupe_candidates=bool(raw.get("dedupe_candidates", True)),
    )


def _build_batching(raw: dict[str, Any]) -> BatchConfig:
    defaults = BatchConfig()
    values: dict[str, Any] = {}
    for name, default in vars(defaults).items():
        if name in raw:
            values[name] = type(default)(raw[name])
    return BatchConfig(**values)


def _build_cleanup(raw: dict[str, Any]) -> CleanupConfig:
    return CleanupConfig(
        max_attempts=int(raw.get("max_attempts", 5)),
        backoff_ms=int(raw.get("backoff_ms", 2000)),
        pause_ms=int(raw.get("pause_ms", 1500)),
    )


def _build_strategy_types(raw: dict[Any, Any]) -> dict[int, str]:
    if not raw:
        return dict(DEFAULT_STRATEGY_TYPES)
    return {int(k): str(v) for k, v in raw.items()}


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        contracts=_build_contracts(raw.get("contracts", {})),
        discovery=_build_discovery(raw.get("discovery", {})),
        batching=_build_batching(raw.get("batching", {})),
        cleanup=_build_cleanup(raw.get("cleanup", {})),
        strategy_types=_build_strategy_types(raw.get("strategy_types", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    if not cfg.contracts.strategy_wrapper_package:
        raise ValueError("contracts.strategy_wrapper_package is required")
    if not cfg.contracts.lending_market_id:
        raise ValueError("contracts.lending_market_id is required")

    d = cfg.discovery
    if d.page_size <= 0 or d.max_pages <= 0 or d.resolve_chunk_size <= 0:
        raise ValueError("Discovery page size, page limit and chunk size must be positive")

    b = cfg.batching
    if not 0 < b.min_size <= b.max_size:
        raise ValueError(f"Invalid batch size bounds [{b.min_size}, {b.max_size}]")
    if not b.min_size <= b.initial_size <= b.max_size:
        raise ValueError(f"Initial batch size {b.initial_size} is outside its bounds")
    if not 0 <= b.min_delay_ms <= b.max_delay_ms:
        raise ValueError(f"Invalid delay bounds [{b.min_delay_ms}, {b.max_delay_ms}]")
    if not b.min_delay_ms <= b.initial_delay_ms <= b.max_delay_ms:
        raise ValueError(f"Initial delay {b.initial_delay_ms}ms is outside its bounds")
    if b.max_attempts <= 0:
        raise ValueError("batching.max_attempts must be positive")

    if cfg.cleanup.max_attempts <= 0:
        raise ValueError("cleanup.max_attempts must be positive")

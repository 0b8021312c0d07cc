"""Unit tests for CLI argument parsing."""
from __future__ import annotations

from strategy_tvl.cli import build_parser


class TestBuildParser:
    def test_tvl_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["tvl"])
        assert args.command == "tvl"
        assert args.json is False
        assert args.notify is False

    def test_tvl_flags(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["tvl", "--json", "--notify"])
        assert args.json is True
        assert args.notify is True

    def test_discover_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["discover"])
        assert args.command == "discover"

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "tvl"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "tvl"])
        assert args.log_level == "DEBUG"

    def test_default_log_level(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["tvl"])
        assert args.log_level == "WARNING"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None

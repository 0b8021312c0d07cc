"""Running totals and the final TVL report."""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from ..models import PositionSummary, TVLReport, format_usd
from ..protocols.strategy_wrapper.parser import strategy_type_name


class TVLAccumulator:
    """Totals shared by the main and cleanup passes of one run."""

    def __init__(self) -> None:
        self.total_tvl = 0.0
        self.total_deposits = 0.0
        self.total_borrows = 0.0
        self.positions: list[PositionSummary] = []

    def add(self, summary: PositionSummary) -> None:
        self.positions.append(summary)
        self.total_deposits += summary.deposited_usd
        self.total_borrows += summary.borrowed_usd
        self.total_tvl += summary.deposited_usd

    @property
    def fetched_ids(self) -> set[str]:
        return {p.position_id for p in self.positions}

    def __len__(self) -> int:
        return len(self.positions)


def build_report(
    accumulator: TVLAccumulator,
    records_attempted: int,
    main_pass_failures: int = 0,
    final_failures: int = 0,
) -> TVLReport:
    positions = tuple(
        sorted(accumulator.positions, key=lambda p: p.deposited_usd, reverse=True)
    )
    return TVLReport(
        total_tvl=accumulator.total_tvl,
        total_deposits=accumulator.total_deposits,
        total_borrows=accumulator.total_borrows,
        position_count=len(positions),
        positions=positions,
        records_attempted=records_attempted,
        main_pass_failures=main_pass_failures,
        final_failures=final_failures,
    )


def summary_lines(report: TVLReport) -> list[str]:
    """Final human-readable breakdown of a run."""
    attempted = report.records_attempted
    success_pct = report.success_rate * 100
    failure_pct = 100 - success_pct if attempted else 0.0

    lines = [
        "📈 === PROCESSING SUMMARY ===",
        f"   ✅ Successful: {report.position_count}/{attempted} ({success_pct:.1f}%)",
    ]
    if report.final_failures > 0:
        lines.append(
            f"   ❌ Unresolved: {report.final_failures} obligations "
            f"({failure_pct:.1f}%, network/rate limiting issues)"
        )
    if report.main_pass_failures > 0:
        lines.append(
            f"   🧹 Recovered in cleanup: {report.recovered_count}/{report.main_pass_failures}"
        )

    lines += [
        "📊 === FINAL SUMMARY ===",
        f"   Total TVL: {format_usd(report.total_tvl)}",
        f"   Total Deposits: {format_usd(report.total_deposits)}",
        f"   Total Borrows: {format_usd(report.total_borrows)}",
        f"   Net Value: {format_usd(report.net_value)}",
        f"   Active Strategies: {report.position_count}",
        f"   Data Quality: {success_pct:.1f}% success rate",
    ]
    if report.final_failures > 0:
        lines.append(
            f"   ⚠️ Totals exclude {report.final_failures} unresolved positions"
        )
    return lines


def _short(value: str) -> str:
    if len(value) > 16:
        return f"{value[:10]}...{value[-6:]}"
    return value


def position_table(report: TVLReport, names: dict[int, str]) -> list[str]:
    """Per-position rows, largest deposits first."""
    rows = [
        f"{'Obligation':<20} {'Strategy':<24} {'Deposits':>16} {'Borrows':>16} {'Net':>16}"
    ]
    for p in report.positions:
        rows.append(
            f"{_short(p.position_id):<20} "
            f"{strategy_type_name(p.strategy_type, names):<24} "
            f"{format_usd(p.deposited_usd):>16} "
            f"{format_usd(p.borrowed_usd):>16} "
            f"{format_usd(p.net_usd):>16}"
        )
    return rows


def report_to_dict(report: TVLReport) -> dict[str, Any]:
    return {
        "total_tvl": report.total_tvl,
        "total_deposits": report.total_deposits,
        "total_borrows": report.total_borrows,
        "net_value": report.net_value,
        "position_count": report.position_count,
        "records_attempted": report.records_attempted,
        "main_pass_failures": report.main_pass_failures,
        "final_failures": report.final_failures,
        "recovered_count": report.recovered_count,
        "success_rate": report.success_rate,
        "generated_at": report.generated_at.isoformat(),
        "positions": [asdict(p) for p in report.positions],
    }

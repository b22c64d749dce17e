from __future__ import annotations

import math

from idleprogress.report import SimulationReport

_SUFFIXES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def display_number(value: float) -> str:
    """Compact display: up to ten decimals below 1, K/M/B/T suffixes above 1000."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    magnitude = abs(value)
    if magnitude < 1:
        text = f"{value:.10f}".rstrip("0").rstrip(".")
        return "0" if text in ("-0", "") else text
    if magnitude >= 1e15:
        return f"{value:.2e}"
    for threshold, suffix in _SUFFIXES:
        if magnitude >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    return f"{value:.0f}"


def format_duration(seconds: float) -> str:
    """``1h 02m 03s`` style; days are shown once they appear."""
    total = max(0, int(seconds))
    days, rem = divmod(total, 86_400)
    hours, rem = divmod(rem, 3_600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours:02d}h {minutes:02d}m"
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def format_text_report(report: SimulationReport) -> str:
    """Format a simulation report for console output."""
    lines: list[str] = []

    lines.append("=" * 30 + f" {report.game_name or 'idleprogress'} Simulation Report " + "=" * 30)
    lines.append(f"Strategy: {report.strategy_description}")
    lines.append(f"Result: {report.outcome} at {format_duration(report.total_time)}")
    lines.append("")

    if report.snapshots:
        last = report.snapshots[-1]
        lines.append("FINAL STATE:")
        lines.append(f"  Mode: {last.mode}")
        lines.append(f"  Resource: {display_number(last.resource)}")
        lines.append(f"  Resource/s: {display_number(last.resource_per_second)}")
        lines.append(f"  Currency: {display_number(last.currency)}")
        lines.append(f"  Dark matter: {display_number(last.dark_matter)}")
        lines.append(f"  Hunter level: {last.hunter_level}")
        lines.append("")

    if report.first_unlock_times:
        lines.append("ACHIEVEMENTS:")
        for aid, t in sorted(report.first_unlock_times.items(), key=lambda kv: kv[1]):
            lines.append(f"  * {aid:.<30s} {format_duration(t)}")
        lines.append("")

    lines.append("PURCHASES:")
    lines.append(f"  Total: {len(report.purchases)}")
    lines.append(f"  Rate: {report.purchases_per_minute:.1f}/min")
    lines.append(f"  Max gap: {report.max_purchase_gap:.1f}s")
    lines.append(f"  Mean gap: {report.mean_purchase_gap:.1f}s")
    lines.append("")

    if report.rebirths:
        lines.append("REBIRTHS:")
        for r in report.rebirths:
            lines.append(
                f"  {format_duration(r.time):>12s}  {r.previous_mode} -> {r.next_mode}"
                f"  reward {display_number(r.reward)}"
            )
        lines.append(f"  Total reward: {display_number(report.total_rebirth_reward)}")
        lines.append("")

    if report.kills:
        lines.append(f"MONSTERS: {len(report.kills)} defeated")
        lines.append("")

    return "\n".join(lines)

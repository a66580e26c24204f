"""
ASCII terminal formatters for the ``score`` CLI command.

All formatters take result objects plus the instrument (for labels and
wording) and return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Partition summary
-----------------
One line per partition; the risk distribution columns are counts of
*respondents* at each tier, the health columns are counts of *categories*::

    Partition          N  Avg   VL   L   M   H  VH  Fav  Int  Risk
    -------------------------------------------------------------
    Finance           12  3.41   2   5   3   2   0    4    2     1
"""

from __future__ import annotations

from typing import Hashable, Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.recommendations.selector import ActionItem
from psychosocial_scoring.reporting.tables import QuestionAggregate
from psychosocial_scoring.scoring.classifier import classify_category
from psychosocial_scoring.scoring.engine import AssessmentResult
from psychosocial_scoring.scoring.rollup import ORGANIZATION_KEY, AggregateReport
from psychosocial_scoring.taxonomy.scoring_taxonomy import HealthImpact, RiskLevel

_RISK_ABBREV = {
    RiskLevel.VERY_LOW: "VL",
    RiskLevel.LOW: "L",
    RiskLevel.MODERATE: "M",
    RiskLevel.HIGH: "H",
    RiskLevel.VERY_HIGH: "VH",
}


def partition_label(key: Hashable) -> str:
    """Display name for a partition key."""
    if key is None:
        return "(no department)"
    if key == ORGANIZATION_KEY:
        return "Organization"
    return str(key)


def _fmt(value: Optional[float], decimals: int) -> str:
    return "-" if value is None else f"{value:.{decimals}f}"


# ── Partition summary ────────────────────────────────────────────────────────


def format_partition_summary(
    reports: dict[Hashable, AggregateReport],
    decimals: int = 2,
) -> str:
    """One row per partition with both distributions."""
    lines: list[str] = ["", "=== Partition Summary ==="]
    if not reports:
        lines.append("  (no responses)")
        return "\n".join(lines)

    risk_cols = "  ".join(f"{_RISK_ABBREV[lvl]:>3}" for lvl in RiskLevel)
    header = (
        f"  {'Partition':<24}  {'N':>4}  {'Avg':>5}  {risk_cols}  "
        f"{'Fav':>4}  {'Int':>4}  {'Risk':>4}  {'Uncl':>4}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for key, report in reports.items():
        risk = "  ".join(f"{report.risk_distribution[lvl]:>3}" for lvl in RiskLevel)
        health = report.health_distribution
        lines.append(
            f"  {partition_label(key)[:24]:<24}  {report.response_count:>4}  "
            f"{_fmt(report.overall_average, decimals):>5}  {risk}  "
            f"{health[HealthImpact.FAVORABLE]:>4}  {health[HealthImpact.INTERMEDIATE]:>4}  "
            f"{health[HealthImpact.RISK]:>4}  {report.unclassified_count:>4}"
        )
    return "\n".join(lines)


# ── Category detail ──────────────────────────────────────────────────────────


def format_category_table(
    report: AggregateReport,
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> str:
    """Category scores of one partition, in declaration order."""
    profile = instrument.profile
    lines: list[str] = ["", f"=== Categories: {partition_label(report.partition_key)} ==="]
    if not report.category_scores:
        lines.append("  (no scored categories)")
        return "\n".join(lines)

    header = f"  {'Category':<28}  {'Avg':>5}  {'%':>6}  {'N':>5}  {'Health':<14}  Risk"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for score in report.category_scores:
        c = classify_category(score, instrument)
        risk = profile.risk_label(c.risk_level) if c.risk_level else "-"
        lines.append(
            f"  {instrument.category_label(score.category)[:28]:<28}  "
            f"{score.average:>5.{decimals}f}  {score.percentage:>5.1f}%  "
            f"{score.sample_count:>5}  {profile.health_label(c.health_impact):<14}  {risk}"
        )
    return "\n".join(lines)


# ── Action plan ──────────────────────────────────────────────────────────────


def format_action_plan(plan: list[ActionItem]) -> str:
    """Numbered action plan, most critical first."""
    lines: list[str] = ["", "=== Action Plan ==="]
    if not plan:
        lines.append("  (no categories at risk or intermediate level)")
        return "\n".join(lines)

    for i, entry in enumerate(plan, start=1):
        lines.append(f"  {i:>2}. [{entry.priority.value.upper()}] {entry.description}")
        lines.append(f"      {entry.recommendation.text}")
        for action in entry.recommendation.actions:
            lines.append(f"        - {action}")
    return "\n".join(lines)


# ── Question table ───────────────────────────────────────────────────────────


def format_question_table(
    rows: list[QuestionAggregate],
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> str:
    """Most critical questions, one line each."""
    lines: list[str] = ["", "=== Most Critical Questions ==="]
    if not rows:
        lines.append("  (no answered questions)")
        return "\n".join(lines)

    header = f"  {'#':>3}  {'Avg':>5}  {'N':>5}  {'Category':<20}  Question"
    lines.append(header)
    lines.append("  " + "-" * 72)
    for row in rows:
        lines.append(
            f"  {row.item_number:>3}  {row.average:>5.{decimals}f}  {row.sample_count:>5}  "
            f"{instrument.category_label(row.category)[:20]:<20}  {row.text[:60]}"
        )
    return "\n".join(lines)


# ── Full assessment ──────────────────────────────────────────────────────────


def format_assessment(
    result: AssessmentResult,
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> str:
    """Header, partition summary, organization categories, plan and questions."""
    lines: list[str] = [
        "",
        f"=== {instrument.display_name} (v{instrument.version}) ===",
        f"  Responses:         {result.response_count}",
        f"  Partitions:        {len(result.reports)}",
        f"  Rejected answers:  {len(result.rejected)}",
    ]
    parts = ["\n".join(lines), format_partition_summary(result.reports, decimals)]
    if result.overall is not None:
        parts.append(format_category_table(result.overall, instrument, decimals))
    parts.append(format_action_plan(result.action_plan))
    parts.append(format_question_table(result.question_table, instrument, decimals))
    return "\n".join(parts)

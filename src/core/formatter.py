"""Output formatters: Markdown for farmers, JSON for analysts."""

import json
from datetime import date
from typing import List

from src.core.scanner import CycleResult
from src.models import HistoricalWeatherPattern, PredictionRun
from src.utils.constants import DAILY_TIPS


def daily_tip(day: date) -> str:
    """Presentation-only tip, rotated by day of month."""
    return DAILY_TIPS[day.day % len(DAILY_TIPS)]


class FarmerFormatter:
    """Markdown action list."""

    def format_cycle(self, result: CycleResult) -> str:
        lines = [
            f"**Agro-Climate Update: {result.location}**",
            f"**Time:** {result.timestamp.strftime('%Y-%m-%d %H:%M')} UTC | **Cycle:** {result.cycle_id}",
            "",
        ]

        if result.alerts:
            lines.append("**ALERTS:**")
            for i, a in enumerate(result.alerts, 1):
                flag = " (URGENT)" if a.escalate else ""
                lines.append(f"{i}. [{a.severity.upper()}] **{a.title}**{flag}")
                lines.append(f"   {a.message}")
            lines.append("")
        else:
            lines.append("**No new alerts.**")
            lines.append("")

        if result.patterns:
            lines.append("**PATTERNS:**")
            for p in result.patterns:
                lines.append(f"- {p.description} (severity {p.severity:.1f}/10, {p.season} season)")
            lines.append("")

        if result.predictions:
            lines.append(self.format_predictions(result.predictions))
            lines.append("")

        if result.recommendations:
            lines.append("**RECOMMENDATIONS:**")
            for r in result.recommendations[:10]:
                lines.append(f"- [{r.priority.upper()}] **{r.title}**: {', '.join(r.actions)}")
            lines.append("")

        lines.extend([
            "---",
            f"**Summary:** {result.summary}",
            f"*Tip: {daily_tip(result.timestamp.date())}*",
        ])
        return "\n".join(lines)

    def format_predictions(self, run: PredictionRun) -> str:
        lines = [f"**OUTLOOK ({len(run)} of {run.days_ahead} days):**"]
        for p in run:
            et = f"{p.evapotranspiration:.1f}mm" if p.evapotranspiration is not None else "n/a"
            lines.append(
                f"- {p.date.isoformat()}: {p.temperature:.1f}°C, {p.humidity:.0f}%, {p.precipitation:.1f}mm | "
                f"ET {et} | pest {p.pest_risk}, disease {p.disease_risk} | {p.crop_recommendation}"
            )
            lines.append(f"   → {p.irrigation_advice}")
        for gap in run.gaps:
            lines.append(f"- {gap.date.isoformat()}: no prediction ({gap.reason.replace('_', ' ')})")
        return "\n".join(lines)

    def format_history(self, location: str, patterns: List[HistoricalWeatherPattern]) -> str:
        lines = [f"**Weather History: {location}**", ""]
        if not patterns:
            lines.append("No history available.")
        for p in patterns:
            lines.append(f"- **{p.period}** ({p.start_date} to {p.end_date}): {p.summary}")
        return "\n".join(lines)


class ResearcherFormatter:
    """JSON with full details."""

    def to_json(self, payload) -> str:
        if isinstance(payload, list):
            data = [item.to_dict() for item in payload]
        else:
            data = payload.to_dict()
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)


def format_output(result, audience: str = "farmer", location: str = "") -> str:
    if audience == "researcher":
        return ResearcherFormatter().to_json(result)
    formatter = FarmerFormatter()
    if isinstance(result, CycleResult):
        return formatter.format_cycle(result)
    if isinstance(result, PredictionRun):
        return formatter.format_predictions(result)
    return formatter.format_history(location, result)

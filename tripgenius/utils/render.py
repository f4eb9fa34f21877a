from __future__ import annotations
from datetime import date
from typing import List

from tripgenius.utils.plan_schema import Itinerary

SLOTS = (("morning", "Morning"), ("afternoon", "Afternoon"), ("evening", "Evening"))


def format_long_date(value: str) -> str:
    """'2025-05-03' -> 'Saturday, May 3, 2025'. Unparsable values are returned unchanged."""
    try:
        d = date.fromisoformat(str(value))
    except ValueError:
        return str(value)
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def render_itinerary_text(destination: str, itinerary: Itinerary) -> str:
    lines: List[str] = [f"# {destination}", "", itinerary.summary, ""]
    lines += ["## Estimated Budget", itinerary.estimatedBudget, ""]
    lines += ["## Helpful Tips", itinerary.tips, ""]
    for d in itinerary.itinerary:
        lines.append(f"## Day {d.day} ({format_long_date(d.date)})")
        for key, label in SLOTS:
            lines.append(f"- {label}: {getattr(d, key)}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"

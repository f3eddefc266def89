"""Mood statistics over a scope's entries.

Everything here is a pure function of the entries passed in. Nothing raises on
empty or lopsided data: empty groups average to 0, a percentage against a zero
baseline is 0, and pattern detection always has something to say once there
are at least three entries.
"""
import math
from collections.abc import Callable, Iterable, Sequence
from datetime import date, timedelta

from pulse.schemas import ChartPoint, DailyEntry, Finding, ScreenTime, TrendSummary

WINDOW_SIZE = 7
MIN_ENTRIES_FOR_PATTERNS = 3

GOOD_SLEEP_HOURS = 7
SLEEP_MARGIN = 0.3
SCREEN_MARGIN = 0.3
EXERCISE_MARGIN = 0.2


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 toward positive infinity (2.5 -> 3, -2.5 -> -2)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def safe_average(values: Iterable[float]) -> float:
    """Arithmetic mean with the denominator floored at 1, so an empty group is 0."""
    values = list(values)
    return sum(values) / (len(values) or 1)


def percent_change(current: float, baseline: float) -> int:
    """Rounded percentage change from ``baseline``; 0 when the baseline is 0."""
    if not baseline:
        return 0
    return int(round_half_up((current - baseline) / baseline * 100))


def sort_by_date(entries: Iterable[DailyEntry]) -> list[DailyEntry]:
    return sorted(entries, key=lambda e: e.date)


def compute_trend(entries: Sequence[DailyEntry]) -> TrendSummary:
    """Average mood of the latest 7 entries and its change versus the 7 before.

    Windows count entries, not calendar days: gaps between dates are ignored.
    """
    if not entries:
        return TrendSummary(avg=0, trend=0)

    ordered = sort_by_date(entries)
    current_window = ordered[-WINDOW_SIZE:]
    previous_window = ordered[-2 * WINDOW_SIZE:-WINDOW_SIZE]

    current_avg = safe_average(e.mood for e in current_window)
    previous_avg = safe_average(e.mood for e in previous_window)

    return TrendSummary(
        avg=round_half_up(current_avg, 1),
        trend=percent_change(current_avg, previous_avg),
    )


def _split_mood(
    entries: Sequence[DailyEntry], predicate: Callable[[DailyEntry], bool]
) -> tuple[float, float]:
    """Mean mood of the entries matching ``predicate`` and of the rest."""
    matched = [e.mood for e in entries if predicate(e)]
    rest = [e.mood for e in entries if not predicate(e)]
    return safe_average(matched), safe_average(rest)


def detect_patterns(entries: Sequence[DailyEntry]) -> list[Finding]:
    """Compare mean mood across the sleep, screen time and exercise splits.

    Returns an empty list below three entries. Otherwise returns the findings
    that cross their margin, in sleep, screen, exercise order, or a single
    ``collection`` finding when none do.
    """
    if len(entries) < MIN_ENTRIES_FOR_PATTERNS:
        return []

    findings: list[Finding] = []

    rested, tired = _split_mood(entries, lambda e: e.sleep_hours >= GOOD_SLEEP_HOURS)
    if rested > tired + SLEEP_MARGIN:
        # Omitted when there are no short-sleep days to compare against
        uplift = f"{percent_change(rested, tired)}% " if tired else ""
        findings.append(
            Finding(
                id="sleep",
                title="Sleep Pattern",
                text=f"You tend to feel {uplift}better on days you sleep more than {GOOD_SLEEP_HOURS} hours.",
                metric="sleep",
                tone="positive",
            )
        )

    heavy_screen, light_screen = _split_mood(entries, lambda e: e.screen_time == ScreenTime.HIGH)
    if heavy_screen < light_screen - SCREEN_MARGIN:
        findings.append(
            Finding(
                id="screen",
                title="Screen Time",
                text="Low mood days often follow high screen time evenings.",
                metric="screenTime",
                tone="negative",
            )
        )

    active, idle = _split_mood(entries, lambda e: e.exercise_minutes > 0)
    if active > idle + EXERCISE_MARGIN:
        findings.append(
            Finding(
                id="exercise",
                title="Movement",
                text="Moving your body correlates with a boost in your daily mood.",
                metric="exercise",
                tone="positive",
            )
        )

    if not findings:
        findings.append(
            Finding(
                id="collection",
                title="Gathering Data",
                text="Keep tracking! We're learning what makes your best days happen.",
            )
        )

    return findings


def weekly_chart(entries: Sequence[DailyEntry]) -> list[ChartPoint]:
    """Chart points for the latest 7 entries, oldest first."""
    return [
        ChartPoint(
            date=e.date,
            day=e.date.day,
            label=f"{e.date:%a, %b} {e.date.day}",
            mood=e.mood,
        )
        for e in sort_by_date(entries)[-WINDOW_SIZE:]
    ]


def week_strip(entries: Sequence[DailyEntry], today: date | None = None) -> list[dict]:
    """The 7 calendar days ending today, each with its entry or None."""
    today = today or date.today()
    by_date = {e.date: e for e in entries}
    days = []
    for offset in range(WINDOW_SIZE - 1, -1, -1):
        day = today - timedelta(days=offset)
        days.append({
            "date": day,
            "weekday": f"{day:%a}",
            "entry": by_date.get(day),
            "is_today": day == today,
        })
    return days


def greeting(hour: int) -> str:
    if hour < 12:
        return "Good Morning"
    if hour < 18:
        return "Good Afternoon"
    return "Good Evening"

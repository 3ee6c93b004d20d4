# app/utils/report_generator.py

import json
import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# event_type -> key used in the summary payload
SUMMARY_KEYS = {
    "sleeping": "sleep",
    "feeding": "feeding",
    "diaper": "diaper",
    "growth": "growth",
    "medication": "medication",
    "temperature": "temperature",
}

MILK_TYPES = ("formula", "breast_milk", "cow_milk")

PORTION_LABELS = {
    "none": "None of it",
    "some": "Some of it",
    "half": "Half of it",
    "most": "Most of it",
    "all": "All of it",
}

SLEEP_QUALITIES = ("poor", "fair", "good", "excellent")


def parse_details(raw: Any, event_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Best-effort read of an event's details payload.
    Never raises: anything that is not a JSON object comes back as {}.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Error parsing %s details: %s", event_type or "event", exc)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("Ignoring non-object %s details: %r", event_type or "event", parsed)
        return {}
    return parsed


def _utc_suffix(value: Any) -> Any:
    # fromisoformat only understands a trailing "Z" from Python 3.11 on
    if isinstance(value, str) and value.endswith(("Z", "z")):
        return value[:-1] + "+00:00"
    return value


def parse_date_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parses an ISO-8601 query parameter into a naive UTC datetime.
    A date-only upper bound covers the whole day. Raises ValueError when
    the string is not ISO-8601.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(_utc_suffix(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def _count_by(events: List[Any], field: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for event in events:
        details = parse_details(event.details, event.event_type)
        key = details.get(field) or "unknown"
        if not isinstance(key, str):
            key = str(key)
        counts[key] = counts.get(key, 0) + 1
    return counts


def summarize_events(events: Iterable[Any]) -> Dict[str, Any]:
    """
    Builds the report summary for one child's events.

    The events must already be filtered to the report window and sorted
    newest-first by timestamp: growth stats read the first element as the
    latest measurement and the last one as the oldest. Every other figure
    is independent of input order.
    """
    buckets: Dict[str, List[Any]] = {key: [] for key in SUMMARY_KEYS.values()}
    total = 0

    for event in events:
        total += 1
        key = SUMMARY_KEYS.get(event.event_type)
        if key is not None:
            buckets[key].append(event)

    sleep = buckets["sleep"]
    growth = buckets["growth"]
    temperature = buckets["temperature"]

    sleep_total = sum(e.value or 0 for e in sleep)
    temperatures = [e.value or 0 for e in temperature]

    return {
        "totalEvents": total,
        "eventsByType": {key: len(items) for key, items in buckets.items()},
        "stats": {
            "sleep": {
                "count": len(sleep),
                "totalDuration": sleep_total,
                "averageDuration": sleep_total / len(sleep) if sleep else 0,
            },
            "feeding": {
                "count": len(buckets["feeding"]),
                "byType": _count_by(buckets["feeding"], "type"),
            },
            "diaper": {
                "count": len(buckets["diaper"]),
                "byType": _count_by(buckets["diaper"], "type"),
            },
            "growth": {
                "count": len(growth),
                "latestWeight": growth[0].value if growth else None,
                "weightGain": (growth[0].value or 0) - (growth[-1].value or 0) if len(growth) > 1 else None,
            },
            "medication": {
                "count": len(buckets["medication"]),
                "byMedication": _count_by(buckets["medication"], "medication"),
            },
            "temperature": {
                "count": len(temperature),
                "average": sum(temperatures) / len(temperatures) if temperatures else None,
                "highest": max(temperatures) if temperatures else None,
                "lowest": min(temperatures) if temperatures else None,
            },
        },
    }


def summarize_sleep(sleep_events: List[Any]) -> Dict[str, Any]:
    """Sleep totals plus how the nights were rated (unrated counts as good)."""
    total = 0.0
    qualities = {quality: 0 for quality in SLEEP_QUALITIES}

    for event in sleep_events:
        total += event.value or 0
        quality = _as_text(parse_details(event.details, event.event_type).get("quality")) or "good"
        if quality in qualities:
            qualities[quality] += 1

    return {
        "totalSleepTime": total,
        "averageSleepDuration": total / len(sleep_events) if sleep_events else 0,
        "qualityDistribution": qualities,
        "totalEvents": len(sleep_events),
    }


# --- Day-bucketed report ---

def group_events_by_day(events: Iterable[Any]) -> Dict[date, List[Any]]:
    """Calendar day -> that day's events, days ascending, events oldest first."""
    buckets: Dict[date, List[Any]] = {}
    for event in sorted(events, key=lambda e: (e.timestamp, getattr(e, "id", None) or 0)):
        buckets.setdefault(event.timestamp.date(), []).append(event)
    return dict(sorted(buckets.items()))


def format_time(moment: datetime) -> str:
    return moment.strftime("%I:%M %p").lstrip("0")


def format_duration(minutes: float) -> str:
    minutes = int(minutes)
    return f"{minutes // 60}h {minutes % 60}m"


def format_number(value: Any) -> str:
    try:
        return f"{float(value):g}"
    except (TypeError, ValueError):
        return str(value)


def format_temperature(value: float, unit: Optional[str]) -> str:
    return f"{format_number(value)}°{(unit or 'C')[0].upper()}"


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(_utc_suffix(value))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def describe_feeding(event: Any, details: Dict[str, Any]) -> str:
    food = str(details.get("type") or "Food")
    label = food.replace("_", " ")
    amount = event.value if event.value is not None else details.get("amount")

    if amount is not None:
        return f"{label} - {format_number(amount)}{event.unit or 'ml'}"
    if food in MILK_TYPES:
        return label

    portion = details.get("portion_consumed")
    if portion:
        return f"{label}: {PORTION_LABELS.get(str(portion), portion)}"
    if details.get("food_description"):
        return f"{label}: {details['food_description']}"
    return label


def _sleep_entry(event: Any, details: Dict[str, Any]) -> Dict[str, Any]:
    start = _parse_datetime(details.get("start_time")) or event.timestamp
    end = _parse_datetime(details.get("end_time"))

    if end is not None:
        duration = format_duration((end - start).total_seconds() / 60)
    elif event.value:
        end = start + timedelta(minutes=event.value)
        duration = format_duration(event.value)
    else:
        duration = "ongoing"

    return {
        "startTime": format_time(start),
        "endTime": format_time(end) if end is not None else "ongoing",
        "duration": duration,
        "notes": event.notes,
    }


def build_daily_report(child: Any, day: date, events: Iterable[Any]) -> Dict[str, Any]:
    """
    Daily report for one calendar day: one list per category plus a
    chronological list of printable lines ("7:30 AM: formula - 120ml").
    Events outside `day` are ignored.
    """
    report: Dict[str, Any] = {
        "child": {"id": child.id, "name": child.name},
        "date": day.isoformat(),
        "meals": [],
        "sleep": [],
        "diaperChanges": [],
        "medications": [],
        "temperatures": [],
        "growth": [],
        "lines": [],
    }

    for event in group_events_by_day(events).get(day, []):
        details = parse_details(event.details, event.event_type)
        at = format_time(event.timestamp)

        if event.event_type == "feeding":
            description = describe_feeding(event, details)
            report["meals"].append({"time": at, "description": description, "notes": event.notes})
            line = description

        elif event.event_type == "sleeping":
            entry = _sleep_entry(event, details)
            report["sleep"].append(entry)
            at = entry["startTime"]
            if entry["endTime"] == "ongoing":
                line = "Sleep (ongoing)"
            else:
                line = f"Sleep until {entry['endTime']} ({entry['duration']})"

        elif event.event_type == "diaper":
            kind = str(details.get("type") or "unknown").capitalize()
            report["diaperChanges"].append({"time": at, "type": kind, "notes": event.notes})
            line = f"{kind} diaper"

        elif event.event_type == "medication":
            name = _as_text(details.get("medication")) or "unknown"
            dosage = _as_text(details.get("dosage"))
            report["medications"].append({
                "time": at,
                "medication": name,
                "dosage": dosage,
                "reason": _as_text(details.get("reason")),
                "notes": event.notes,
            })
            line = f"{name} {dosage or ''}".strip()

        elif event.event_type == "temperature":
            reading = format_temperature(event.value or 0, event.unit)
            report["temperatures"].append({
                "time": at,
                "temperature": reading,
                "method": _as_text(details.get("method")),
                "notes": event.notes,
            })
            line = reading

        elif event.event_type == "growth":
            weight = _as_number(details.get("weight"))
            if weight is None:
                weight = event.value
            height = _as_number(details.get("height"))
            report["growth"].append({"time": at, "weight": weight, "height": height, "notes": event.notes})
            parts = []
            if weight is not None:
                parts.append(f"weight {format_number(weight)}{details.get('weight_unit', 'kg')}")
            if height is not None:
                parts.append(f"height {format_number(height)}{details.get('height_unit', 'cm')}")
            line = "Growth: " + ", ".join(parts) if parts else "Growth"

        else:
            line = event.event_type

        if event.notes:
            line = f"{line} ({event.notes})"
        report["lines"].append(f"{at}: {line}")

    return report


# --- Dashboard ---

TREND_DAYS = 7
GROWTH_TREND_DAYS = 183
DIAPER_KINDS = ("wet", "dirty", "mixed", "both")


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, like stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def sleep_interval(event: Any, now: datetime) -> Tuple[datetime, datetime]:
    """
    (start, end) of a sleep event. Without an end time the stored duration
    is used, and a sleep with neither is still running at `now`.
    """
    details = parse_details(event.details, event.event_type)
    start = _parse_datetime(details.get("start_time")) or event.timestamp
    end = _parse_datetime(details.get("end_time"))
    if end is None:
        end = start + timedelta(minutes=event.value) if event.value else max(now, start)
    return start, end


def _overlap_seconds(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> float:
    return max((min(end, window_end) - max(start, window_start)).total_seconds(), 0)


def _day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def sleep_minutes_in_day(sleep_events: Iterable[Any], day: date, now: datetime) -> int:
    """Whole minutes slept on `day`; sleeps crossing midnight only count their share."""
    day_start, day_end = _day_window(day)
    total = 0
    for event in sleep_events:
        start, end = sleep_interval(event, now)
        total += int(_overlap_seconds(start, end, day_start, day_end) // 60)
    return total


def percent_change(current: float, previous: float) -> int:
    if previous == 0:
        return 100
    # half rounds up, also for negative changes
    return math.floor((current - previous) / previous * 100 + 0.5)


def trend_days(today: date, count: int = TREND_DAYS) -> List[date]:
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def sleep_trend(sleep_events: Iterable[Any], days: List[date], now: datetime) -> List[Dict[str, Any]]:
    intervals = [sleep_interval(event, now) for event in sleep_events]
    trend = []
    for day in days:
        day_start, day_end = _day_window(day)
        seconds = sum(_overlap_seconds(start, end, day_start, day_end) for start, end in intervals)
        trend.append({"date": day.isoformat(), "hours": round(seconds / 3600, 1)})
    return trend


def feeding_trend(feeding_events: Iterable[Any], days: List[date]) -> List[Dict[str, Any]]:
    totals = {day: 0.0 for day in days}
    for event in feeding_events:
        day = event.timestamp.date()
        if day not in totals:
            continue
        amount = event.value
        if amount is None:
            amount = _as_number(parse_details(event.details, event.event_type).get("amount"))
        totals[day] += amount or 0
    return [{"date": day.isoformat(), "amount": round(total)} for day, total in totals.items()]


def growth_trend(growth_events: Iterable[Any]) -> List[Dict[str, Any]]:
    """One point per measurement, oldest first."""
    trend = []
    for event in sorted(growth_events, key=lambda e: e.timestamp):
        details = parse_details(event.details, event.event_type)
        weight = _as_number(details.get("weight"))
        trend.append({
            "date": event.timestamp.date().isoformat(),
            "weight": weight if weight is not None else event.value,
            "weightUnit": _as_text(details.get("weight_unit")) or "kg",
            "height": _as_number(details.get("height")),
            "heightUnit": _as_text(details.get("height_unit")) or "cm",
        })
    return trend


def build_dashboard(events: Iterable[Any], today: date, now: datetime) -> Dict[str, Any]:
    """
    Dashboard figures for one child:
    - sleep today against yesterday, and hours per day over the last week
    - today's feedings, diapers and medications
    - feeding amounts per day over the last week
    - growth measurements over the last six months

    `events` should cover at least the growth window. The last* and
    nextDose entries are the event objects themselves.
    """
    by_type: Dict[str, List[Any]] = {}
    for event in sorted(events, key=lambda e: (e.timestamp, getattr(e, "id", None) or 0)):
        by_type.setdefault(event.event_type, []).append(event)

    sleep = by_type.get("sleeping", [])
    minutes_today = sleep_minutes_in_day(sleep, today, now)
    minutes_yesterday = sleep_minutes_in_day(sleep, today - timedelta(days=1), now)

    day_start, day_end = _day_window(today)
    slept_today = [
        event for event in sleep
        if _overlap_seconds(*sleep_interval(event, now), day_start, day_end) > 0
    ]

    def on_today(event_type):
        return [e for e in by_type.get(event_type, []) if e.timestamp.date() == today]

    feedings = on_today("feeding")
    diapers = on_today("diaper")
    medications = on_today("medication")

    breakdown = {kind: 0 for kind in DIAPER_KINDS}
    for event in diapers:
        kind = _as_text(parse_details(event.details, event.event_type).get("type"))
        if kind in breakdown:
            breakdown[kind] += 1

    growth_since = today - timedelta(days=GROWTH_TREND_DAYS)
    days = trend_days(today)

    return {
        "sleep": {
            "today": {
                "hours": minutes_today // 60,
                "minutes": minutes_today % 60,
                "percentChange": percent_change(minutes_today, minutes_yesterday),
            },
            "lastUpdated": slept_today[-1].timestamp if slept_today else None,
            "trend": sleep_trend(sleep, days, now),
        },
        "feedings": {
            "today": len(feedings),
            "lastFeeding": feedings[-1] if feedings else None,
            "trend": feeding_trend(by_type.get("feeding", []), days),
        },
        "diapers": {
            "today": len(diapers),
            "lastChange": diapers[-1] if diapers else None,
            "breakdown": breakdown,
        },
        "medications": {
            "active": len(medications),
            "nextDose": medications[0] if medications else None,
        },
        "growth": {
            "trend": growth_trend(e for e in by_type.get("growth", []) if e.timestamp.date() >= growth_since),
        },
    }

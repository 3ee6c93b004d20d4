# app/utils/pdf_renderer.py

from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.utils.report_generator import (
    format_duration,
    format_number,
    format_temperature,
    format_time,
    parse_details,
)

VALUE_HEADERS = {
    "feeding": "Amount",
    "sleeping": "Duration",
    "growth": "Weight",
    "temperature": "Temperature",
}

TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4f6d8f")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f4f8")]),
])


def _build(story: List[Any], title: str) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=title,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


def _text(value: Any) -> str:
    return escape("" if value is None else str(value))


def _measurements(entry: Dict[str, Any]) -> str:
    parts = []
    if entry.get("weight") is not None:
        parts.append(f"weight {format_number(entry['weight'])}")
    if entry.get("height") is not None:
        parts.append(f"height {format_number(entry['height'])}")
    return ", ".join(parts) or "-"


def _sleep_line(entry: Dict[str, Any]) -> str:
    if entry["endTime"] == "ongoing":
        return f"{entry['startTime']} - ongoing"
    return f"{entry['startTime']} - {entry['endTime']} ({entry['duration']})"


DAILY_SECTIONS = (
    ("meals", "Meals", lambda e: f"{e['time']}: {e['description']}"),
    ("sleep", "Sleep", _sleep_line),
    ("diaperChanges", "Diaper changes", lambda e: f"{e['time']}: {e['type']}"),
    ("medications", "Medications", lambda e: f"{e['time']}: {e['medication']} {e.get('dosage') or ''}".strip()),
    ("temperatures", "Temperatures", lambda e: f"{e['time']}: {e['temperature']}"),
    ("growth", "Growth", lambda e: f"{e['time']}: {_measurements(e)}"),
)


def render_daily_report_pdf(report: Dict[str, Any]) -> bytes:
    """Renders the output of build_daily_report as a one-day PDF."""
    styles = getSampleStyleSheet()
    day = datetime.fromisoformat(report["date"])
    title = "Daily Report"

    story: List[Any] = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Child: {_text(report['child']['name'])}", styles["Normal"]),
        Paragraph(f"Date: {day.strftime('%B %d, %Y')}", styles["Normal"]),
        Spacer(1, 6 * mm),
    ]

    counts = [[label, str(len(report[key]))] for key, label, _ in DAILY_SECTIONS]
    summary = Table([["Category", "Entries"]] + counts, colWidths=[60 * mm, 30 * mm], hAlign="LEFT")
    summary.setStyle(TABLE_STYLE)
    story += [Paragraph("Summary", styles["Heading2"]), summary, Spacer(1, 6 * mm)]

    if not report["lines"]:
        story.append(Paragraph("No events recorded for this day.", styles["Italic"]))

    # one section per category that has entries
    for key, label, describe in DAILY_SECTIONS:
        entries = report[key]
        if not entries:
            continue
        story.append(Paragraph(label, styles["Heading2"]))
        for entry in entries:
            line = describe(entry)
            if entry.get("notes"):
                line = f"{line} ({entry['notes']})"
            story.append(Paragraph(_text(line), styles["Normal"]))

    if report["lines"]:
        story.append(Paragraph("Timeline", styles["Heading2"]))
    for line in report["lines"]:
        story.append(Paragraph(_text(line), styles["Normal"]))

    return _build(story, title)


def _summary_lines(report_type: str, summary: Dict[str, Any], events: List[Any], days: float) -> List[str]:
    stats = summary["stats"]
    lines = [f"Total entries: {summary['totalEvents']}"]

    if report_type == "feeding":
        total = sum(e.value or 0 for e in events)
        average = total / len(events) if events else 0
        lines.append(f"Total amount: {total:.2f} oz/ml")
        lines.append(f"Average amount per feeding: {average:.2f} oz/ml")
        lines += [f"{kind}: {count}" for kind, count in sorted(stats["feeding"]["byType"].items())]
    elif report_type == "sleeping":
        hours = stats["sleep"]["totalDuration"] / 60
        lines.append(f"Total sleep: {hours:.1f} hours")
        lines.append(f"Average sleep per day: {hours / days:.1f} hours")
    elif report_type == "growth":
        growth = stats["growth"]
        if growth["latestWeight"] is not None:
            lines.append(f"Current weight: {growth['latestWeight']:.2f} kg/lbs")
        if growth["weightGain"] is not None:
            lines.append(f"Weight gain: {growth['weightGain']:.2f} kg/lbs")
    elif report_type == "temperature":
        temperature = stats["temperature"]
        for label, key in (("Average", "average"), ("Highest", "highest"), ("Lowest", "lowest")):
            value = temperature[key]
            lines.append(f"{label} temperature: {'-' if value is None else f'{value:.1f}°C'}")
    elif report_type == "diaper":
        lines += [f"{kind}: {count}" for kind, count in sorted(stats["diaper"]["byType"].items())]
    elif report_type == "medication":
        lines += [f"{name}: {count}" for name, count in sorted(stats["medication"]["byMedication"].items())]
    else:
        lines += [f"{key}: {count}" for key, count in summary["eventsByType"].items()]

    return lines


def _table_row(event: Any, include_type: bool) -> List[str]:
    details = parse_details(event.details, event.event_type)
    start = event.timestamp
    end = ""

    if event.event_type == "sleeping":
        value = format_duration(event.value) if event.value is not None else ""
        if details.get("end_time"):
            try:
                end = format_time(datetime.fromisoformat(details["end_time"]))
            except (TypeError, ValueError):
                end = ""
    elif event.value is None:
        value = ""
    elif event.event_type == "temperature":
        value = format_temperature(event.value, event.unit)
    elif event.event_type == "feeding":
        value = f"{format_number(event.value)} {event.unit or 'ml'}"
    elif event.event_type == "growth":
        value = f"{format_number(event.value)} {details.get('weight_unit', 'kg')}"
    else:
        value = format_number(event.value)

    row = [start.strftime("%b %d, %Y"), format_time(start), end, value]
    if include_type:
        row.insert(0, event.event_type)
    row.append(event.notes or "")
    return row


def render_period_report_pdf(
    report_type: str,
    child_name: str,
    start: datetime,
    end: datetime,
    summary: Dict[str, Any],
    events: List[Any],
) -> bytes:
    """
    Period report for one event type (or "all"): header, summary figures
    and a table with one row per event, oldest first.
    """
    styles = getSampleStyleSheet()
    title = "Activity Report" if report_type == "all" else f"{report_type.capitalize()} Report"
    days = max((end - start).total_seconds() / 86400, 1)
    include_type = report_type == "all"

    story: List[Any] = [
        Paragraph(_text(title), styles["Title"]),
        Paragraph(f"Child: {_text(child_name)}", styles["Normal"]),
        Paragraph(f"Period: {start.strftime('%b %d, %Y')} - {end.strftime('%b %d, %Y')}", styles["Normal"]),
        Paragraph(f"Generated on: {datetime.now().strftime('%b %d, %Y, %I:%M %p')}", styles["Normal"]),
        Spacer(1, 6 * mm),
        Paragraph("Summary", styles["Heading2"]),
    ]
    for line in _summary_lines(report_type, summary, events, days):
        story.append(Paragraph(_text(line), styles["Normal"]))

    story += [Spacer(1, 6 * mm), Paragraph("Detailed Data", styles["Heading2"])]

    headers = ["Date", "Time", "End Time", VALUE_HEADERS.get(report_type, "Value"), "Notes"]
    if include_type:
        headers.insert(0, "Type")

    ordered = sorted(events, key=lambda e: e.timestamp)
    rows = [headers]
    for event in ordered:
        row = _table_row(event, include_type)
        # Notes wrap inside their cell
        row[-1] = Paragraph(_text(row[-1]), styles["BodyText"])
        rows.append(row)

    if len(rows) == 1:
        story.append(Paragraph("No entries in this period.", styles["Italic"]))
    else:
        widths = [24, 24, 18, 18, 26, 70] if include_type else [28, 20, 20, 30, 82]
        table = Table(rows, colWidths=[w * mm for w in widths], repeatRows=1, hAlign="LEFT")
        table.setStyle(TABLE_STYLE)
        story.append(table)

    return _build(story, title)

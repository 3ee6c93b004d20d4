import logging
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
from typing import Optional

from config.database import get_db
from app.models.child_model import Child
from app.dependencies.children import get_owned_child
from app.repositories.event_repository import EventRepository
from app.schemas.event_schema import GROWTH, SLEEPING, EventRead, normalize_event_type
from app.schemas.report_schema import (
    DashboardResponse,
    DailyReportResponse,
    ReportRequest,
    ReportSummaryResponse,
    StatsResponse,
)
from app.utils.pdf_renderer import render_daily_report_pdf, render_period_report_pdf
from app.utils.report_generator import (
    GROWTH_TREND_DAYS,
    build_daily_report,
    build_dashboard,
    parse_date_bound,
    summarize_events,
    summarize_sleep,
    utc_now,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/children/{child_id}", tags=["reports"])


def _report_type(value: Optional[str]) -> Optional[str]:
    # "all" or nothing disables the type filter
    if not value or value.strip().lower() == "all":
        return None
    return normalize_event_type(value)


def _daily_events(db: Session, child: Child, day: date):
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time.max)
    return EventRepository(db).list_for_child(child.id, start=start, end=end, newest_first=False)


def _read(event) -> Optional[EventRead]:
    return EventRead.model_validate(event) if event is not None else None


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/reports", response_model=ReportSummaryResponse)
def get_report_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    report_type: Optional[str] = Query("all", alias="type"),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """
    Summary of the child's events in [startDate, endDate]:
    - totalEvents and eventsByType
    - per-type stats (sleep durations, feeding/diaper kinds, growth, medication, temperature)
    """
    try:
        start = parse_date_bound(start_date)
        end = parse_date_bound(end_date, end_of_day=True)

        # newest first: growth stats depend on it
        events = EventRepository(db).list_for_child(child.id, _report_type(report_type), start, end)
        summary = summarize_events(events)

        return {
            "child": {"id": child.id, "name": child.name, "birthDate": child.birth_date},
            "period": {"startDate": start, "endDate": end},
            **summary,
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error generating report for child %s", child.id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reports/daily", response_model=DailyReportResponse)
def get_daily_report(
    day: Optional[str] = Query(None, alias="date"),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """Day-bucketed report for one calendar day (today when no date is given)."""
    try:
        report_day = date.fromisoformat(day) if day else utc_now().date()
        events = _daily_events(db, child, report_day)
        return build_daily_report(child, report_day, events)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error building daily report for child %s", child.id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reports/pdf")
def get_daily_report_pdf(
    day: Optional[str] = Query(None, alias="date"),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    try:
        report_day = date.fromisoformat(day) if day else utc_now().date()
        report = build_daily_report(child, report_day, _daily_events(db, child, report_day))
        content = render_daily_report_pdf(report)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error rendering daily PDF for child %s", child.id)
        raise HTTPException(status_code=500, detail="Internal server error")

    filename = f"daily_report_{child.name.replace(' ', '_')}_{report_day.isoformat()}.pdf"
    return _pdf_response(content, filename)


@router.post("/reports/generate")
def generate_report(
    report_request: ReportRequest,
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """PDF report for one event type (or "all") over a period."""
    try:
        start = parse_date_bound(report_request.startDate)
        end = parse_date_bound(report_request.endDate, end_of_day=True)
        logger.info(
            "Generating %s report from %s to %s for child %s",
            report_request.reportType, start, end, child.id,
        )

        events = EventRepository(db).list_for_child(child.id, _report_type(report_request.reportType), start, end)
        logger.info("Fetched %d events for report", len(events))

        content = render_period_report_pdf(
            report_request.reportType, child.name, start, end, summarize_events(events), events
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error generating %s report for child %s", report_request.reportType, child.id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return _pdf_response(content, f"{report_request.reportType}-report.pdf")


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """
    Dashboard figures: event counts per type, the 10 latest events
    and sleep totals with the quality distribution.
    """
    try:
        start = parse_date_bound(start_date)
        end = parse_date_bound(end_date, end_of_day=True)
        repo = EventRepository(db)

        latest = repo.list_for_child(child.id, start=start, end=end, limit=10)
        sleep_events = repo.list_for_child(child.id, SLEEPING, start, end)

        return {
            "eventCounts": repo.count_by_type(child.id, start, end),
            "latestEvents": [EventRead.model_validate(event) for event in latest],
            "sleepStats": summarize_sleep(sleep_events),
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching stats for child %s", child.id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """
    Home screen figures: today's sleep compared with yesterday, 7-day sleep and
    feeding trends, today's diapers and medications, the 6-month growth trend
    and the 10 most recent events.
    """
    try:
        now = utc_now()
        today = now.date()
        repo = EventRepository(db)

        # one day of slack for sleeps that started before the window
        since = datetime.combine(today - timedelta(days=GROWTH_TREND_DAYS + 1), time.min)
        dashboard = build_dashboard(repo.list_for_child(child.id, start=since), today, now)

        latest_growth = repo.list_for_child(child.id, GROWTH, limit=1)
        recent = repo.list_for_child(child.id, limit=10)

        feedings, diapers, medications = dashboard["feedings"], dashboard["diapers"], dashboard["medications"]
        feedings["lastFeeding"] = _read(feedings["lastFeeding"])
        diapers["lastChange"] = _read(diapers["lastChange"])
        medications["nextDose"] = _read(medications["nextDose"])
        dashboard["growth"]["latest"] = _read(latest_growth[0]) if latest_growth else None
        dashboard["recentActivities"] = [EventRead.model_validate(event) for event in recent]
        return dashboard
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching dashboard data for child %s", child.id)
        raise HTTPException(status_code=500, detail="Internal server error")

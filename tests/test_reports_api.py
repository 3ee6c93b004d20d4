"""
Tests for the report, PDF, stats and dashboard endpoints
"""

from datetime import datetime

import pytest

from app.models.event_model import Event

EVENTS = [
    {
        "event_type": "feeding",
        "timestamp": "2024-01-15T07:30:00",
        "unit": "ml",
        "details": {"type": "formula", "amount": 120},
    },
    {
        "event_type": "feeding",
        "timestamp": "2024-01-15T12:00:00",
        "details": {"type": "solid", "portion_consumed": "half"},
    },
    {
        "event_type": "sleeping",
        "timestamp": "2024-01-15T13:00:00",
        "details": {"start_time": "2024-01-15T13:00:00", "end_time": "2024-01-15T14:30:00", "quality": "excellent"},
    },
    {"event_type": "diaper", "timestamp": "2024-01-15T09:00:00", "details": {"type": "wet"}},
    {"event_type": "growth", "timestamp": "2024-01-10T10:00:00", "details": {"weight": 3.5, "height": 50}},
    {"event_type": "growth", "timestamp": "2024-01-15T10:00:00", "details": {"weight": 4.0}},
    {"event_type": "temperature", "timestamp": "2024-01-15T20:00:00", "value": 37.0, "unit": "C"},
    {
        "event_type": "medication",
        "timestamp": "2024-01-15T20:05:00",
        "details": {"medication": "paracetamol", "dosage": "2.5ml"},
    },
    {"event_type": "bath", "timestamp": "2024-01-15T19:00:00"},
]


@pytest.fixture
def seeded(add_event):
    return add_event(EVENTS)


def reports_url(child, suffix=""):
    return f"/api/children/{child['id']}/reports{suffix}"


def test_summary(client, auth_headers, child, seeded):
    response = client.get(
        reports_url(child),
        params={"startDate": "2024-01-01", "endDate": "2024-01-31"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["child"] == {"id": child["id"], "name": "Emma", "birthDate": "2023-11-02"}
    assert data["period"]["startDate"] == "2024-01-01T00:00:00"
    assert data["totalEvents"] == 9
    assert data["eventsByType"] == {
        "sleep": 1,
        "feeding": 2,
        "diaper": 1,
        "growth": 2,
        "medication": 1,
        "temperature": 1,
    }
    stats = data["stats"]
    assert stats["sleep"]["totalDuration"] == 90
    assert stats["feeding"]["byType"] == {"formula": 1, "solid": 1}
    assert stats["growth"]["latestWeight"] == 4.0
    assert stats["growth"]["weightGain"] == pytest.approx(0.5)
    assert stats["temperature"]["average"] == 37.0
    assert stats["medication"]["byMedication"] == {"paracetamol": 1}


def test_summary_date_only_end_is_inclusive(client, auth_headers, child, seeded):
    response = client.get(
        reports_url(child),
        params={"startDate": "2024-01-15", "endDate": "2024-01-15"},
        headers=auth_headers,
    )

    data = response.json()
    # everything but the Jan 10 growth entry, including the 20:05 medication
    assert data["totalEvents"] == 8
    assert data["stats"]["growth"]["weightGain"] is None


def test_summary_type_filter(client, auth_headers, child, seeded):
    data = client.get(reports_url(child), params={"type": "feeding"}, headers=auth_headers).json()

    assert data["totalEvents"] == 2
    assert data["eventsByType"]["feeding"] == 2
    assert data["eventsByType"]["sleep"] == 0


def test_summary_with_no_events(client, auth_headers, child):
    data = client.get(reports_url(child), headers=auth_headers).json()

    assert data["totalEvents"] == 0
    assert data["stats"]["sleep"]["averageDuration"] == 0
    assert data["stats"]["temperature"]["average"] is None


def test_malformed_date_is_internal_error(client, auth_headers, child):
    response = client.get(reports_url(child), params={"startDate": "not-a-date"}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_daily_report(client, auth_headers, child, seeded):
    response = client.get(reports_url(child, "/daily"), params={"date": "2024-01-15"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2024-01-15"
    assert data["lines"][0] == "7:30 AM: formula - 120ml"
    assert "1:00 PM: Sleep until 2:30 PM (1h 30m)" in data["lines"]
    assert "12:00 PM: solid: Half of it" in data["lines"]
    assert "7:00 PM: bath" in data["lines"]
    assert len(data["lines"]) == 8
    assert data["medications"][0]["dosage"] == "2.5ml"
    assert data["temperatures"][0]["temperature"] == "37°C"


def test_daily_pdf(client, auth_headers, child, seeded):
    response = client.get(reports_url(child, "/pdf"), params={"date": "2024-01-15"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="daily_report_Emma_2024-01-15.pdf"'
    assert response.content.startswith(b"%PDF")


def test_daily_pdf_for_empty_day(client, auth_headers, child):
    response = client.get(reports_url(child, "/pdf"), params={"date": "2024-02-01"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


@pytest.mark.parametrize("report_type", ["feeding", "sleeping", "growth", "temperature", "diaper", "medication", "all"])
def test_generate_period_pdf(client, auth_headers, child, seeded, report_type):
    response = client.post(
        reports_url(child, "/generate"),
        json={"reportType": report_type, "startDate": "2024-01-01", "endDate": "2024-01-31"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == f'attachment; filename="{report_type}-report.pdf"'
    assert response.content.startswith(b"%PDF")


def test_generate_requires_dates(client, auth_headers, child):
    response = client.post(reports_url(child, "/generate"), json={"reportType": "feeding"}, headers=auth_headers)
    assert response.status_code == 422


def test_stats(client, auth_headers, child, seeded):
    response = client.get(f"/api/children/{child['id']}/stats", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["eventCounts"] == {
        "feeding": 2,
        "sleeping": 1,
        "diaper": 1,
        "growth": 2,
        "temperature": 1,
        "medication": 1,
        "bath": 1,
    }
    assert len(data["latestEvents"]) == 9
    assert data["latestEvents"][0]["event_type"] == "medication"
    assert data["sleepStats"] == {
        "totalSleepTime": 90,
        "averageSleepDuration": 90,
        "qualityDistribution": {"poor": 0, "fair": 0, "good": 0, "excellent": 1},
        "totalEvents": 1,
    }


def test_stats_latest_capped_at_ten(client, auth_headers, child, add_event):
    add_event([
        {"event_type": "diaper", "timestamp": f"2024-01-{day:02d}T09:00:00", "details": {"type": "wet"}}
        for day in range(1, 13)
    ])

    data = client.get(f"/api/children/{child['id']}/stats", headers=auth_headers).json()

    assert len(data["latestEvents"]) == 10
    assert data["latestEvents"][0]["timestamp"] == "2024-01-12T09:00:00"
    assert data["eventCounts"] == {"diaper": 12}


def test_reports_are_owner_only(client, other_headers, child, seeded):
    assert client.get(reports_url(child), headers=other_headers).status_code == 404
    assert client.get(reports_url(child, "/daily"), headers=other_headers).status_code == 404
    assert client.get(f"/api/children/{child['id']}/stats", headers=other_headers).status_code == 404


def test_reports_need_a_token(client, child):
    assert client.get(reports_url(child)).status_code == 401


def test_summary_accepts_utc_suffix(client, auth_headers, child, seeded):
    response = client.get(
        reports_url(child),
        params={"startDate": "2024-01-15T00:00:00Z", "endDate": "2024-01-15T23:59:59Z"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["totalEvents"] == 8


@pytest.fixture
def legacy_rows(db_session, child):
    """Rows written before details were validated."""
    db_session.add_all([
        Event(
            child_id=child["id"], event_type="medication",
            timestamp=datetime(2024, 1, 15, 8, 0), details='{"medication": 5, "dosage": 2.5}',
        ),
        Event(
            child_id=child["id"], event_type="temperature", value=37.5, unit="C",
            timestamp=datetime(2024, 1, 15, 9, 0), details='{"method": 1}',
        ),
        Event(
            child_id=child["id"], event_type="growth", value=4.2,
            timestamp=datetime(2024, 1, 15, 10, 0), details='{"weight": "heavy", "height": [50]}',
        ),
        Event(
            child_id=child["id"], event_type="sleeping", value=30,
            timestamp=datetime(2024, 1, 15, 11, 0), details='{"quality": ["good"], "end_time": 7}',
        ),
        Event(
            child_id=child["id"], event_type="diaper",
            timestamp=datetime(2024, 1, 15, 12, 0), details="not json",
        ),
    ])
    db_session.commit()


def test_daily_report_tolerates_legacy_details(client, auth_headers, child, legacy_rows):
    response = client.get(reports_url(child, "/daily"), params={"date": "2024-01-15"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["medications"] == [
        {"time": "8:00 AM", "medication": "5", "dosage": "2.5", "reason": None, "notes": None}
    ]
    assert data["temperatures"][0]["method"] == "1"
    assert data["growth"][0]["weight"] == 4.2
    assert data["growth"][0]["height"] is None
    assert data["diaperChanges"][0]["type"] == "Unknown"
    assert len(data["lines"]) == 5


def test_legacy_details_do_not_break_other_reports(client, auth_headers, child, legacy_rows):
    pdf = client.get(reports_url(child, "/pdf"), params={"date": "2024-01-15"}, headers=auth_headers)
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")

    stats = client.get(f"/api/children/{child['id']}/stats", headers=auth_headers)
    assert stats.status_code == 200
    assert stats.json()["sleepStats"]["qualityDistribution"] == {"poor": 0, "fair": 0, "good": 0, "excellent": 0}

    summary = client.get(reports_url(child), headers=auth_headers)
    assert summary.status_code == 200
    assert summary.json()["stats"]["medication"]["byMedication"] == {"5": 1}


@pytest.fixture
def frozen_now(monkeypatch):
    now = datetime(2024, 1, 15, 18, 0)
    monkeypatch.setattr("app.routes.report_routes.utc_now", lambda: now)
    return now


def test_daily_report_defaults_to_utc_today(client, auth_headers, child, seeded, frozen_now):
    response = client.get(reports_url(child, "/daily"), headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["date"] == "2024-01-15"
    assert len(response.json()["lines"]) == 8


DASHBOARD_EVENTS = [
    {
        "event_type": "sleeping",
        "timestamp": "2024-01-14T22:00:00",
        "details": {"start_time": "2024-01-14T22:00:00", "end_time": "2024-01-15T01:00:00"},
    },
    {
        "event_type": "sleeping",
        "timestamp": "2024-01-15T13:00:00",
        "details": {"start_time": "2024-01-15T13:00:00", "end_time": "2024-01-15T14:30:00"},
    },
    {"event_type": "feeding", "timestamp": "2024-01-13T07:00:00", "details": {"type": "formula", "amount": 100}},
    {"event_type": "feeding", "timestamp": "2024-01-15T07:30:00", "details": {"type": "formula", "amount": 120}},
    {"event_type": "diaper", "timestamp": "2024-01-15T09:00:00", "details": {"type": "wet"}},
    {"event_type": "diaper", "timestamp": "2024-01-15T16:00:00", "details": {"type": "dirty"}},
    {"event_type": "medication", "timestamp": "2024-01-15T08:00:00", "details": {"medication": "paracetamol"}},
    {"event_type": "medication", "timestamp": "2024-01-15T12:00:00", "details": {"medication": "vitamin D"}},
    {"event_type": "growth", "timestamp": "2023-05-01T10:00:00", "details": {"weight": 3.0}},
    {"event_type": "growth", "timestamp": "2023-12-01T10:00:00", "details": {"weight": 4.0, "height": 52}},
    {"event_type": "growth", "timestamp": "2024-01-10T10:00:00", "details": {"weight": 4.5}},
]


def test_dashboard(client, auth_headers, child, add_event, frozen_now):
    add_event(DASHBOARD_EVENTS)

    response = client.get(f"/api/children/{child['id']}/dashboard", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()

    sleep = data["sleep"]
    # 60 minutes after midnight plus the 90 minute nap, against 120 minutes yesterday
    assert sleep["today"] == {"hours": 2, "minutes": 30, "percentChange": 25}
    assert sleep["lastUpdated"] == "2024-01-15T13:00:00"
    assert [point["date"] for point in sleep["trend"]][0] == "2024-01-09"
    assert {point["date"]: point["hours"] for point in sleep["trend"]}["2024-01-14"] == 2.0
    assert sleep["trend"][-1] == {"date": "2024-01-15", "hours": 2.5}

    feedings = data["feedings"]
    assert feedings["today"] == 1
    assert feedings["lastFeeding"]["value"] == 120
    assert {point["date"]: point["amount"] for point in feedings["trend"]} == {
        "2024-01-09": 0, "2024-01-10": 0, "2024-01-11": 0, "2024-01-12": 0,
        "2024-01-13": 100, "2024-01-14": 0, "2024-01-15": 120,
    }

    diapers = data["diapers"]
    assert diapers["today"] == 2
    assert diapers["lastChange"]["details"] == {"type": "dirty"}
    assert diapers["breakdown"] == {"wet": 1, "dirty": 1, "mixed": 0, "both": 0}

    medications = data["medications"]
    assert medications["active"] == 2
    assert medications["nextDose"]["details"] == {"medication": "paracetamol"}

    growth = data["growth"]
    assert growth["latest"]["value"] == 4.5
    assert [point["date"] for point in growth["trend"]] == ["2023-12-01", "2024-01-10"]
    assert growth["trend"][0] == {
        "date": "2023-12-01", "weight": 4.0, "weightUnit": "kg", "height": 52.0, "heightUnit": "cm",
    }

    assert len(data["recentActivities"]) == 10
    assert data["recentActivities"][0]["timestamp"] == "2024-01-15T16:00:00"


def test_empty_dashboard(client, auth_headers, child, frozen_now):
    data = client.get(f"/api/children/{child['id']}/dashboard", headers=auth_headers).json()

    assert data["sleep"]["today"] == {"hours": 0, "minutes": 0, "percentChange": 100}
    assert data["sleep"]["lastUpdated"] is None
    assert len(data["sleep"]["trend"]) == 7
    assert data["feedings"]["lastFeeding"] is None
    assert data["medications"]["nextDose"] is None
    assert data["growth"] == {"latest": None, "trend": []}
    assert data["recentActivities"] == []


def test_dashboard_tolerates_legacy_details(client, auth_headers, child, legacy_rows, frozen_now):
    response = client.get(f"/api/children/{child['id']}/dashboard", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["growth"]["trend"][0]["weight"] == 4.2


def test_dashboard_is_owner_only(client, other_headers, child):
    assert client.get(f"/api/children/{child['id']}/dashboard", headers=other_headers).status_code == 404

# app/schemas/report_schema.py

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.event_schema import EventRead, normalize_event_type


class SleepStats(BaseModel):
    count: int
    totalDuration: float
    averageDuration: float


class CountStats(BaseModel):
    count: int
    byType: Dict[str, int]


class GrowthStats(BaseModel):
    count: int
    latestWeight: Optional[float] = None
    weightGain: Optional[float] = None


class MedicationStats(BaseModel):
    count: int
    byMedication: Dict[str, int]


class TemperatureStats(BaseModel):
    count: int
    average: Optional[float] = None
    highest: Optional[float] = None
    lowest: Optional[float] = None


class SummaryStats(BaseModel):
    sleep: SleepStats
    feeding: CountStats
    diaper: CountStats
    growth: GrowthStats
    medication: MedicationStats
    temperature: TemperatureStats


class ReportChild(BaseModel):
    id: int
    name: str
    birthDate: date


class ReportPeriod(BaseModel):
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None


class ReportSummaryResponse(BaseModel):
    child: ReportChild
    period: ReportPeriod
    totalEvents: int
    eventsByType: Dict[str, int]
    stats: SummaryStats


class QualityDistribution(BaseModel):
    poor: int = 0
    fair: int = 0
    good: int = 0
    excellent: int = 0


class SleepOverview(BaseModel):
    totalSleepTime: float
    averageSleepDuration: float
    qualityDistribution: QualityDistribution
    totalEvents: int


class StatsResponse(BaseModel):
    eventCounts: Dict[str, int]
    latestEvents: List[EventRead]
    sleepStats: SleepOverview


class ReportRequest(BaseModel):
    """Body of POST /reports/generate."""
    reportType: str = Field("all", min_length=1, max_length=50)
    startDate: str = Field(..., min_length=1)
    endDate: str = Field(..., min_length=1)

    @field_validator("reportType")
    @classmethod
    def canonical_type(cls, v):
        return "all" if v.strip().lower() == "all" else normalize_event_type(v)


# --- Daily report, see build_daily_report ---

class DailyChild(BaseModel):
    id: int
    name: str


class MealEntry(BaseModel):
    time: str
    description: str
    notes: Optional[str] = None


class SleepEntry(BaseModel):
    startTime: str
    endTime: str
    duration: str
    notes: Optional[str] = None


class DiaperEntry(BaseModel):
    time: str
    type: str
    notes: Optional[str] = None


class MedicationEntry(BaseModel):
    time: str
    medication: str
    dosage: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class TemperatureEntry(BaseModel):
    time: str
    temperature: str
    method: Optional[str] = None
    notes: Optional[str] = None


class GrowthEntry(BaseModel):
    time: str
    weight: Optional[float] = None
    height: Optional[float] = None
    notes: Optional[str] = None


class DailyReportResponse(BaseModel):
    child: DailyChild
    date: str
    meals: List[MealEntry]
    sleep: List[SleepEntry]
    diaperChanges: List[DiaperEntry]
    medications: List[MedicationEntry]
    temperatures: List[TemperatureEntry]
    growth: List[GrowthEntry]
    lines: List[str]


# --- Dashboard, see build_dashboard ---

class SleepToday(BaseModel):
    hours: int
    minutes: int
    percentChange: int


class SleepTrendPoint(BaseModel):
    date: str
    hours: float


class FeedingTrendPoint(BaseModel):
    date: str
    amount: int


class GrowthTrendPoint(BaseModel):
    date: str
    weight: Optional[float] = None
    weightUnit: str = "kg"
    height: Optional[float] = None
    heightUnit: str = "cm"


class DashboardSleep(BaseModel):
    today: SleepToday
    lastUpdated: Optional[datetime] = None
    trend: List[SleepTrendPoint]


class DashboardFeedings(BaseModel):
    today: int
    lastFeeding: Optional[EventRead] = None
    trend: List[FeedingTrendPoint]


class DiaperBreakdown(BaseModel):
    wet: int = 0
    dirty: int = 0
    mixed: int = 0
    both: int = 0


class DashboardDiapers(BaseModel):
    today: int
    lastChange: Optional[EventRead] = None
    breakdown: DiaperBreakdown


class DashboardMedications(BaseModel):
    active: int
    nextDose: Optional[EventRead] = None


class DashboardGrowth(BaseModel):
    latest: Optional[EventRead] = None
    trend: List[GrowthTrendPoint]


class DashboardResponse(BaseModel):
    sleep: DashboardSleep
    feedings: DashboardFeedings
    diapers: DashboardDiapers
    medications: DashboardMedications
    growth: DashboardGrowth
    recentActivities: List[EventRead]

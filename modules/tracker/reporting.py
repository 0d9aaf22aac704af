"""Pipeline reporting over the application collection.

Read-only helpers behind the list, dashboard, kanban and analytics views:
- Search / status / priority filtering
- Status funnel (all eight states, zero-filled)
- Kanban columns in board order
- Recent applications and upcoming interviews
- Response / success rates and month-over-month growth

Rates are whole percentages, 0 when there is nothing to divide by.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from .records import CLOSED_STATUSES, Application, ApplicationStatus, Priority

INTERVIEW_STATUSES = frozenset({ApplicationStatus.INTERVIEW, ApplicationStatus.FINAL_INTERVIEW})


@dataclass(frozen=True)
class PipelineSummary:
    total: int
    active: int
    offers: int
    interviews: int
    rejected: int
    response_rate: int
    success_rate: int
    this_month: int
    last_month: int
    monthly_growth: int


def _percent(part: int, whole: int) -> int:
    # halves round up, negative values included (-87.5 -> -87)
    return math.floor(part * 100 / whole + 0.5) if whole else 0


def _activity_date(app: Application) -> date:
    """Month bucketing uses the applied date, else the creation date."""
    return app.date_applied or app.created_at.date()


def _month_shift(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def status_counts(applications: Iterable[Application]) -> dict[ApplicationStatus, int]:
    counts = {status: 0 for status in ApplicationStatus}
    for app in applications:
        counts[app.status] += 1
    return counts


def _matches_search(app: Application, term: str) -> bool:
    fields = [app.company_name, app.position, app.location or "", *app.tags]
    return any(term in value.lower() for value in fields)


def filter_applications(
    applications: Iterable[Application],
    search: str = "",
    status: Optional[ApplicationStatus] = None,
    priority: Optional[Priority] = None,
) -> list[Application]:
    """Applications list filters.

    ``search`` is a case-insensitive substring match on company, position,
    location or any tag. ``status`` and ``priority`` are exact; None means all.
    """
    term = search.strip().lower()
    return [
        app for app in applications
        if (not term or _matches_search(app, term))
        and (status is None or app.status is status)
        and (priority is None or app.priority is priority)
    ]


def kanban_columns(applications: Iterable[Application]) -> dict[ApplicationStatus, list[Application]]:
    columns: dict[ApplicationStatus, list[Application]] = {status: [] for status in ApplicationStatus}
    for app in applications:
        columns[app.status].append(app)
    return columns


def recent_applications(applications: Iterable[Application], limit: int = 5) -> list[Application]:
    return sorted(applications, key=lambda a: a.created_at, reverse=True)[:limit]


def upcoming_interviews(
    applications: Iterable[Application],
    now: datetime,
    limit: int = 3,
) -> list[Application]:
    """Interviews strictly after ``now`` (timezone-aware), soonest first."""
    upcoming = [a for a in applications if a.interview_date and a.interview_date > now]
    return sorted(upcoming, key=lambda a: a.interview_date)[:limit]


def success_rate(applications: Sequence[Application]) -> int:
    """Offers as a share of concluded applications (offer/rejected/withdrawn)."""
    concluded = [a for a in applications if a.status in CLOSED_STATUSES]
    offers = sum(1 for a in concluded if a.status is ApplicationStatus.OFFER)
    return _percent(offers, len(concluded))


def monthly_counts(
    applications: Sequence[Application],
    now: datetime,
    months: int = 6,
) -> list[tuple[str, int]]:
    """(YYYY-MM, count) for the last ``months`` months, oldest first."""
    buckets: dict[tuple[int, int], int] = {}
    for app in applications:
        d = _activity_date(app)
        buckets[(d.year, d.month)] = buckets.get((d.year, d.month), 0) + 1

    result = []
    for delta in range(months - 1, -1, -1):
        year, month = _month_shift(now.year, now.month, -delta)
        result.append((f"{year:04d}-{month:02d}", buckets.get((year, month), 0)))
    return result


def summarize(applications: Sequence[Application], now: datetime) -> PipelineSummary:
    counts = status_counts(applications)
    total = len(applications)
    offers = counts[ApplicationStatus.OFFER]
    interviews = sum(counts[s] for s in INTERVIEW_STATUSES)

    this_month_key = (now.year, now.month)
    last_month_key = _month_shift(now.year, now.month, -1)
    this_month = last_month = 0
    for app in applications:
        d = _activity_date(app)
        if (d.year, d.month) == this_month_key:
            this_month += 1
        elif (d.year, d.month) == last_month_key:
            last_month += 1

    return PipelineSummary(
        total=total,
        active=sum(1 for a in applications if a.status not in CLOSED_STATUSES),
        offers=offers,
        interviews=interviews,
        rejected=counts[ApplicationStatus.REJECTED],
        response_rate=_percent(interviews + offers, total),
        success_rate=_percent(offers, total),
        this_month=this_month,
        last_month=last_month,
        monthly_growth=_percent(this_month - last_month, last_month),
    )

"""
Read-only aggregations for the dashboard and analytics pages.

Every function here is pure: callers load the collections, the functions
count. Nothing is cached, so results always reflect the current rows.
"""
import calendar
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Sequence

from compliance_api.modules.compliance.models.deadline import DeadlineStatus
from compliance_api.modules.documents.models.document import DocumentStatus

TREND_MONTHS = 6

def _percent(part: int, whole: int) -> int:
    # half-up, so 2.5% reads as 3%
    return int(part * 100 / whole + 0.5) if whole else 0

def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)

def _days_until(deadline: datetime, now: datetime) -> float:
    return (deadline - now) / timedelta(days=1)

def _open(deadlines: Iterable) -> List:
    return [d for d in deadlines if d.status != DeadlineStatus.COMPLETED]

def dashboard_stats(documents: Sequence, user_documents: Sequence, deadlines: Sequence, now: datetime) -> Dict[str, int]:
    all_docs = list(documents) + list(user_documents)
    total = len(all_docs)
    pending = sum(1 for d in documents if d.status == DocumentStatus.PENDING_APPROVAL)
    active = sum(1 for d in documents if d.status == DocumentStatus.ACTIVE)

    open_deadlines = _open(deadlines)
    expiring = sum(1 for d in open_deadlines if 0 <= _days_until(d.deadline, now) <= 30)
    urgent = sum(1 for d in open_deadlines if _days_until(d.deadline, now) <= 7)

    one_month_ago = _add_months(now, -1)
    created_last_month = sum(1 for d in all_docs if d.created_at > one_month_ago)

    return {
        "documents": total,
        "pending": pending,
        "complianceRate": _percent(active, total),
        "expiringCount": expiring,
        "docsCreatedLastMonth": created_last_month,
        "urgentCount": urgent,
    }

def monthly_trend(documents: Sequence, now: datetime, months: int = TREND_MONTHS) -> List[Dict]:
    """Creation counts per calendar month, oldest first, ending with the current month."""
    current_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    trend = []
    for offset in range(months - 1, -1, -1):
        start = _add_months(current_month, -offset)
        end = _add_months(start, 1)
        count = sum(1 for d in documents if start <= d.created_at < end)
        trend.append({"month": calendar.month_abbr[start.month], "count": count})
    return trend

def analytics_overview(documents: Sequence, user_documents: Sequence, deadlines: Sequence, now: datetime) -> Dict:
    status_counts = Counter(d.status for d in documents)
    completed = sum(1 for d in deadlines if d.status == DeadlineStatus.COMPLETED)
    return {
        "statusBreakdown": {status.value: status_counts.get(status, 0) for status in DocumentStatus},
        "monthlyTrend": monthly_trend(documents, now),
        "completionRate": _percent(completed, len(deadlines)),
        "totalDocuments": len(documents),
        "totalUserDocuments": len(user_documents),
        "totalDeadlines": len(deadlines),
    }

def category_breakdown(documents: Sequence) -> Dict[str, int]:
    return dict(Counter(d.category or "Uncategorized" for d in documents))

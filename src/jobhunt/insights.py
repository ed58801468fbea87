import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from .errors import StoreError
from .models import Application, ApplicationStatus, Insight, StatusHistoryEntry, TERMINAL_STATUSES

RESPONDED = {ApplicationStatus.RECRUITER_SCREEN, ApplicationStatus.HIRING_MANAGER,
             ApplicationStatus.INTERVIEWS, ApplicationStatus.OFFER}
INTERVIEWED = {ApplicationStatus.HIRING_MANAGER, ApplicationStatus.INTERVIEWS, ApplicationStatus.OFFER}

def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 86400)

def _last_touched(app: Application) -> Optional[datetime]:
    return app.status_updated_at or app.updated_at

def _rate(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0

def compute_pipeline_metrics(applications: List[Application], history: List[StatusHistoryEntry],
                             now: datetime, deadline: Optional[datetime] = None,
                             stale_after_days: int = 14) -> Dict[str, Any]:
    """Summarize an owner's pipeline for the insights prompt."""
    total = len(applications)
    counts: Dict[str, int] = {}
    for app in applications:
        counts[app.status.value] = counts.get(app.status.value, 0) + 1

    by_id = {app.id: app for app in applications}
    response_days = []
    for entry in history:
        app = by_id.get(entry.application_id)
        if entry.previous_status is not ApplicationStatus.APPLIED or app is None or app.application_date is None:
            continue
        days = (entry.changed_at.date() - app.application_date).days
        if days > 0:
            response_days.append(days)

    stale = []
    for app in applications:
        touched = _last_touched(app)
        if app.status in TERMINAL_STATUSES or touched is None:
            continue
        idle = _days_between(touched, now)
        if idle >= stale_after_days:
            stale.append((idle, app))
    stale.sort(key=lambda pair: pair[0], reverse=True)

    metrics: Dict[str, Any] = {
        "total_applications": total,
        "status_breakdown": counts,
        "response_rate": _rate(sum(counts.get(s.value, 0) for s in RESPONDED), total),
        "interview_rate": _rate(sum(counts.get(s.value, 0) for s in INTERVIEWED), total),
        "days_to_deadline": None,
        "weeks_remaining": None,
        "avg_days_to_response": round(sum(response_days) / len(response_days)) if response_days else None,
        "stale_applications": len(stale),
        "top_stale_apps": [
            {
                "company": app.company_name,
                "title": app.job_title,
                "status": app.status.value,
                "fit_score": app.fit_score,
                "days_since_update": idle,
            }
            for idle, app in stale[:5]
        ],
        "high_fit_active": sum(
            1 for app in applications
            if (app.fit_score or 0) >= 80 and app.status not in TERMINAL_STATUSES
        ),
    }
    if deadline is not None:
        days = _days_between(now, deadline)
        metrics["days_to_deadline"] = days
        metrics["weeks_remaining"] = math.ceil(days / 7)
    return metrics

def generate_insights(store, oracle, owner_id: str, settings, now: datetime) -> Dict[str, Any]:
    metrics = compute_pipeline_metrics(
        store.list_applications(owner_id),
        store.list_history(owner_id),
        now=now,
        deadline=settings.target_deadline(),
        stale_after_days=int(settings.insights.get("stale_after_days", 14)),
    )
    logger.info(f"[LLM] Generating insights for {owner_id} over {metrics['total_applications']} applications")
    insights = oracle.generate_insights(metrics)

    insight_id = None
    try:
        insight_id = store.add_insight(Insight(id="", owner_id=owner_id, content=insights, generated_at=now)).id
    except StoreError as e:
        # the caller still gets the report; only the saved copy is missing
        logger.error(f"[Sheets] Failed to save insights for {owner_id}: {e.message}")
    return {"success": True, "insights": insights, "metrics": metrics, "insightId": insight_id}

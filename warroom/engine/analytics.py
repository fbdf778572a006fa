"""Analytics Engine — aggregate views over incidents, recomputed per call."""

from collections import defaultdict
from datetime import timedelta
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InternalError
from ..models.incident import SEVERITIES, SOURCES, Incident
from ..utils.clock import Clock, utcnow
from ..utils.logging import get_logger

logger = get_logger("engine.analytics")

PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_PERIOD = "7d"

# SQLite strftime patterns; the bucket label is the truncated created_at
GRANULARITY_FORMATS = {
    "hour": "%Y-%m-%d %H:00",
    "day": "%Y-%m-%d",
}
DEFAULT_GRANULARITY = "day"


def resolve_period(period: Optional[str]) -> str:
    return period if period in PERIODS else DEFAULT_PERIOD


def resolve_granularity(granularity: Optional[str]) -> str:
    return granularity if granularity in GRANULARITY_FORMATS else DEFAULT_GRANULARITY


def mean_minutes(durations: list[timedelta]) -> int:
    """Mean of the durations in minutes, truncated toward zero; 0 for none."""
    if not durations:
        return 0
    total_seconds = sum(d.total_seconds() for d in durations)
    return int(total_seconds / len(durations) / 60)


class AnalyticsEngine:
    """Summary statistics and time-bucketed incident series."""

    def __init__(self, db_session_factory, clock: Clock = utcnow):
        self._db_session_factory = db_session_factory
        self._clock = clock

    async def get_summary(self) -> dict:
        """Counts, distributions and per-severity MTTR in whole minutes."""
        try:
            async with self._db_session_factory() as session:
                total = (await session.execute(select(func.count(Incident.id)))).scalar() or 0
                open_count = (await session.execute(
                    select(func.count(Incident.id)).where(Incident.status != "resolved")
                )).scalar() or 0

                severity_distribution = dict.fromkeys(SEVERITIES, 0)
                for severity, count in (await session.execute(
                    select(Incident.severity, func.count(Incident.id)).group_by(Incident.severity)
                )).all():
                    severity_distribution[severity] = count

                source_distribution = dict.fromkeys(SOURCES, 0)
                for source, count in (await session.execute(
                    select(Incident.source, func.count(Incident.id)).group_by(Incident.source)
                )).all():
                    source_distribution[source] = count

                resolved_rows = (await session.execute(
                    select(Incident.severity, Incident.created_at, Incident.resolved_at)
                    .where(Incident.resolved_at.is_not(None))
                )).all()
        except SQLAlchemyError as exc:
            logger.error("analytics_summary_failed", error=str(exc))
            raise InternalError("Failed to compute analytics summary") from exc

        durations: dict[str, list[timedelta]] = defaultdict(list)
        for severity, created_at, resolved_at in resolved_rows:
            durations[severity].append(resolved_at - created_at)

        return {
            "total_incidents": total,
            "open_incidents": open_count,
            "mttr_by_severity": {s: mean_minutes(durations[s]) for s in SEVERITIES},
            "severity_distribution": severity_distribution,
            "source_distribution": source_distribution,
        }

    async def get_timeline(self, period: Optional[str] = DEFAULT_PERIOD, granularity: Optional[str] = DEFAULT_GRANULARITY) -> dict:
        """Incident counts per hour or day bucket over the trailing period.

        Empty buckets are omitted; callers wanting a dense series fill the
        gaps themselves.
        """
        period = resolve_period(period)
        granularity = resolve_granularity(granularity)
        start = self._clock() - PERIODS[period]

        bucket = func.strftime(GRANULARITY_FORMATS[granularity], Incident.created_at).label("bucket")
        severity_counts = [
            func.sum(case((Incident.severity == s, 1), else_=0)).label(s) for s in SEVERITIES
        ]
        query = (
            select(bucket, func.count(Incident.id).label("count"), *severity_counts)
            .where(Incident.created_at >= start)
            .group_by(bucket)
            .order_by(bucket.asc())
        )

        try:
            async with self._db_session_factory() as session:
                rows = (await session.execute(query)).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("analytics_timeline_failed", period=period, granularity=granularity, error=str(exc))
            raise InternalError("Failed to compute incident timeline") from exc

        timeline = [
            {
                "bucket": row["bucket"],
                "count": int(row["count"]),
                **{s: int(row[s] or 0) for s in SEVERITIES},
            }
            for row in rows
        ]
        return {"period": period, "granularity": granularity, "timeline": timeline}

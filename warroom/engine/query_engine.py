"""Query Engine — filtered, sorted, paginated reads over the incident set."""

import math
from enum import Enum
from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InternalError
from ..models.incident import SEVERITIES, Incident
from ..utils.logging import get_logger
from .incident_store import incident_to_dict

logger = get_logger("engine.query_engine")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# critical sorts as the largest value
SEVERITY_RANK = {severity: len(SEVERITIES) - i for i, severity in enumerate(SEVERITIES)}


class SortColumn(str, Enum):
    """The only columns incidents may be ordered by."""

    CREATED_AT = "created_at"
    SEVERITY = "severity"
    UPDATED_AT = "updated_at"
    TITLE = "title"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortColumn":
        """Resolve a requested column; anything unknown means created_at."""
        try:
            return cls(value)
        except ValueError:
            return cls.CREATED_AT

    def expression(self):
        if self is SortColumn.SEVERITY:
            return case(SEVERITY_RANK, value=Incident.severity, else_=0)
        return getattr(Incident, self.value)


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        return cls.ASC if value == "asc" else cls.DESC


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_page(page: Any) -> int:
    return max(1, _coerce_int(page, DEFAULT_PAGE))


def clamp_limit(limit: Any, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    return min(maximum, max(1, _coerce_int(limit, default)))


def total_pages(total: int, limit: int) -> int:
    return max(1, math.ceil(total / limit))


class QueryEngine:
    """Read-only listing of incidents for tables and feeds."""

    def __init__(self, db_session_factory, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT):
        self._db_session_factory = db_session_factory
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def list_incidents(
        self,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        source: Optional[str] = None,
        sort: Optional[str] = SortColumn.CREATED_AT.value,
        order: Optional[str] = SortOrder.DESC.value,
        page: Any = DEFAULT_PAGE,
        limit: Any = None,
    ) -> dict:
        """Return one page of incidents plus pagination metadata.

        Filters are exact matches and combine with AND. Page and limit are
        clamped rather than rejected, and a page past the end is simply empty.
        """
        page = clamp_page(page)
        limit = clamp_limit(limit, self._default_limit, self._max_limit)
        sort_column = SortColumn.parse(sort)
        sort_order = SortOrder.parse(order)

        conditions = []
        if severity:
            conditions.append(Incident.severity == severity)
        if status:
            conditions.append(Incident.status == status)
        if source:
            conditions.append(Incident.source == source)

        sort_expr = sort_column.expression()
        if sort_order is SortOrder.ASC:
            ordering = (sort_expr.asc(), Incident.id.asc())
        else:
            ordering = (sort_expr.desc(), Incident.id.desc())

        try:
            async with self._db_session_factory() as session:
                total = (await session.execute(
                    select(func.count(Incident.id)).where(*conditions)
                )).scalar() or 0
                rows = (await session.execute(
                    select(Incident)
                    .where(*conditions)
                    .order_by(*ordering)
                    .limit(limit)
                    .offset((page - 1) * limit)
                )).scalars().all()
        except SQLAlchemyError as exc:
            logger.error("incident_list_failed", error=str(exc))
            raise InternalError("Failed to list incidents") from exc

        return {
            "incidents": [incident_to_dict(i) for i in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages(total, limit),
            },
        }

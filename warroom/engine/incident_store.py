"""Incident Store — incident lifecycle and its audit timeline.

Every write runs in one transaction: the incident row and the timeline rows
derived from it commit together or not at all. Live subscribers are notified
only after the commit succeeds.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InternalError, NotFoundError, ValidationError
from ..models.incident import SEVERITIES, SOURCES, STATUSES, Incident
from ..models.timeline_event import TimelineEvent
from ..utils.clock import Clock, to_iso, utcnow
from ..utils.logging import get_logger
from .broadcast_hub import INCIDENT_CREATED, INCIDENT_UPDATED, BroadcastHub
from .classifier import classify_severity

logger = get_logger("engine.incident_store")

UPDATABLE_FIELDS = ("status", "severity", "assigned_to", "description")
SYSTEM_ACTOR = "system"
# SQLite INTEGER primary keys are signed 64-bit
MAX_INCIDENT_ID = 2**63 - 1


@dataclass(frozen=True)
class AuditEntry:
    """A timeline row produced by diffing an update against the stored incident."""

    action: str
    details: str


def diff_changes(current: Mapping[str, Any], fields: Mapping[str, Any]) -> list[AuditEntry]:
    """Compare requested field values against the persisted ones.

    Yields at most one entry per changed audited field. Description edits are
    applied but never audited, and a field set to its current value produces
    nothing.
    """
    entries: list[AuditEntry] = []

    if "status" in fields and fields["status"] != current["status"]:
        entries.append(AuditEntry(
            "status_change",
            f"Status changed from {current['status']} to {fields['status']}",
        ))

    if "severity" in fields and fields["severity"] != current["severity"]:
        entries.append(AuditEntry(
            "severity_change",
            f"Severity changed from {current['severity']} to {fields['severity']}",
        ))

    if "assigned_to" in fields and fields["assigned_to"] != current["assigned_to"]:
        if fields["assigned_to"]:
            details = f"Assigned to {fields['assigned_to']}"
        else:
            details = f"Unassigned (was {current['assigned_to']})"
        entries.append(AuditEntry("assigned", details))

    return entries


def incident_to_dict(incident: Incident) -> dict:
    return {
        "id": incident.id,
        "title": incident.title,
        "description": incident.description,
        "severity": incident.severity,
        "status": incident.status,
        "source": incident.source,
        "assigned_to": incident.assigned_to,
        "created_at": to_iso(incident.created_at),
        "updated_at": to_iso(incident.updated_at),
        "resolved_at": to_iso(incident.resolved_at),
    }


def event_to_dict(event: TimelineEvent) -> dict:
    return {
        "id": event.id,
        "incident_id": event.incident_id,
        "action": event.action,
        "details": event.details,
        "actor": event.actor,
        "created_at": to_iso(event.created_at),
    }


def _require_member(name: str, value: Any, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise ValidationError(f"{name} must be one of: {', '.join(allowed)}")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require_known_id(incident_id: int) -> None:
    if not 1 <= incident_id <= MAX_INCIDENT_ID:
        raise NotFoundError(incident_id)


def _event_stamp(now: datetime, incident: Incident) -> datetime:
    """Timestamp for a write to an existing incident; never earlier than its last write."""
    return max(now, incident.updated_at)


class IncidentStore:
    """Owns incident records, their state machine and their timeline."""

    def __init__(self, db_session_factory, hub: Optional[BroadcastHub] = None, clock: Clock = utcnow):
        self._db_session_factory = db_session_factory
        self._hub = hub
        self._clock = clock
        # Serialises writes against the one underlying database
        self._write_lock = asyncio.Lock()

    def set_hub(self, hub: BroadcastHub) -> None:
        self._hub = hub

    async def create(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        source: Optional[str] = None,
        severity: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> dict:
        """Open a new incident, classifying its severity when none is given."""
        if _blank(title) and _blank(source):
            raise ValidationError("title and source are required")
        if _blank(title) or not isinstance(title, str):
            raise ValidationError("title is required")
        if _blank(source):
            raise ValidationError("source is required")
        _require_member("source", source, SOURCES)
        if severity:
            _require_member("severity", severity, SEVERITIES)
        else:
            severity = classify_severity(title, source)

        async with self._write_lock:
            now = self._clock()
            try:
                async with self._db_session_factory() as session:
                    async with session.begin():
                        incident = Incident(
                            title=title,
                            description=description or None,
                            severity=severity,
                            status="open",
                            source=source,
                            assigned_to=assigned_to or None,
                            created_at=now,
                            updated_at=now,
                            resolved_at=None,
                        )
                        session.add(incident)
                        await session.flush()
                        session.add(TimelineEvent(
                            incident_id=incident.id,
                            action="created",
                            details=f"Incident created from {source}",
                            actor=SYSTEM_ACTOR,
                            created_at=now,
                        ))
                    result = incident_to_dict(incident)
            except SQLAlchemyError as exc:
                logger.error("incident_create_failed", title=title, error=str(exc))
                raise InternalError("Failed to create incident") from exc

        logger.info("incident_created", id=result["id"], severity=severity, source=source, title=title)
        await self._broadcast(INCIDENT_CREATED, result)
        return result

    async def get_by_id(self, incident_id: int) -> dict:
        """Return the incident with its full timeline, oldest event first."""
        _require_known_id(incident_id)
        try:
            async with self._db_session_factory() as session:
                incident = await session.get(Incident, incident_id)
                if incident is None:
                    raise NotFoundError(incident_id)
                events = (await session.execute(
                    select(TimelineEvent)
                    .where(TimelineEvent.incident_id == incident_id)
                    .order_by(TimelineEvent.created_at.asc(), TimelineEvent.id.asc())
                )).scalars().all()
                result = incident_to_dict(incident)
                result["timeline"] = [event_to_dict(e) for e in events]
        except SQLAlchemyError as exc:
            logger.error("incident_read_failed", id=incident_id, error=str(exc))
            raise InternalError(f"Failed to load incident {incident_id}") from exc
        return result

    async def update(self, incident_id: int, fields: Mapping[str, Any], actor: Optional[str] = None) -> dict:
        """Apply any subset of status, severity, assigned_to and description.

        One timeline row is written per audited field whose value differs
        from the stored one. Setting status to resolved always re-stamps
        resolved_at, and updated_at moves on every call, even when nothing
        changed.
        """
        _require_known_id(incident_id)
        changes = self._validate_update(fields)
        actor = actor or SYSTEM_ACTOR

        async with self._write_lock:
            try:
                async with self._db_session_factory() as session:
                    async with session.begin():
                        incident = await session.get(Incident, incident_id)
                        if incident is None:
                            raise NotFoundError(incident_id)

                        entries = diff_changes(incident_to_dict(incident), changes)
                        now = _event_stamp(self._clock(), incident)

                        for name, value in changes.items():
                            setattr(incident, name, value)
                        if changes.get("status") == "resolved":
                            incident.resolved_at = now
                        elif incident.status != "resolved":
                            incident.resolved_at = None
                        incident.updated_at = now

                        for entry in entries:
                            session.add(TimelineEvent(
                                incident_id=incident_id,
                                action=entry.action,
                                details=entry.details,
                                actor=actor,
                                created_at=now,
                            ))
                    result = incident_to_dict(incident)
            except SQLAlchemyError as exc:
                logger.error("incident_update_failed", id=incident_id, error=str(exc))
                raise InternalError(f"Failed to update incident {incident_id}") from exc

        logger.info(
            "incident_updated",
            id=incident_id,
            actor=actor,
            fields=sorted(changes),
            audit_entries=[e.action for e in entries],
        )
        await self._broadcast(INCIDENT_UPDATED, result)
        return result

    async def add_comment(self, incident_id: int, text: Optional[str], actor: Optional[str] = None) -> dict:
        """Append a comment to the timeline without touching incident state."""
        if _blank(text):
            raise ValidationError("comment text is required")
        actor = actor or SYSTEM_ACTOR
        _require_known_id(incident_id)

        async with self._write_lock:
            try:
                async with self._db_session_factory() as session:
                    async with session.begin():
                        incident = await session.get(Incident, incident_id)
                        if incident is None:
                            raise NotFoundError(incident_id)
                        now = _event_stamp(self._clock(), incident)
                        incident.updated_at = now
                        event = TimelineEvent(
                            incident_id=incident_id,
                            action="comment",
                            details=text.strip(),
                            actor=actor,
                            created_at=now,
                        )
                        session.add(event)
                        await session.flush()
                    result = incident_to_dict(incident)
                    comment = event_to_dict(event)
            except SQLAlchemyError as exc:
                logger.error("incident_comment_failed", id=incident_id, error=str(exc))
                raise InternalError(f"Failed to comment on incident {incident_id}") from exc

        logger.info("incident_commented", id=incident_id, actor=actor)
        await self._broadcast(INCIDENT_UPDATED, result)
        return comment

    def _validate_update(self, fields: Mapping[str, Any]) -> dict:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"unknown fields: {', '.join(sorted(unknown))}; "
                f"updatable fields are: {', '.join(UPDATABLE_FIELDS)}"
            )
        changes = dict(fields)
        if "status" in changes:
            _require_member("status", changes["status"], STATUSES)
        if "severity" in changes:
            _require_member("severity", changes["severity"], SEVERITIES)
        if "assigned_to" in changes and not changes["assigned_to"]:
            changes["assigned_to"] = None
        return changes

    async def _broadcast(self, event: str, record: dict) -> None:
        if self._hub is None:
            return
        try:
            await self._hub.broadcast(event, record)
        except Exception as e:
            # The write is committed; a failed fan-out must not turn it into an error
            logger.warning("incident_broadcast_failed", event_type=event, id=record.get("id"), error=str(e))

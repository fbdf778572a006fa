"""Incident routes — listing, detail, creation, updates and comments."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from ...auth.roles import ROLE_ADMIN, ROLE_RESPONDER, ROLE_VIEWER, get_actor, require_role
from ...dependencies import get_incident_store, get_query_engine
from ...engine.incident_store import IncidentStore
from ...engine.query_engine import QueryEngine
from ..envelope import ok

router = APIRouter(prefix="/incidents", tags=["incidents"])

read_access = require_role(ROLE_VIEWER, ROLE_RESPONDER, ROLE_ADMIN)
write_access = require_role(ROLE_RESPONDER, ROLE_ADMIN)


# --- Request bodies ---
# Enumerated values are checked by the store so the error names the constraint.

class CreateIncidentRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    source: Optional[str] = None
    severity: Optional[str] = None
    assigned_to: Optional[str] = Field(default=None, max_length=100)


class UpdateIncidentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[str] = None
    severity: Optional[str] = None
    assigned_to: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=5000)


class AddCommentRequest(BaseModel):
    text: str = Field(min_length=1, max_length=5000)


# --- Endpoints ---

@router.get("")
async def list_incidents(
    severity: Optional[str] = None,
    status: Optional[str] = None,
    source: Optional[str] = None,
    sort: str = "created_at",
    order: str = "desc",
    page: Optional[str] = None,
    limit: Optional[str] = None,
    _role: str = Depends(read_access),
    engine: QueryEngine = Depends(get_query_engine),
):
    """List incidents; bad page/limit/sort values are clamped, not rejected."""
    result = await engine.list_incidents(
        severity=severity,
        status=status,
        source=source,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )
    return ok(result)


@router.get("/{incident_id}")
async def get_incident(
    incident_id: int,
    _role: str = Depends(read_access),
    store: IncidentStore = Depends(get_incident_store),
):
    return ok(await store.get_by_id(incident_id))


@router.post("", status_code=201)
async def create_incident(
    body: CreateIncidentRequest,
    _role: str = Depends(write_access),
    store: IncidentStore = Depends(get_incident_store),
):
    incident = await store.create(
        title=body.title,
        description=body.description,
        source=body.source,
        severity=body.severity,
        assigned_to=body.assigned_to,
    )
    return ok(incident)


@router.patch("/{incident_id}")
async def update_incident(
    incident_id: int,
    body: UpdateIncidentRequest,
    request: Request,
    _role: str = Depends(write_access),
    store: IncidentStore = Depends(get_incident_store),
):
    """Apply only the fields present in the body; null clears assigned_to."""
    incident = await store.update(
        incident_id,
        body.model_dump(exclude_unset=True),
        actor=get_actor(request),
    )
    return ok(incident)


@router.post("/{incident_id}/comments", status_code=201)
async def add_comment(
    incident_id: int,
    body: AddCommentRequest,
    request: Request,
    _role: str = Depends(write_access),
    store: IncidentStore = Depends(get_incident_store),
):
    comment = await store.add_comment(incident_id, body.text, actor=get_actor(request))
    return ok(comment)

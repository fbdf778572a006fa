"""Alert rule configuration routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...auth.roles import ROLE_ADMIN, ROLE_RESPONDER, require_role
from ...dependencies import get_alert_config_store
from ...engine.alert_configs import AlertConfigStore
from ..envelope import ok

router = APIRouter(prefix="/alert-configs", tags=["alerts"])


class CreateAlertConfigRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    severity: Optional[str] = None
    threshold: Optional[int] = None
    window_minutes: Optional[int] = None
    enabled: bool = True


@router.get("")
async def list_alert_configs(
    _role: str = Depends(require_role(ROLE_RESPONDER, ROLE_ADMIN)),
    store: AlertConfigStore = Depends(get_alert_config_store),
):
    return ok({"configs": await store.list_configs()})


@router.post("", status_code=201)
async def create_alert_config(
    body: CreateAlertConfigRequest,
    _role: str = Depends(require_role(ROLE_ADMIN)),
    store: AlertConfigStore = Depends(get_alert_config_store),
):
    config = await store.create(
        name=body.name,
        severity=body.severity,
        threshold=body.threshold,
        window_minutes=body.window_minutes,
        enabled=body.enabled,
    )
    return ok(config)

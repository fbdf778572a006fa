"""Alert rule configuration storage.

Rules are only stored and listed here; nothing evaluates them.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InternalError, ValidationError
from ..models.alert_config import AlertConfig
from ..models.incident import SEVERITIES
from ..utils.clock import Clock, to_iso, utcnow
from ..utils.logging import get_logger

logger = get_logger("engine.alert_configs")


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def alert_config_to_dict(config: AlertConfig) -> dict:
    return {
        "id": config.id,
        "name": config.name,
        "severity": config.severity,
        "threshold": config.threshold,
        "window_minutes": config.window_minutes,
        "enabled": config.enabled,
        "created_at": to_iso(config.created_at),
    }


class AlertConfigStore:
    """Creates and lists alert rule configurations."""

    def __init__(self, db_session_factory, clock: Clock = utcnow):
        self._db_session_factory = db_session_factory
        self._clock = clock

    async def create(
        self,
        name: Optional[str],
        severity: Optional[str],
        threshold: Any,
        window_minutes: Any,
        enabled: bool = True,
    ) -> dict:
        missing = [
            field for field, value in (
                ("name", name), ("severity", severity),
                ("threshold", threshold), ("window_minutes", window_minutes),
            )
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            raise ValidationError(f"{', '.join(missing)} {verb} required")
        if severity not in SEVERITIES:
            raise ValidationError(f"severity must be one of: {', '.join(SEVERITIES)}")
        threshold = _positive_int("threshold", threshold)
        window_minutes = _positive_int("window_minutes", window_minutes)

        try:
            async with self._db_session_factory() as session:
                async with session.begin():
                    config = AlertConfig(
                        name=name.strip(),
                        severity=severity,
                        threshold=threshold,
                        window_minutes=window_minutes,
                        enabled=enabled is not False,
                        created_at=self._clock(),
                    )
                    session.add(config)
                result = alert_config_to_dict(config)
        except SQLAlchemyError as exc:
            logger.error("alert_config_create_failed", name=name, error=str(exc))
            raise InternalError("Failed to create alert config") from exc

        logger.info("alert_config_created", id=result["id"], name=result["name"], severity=severity)
        return result

    async def list_configs(self) -> list[dict]:
        """All alert configs, newest first."""
        try:
            async with self._db_session_factory() as session:
                rows = (await session.execute(
                    select(AlertConfig).order_by(AlertConfig.created_at.desc(), AlertConfig.id.desc())
                )).scalars().all()
        except SQLAlchemyError as exc:
            logger.error("alert_config_list_failed", error=str(exc))
            raise InternalError("Failed to list alert configs") from exc
        return [alert_config_to_dict(c) for c in rows]

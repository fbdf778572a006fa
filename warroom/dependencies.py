"""Service singletons and FastAPI dependency providers."""

from .config import WarRoomConfig, get_config
from .database import get_session_factory
from .engine.alert_configs import AlertConfigStore
from .engine.analytics import AnalyticsEngine
from .engine.broadcast_hub import BroadcastHub
from .engine.incident_store import IncidentStore
from .engine.query_engine import QueryEngine

_config_instance: WarRoomConfig | None = None
_broadcast_hub: BroadcastHub | None = None
_incident_store: IncidentStore | None = None
_query_engine: QueryEngine | None = None
_analytics_engine: AnalyticsEngine | None = None
_alert_config_store: AlertConfigStore | None = None


def get_app_config() -> WarRoomConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


def get_broadcast_hub() -> BroadcastHub:
    global _broadcast_hub
    if _broadcast_hub is None:
        config = get_app_config()
        _broadcast_hub = BroadcastHub(
            max_subscribers=config.ws_max_connections,
            queue_size=config.ws_queue_size,
        )
    return _broadcast_hub


def get_incident_store() -> IncidentStore:
    global _incident_store
    if _incident_store is None:
        factory = get_session_factory(get_app_config())
        _incident_store = IncidentStore(db_session_factory=factory, hub=get_broadcast_hub())
    return _incident_store


def get_query_engine() -> QueryEngine:
    global _query_engine
    if _query_engine is None:
        config = get_app_config()
        _query_engine = QueryEngine(
            db_session_factory=get_session_factory(config),
            default_limit=config.default_page_limit,
            max_limit=config.max_page_limit,
        )
    return _query_engine


def get_analytics_engine() -> AnalyticsEngine:
    global _analytics_engine
    if _analytics_engine is None:
        _analytics_engine = AnalyticsEngine(db_session_factory=get_session_factory(get_app_config()))
    return _analytics_engine


def get_alert_config_store() -> AlertConfigStore:
    global _alert_config_store
    if _alert_config_store is None:
        _alert_config_store = AlertConfigStore(db_session_factory=get_session_factory(get_app_config()))
    return _alert_config_store


def reset_singletons() -> None:
    """Forget every cached service so the next call rebuilds it."""
    global _config_instance, _broadcast_hub, _incident_store
    global _query_engine, _analytics_engine, _alert_config_store
    _config_instance = None
    _broadcast_hub = None
    _incident_store = None
    _query_engine = None
    _analytics_engine = None
    _alert_config_store = None

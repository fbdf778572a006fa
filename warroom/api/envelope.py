"""Success envelope shared by every JSON route."""

from datetime import datetime, timezone
from typing import Any


def ok(data: Any) -> dict:
    return {
        "success": True,
        "data": data,
        "meta": {"timestamp": datetime.now(timezone.utc).isoformat()},
    }

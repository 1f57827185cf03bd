import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _ctx_fields(event: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    e = event or {}
    # API Gateway puts the request id under requestContext; orchestration
    # steps pass a flat dict with the comment id, branch and repo instead
    req_ctx = e.get("requestContext") or {}
    return {
        "request_id": e.get("request_id") or req_ctx.get("requestId") or os.environ.get("AWS_REQUEST_ID"),
        "comment_id": e.get("comment_id"),
        "branch": e.get("branch"),
        "repo": e.get("repo"),
    }


def _enabled(level: str) -> bool:
    threshold = LEVELS.get(os.environ.get("LOG_LEVEL", "INFO").upper(), LEVELS["INFO"])
    return LEVELS.get(level, LEVELS["INFO"]) >= threshold


def log(level: str, message: str, event: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
    """Minimal structured logger printing JSON lines suitable for CloudWatch Logs.

    Usage: log("INFO", "creating branch", ctx, sha=sha)
    """
    level = level.upper()
    if not _enabled(level):
        return
    rec: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "level": level,
        "message": message,
    }
    rec.update({k: v for k, v in _ctx_fields(event).items() if v is not None})
    if fields:
        rec.update(fields)
    try:
        print(json.dumps(rec, separators=(",", ":")))
    except (TypeError, ValueError):
        # Fallback to plain text if serialization fails
        print(f"{rec['ts']} {rec['level']} {rec['message']} {fields}")

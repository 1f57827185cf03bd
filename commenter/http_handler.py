import base64
import json
from commenter._log import log
from commenter.config import Config
from commenter.models import CommentInput
from commenter.publisher import Commenter

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "OPTIONS,POST",
}


def _method(event) -> str:
    # REST API events carry httpMethod, HTTP API / Function URL events nest it
    http = ((event.get("requestContext") or {}).get("http") or {})
    return (event.get("httpMethod") or http.get("method") or "POST").upper()


def _body(event) -> dict:
    raw = event.get("body") or ""
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    return json.loads(raw)


def _redacted(args: CommentInput) -> dict:
    return {"subdir": args.subdir, "name": args.name, "comment": args.comment, "has_email": bool(args.email)}


def handler(event, context):
    """Publish a site comment submitted through API Gateway.

    Input: event.body is JSON {subdir, comment, name, email?}
    Env: see commenter.config.Config
    Output: 200 "OK" with CORS headers, or 500 "Error" on any failure
    """
    event = event or {}
    log("INFO", "comment handler start", event, method=_method(event))
    if _method(event) == "OPTIONS":
        return {"statusCode": 200, "body": "", "headers": dict(CORS_HEADERS)}
    try:
        commenter = Commenter.from_config(Config.from_env())
        args = CommentInput.from_dict(_body(event))
        log("INFO", "comment received", event, comment=_redacted(args))
        comment = commenter.add_comment(args)
    except Exception as e:
        log("ERROR", "comment publish failed", event, error=str(e), error_type=type(e).__name__)
        return {"statusCode": 500, "body": "Error"}
    log("INFO", "comment published", event, comment_id=comment.id)
    return {"statusCode": 200, "body": "OK", "headers": dict(CORS_HEADERS)}

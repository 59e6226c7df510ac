import json
import logging
import os
import random
import time
import uuid
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..utils.responses import err
from .request_id import request_id_ctx, resolve_request_id

# Request fields masked before logging
SECRET_KEYS = {"password", "token", "authorization"}
LOG_SAMPLE_2XX = float(os.getenv("LOG_SAMPLE_2XX", "0.1"))
# Polled endpoints; logged only when they fail
QUIET_PATHS = {"/health", "/metrics"}


logger = logging.getLogger("api")


def _redact(obj):
    if isinstance(obj, dict):
        return {
            k: ("***" if k.lower() in SECRET_KEYS else _redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


def _should_log(path: str, status: int) -> bool:
    if status >= 400:
        return True
    if path in QUIET_PATHS:
        return False
    if 200 <= status < 300:
        return random.random() < LOG_SAMPLE_2XX
    return True


async def _json_body(request: Request):
    """Read the body once and make it replayable for the downstream app."""

    body_bytes = await request.body()

    async def receive() -> dict:
        return {"type": "http.request", "body": body_bytes, "more_body": False}

    request._receive = receive
    if not body_bytes:
        return None
    try:
        return json.loads(body_bytes)
    except ValueError:
        return None


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit structured inbound/outbound request logs with a request ID."""

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None)
        token = None
        if not req_id:
            req_id = resolve_request_id(request.headers.get("X-Request-ID"))
            request.state.request_id = req_id
            token = request_id_ctx.set(req_id)

        body = await _json_body(request)
        inbound = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": "INFO",
            "req_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "ip": request.client.host if request.client else None,
            "ua": request.headers.get("user-agent"),
        }
        if request.query_params:
            inbound["query"] = _redact(dict(request.query_params))
        if body is not None:
            inbound["body"] = _redact(body)

        start = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception:
            error_id = str(uuid.uuid4())
            logger.exception(json.dumps({"req_id": req_id, "error_id": error_id}))
            payload = err(500, "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)
        status = response.status_code
        level = "ERROR" if status >= 500 else "INFO"
        outbound = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "req_id": req_id,
            "route": request.url.path,
            "status": status,
            "latency_ms": int((time.perf_counter() - start) * 1000),
        }
        if error_id:
            outbound["error_id"] = error_id

        if _should_log(request.url.path, status):
            logger.info(json.dumps(inbound))
            log_fn = logger.error if level == "ERROR" else logger.info
            log_fn(json.dumps(outbound))

        response.headers["X-Request-ID"] = req_id

        if token is not None:
            request_id_ctx.reset(token)
        return response

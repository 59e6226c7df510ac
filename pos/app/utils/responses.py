from typing import Any, Dict, Mapping, Optional

from fastapi.responses import JSONResponse


def ok(data: Any) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Any = None,
) -> Dict[str, Any]:
    """Return an error envelope carrying the current request id."""
    from ..middlewares.request_id import request_id_ctx

    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details

    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def err_response(
    status_code: int,
    message: str,
    details: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Return a :class:`JSONResponse` wrapping :func:`err`."""
    return JSONResponse(
        err(status_code, message, details),
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )

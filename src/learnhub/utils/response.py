from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(
    data: Any, message: str = "Success", status_code: int = 200
) -> JSONResponse:
    """Wrap a payload in the platform's success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "data": jsonable_encoder(data),
            "message": message,
            "success": True,
            "timestamp": _timestamp(),
        },
    )


def error_response(
    message: str, status_code: int = 500, error: str = "Internal Server Error"
) -> JSONResponse:
    """Render the failure envelope used by every exception handler."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "statusCode": status_code,
            "timestamp": _timestamp(),
        },
    )

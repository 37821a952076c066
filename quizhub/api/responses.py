"""The JSON envelope every endpoint answers with."""

from typing import Any, List, Optional

from fastapi.responses import JSONResponse

from .serializers import to_camel


def envelope(
    success: bool,
    message: Optional[str] = None,
    data: Any = None,
    errors: Optional[List[Any]] = None,
    status_code: int = 200,
) -> JSONResponse:
    """Build ``{success, message?, data?, errors?}``, leaving out empty parts."""
    body = {"success": success}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = to_camel(data)
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def ok(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    return envelope(True, message=message, data=data, status_code=status_code)


def created(data: Any = None, message: Optional[str] = None) -> JSONResponse:
    return ok(data, message, status_code=201)

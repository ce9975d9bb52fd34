from typing import Any
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(**data: Any) -> dict:
    return {"success": True, **data}


def err(message: str, http_status: int = 400, **extra: Any) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder({"success": False, "message": message, **extra}),
        status_code=http_status,
    )

from fastapi import APIRouter, Body, Depends, status
from typing import Any
import logging
import traceback

from cashcraft.core.errors import AppError, RequestValidationFailed, ServerError
from cashcraft.core.responses import ok
from cashcraft.core.validation import validate
from cashcraft.services.accounts import AccountService
from cashcraft.utils.auth import get_account_service, get_current_identity

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Auth"])


def _validated(schema_name: str, payload: Any):
    result = validate(schema_name, payload)
    if not result.ok:
        raise RequestValidationFailed(result.errors)
    return result.value


def _server_error(message: str, exc: Exception) -> ServerError:
    logger.exception(f"{message}: {exc}")
    return ServerError(message, stack=traceback.format_exc())


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_account_service),
):
    data = _validated("registration", payload)
    try:
        result = await service.register(data)
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Server error during registration", e)

    return ok(
        message="User registered successfully",
        token=result.token,
        user=result.user.model_dump(mode="json", by_alias=True),
    )


@router.post("/login")
async def login(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_account_service),
):
    data = _validated("login", payload)
    try:
        result = await service.login(data)
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Server error during login", e)

    return ok(
        message="Login successful",
        token=result.token,
        user=result.user.model_dump(mode="json", by_alias=True),
    )


@router.get("/me")
async def get_me(
    account_id: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    try:
        user = await service.get_current_account(account_id)
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Server error", e)

    return ok(user=user.model_dump(mode="json", by_alias=True))


@router.post("/refresh-token")
async def refresh_token(
    account_id: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    try:
        token = service.refresh_token(account_id)
    except Exception as e:
        raise _server_error("Server error", e)

    return ok(token=token)

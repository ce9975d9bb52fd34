from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cashcraft.core.errors import InvalidTokenError, NoTokenError
from cashcraft.database import get_db
from cashcraft.services.accounts import AccountService
from cashcraft.services.store import CredentialStore
from cashcraft.utils.tokens import SessionIssuer, TokenError


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_account_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> AccountService:
    return AccountService(CredentialStore(db), issuer, request.app.state.password_hasher)


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    token = authorization
    if token.startswith("Bearer "):
        token = token[len("Bearer "):]
    return token.strip() or None


async def get_current_identity(
    request: Request,
    authorization: str | None = Header(default=None),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> str:
    """Guard for protected routes.

    Reads ``Authorization: Bearer <token>``, verifies it and stores the
    account id on ``request.state.account_id``. Every verification failure
    (malformed, bad signature, expired) is reported as the same
    ``InvalidTokenError``.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise NoTokenError()
    try:
        account_id = issuer.verify(token)
    except TokenError:
        raise InvalidTokenError()
    request.state.account_id = account_id
    return account_id

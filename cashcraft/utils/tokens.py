from datetime import datetime, timedelta
from jose import jwt, JWTError, ExpiredSignatureError
import logging

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when a session token cannot be accepted."""


class MalformedTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class TokenExpiredError(TokenError):
    pass


class SessionIssuer:
    """Issues and verifies stateless signed session tokens.

    A token carries the account id as its ``sub`` claim together with
    ``iat`` and ``exp``. Nothing is stored server side; a token is valid
    while its signature checks out and ``exp`` lies in the future.
    """

    def __init__(self, secret_key: str | None, algorithm: str = "HS256", expires_delta: timedelta = timedelta(days=7)):
        if not secret_key:
            raise ValueError("A token signing secret is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, account_id, expires_delta: timedelta | None = None) -> str:
        now = datetime.utcnow()
        claims = {
            "sub": str(account_id),
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_delta),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str | None) -> str:
        if not token:
            raise MalformedTokenError("Token is missing")
        try:
            jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedTokenError(str(e)) from e
        if not unverified.get("sub"):
            raise MalformedTokenError("Token has no subject")

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise InvalidSignatureError(str(e)) from e
        return claims["sub"]

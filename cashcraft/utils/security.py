import asyncio

from passlib.context import CryptContext


class PasswordHasher:
    """bcrypt hashing through passlib, run off the event loop."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )
        # verified against when no account matches the login email
        self.dummy_hash = self._context.hash("cashcraft-no-such-account")

    def hash_password(self, password: str) -> str:
        return self._context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self.hash_password, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify_password, password, password_hash)

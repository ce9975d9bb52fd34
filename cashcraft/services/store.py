from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID
import logging

from cashcraft.core.errors import DuplicateAccountError
from cashcraft.models.user import User

logger = logging.getLogger(__name__)


UNIQUE_VIOLATION_MARKERS = ("duplicate key value violates unique constraint", "unique constraint failed")
ACCOUNT_UNIQUE_COLUMNS = ("email", "phone")


def is_duplicate_account(exc: IntegrityError) -> bool:
    """True when *exc* is a unique violation on the email or phone index."""
    message = str(exc.orig).lower()
    if not any(marker in message for marker in UNIQUE_VIOLATION_MARKERS):
        return False
    return any(column in message for column in ACCOUNT_UNIQUE_COLUMNS)


def _as_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class CredentialStore:
    """Account persistence on top of an ``AsyncSession``.

    Writes are staged on the session and only become durable on
    :meth:`commit`, so several mutations can be committed together.
    Uniqueness of email, phone and referral code is enforced by the
    database indexes, not by the lookups here.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, account_id) -> User | None:
        account_id = _as_uuid(account_id)
        if account_id is None:
            return None
        result = await self.db.execute(select(User).where(User.id == account_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_email_or_phone(self, email: str, phone: str) -> User | None:
        result = await self.db.execute(
            select(User).where(or_(User.email == email, User.phone == phone)).limit(1)
        )
        return result.scalars().first()

    async def find_by_referral_code(self, referral_code: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.referral_code == referral_code)
        )
        return result.scalar_one_or_none()

    async def referral_code_exists(self, referral_code: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.referral_code == referral_code)
        )
        return result.first() is not None

    def add(self, user: User) -> None:
        self.db.add(user)

    async def credit_referrer(self, referrer_id, bonus: int) -> None:
        # single UPDATE so concurrent referrals cannot lose an increment
        await self.db.execute(
            update(User)
            .where(User.id == referrer_id)
            .values(
                referral_count=User.referral_count + 1,
                credit_score=User.credit_score + bonus,
            )
        )

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if is_duplicate_account(e):
                logger.info("Account insert hit a unique email/phone index")
                raise DuplicateAccountError() from e
            logger.error(f"Integrity error: {e.orig}")
            raise
        except Exception:
            await self.db.rollback()
            raise

    async def refresh(self, user: User) -> None:
        await self.db.refresh(user)

    async def rollback(self) -> None:
        await self.db.rollback()

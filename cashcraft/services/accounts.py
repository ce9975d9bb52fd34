from dataclasses import dataclass
from datetime import datetime
import logging

from cashcraft.core.errors import (
    AccountInactiveError,
    DuplicateAccountError,
    InvalidCredentialsError,
    NotFoundError,
)
from cashcraft.models.user import BASELINE_CREDIT_SCORE, KycStatus, User
from cashcraft.schemas.user import (
    CurrentUserOut,
    LoginRequest,
    LoginUserOut,
    ReferrerOut,
    RegistrationRequest,
    UserOut,
)
from cashcraft.services.store import CredentialStore
from cashcraft.utils.identifiers import generate_unique_referral_code
from cashcraft.utils.security import PasswordHasher
from cashcraft.utils.tokens import SessionIssuer

logger = logging.getLogger(__name__)

REFERRAL_BONUS = 10


@dataclass
class AuthResult:
    token: str
    user: UserOut


class AccountService:
    """Registration, login and session operations for accounts."""

    def __init__(self, store: CredentialStore, issuer: SessionIssuer, hasher: PasswordHasher):
        self.store = store
        self.issuer = issuer
        self.hasher = hasher

    async def register(self, payload: RegistrationRequest) -> AuthResult:
        """Create an account and sign the new user in.

        Fails with ``DuplicateAccountError`` when the email or the phone is
        already taken. A referral code that matches an account credits that
        account (one more referral, ``REFERRAL_BONUS`` credit score) in the
        same transaction that inserts the new account; a code matching no
        account is ignored.
        """
        email = payload.email.lower()

        if await self.store.find_by_email_or_phone(email, payload.phone):
            raise DuplicateAccountError()

        referrer = None
        if payload.referral_code:
            referrer = await self.store.find_by_referral_code(payload.referral_code)
            if referrer is None:
                logger.info("Referral code did not match any account, ignoring it")

        password_hash = await self.hasher.hash(payload.password)
        referral_code = await generate_unique_referral_code(self.store)

        user = User(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            phone=payload.phone,
            password_hash=password_hash,
            credit_score=BASELINE_CREDIT_SCORE,
            kyc_status=KycStatus.unverified.value,
            referral_code=referral_code,
            referred_by=referrer.id if referrer else None,
        )

        try:
            if referrer is not None:
                await self.store.credit_referrer(referrer.id, REFERRAL_BONUS)
            self.store.add(user)
            await self.store.commit()
        except DuplicateAccountError:
            raise
        except Exception:
            await self.store.rollback()
            raise
        await self.store.refresh(user)

        logger.info(f"Registered account {user.id}")
        token = self.issuer.issue(user.id)
        return AuthResult(token=token, user=UserOut.model_validate(user))

    async def login(self, payload: LoginRequest) -> AuthResult:
        email = payload.email.lower()
        user = await self.store.find_by_email(email)

        password_hash = user.password_hash if user is not None else self.hasher.dummy_hash
        password_ok = await self.hasher.verify(payload.password, password_hash)
        if user is None or not password_ok:
            logger.info("Rejected login attempt")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountInactiveError()

        user.last_login = datetime.utcnow()
        await self.store.commit()

        logger.info(f"Account {user.id} logged in")
        token = self.issuer.issue(user.id)
        return AuthResult(token=token, user=LoginUserOut.model_validate(user))

    async def get_current_account(self, account_id) -> CurrentUserOut:
        user = await self.store.get(account_id)
        if user is None:
            raise NotFoundError("User not found")

        view = CurrentUserOut.model_validate(user)
        if user.referred_by is not None:
            referrer = await self.store.get(user.referred_by)
            if referrer is not None:
                view = view.model_copy(update={"referrer": ReferrerOut.model_validate(referrer)})
        return view

    def refresh_token(self, account_id) -> str:
        return self.issuer.issue(account_id)

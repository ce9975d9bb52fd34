import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine

from cashcraft.core.errors import (
    AccountInactiveError,
    DuplicateAccountError,
    InvalidCredentialsError,
    NotFoundError,
)
from cashcraft.database import create_sessionmaker, create_tables
from cashcraft.models.user import BASELINE_CREDIT_SCORE, User
from cashcraft.schemas.user import LoginRequest, RegistrationRequest
from cashcraft.services.accounts import REFERRAL_BONUS, AccountService
from cashcraft.services.store import CredentialStore
from cashcraft.utils.security import PasswordHasher
from cashcraft.utils.tokens import SessionIssuer

ISSUER = SessionIssuer("test-secret")
HASHER = PasswordHasher(rounds=4)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}"


def run(db_url, scenario):
    """Run *scenario(SessionLocal)* against a fresh database."""

    async def main():
        engine = create_async_engine(db_url)
        await create_tables(engine)
        SessionLocal = create_sessionmaker(engine)
        try:
            return await scenario(SessionLocal)
        finally:
            await engine.dispose()

    return asyncio.run(main())


def registration(**overrides):
    data = {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@x.com",
        "phone": "0712345678",
        "password": "secret1",
    }
    data.update(overrides)
    return RegistrationRequest.model_validate(data)


async def register(SessionLocal, **overrides):
    async with SessionLocal() as session:
        service = AccountService(CredentialStore(session), ISSUER, HASHER)
        return await service.register(registration(**overrides))


async def fetch(SessionLocal, email):
    async with SessionLocal() as session:
        return await CredentialStore(session).find_by_email(email)


def test_register_creates_account_and_token(db_url):
    async def scenario(SessionLocal):
        result = await register(SessionLocal, email="Jane@X.com")
        stored = await fetch(SessionLocal, "jane@x.com")
        return result, stored

    result, stored = run(db_url, scenario)
    assert ISSUER.verify(result.token) == str(stored.id)
    assert result.user.email == "jane@x.com"
    assert result.user.credit_score == BASELINE_CREDIT_SCORE
    assert result.user.kyc_status == "unverified"
    assert stored.password_hash != "secret1"
    assert HASHER.verify_password("secret1", stored.password_hash)
    assert stored.referred_by is None
    assert stored.referral_count == 0
    assert stored.account_status == "active"
    assert stored.role == "user"
    assert len(stored.referral_code) == 8 and stored.referral_code.isalnum()


@pytest.mark.parametrize(
    "second",
    [
        {"phone": "0799999999"},
        {"email": "other@x.com"},
    ],
)
def test_duplicate_email_or_phone_is_rejected(db_url, second):
    async def scenario(SessionLocal):
        await register(SessionLocal)
        with pytest.raises(DuplicateAccountError):
            await register(SessionLocal, **second)
        async with SessionLocal() as session:
            return (await session.execute(select(func.count(User.id)))).scalar_one()

    assert run(db_url, scenario) == 1


def test_referral_credits_referrer(db_url):
    async def scenario(SessionLocal):
        referrer = await register(SessionLocal)
        code = referrer.user.referral_code
        await register(SessionLocal, email="tom@x.com", phone="0722222222", referralCode=code)
        return await fetch(SessionLocal, "jane@x.com"), await fetch(SessionLocal, "tom@x.com")

    referrer, referred = run(db_url, scenario)
    assert referrer.referral_count == 1
    assert referrer.credit_score == BASELINE_CREDIT_SCORE + REFERRAL_BONUS
    assert referred.referred_by == referrer.id
    assert referred.credit_score == BASELINE_CREDIT_SCORE


def test_unknown_referral_code_is_ignored(db_url):
    async def scenario(SessionLocal):
        await register(SessionLocal, referralCode="NOPE123")
        return await fetch(SessionLocal, "jane@x.com")

    stored = run(db_url, scenario)
    assert stored is not None
    assert stored.referred_by is None


def test_failed_insert_leaves_no_referral_bonus(db_url):
    async def scenario(SessionLocal):
        referrer = await register(SessionLocal)
        await register(SessionLocal, email="tom@x.com", phone="0722222222")

        # a concurrent registration slipped past the existence check
        async with SessionLocal() as session:
            store = CredentialStore(session)
            store.find_by_email_or_phone = AsyncMock(return_value=None)
            service = AccountService(store, ISSUER, HASHER)
            with pytest.raises(DuplicateAccountError):
                await service.register(
                    registration(
                        email="tom@x.com",
                        phone="0733333333",
                        referralCode=referrer.user.referral_code,
                    )
                )
        return await fetch(SessionLocal, "jane@x.com")

    referrer = run(db_url, scenario)
    assert referrer.referral_count == 0
    assert referrer.credit_score == BASELINE_CREDIT_SCORE


def test_login_success_updates_last_login(db_url):
    async def scenario(SessionLocal):
        await register(SessionLocal)
        async with SessionLocal() as session:
            service = AccountService(CredentialStore(session), ISSUER, HASHER)
            result = await service.login(
                LoginRequest(email="JANE@x.com", password="secret1")
            )
        return result, await fetch(SessionLocal, "jane@x.com")

    result, stored = run(db_url, scenario)
    assert ISSUER.verify(result.token) == str(stored.id)
    assert result.user.role == "user"
    assert stored.last_login is not None


@pytest.mark.parametrize(
    "email,password",
    [("jane@x.com", "wrong-password"), ("nobody@x.com", "secret1")],
)
def test_login_rejects_bad_credentials(db_url, email, password):
    async def scenario(SessionLocal):
        await register(SessionLocal)
        async with SessionLocal() as session:
            service = AccountService(CredentialStore(session), ISSUER, HASHER)
            with pytest.raises(InvalidCredentialsError) as exc_info:
                await service.login(LoginRequest(email=email, password=password))
        return exc_info.value

    error = run(db_url, scenario)
    assert error.message == "Invalid credentials"


def test_login_rejects_suspended_account(db_url):
    async def scenario(SessionLocal):
        await register(SessionLocal)
        async with SessionLocal() as session:
            store = CredentialStore(session)
            user = await store.find_by_email("jane@x.com")
            user.account_status = "suspended"
            await store.commit()

            service = AccountService(store, ISSUER, HASHER)
            with pytest.raises(AccountInactiveError):
                await service.login(LoginRequest(email="jane@x.com", password="secret1"))
        return await fetch(SessionLocal, "jane@x.com")

    assert run(db_url, scenario).last_login is None


def test_current_account_resolves_referrer(db_url):
    async def scenario(SessionLocal):
        referrer = await register(SessionLocal)
        referred = await register(
            SessionLocal,
            firstName="Tom",
            email="tom@x.com",
            phone="0722222222",
            referralCode=referrer.user.referral_code,
        )
        async with SessionLocal() as session:
            service = AccountService(CredentialStore(session), ISSUER, HASHER)
            return referrer, await service.get_current_account(str(referred.user.id))

    referrer, view = run(db_url, scenario)
    assert view.first_name == "Tom"
    assert view.referrer.id == referrer.user.id
    dumped = view.model_dump(mode="json", by_alias=True)
    assert dumped["referredBy"] == {
        "id": str(referrer.user.id),
        "firstName": "Jane",
        "lastName": "Doe",
    }
    assert "password_hash" not in dumped and "passwordHash" not in dumped


def test_current_account_unknown_id(db_url):
    async def scenario(SessionLocal):
        async with SessionLocal() as session:
            service = AccountService(CredentialStore(session), ISSUER, HASHER)
            with pytest.raises(NotFoundError):
                await service.get_current_account("not-a-uuid")

    run(db_url, scenario)


def test_referred_by_cannot_be_reassigned():
    user = User(referred_by=uuid.uuid4())
    with pytest.raises(ValueError):
        user.referred_by = uuid.uuid4()


def make_user(**overrides):
    data = dict(
        first_name="Jane",
        last_name="Doe",
        email="jane@x.com",
        phone="0712345678",
        password_hash="hash",
        referral_code="JANE0001",
    )
    data.update(overrides)
    return User(**data)


def test_store_reports_duplicate_phone_as_duplicate_account(db_url):
    async def scenario(SessionLocal):
        async with SessionLocal() as session:
            store = CredentialStore(session)
            store.add(make_user())
            await store.commit()
            store.add(make_user(email="tom@x.com", referral_code="TOM00001"))
            with pytest.raises(DuplicateAccountError):
                await store.commit()

    run(db_url, scenario)


@pytest.mark.parametrize(
    "second",
    [
        # referral code collision is not a duplicate account
        {"email": "tom@x.com", "phone": "0722222222"},
        # CHECK constraint
        {"email": "tom@x.com", "phone": "0722222222", "referral_code": "TOM00001", "credit_score": -1},
    ],
)
def test_store_reraises_other_integrity_errors(db_url, second):
    async def scenario(SessionLocal):
        async with SessionLocal() as session:
            store = CredentialStore(session)
            store.add(make_user())
            await store.commit()
            store.add(make_user(**second))
            with pytest.raises(IntegrityError):
                await store.commit()

    run(db_url, scenario)


def test_unknown_email_still_checks_a_password_hash(db_url):
    async def scenario(SessionLocal):
        async with SessionLocal() as session:
            hasher = PasswordHasher(rounds=4)
            hasher.verify = AsyncMock(return_value=False)
            service = AccountService(CredentialStore(session), ISSUER, hasher)
            with pytest.raises(InvalidCredentialsError):
                await service.login(LoginRequest(email="ghost@x.com", password="secret1"))
            hasher.verify.assert_awaited_once_with("secret1", hasher.dummy_hash)

    run(db_url, scenario)

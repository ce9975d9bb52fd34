from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import validates
from enum import Enum as PyEnum
import uuid
from datetime import datetime

from cashcraft.database import Base

BASELINE_CREDIT_SCORE = 500


class KycStatus(str, PyEnum):
    """Know-your-customer state. Only the initial value is set here."""

    unverified = "unverified"
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


class AccountStatus(str, PyEnum):
    active = "active"
    suspended = "suspended"
    closed = "closed"


class Role(str, PyEnum):
    user = "user"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String(15), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    credit_score = Column(Integer, default=BASELINE_CREDIT_SCORE, nullable=False)
    kyc_status = Column(String, default=KycStatus.unverified.value, nullable=False)
    account_status = Column(String, default=AccountStatus.active.value, nullable=False)
    role = Column(String, default=Role.user.value, nullable=False)

    referral_code = Column(String(10), unique=True, index=True, nullable=False)
    referred_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    referral_count = Column(Integer, default=0, nullable=False)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("credit_score >= 0", name="ck_users_credit_score_non_negative"),
        CheckConstraint(
            "referred_by IS NULL OR referred_by <> id",
            name="ck_users_no_self_referral",
        ),
    )

    @validates("referred_by")
    def _referred_by_is_immutable(self, key, value):
        current = self.__dict__.get("referred_by")
        if current is not None and value != current:
            raise ValueError("referred_by cannot be changed once set")
        return value

    @property
    def is_active(self) -> bool:
        return self.account_status == AccountStatus.active.value

    def __repr__(self):
        return f"<User id={self.id} email={self.email} status={self.account_status} kyc={self.kyc_status}>"

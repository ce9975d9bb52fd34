from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Optional
from uuid import UUID
from datetime import datetime
import re

PHONE_PATTERN = re.compile(r"[0-9]{10,15}")
REFERRAL_CODE_PATTERN = re.compile(r"[A-Za-z0-9]{3,10}")


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RegistrationRequest(_Payload):
    first_name: str = Field(alias="firstName", min_length=2, max_length=50)
    last_name: str = Field(alias="lastName", min_length=2, max_length=50)
    email: EmailStr
    phone: str
    password: str = Field(min_length=6)
    referral_code: Optional[str] = Field(default=None, alias="referralCode")

    @field_validator("phone")
    @classmethod
    def phone_digits(cls, value: str) -> str:
        if not PHONE_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "phone_format", "Phone number must be between 10 and 15 digits."
            )
        return value

    @field_validator("referral_code")
    @classmethod
    def referral_code_format(cls, value: Optional[str]) -> Optional[str]:
        # empty string is accepted and means "no referral"
        if not value:
            return None
        if not REFERRAL_CODE_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "referral_code_format",
                "Referral code must be 3 to 10 letters or digits.",
            )
        return value


class LoginRequest(_Payload):
    email: EmailStr
    password: str = Field(min_length=1)


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(_Out):
    """Public projection returned after registration."""

    id: UUID
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    email: EmailStr
    phone: str
    credit_score: int = Field(serialization_alias="creditScore")
    kyc_status: str = Field(serialization_alias="kycStatus")
    referral_code: str = Field(serialization_alias="referralCode")


class LoginUserOut(UserOut):
    role: str


class ReferrerOut(_Out):
    id: UUID
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")


class CurrentUserOut(LoginUserOut):
    """Full account view for the authenticated caller, password excluded."""

    account_status: str = Field(serialization_alias="accountStatus")
    referrer: Optional[ReferrerOut] = Field(default=None, serialization_alias="referredBy")
    referral_count: int = Field(serialization_alias="referralCount")
    last_login: Optional[datetime] = Field(default=None, serialization_alias="lastLogin")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

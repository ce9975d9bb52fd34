from . import user
from .user import User, AccountStatus, KycStatus, Role, BASELINE_CREDIT_SCORE

__all__ = [
    "user",
    "User",
    "AccountStatus",
    "KycStatus",
    "Role",
    "BASELINE_CREDIT_SCORE",
]

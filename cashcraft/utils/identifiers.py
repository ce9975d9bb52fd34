import secrets
import string

REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


def new_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


async def generate_unique_referral_code(store, length: int = REFERRAL_CODE_LENGTH) -> str:
    """Generate a referral code no existing account owns.

    The code is composed of uppercase letters and digits, so it also
    satisfies the alphanumeric rule applied to codes supplied at
    registration. The unique index on ``users.referral_code`` still guards
    against two concurrent registrations drawing the same code.
    """
    while True:
        candidate = new_referral_code(length)
        if not await store.referral_code_exists(candidate):
            return candidate

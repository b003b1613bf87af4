import re
import secrets
import string

OTP_ALPHABET = string.ascii_uppercase + string.digits

_CODE_RE = re.compile(r"^[A-Z0-9]+$")


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice(OTP_ALPHABET) for _ in range(length))


def normalize_code(raw) -> str:
    return (raw or "").strip().upper()


def is_well_formed(code: str, length: int = 6) -> bool:
    return len(code) == length and bool(_CODE_RE.match(code))

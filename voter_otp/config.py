import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")

DEFAULT_ALLOWED_VOTER_STATES = ("active", "in-training", "suspended", "pending", "conditional")

LOOKUP_GLOBAL = "global"
LOOKUP_SCOPED = "scoped"
LOOKUP_SCOPES = (LOOKUP_GLOBAL, LOOKUP_SCOPED)

PRODUCTION = "production"


def _csv(value: str):
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///voter_otp.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "production" withholds the raw code from the issuance response
    APP_ENV = os.getenv("APP_ENV", "development").strip().lower()

    # OTP
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "5"))
    OTP_ALLOWED_VOTER_STATES = _csv(
        os.getenv("OTP_ALLOWED_VOTER_STATES", ",".join(DEFAULT_ALLOWED_VOTER_STATES))
    )
    OTP_LOOKUP_SCOPE = os.getenv("OTP_LOOKUP_SCOPE", LOOKUP_GLOBAL).strip().lower()

    # Election schedule check (off unless explicitly enabled)
    OTP_ENFORCE_ELECTION_WINDOW = os.getenv("OTP_ENFORCE_ELECTION_WINDOW", "false").lower() == "true"
    ELECTION_TIMEZONE = os.getenv("ELECTION_TIMEZONE", "America/Bogota")

    # Mail (SMTP)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() == "true"
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() == "true"
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)
    OTP_MAIL_SUBJECT = os.getenv("OTP_MAIL_SUBJECT", "Your voting OTP code")
    SWAGGER = {"title": "Voter OTP API", "uiversion": 3}


class TestingConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "noreply@example.com"
    OTP_EXPIRY_MINUTES = 5
    OTP_ALLOWED_VOTER_STATES = DEFAULT_ALLOWED_VOTER_STATES
    OTP_LOOKUP_SCOPE = LOOKUP_GLOBAL
    OTP_ENFORCE_ELECTION_WINDOW = False


class OtpSettings:
    """
    Explicit OTP policy handed to the issuer and verifier.
    Built once from the Flask config; invalid values fail at startup.
    """

    def __init__(
        self,
        expiry_minutes: int = 5,
        environment_mode: str = "development",
        allowed_voter_states=DEFAULT_ALLOWED_VOTER_STATES,
        lookup_scope: str = LOOKUP_GLOBAL,
        code_length: int = 6,
    ):
        if int(expiry_minutes) <= 0:
            raise ValueError("OTP expiry minutes must be greater than zero")
        if int(code_length) <= 0:
            raise ValueError("OTP length must be greater than zero")
        if lookup_scope not in LOOKUP_SCOPES:
            raise ValueError(f"OTP lookup scope must be one of {', '.join(LOOKUP_SCOPES)}")

        states = tuple(s.strip().lower() for s in allowed_voter_states if s and s.strip())
        if not states:
            raise ValueError("At least one allowed voter state is required")

        self.expiry_minutes = int(expiry_minutes)
        self.environment_mode = (environment_mode or "").strip().lower()
        self.allowed_voter_states = frozenset(states)
        self.lookup_scope = lookup_scope
        self.code_length = int(code_length)

    @property
    def expiry_window(self) -> timedelta:
        return timedelta(minutes=self.expiry_minutes)

    @property
    def is_production(self) -> bool:
        return self.environment_mode == PRODUCTION

    @property
    def scoped_lookup(self) -> bool:
        return self.lookup_scope == LOOKUP_SCOPED

    @classmethod
    def from_config(cls, config) -> "OtpSettings":
        return cls(
            expiry_minutes=config.get("OTP_EXPIRY_MINUTES", 5),
            environment_mode=config.get("APP_ENV", "development"),
            allowed_voter_states=config.get("OTP_ALLOWED_VOTER_STATES", DEFAULT_ALLOWED_VOTER_STATES),
            lookup_scope=config.get("OTP_LOOKUP_SCOPE", LOOKUP_GLOBAL),
            code_length=config.get("OTP_LENGTH", 6),
        )

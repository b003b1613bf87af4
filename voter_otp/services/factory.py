"""Per-request construction of the OTP services from the Flask app."""

from flask import current_app

from ..config import OtpSettings
from ..extensions import db
from ..utils.clock import utcnow
from ..utils.otp import generate_otp
from .eligibility import EligibilityChecker
from .issuer import OtpIssuer
from .notifier import MailNotifier
from .otp_store import OtpStore
from .repositories import ElectionRepository, VoterRepository
from .schedule import always_open, voting_window
from .verifier import OtpVerifier

NOTIFIER_KEY = "otp_notifier"
SETTINGS_KEY = "otp_settings"
CLOCK_KEY = "otp_clock"
CODE_SOURCE_KEY = "otp_code_source"


def init_otp_services(app) -> None:
    """Validate OTP settings at startup and register default collaborators."""
    app.extensions[SETTINGS_KEY] = OtpSettings.from_config(app.config)
    app.extensions.setdefault(NOTIFIER_KEY, MailNotifier())
    app.extensions.setdefault(CLOCK_KEY, utcnow)
    app.extensions.setdefault(CODE_SOURCE_KEY, generate_otp)


def _election_predicate(config):
    if config.get("OTP_ENFORCE_ELECTION_WINDOW"):
        return voting_window(config.get("ELECTION_TIMEZONE"))
    return always_open


def build_issuer() -> OtpIssuer:
    ext = current_app.extensions
    session = db.session
    store = OtpStore(session)
    elections = ElectionRepository(session)
    settings = ext[SETTINGS_KEY]

    checker = EligibilityChecker(
        voters=VoterRepository(session),
        elections=elections,
        store=store,
        allowed_states=settings.allowed_voter_states,
        is_election_open=_election_predicate(current_app.config),
    )
    return OtpIssuer(
        session=session,
        store=store,
        checker=checker,
        elections=elections,
        notifier=ext[NOTIFIER_KEY],
        settings=settings,
        clock=ext[CLOCK_KEY],
        code_source=ext[CODE_SOURCE_KEY],
        subject=current_app.config.get("OTP_MAIL_SUBJECT", "Your voting OTP code"),
    )


def build_verifier() -> OtpVerifier:
    ext = current_app.extensions
    return OtpVerifier(
        session=db.session,
        store=OtpStore(db.session),
        settings=ext[SETTINGS_KEY],
        clock=ext[CLOCK_KEY],
    )

"""Shared fixtures: an app on in-memory SQLite, a frozen clock and stub notifiers."""

from datetime import date, datetime, time, timedelta

import pytest

from voter_otp import create_app
from voter_otp.config import TestingConfig
from voter_otp.extensions import db
from voter_otp.models import Candidate, Election, OrganizationalUnit, OtpRecord, OtpStatus, Voter
from voter_otp.services.factory import CLOCK_KEY, NOTIFIER_KEY
from voter_otp.services.outcomes import NotifyResult

T0 = datetime(2026, 3, 10, 14, 0, 0)


class FrozenClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class RecordingNotifier:
    """Accepts every message and remembers it."""

    def __init__(self):
        self.sent = []

    def send(self, contact_address, subject, body):
        self.sent.append({"to": contact_address, "subject": subject, "body": body})
        return NotifyResult.success(recipient=contact_address)


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    def send(self, contact_address, subject, body):
        self.calls += 1
        return NotifyResult.failure("SMTP connection refused")


class RaisingNotifier:
    def send(self, contact_address, subject, body):
        raise ConnectionError("mail relay unreachable")


def pending_count(voter_id, election_id):
    return (
        db.session.query(OtpRecord)
        .filter_by(voter_id=voter_id, election_id=election_id, status=OtpStatus.PENDING)
        .count()
    )


def seed():
    center = OrganizationalUnit(id=10, name="North Training Center")
    other = OrganizationalUnit(id=20, name="South Training Center")
    db.session.add_all([center, other])

    db.session.add_all(
        [
            Voter(id=1, first_name="Ana", last_name="Gomez", email=" ana@example.com ", state="pending", unit_id=10),
            Voter(id=2, first_name="Bruno", last_name="Diaz", email="bruno@example.com", state="graduated", unit_id=10),
            Voter(id=3, first_name="Carla", last_name="Ruiz", email="carla@example.com", state="active", unit_id=20),
            Voter(id=4, first_name="Dario", last_name="Lopez", email=None, state="  Active ", unit_id=10),
            Voter(id=7, first_name="Eva", last_name="Mora", email="eva@example.com", state="active", unit_id=10),
        ]
    )
    db.session.add_all(
        [
            Election(
                id=5,
                name="Student Council 2026",
                unit_id=10,
                start_date=date(2026, 3, 10),
                end_date=date(2026, 3, 12),
                start_time=time(8, 0),
                end_time=time(17, 0),
            ),
            Election(id=6, name="South Delegates", unit_id=20),
        ]
    )
    db.session.add_all(
        [
            Candidate(election_id=5, name="Option A"),
            Candidate(election_id=5, name="Option B"),
        ]
    )
    db.session.commit()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(clock, notifier):
    app = create_app(TestingConfig)
    app.extensions[CLOCK_KEY] = clock
    app.extensions[NOTIFIER_KEY] = notifier

    with app.app_context():
        db.create_all()
        seed()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()

"""Tests for OtpIssuer: eligibility gate, single pending record, notification."""

import re
import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from voter_otp.config import OtpSettings
from voter_otp.extensions import db
from voter_otp.models import AuditLog, OtpRecord, OtpStatus
from voter_otp.services.factory import CODE_SOURCE_KEY, NOTIFIER_KEY, SETTINGS_KEY, build_issuer, build_verifier
from voter_otp.services.otp_store import OtpStore
from voter_otp.services.outcomes import IssueResult, OtpError, OtpErrorKind

from .conftest import T0, FailingNotifier, RaisingNotifier, pending_count


def test_issue_creates_pending_record_and_returns_code(app, notifier):
    result = build_issuer().issue(1, 5)

    assert isinstance(result, IssueResult)
    assert re.fullmatch(r"[A-Z0-9]{6}", result.code)
    assert result.expires_in_minutes == 5
    assert result.expires_at == T0 + timedelta(minutes=5)
    assert result.contact_address == "ana@example.com"
    assert result.voter == {"id": 1, "name": "Ana Gomez", "unit": "North Training Center"}
    assert result.election["candidate_count"] == 2
    assert result.election["name"] == "Student Council 2026"
    assert result.notified is True

    record = db.session.get(OtpRecord, uuid.UUID(result.record_id))
    assert record.status == OtpStatus.PENDING
    assert record.code == result.code
    assert record.created_at == T0


def test_notification_carries_code_name_and_expiry(app, notifier):
    result = build_issuer().issue(1, 5)

    assert len(notifier.sent) == 1
    message = notifier.sent[0]
    assert message["to"] == "ana@example.com"
    assert result.code in message["body"]
    assert "Ana Gomez" in message["body"]
    assert "5 minutes" in message["body"]


def test_record_is_committed_before_delivery(app):
    seen = []

    class SnapshotNotifier:
        def send(self, contact_address, subject, body):
            # anything not yet committed is discarded here
            db.session.rollback()
            seen.extend(db.session.query(OtpRecord).all())
            raise TimeoutError("mail relay timed out")

    app.extensions[NOTIFIER_KEY] = SnapshotNotifier()

    result = build_issuer().issue(1, 5)

    assert result.notified is False
    assert [r.status for r in seen] == [OtpStatus.PENDING]
    assert pending_count(1, 5) == 1


def test_production_mode_withholds_code(app):
    app.extensions[SETTINGS_KEY] = OtpSettings(environment_mode="production")

    result = build_issuer().issue(1, 5)

    assert isinstance(result, IssueResult)
    assert result.code is None
    assert pending_count(1, 5) == 1


def test_repeated_issue_keeps_single_pending(app, clock):
    issuer = build_issuer()
    codes = []
    for _ in range(3):
        codes.append(issuer.issue(1, 5).code)
        clock.advance(minutes=1)

    assert pending_count(1, 5) == 1
    assert OtpStore(db.session).find_by_code(codes[-1]).status == OtpStatus.PENDING
    for old in codes[:-1]:
        if old != codes[-1]:
            assert OtpStore(db.session).find_by_code(old) is None


def test_repeated_issue_at_same_instant(app):
    issuer = build_issuer()
    issuer.issue(1, 5)
    issuer.issue(1, 5)

    assert pending_count(1, 5) == 1


def test_stale_records_purged_before_create(app, clock):
    OtpStore(db.session).create(1, 5, "STALE1", T0 - timedelta(minutes=30))
    db.session.commit()

    build_issuer().issue(1, 5)

    assert OtpStore(db.session).find_by_code("STALE1") is None
    issued = db.session.query(AuditLog).filter_by(action="OTP_ISSUED").one()
    assert issued.details == {"purged_stale": 1, "superseded": 0}


def test_unknown_voter_wins_over_unknown_election(app):
    outcome = build_issuer().issue(404, 405)

    assert isinstance(outcome, OtpError)
    assert outcome.kind == OtpErrorKind.VOTER_NOT_FOUND


def test_ineligible_state_creates_nothing(app, notifier):
    outcome = build_issuer().issue(2, 5)

    assert outcome.kind == OtpErrorKind.VOTER_INELIGIBLE_STATE
    assert db.session.query(OtpRecord).count() == 0
    assert notifier.sent == []


def test_unit_mismatch(app):
    assert build_issuer().issue(3, 5).kind == OtpErrorKind.UNIT_MISMATCH


def test_already_voted_blocks_issue(app):
    issuer = build_issuer()
    code = issuer.issue(1, 5).code

    build_verifier().verify(code)

    outcome = issuer.issue(1, 5)
    assert outcome.kind == OtpErrorKind.ALREADY_VOTED
    assert outcome.details["code"] == code


@pytest.mark.parametrize("notifier_cls", [FailingNotifier, RaisingNotifier])
def test_notification_failure_does_not_fail_issue(app, notifier_cls):
    app.extensions[NOTIFIER_KEY] = notifier_cls()

    result = build_issuer().issue(1, 5)

    assert isinstance(result, IssueResult)
    assert result.notified is False
    assert pending_count(1, 5) == 1


def test_voter_without_email_still_gets_record(app):
    # voter 4 has no email; the default mail notifier cannot deliver
    from voter_otp.services.notifier import MailNotifier
    app.extensions[NOTIFIER_KEY] = MailNotifier()

    result = build_issuer().issue(4, 5)

    assert isinstance(result, IssueResult)
    assert result.notified is False
    assert result.contact_address is None


def test_code_collision_is_retried(app):
    codes = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
    app.extensions[CODE_SOURCE_KEY] = lambda length: next(codes)

    first = build_issuer().issue(1, 5)
    second = build_issuer().issue(7, 5)

    assert first.code == "AAAAAA"
    assert second.code == "BBBBBB"
    assert pending_count(7, 5) == 1


def test_persistent_collision_reports_store_unavailable(app):
    app.extensions[CODE_SOURCE_KEY] = lambda length: "AAAAAA"

    build_issuer().issue(1, 5)
    outcome = build_issuer().issue(7, 5)

    assert outcome.kind == OtpErrorKind.STORE_UNAVAILABLE
    assert pending_count(7, 5) == 0


def test_database_failure_is_store_unavailable(app, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("DELETE FROM otp_records", {}, Exception("database is locked"))

    monkeypatch.setattr(OtpStore, "purge_stale", boom)

    outcome = build_issuer().issue(1, 5)

    assert outcome.kind == OtpErrorKind.STORE_UNAVAILABLE
    assert "locked" not in outcome.message


def test_eligibility_failure_on_database_error(app, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(OtpStore, "find_used", boom)

    assert build_issuer().issue(1, 5).kind == OtpErrorKind.STORE_UNAVAILABLE


def test_audit_row_never_contains_code(app):
    result = build_issuer().issue(1, 5)

    issued = db.session.query(AuditLog).filter_by(action="OTP_ISSUED").one()
    assert issued.entity_id == result.record_id
    assert issued.voter_id == 1
    assert issued.election_id == 5
    assert result.code not in str(issued.details)

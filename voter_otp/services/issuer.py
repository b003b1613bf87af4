from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..utils.audit import audit_log
from ..utils.clock import utcnow
from ..utils.otp import generate_otp
from .notifier import render_otp_email
from .outcomes import IssueResult, NotifyResult, OtpError, OtpErrorKind


class OtpIssuer:
    """
    Issues a fresh OTP for a (voter, election) pair.

    The record is committed before the voter is notified; a delivery failure
    is logged and reported through ``IssueResult.notified`` but never undoes
    the issuance.

    Delivery runs inline after the commit, so a slow mail relay delays the
    response but cannot change its outcome. Deployments that need a bounded
    response time should inject a notifier that queues the message instead
    of ``MailNotifier``.
    """

    # One retry covers a concurrent issuance for the same pair or a pending
    # code collision, both reported by the partial unique indexes.
    MAX_CREATE_ATTEMPTS = 2

    def __init__(
        self,
        session,
        store,
        checker,
        elections,
        notifier,
        settings,
        clock=utcnow,
        code_source=generate_otp,
        subject: str = "Your voting OTP code",
    ):
        self._session = session
        self._store = store
        self._checker = checker
        self._elections = elections
        self._notifier = notifier
        self._settings = settings
        self._clock = clock
        self._code_source = code_source
        self._subject = subject

    def issue(self, voter_id: int, election_id: int, now=None):
        now = now or self._clock()

        try:
            outcome = self._checker.check(voter_id, election_id, now)
        except SQLAlchemyError:
            self._session.rollback()
            current_app.logger.exception(
                "DB error during OTP eligibility check voter_id=%s election_id=%s", voter_id, election_id
            )
            return OtpError.of(OtpErrorKind.STORE_UNAVAILABLE)

        if isinstance(outcome, OtpError):
            return outcome

        voter, election = outcome.voter, outcome.election
        record, code = self._persist(voter.id, election.id, now)
        if record is None:
            return OtpError.of(OtpErrorKind.STORE_UNAVAILABLE)

        notified = self._notify(voter, election, code)

        try:
            candidate_count = self._elections.candidate_count(election.id)
        except SQLAlchemyError:
            # Informational only; the code already exists
            self._session.rollback()
            current_app.logger.exception("Could not count candidates for election_id=%s", election.id)
            candidate_count = None

        return IssueResult(
            record_id=str(record.id),
            voter={
                "id": voter.id,
                "name": voter.display_name,
                "unit": voter.unit.name if voter.unit else None,
            },
            election={
                "id": election.id,
                "name": election.name,
                "unit": election.unit.name if election.unit else None,
                "candidate_count": candidate_count,
            },
            contact_address=voter.contact_address,
            expires_in_minutes=self._settings.expiry_minutes,
            expires_at=now + self._settings.expiry_window,
            notified=notified,
            code=None if self._settings.is_production else code,
        )

    def _persist(self, voter_id: int, election_id: int, now):
        cutoff = now - self._settings.expiry_window

        for attempt in range(1, self.MAX_CREATE_ATTEMPTS + 1):
            try:
                stale = self._store.purge_stale(voter_id, election_id, cutoff)
                superseded = self._store.supersede_pending(voter_id, election_id)

                code = self._code_source(self._settings.code_length)
                record = self._store.create(voter_id, election_id, code, now)

                audit_log(
                    action="OTP_ISSUED",
                    entity_type="OTP",
                    entity_id=str(record.id),
                    voter_id=voter_id,
                    election_id=election_id,
                    details={"purged_stale": stale, "superseded": superseded},
                )
                self._session.commit()
                return record, code

            except IntegrityError:
                self._session.rollback()
                current_app.logger.warning(
                    "OTP insert conflict voter_id=%s election_id=%s attempt=%s",
                    voter_id, election_id, attempt,
                )
            except SQLAlchemyError:
                self._session.rollback()
                current_app.logger.exception(
                    "DB error while issuing OTP voter_id=%s election_id=%s", voter_id, election_id
                )
                return None, None

        current_app.logger.error(
            "Giving up issuing OTP after %s conflicts voter_id=%s election_id=%s",
            self.MAX_CREATE_ATTEMPTS, voter_id, election_id,
        )
        return None, None

    def _notify(self, voter, election, code: str) -> bool:
        body = render_otp_email(voter.display_name, code, self._settings.expiry_minutes, election.name)
        try:
            result = self._notifier.send(voter.contact_address, self._subject, body)
        except Exception as exc:
            result = NotifyResult.failure(f"{type(exc).__name__}: {exc}")

        if not result.ok:
            current_app.logger.warning(
                "OTP notification failed voter_id=%s election_id=%s: %s",
                voter.id, election.id, result.error,
            )
            return False

        current_app.logger.info("OTP notification sent voter_id=%s election_id=%s", voter.id, election.id)
        return True

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..utils.audit import audit_log
from ..utils.clock import utcnow
from ..utils.otp import is_well_formed, normalize_code
from .outcomes import OtpError, OtpErrorKind, VerifyResult


class OtpVerifier:
    """
    Validates a submitted OTP and consumes it.

    Lookup is by code alone (``global`` scope) or by code plus voter and
    election (``scoped``). In global scope the ids are optional and only
    narrow the lookup when given. Consumption is a guarded update, so two
    concurrent verifications of one code cannot both succeed.

    Codes are only unique among pending records. A code-only lookup whose
    pending record is gone can therefore match another voter's used record
    and report ALREADY_CONSUMED; passing voter_id keeps the answer to
    CODE_MISMATCH.
    """

    def __init__(self, session, store, settings, clock=utcnow):
        self._session = session
        self._store = store
        self._settings = settings
        self._clock = clock

    def verify(self, code, now=None, voter_id: int | None = None, election_id: int | None = None):
        now = now or self._clock()

        code = normalize_code(code)
        if not is_well_formed(code, self._settings.code_length):
            return OtpError.of(
                OtpErrorKind.VALIDATION_FAILED,
                errors={"code": [f"Must be {self._settings.code_length} letters or digits."]},
            )
        if self._settings.scoped_lookup and (voter_id is None or election_id is None):
            return OtpError.of(
                OtpErrorKind.VALIDATION_FAILED,
                errors={"voter_id": ["Required."], "election_id": ["Required."]},
            )

        try:
            record = self._store.find_by_code(code, voter_id=voter_id, election_id=election_id)
            if record is None:
                return OtpError.of(OtpErrorKind.CODE_MISMATCH)

            if record.is_used:
                return OtpError.of(OtpErrorKind.ALREADY_CONSUMED)

            if record.is_expired(now, self._settings.expiry_window):
                expired_at = record.expires_at(self._settings.expiry_window)
                record_id, rec_voter, rec_election = str(record.id), record.voter_id, record.election_id
                if not self._store.delete(record):
                    # consumed by a concurrent request just before the deadline
                    self._session.rollback()
                    return OtpError.of(OtpErrorKind.ALREADY_CONSUMED)
                audit_log(
                    action="OTP_EXPIRED",
                    entity_type="OTP",
                    entity_id=record_id,
                    voter_id=rec_voter,
                    election_id=rec_election,
                    details={"expired_at": expired_at.isoformat()},
                )
                self._session.commit()
                return OtpError.of(OtpErrorKind.EXPIRED)

            if not self._store.mark_used(record, now):
                self._session.rollback()
                return OtpError.of(OtpErrorKind.ALREADY_CONSUMED)

            result = VerifyResult(
                record_id=str(record.id),
                voter_id=record.voter_id,
                election_id=record.election_id,
                verified_at=now,
            )
            audit_log(
                action="OTP_VERIFIED",
                entity_type="OTP",
                entity_id=result.record_id,
                voter_id=result.voter_id,
                election_id=result.election_id,
            )
            self._session.commit()

        except SQLAlchemyError:
            self._session.rollback()
            current_app.logger.exception("DB error while verifying OTP")
            return OtpError.of(OtpErrorKind.STORE_UNAVAILABLE)

        return result

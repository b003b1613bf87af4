from datetime import datetime

from .outcomes import Eligibility, OtpError, OtpErrorKind
from .schedule import always_open


class EligibilityChecker:
    """
    Decides whether a voter may receive an OTP for an election.

    Checks run in a fixed order and stop at the first failure, so a missing
    voter is always reported as such even when the election is bad too.
    Nothing is written.
    """

    def __init__(self, voters, elections, store, allowed_states, is_election_open=always_open):
        self._voters = voters
        self._elections = elections
        self._store = store
        self._allowed_states = frozenset(s.strip().lower() for s in allowed_states)
        self._is_election_open = is_election_open

    def check(self, voter_id: int, election_id: int, now: datetime):
        voter = self._voters.find_by_id(voter_id)
        if voter is None:
            return OtpError.of(OtpErrorKind.VOTER_NOT_FOUND, voter_id=voter_id)

        state = voter.normalized_state
        if state not in self._allowed_states:
            return OtpError.of(
                OtpErrorKind.VOTER_INELIGIBLE_STATE,
                "The voter must be in one of the allowed states: " + ", ".join(sorted(self._allowed_states)),
                state=state,
            )

        election = self._elections.find_by_id(election_id)
        if election is None:
            return OtpError.of(OtpErrorKind.ELECTION_NOT_FOUND, election_id=election_id)

        if not self._is_election_open(election, now):
            return OtpError.of(
                OtpErrorKind.ELECTION_CLOSED,
                start_date=election.start_date.isoformat() if election.start_date else None,
                end_date=election.end_date.isoformat() if election.end_date else None,
                start_time=election.start_time.isoformat() if election.start_time else None,
                end_time=election.end_time.isoformat() if election.end_time else None,
            )

        if voter.unit_id != election.unit_id:
            return OtpError.of(OtpErrorKind.UNIT_MISMATCH)

        prior = self._store.find_used(voter.id, election.id)
        if prior is not None:
            return OtpError.of(
                OtpErrorKind.ALREADY_VOTED,
                voted_at=(prior.used_at or prior.created_at).isoformat(),
                code=prior.code,
            )

        return Eligibility(voter=voter, election=election)

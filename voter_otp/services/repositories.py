"""Read-only access to the voter and election records owned by the host application."""

from sqlalchemy import func, select

from ..models.candidate import Candidate
from ..models.election import Election
from ..models.voter import Voter


class VoterRepository:
    def __init__(self, session) -> None:
        self._session = session

    def find_by_id(self, voter_id: int) -> Voter | None:
        return self._session.get(Voter, voter_id)


class ElectionRepository:
    def __init__(self, session) -> None:
        self._session = session

    def find_by_id(self, election_id: int) -> Election | None:
        return self._session.get(Election, election_id)

    def candidate_count(self, election_id: int) -> int:
        stmt = select(func.count(Candidate.id)).where(Candidate.election_id == election_id)
        return self._session.execute(stmt).scalar() or 0

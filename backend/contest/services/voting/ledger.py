"""Per-candidate vote counters scoped to an event."""

from typing import List, Optional

from sqlalchemy import select

from contest import db
from contest.models import Candidate, Code
from .errors import NotFound


def get(candidate_id) -> Optional[Candidate]:
    return db.session.get(Candidate, candidate_id)


def vote_count(candidate_id) -> Optional[int]:
    return db.session.execute(
        select(Candidate.votes).where(Candidate.id == candidate_id)
    ).scalar_one_or_none()


def event_of_candidate(candidate_id) -> Optional[int]:
    """Event of the registrant's auth code."""
    return db.session.execute(
        select(Code.event_id)
        .join(Candidate, Candidate.code_id == Code.id)
        .where(Candidate.id == candidate_id)
    ).scalar_one_or_none()


def increment_vote(candidate_id) -> int:
    """Add one vote in the store and return the new count.

    The addition happens in a single UPDATE so concurrent increments never
    overwrite each other. Does not commit.
    """
    updated = (
        Candidate.query
        .filter(Candidate.id == candidate_id)
        .update({Candidate.votes: Candidate.votes + 1}, synchronize_session=False)
    )
    if updated != 1:
        raise NotFound(f"Candidate '{candidate_id}' does not exist.")
    return vote_count(candidate_id)


def list_by_event(event_id) -> List[Candidate]:
    return (
        Candidate.query
        .join(Code, Candidate.code_id == Code.id)
        .filter(Code.event_id == event_id)
        .order_by(Candidate.id.asc())
        .all()
    )

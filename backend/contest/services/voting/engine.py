"""Vote casting and the admin gating actions.

``cast_votes`` validates the whole batch before touching the store, then
applies it as one transaction: the auth code's ``has_voted`` compare-and-set
runs first and reserves the code, the increments follow in request order,
and a single commit publishes both. Any failure after the reservation rolls
the reservation back with the increments, so a batch lands completely or
not at all and the auth code is the idempotency key.
"""

import datetime
from dataclasses import dataclass
from typing import List, Optional, Sequence

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from contest import db, socketio
from contest.models import Event
from . import ledger, tokens
from .clock import EventPhase, is_set, phase, to_event_time
from .errors import (
    AccessDenied,
    AlreadyVoted,
    ContestError,
    EventMismatch,
    InvalidRequest,
    InvalidToken,
    NotFound,
    StoreUnavailable,
    VotingClosed,
)


@dataclass
class VoteReceipt:
    event_id: int
    candidate_ids: List[int]
    votes: List[int]

    def to_dict(self):
        return {
            'event_id': self.event_id,
            'candidate_ids': self.candidate_ids,
            'votes': self.votes,
        }


def _normalize_ids(candidate_ids) -> List[int]:
    if not candidate_ids or isinstance(candidate_ids, (str, bytes)):
        raise InvalidRequest()
    try:
        items = list(candidate_ids)
    except TypeError:
        raise InvalidRequest()
    ids = []
    for cid in items:
        # Only exact integers or digit strings; floats and bools never name a candidate
        if isinstance(cid, int) and not isinstance(cid, bool):
            ids.append(cid)
        elif isinstance(cid, str) and cid.strip().isdigit():
            ids.append(int(cid.strip()))
        else:
            raise InvalidRequest('Candidate ids must be integers.')
    return ids


def cast_votes(auth_code: str, candidate_ids: Sequence[int], now: Optional[datetime.datetime] = None) -> VoteReceipt:
    """Record one vote per listed candidate for ``auth_code``, exactly once."""
    ids = _normalize_ids(candidate_ids)
    log = current_app.logger

    try:
        code = tokens.resolve(auth_code)
        if code is None:
            raise InvalidToken()
        # Early reject; the compare-and-set below is the real guard
        if code.has_voted:
            raise AlreadyVoted()
        token_event = code.event_id

        for cid in ids:
            candidate_event = ledger.event_of_candidate(cid)
            if candidate_event is None:
                raise NotFound(f"Candidate '{cid}' does not exist.")
            if candidate_event != token_event:
                raise EventMismatch()

        event = db.session.get(Event, token_event)
        if event is None:
            raise NotFound('Event does not exist.')
        if phase(event, now) != EventPhase.VOTING:
            raise VotingClosed()

        if not tokens.mark_voted(auth_code):
            log.info(f"[vote-race] event={token_event} code={tokens.short(auth_code)} lost has_voted race")
            raise AlreadyVoted()

        votes = [ledger.increment_vote(cid) for cid in ids]
        db.session.commit()
    except ContestError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        log.error(f"[store-error] op=cast_votes code={tokens.short(auth_code)} err={type(exc).__name__}")
        raise StoreUnavailable()

    log.info(f"[vote] event={token_event} code={tokens.short(auth_code)} candidates={ids} votes={votes}")
    receipt = VoteReceipt(event_id=token_event, candidate_ids=ids, votes=votes)
    socketio.emit('votes_update', receipt.to_dict(), to=f"event:{token_event}", namespace='/ws')
    return receipt


def _admin_event(auth_code: str) -> Event:
    code = tokens.resolve(auth_code)
    if code is None or not code.is_admin:
        raise AccessDenied()
    event = db.session.get(Event, code.event_id)
    if event is None:
        raise NotFound('Event does not exist.')
    return event


def _commit(op: str, auth_code: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[store-error] op={op} code={tokens.short(auth_code)} err={type(exc).__name__}")
        raise StoreUnavailable()


def set_results_open(auth_code: str, is_open: bool) -> Event:
    """Open or close the results of the admin's own event."""
    event = _admin_event(auth_code)
    event.results_open = bool(is_open)
    db.session.add(event)
    _commit('set_results_open', auth_code)
    current_app.logger.info(f"[results-state] event={event.id} open={event.results_open}")
    socketio.emit('results_state', {'event_id': event.id, 'results_open': event.results_open},
                  to=f"event:{event.id}", namespace='/ws')
    return event


def update_deadlines(auth_code: str,
                     registration_deadline: Optional[datetime.datetime] = None,
                     voting_deadline: Optional[datetime.datetime] = None) -> Event:
    """Partially update the deadlines of the admin's own event.

    Unset values (None or epoch) leave the stored deadline untouched.
    Aware datetimes are stored as event-timezone wall-clock time.
    """
    event = _admin_event(auth_code)
    registration_deadline = to_event_time(registration_deadline)
    voting_deadline = to_event_time(voting_deadline)
    if is_set(registration_deadline):
        event.registration_deadline = registration_deadline
    if is_set(voting_deadline):
        event.voting_deadline = voting_deadline
    db.session.add(event)
    _commit('update_deadlines', auth_code)
    current_app.logger.info(
        f"[deadlines] event={event.id} registration={event.registration_deadline} voting={event.voting_deadline}"
    )
    return event

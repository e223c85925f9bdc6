from dataclasses import dataclass
from typing import List, Optional

from contest import db
from contest.models import Candidate, Event
from . import ledger, tokens
from .errors import InvalidRequest, InvalidToken, NotFound, ResultsClosed


@dataclass
class Results:
    top: List[Candidate]
    rest: List[Candidate]

    def to_dict(self):
        return {
            'top': [c.to_dict() for c in self.top],
            'rest': [c.to_dict() for c in self.rest],
        }


def rank(candidates: List[Candidate]) -> List[Candidate]:
    """Most votes first; equal counts keep registration order."""
    return sorted(candidates, key=lambda c: (-(c.votes or 0), c.id))


def results(auth_code: str, top_n: Optional[int] = 5) -> Results:
    """Ranked candidates of the code's event, split into top and rest.

    Visible when the event's results are open or the code is an admin code.
    """
    if top_n is None or top_n < 0:
        raise InvalidRequest('top must be a non-negative integer.')
    code = tokens.resolve(auth_code)
    if code is None:
        raise InvalidToken()
    event = db.session.get(Event, code.event_id)
    if event is None:
        raise NotFound('Event does not exist.')
    if not event.results_open and not code.is_admin:
        raise ResultsClosed()

    ranked = rank(ledger.list_by_event(event.id))
    cut = min(top_n, len(ranked))
    return Results(top=ranked[:cut], rest=ranked[cut:])

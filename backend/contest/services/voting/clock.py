"""Event phase derived from the event deadlines and the current time."""

import datetime
import enum
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


# Deadlines at or before this instant count as "not configured"
EPOCH = datetime.datetime(1970, 1, 1)


class EventPhase(str, enum.Enum):
    REGISTRATION = 'Registration'
    VOTING = 'Voting'
    END = 'End'


def event_timezone() -> ZoneInfo:
    tz_name = 'Europe/Berlin'
    if has_app_context():
        tz_name = current_app.config.get('EVENT_TIMEZONE', tz_name)
    return ZoneInfo(tz_name)


def to_event_time(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """Naive wall-clock time in the event timezone; naive input is returned as is."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(event_timezone()).replace(tzinfo=None)


def is_set(deadline: Optional[datetime.datetime]) -> bool:
    deadline = to_event_time(deadline)
    return deadline is not None and deadline > EPOCH


def current_time() -> datetime.datetime:
    """Current naive wall-clock time in the event timezone.

    An ``EVENT_CLOCK`` callable in the app config replaces the wall clock.
    """
    if has_app_context():
        clock = current_app.config.get('EVENT_CLOCK')
        if clock is not None:
            return clock()
    return datetime.datetime.now(event_timezone()).replace(tzinfo=None)


def phase(event, now: Optional[datetime.datetime] = None) -> EventPhase:
    """Phase of ``event`` at ``now``.

    - Voting strictly between the two deadlines
    - End at or after the voting deadline
    - Registration otherwise
    An unset voting deadline never passes; an unset registration deadline
    has always passed.
    """
    if now is None:
        now = current_time()
    registration_over = event.registration_deadline if is_set(event.registration_deadline) else None
    voting_over = event.voting_deadline if is_set(event.voting_deadline) else None

    after_registration = registration_over is None or now > registration_over
    before_voting_end = voting_over is None or now < voting_over

    if after_registration and before_voting_end:
        return EventPhase.VOTING
    if voting_over is not None and now >= voting_over:
        return EventPhase.END
    return EventPhase.REGISTRATION

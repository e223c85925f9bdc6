"""Typed failures of the voting engine.

Every failure is an expected, caller-recoverable outcome. Each carries a
stable ``kind`` and the HTTP status the transport layer renders it with.
"""


class ContestError(Exception):
    kind = 'ContestError'
    status_code = 400
    message = 'Request could not be processed.'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class InvalidRequest(ContestError):
    kind = 'InvalidRequest'
    message = 'Body is missing or faulty.'


class InvalidToken(ContestError):
    kind = 'InvalidToken'
    status_code = 404
    message = 'AuthCode does not exist in any current events.'


class AlreadyVoted(ContestError):
    kind = 'AlreadyVoted'
    status_code = 409
    message = 'AuthCode was already used!'


class EventMismatch(ContestError):
    kind = 'EventMismatch'
    message = 'Candidate and AuthCode do not belong to the same event!'


class VotingClosed(ContestError):
    kind = 'VotingClosed'
    status_code = 403
    message = 'The event is not in voting phase!'


class ResultsClosed(ContestError):
    kind = 'ResultsClosed'
    status_code = 403
    message = 'Event results are closed.'


class AccessDenied(ContestError):
    kind = 'AccessDenied'
    status_code = 403
    message = 'Access denied.'


class NotFound(ContestError):
    kind = 'NotFound'
    status_code = 404
    message = 'Not found.'


class StoreUnavailable(ContestError):
    # Callers re-query counts rather than resubmit the same batch
    kind = 'StoreUnavailable'
    message = 'The vote store is unavailable, please check the current counts and try again.'

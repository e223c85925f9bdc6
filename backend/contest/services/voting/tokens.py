"""Auth code lookups and the one-shot ``has_voted`` transition."""

from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from contest import db
from contest.models import Code
from .errors import InvalidToken


def short(auth_code: str) -> str:
    """Truncated auth code for log lines."""
    return f"{(auth_code or '')[:3]}..."


def resolve(auth_code: str) -> Optional[Code]:
    if not auth_code:
        return None
    return Code.query.filter_by(auth_code=auth_code).first()


def event_of(auth_code: str) -> Optional[int]:
    code = resolve(auth_code)
    return code.event_id if code else None


def is_admin(auth_code: str) -> bool:
    try:
        code = resolve(auth_code)
    except SQLAlchemyError as exc:
        current_app.logger.warning(f"[store-error] op=is_admin code={short(auth_code)} err={type(exc).__name__}")
        db.session.rollback()
        return False
    return bool(code and code.is_admin)


def has_voted(auth_code: str) -> bool:
    try:
        code = resolve(auth_code)
    except SQLAlchemyError as exc:
        current_app.logger.warning(f"[store-error] op=has_voted code={short(auth_code)} err={type(exc).__name__}")
        db.session.rollback()
        return False
    return bool(code and code.has_voted)


def mark_voted(auth_code: str) -> bool:
    """Compare-and-set ``has_voted`` from false to true.

    Runs inside the caller's transaction and does not commit. Returns True
    only when this call performed the transition; the conditional UPDATE
    holds the row lock until the caller commits or rolls back, so a
    concurrent caller sees the committed flag and gets False.
    """
    updated = (
        Code.query
        .filter_by(auth_code=auth_code, has_voted=False)
        .update({Code.has_voted: True}, synchronize_session=False)
    )
    if updated == 1:
        return True
    if resolve(auth_code) is None:
        raise InvalidToken()
    return False

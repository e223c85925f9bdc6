"""Registration-side collaborators: candidates, pictures and code info.

Thin store wrappers around the voting engine; the engine only ever sees the
stored ``image_id``.
"""

import os
import random
import uuid
from typing import List

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from contest import db
from contest.models import Candidate, Code, Image
from contest.services.voting import ledger, tokens
from contest.services.voting.errors import AccessDenied, InvalidRequest, InvalidToken, NotFound


def code_info(auth_code: str) -> dict:
    code = tokens.resolve(auth_code)
    return {
        'is_valid': code is not None,
        'is_registered': bool(code and code.candidate is not None),
        'has_voted': tokens.has_voted(auth_code),
        'is_admin': tokens.is_admin(auth_code),
    }


def register_candidate(auth_code: str, name: str, costume: str) -> Candidate:
    """Create the candidate owned by ``auth_code`` (one per code)."""
    code = tokens.resolve(auth_code)
    if code is None:
        raise InvalidToken('AuthCode is invalid!')
    if code.candidate is not None:
        raise InvalidRequest('AuthCode was already used!')
    if not name or not costume:
        raise InvalidRequest('Name or costume is missing!')

    candidate = Candidate(
        code_id=code.id,
        name=name,
        costume=costume,
        image_id=code.image.image_id if code.image else None,
    )
    db.session.add(candidate)
    db.session.commit()
    current_app.logger.info(f"[register] event={code.event_id} candidate={candidate.id}")
    return candidate


def store_image(auth_code: str, file_storage) -> str:
    """Persist an uploaded picture and link it to the code; returns the image id."""
    code = tokens.resolve(auth_code)
    if code is None:
        raise InvalidToken('AuthCode is invalid.')
    if file_storage is None or not file_storage.filename:
        raise InvalidRequest('No image uploaded.')

    image_id = str(uuid.uuid4())
    image_dir = current_app.config.get('IMAGE_DIR', 'img')
    ext = current_app.config.get('IMAGE_EXTENSION', '.jpg')
    os.makedirs(image_dir, exist_ok=True)
    path = os.path.join(image_dir, f"{image_id}{ext}")
    file_storage.save(path)

    if code.image:
        code.image.image_id = image_id
    else:
        db.session.add(Image(code_id=code.id, image_id=image_id))
    # Keep an existing registration pointing at the latest picture
    if code.candidate is not None:
        code.candidate.image_id = image_id
    try:
        db.session.commit()
    except SQLAlchemyError:
        # No row points at the picture; drop it
        db.session.rollback()
        os.remove(path)
        raise
    current_app.logger.info(f"[upload] code={tokens.short(auth_code)} image={image_id}")
    return image_id


def ballot(auth_code: str) -> List[Candidate]:
    """Candidates of the code's event in random order."""
    event_id = tokens.event_of(auth_code)
    if event_id is None:
        raise InvalidToken()
    candidates = ledger.list_by_event(event_id)
    random.shuffle(candidates)
    return candidates


def _remove(admin_code: str, candidate: Candidate) -> int:
    admin = tokens.resolve(admin_code)
    if admin is None or not admin.is_admin:
        raise AccessDenied()
    if candidate is None:
        raise NotFound('Candidate not found')
    if ledger.event_of_candidate(candidate.id) != admin.event_id:
        raise AccessDenied()
    candidate_id = candidate.id
    db.session.delete(candidate)
    db.session.commit()
    current_app.logger.info(f"[remove] event={admin.event_id} candidate={candidate_id}")
    return candidate_id


def remove_candidate(admin_code: str, candidate_id: int) -> int:
    return _remove(admin_code, ledger.get(candidate_id))


def remove_candidate_by_code(admin_code: str, registrant_code: str) -> int:
    code = Code.query.filter_by(auth_code=registrant_code).first()
    return _remove(admin_code, code.candidate if code else None)

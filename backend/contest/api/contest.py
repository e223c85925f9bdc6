from flask import Blueprint, jsonify, request, current_app
from contest import db
from contest.models import Event
from contest.services import registration
from contest.services.voting import engine, tokens
from contest.services.voting.clock import phase, to_event_time
from contest.services.voting.errors import AccessDenied, ContestError, InvalidRequest, InvalidToken, NotFound, StoreUnavailable
from contest.services.voting.results import results as assemble_results
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError


contest = Blueprint('contest', __name__)


@contest.errorhandler(ContestError)
def handle_contest_error(exc: ContestError):
    return jsonify(exc.to_dict()), exc.status_code


@contest.errorhandler(SQLAlchemyError)
def handle_store_error(exc: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.error(f"[store-error] path={request.path} err={type(exc).__name__}")
    err = StoreUnavailable()
    return jsonify(err.to_dict()), err.status_code


def _parse_deadline(value):
    if value in (None, ''):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise InvalidRequest(f"Invalid timestamp '{value}'.")
    return to_event_time(parsed)


# ---- Reads ----

@contest.route('/user/<string:auth_code>', methods=['GET'])
def get_code_info(auth_code):
    return jsonify(registration.code_info(auth_code))


@contest.route('/event/<string:auth_code>', methods=['GET'])
def get_event(auth_code):
    code = tokens.resolve(auth_code)
    if code is None:
        raise InvalidToken()
    event = db.session.get(Event, code.event_id)
    if event is None:
        raise NotFound('Event does not exist.')
    payload = event.to_dict()
    payload['phase'] = phase(event).value
    return jsonify(payload)


@contest.route('/users/all/<string:auth_code>', methods=['GET'])
def get_ballot(auth_code):
    return jsonify([c.to_dict() for c in registration.ballot(auth_code)])


@contest.route('/user/top/<string:auth_code>', methods=['GET'])
def get_results(auth_code):
    top_n = request.args.get('top', default=current_app.config.get('RESULTS_TOP_N', 5), type=int)
    return jsonify(assemble_results(auth_code, top_n=top_n).to_dict())


@contest.route('/resultOpen/<int:event_id>', methods=['GET'])
def get_results_open(event_id):
    event = db.session.get(Event, event_id)
    return jsonify({'event_id': event_id, 'results_open': bool(event and event.results_open)})


# ---- Voting and admin actions ----

@contest.route('/incr', methods=['PUT'])
def cast_votes():
    data = request.get_json(silent=True) or {}
    auth_code = data.get('auth_code')
    ids = data.get('ids')
    if not auth_code or not ids:
        raise InvalidRequest()
    receipt = engine.cast_votes(auth_code, ids)
    payload = receipt.to_dict()
    payload['auth_code'] = auth_code
    return jsonify(payload)


@contest.route('/updateTime/<string:auth_code>', methods=['PUT'])
def update_time(auth_code):
    data = request.get_json(silent=True) or {}
    event = engine.update_deadlines(
        auth_code,
        registration_deadline=_parse_deadline(data.get('registration_deadline')),
        voting_deadline=_parse_deadline(data.get('voting_deadline')),
    )
    return jsonify({'message': f"Times of event '{event.id}' were successfully updated", 'event': event.to_dict()})


@contest.route('/resultsState/<string:state>/<string:auth_code>', methods=['PUT'])
def results_state(state, auth_code):
    # Admin check comes before state parsing
    if not tokens.is_admin(auth_code):
        raise AccessDenied()
    states = {'open': True, 'close': False}
    if state.lower() not in states:
        raise InvalidRequest("Couldn't define state")
    event = engine.set_results_open(auth_code, states[state.lower()])
    verb = 'opened' if event.results_open else 'closed'
    return jsonify({'message': f"Successfully {verb} the results for event {event.id}", 'event': event.to_dict()})


# ---- Registration collaborators ----

@contest.route('/register/<string:auth_code>', methods=['POST'])
def register(auth_code):
    data = request.get_json(silent=True) or {}
    candidate = registration.register_candidate(auth_code, data.get('name'), data.get('costume'))
    return jsonify({'message': f"Added {candidate.name} successfully!", 'candidate': candidate.to_dict()}), 201


@contest.route('/upload/<string:auth_code>', methods=['POST'])
def upload(auth_code):
    file = request.files.get('file')
    if file is None and request.files:
        file = next(iter(request.files.values()))
    image_id = registration.store_image(auth_code, file)
    return jsonify({'image_id': image_id}), 201


@contest.route('/deleteOnId/<int:candidate_id>/<string:auth_code>', methods=['DELETE'])
def delete_on_id(candidate_id, auth_code):
    removed = registration.remove_candidate(auth_code, candidate_id)
    return jsonify({'message': f"Candidate with ID '{removed}' was successfully deleted."})


@contest.route('/deleteOnAuth/<string:user_auth_code>/<string:auth_code>', methods=['DELETE'])
def delete_on_auth(user_auth_code, auth_code):
    removed = registration.remove_candidate_by_code(auth_code, user_auth_code)
    return jsonify({'message': f"Candidate with ID '{removed}' was successfully deleted."})

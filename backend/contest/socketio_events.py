from flask_socketio import join_room, leave_room, emit
from contest.services.voting import tokens


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _event_room(data):
    auth_code = (data or {}).get('auth_code')
    if not auth_code:
        emit('error', {'message': 'auth_code is required'})
        return None
    event_id = tokens.event_of(auth_code)
    if event_id is None:
        emit('error', {'message': 'AuthCode does not exist in any current events.'})
        return None
    return f"event:{event_id}"


def handle_join_event(data):
    # Rooms are keyed by event so vote updates never reach other events
    room = _event_room(data)
    if not room:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_event(data):
    room = _event_room(data)
    if not room:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    from contest import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_event', handle_join_event, namespace='/ws')
    socketio.on_event('leave_event', handle_leave_event, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

import os
import sys
import datetime
import pytest

# Ensure the backend root (containing the `contest` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from contest import create_app, db, socketio


T0 = datetime.datetime(2026, 10, 31, 20, 0, 0)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    EVENT_TIMEZONE = 'Europe/Berlin'
    EVENT_CLOCK = None
    RESULTS_TOP_N = 5
    IMAGE_EXTENSION = '.jpg'


class FrozenClock:
    """Settable stand-in for the wall clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture()
def clock():
    # Registration closes at T0, voting at T0 + 10 min; start mid-voting
    return FrozenClock(T0 + datetime.timedelta(minutes=5))


@pytest.fixture()
def flask_app(clock, tmp_path):
    application = create_app(TestConfig)
    application.config['EVENT_CLOCK'] = clock
    application.config['IMAGE_DIR'] = str(tmp_path / 'img')
    with application.app_context():
        # Ensure models are imported so tables are created
        import contest.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_event(flask_app):
    from contest.models import Event

    def _make(registration_deadline=T0, voting_deadline=T0 + datetime.timedelta(minutes=10), results_open=False):
        event = Event(
            name='Halloween',
            registration_deadline=registration_deadline,
            voting_deadline=voting_deadline,
            results_open=results_open,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make


@pytest.fixture()
def make_code(flask_app):
    from contest.models import Code

    def _make(event, is_admin=False, has_voted=False):
        code = Code(event_id=event.id, is_admin=is_admin, has_voted=has_voted)
        db.session.add(code)
        db.session.commit()
        return code

    return _make


@pytest.fixture()
def make_candidate(flask_app, make_code):
    from contest.models import Candidate

    def _make(event, name, votes=0):
        code = make_code(event)
        candidate = Candidate(code_id=code.id, name=name, costume=f'{name} costume', votes=votes)
        db.session.add(candidate)
        db.session.commit()
        return candidate

    return _make


@pytest.fixture()
def contest_setup(make_event, make_code, make_candidate):
    """One open-for-voting event with an admin, two voters and three candidates."""
    event = make_event()
    return {
        'event': event,
        'admin': make_code(event, is_admin=True).auth_code,
        'voter': make_code(event).auth_code,
        'voter2': make_code(event).auth_code,
        'candidates': [make_candidate(event, n).id for n in ('Alice', 'Bob', 'Cara')],
    }

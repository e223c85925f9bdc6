import datetime
import io
import os

from sqlalchemy.exc import OperationalError

from contest import db
from contest.services.voting import ledger
from conftest import T0


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json()['db'] == 'connected'


def test_code_info(client, contest_setup):
    info = client.get(f"/api/user/{contest_setup['admin']}").get_json()
    assert info == {'is_valid': True, 'is_registered': False, 'has_voted': False, 'is_admin': True}
    info = client.get('/api/user/NOPE').get_json()
    assert info['is_valid'] is False
    assert info['is_admin'] is False


def test_event_info_includes_phase(client, contest_setup, clock):
    data = client.get(f"/api/event/{contest_setup['voter']}").get_json()
    assert data['id'] == contest_setup['event'].id
    assert data['phase'] == 'Voting'
    clock.now = T0 + datetime.timedelta(hours=1)
    assert client.get(f"/api/event/{contest_setup['voter']}").get_json()['phase'] == 'End'
    res = client.get('/api/event/NOPE')
    assert res.status_code == 404
    assert res.get_json()['kind'] == 'InvalidToken'


def test_vote_then_reuse_code(client, contest_setup):
    c1, c2, c3 = contest_setup['candidates']
    voter = contest_setup['voter']
    res = client.put('/api/incr', json={'auth_code': voter, 'ids': [c1, c2]})
    assert res.status_code == 200
    body = res.get_json()
    assert body['candidate_ids'] == [c1, c2]
    assert body['votes'] == [1, 1]
    assert body['event_id'] == contest_setup['event'].id

    res = client.put('/api/incr', json={'auth_code': voter, 'ids': [c3]})
    assert res.status_code == 409
    assert res.get_json()['kind'] == 'AlreadyVoted'
    assert client.get(f'/api/user/{voter}').get_json()['has_voted'] is True


def test_vote_errors_are_client_errors(client, contest_setup, clock):
    c1 = contest_setup['candidates'][0]
    res = client.put('/api/incr', json={})
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'InvalidRequest'

    res = client.put('/api/incr', json={'auth_code': 'NOPE', 'ids': [c1]})
    assert res.status_code == 404
    assert res.get_json()['kind'] == 'InvalidToken'

    clock.now = T0 - datetime.timedelta(minutes=1)
    res = client.put('/api/incr', json={'auth_code': contest_setup['voter'], 'ids': [c1]})
    assert res.status_code == 403
    assert res.get_json()['kind'] == 'VotingClosed'
    assert 'error' in res.get_json()


def test_results_flow(client, contest_setup):
    c1, c2, c3 = contest_setup['candidates']
    client.put('/api/incr', json={'auth_code': contest_setup['voter'], 'ids': [c2]})
    client.put('/api/incr', json={'auth_code': contest_setup['voter2'], 'ids': [c2, c3]})

    res = client.get(f"/api/user/top/{contest_setup['voter']}")
    assert res.status_code == 403
    assert res.get_json()['kind'] == 'ResultsClosed'

    admin_view = client.get(f"/api/user/top/{contest_setup['admin']}?top=2").get_json()
    assert [c['id'] for c in admin_view['top']] == [c2, c3]
    assert [c['id'] for c in admin_view['rest']] == [c1]

    res = client.put(f"/api/resultsState/open/{contest_setup['admin']}")
    assert res.status_code == 200
    assert client.get(f"/api/resultOpen/{contest_setup['event'].id}").get_json()['results_open'] is True
    voter_view = client.get(f"/api/user/top/{contest_setup['voter']}").get_json()
    assert [c['id'] for c in voter_view['top']] == [c2, c3, c1]
    assert voter_view['rest'] == []


def test_results_state_admin_checks(client, contest_setup):
    res = client.put(f"/api/resultsState/open/{contest_setup['voter']}")
    assert res.status_code == 403
    assert res.get_json()['kind'] == 'AccessDenied'
    res = client.put(f"/api/resultsState/maybe/{contest_setup['admin']}")
    assert res.status_code == 400


def test_update_time(client, contest_setup, clock):
    admin = contest_setup['admin']
    res = client.put(f'/api/updateTime/{admin}', json={'voting_deadline': '2026-11-01T02:00:00'})
    assert res.status_code == 200
    event = res.get_json()['event']
    assert event['voting_deadline'] == '2026-11-01T02:00:00'
    assert event['registration_deadline'] == T0.isoformat()

    clock.now = T0 + datetime.timedelta(hours=1)
    assert client.get(f'/api/event/{admin}').get_json()['phase'] == 'Voting'

    res = client.put(f'/api/updateTime/{admin}', json={'voting_deadline': 'soon'})
    assert res.status_code == 400
    res = client.put(f"/api/updateTime/{contest_setup['voter']}", json={'voting_deadline': '2026-11-01T02:00:00'})
    assert res.status_code == 403


def test_register_and_ballot(client, make_event, make_code):
    event = make_event()
    code = make_code(event).auth_code
    res = client.post(f'/api/upload/{code}', data={'file': (io.BytesIO(b'fake-jpeg'), 'me.jpg')},
                      content_type='multipart/form-data')
    assert res.status_code == 201
    image_id = res.get_json()['image_id']

    res = client.post(f'/api/register/{code}', json={'name': 'Alice', 'costume': 'Witch'})
    assert res.status_code == 201
    candidate = res.get_json()['candidate']
    assert candidate['image_id'] == image_id
    assert candidate['votes'] == 0

    res = client.post(f'/api/register/{code}', json={'name': 'Alice', 'costume': 'Witch'})
    assert res.status_code == 400
    res = client.post(f'/api/register/{make_code(event).auth_code}', json={'name': 'Bob'})
    assert res.status_code == 400
    res = client.post('/api/register/NOPE', json={'name': 'Bob', 'costume': 'Ghost'})
    assert res.status_code == 404

    assert client.get(f'/api/user/{code}').get_json()['is_registered'] is True
    ballot = client.get(f'/api/users/all/{code}').get_json()
    assert [c['name'] for c in ballot] == ['Alice']


def test_ballot_is_scoped_to_event(client, contest_setup, make_event, make_candidate):
    other = make_event()
    make_candidate(other, 'Outsider')
    ballot = client.get(f"/api/users/all/{contest_setup['voter']}").get_json()
    assert sorted(c['id'] for c in ballot) == sorted(contest_setup['candidates'])


def test_delete_candidate(client, contest_setup, make_event, make_code, make_candidate):
    c1 = contest_setup['candidates'][0]
    assert client.delete(f"/api/deleteOnId/{c1}/{contest_setup['voter']}").status_code == 403
    assert client.delete(f"/api/deleteOnId/{c1}/{contest_setup['admin']}").status_code == 200
    assert client.delete(f"/api/deleteOnId/{c1}/{contest_setup['admin']}").status_code == 404

    other = make_event()
    outsider = make_candidate(other, 'Outsider').id
    assert client.delete(f"/api/deleteOnId/{outsider}/{contest_setup['admin']}").status_code == 403

    registrant = make_code(contest_setup['event'])
    client.post(f'/api/register/{registrant.auth_code}', json={'name': 'Dan', 'costume': 'Robot'})
    res = client.delete(f"/api/deleteOnAuth/{registrant.auth_code}/{contest_setup['admin']}")
    assert res.status_code == 200
    assert client.get(f'/api/user/{registrant.auth_code}').get_json()['is_registered'] is False


def _store_down(*args, **kwargs):
    raise OperationalError('SELECT 1', {}, Exception('connection refused'))


def test_store_failure_on_results_is_client_error(client, contest_setup, monkeypatch):
    monkeypatch.setattr(ledger, 'list_by_event', _store_down)
    res = client.get(f"/api/user/top/{contest_setup['admin']}")
    assert res.status_code == 400
    body = res.get_json()
    assert body['kind'] == 'StoreUnavailable'
    assert 'connection refused' not in body['error']

    monkeypatch.undo()
    assert client.get(f"/api/user/top/{contest_setup['admin']}").status_code == 200


def test_failed_upload_commit_leaves_no_file(client, flask_app, make_event, make_code, monkeypatch):
    code = make_code(make_event()).auth_code
    monkeypatch.setattr(type(db.session), 'commit', _store_down)
    res = client.post(f'/api/upload/{code}', data={'file': (io.BytesIO(b'fake-jpeg'), 'me.jpg')},
                      content_type='multipart/form-data')
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'StoreUnavailable'
    image_dir = flask_app.config['IMAGE_DIR']
    assert os.listdir(image_dir) == []

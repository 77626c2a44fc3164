from datetime import timedelta

from attendance_service.errors import StoreUnavailable
from attendance_service.models import load_stored_descriptor

from .conftest import T0, random_descriptor, with_noise


def register(client, email='eve@example.com', descriptor=None, name='Eve'):
    descriptor = random_descriptor(7) if descriptor is None else descriptor
    return client.post('/api/register', json={
        'name': name,
        'email': email,
        'faceData': descriptor.tolist(),
    })


def submit(client, descriptor, moment, **extra):
    return client.post('/api/attendance', json={
        'faceFeatures': descriptor.tolist(),
        'timestamp': moment.isoformat().replace('+00:00', 'Z'),
        **extra,
    })


def test_register_returns_user(client):
    response = register(client)
    
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['user'] == {'id': 1, 'name': 'Eve', 'email': 'eve@example.com'}


def test_register_requires_fields(client):
    response = client.post('/api/register', json={'name': 'Eve'})
    
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Name, email, and face data are required'


def test_register_duplicate_email_conflicts(client):
    register(client)
    
    response = register(client, descriptor=random_descriptor(8))
    
    assert response.status_code == 409


def test_register_rejects_non_json_body(client):
    response = client.post('/api/register', data='not json', content_type='text/plain')
    
    assert response.status_code == 400


def test_attendance_flow(client):
    descriptor = random_descriptor(7)
    register(client, descriptor=descriptor)
    
    check_in = submit(
        client, with_noise(descriptor, 0.05), T0, metrics={'accuracy': 0.97, 'latencyMs': 85}
    )
    assert check_in.status_code == 200
    body = check_in.get_json()
    assert body['outcome'] == 'MATCHED_CHECK_IN'
    assert body['type'] == 'CHECK_IN'
    assert body['message'] == 'Successful attendance'
    assert body['user'] == {'name': 'Eve', 'email': 'eve@example.com'}
    
    too_soon = submit(client, descriptor, T0 + timedelta(minutes=1))
    assert too_soon.status_code == 400
    body = too_soon.get_json()
    assert body['outcome'] == 'TOO_SOON'
    assert abs(body['minutesLeft'] - 4.0) < 1e-6
    
    check_out = submit(client, descriptor, T0 + timedelta(minutes=6))
    assert check_out.status_code == 200
    assert check_out.get_json()['message'] == 'You have successfully checked out attendance'
    
    history = client.get('/api/users/1/attendance?limit=10').get_json()
    assert [e['type'] for e in history['attendance']] == ['CHECK_OUT', 'CHECK_IN']
    assert history['attendance'][1]['latencyMs'] == 85.0
    assert history['attendance'][1]['detectionScore'] == 0.97


def test_attendance_unknown_face(client):
    register(client)
    
    response = submit(client, random_descriptor(8), T0)
    
    assert response.status_code == 404
    assert response.get_json() == {
        'error': 'Face not recognized. Please register first.',
        'outcome': 'NO_MATCH',
    }


def test_attendance_requires_face_features(client):
    response = client.post('/api/attendance', json={'timestamp': '2024-03-01T09:00:00Z'})
    
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Face features are required'


def test_attendance_rejects_bad_metrics(client):
    response = submit(client, random_descriptor(7), T0, metrics={'latencyMs': 'fast'})
    
    assert response.status_code == 400


def test_attendance_store_unavailable(client, service, monkeypatch):
    def unavailable():
        raise StoreUnavailable('connection refused')
    
    monkeypatch.setattr(service.enrollment_store, 'list_all', unavailable)
    
    response = submit(client, random_descriptor(7), T0)
    
    assert response.status_code == 503


def test_history_of_unknown_user(client):
    assert client.get('/api/users/99/attendance').status_code == 404


def test_health(client):
    body = client.get('/health').get_json()
    
    assert body['status'] == 'ok'
    assert body['service'] == 'test'
    assert body['matchMode'] == 'similarity'
    assert body['uptime'].endswith('s')


def test_corrupted_enrollment_is_skipped(client, service, enrollment_store):
    descriptor = random_descriptor(7)
    register(client, descriptor=descriptor)
    enrollment_store.add('Broken', 'broken@example.com', load_stored_descriptor('oops'))
    
    response = submit(client, descriptor, T0)
    
    assert response.status_code == 200
    assert response.get_json()['outcome'] == 'MATCHED_CHECK_IN'


def test_unexpected_attendance_error_returns_json(client, service, monkeypatch):
    def broken():
        raise RuntimeError('boom')
    
    monkeypatch.setattr(service.enrollment_store, 'list_all', broken)
    
    response = submit(client, random_descriptor(7), T0)
    
    assert response.status_code == 500
    assert response.is_json
    assert response.get_json() == {'error': 'Failed to process attendance'}


def test_unexpected_register_error_returns_json(client, service, monkeypatch):
    def broken(name, email, descriptor):
        raise RuntimeError('boom')
    
    monkeypatch.setattr(service.enrollment_store, 'add', broken)
    
    response = register(client)
    
    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to register user'}


def test_unknown_route_stays_404(client):
    assert client.get('/api/nowhere').status_code == 404

from unittest import mock

import numpy as np
import pytest
import requests

from attendance_service.events import WEBHOOK_TIMEOUT_SECONDS, EventNotifier
from attendance_service.models import AttendanceEvent, EventKind, Identity

from .conftest import T0, make_config


@pytest.fixture
def identity():
    return Identity(id=3, name='Eve', email='eve@example.com', descriptor=np.zeros(4))


@pytest.fixture
def check_in():
    return AttendanceEvent(
        identity_id=3, kind=EventKind.CHECK_IN, timestamp=T0, similarity=0.91, latency_ms=80.0, id=1
    )


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


def webhook_response(status_code):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = ''
    return response


def notifier_for(session, url='http://hooks.test/attendance'):
    return EventNotifier(
        make_config(event_webhook_url=url), session=session, initial_delay=0
    )


def test_disabled_without_webhook(session, identity, check_in):
    notifier = notifier_for(session, url=None)
    
    assert not notifier.enabled
    assert notifier.send(identity, check_in) is False
    session.post.assert_not_called()


def test_posts_event_payload(session, identity, check_in):
    session.post.return_value = webhook_response(204)
    
    assert notifier_for(session).send(identity, check_in) is True
    
    session.post.assert_called_once()
    assert session.post.call_args.args == ('http://hooks.test/attendance',)
    assert session.post.call_args.kwargs['json'] == {
        'identityId': 3,
        'name': 'Eve',
        'email': 'eve@example.com',
        'type': 'CHECK_IN',
        'timestamp': '2024-03-01T09:00:00+00:00',
        'similarity': 0.91,
        'latencyMs': 80.0,
    }


def test_retries_then_succeeds(session, identity, check_in):
    session.post.side_effect = [requests.exceptions.ConnectionError('down'), webhook_response(200)]
    
    assert notifier_for(session).send(identity, check_in) is True
    assert session.post.call_count == 2


def test_gives_up_after_max_attempts(session, identity, check_in):
    session.post.side_effect = requests.exceptions.Timeout('slow')
    
    assert notifier_for(session).send(identity, check_in) is False
    assert session.post.call_count == 3


def test_server_error_is_retried(session, identity, check_in):
    session.post.side_effect = [webhook_response(503), webhook_response(200)]
    
    assert notifier_for(session).send(identity, check_in) is True
    assert session.post.call_count == 2


def test_client_error_is_not_retried(session, identity, check_in):
    session.post.return_value = webhook_response(400)
    
    assert notifier_for(session).send(identity, check_in) is False
    assert session.post.call_count == 1


def test_uses_short_dedicated_timeout(session, identity, check_in):
    session.post.return_value = webhook_response(200)
    
    notifier_for(session).send(identity, check_in)
    
    assert session.post.call_args.kwargs['timeout'] == WEBHOOK_TIMEOUT_SECONDS


def test_send_async_delivers_in_background(session, identity, check_in):
    session.post.return_value = webhook_response(200)
    
    thread = notifier_for(session).send_async(identity, check_in)
    thread.join(timeout=5)
    
    assert not thread.is_alive()
    session.post.assert_called_once()


def test_send_async_disabled_without_webhook(session, identity, check_in):
    assert notifier_for(session, url=None).send_async(identity, check_in) is None
    session.post.assert_not_called()

"""
Pytest fixtures and configuration for NoteSync tests
"""
import os
import tempfile

import pytest

# Keep generated secrets and settings out of the working directory
os.environ.setdefault('NOTESYNC_CONFIG_DIR', tempfile.mkdtemp(prefix='notesync-tests-'))

from notesync.app import create_app  # noqa: E402
from notesync.auth import register_user  # noqa: E402
from notesync.db import db  # noqa: E402


class RecordingSubscriber:
    """Broadcaster subscriber that keeps every (event, payload) it receives.

    Reads wait for the broadcaster's delivery threads to drain first.
    """

    def __init__(self, broadcaster):
        self.broadcaster = broadcaster
        self._events = []

    def __call__(self, event, payload):
        self._events.append((event, payload))

    @property
    def events(self):
        assert self.broadcaster.flush(), "event delivery did not drain"
        return list(self._events)

    def of(self, event):
        return [payload for name, payload in self.events if name == event]

    def actions(self):
        return [payload['action'] for payload in self.of('noteUpdated')]

    def clear(self):
        self.broadcaster.flush()
        self._events.clear()


@pytest.fixture
def app_config():
    """App configuration for tests"""
    return {
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'JWT_SECRET': 'test-access-secret',
        'JWT_REFRESH_SECRET': 'test-refresh-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'RATELIMIT_ENABLED': False,
        'REMINDERS_ENABLED': False,
        'REALTIME_REQUIRE_AUTH': True,
    }


@pytest.fixture
def app(app_config):
    _app = create_app(app_config)

    # The outer app context below is reused by every test-client request, so
    # flask.g would outlive each request. Drop Flask-Login's per-request user
    # cache so each request resolves its own user, as under a real server.
    @_app.before_request
    def _reset_login_cache():
        from flask import g
        g.pop('_login_user', None)

    with _app.app_context():
        yield _app
        db.session.remove()
        db.drop_all()
    _app.extensions['notesync.broadcaster'].stop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def broadcaster(app):
    return app.extensions['notesync.broadcaster']


@pytest.fixture
def recorder(broadcaster):
    """Anonymous subscriber: receives every event regardless of owner"""
    subscriber = RecordingSubscriber(broadcaster)
    broadcaster.subscribe(subscriber)
    return subscriber


@pytest.fixture
def notes(app):
    return app.extensions['notesync.notes']


@pytest.fixture
def tags(app):
    return app.extensions['notesync.tags']


@pytest.fixture
def user(app):
    return register_user('alice@example.com', 'password123')


@pytest.fixture
def other_user(app):
    return register_user('bob@example.com', 'password456')


def _login(client, username, password):
    response = client.post('/api/users/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['data']


@pytest.fixture
def login_as(client):
    """Log in through the API and return the token pair"""
    def do_login(username, password):
        return _login(client, username, password)
    return do_login


@pytest.fixture
def tokens(client, user):
    return _login(client, 'alice@example.com', 'password123')


@pytest.fixture
def auth_headers(tokens):
    return {'Authorization': f"Bearer {tokens['accessToken']}"}


@pytest.fixture
def other_auth_headers(client, other_user):
    other_tokens = _login(client, 'bob@example.com', 'password456')
    return {'Authorization': f"Bearer {other_tokens['accessToken']}"}

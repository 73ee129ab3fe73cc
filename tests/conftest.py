"""Shared fixtures for envato_server tests."""

from unittest.mock import MagicMock

import pytest
import requests

from envato_server.app import create_app
from envato_server.config import Settings
from envato_server.db import init_db, make_engine, make_session_factory
from envato_server.envato import EnvatoClient
from envato_server.models import User

PURCHASE = {
    "item_id": 123,
    "item_name": "Theme X",
    "buyer": "bob",
    "supported_until": "2024-01-01T00:00:00+11:00",
    "licence": "Regular License",
}


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.text = ""
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    if payload is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture()
def make_response():
    return _response


@pytest.fixture()
def purchase_payload():
    """A verify-purchase body for a code whose support ended on 2024-01-01."""
    return {"verify-purchase": dict(PURCHASE)}


@pytest.fixture()
def http(purchase_payload):
    """A mocked requests session; every GET answers with a valid purchase by default."""
    session = MagicMock(spec=requests.Session)
    session.get.return_value = _response(200, purchase_payload)
    return session


@pytest.fixture()
def client(http):
    return EnvatoClient("test-token", session=http)


@pytest.fixture()
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def make_user(session_factory):
    def _make(username, email=None):
        with session_factory() as session:
            user = User(username=username, email=email or f"{username}@example.com")
            user.set_password("secret")
            session.add(user)
            session.commit()
            return user.id
    return _make


@pytest.fixture()
def mailer():
    m = MagicMock()
    m.send.return_value = True
    return m


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        SECRET_KEY="test-secret",
        ENVATO_TOKEN="test-token",
        SUPPORT_MAILBOX="support@example.com",
        DATABASE_URL=f"sqlite:///{tmp_path / 'app.db'}",
        HELPSCOUT_SECRET="hs-secret",
        LOG_LEVEL="WARNING",
        LOG_FILE="",
    )


@pytest.fixture()
def app(settings, client, mailer):
    return create_app(settings, client=client, mailer=mailer)


@pytest.fixture()
def web(app):
    return app.test_client()

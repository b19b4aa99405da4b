"""
Shared fixtures: a fake upstream session that records every call and a Flask
test client wired to it.
"""

import io

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from ghproxy.config import ProxyConfig
from ghproxy.main import create_app


def make_upstream(status=200, body=b'', headers=None, raw=None):
    """Build a real requests.Response backed by an in-memory body."""
    resp = requests.Response()
    resp.status_code = status
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.raw = raw if raw is not None else io.BytesIO(body)
    return resp


def _drain(data):
    if data is None:
        return b''
    if hasattr(data, 'read'):
        return data.read()
    return b''.join(data)


class FakeSession:
    """Stands in for requests.Session; counts upstream calls."""

    def __init__(self):
        self.calls = []
        self.response = make_upstream()
        self.error = None

    def request(self, method, url, headers=None, data=None, **kwargs):
        self.calls.append({
            'method': method,
            'url': url,
            'headers': CaseInsensitiveDict(headers or {}),
            'body': _drain(data),
            'kwargs': kwargs,
        })
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def config():
    return ProxyConfig()


@pytest.fixture
def app(config, session):
    return create_app(config, session=session)


@pytest.fixture
def client(app):
    return app.test_client()

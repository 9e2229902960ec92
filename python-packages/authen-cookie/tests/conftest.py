"""Shared pytest fixtures for authen-cookie tests."""

import pytest

from authen_cookie.app import create_app
from authen_cookie.config import GateConfig
from authen_cookie.gate import AuthResult


class FakeAuthenticator:
    """Stand-in for the NTLM handshake that records how often it ran."""

    def __init__(self, result=None):
        self.result = result or AuthResult(200, identity="alice")
        self.calls = 0

    def authenticate(self, request):
        self.calls += 1
        return self.result


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now=1_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def authenticator():
    return FakeAuthenticator()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gate_config():
    return GateConfig(secret="test-secret")


@pytest.fixture
def app(gate_config, authenticator):
    """Flask test app gated by the fake authenticator."""
    return create_app(config=gate_config, authenticator=authenticator, testing=True)


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def gate(app):
    """Session gate from the app config."""
    return app.config["SESSION_GATE"]

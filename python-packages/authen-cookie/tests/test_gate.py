"""Tests for SessionGate fast/slow path decisions."""

from types import SimpleNamespace

import pytest

from authen_cookie._token import decode, encode, from_cookie_value, issue, to_cookie_value
from authen_cookie.config import GateConfig
from authen_cookie.gate import AuthResult, SessionGate
from authen_cookie.secret import SecretProvider

from conftest import FakeAuthenticator


def _request(cookies=None):
    return SimpleNamespace(cookies=cookies or {})


@pytest.fixture
def config():
    return GateConfig(secret="s3cr3t", refresh=3600, domain=".corp.example", path="/")


@pytest.fixture
def gate(config, authenticator, clock):
    return SessionGate(config, authenticator, clock=clock)


def _cookie_for(identity, issued_at, secret="s3cr3t"):
    return {"NTLM_AUTHEN": to_cookie_value(issue(identity, issued_at, secret))}


def test_fast_path_skips_authenticator(gate, authenticator, clock):
    outcome = gate.handle(_request(_cookie_for("bob", clock.now - 10)))
    assert outcome.ok
    assert outcome.fast_path
    assert outcome.identity == "bob"
    assert outcome.cookie is None
    assert authenticator.calls == 0


def test_no_cookie_runs_authenticator_and_issues_cookie(gate, authenticator, clock):
    outcome = gate.handle(_request())
    assert outcome.ok
    assert not outcome.fast_path
    assert outcome.identity == "alice"
    assert authenticator.calls == 1

    token = decode(from_cookie_value(outcome.cookie.value))
    assert token.identity == "alice"
    assert token.issued_at == clock.now
    assert outcome.cookie.name == "NTLM_AUTHEN"
    assert outcome.cookie.attributes == {"domain": ".corp.example", "path": "/"}


def test_issued_cookie_is_accepted_next_time(gate, authenticator, clock):
    first = gate.handle(_request())
    clock.advance(60)
    second = gate.handle(_request({first.cookie.name: first.cookie.value}))
    assert second.fast_path
    assert second.identity == "alice"
    assert authenticator.calls == 1


def test_stale_cookie_falls_through(gate, authenticator, clock):
    outcome = gate.handle(_request(_cookie_for("bob", clock.now - 3600)))
    assert outcome.ok
    assert not outcome.fast_path
    assert outcome.identity == "alice"
    assert authenticator.calls == 1


def test_forged_cookie_falls_through(gate, authenticator, clock):
    forged = to_cookie_value(encode("0" * 40, clock.now, "admin"))
    outcome = gate.handle(_request({"NTLM_AUTHEN": forged}))
    assert outcome.identity == "alice"
    assert authenticator.calls == 1


@pytest.mark.parametrize("value", ["", "garbage", "%ff%fe", "x" * 500])
def test_garbled_cookie_falls_through(gate, authenticator, value):
    outcome = gate.handle(_request({"NTLM_AUTHEN": value}))
    assert outcome.ok
    assert authenticator.calls == 1


def test_cookie_under_other_name_is_ignored(gate, authenticator, clock):
    cookie = to_cookie_value(issue("bob", clock.now, "s3cr3t"))
    gate.handle(_request({"OTHER": cookie}))
    assert authenticator.calls == 1


def test_authenticator_failure_propagates_verbatim(config, clock):
    challenge = {"WWW-Authenticate": "NTLM TlRMTVNTUAACAAAA"}
    authenticator = FakeAuthenticator(AuthResult(401, headers=challenge))
    gate = SessionGate(config, authenticator, clock=clock)

    outcome = gate.handle(_request())
    assert outcome.status == 401
    assert outcome.headers == challenge
    assert outcome.cookie is None
    assert outcome.identity is None


def test_authenticator_other_status_propagates(config, clock):
    gate = SessionGate(config, FakeAuthenticator(AuthResult(503)), clock=clock)
    assert gate.handle(_request()).status == 503


def test_success_without_identity_issues_no_cookie(config, clock):
    gate = SessionGate(config, FakeAuthenticator(AuthResult(200)), clock=clock)
    outcome = gate.handle(_request())
    assert outcome.ok
    assert outcome.identity is None
    assert outcome.cookie is None


def test_rotated_secret_forces_reauthentication(authenticator, clock):
    secrets = iter(["old", "new"])
    provider = SecretProvider(fingerprint=lambda: next(secrets))
    gate = SessionGate(GateConfig(), authenticator, secret_provider=provider, clock=clock)

    cookie = gate.handle(_request()).cookie
    assert authenticator.calls == 1

    provider.reset()
    outcome = gate.handle(_request({cookie.name: cookie.value}))
    assert not outcome.fast_path
    assert authenticator.calls == 2


def test_legacy_digest_accepts_original_cookies(authenticator, clock):
    config = GateConfig(secret="s3cr3t", digest="sha1")
    gate = SessionGate(config, authenticator, clock=clock)
    legacy = to_cookie_value(issue("carol", clock.now - 5, "s3cr3t", algorithm="sha1"))
    assert gate.lookup(_request({"NTLM_AUTHEN": legacy})) == "carol"


def test_lookup_returns_none_without_cookie(gate):
    assert gate.lookup(_request()) is None


def test_auth_result_default_headers_are_read_only():
    first = AuthResult(401)
    with pytest.raises(TypeError):
        first.headers["WWW-Authenticate"] = "NTLM"
    assert AuthResult(401).headers == {}


def test_outcome_headers_are_copies(config, clock):
    headers = {"WWW-Authenticate": "NTLM"}
    gate = SessionGate(config, FakeAuthenticator(AuthResult(401, headers=headers)), clock=clock)
    outcome = gate.handle(_request())
    outcome.headers["X-Extra"] = "1"
    assert headers == {"WWW-Authenticate": "NTLM"}

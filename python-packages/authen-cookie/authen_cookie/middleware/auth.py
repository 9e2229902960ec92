"""Cookie-cached authentication middleware for authen-cookie."""

import functools

from flask import after_this_request, current_app, g, jsonify, request

from ..gate import SessionGate


def _gated_call(gate: SessionGate, f, args, kwargs):
    outcome = gate.handle(request)

    if not outcome.ok:
        return jsonify({"error": "Authentication required"}), outcome.status, dict(outcome.headers)

    g.identity = outcome.identity

    cookie = outcome.cookie
    extra_headers = dict(outcome.headers)
    if cookie is not None or extra_headers:
        @after_this_request
        def bake_cookie(response):
            if cookie is not None:
                response.set_cookie(cookie.name, cookie.value, **cookie.attributes)
            for name, value in extra_headers.items():
                response.headers[name] = value
            return response

    return f(*args, **kwargs)


def require_identity(f):
    """Decorator that authenticates through the app's session gate.

    The gate is read from ``current_app.config["SESSION_GATE"]``. On success,
    sets ``g.identity`` to the authenticated principal and, when the
    authenticator had to run, attaches a fresh cookie to the response.

    On failure, returns JSON with the authenticator's status and headers::

        {"error": "Authentication required"}
    """
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        return _gated_call(current_app.config["SESSION_GATE"], f, args, kwargs)

    return wrapper


def protected_by(gate: SessionGate):
    """Like :func:`require_identity`, but bound to a specific gate.

    Use one gate per protected resource when resources need different
    secrets, refresh windows or cookie names::

        reports_gate = SessionGate(GateConfig(cookie_name="REPORTS"), authenticator)

        @bp.get("/reports")
        @protected_by(reports_gate)
        def reports():
            ...
    """
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            return _gated_call(gate, f, args, kwargs)

        return wrapper

    return decorator

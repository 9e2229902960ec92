"""Flask application factory for authen-cookie."""

import logging
import os

from flask import Flask, g, jsonify, request

from .authenticators import RemoteUserAuthenticator
from .config import GateConfig, config_from_env
from .gate import Authenticator, SessionGate
from .middleware.auth import require_identity
from .secret import SecretProvider

logger = logging.getLogger(__name__)


def create_app(
    config: GateConfig | None = None,
    authenticator: Authenticator | None = None,
    secret_provider: SecretProvider | None = None,
    testing: bool = False,
) -> Flask:
    """Flask application factory.

    Environment variables:
        AUTHEN_COOKIE_CONFIG           — JSON file with gate settings. Also the
                                         default secret fingerprint source.
        AUTHEN_COOKIE_SECRET           — Explicit signing secret.
        AUTHEN_COOKIE_REFRESH          — Cookie validity in seconds (default 3600).
        AUTHEN_COOKIE_NAME             — Cookie name (default NTLM_AUTHEN).
        AUTHEN_COOKIE_EXPIRES / _DOMAIN / _PATH
                                       — Passed through to Set-Cookie.
        AUTHEN_COOKIE_DIGEST           — hmac-sha1 (default) or sha1.
        AUTHEN_COOKIE_FINGERPRINT_FILE — File whose mtime+inode form the secret.
        AUTHEN_COOKIE_USER_HEADER      — Trusted header carrying the user name
                                         when REMOTE_USER is not set.

    Args:
        config: Gate settings. Defaults to the environment (see above).
        authenticator: Slow-path authenticator. Defaults to
            RemoteUserAuthenticator.
        secret_provider: Override the secret source (useful in tests).
        testing: Set Flask testing mode (disables error catching).

    Returns:
        Configured Flask application.

    Raises:
        ConfigError: If the settings are invalid or no secret can be resolved.
    """
    app = Flask(__name__)
    app.config["TESTING"] = testing

    # -------------------------------------------------------------------------
    # Gate settings and secret
    # -------------------------------------------------------------------------
    if config is None:
        config = config_from_env()

    if secret_provider is None:
        secret_provider = SecretProvider.from_config(config)
    secret_provider.resolve()  # fail at startup, not on the first request

    if not config.secret:
        logger.info(
            "No explicit secret set — deriving it from %s. "
            "Editing that file invalidates all issued cookies.",
            config.fingerprint_file or "the injected fingerprint",
        )

    # -------------------------------------------------------------------------
    # Authenticator and gate
    # -------------------------------------------------------------------------
    if authenticator is None:
        authenticator = RemoteUserAuthenticator(
            header=os.environ.get("AUTHEN_COOKIE_USER_HEADER") or None
        )

    gate = SessionGate(config, authenticator, secret_provider=secret_provider)
    app.config["GATE_CONFIG"] = config
    app.config["SESSION_GATE"] = gate

    # -------------------------------------------------------------------------
    # Request logging
    # -------------------------------------------------------------------------
    @app.after_request
    def log_request(response):
        logger.info("%s %s %d", request.method, request.path, response.status_code)
        return response

    # -------------------------------------------------------------------------
    # Health check — no auth required
    # -------------------------------------------------------------------------
    @app.get("/health")
    def health():
        return jsonify({"ok": True, "cookieName": config.cookie_name})

    # -------------------------------------------------------------------------
    # Protected identity echo
    # -------------------------------------------------------------------------
    @app.get("/whoami")
    @require_identity
    def whoami():
        return jsonify({"identity": g.identity})

    return app

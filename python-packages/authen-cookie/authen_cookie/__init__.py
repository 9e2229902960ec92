"""authen-cookie - cache an expensive authentication handshake in a signed cookie.

Example:
    >>> from authen_cookie import GateConfig, SessionGate, protected_by
    >>> gate = SessionGate(GateConfig(secret="change-me"), my_ntlm_authenticator)
    >>> @app.get("/intranet")
    ... @protected_by(gate)
    ... def intranet():
    ...     return f"Hello {g.identity}"
"""

from ._token import (
    DecodedToken,
    TokenCheck,
    compute_digest,
    decode,
    encode,
    issue,
    validate,
)
from .authenticators import RemoteUserAuthenticator
from .config import GateConfig, config_from_env, load_config
from .errors import AuthenCookieError, ConfigError
from .gate import AuthResult, Authenticator, GateOutcome, IssuedCookie, SessionGate
from .middleware.auth import protected_by, require_identity
from .secret import FileFingerprint, SecretProvider, file_fingerprint, resolve_secret

__version__ = "0.1.0"
__all__ = [
    # Gate
    "SessionGate",
    "GateOutcome",
    "IssuedCookie",
    "Authenticator",
    "AuthResult",
    "RemoteUserAuthenticator",
    # Flask middleware
    "require_identity",
    "protected_by",
    # Token primitives
    "encode",
    "decode",
    "compute_digest",
    "validate",
    "issue",
    "DecodedToken",
    "TokenCheck",
    # Secret
    "SecretProvider",
    "FileFingerprint",
    "file_fingerprint",
    "resolve_secret",
    # Config
    "GateConfig",
    "load_config",
    "config_from_env",
    # Errors
    "AuthenCookieError",
    "ConfigError",
]

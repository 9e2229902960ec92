"""Authenticator adapters for authen-cookie."""

from http import HTTPStatus
from typing import Any, Optional

from .gate import AuthResult


class RemoteUserAuthenticator:
    """Trust the identity established by the server in front of the app.

    The NTLM / Negotiate handshake itself is done upstream (IIS, Apache with
    mod_auth_sspi or mod_auth_ntlm_winbind, a reverse proxy, ...), which
    exposes the result as the ``REMOTE_USER`` WSGI variable or, behind a
    proxy, as a trusted request header.

    Args:
        header: Name of a trusted header carrying the user name. Only set
            this when the proxy strips the header from client requests.
        challenge: ``WWW-Authenticate`` value sent back when no user is
            present, which makes the browser start the handshake.
    """

    def __init__(self, header: Optional[str] = None, challenge: str = "NTLM") -> None:
        self.header = header
        self.challenge = challenge

    def authenticate(self, request: Any) -> AuthResult:
        user = request.environ.get("REMOTE_USER")
        if not user and self.header:
            user = request.headers.get(self.header)

        if not user:
            return AuthResult(
                int(HTTPStatus.UNAUTHORIZED),
                headers={"WWW-Authenticate": self.challenge},
            )
        return AuthResult(int(HTTPStatus.OK), identity=user)

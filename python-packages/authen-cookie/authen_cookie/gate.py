"""Session gate: trust a valid identity cookie, otherwise run the authenticator."""

import logging
import time
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple, Optional, Protocol

from . import _token
from .config import GateConfig
from .secret import SecretProvider

logger = logging.getLogger(__name__)

OK = int(HTTPStatus.OK)


class AuthResult(NamedTuple):
    """What an :class:`Authenticator` reports for one request.

    ``status`` is ``200`` on success, in which case ``identity`` names the
    verified principal. Any other status is a failure; ``headers`` (for
    example a ``WWW-Authenticate`` challenge for the next handshake round)
    are sent back with it unchanged. The default ``headers`` is an empty
    read-only mapping; pass a fresh dict to add headers.
    """

    status: int
    identity: Optional[str] = None
    headers: Mapping[str, str] = MappingProxyType({})

    @property
    def ok(self) -> bool:
        return self.status == OK


class Authenticator(Protocol):
    """The expensive handshake the cookie saves us from repeating."""

    def authenticate(self, request: Any) -> AuthResult: ...


@dataclass(frozen=True)
class IssuedCookie:
    """A freshly minted cookie plus its pass-through attributes."""

    name: str
    value: str
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GateOutcome:
    status: int
    identity: Optional[str] = None
    cookie: Optional[IssuedCookie] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    fast_path: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OK


class SessionGate:
    """Per-resource gate in front of an :class:`Authenticator`.

    Requests carrying a valid, fresh cookie are accepted without touching
    the authenticator. Everything else (no cookie, stale cookie, forged or
    garbled cookie) goes through the authenticator, and a successful
    authentication earns a new cookie.

    Args:
        config: Settings for the protected resource.
        authenticator: Performs the real authentication on the slow path.
        secret_provider: Source of the signing secret. Defaults to one built
            from ``config``.
        clock: Returns the current time in seconds since the epoch.
    """

    def __init__(
        self,
        config: GateConfig,
        authenticator: Authenticator,
        secret_provider: Optional[SecretProvider] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.authenticator = authenticator
        self.secret_provider = secret_provider or SecretProvider.from_config(config)
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def lookup(self, request: Any) -> Optional[str]:
        """Return the identity from the request's cookie, or None if absent/invalid."""
        value = request.cookies.get(self.config.cookie_name)
        if not value:
            return None

        check = _token.validate(
            _token.from_cookie_value(value),
            now=self._now(),
            secret=self.secret_provider.resolve(),
            refresh=self.config.refresh,
            algorithm=self.config.digest,
        )
        logger.debug(
            "Cookie %s is %s", self.config.cookie_name, "valid" if check.valid else "invalid"
        )
        return check.identity

    def issue_cookie(self, identity: str) -> IssuedCookie:
        """Mint a cookie for an identity the authenticator has just verified."""
        record = _token.issue(
            identity,
            now=self._now(),
            secret=self.secret_provider.resolve(),
            algorithm=self.config.digest,
        )
        return IssuedCookie(
            name=self.config.cookie_name,
            value=_token.to_cookie_value(record),
            attributes=self.config.cookie_attributes(),
        )

    def handle(self, request: Any) -> GateOutcome:
        """Authenticate one request.

        The gate never fails on its own: a failed outcome always carries the
        authenticator's status and headers verbatim.
        """
        identity = self.lookup(request)
        if identity is not None:
            return GateOutcome(status=OK, identity=identity, fast_path=True)

        logger.debug("No valid cookie, calling %s", type(self.authenticator).__name__)
        result = self.authenticator.authenticate(request)
        if not result.ok:
            return GateOutcome(status=result.status, headers=dict(result.headers))

        if result.identity is None:
            logger.warning(
                "%s succeeded without an identity; no cookie issued",
                type(self.authenticator).__name__,
            )
            return GateOutcome(status=OK, headers=dict(result.headers))

        cookie = self.issue_cookie(result.identity)
        logger.debug("Issuing cookie %s for %s", cookie.name, result.identity)
        return GateOutcome(
            status=OK,
            identity=result.identity,
            cookie=cookie,
            headers=dict(result.headers),
        )

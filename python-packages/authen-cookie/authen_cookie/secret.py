"""Signing secret resolution for authen-cookie."""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from .config import GateConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

Fingerprint = Callable[[], str]


def file_fingerprint(path: Path | str) -> str:
    """Derive a secret from a file's modification time and inode.

    Any edit (new mtime) or replacement (new inode) of the file changes the
    result, which invalidates every cookie signed with the previous value.

    Raises:
        ConfigError: If the file cannot be stat'ed.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        raise ConfigError(
            f"Cannot derive secret from {path}: {e}", option="fingerprint_file"
        ) from e
    return f"{int(st.st_mtime)}{st.st_ino}"


class FileFingerprint:
    """Fingerprint strategy bound to one file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __call__(self) -> str:
        return file_fingerprint(self.path)

    def __repr__(self) -> str:
        return f"FileFingerprint({str(self.path)!r})"


def resolve_secret(
    explicit: Optional[str] = None,
    fingerprint: Optional[Fingerprint] = None,
) -> str:
    """Return the explicit secret, or derive one from ``fingerprint``.

    Raises:
        ConfigError: If neither is available, or the fingerprint source fails.
    """
    if explicit:
        return explicit
    if fingerprint is None:
        raise ConfigError(
            "No secret configured and no fingerprint file to derive one from",
            option="secret",
        )
    return fingerprint()


class SecretProvider:
    """Lazily resolved, cached signing secret for one protected resource.

    Thread-safe: the first resolution happens under a lock, later reads are
    lock-free.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        fingerprint: Optional[Fingerprint] = None,
    ) -> None:
        self._explicit = secret
        self._fingerprint = fingerprint
        self._lock = threading.Lock()
        self._cached: Optional[str] = None

    @classmethod
    def from_config(cls, config: GateConfig) -> "SecretProvider":
        fingerprint = None
        if config.fingerprint_file:
            fingerprint = FileFingerprint(config.fingerprint_file)
        return cls(secret=config.secret, fingerprint=fingerprint)

    def resolve(self) -> str:
        secret = self._cached
        if secret is not None:
            return secret
        with self._lock:
            if self._cached is None:
                self._cached = resolve_secret(self._explicit, self._fingerprint)
                source = "configuration" if self._explicit else repr(self._fingerprint)
                logger.debug("Signing secret resolved from %s", source)
            return self._cached

    def reset(self) -> None:
        """Forget the cached secret; the next :meth:`resolve` derives it again."""
        with self._lock:
            self._cached = None

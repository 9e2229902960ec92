"""Configuration management for authen-cookie."""

import json
import os
from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Any, Mapping

from ._token import DEFAULT_DIGEST, DIGEST_ALGORITHMS
from .errors import ConfigError

DEFAULT_COOKIE_NAME = "NTLM_AUTHEN"
DEFAULT_REFRESH = 3600  # seconds

CONFIG_FILE_ENV = "AUTHEN_COOKIE_CONFIG"

# GateConfig field -> environment variable
_ENV_VARS = {
    "secret": "AUTHEN_COOKIE_SECRET",
    "refresh": "AUTHEN_COOKIE_REFRESH",
    "cookie_name": "AUTHEN_COOKIE_NAME",
    "expires": "AUTHEN_COOKIE_EXPIRES",
    "domain": "AUTHEN_COOKIE_DOMAIN",
    "path": "AUTHEN_COOKIE_PATH",
    "digest": "AUTHEN_COOKIE_DIGEST",
    "fingerprint_file": "AUTHEN_COOKIE_FINGERPRINT_FILE",
}

_OPTIONAL_STRINGS = ("secret", "expires", "domain", "path", "fingerprint_file")


@dataclass(frozen=True)
class GateConfig:
    """Settings for one protected resource.

    ``expires``, ``domain`` and ``path`` are handed to the cookie untouched.
    When ``secret`` is unset the signing secret is derived from the
    modification time and inode of ``fingerprint_file``.
    """

    secret: str | None = None
    refresh: int = DEFAULT_REFRESH
    cookie_name: str = DEFAULT_COOKIE_NAME
    expires: str | None = None
    domain: str | None = None
    path: str | None = None
    digest: str = DEFAULT_DIGEST
    fingerprint_file: str | None = None

    def __post_init__(self) -> None:
        for name in _OPTIONAL_STRINGS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {value!r}", option=name)
        for name in ("cookie_name", "digest"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {value!r}", option=name)
        if isinstance(self.refresh, bool) or not isinstance(self.refresh, int):
            raise ConfigError(f"refresh must be an integer, got {self.refresh!r}", option="refresh")
        if self.refresh <= 0:
            raise ConfigError("refresh must be a positive number of seconds", option="refresh")
        if not self.cookie_name:
            raise ConfigError("cookie_name must not be empty", option="cookie_name")
        if self.digest not in DIGEST_ALGORITHMS:
            raise ConfigError(
                f"Unknown digest algorithm {self.digest!r} "
                f"(expected one of: {', '.join(sorted(DIGEST_ALGORITHMS))})",
                option="digest",
            )

    def cookie_attributes(self) -> dict[str, str]:
        """Return the configured pass-through cookie attributes."""
        attrs = {"expires": self.expires, "domain": self.domain, "path": self.path}
        return {k: v for k, v in attrs.items() if v}

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GateConfig":
        """Create config from dictionary.

        Accepts the snake_case field names plus the camelCase spellings
        ``cookieName``, ``tokenName`` and ``fingerprintFile``.
        """
        return cls(
            secret=_blank_to_none(data.get("secret")),
            refresh=_parse_refresh(data.get("refresh", DEFAULT_REFRESH)),
            cookie_name=data.get(
                "cookie_name",
                data.get("cookieName", data.get("tokenName", DEFAULT_COOKIE_NAME)),
            ),
            expires=_blank_to_none(data.get("expires")),
            domain=_blank_to_none(data.get("domain")),
            path=_blank_to_none(data.get("path")),
            digest=data.get("digest", DEFAULT_DIGEST),
            fingerprint_file=_blank_to_none(data.get("fingerprint_file", data.get("fingerprintFile"))),
        )


def _blank_to_none(value: Any) -> Any:
    # "" means unset; other values are type-checked by GateConfig
    return None if value == "" else value


def _parse_refresh(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"refresh must be an integer, got {value!r}", option="refresh") from None


def load_config(config_path: Path | str | None = None) -> GateConfig:
    """Load gate configuration from a JSON file.

    The file itself becomes the default secret fingerprint source, so editing
    it invalidates every cookie issued under the old contents.

    Args:
        config_path: Path to config file. If None, uses ``$AUTHEN_COOKIE_CONFIG``.

    Returns:
        GateConfig instance (defaults if no file is configured or it does not exist).

    Raises:
        ConfigError: If config file exists but cannot be parsed.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_FILE_ENV)
        if not config_path:
            return GateConfig()
    config_path = Path(config_path)

    if not config_path.exists():
        return GateConfig()

    try:
        with open(config_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    config = GateConfig.from_dict(data)
    if config.fingerprint_file is None:
        config = replace(config, fingerprint_file=str(config_path))
    return config


def config_from_env(
    environ: Mapping[str, str] | None = None,
    base: GateConfig | None = None,
) -> GateConfig:
    """Overlay ``AUTHEN_COOKIE_*`` environment variables on a config.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.
        base: Config to start from. Defaults to ``load_config()``.

    Returns:
        New GateConfig with every set variable applied.
    """
    if environ is None:
        environ = os.environ
    if base is None:
        base = load_config()

    overrides: dict[str, Any] = {}
    for field_name, var in _ENV_VARS.items():
        value = environ.get(var)
        if value:
            overrides[field_name] = value

    if "refresh" in overrides:
        overrides["refresh"] = _parse_refresh(overrides["refresh"])

    return replace(base, **overrides) if overrides else base

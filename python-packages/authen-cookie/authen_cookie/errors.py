"""Custom exception classes for authen-cookie."""


class AuthenCookieError(Exception):
    """Base exception class for authen-cookie errors."""

    pass


class ConfigError(AuthenCookieError):
    """Configuration-related errors.

    Raised while a gate is being set up (bad option values, unreadable config
    file, unavailable secret fingerprint). Never raised while handling a
    request.
    """

    def __init__(self, message: str, option: str | None = None):
        super().__init__(message)
        self.option = option

"""Error taxonomy shared by the crypto, store and auth layers."""


class AuthError(Exception):
    """Base class for every failure surfaced by register/login."""


class UserAlreadyExists(AuthError):
    def __init__(self, username: str):
        super().__init__(f"User '{username}' already exists")
        self.username = username


class BadCredentials(AuthError):
    """Wrong password. Hash mismatch and a failed tag check both end up here."""

    def __init__(self, message: str = "Bad credentials"):
        super().__init__(message)


class StoreUnavailable(BadCredentials):
    """The store answered with something other than the outcomes we expect,
    or could not be reached at all."""

    def __init__(self, message: str = "User store unavailable", status: int | None = None):
        super().__init__(message)
        self.status = status


class SchemaInvalid(AuthError, ValueError):
    """Malformed public-key record, byte array or stored record."""

"""Vault exception hierarchy.

Every error carries an HTTP status so the server can map it to a response
and the client can map a response back to the same class.
"""


class VaultError(Exception):
    """Base class for all vault errors."""

    status: int = 500

    def __init__(self, message: str = "", status: int | None = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        if status is not None:
            self.status = status

    def __str__(self) -> str:
        return self.message


class ValidationError(VaultError):
    """Missing or malformed request fields."""

    status = 400


class AuthenticationError(VaultError):
    """Bad credentials, or a missing/invalid/expired bearer token."""

    status = 401


class ConflictError(VaultError):
    """Username already registered."""

    status = 409


class DecryptionError(VaultError):
    """AEAD tag verification failed.

    Raised both for a wrong master secret and for corrupted or truncated
    ciphertext; the envelope format cannot tell them apart.
    """

    status = 422


class PersistenceError(VaultError):
    """Storage or network failure on read or write."""

    status = 500


_BY_STATUS = {
    400: ValidationError,
    401: AuthenticationError,
    409: ConflictError,
}


def error_for_status(status: int, message: str) -> VaultError:
    """Build the exception matching an HTTP error status.

    Unknown statuses become :class:`PersistenceError`.
    """
    cls = _BY_STATUS.get(status, PersistenceError)
    return cls(message, status=status)

"""Error taxonomy for passwdm.

Fatal for the session: ``Unauthorized``, ``FatalConfigError``, ``StoreError``.
Recoverable per entry: ``IntegrityError``, ``FormatError``.
"""


class VaultError(Exception):
    """Base class for all passwdm errors."""


class Unauthorized(VaultError):
    """Raised when the submitted master password does not match."""


class FatalConfigError(VaultError):
    """Raised when the config file is missing, unparseable or holds a bad key."""


class StoreError(VaultError):
    """Raised when the store file cannot be read, parsed or written."""


class CryptoError(VaultError):
    """Base class for payload decryption failures."""


class IntegrityError(CryptoError):
    """Raised when the authentication tag does not verify."""


class FormatError(CryptoError):
    """Raised when a payload cannot be split into nonce, ciphertext and tag."""


class EntryNotFound(VaultError, KeyError):
    """Raised when no entry carries the requested id."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class EntryStateError(VaultError):
    """Raised when an operation does not apply to the entry's lifecycle state."""

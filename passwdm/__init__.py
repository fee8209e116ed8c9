"""passwdm.

Local secrets vault: named credentials encrypted at rest,
gated by a master password.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    Unauthorized,
    FatalConfigError,
    StoreError,
    CryptoError,
    IntegrityError,
    FormatError,
    EntryNotFound,
    EntryStateError,
)
from .vault import (
    CredentialManager,
    EntryStore,
    Entry,
    Store,
    MasterConfig,
    MasterKey,
    load_config,
    write_config,
    generate_password,
)

__all__ = [
    "__version__",
    "VaultError",
    "Unauthorized",
    "FatalConfigError",
    "StoreError",
    "CryptoError",
    "IntegrityError",
    "FormatError",
    "EntryNotFound",
    "EntryStateError",
    "CredentialManager",
    "EntryStore",
    "Entry",
    "Store",
    "MasterConfig",
    "MasterKey",
    "load_config",
    "write_config",
    "generate_password",
]

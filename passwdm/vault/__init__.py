"""Vault — encrypted credential storage behind a master password.

Security Note (Threat Model):
    Decrypted secrets and the master key live in process memory while the
    session runs. The master key and the application password are read
    from config.json, which is protected only by file permissions.
"""

from .crypto import encrypt, decrypt
from .config import (
    MasterConfig,
    MasterKey,
    load_config,
    write_config,
    generate_master_key,
)
from .store import Entry, Store, EntryStore
from .passwords import generate_password
from .lifecycle import CredentialManager
from .key_rotation import rotate_master_key

__all__ = [
    "encrypt",
    "decrypt",
    "MasterConfig",
    "MasterKey",
    "load_config",
    "write_config",
    "generate_master_key",
    "Entry",
    "Store",
    "EntryStore",
    "generate_password",
    "CredentialManager",
    "rotate_master_key",
]

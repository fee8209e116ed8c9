"""
Vault Key Rotation — re-encryption of every entry under a new master key.

All entries, active and deprecated, are decrypted with the old key and
sealed again with the new one, then the store is saved once. Entries whose
payload no longer authenticates under the old key are left untouched and
counted as errors; they were unrecoverable before the rotation too.

Security Note:
    Plaintext exists in memory only during re-encryption of each entry.
    Never log plaintext or ciphertext values.
"""
import logging

from .crypto import decrypt, encrypt
from .config import MasterKey
from .store import EntryStore
from ..exceptions import CryptoError

logger = logging.getLogger("passwdm.vault")


def rotate_master_key(
    store: EntryStore,
    old_key: MasterKey,
    new_key: MasterKey,
) -> dict:
    """Re-encrypt all entries from ``old_key`` to ``new_key``.

    Args:
        store: Entry store to rewrite.
        old_key: Key the entries are currently sealed with.
        new_key: Key to seal them with.

    Returns:
        Stats dict with keys: total, rotated, errors.
    """
    stats = {"total": 0, "rotated": 0, "errors": 0}
    data = store.load()

    logger.info("Starting key rotation of %d entries", len(data))

    for entry in data.entries:
        stats["total"] += 1
        try:
            plaintext = decrypt(entry.secret, old_key.key, old_key.cipher)
        except CryptoError as err:
            logger.error(
                "Error rotating entry id=%s name=%r: %s",
                entry.id, entry.name, err,
            )
            stats["errors"] += 1
            continue
        entry.secret = encrypt(plaintext, new_key.key, new_key.cipher)
        stats["rotated"] += 1

    store.save(data)
    logger.info("Key rotation complete: %s", stats)
    return stats

"""
Credential Lifecycle — generate, retrieve, rotate and delete named credentials.

Each named credential moves through two states:
- **Active**: the current secret for its name.
- **Deprecated**: superseded by a rotation, kept for historical lookup.

``rotate()`` is the only path that deprecates a healthy entry. An entry whose
secret can no longer be decrypted is replaced outright by
``replace_corrupted()``, without deprecation.

Security Note:
    Generated passwords are returned to the caller once and only stored
    encrypted. Never log plaintext values; log entry ids and names only.
"""
import logging

from .crypto import encrypt, decrypt
from .config import MasterKey
from .passwords import generate_password, DEFAULT_LENGTH
from .store import Entry, EntryStore
from ..exceptions import EntryStateError

logger = logging.getLogger("passwdm.vault")


class CredentialManager:
    """Lifecycle operations atop the crypto engine and an entry store.

    The store is re-loaded right before every mutation so the save never
    clobbers state written since the previous read of this session.
    """

    def __init__(
        self,
        store: EntryStore,
        master_key: MasterKey,
        password_length: int = DEFAULT_LENGTH,
    ):
        self._store = store
        self._key = master_key
        self._password_length = password_length

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _seal(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key.key, self._key.cipher)

    def _new_entry(self, name: str) -> tuple[Entry, str]:
        password = generate_password(self._password_length)
        return Entry.new(name, self._seal(password)), password

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_active(self) -> list[Entry]:
        return self._store.load().list_active()

    def list_deprecated(self) -> list[Entry]:
        return self._store.load().list_deprecated()

    def names(self) -> list[str]:
        return self._store.load().names()

    def find(self, entry_id: str) -> Entry:
        return self._store.load().find_by_id(entry_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def generate(self, name: str) -> tuple[Entry, str]:
        """Create a new active entry with a freshly generated password.

        Args:
            name: App/site name; surrounding whitespace is stripped.

        Returns:
            Tuple of (new entry, plaintext password).

        Raises:
            ValueError: If the name is empty.
        """
        name = name.strip()
        if not name:
            raise ValueError("Entry name cannot be empty")
        entry, password = self._new_entry(name)
        store = self._store.load()
        store.append(entry)
        self._store.save(store)
        logger.info("Generated entry id=%s name=%r", entry.id, entry.name)
        return entry, password

    def retrieve(self, entry_id: str) -> str:
        """Decrypt the secret of an entry.

        Raises:
            EntryNotFound: If the id is unknown.
            IntegrityError: If the stored payload fails authentication.
            FormatError: If the stored payload cannot be parsed.
        """
        entry = self.find(entry_id)
        return decrypt(entry.secret, self._key.key, self._key.cipher)

    def replace_corrupted(self, entry_id: str) -> tuple[Entry, str]:
        """Delete an undecryptable entry and create a new active one in its place.

        Returns:
            Tuple of (new entry, plaintext password).
        """
        store = self._store.load()
        old = store.remove_by_id(entry_id)
        entry, password = self._new_entry(old.name)
        store.append(entry)
        self._store.save(store)
        logger.warning(
            "Replaced corrupted entry id=%s name=%r with id=%s",
            old.id, old.name, entry.id,
        )
        return entry, password

    def rotate(self, entry_id: str) -> tuple[Entry, str]:
        """Deprecate an active entry and create its replacement.

        Returns:
            Tuple of (new entry, plaintext password).

        Raises:
            EntryStateError: If the entry is already deprecated.
        """
        store = self._store.load()
        old = store.find_by_id(entry_id)
        if old.deprecated:
            raise EntryStateError(f"Entry {entry_id} is already deprecated")
        old.deprecate()
        entry, password = self._new_entry(old.name)
        store.append(entry)
        self._store.save(store)
        logger.info(
            "Rotated entry name=%r: deprecated id=%s, new id=%s",
            old.name, old.id, entry.id,
        )
        return entry, password

    def delete(self, name: str) -> int:
        """Remove every entry, active or deprecated, named ``name``.

        Returns:
            Number of entries removed.
        """
        return self._store.remove_all_by_name(name)

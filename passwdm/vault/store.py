"""
Entry Store — durable, ordered collection of encrypted credential entries.

Provides the persistence API used by the lifecycle controller:
- ``load()`` — read the store file (creating an empty one when missing)
- ``save(store)`` — atomically overwrite the whole store file
- ``list_active()`` / ``list_deprecated()`` / ``find_by_id()`` — queries
- ``remove_all_by_name(name)`` — drop every entry sharing a name

Security Note:
    Entries only ever hold ciphertext payloads. Never log ``secret`` values.
"""
import uuid
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import orjson
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import EntryNotFound, StoreError
from .config import write_private_file

logger = logging.getLogger("passwdm.vault")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_entry_id() -> str:
    return str(uuid.uuid4())


class Entry(BaseModel):
    """One stored credential, active or deprecated."""

    id: str = Field(default_factory=new_entry_id)
    name: str
    secret: str = Field(repr=False)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    deprecated: bool = False
    deprecated_at: Optional[datetime] = Field(default=None, alias="deprecatedAt")

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip surrounding whitespace and reject empty names."""
        v = v.strip()
        if not v:
            raise ValueError("Entry name cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_deprecation(self) -> "Entry":
        """Ensure deprecatedAt is set if and only if deprecated is true."""
        if self.deprecated and self.deprecated_at is None:
            raise ValueError(f"Entry {self.id} is deprecated without deprecatedAt")
        if not self.deprecated and self.deprecated_at is not None:
            raise ValueError(f"Entry {self.id} has deprecatedAt but is active")
        return self

    @classmethod
    def new(cls, name: str, secret: str) -> "Entry":
        """Build a fresh active entry."""
        return cls(name=name, secret=secret)

    def deprecate(self) -> None:
        """Mark this entry as superseded."""
        self.deprecated = True
        self.deprecated_at = utcnow()

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Store(BaseModel):
    """In-memory view of the store file; insertion order is creation order."""

    entries: list[Entry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "Store":
        """Ensure every entry id appears once."""
        seen = set()
        for entry in self.entries:
            if entry.id in seen:
                raise ValueError(f"Duplicate entry id: {entry.id}")
            seen.add(entry.id)
        return self

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, entry: Entry) -> None:
        if any(e.id == entry.id for e in self.entries):
            raise ValueError(f"Duplicate entry id: {entry.id}")
        self.entries.append(entry)

    def list_active(self) -> list[Entry]:
        return [e for e in self.entries if not e.deprecated]

    def list_deprecated(self) -> list[Entry]:
        return [e for e in self.entries if e.deprecated]

    def names(self) -> list[str]:
        """Distinct entry names, in first-seen order."""
        return list(dict.fromkeys(e.name for e in self.entries))

    def find_by_id(self, entry_id: str) -> Entry:
        """Return the entry with ``entry_id``.

        Raises:
            EntryNotFound: If no entry carries that id.
        """
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(f"No entry with id {entry_id}")

    def remove_by_id(self, entry_id: str) -> Entry:
        entry = self.find_by_id(entry_id)
        self.entries.remove(entry)
        return entry

    def remove_all_by_name(self, name: str) -> int:
        """Remove active and deprecated entries named ``name``.

        Returns:
            Number of entries removed.
        """
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.name != name]
        return before - len(self.entries)

    def to_json(self) -> bytes:
        data = {"entries": [e.to_dict() for e in self.entries]}
        return orjson.dumps(data, option=orjson.OPT_INDENT_2)


class EntryStore:
    """JSON-file backed Entry Store.

    The whole file is read on ``load()`` and rewritten on ``save()``; there
    is no locking, so concurrent writers are not detected.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<EntryStore path={str(self.path)!r}>"

    def load(self) -> Store:
        """Read the persisted store, creating an empty one when missing.

        Raises:
            StoreError: If the file cannot be read or parsed.
        """
        if not self.path.exists():
            store = Store()
            self.save(store)
            logger.info("Created empty store at %s", self.path)
            return store
        try:
            raw = self.path.read_bytes()
        except OSError as err:
            raise StoreError(f"Cannot read store {self.path}: {err}") from err
        try:
            store = Store.model_validate(orjson.loads(raw))
        except orjson.JSONDecodeError as err:
            raise StoreError(f"Store {self.path} is not valid JSON") from err
        except ValidationError as err:
            raise StoreError(
                f"Store {self.path} is invalid: {err.error_count()} error(s)"
            ) from err
        logger.debug("Loaded %d entries from %s", len(store), self.path)
        return store

    def save(self, store: Store) -> None:
        """Atomically overwrite the store file.

        Raises:
            StoreError: If the file cannot be written.
        """
        try:
            write_private_file(self.path, store.to_json())
        except OSError as err:
            raise StoreError(f"Cannot write store {self.path}: {err}") from err
        logger.debug("Saved %d entries to %s", len(store), self.path)

    # ------------------------------------------------------------------
    # Query helpers (always against the latest file contents)
    # ------------------------------------------------------------------

    def list_active(self) -> list[Entry]:
        return self.load().list_active()

    def list_deprecated(self) -> list[Entry]:
        return self.load().list_deprecated()

    def find_by_id(self, entry_id: str) -> Entry:
        return self.load().find_by_id(entry_id)

    def remove_all_by_name(self, name: str) -> int:
        store = self.load()
        removed = store.remove_all_by_name(name)
        self.save(store)
        logger.info("Removed %d entries named %r", removed, name)
        return removed

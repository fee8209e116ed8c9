"""
Tests for master key rotation.
"""
import os

import pytest

from passwdm.exceptions import IntegrityError
from passwdm.vault.config import MasterKey
from passwdm.vault.crypto import decrypt
from passwdm.vault.key_rotation import rotate_master_key


@pytest.fixture
def new_key():
    return MasterKey(key=os.urandom(32), cipher="chacha20")


class TestRotateMasterKey:

    def test_all_entries_reencrypted(self, manager, store, master_key, new_key):
        entry, _ = manager.generate("a.com")
        rotated, new_password = manager.rotate(entry.id)
        other, other_password = manager.generate("b.com")
        old_password = manager.retrieve(entry.id)

        stats = rotate_master_key(store, master_key, new_key)

        assert stats == {"total": 3, "rotated": 3, "errors": 0}
        data = store.load()
        secrets = {e.id: decrypt(e.secret, new_key.key, new_key.cipher) for e in data.entries}
        assert secrets == {
            entry.id: old_password,
            rotated.id: new_password,
            other.id: other_password,
        }
        assert data.find_by_id(entry.id).deprecated is True

    def test_old_key_no_longer_works(self, manager, store, master_key, new_key):
        entry, _ = manager.generate("a.com")
        rotate_master_key(store, master_key, new_key)
        with pytest.raises(IntegrityError):
            manager.retrieve(entry.id)

    def test_corrupted_entries_counted(self, manager, store, master_key, new_key):
        good, _ = manager.generate("good.com")
        bad, _ = manager.generate("bad.com")
        data = store.load()
        data.find_by_id(bad.id).secret = "not-a-payload"
        store.save(data)

        stats = rotate_master_key(store, master_key, new_key)

        assert stats == {"total": 2, "rotated": 1, "errors": 1}
        assert store.load().find_by_id(bad.id).secret == "not-a-payload"

    def test_empty_store(self, store, master_key, new_key):
        assert rotate_master_key(store, master_key, new_key) == {
            "total": 0, "rotated": 0, "errors": 0,
        }

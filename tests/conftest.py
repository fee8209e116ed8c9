import base64

import pytest

from passwdm.vault.config import MasterKey, write_config
from passwdm.vault.lifecycle import CredentialManager
from passwdm.vault.store import EntryStore


@pytest.fixture
def raw_key():
    """A fixed 32-byte master key."""
    return bytes(range(32))


@pytest.fixture
def master_key(raw_key):
    return MasterKey(key=raw_key)


@pytest.fixture
def store(tmp_path):
    """An Entry Store whose file does not exist yet."""
    return EntryStore(tmp_path / "store.json")


@pytest.fixture
def manager(store, master_key):
    return CredentialManager(store, master_key)


@pytest.fixture
def home(tmp_path):
    """A config directory already initialized with password 'pw1'."""
    path = tmp_path / "home"
    write_config(
        path / "config.json",
        "pw1",
        base64.b64encode(bytes(range(32))).decode("ascii"),
    )
    return path

"""
Tests for the config file and the identity gate.
"""
import base64
import stat

import orjson
import pytest

from passwdm.exceptions import FatalConfigError, Unauthorized
from passwdm.vault.config import (
    MasterConfig,
    MasterKey,
    generate_master_key,
    load_config,
    write_config,
)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestGenerateMasterKey:

    def test_decodes_to_32_bytes(self):
        assert len(base64.b64decode(generate_master_key())) == 32

    def test_keys_are_random(self):
        assert generate_master_key() != generate_master_key()


class TestAuthenticate:

    def test_correct_password(self):
        config = MasterConfig(app_password="pw1", encryption_key=generate_master_key())
        config.authenticate("pw1")

    @pytest.mark.parametrize("submitted", ["pw2", "", "PW1", "pw1 "])
    def test_wrong_password(self, submitted):
        config = MasterConfig(app_password="pw1", encryption_key=generate_master_key())
        with pytest.raises(Unauthorized):
            config.authenticate(submitted)

    def test_repr_hides_secrets(self):
        config = MasterConfig(app_password="pw1", encryption_key=generate_master_key())
        assert "pw1" not in repr(config)
        assert config.encryption_key not in repr(config)


class TestUnlockKey:

    def test_valid_key(self):
        raw = bytes(range(32))
        key = MasterConfig(app_password="pw", encryption_key=_b64(raw)).unlock_key()
        assert isinstance(key, MasterKey)
        assert key.key == raw
        assert key.cipher == "aesgcm"
        assert "key=" not in repr(key)

    @pytest.mark.parametrize("length", [0, 16, 31, 33, 64])
    def test_wrong_length(self, length):
        config = MasterConfig(app_password="pw", encryption_key=_b64(b"k" * length))
        with pytest.raises(FatalConfigError):
            config.unlock_key()

    def test_not_base64(self):
        config = MasterConfig(app_password="pw", encryption_key="not base64!")
        with pytest.raises(FatalConfigError):
            config.unlock_key()

    @pytest.mark.parametrize("length", [0, 1, 16, 33])
    def test_master_key_rejects_wrong_length(self, length):
        with pytest.raises(ValueError):
            MasterKey(key=b"k" * length)

    def test_key_is_immutable(self):
        key = MasterConfig(app_password="pw", encryption_key=generate_master_key()).unlock_key()
        with pytest.raises(Exception):
            key.key = b"\x00" * 32


class TestLoadConfig:

    def test_roundtrip_through_file(self, tmp_path):
        path = tmp_path / "config.json"
        written = write_config(path, "pw1")
        loaded = load_config(path)
        assert loaded == written
        loaded.authenticate("pw1")
        assert len(loaded.unlock_key().key) == 32

    def test_file_format(self, tmp_path):
        path = tmp_path / "config.json"
        write_config(path, "pw1", _b64(bytes(32)))
        data = orjson.loads(path.read_bytes())
        assert data["appPassword"] == "pw1"
        assert data["encryptionKey"] == _b64(bytes(32))

    def test_owner_only_permissions(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        write_config(path, "pw1")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_missing_file(self, tmp_path):
        with pytest.raises(FatalConfigError):
            load_config(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(FatalConfigError):
            load_config(path)

    def test_missing_fields(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"appPassword": "pw1"}')
        with pytest.raises(FatalConfigError):
            load_config(path)

    def test_unsupported_cipher(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_bytes(orjson.dumps({
            "appPassword": "pw1",
            "encryptionKey": generate_master_key(),
            "cipher": "rot13",
        }))
        with pytest.raises(FatalConfigError):
            load_config(path)

    def test_write_rejects_short_key(self, tmp_path):
        path = tmp_path / "config.json"
        with pytest.raises(FatalConfigError):
            write_config(path, "pw1", _b64(b"short"))
        assert not path.exists()

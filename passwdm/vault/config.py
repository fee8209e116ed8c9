"""
Vault Configuration — master password check and master key loading.

Reads the per-user config file:
    { "appPassword": <string>, "encryptionKey": <base64-encoded 32-byte key> }

Security Note:
    Never log key material or the application password.
    The application password is stored and compared in plaintext; anyone
    able to read config.json can open the vault. The file is created with
    owner-only permissions, and the key it holds unlocks every secret anyway.
"""
import os
import hmac
import base64
import binascii
import secrets
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

import orjson
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import FatalConfigError, Unauthorized
from .crypto import CIPHERS, DEFAULT_CIPHER, KEY_LENGTH

logger = logging.getLogger("passwdm.vault")


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


class MasterKey(BaseModel):
    """Decoded master key, immutable for the session."""

    key: bytes = Field(repr=False)
    cipher: str = DEFAULT_CIPHER

    model_config = {"frozen": True}

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: bytes) -> bytes:
        """Ensure the key is exactly 32 bytes."""
        if len(v) != KEY_LENGTH:
            raise ValueError(
                f"Master key must be exactly {KEY_LENGTH} bytes, got {len(v)}"
            )
        return v


class MasterConfig(BaseModel):
    """Validated contents of config.json."""

    app_password: str = Field(alias="appPassword", repr=False)
    encryption_key: str = Field(alias="encryptionKey", repr=False)
    cipher: str = Field(default=DEFAULT_CIPHER)

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("app_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Reject an empty application password."""
        if not v:
            raise ValueError("appPassword cannot be empty")
        return v

    @field_validator("cipher")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        if v not in CIPHERS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    def authenticate(self, submitted: str) -> None:
        """Compare a submitted password against the configured one.

        Raises:
            Unauthorized: If the passwords differ.
        """
        if not hmac.compare_digest(
            submitted.encode("utf-8"), self.app_password.encode("utf-8")
        ):
            logger.warning("Rejected application password")
            raise Unauthorized("Invalid application password")

    def unlock_key(self) -> MasterKey:
        """Decode the configured encryption key.

        Raises:
            FatalConfigError: If the key is not base64 or not 32 bytes long.
        """
        try:
            key = base64.b64decode(self.encryption_key, validate=True)
        except (binascii.Error, ValueError) as err:
            raise FatalConfigError(
                "encryptionKey is not valid base64"
            ) from err
        if len(key) != KEY_LENGTH:
            raise FatalConfigError(
                f"encryptionKey must decode to exactly {KEY_LENGTH} bytes, "
                f"got {len(key)}"
            )
        return MasterKey(key=key, cipher=self.cipher)

    def to_json(self) -> bytes:
        return orjson.dumps(
            self.model_dump(by_alias=True), option=orjson.OPT_INDENT_2
        )


def load_config(path: Union[str, Path]) -> MasterConfig:
    """Read and validate the config file.

    Raises:
        FatalConfigError: If the file is unreadable or its content invalid.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as err:
        raise FatalConfigError(f"Cannot read config {path}: {err}") from err
    try:
        config = MasterConfig.model_validate(orjson.loads(raw))
    except orjson.JSONDecodeError as err:
        raise FatalConfigError(f"Config {path} is not valid JSON") from err
    except ValidationError as err:
        raise FatalConfigError(
            f"Config {path} is invalid: {err.error_count()} error(s)"
        ) from err
    logger.debug("Loaded config from %s (cipher=%s)", path, config.cipher)
    return config


def write_private_file(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``, owner read/write only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_config(
    path: Union[str, Path],
    app_password: str,
    encryption_key: Optional[str] = None,
    cipher: str = DEFAULT_CIPHER,
) -> MasterConfig:
    """Validate and persist a config file with owner-only permissions.

    Args:
        path: Destination config file.
        app_password: Application access password.
        encryption_key: Base64 master key; a fresh one is generated if omitted.
        cipher: AEAD backend name.

    Returns:
        The written MasterConfig.
    """
    config = MasterConfig(
        app_password=app_password,
        encryption_key=encryption_key or generate_master_key(),
        cipher=cipher,
    )
    config.unlock_key()
    write_private_file(Path(path), config.to_json())
    logger.info("Wrote config to %s", path)
    return config


def pending_config_path(path: Union[str, Path]) -> Path:
    """Side file holding a config that is not active yet."""
    path = Path(path)
    return path.with_name(f"{path.name}.new")


def commit_config(pending: Union[str, Path], path: Union[str, Path]) -> None:
    """Atomically promote a pending config file over the active one."""
    os.replace(pending, path)
    logger.info("Activated config %s", path)

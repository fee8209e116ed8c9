"""
Vault Crypto Core — authenticated encryption of individual secrets.

Every secret is sealed on its own with the process master key:
    AEAD(master_key, nonce) → nonce_hex:ciphertext_hex:tag_hex

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit, drawn fresh for every call; collision
    probability is negligible under normal usage.
"""
import os
import re
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import FormatError, IntegrityError

logger = logging.getLogger("passwdm.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM / Poly1305 tag
KEY_LENGTH = 32  # AES-256

SEPARATOR = ":"
_HEX_RE = re.compile(r"[0-9a-fA-F]*")

CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}
DEFAULT_CIPHER = "aesgcm"


def get_cipher_cls(name: str = DEFAULT_CIPHER) -> type:
    """Return the AEAD cipher class registered under ``name``.

    Raises:
        ValueError: If the backend is not supported.
    """
    try:
        return CIPHERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {name}") from None


def _cipher(key: bytes, cipher: str):
    if len(key) != KEY_LENGTH:
        raise ValueError(
            f"Master key must be exactly {KEY_LENGTH} bytes, got {len(key)}"
        )
    return get_cipher_cls(cipher)(key)


# ---------------------------------------------------------------------------
# Payload encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, key: bytes, cipher: str = DEFAULT_CIPHER) -> str:
    """Encrypt a secret string under the master key.

    Format: ``nonce_hex:ciphertext_hex:tag_hex``

    Args:
        plaintext: Secret to encrypt.
        key: Raw 32-byte master key.
        cipher: AEAD backend name (``aesgcm`` or ``chacha20``).

    Returns:
        Self-contained payload string.
    """
    aead = _cipher(key, cipher)
    nonce = os.urandom(NONCE_SIZE)
    sealed = aead.encrypt(nonce, plaintext.encode("utf-8"), None)
    ct, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return SEPARATOR.join(part.hex() for part in (nonce, ct, tag))


def split_payload(payload: str) -> tuple[bytes, bytes, bytes]:
    """Parse a payload into its (nonce, ciphertext, tag) components.

    Raises:
        FormatError: If the payload is not three hex fields of the right sizes.
    """
    if not isinstance(payload, str):
        raise FormatError("Payload must be a string")
    parts = payload.split(SEPARATOR)
    if len(parts) != 3:
        raise FormatError(
            f"Payload must have 3 components, got {len(parts)}"
        )
    for part in parts:
        if not _HEX_RE.fullmatch(part) or len(part) % 2:
            raise FormatError("Payload is not hex encoded")
    nonce, ct, tag = (bytes.fromhex(part) for part in parts)
    if len(nonce) != NONCE_SIZE:
        raise FormatError(
            f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(tag) != TAG_SIZE:
        raise FormatError(
            f"Tag must be {TAG_SIZE} bytes, got {len(tag)}"
        )
    return nonce, ct, tag


def decrypt(payload: str, key: bytes, cipher: str = DEFAULT_CIPHER) -> str:
    """Verify and decrypt a payload produced by :func:`encrypt`.

    Args:
        payload: ``nonce_hex:ciphertext_hex:tag_hex`` string.
        key: Raw 32-byte master key.
        cipher: AEAD backend name used at encryption time.

    Returns:
        Decrypted secret.

    Raises:
        FormatError: If the payload cannot be parsed.
        IntegrityError: If tag verification fails.
    """
    nonce, ct, tag = split_payload(payload)
    aead = _cipher(key, cipher)
    try:
        plaintext = aead.decrypt(nonce, ct + tag, None)
    except InvalidTag:
        raise IntegrityError("Authentication tag verification failed") from None
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise FormatError("Decrypted secret is not valid UTF-8") from err

"""
Vault Crypto Core — Envelope encryption/decryption and value serialization.

Every vault-protected field is stored as an :class:`EncryptedEnvelope`:

    {ciphertext: hex, iv: hex, auth_tag: hex (16B), algorithm: str}

Persisted as the columns ``encrypted_content, iv, auth_tag, algorithm``.

Security Note:
    Never log plaintext, ciphertext or key values.
    IVs are drawn from the OS CSPRNG on every call; they are never supplied
    by the caller.
"""
import logging
import secrets
import base64
from collections.abc import Mapping
from typing import Any, Optional, Union

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305
from pydantic import BaseModel, ValidationError, field_validator

from .config import (
    ALGORITHM_AES_GCM,
    ALGORITHM_CHACHA20,
    KEY_LENGTH,
    TAG_LENGTH,
    VaultConfig,
    resolve_config,
)
from .exceptions import (
    DecryptionError,
    EncryptionError,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger("diary.vault")

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"

CIPHERS: dict[str, type] = {
    ALGORITHM_AES_GCM: AESGCM,
    ALGORITHM_CHACHA20: ChaCha20Poly1305,
}

# envelope field -> vault-content column
_ROW_COLUMNS = {
    "ciphertext": "encrypted_content",
    "iv": "iv",
    "auth_tag": "auth_tag",
    "algorithm": "algorithm",
}


def _get_cipher_cls(algorithm: str) -> type:
    """Return the AEAD class for ``algorithm`` or fail closed."""
    try:
        return CIPHERS[algorithm]
    except KeyError:
        raise UnsupportedAlgorithmError(algorithm) from None


def _hex_bytes(value: str, field: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise ValueError(f"{field} is not valid hex") from None


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

class EncryptedEnvelope(BaseModel):
    """Self-describing unit of storage for a vault-protected field."""

    ciphertext: str
    iv: str
    auth_tag: str
    algorithm: str

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("ciphertext")
    @classmethod
    def validate_ciphertext(cls, v: str) -> str:
        _hex_bytes(v, "ciphertext")
        return v.lower()

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: str) -> str:
        raw = _hex_bytes(v, "iv")
        if not 12 <= len(raw) <= 16:
            raise ValueError(f"iv must be 12..16 bytes, got {len(raw)}")
        return v.lower()

    @field_validator("auth_tag")
    @classmethod
    def validate_auth_tag(cls, v: str) -> str:
        raw = _hex_bytes(v, "auth_tag")
        if len(raw) != TAG_LENGTH:
            raise ValueError(f"auth_tag must be {TAG_LENGTH} bytes, got {len(raw)}")
        return v.lower()

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        if not v:
            raise ValueError("algorithm is required")
        return v

    @classmethod
    def parse(cls, data: Mapping) -> "EncryptedEnvelope":
        """Validate a loosely-typed mapping into an envelope.

        Raises:
            DecryptionError: If any field is missing or malformed.
        """
        try:
            return cls.model_validate(dict(data))
        except (ValidationError, TypeError, ValueError) as err:
            raise DecryptionError("Malformed encrypted envelope") from err

    @classmethod
    def from_row(cls, row: Mapping) -> "EncryptedEnvelope":
        """Build an envelope from vault-content table columns."""
        missing = [col for col in _ROW_COLUMNS.values() if row.get(col) is None]
        if missing:
            raise DecryptionError(
                f"Partial envelope, missing column(s): {', '.join(missing)}"
            )
        return cls.parse(
            {field: row[col] for field, col in _ROW_COLUMNS.items()}
        )

    def to_row(self) -> dict[str, str]:
        return {col: getattr(self, field) for field, col in _ROW_COLUMNS.items()}

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump())

    @classmethod
    def from_json(cls, data: Union[bytes, str]) -> "EncryptedEnvelope":
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise DecryptionError("Malformed encrypted envelope") from err
        if not isinstance(parsed, dict):
            raise DecryptionError("Malformed encrypted envelope")
        return cls.parse(parsed)


# ---------------------------------------------------------------------------
# Content encryption
# ---------------------------------------------------------------------------

def encrypt_content(
    plaintext: str,
    key: bytes,
    config: Optional[VaultConfig] = None,
) -> EncryptedEnvelope:
    """Seal ``plaintext`` into a new envelope.

    Args:
        plaintext: Text to protect.
        key: 32-byte vault key from :func:`derive_key`.
        config: Optional explicit configuration.

    Returns:
        A fresh EncryptedEnvelope (new random IV every call).

    Raises:
        EncryptionError: If the key is unusable or the cipher fails.
    """
    config = resolve_config(config)
    if len(key) != KEY_LENGTH:
        raise EncryptionError(f"Vault key must be {KEY_LENGTH} bytes")
    cipher = _get_cipher_cls(config.algorithm)(bytes(key))
    iv = secrets.token_bytes(config.iv_length)
    try:
        sealed = cipher.encrypt(iv, plaintext.encode("utf-8"), config.aad)
    except Exception as err:
        logger.error("Vault encryption failed: %s", type(err).__name__)
        raise EncryptionError("Failed to encrypt content") from err
    return EncryptedEnvelope(
        ciphertext=sealed[:-TAG_LENGTH].hex(),
        iv=iv.hex(),
        auth_tag=sealed[-TAG_LENGTH:].hex(),
        algorithm=config.algorithm,
    )


def decrypt_content(
    envelope: Union[EncryptedEnvelope, Mapping],
    key: bytes,
    config: Optional[VaultConfig] = None,
) -> str:
    """Open an envelope and return its plaintext.

    The authentication tag is verified before any plaintext is returned.

    Raises:
        DecryptionError: Wrong key, tampered data or malformed envelope.
        UnsupportedAlgorithmError: Envelope names an unknown algorithm.
    """
    config = resolve_config(config)
    if not isinstance(envelope, EncryptedEnvelope):
        if not isinstance(envelope, Mapping):
            raise DecryptionError("Malformed encrypted envelope")
        envelope = EncryptedEnvelope.parse(envelope)
    cipher_cls = _get_cipher_cls(envelope.algorithm)
    if len(key) != KEY_LENGTH:
        raise DecryptionError(f"Vault key must be {KEY_LENGTH} bytes")
    iv = bytes.fromhex(envelope.iv)
    if cipher_cls is ChaCha20Poly1305 and len(iv) != 12:
        raise DecryptionError("Malformed encrypted envelope")
    sealed = bytes.fromhex(envelope.ciphertext) + bytes.fromhex(envelope.auth_tag)
    try:
        plaintext = cipher_cls(bytes(key)).decrypt(iv, sealed, config.aad)
    except InvalidTag:
        logger.warning("Vault decryption failed: authentication tag mismatch")
        raise DecryptionError(
            "Failed to decrypt content - invalid key or corrupted data"
        ) from None
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted content is not valid UTF-8") from err


def generate_secure_token(length: int = 32) -> str:
    """Return ``length`` random bytes, hex-encoded."""
    return secrets.token_hex(length)


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Any) -> str:
    """Serialize a Python value to text for encryption.

    Supports: str, int, float, dict, list, bytes, bool, None.
    bytes values are wrapped as {"__vault_bytes_b64__": "<base64>"} for safe
    JSON round-trip.
    """
    if isinstance(value, bytes):
        wrapped = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
        return orjson.dumps(wrapped).decode("utf-8")
    return orjson.dumps(value).decode("utf-8")


def deserialize_value(data: str) -> Any:
    """Deserialize text produced by :func:`serialize_value`."""
    parsed = orjson.loads(data)
    if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
        return base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
    return parsed

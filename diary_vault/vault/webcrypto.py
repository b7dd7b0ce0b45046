"""
Browser mirror — the WebCrypto layout of the canonical vault scheme.

The browser derives its key with::

    crypto.subtle.deriveKey(
        {name: "PBKDF2", salt: TextEncoder(salt), iterations, hash: "SHA-256"},
        keyMaterial, {name: "AES-GCM", length: 256}, ...)

and WebCrypto's AES-GCM returns ``ciphertext || tag`` as one buffer, so a
browser payload carries an empty ``tag`` field. This module produces and
consumes that layout and converts it to and from :class:`EncryptedEnvelope`,
so content sealed on either surface opens on the other.
"""
import logging
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, ValidationError, field_validator

from .config import (
    ALGORITHM_AES_GCM,
    KEY_LENGTH,
    TAG_LENGTH,
    VaultConfig,
    resolve_config,
)
from .crypto import EncryptedEnvelope
from .exceptions import (
    DecryptionError,
    EncryptionError,
    UnsupportedAlgorithmError,
)
from .kdf import KdfParams, derive_key

logger = logging.getLogger("diary.vault")

WEBCRYPTO_ALGORITHM = "AES-GCM"
WEBCRYPTO_IV_LENGTH = 12


class WebCryptoPayload(BaseModel):
    """Envelope as produced by the browser."""

    encrypted: str
    iv: str
    tag: str = ""
    algorithm: str = WEBCRYPTO_ALGORITHM

    model_config = {"frozen": True}

    @field_validator("encrypted")
    @classmethod
    def validate_encrypted(cls, v: str) -> str:
        if len(bytes.fromhex(v)) < TAG_LENGTH:
            raise ValueError("encrypted payload shorter than the GCM tag")
        return v.lower()

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: str) -> str:
        if len(bytes.fromhex(v)) != WEBCRYPTO_IV_LENGTH:
            raise ValueError(f"iv must be {WEBCRYPTO_IV_LENGTH} bytes")
        return v.lower()


def _parse_payload(data) -> WebCryptoPayload:
    if isinstance(data, WebCryptoPayload):
        return data
    try:
        return WebCryptoPayload.model_validate(data)
    except ValidationError as err:
        raise DecryptionError("Malformed browser payload") from err


def derive_client_key(
    password: str,
    salt: str,
    iterations: Optional[int] = None,
    config: Optional[VaultConfig] = None,
) -> bytes:
    """Reproduce the browser's PBKDF2 → AES-GCM-256 key derivation.

    The browser runs the same derivation as :func:`derive_key`, so this is
    the server function under the browser's name.
    """
    return derive_key(password, salt, iterations=iterations, config=config)


def encrypt_client(
    content: str,
    key: bytes,
    config: Optional[VaultConfig] = None,
) -> WebCryptoPayload:
    """Seal ``content`` exactly as the browser does."""
    config = resolve_config(config)
    if len(key) != KEY_LENGTH:
        raise EncryptionError(f"Key must be {KEY_LENGTH} bytes, got {len(key)}")
    iv = secrets.token_bytes(WEBCRYPTO_IV_LENGTH)
    sealed = AESGCM(bytes(key)).encrypt(iv, content.encode("utf-8"), config.aad)
    return WebCryptoPayload(encrypted=sealed.hex(), iv=iv.hex())


def decrypt_client(
    payload,
    key: bytes,
    config: Optional[VaultConfig] = None,
) -> str:
    """Open a browser payload.

    Raises:
        UnsupportedAlgorithmError: payload is not AES-GCM.
        DecryptionError: malformed payload, wrong key or tampered data.
    """
    config = resolve_config(config)
    payload = _parse_payload(payload)
    if payload.algorithm != WEBCRYPTO_ALGORITHM:
        raise UnsupportedAlgorithmError(payload.algorithm)
    if len(key) != KEY_LENGTH:
        raise DecryptionError(f"Key must be {KEY_LENGTH} bytes, got {len(key)}")
    try:
        plaintext = AESGCM(bytes(key)).decrypt(
            bytes.fromhex(payload.iv), bytes.fromhex(payload.encrypted), config.aad,
        )
    except InvalidTag:
        logger.warning("Browser payload decryption failed: tag mismatch")
        raise DecryptionError(
            "Failed to decrypt content - invalid key or corrupted data"
        ) from None
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted content is not valid UTF-8") from err


def to_envelope(payload) -> EncryptedEnvelope:
    """Split a browser payload into a server envelope."""
    payload = _parse_payload(payload)
    if payload.algorithm != WEBCRYPTO_ALGORITHM:
        raise UnsupportedAlgorithmError(payload.algorithm)
    sealed = bytes.fromhex(payload.encrypted)
    return EncryptedEnvelope(
        ciphertext=sealed[:-TAG_LENGTH].hex(),
        iv=payload.iv,
        auth_tag=sealed[-TAG_LENGTH:].hex(),
        algorithm=ALGORITHM_AES_GCM,
    )


def from_envelope(envelope: EncryptedEnvelope) -> WebCryptoPayload:
    """Join a server envelope into the browser layout.

    Only AES-GCM envelopes with a 96-bit IV can be opened by WebCrypto.
    """
    if envelope.algorithm != ALGORITHM_AES_GCM:
        raise UnsupportedAlgorithmError(envelope.algorithm)
    if len(bytes.fromhex(envelope.iv)) != WEBCRYPTO_IV_LENGTH:
        raise DecryptionError("Envelope IV is not usable by WebCrypto")
    return WebCryptoPayload(
        encrypted=envelope.ciphertext + envelope.auth_tag,
        iv=envelope.iv,
    )


def browser_params(kdf: KdfParams, config: Optional[VaultConfig] = None) -> dict:
    """Parameters the browser needs to derive the same key.

    Never includes the verifier or any key material.
    """
    config = resolve_config(config)
    return {
        "deriveKey": {
            "name": "PBKDF2",
            "salt": kdf.salt,
            "iterations": kdf.iterations,
            "hash": "SHA-256",
        },
        "cipher": {"name": WEBCRYPTO_ALGORITHM, "length": KEY_LENGTH * 8},
        "ivLength": WEBCRYPTO_IV_LENGTH,
        "additionalData": config.associated_data,
    }

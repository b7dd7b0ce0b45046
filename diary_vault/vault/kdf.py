"""
Vault Key Derivation — Password + salt → 256-bit vault key.

Canonical scheme, shared with the browser (see ``webcrypto``):
    PBKDF2-HMAC-SHA256(password=UTF-8(password), salt=UTF-8(salt_hex),
                       iterations=KdfParams.iterations, length=32)

The salt is consumed as the UTF-8 bytes of its hex string, which is what
WebCrypto's ``TextEncoder().encode(salt)`` hands to ``deriveKey``.

Security Note:
    Never log passwords or derived keys. Only iteration counts are logged.
"""
import hmac
import hashlib
import logging
import secrets
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import BaseModel, Field

from .config import (
    KEY_LENGTH,
    MIN_KDF_ITERATIONS,
    VaultConfig,
    resolve_config,
)
from .exceptions import DerivationError

logger = logging.getLogger("diary.vault")

KDF_ALGORITHM = "pbkdf2-sha256"
_VERIFIER_LABEL = b"diary-vault-password-check"


def generate_salt(config: Optional[VaultConfig] = None) -> str:
    """Return a hex-encoded random salt for a new vault."""
    config = resolve_config(config)
    return secrets.token_bytes(config.salt_length).hex()


def derive_key(
    password: str,
    salt: str,
    iterations: Optional[int] = None,
    config: Optional[VaultConfig] = None,
) -> bytes:
    """Derive a 32-byte vault key with PBKDF2-HMAC-SHA256.

    Args:
        password: The vault password supplied by the user.
        salt: Per-vault salt string (hex, as produced by :func:`generate_salt`).
        iterations: Work factor; defaults to ``config.kdf_iterations``.
        config: Optional explicit configuration.

    Returns:
        32-byte derived key.

    Raises:
        DerivationError: If password or salt is empty or not a string, or
            the work factor is below the minimum.
    """
    if not isinstance(password, str) or not password:
        raise DerivationError("Password must be a non-empty string")
    if not isinstance(salt, str) or not salt:
        raise DerivationError("Salt must be a non-empty string")
    if iterations is None:
        iterations = resolve_config(config).kdf_iterations
    if iterations < MIN_KDF_ITERATIONS:
        raise DerivationError(
            f"KDF iterations must be at least {MIN_KDF_ITERATIONS}, "
            f"got {iterations}"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )
    logger.debug("Deriving vault key (iterations=%d)", iterations)
    return kdf.derive(password.encode("utf-8"))


def compute_verifier(key: bytes) -> str:
    """MAC over a fixed label; lets a vault reject a wrong password early."""
    return hmac.new(bytes(key), _VERIFIER_LABEL, hashlib.sha256).hexdigest()


def check_verifier(key: bytes, verifier: str) -> bool:
    expected = compute_verifier(key).encode("ascii")
    return hmac.compare_digest(expected, str(verifier).encode("utf-8"))


def secure_wipe(buffer: bytearray) -> None:
    """Overwrite a mutable key buffer in place (best effort).

    Python ``bytes`` are immutable and cannot be wiped; keys that must be
    cleared are kept in a ``bytearray``.
    """
    if buffer:
        size = len(buffer)
        buffer[:] = secrets.token_bytes(size)
        buffer[:] = bytes(size)


class KdfParams(BaseModel):
    """Key derivation parameters persisted alongside a vault.

    Storing the iteration count with each vault lets new vaults use a higher
    work factor while existing vaults keep deriving with theirs.
    """

    algorithm: str = Field(default=KDF_ALGORITHM, pattern=r"^pbkdf2-sha256$")
    salt: str = Field(min_length=1)
    iterations: int = Field(default=MIN_KDF_ITERATIONS, ge=MIN_KDF_ITERATIONS)
    verifier: Optional[str] = Field(default=None, pattern=r"^[0-9a-f]{64}$")

    model_config = {"frozen": True}

    @classmethod
    def new(cls, config: Optional[VaultConfig] = None) -> "KdfParams":
        """Fresh parameters (new salt) for a vault being set up."""
        config = resolve_config(config)
        return cls(salt=generate_salt(config), iterations=config.kdf_iterations)

    def derive(self, password: str) -> bytes:
        return derive_key(password, self.salt, iterations=self.iterations)

    def with_verifier(self, key: bytes) -> "KdfParams":
        return self.model_copy(update={"verifier": compute_verifier(key)})

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)

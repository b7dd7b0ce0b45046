"""
PrivateVault — one logical access to a user's vault.

Provides the API request handlers use while the user's password is at hand:
- ``open(password, kdf)`` — derive the key once (and check the verifier)
- ``encrypt(text)`` / ``decrypt(envelope)`` — seal and open entries
- ``encrypt_value(value)`` / ``decrypt_value(envelope)`` — structured entries
- ``search_token(text)`` — keyed search hash under the vault's salt
- ``close()`` — wipe the key; also done on leaving a ``with`` block

Security Note:
    The derived key lives in a bytearray only while the vault is open.
    Never log plaintext, ciphertext or key values; only operations.
"""
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from .config import VaultConfig, resolve_config
from .crypto import (
    EncryptedEnvelope,
    decrypt_content,
    encrypt_content,
    serialize_value,
    deserialize_value,
)
from .exceptions import DecryptionError, VaultLockedError
from .kdf import KdfParams, check_verifier, secure_wipe
from .search import hash_for_search

logger = logging.getLogger("diary.vault")


class PrivateVault:
    """Vault handle holding a derived key for the duration of one access.

    Derive once per access, not once per field: key derivation is
    deliberately slow.
    """

    def __init__(
        self,
        key: bytes,
        kdf: KdfParams,
        config: Optional[VaultConfig] = None,
    ):
        self._key: bytearray = bytearray(key)
        self._kdf = kdf
        self._config = resolve_config(config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        password: str,
        kdf: KdfParams,
        config: Optional[VaultConfig] = None,
    ) -> "PrivateVault":
        """Derive the vault key from ``password`` and the stored parameters.

        Raises:
            DerivationError: If the parameters are malformed.
            DecryptionError: If a verifier is stored and the password is wrong.
        """
        key = bytearray(kdf.derive(password))
        if kdf.verifier is not None and not check_verifier(key, kdf.verifier):
            secure_wipe(key)
            logger.warning("Vault open rejected: password verifier mismatch")
            raise DecryptionError("Incorrect vault password")
        vault = cls(key, kdf, config)
        secure_wipe(key)
        logger.debug("Vault opened (iterations=%d)", kdf.iterations)
        return vault

    @property
    def closed(self) -> bool:
        return not self._key

    @property
    def kdf(self) -> KdfParams:
        return self._kdf

    def close(self) -> None:
        if self._key:
            secure_wipe(self._key)
            self._key = bytearray()
            logger.debug("Vault closed")

    def __enter__(self) -> "PrivateVault":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _require_key(self) -> bytearray:
        if self.closed:
            raise VaultLockedError("Vault is closed; open it again to continue")
        return self._key

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str) -> EncryptedEnvelope:
        return encrypt_content(plaintext, self._require_key(), self._config)

    def decrypt(self, envelope: Union[EncryptedEnvelope, Mapping]) -> str:
        """Open an envelope, or a vault-content row with envelope columns."""
        if isinstance(envelope, Mapping) and "encrypted_content" in envelope:
            envelope = EncryptedEnvelope.from_row(envelope)
        return decrypt_content(envelope, self._require_key(), self._config)

    def encrypt_value(self, value: Any) -> EncryptedEnvelope:
        """Encrypt any JSON-serializable value (bytes allowed)."""
        return self.encrypt(serialize_value(value))

    def decrypt_value(self, envelope: Union[EncryptedEnvelope, Mapping]) -> Any:
        return deserialize_value(self.decrypt(envelope))

    def search_token(self, content: str) -> str:
        self._require_key()
        return hash_for_search(content, self._kdf.salt, self._config)

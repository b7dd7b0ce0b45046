"""Private Vault — password-protected journal entries.

Security Note (Threat Model):
    The derived key is held in process memory while a PrivateVault is open
    and wiped on close. Python may keep transient copies (e.g. inside the
    cipher object) that cannot be wiped; a memory dump taken during an
    access could expose the key. This is an accepted limitation.
"""

from .config import VaultConfig, DEFAULT_CONFIG
from .crypto import (
    EncryptedEnvelope,
    encrypt_content,
    decrypt_content,
    generate_secure_token,
)
from .exceptions import (
    VaultError,
    InvalidPasswordError,
    DerivationError,
    EncryptionError,
    DecryptionError,
    UnsupportedAlgorithmError,
    VaultLockedError,
)
from .kdf import KdfParams, derive_key, generate_salt, secure_wipe
from .key_rotation import rotate_vault_password
from .private_vault import PrivateVault
from .provisioning import VaultProvision, provision_vault
from .retention import RetentionPolicy
from .search import hash_for_search
from .strength import PasswordStrengthResult, validate_key_strength

__all__ = [
    "VaultConfig",
    "DEFAULT_CONFIG",
    "EncryptedEnvelope",
    "encrypt_content",
    "decrypt_content",
    "generate_secure_token",
    "VaultError",
    "InvalidPasswordError",
    "DerivationError",
    "EncryptionError",
    "DecryptionError",
    "UnsupportedAlgorithmError",
    "VaultLockedError",
    "KdfParams",
    "derive_key",
    "generate_salt",
    "secure_wipe",
    "rotate_vault_password",
    "PrivateVault",
    "VaultProvision",
    "provision_vault",
    "RetentionPolicy",
    "hash_for_search",
    "PasswordStrengthResult",
    "validate_key_strength",
]

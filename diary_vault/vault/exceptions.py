"""Private Vault error hierarchy.

Callers translate these into user-facing messages (e.g. "incorrect vault
password") and must not echo the underlying detail back to the user.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for every Private Vault error."""


class InvalidPasswordError(VaultError):
    """The candidate vault password was rejected during setup.

    Recoverable: the user fixes the input. ``feedback`` carries the
    actionable hints produced by the strength evaluator.
    """

    def __init__(
        self,
        message: str,
        feedback: Optional[list[str]] = None,
        score: int = 0,
    ):
        super().__init__(message)
        self.feedback = list(feedback or [])
        self.score = score


class DerivationError(VaultError, ValueError):
    """Key derivation inputs are malformed (empty salt, low work factor)."""


class EncryptionError(VaultError):
    """Unexpected failure inside the cipher while sealing content."""


class DecryptionError(VaultError):
    """Authentication failed, the key is wrong, or the envelope is malformed."""


class UnsupportedAlgorithmError(VaultError):
    """The envelope names an algorithm this code does not implement."""

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported encryption algorithm: {algorithm!r}")
        self.algorithm = algorithm


class VaultLockedError(VaultError, RuntimeError):
    """A closed PrivateVault was used after its key was wiped."""

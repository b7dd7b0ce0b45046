"""
Vault Provisioning — first-time setup of a Private Vault.

Setup never stores the password. It checks the password, creates the salt
and KDF parameters, and derives the key once to record a password verifier
so later accesses can reject a wrong password before touching content.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from .config import VaultConfig, resolve_config
from .exceptions import InvalidPasswordError
from .kdf import KdfParams, secure_wipe
from .strength import validate_key_strength

logger = logging.getLogger("diary.vault")

MIN_PASSWORD_LENGTH = 8


class VaultProvision(BaseModel):
    """Vault configuration produced at setup time."""

    kdf: KdfParams
    password_strength_score: int
    setup_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_enabled: bool = True

    model_config = {"frozen": True}

    @property
    def salt(self) -> str:
        return self.kdf.salt

    def to_record(self) -> dict:
        """Columns for the vault configuration store."""
        return {
            "salt": self.kdf.salt,
            "kdf_iterations": self.kdf.iterations,
            "kdf_verifier": self.kdf.verifier,
            "is_enabled": self.is_enabled,
            "setup_at": self.setup_at.isoformat(),
            "password_strength_score": self.password_strength_score,
        }


def provision_vault(
    password: str,
    confirm_password: Optional[str] = None,
    config: Optional[VaultConfig] = None,
) -> VaultProvision:
    """Validate a new vault password and create the vault's KDF parameters.

    Args:
        password: Candidate vault password.
        confirm_password: Repeated password, checked when given.
        config: Optional explicit configuration.

    Returns:
        VaultProvision ready to persist with ``to_record()``.

    Raises:
        InvalidPasswordError: Passwords differ or the password is too weak.
    """
    config = resolve_config(config)
    if confirm_password is not None and password != confirm_password:
        raise InvalidPasswordError(
            "Passwords don't match", feedback=["Passwords don't match"],
        )

    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidPasswordError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            feedback=["Password must be at least 8 characters long"],
        )

    strength = validate_key_strength(password)
    if not strength.is_valid:
        logger.info("Vault setup rejected: weak password (score=%d)", strength.score)
        raise InvalidPasswordError(
            "Password is too weak",
            feedback=strength.feedback,
            score=strength.score,
        )

    kdf = KdfParams.new(config)
    key = bytearray(kdf.derive(password))
    try:
        kdf = kdf.with_verifier(key)
    finally:
        secure_wipe(key)

    logger.info(
        "Vault provisioned (iterations=%d, score=%d)",
        kdf.iterations, strength.score,
    )
    return VaultProvision(kdf=kdf, password_strength_score=strength.score)

"""
Vault Configuration — Validated crypto parameters for the Private Vault.

Values may be supplied explicitly or read from environment variables:
    DIARY_VAULT_KDF_ITERATIONS = <integer, >= 100000>
    DIARY_VAULT_CIPHER = aes-256-gcm | chacha20-poly1305
    DIARY_VAULT_AAD = <associated-data context string>
    DIARY_VAULT_SEARCH_TOKEN_LENGTH = <integer, 8..64>

Security Note:
    The configuration never holds key material. Passwords, salts and derived
    keys are passed explicitly to each operation.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("diary.vault")

MIN_KDF_ITERATIONS = 100_000
DEFAULT_KDF_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
TAG_LENGTH = 16  # 128-bit GCM / Poly1305 tag
DEFAULT_AAD = "diary-plus-vault"

ALGORITHM_AES_GCM = "aes-256-gcm"
ALGORITHM_CHACHA20 = "chacha20-poly1305"
SUPPORTED_ALGORITHMS = (ALGORITHM_AES_GCM, ALGORITHM_CHACHA20)


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    kdf_iterations: int = Field(default=DEFAULT_KDF_ITERATIONS, ge=MIN_KDF_ITERATIONS)
    algorithm: str = Field(default=ALGORITHM_AES_GCM)
    iv_length: int = Field(default=12, ge=12, le=16)
    associated_data: str = Field(default=DEFAULT_AAD, min_length=1)
    salt_length: int = Field(default=32, ge=16, le=64)
    search_token_length: int = Field(default=16, ge=8, le=64)

    model_config = {"frozen": True}

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate the cipher for new envelopes is implemented."""
        v = v.lower()
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported cipher algorithm: {v}")
        return v

    @model_validator(mode="after")
    def validate_nonce_size(self) -> "VaultConfig":
        """ChaCha20-Poly1305 only accepts 96-bit nonces."""
        if self.algorithm == ALGORITHM_CHACHA20 and self.iv_length != 12:
            raise ValueError(
                f"{ALGORITHM_CHACHA20} requires iv_length 12, "
                f"got {self.iv_length}"
            )
        return self

    @property
    def aad(self) -> bytes:
        return self.associated_data.encode("utf-8")

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Unset variables fall back to the field defaults.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {}
        env_map = {
            "DIARY_VAULT_KDF_ITERATIONS": "kdf_iterations",
            "DIARY_VAULT_CIPHER": "algorithm",
            "DIARY_VAULT_AAD": "associated_data",
            "DIARY_VAULT_SEARCH_TOKEN_LENGTH": "search_token_length",
        }
        for name, field in env_map.items():
            raw = os.environ.get(name)
            if raw is not None:
                values[field] = raw
        config = cls(**values)
        logger.debug(
            "Vault config loaded: algorithm=%s iterations=%d",
            config.algorithm, config.kdf_iterations,
        )
        return config


DEFAULT_CONFIG = VaultConfig()


def resolve_config(config: "VaultConfig | None") -> VaultConfig:
    """Return ``config`` or the immutable defaults."""
    return config if config is not None else DEFAULT_CONFIG

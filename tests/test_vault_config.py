"""
Tests for vault configuration and retention policy validation.
"""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from diary_vault.vault import DEFAULT_CONFIG, RetentionPolicy, VaultConfig
from diary_vault.vault.retention import subtract_months


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "DIARY_VAULT_KDF_ITERATIONS",
        "DIARY_VAULT_CIPHER",
        "DIARY_VAULT_AAD",
        "DIARY_VAULT_SEARCH_TOKEN_LENGTH",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVaultConfig:
    """Tests for VaultConfig defaults and validation."""

    def test_defaults(self):
        assert DEFAULT_CONFIG.kdf_iterations == 100_000
        assert DEFAULT_CONFIG.algorithm == "aes-256-gcm"
        assert DEFAULT_CONFIG.iv_length == 12
        assert DEFAULT_CONFIG.aad == b"diary-plus-vault"
        assert DEFAULT_CONFIG.search_token_length == 16

    def test_low_iterations_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(kdf_iterations=50_000)

    def test_unknown_cipher_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(algorithm="des")

    def test_cipher_case_insensitive(self):
        assert VaultConfig(algorithm="AES-256-GCM").algorithm == "aes-256-gcm"

    def test_chacha_requires_96_bit_nonce(self):
        with pytest.raises(ValidationError):
            VaultConfig(algorithm="chacha20-poly1305", iv_length=16)

    def test_empty_aad_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(associated_data="")

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.kdf_iterations = 1


class TestVaultConfigFromEnv:
    """Tests for loading configuration from environment variables."""

    def test_defaults_without_env(self, clean_env):
        assert VaultConfig.from_env() == VaultConfig()

    def test_reads_env(self, clean_env):
        clean_env.setenv("DIARY_VAULT_KDF_ITERATIONS", "310000")
        clean_env.setenv("DIARY_VAULT_CIPHER", "chacha20-poly1305")
        clean_env.setenv("DIARY_VAULT_AAD", "diary-plus-vault-v2")
        clean_env.setenv("DIARY_VAULT_SEARCH_TOKEN_LENGTH", "24")
        config = VaultConfig.from_env()
        assert config.kdf_iterations == 310_000
        assert config.algorithm == "chacha20-poly1305"
        assert config.associated_data == "diary-plus-vault-v2"
        assert config.search_token_length == 24

    def test_invalid_env(self, clean_env):
        clean_env.setenv("DIARY_VAULT_KDF_ITERATIONS", "1000")
        with pytest.raises(ValidationError):
            VaultConfig.from_env()


class TestRetentionPolicy:
    """Tests for retention policy validation and cutoffs."""

    def test_defaults(self):
        policy = RetentionPolicy()
        assert policy.enabled is False
        assert policy.delete_after_months == 18
        assert policy.archive_after_months == 12
        assert policy.notify_before_days == 30

    def test_delete_must_exceed_archive(self):
        with pytest.raises(ValidationError, match="Delete period"):
            RetentionPolicy(enabled=True, delete_after_months=6, archive_after_months=6)

    def test_disabled_policy_skips_period_check(self):
        policy = RetentionPolicy(enabled=False, delete_after_months=3, archive_after_months=6)
        assert policy.delete_after_months == 3

    @pytest.mark.parametrize("field, value", [
        ("delete_after_months", 0),
        ("archive_after_months", 121),
        ("notify_before_days", 91),
    ])
    def test_ranges(self, field, value):
        with pytest.raises(ValidationError):
            RetentionPolicy(**{field: value})

    def test_cutoffs(self):
        now = datetime(2024, 8, 31, 12, 0, tzinfo=timezone.utc)
        cutoffs = RetentionPolicy(enabled=True).cutoffs(now)
        assert cutoffs["archive_before"] == datetime(2023, 8, 31, 12, 0, tzinfo=timezone.utc)
        assert cutoffs["delete_before"] == datetime(2023, 2, 28, 12, 0, tzinfo=timezone.utc)

    def test_subtract_months_leap_year(self):
        assert subtract_months(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)
        assert subtract_months(datetime(2024, 1, 15), 13) == datetime(2022, 12, 15)

"""
Configuration Tests
===================

Tests for HeaderConfig defaults and environment variable parsing.
"""

import hashlib

import pytest

from tbf_sdk.config import DEFAULT_APP_ID_DIGEST, HeaderConfig, hashlib_digest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any TBF_* variables inherited from the environment."""
    for name in ("TBF_APP_ID_DIGEST", "TBF_STRICT_REGIONS", "TBF_MINIMUM_RAM_SIZE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestHeaderConfig:
    """Tests for HeaderConfig."""

    def test_defaults(self, clean_env):
        config = HeaderConfig.from_env()

        assert config.app_id_digest == DEFAULT_APP_ID_DIGEST == "sha3_256"
        assert config.strict_regions is False
        assert config.minimum_ram_size == 0

    def test_digest_from_env(self, clean_env):
        clean_env.setenv("TBF_APP_ID_DIGEST", "SHA256")
        assert HeaderConfig.from_env().app_id_digest == "sha256"

    @pytest.mark.parametrize("value", ["not_a_hash", "shake_128"])
    def test_unusable_digest_ignored(self, clean_env, value):
        clean_env.setenv("TBF_APP_ID_DIGEST", value)
        assert HeaderConfig.from_env().app_id_digest == DEFAULT_APP_ID_DIGEST

    @pytest.mark.parametrize("value,expected", [
        ("1", True),
        ("true", True),
        ("YES", True),
        ("0", False),
        ("no", False),
    ])
    def test_strict_regions_from_env(self, clean_env, value, expected):
        clean_env.setenv("TBF_STRICT_REGIONS", value)
        assert HeaderConfig.from_env().strict_regions is expected

    def test_minimum_ram_from_env(self, clean_env):
        clean_env.setenv("TBF_MINIMUM_RAM_SIZE", "0x800")
        assert HeaderConfig.from_env().minimum_ram_size == 2048

    def test_invalid_minimum_ram_ignored(self, clean_env):
        clean_env.setenv("TBF_MINIMUM_RAM_SIZE", "lots")
        assert HeaderConfig.from_env().minimum_ram_size == 0

    def test_digest_callable(self):
        digest = HeaderConfig(app_id_digest="sha256").digest()
        assert digest(b"blink") == hashlib.sha256(b"blink").digest()


class TestHashlibDigest:
    """Tests for the hashlib digest factory."""

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            hashlib_digest("not_a_hash")

    def test_named(self):
        assert hashlib_digest("sha3_256").__name__ == "sha3_256"

    @pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
    def test_variable_length_algorithm(self, algorithm: str):
        with pytest.raises(ValueError):
            hashlib_digest(algorithm)

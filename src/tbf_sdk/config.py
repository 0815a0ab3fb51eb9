"""
TBF SDK - Configuration
=======================

Header builder configuration. Configuration can come from:
- Default values (defined here)
- Environment variables

Environment variables (all optional):
    TBF_APP_ID_DIGEST: hashlib algorithm used to derive default app ids
    TBF_STRICT_REGIONS: "1", "true" or "yes" to raise on region overflow
    TBF_MINIMUM_RAM_SIZE: default minimum RAM size for the CLI
"""

from dataclasses import dataclass
from typing import Callable
import hashlib
import os


DEFAULT_APP_ID_DIGEST = "sha3_256"

_TRUE_VALUES = ("1", "true", "yes", "on")


def is_usable_digest(algorithm: str) -> bool:
    """True if hashlib knows `algorithm` and it has a fixed output length."""
    # shake_* digests need an explicit output length
    return algorithm in hashlib.algorithms_available and not algorithm.startswith("shake")


def hashlib_digest(algorithm: str) -> Callable[[bytes], bytes]:
    """
    Return a callable that hashes bytes with the named hashlib algorithm.

    Raises:
        ValueError: If hashlib does not know the algorithm, or its
            output length is not fixed
    """
    if not is_usable_digest(algorithm):
        raise ValueError(f"Unusable app id digest algorithm: {algorithm!r}")

    def digest(data: bytes) -> bytes:
        return hashlib.new(algorithm, data).digest()

    digest.__name__ = algorithm
    return digest


@dataclass
class HeaderConfig:
    """
    Configuration for TBF header creation.

    Attributes:
        app_id_digest: hashlib algorithm name for default app id derivation
        strict_regions: Raise RegionCapacityError instead of dropping a
            writeable flash region value that has no free slot
        minimum_ram_size: Default minimum RAM size used by the CLI
    """
    app_id_digest: str = DEFAULT_APP_ID_DIGEST
    strict_regions: bool = False
    minimum_ram_size: int = 0

    @classmethod
    def from_env(cls) -> "HeaderConfig":
        """
        Create HeaderConfig from environment variables.

        Invalid values are ignored and the default is kept.
        """
        config = cls()

        if algorithm := os.environ.get("TBF_APP_ID_DIGEST"):
            algorithm = algorithm.strip().lower()
            if is_usable_digest(algorithm):
                config.app_id_digest = algorithm

        if strict := os.environ.get("TBF_STRICT_REGIONS"):
            config.strict_regions = strict.strip().lower() in _TRUE_VALUES

        if ram := os.environ.get("TBF_MINIMUM_RAM_SIZE"):
            try:
                config.minimum_ram_size = int(ram, 0)
            except ValueError:
                pass  # Ignore invalid values

        return config

    def digest(self) -> Callable[[bytes], bytes]:
        """Digest callable for the configured algorithm."""
        return hashlib_digest(self.app_id_digest)

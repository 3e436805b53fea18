"""
Ledger configuration.

Defaults live on LedgerSettings; any of them can be overridden through
CERTICHAIN_* environment variables with LedgerSettings.from_env().
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core_crypto.content_hash import SUPPORTED_ALGORITHMS, DEFAULT_ALGORITHM


ENV_PREFIX = "CERTICHAIN_"

NONCE_STRATEGIES = ('random', 'fixed')
MAX_RANDOM_NONCE = 10000

DEFAULT_NETWORK_NAME = "CertiChain Network"
DEFAULT_UNIVERSITY = "University of Technology"
DEFAULT_NARRATOR_MODEL = "gemini-2.5-flash"
DEFAULT_NARRATOR_TIMEOUT = 30.0

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off', '')


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got '{raw}'")


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


@dataclass(frozen=True)
class LedgerSettings:
    """
    Runtime settings for the ledger and its collaborators.

    Attributes:
        hash_algorithm: 256-bit digest used for block hashes
        network_name: University field of the genesis record
        default_university: Pre-filled university of new certificates
        nonce_strategy: 'random' (0..9999) or 'fixed' (always 0)
        mining_delay: Cosmetic pause in seconds before a block is hashed
        verify_genesis: Also recompute genesis when validating
        narrator_model: Model name for the text-generation service
        narrator_timeout: HTTP timeout in seconds for the narrator
        api_key: Credential for the text-generation service
    """
    hash_algorithm: str = DEFAULT_ALGORITHM
    network_name: str = DEFAULT_NETWORK_NAME
    default_university: str = DEFAULT_UNIVERSITY
    nonce_strategy: str = 'random'
    mining_delay: float = 0.0
    verify_genesis: bool = False
    narrator_model: str = DEFAULT_NARRATOR_MODEL
    narrator_timeout: float = DEFAULT_NARRATOR_TIMEOUT
    api_key: Optional[str] = None

    def __post_init__(self):
        if self.hash_algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"hash_algorithm must be one of {sorted(SUPPORTED_ALGORITHMS)}"
            )
        if self.nonce_strategy not in NONCE_STRATEGIES:
            raise ValueError(f"nonce_strategy must be one of {NONCE_STRATEGIES}")
        if self.mining_delay < 0:
            raise ValueError("mining_delay cannot be negative")
        if self.narrator_timeout <= 0:
            raise ValueError("narrator_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'LedgerSettings':
        """
        Build settings from environment variables.

        Recognized: CERTICHAIN_HASH_ALGORITHM, CERTICHAIN_NETWORK_NAME,
        CERTICHAIN_DEFAULT_UNIVERSITY, CERTICHAIN_NONCE_STRATEGY,
        CERTICHAIN_MINING_DELAY, CERTICHAIN_VERIFY_GENESIS,
        CERTICHAIN_NARRATOR_MODEL, CERTICHAIN_NARRATOR_TIMEOUT and
        GOOGLE_API_KEY. Unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        for field_name in ('hash_algorithm', 'network_name', 'default_university',
                           'nonce_strategy', 'narrator_model'):
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is not None:
                kwargs[field_name] = raw.strip()

        for field_name in ('mining_delay', 'narrator_timeout'):
            var = ENV_PREFIX + field_name.upper()
            raw = env.get(var)
            if raw is not None:
                kwargs[field_name] = _parse_float(var, raw)

        var = ENV_PREFIX + 'VERIFY_GENESIS'
        raw = env.get(var)
        if raw is not None:
            kwargs['verify_genesis'] = _parse_bool(var, raw)

        api_key = env.get('GOOGLE_API_KEY')
        if api_key:
            kwargs['api_key'] = api_key

        return cls(**kwargs)

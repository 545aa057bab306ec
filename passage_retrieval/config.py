"""
Retriever configuration.

Defaults reproduce the standard BM25 setup (k1=1.5, b=0.75) with 3x
heading amplification and a 20-section position window. Values can be
overridden in code or through environment variables:

    RETRIEVAL_K1                 BM25 term saturation (0.0 - 3.0)
    RETRIEVAL_B                  BM25 length normalization (0.0 - 1.0)
    RETRIEVAL_STOP_WORD_POLICY   "strict" | "lenient"
    RETRIEVAL_STEMMING           "true" to enable Snowball stemming
    RETRIEVAL_HEADING_REPEAT     Heading token repetitions (≥ 0)
    RETRIEVAL_POSITION_WINDOW    Sections until position boost reaches 1.0x (> 0)
    RETRIEVAL_TOP_K              Default number of results (> 0)

Bad values are rejected up front: an out-of-range k1 or b does not fail
anywhere later, it just silently produces wrong rankings.
"""

import logging
import math
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .bm25.tokenizer import StopWordPolicy

logger = logging.getLogger(__name__)

K1_RANGE = (0.0, 3.0)
B_RANGE = (0.0, 1.0)


class ConfigurationError(ValueError):
    """Retriever configuration value is invalid"""


@dataclass(frozen=True)
class RetrieverConfig:
    """Tunable parameters shared by SectionRetriever and CorpusRetriever"""
    k1: float = 1.5
    b: float = 0.75
    stop_word_policy: StopWordPolicy = StopWordPolicy.STRICT
    stemming: bool = False
    heading_repeat: int = 3     # Single-corpus only
    position_window: int = 20   # Single-corpus only
    default_top_k: int = 5

    def __post_init__(self):
        if isinstance(self.stop_word_policy, str):
            object.__setattr__(self, "stop_word_policy", _parse_policy(self.stop_word_policy))
        elif not isinstance(self.stop_word_policy, StopWordPolicy):
            raise ConfigurationError(f"Invalid stop_word_policy: {self.stop_word_policy!r}")

        _check_range("k1", self.k1, K1_RANGE)
        _check_range("b", self.b, B_RANGE)

        for name in ("heading_repeat", "position_window", "default_top_k"):
            _check_int(name, getattr(self, name))

        if self.heading_repeat < 0:
            raise ConfigurationError(f"heading_repeat must be >= 0, got {self.heading_repeat}")
        if self.position_window <= 0:
            raise ConfigurationError(f"position_window must be > 0, got {self.position_window}")
        if self.default_top_k <= 0:
            raise ConfigurationError(f"default_top_k must be > 0, got {self.default_top_k}")

    @classmethod
    def for_sections(cls, **overrides) -> "RetrieverConfig":
        """Defaults for single-page retrieval (lenient stop words)"""
        overrides.setdefault("stop_word_policy", StopWordPolicy.LENIENT)
        overrides.setdefault("default_top_k", 3)
        return cls(**overrides)

    @classmethod
    def for_corpus(cls, **overrides) -> "RetrieverConfig":
        """Defaults for multi-document retrieval (strict stop words)"""
        overrides.setdefault("stop_word_policy", StopWordPolicy.STRICT)
        return cls(**overrides)

    def with_overrides(self, **overrides) -> "RetrieverConfig":
        return replace(self, **overrides)


def load_config(
    env_file: Optional[Union[str, Path]] = None,
    base: Optional[RetrieverConfig] = None,
    **overrides
) -> RetrieverConfig:
    """
    Build a RetrieverConfig from environment variables.

    Loads .env.local first (highest priority), then .env as fallback, from
    the working directory unless env_file points somewhere else. Variables
    that are not set keep the value from base (or the dataclass defaults).

    Args:
        env_file: Explicit dotenv file to load
        base: Config whose values are used for unset variables
        **overrides: Final say over both base and environment

    Returns:
        Validated RetrieverConfig

    Raises:
        ConfigurationError: A variable is set but cannot be parsed or is out of range
    """
    if env_file is not None:
        load_dotenv(env_file, override=True)
    else:
        env_local = Path.cwd() / ".env.local"
        env_default = Path.cwd() / ".env"
        if env_local.exists():
            logger.debug(f"Loading environment from: {env_local}")
            load_dotenv(env_local, override=True)
        elif env_default.exists():
            logger.debug(f"Loading environment from: {env_default}")
            load_dotenv(env_default, override=True)

    base = base or RetrieverConfig()
    values = {
        "k1": _env_float("RETRIEVAL_K1", base.k1),
        "b": _env_float("RETRIEVAL_B", base.b),
        "stop_word_policy": os.getenv("RETRIEVAL_STOP_WORD_POLICY") or base.stop_word_policy,
        "stemming": _env_bool("RETRIEVAL_STEMMING", base.stemming),
        "heading_repeat": _env_int("RETRIEVAL_HEADING_REPEAT", base.heading_repeat),
        "position_window": _env_int("RETRIEVAL_POSITION_WINDOW", base.position_window),
        "default_top_k": _env_int("RETRIEVAL_TOP_K", base.default_top_k),
    }
    values.update(overrides)

    config = RetrieverConfig(**values)
    logger.debug(f"Retriever config: {config}")
    return config


def _parse_policy(value: str) -> StopWordPolicy:
    try:
        return StopWordPolicy(value.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in StopWordPolicy)
        raise ConfigurationError(
            f"Unknown stop-word policy: {value!r}. Valid options: {valid}"
        ) from None


def _check_range(name: str, value: float, bounds):
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or not low <= value <= high:
        raise ConfigurationError(f"{name} must be within [{low}, {high}], got {value}")


def _check_int(name: str, value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() == "true"

"""Configuration loading and environment variable utilities."""

import os
import tomllib
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    ValidationError,
)

from miner_stats.helpers.constants import (
    DEFAULT_PARALLEL_FETCHES,
    DEFAULT_TIMEOUT,
    RPC_URL_ENV,
)
from miner_stats.helpers.errors import ConfigError
from miner_stats.keys.chains import ChainParams, chain_from_str


# Load environment variables from .env file
load_dotenv(find_dotenv(usecwd=True))


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default

    Example:
        ```python
        from miner_stats.helpers.config import get_optional_env

        rpc_url = get_optional_env("MINER_STATS_RPC_URL", "http://127.0.0.1:8232")
        ```
    """
    return os.getenv(key, default)


class MinerConfigEntry(BaseModel):
    """One `[[ufvks]]` table of the config file."""

    key: str = Field(..., min_length=1, description="Encoded unified viewing key")
    label: str = Field(..., description="Name shown in the report")


class ConfigFile(BaseModel):
    """Raw shape of the TOML config document."""

    start_height: NonNegativeInt
    chain: str
    rpc_url: str = Field(..., min_length=1)
    ufvks: list[MinerConfigEntry]
    cache_file: Path
    output_file: Path
    rpc_timeout: PositiveFloat = DEFAULT_TIMEOUT
    parallel_fetches: PositiveInt = DEFAULT_PARALLEL_FETCHES


class MinerEntry(BaseModel):
    """A miner whose payouts are attributed in the report."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str


class MinerStatsConfig(BaseModel):
    """Resolved configuration consumed by the pipeline."""

    model_config = ConfigDict(frozen=True)

    start_height: int
    chain: ChainParams
    rpc_url: str
    miners: list[MinerEntry]
    cache_file: Path
    output_file: Path
    rpc_timeout: float = DEFAULT_TIMEOUT
    parallel_fetches: int = DEFAULT_PARALLEL_FETCHES

    @classmethod
    def from_file(cls, path: Path | str) -> "MinerStatsConfig":
        """Read, validate and resolve a config file.

        Parent directories of the cache and output files are created so
        later writes only fail on genuine I/O problems.

        Args:
            path: Path to the TOML config document

        Returns:
            Resolved configuration

        Raises:
            ConfigError: If the file cannot be read or parsed, has no miners,
                names an unknown chain, or its output directories cannot be
                created
        """
        path = Path(path)
        try:
            raw = tomllib.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            msg = f"reading config file {path}: {e}"
            raise ConfigError(msg) from e
        except tomllib.TOMLDecodeError as e:
            msg = f"parsing config file {path}: {e}"
            raise ConfigError(msg) from e

        try:
            cfg = ConfigFile.model_validate(raw)
        except ValidationError as e:
            msg = f"parsing config file {path}: {e}"
            raise ConfigError(msg) from e

        if not cfg.ufvks:
            msg = "config must contain at least one UFVK entry"
            raise ConfigError(msg)

        try:
            chain = chain_from_str(cfg.chain)
        except ValueError as e:
            msg = f"invalid chain '{cfg.chain}': {e}"
            raise ConfigError(msg) from e

        for target in (cfg.cache_file, cfg.output_file):
            _ensure_parent_dir(target)

        return cls(
            start_height=cfg.start_height,
            chain=chain,
            rpc_url=get_optional_env(RPC_URL_ENV) or cfg.rpc_url,
            miners=[MinerEntry(key=e.key, label=e.label) for e in cfg.ufvks],
            cache_file=cfg.cache_file,
            output_file=cfg.output_file,
            rpc_timeout=cfg.rpc_timeout,
            parallel_fetches=cfg.parallel_fetches,
        )


def _ensure_parent_dir(path: Path) -> None:
    parent = path.parent
    if parent == Path():
        return
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"creating directory {parent}: {e}"
        raise ConfigError(msg) from e


__all__ = [
    "ConfigFile",
    "MinerConfigEntry",
    "MinerEntry",
    "MinerStatsConfig",
    "get_optional_env",
]

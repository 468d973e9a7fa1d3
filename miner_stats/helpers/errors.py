"""Exception hierarchy for the miner statistics pipeline."""

from pathlib import Path


class MinerStatsError(Exception):
    """Base class for every error the CLI reports to the user."""


class ConfigError(MinerStatsError):
    """Configuration document is missing, malformed or invalid."""


class StorageError(MinerStatsError):
    """Reading or writing a cache or report file failed."""

    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(message)
        self.path = Path(path)


class CacheCorruptError(StorageError):
    """Persisted block cache exists but cannot be parsed."""


class RpcError(MinerStatsError):
    """A JSON-RPC call failed.

    Covers transport failures, non-success HTTP status, JSON-RPC error
    envelopes, missing results and malformed response bodies.
    """

    def __init__(self, message: str, method: str, code: int | None = None) -> None:
        super().__init__(f"RPC {method} failed: {message}")
        self.method = method
        self.code = code


class RangeError(MinerStatsError):
    """Chain tip is below the configured start height."""


class KeyDecodeError(MinerStatsError):
    """A viewing key could not be decoded."""


class DerivationError(MinerStatsError):
    """An address could not be derived at the requested index."""


__all__ = [
    "CacheCorruptError",
    "ConfigError",
    "DerivationError",
    "KeyDecodeError",
    "MinerStatsError",
    "RangeError",
    "RpcError",
    "StorageError",
]

"""Common configuration constants used across the application."""

# Configuration
DEFAULT_CONFIG_PATH = "miner-stats-config.toml"
"""Config file used when --config is not given"""

RPC_URL_ENV = "MINER_STATS_RPC_URL"
"""Environment variable overriding the configured node RPC URL"""

LOG_LEVEL_ENV = "LOG_LEVEL"
"""Environment variable selecting the log level"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 10.0
"""Per-call JSON-RPC timeout in seconds"""

RPC_REQUEST_ID = "miner-stats"
"""JSON-RPC request id sent with every call"""

MAX_KEEPALIVE_CONNECTIONS = 16
"""Maximum number of keepalive connections in pool"""

MAX_CONNECTIONS = 32
"""Maximum total number of connections"""

# Concurrency Limits
DEFAULT_PARALLEL_FETCHES = 16
"""Default number of block fetches in flight at once"""

# Chain Constants
ZATS_PER_COIN = 100_000_000
"""Smallest units per major coin unit"""

GETBLOCK_VERBOSITY = 2
"""getblock verbosity that includes decoded transactions"""

MAX_NON_HARDENED_INDEX = 2**31 - 1
"""Largest index usable for non-hardened child derivation"""

DISPLAY_PLACES = 2
"""Decimal places kept for display values and percentages"""


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PARALLEL_FETCHES",
    "DEFAULT_TIMEOUT",
    "DISPLAY_PLACES",
    "GETBLOCK_VERBOSITY",
    "LOG_LEVEL_ENV",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MAX_NON_HARDENED_INDEX",
    "RPC_REQUEST_ID",
    "RPC_URL_ENV",
    "ZATS_PER_COIN",
]

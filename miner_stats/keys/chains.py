"""Network parameters needed to decode viewing keys and encode addresses."""

from pydantic import BaseModel, ConfigDict


class ChainParams(BaseModel):
    """Per-network encoding parameters."""

    model_config = ConfigDict(frozen=True)

    name: str
    ufvk_hrp: str
    p2pkh_prefix: bytes
    coin_symbol: str


MAINNET = ChainParams(
    name="mainnet",
    ufvk_hrp="uview",
    p2pkh_prefix=bytes.fromhex("1cb8"),
    coin_symbol="ZEC",
)

TESTNET = ChainParams(
    name="testnet",
    ufvk_hrp="uviewtest",
    p2pkh_prefix=bytes.fromhex("1d25"),
    coin_symbol="TAZ",
)

REGTEST = ChainParams(
    name="regtest",
    ufvk_hrp="uviewregtest",
    p2pkh_prefix=bytes.fromhex("1d25"),
    coin_symbol="TAZ",
)

CHAINS: dict[str, ChainParams] = {
    chain.name: chain for chain in (MAINNET, TESTNET, REGTEST)
}


def chain_from_str(name: str) -> ChainParams:
    """Look up chain parameters by name.

    Args:
        name: Chain identifier, case-insensitive ("mainnet", "testnet", "regtest")

    Returns:
        Matching ChainParams

    Raises:
        ValueError: If the chain is unknown
    """
    chain = CHAINS.get(name.strip().lower())
    if chain is None:
        msg = f"unknown chain '{name}' (expected one of: {', '.join(CHAINS)})"
        raise ValueError(msg)
    return chain


__all__ = [
    "CHAINS",
    "MAINNET",
    "REGTEST",
    "TESTNET",
    "ChainParams",
    "chain_from_str",
]

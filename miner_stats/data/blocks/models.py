"""Pydantic models for cached coinbase data."""

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from miner_stats.helpers.rpc_models import BlockResult


class CoinbaseOutput(BaseModel):
    """A single coinbase output: value in the smallest unit and its addresses."""

    model_config = ConfigDict(frozen=True)

    value_zat: int = Field(..., ge=-(2**63), lt=2**63)
    addresses: tuple[str, ...] = ()


class CachedBlock(BaseModel):
    """Minimal record of a block: its hash and coinbase outputs."""

    model_config = ConfigDict(frozen=True)

    height: NonNegativeInt
    hash: str
    outputs: tuple[CoinbaseOutput, ...] = ()

    @property
    def coinbase_total(self) -> int:
        """Sum of all coinbase output values."""
        return sum(output.value_zat for output in self.outputs)

    @classmethod
    def from_block_result(cls, height: int, block: BlockResult) -> "CachedBlock":
        """Keep only the first transaction's outputs of a decoded block."""
        coinbase = block.tx[0].vout if block.tx else []
        return cls(
            height=height,
            hash=block.hash,
            outputs=tuple(
                CoinbaseOutput(
                    value_zat=vout.value_zat,
                    addresses=tuple(vout.script_pub_key.addresses or ()),
                )
                for vout in coinbase
            ),
        )


__all__ = ["CachedBlock", "CoinbaseOutput"]

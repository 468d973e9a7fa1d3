"""Pydantic models for the miner attribution report."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Display values are written as JSON numbers, not strings.
DisplayDecimal = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class MinerBlockDetail(BaseModel):
    """A height where the miner's derived address received a positive value."""

    model_config = ConfigDict(frozen=True)

    block_height: int
    block_hash: str
    payout_address: str


class MinerAggregate(BaseModel):
    """Per-miner totals as listed in the report."""

    model_config = ConfigDict(frozen=True)

    label: str
    matched_blocks: int
    total_value: int = Field(..., description="Smallest units")
    total_value_display: DisplayDecimal = Field(..., description="Major units")
    share_percent: DisplayDecimal


class MinerSummary(MinerAggregate):
    """Per-miner totals with the list of matched blocks."""

    detailed_blocks: tuple[MinerBlockDetail, ...] = ()

    def aggregate(self) -> MinerAggregate:
        """Totals without the block list."""
        return MinerAggregate.model_validate(
            self.model_dump(exclude={"detailed_blocks"})
        )


class UnmatchedSummary(BaseModel):
    """Heights not attributed to any configured miner."""

    model_config = ConfigDict(frozen=True)

    blocks: int
    total_value: int
    total_value_display: DisplayDecimal
    share_percent: DisplayDecimal


class MinerStatsReport(BaseModel):
    """Attribution report for one height range.

    `unmatched` feeds the console table only and is never serialized.
    """

    model_config = ConfigDict(frozen=True)

    start_height: int
    end_height: int
    total_mined_blocks: int
    total_value: int
    total_value_display: DisplayDecimal
    miners: tuple[MinerAggregate, ...]
    detailed_miners: tuple[MinerSummary, ...]
    unmatched: UnmatchedSummary = Field(..., exclude=True)


__all__ = [
    "DisplayDecimal",
    "MinerAggregate",
    "MinerBlockDetail",
    "MinerStatsReport",
    "MinerSummary",
    "UnmatchedSummary",
]

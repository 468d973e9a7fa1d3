"""Attribute cached coinbase outputs to miners and aggregate the totals.

For every height in range and every miner, the miner's expected payout
address at that height (external scope, index = height) is matched against
the addresses of the cached coinbase outputs.

Aggregation rules:
- A miner's total is the sum of its matched output values over all heights.
- A height counts as mined once at least one miner matched a positive value.
  Its contribution to the global matched value is the largest single miner
  match at that height, so overlapping miners are not summed there even
  though each miner's own total keeps its full match.
- Unmatched value is the full coinbase total of heights no miner matched.
  Outputs of a matched height that belong to nobody are not counted.
- Heights that cannot be used as a derivation index are skipped for that
  miner without a record.
"""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from miner_stats.analysis.models import (
    MinerBlockDetail,
    MinerStatsReport,
    MinerSummary,
    UnmatchedSummary,
)
from miner_stats.data.blocks.cache import BlockCache
from miner_stats.data.blocks.models import CachedBlock
from miner_stats.helpers.config import MinerEntry
from miner_stats.helpers.constants import MAX_NON_HARDENED_INDEX
from miner_stats.helpers.errors import DerivationError
from miner_stats.helpers.parsers import percent_share, zats_to_coins
from miner_stats.keys.deriver import AddressDeriver, Scope


class MinerTally(BaseModel):
    """Result of matching one miner over the whole range."""

    model_config = ConfigDict(frozen=True)

    summary: MinerSummary
    matched_values: dict[int, int]


def matched_value(block: CachedBlock, address: str) -> int:
    """Sum of output values in `block` paid to `address`."""
    return sum(
        output.value_zat for output in block.outputs if address in output.addresses
    )


def tally_miner(
    miner: MinerEntry,
    cache: BlockCache,
    heights: range,
    deriver: AddressDeriver,
) -> MinerTally:
    """Match a single miner's derived addresses against every cached height.

    Args:
        miner: Miner whose key is used for derivation
        cache: Block cache, read only
        heights: Inclusive height range as a Python range
        deriver: Address derivation capability

    Returns:
        The miner's summary and its matched value per height

    Raises:
        KeyDecodeError: If the miner's key is malformed
    """
    details: list[MinerBlockDetail] = []
    matched_values: dict[int, int] = {}

    for height in heights:
        block = cache.get(height)
        if block is None or height > MAX_NON_HARDENED_INDEX:
            continue
        try:
            address = deriver.derive(miner.key, height, Scope.EXTERNAL)
        except DerivationError:
            continue

        value = matched_value(block, address)
        if value > 0:
            matched_values[height] = value
            details.append(
                MinerBlockDetail(
                    block_height=height,
                    block_hash=block.hash,
                    payout_address=address,
                )
            )

    total_value = sum(matched_values.values())
    summary = MinerSummary(
        label=miner.label,
        matched_blocks=len(details),
        total_value=total_value,
        total_value_display=zats_to_coins(total_value),
        share_percent=percent_share(len(details), len(heights)),
        detailed_blocks=tuple(details),
    )
    return MinerTally(summary=summary, matched_values=matched_values)


def compute_statistics(
    miners: Sequence[MinerEntry],
    cache: BlockCache,
    heights: range,
    deriver: AddressDeriver,
) -> MinerStatsReport:
    """Build the attribution report for `heights`.

    Args:
        miners: Configured miners, in report order
        cache: Block cache, read only
        heights: Inclusive height range as a Python range
        deriver: Address derivation capability

    Returns:
        Immutable report

    Example:
        ```python
        heights = height_range(cfg.start_height, tip)
        report = compute_statistics(cfg.miners, cache, heights, deriver)
        ```
    """
    total_heights = len(heights)
    coinbase_totals = {
        height: block.coinbase_total
        for height in heights
        if (block := cache.get(height)) is not None
    }

    tallies = [tally_miner(miner, cache, heights, deriver) for miner in miners]

    block_totals: dict[int, int] = {}
    for tally in tallies:
        for height, value in tally.matched_values.items():
            block_totals[height] = max(block_totals.get(height, value), value)

    matched_heights = block_totals.keys()
    unmatched_blocks = max(total_heights - len(matched_heights), 0)
    unmatched_value = sum(
        value
        for height, value in coinbase_totals.items()
        if height not in matched_heights
    )
    total_value = sum(block_totals.values()) + unmatched_value

    summaries = tuple(tally.summary for tally in tallies)
    return MinerStatsReport(
        start_height=heights.start,
        end_height=heights.stop - 1,
        total_mined_blocks=len(matched_heights),
        total_value=total_value,
        total_value_display=zats_to_coins(total_value),
        miners=tuple(summary.aggregate() for summary in summaries),
        detailed_miners=summaries,
        unmatched=UnmatchedSummary(
            blocks=unmatched_blocks,
            total_value=unmatched_value,
            total_value_display=zats_to_coins(unmatched_value),
            share_percent=percent_share(unmatched_blocks, total_heights),
        ),
    )


__all__ = ["MinerTally", "compute_statistics", "matched_value", "tally_miner"]

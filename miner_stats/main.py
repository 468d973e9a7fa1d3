"""Per-miner block reward attribution report.

Processing flow:
1. Load the config and the block cache
2. Fetch every uncached height up to the node tip (all or nothing)
3. Match each miner's derived payout addresses against coinbase outputs
4. Write the JSON report and print the console table

Usage:
    miner-stats --config miner-stats-config.toml
    python -m miner_stats.main --config miner-stats-config.toml
"""

import sys
from argparse import ArgumentParser
from asyncio import run
from pathlib import Path

from rich.console import Console
from rich.text import Text

from miner_stats.analysis.models import MinerStatsReport
from miner_stats.analysis.report import print_report, write_report
from miner_stats.analysis.statistics import compute_statistics
from miner_stats.data.blocks.backfill import BlockBackfill, height_range
from miner_stats.data.blocks.cache import BlockCache
from miner_stats.helpers.config import MinerStatsConfig
from miner_stats.helpers.constants import DEFAULT_CONFIG_PATH
from miner_stats.helpers.errors import MinerStatsError
from miner_stats.helpers.http import create_http_client
from miner_stats.helpers.logging import get_logger
from miner_stats.helpers.rpc import RPCClient
from miner_stats.keys.deriver import AddressDeriver, UnifiedKeyDeriver


logger = get_logger("miner_stats")


async def run_pipeline(
    cfg: MinerStatsConfig, deriver: AddressDeriver | None = None
) -> MinerStatsReport:
    """Refresh the cache, compute the report and write it to disk.

    Args:
        cfg: Resolved configuration
        deriver: Address derivation capability (default: UnifiedKeyDeriver
            for the configured chain)

    Returns:
        The report that was written

    Raises:
        MinerStatsError: On any unrecoverable failure
    """
    cache = BlockCache.load(cfg.cache_file)
    logger.info(
        "Loaded %d cached blocks (last tip %s)", len(cache.blocks), cache.last_tip
    )

    rpc = RPCClient(cfg.rpc_url, timeout=cfg.rpc_timeout)
    async with create_http_client(
        timeout=cfg.rpc_timeout, max_connections=cfg.parallel_fetches
    ) as client:
        backfill = BlockBackfill(
            rpc,
            cache,
            cfg.cache_file,
            cfg.start_height,
            parallel_fetches=cfg.parallel_fetches,
        )
        summary = await backfill.run(client)

    heights = height_range(cfg.start_height, summary.tip_height)
    report = compute_statistics(
        cfg.miners, cache, heights, deriver or UnifiedKeyDeriver(cfg.chain)
    )
    write_report(report, cfg.output_file)
    return report


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Process exit status
    """
    parser = ArgumentParser(description="Per-miner block reward attribution report")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_PATH),
        help=f"Path to the configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    args = parser.parse_args(argv)

    try:
        cfg = MinerStatsConfig.from_file(args.config)
        logger.info(
            "Loaded config %s: %d miners from height %d on %s",
            args.config,
            len(cfg.miners),
            cfg.start_height,
            cfg.chain.name,
        )
        report = run(run_pipeline(cfg))
    except MinerStatsError as e:
        Console(stderr=True).print(Text.assemble(("Error: ", "bold red"), str(e)))
        return 1

    print_report(report, cfg.chain.coin_symbol)
    return 0


def cli() -> None:
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    cli()

"""Fetch missing coinbase data from the node into the block cache."""

import asyncio
from pathlib import Path

import httpx
from pydantic import BaseModel
from rich.console import Console

from miner_stats.data.blocks.cache import BlockCache
from miner_stats.data.blocks.models import CachedBlock
from miner_stats.helpers.constants import DEFAULT_PARALLEL_FETCHES
from miner_stats.helpers.errors import RangeError
from miner_stats.helpers.logging import get_logger
from miner_stats.helpers.progress import create_fetch_progress
from miner_stats.helpers.rpc import RPCClient


logger = get_logger(__name__)


class FetchSummary(BaseModel):
    """Outcome of one cache refresh."""

    start_height: int
    tip_height: int
    missing: int
    fetched: int
    cache_updated: bool


def height_range(start_height: int, tip_height: int) -> range:
    """Inclusive range of heights from `start_height` to `tip_height`.

    Raises:
        RangeError: If the tip is below the start height
    """
    if tip_height < start_height:
        msg = f"tip height {tip_height} is below configured start height {start_height}"
        raise RangeError(msg)
    return range(start_height, tip_height + 1)


class BlockBackfill:
    """Bring the block cache up to the current chain tip.

    Missing heights are fetched concurrently and merged only when every
    fetch of the batch succeeded; a failed batch leaves the cache untouched.
    """

    def __init__(
        self,
        rpc: RPCClient,
        cache: BlockCache,
        cache_file: Path,
        start_height: int,
        parallel_fetches: int = DEFAULT_PARALLEL_FETCHES,
        console: Console | None = None,
    ) -> None:
        """Initialize backfill.

        Args:
            rpc: Node RPC client
            cache: Loaded block cache, updated in place on success
            cache_file: Where the cache is persisted after each update
            start_height: First height of the reporting range
            parallel_fetches: Maximum number of block fetches in flight
            console: Console for the progress display (default: stderr)
        """
        if parallel_fetches < 1:
            msg = "parallel_fetches must be at least 1"
            raise ValueError(msg)

        self.rpc = rpc
        self.cache = cache
        self.cache_file = cache_file
        self.start_height = start_height
        self.parallel_fetches = parallel_fetches
        self.console = console or Console(stderr=True)

    async def run(self, client: httpx.AsyncClient) -> FetchSummary:
        """Query the tip and sync the cache up to it.

        Args:
            client: HTTP client instance

        Returns:
            Summary of the refresh
        """
        tip_height = await self.rpc.get_block_count(client)
        logger.info("Node tip height: %d", tip_height)
        return await self.sync_to_tip(client, tip_height)

    async def sync_to_tip(
        self, client: httpx.AsyncClient, tip_height: int
    ) -> FetchSummary:
        """Fetch every uncached height in [start_height, tip_height].

        Args:
            client: HTTP client instance
            tip_height: Current chain tip

        Returns:
            Summary of the refresh

        Raises:
            RangeError: If tip_height < start_height
            RpcError: If any fetch of the batch failed; nothing is merged
            StorageError: If the cache cannot be persisted
        """
        heights = height_range(self.start_height, tip_height)
        missing = self.cache.missing(heights)
        summary = FetchSummary(
            start_height=self.start_height,
            tip_height=tip_height,
            missing=len(missing),
            fetched=0,
            cache_updated=False,
        )

        if missing:
            logger.info(
                "Fetching %d of %d blocks from RPC", len(missing), len(heights)
            )
            blocks = await self.fetch_batch(client, missing)
            for block in blocks:
                self.cache.insert(block)
            self.cache.last_tip = tip_height
            self.cache.save(self.cache_file)
            logger.info("Cached %d new blocks in %s", len(blocks), self.cache_file)
            return summary.model_copy(
                update={"fetched": len(blocks), "cache_updated": True}
            )

        if self.cache.last_tip != tip_height:
            self.cache.last_tip = tip_height
            self.cache.save(self.cache_file)
            logger.debug("Recorded new tip %d in %s", tip_height, self.cache_file)
            return summary.model_copy(update={"cache_updated": True})

        logger.info("Cache already covers heights %d-%d", heights[0], heights[-1])
        return summary

    async def fetch_batch(
        self, client: httpx.AsyncClient, heights: list[int]
    ) -> list[CachedBlock]:
        """Fetch all `heights` concurrently, all or nothing.

        Workers already in flight when one fails are allowed to finish and
        their results are dropped; workers not yet started are skipped.

        Args:
            client: HTTP client instance
            heights: Heights to fetch

        Returns:
            Blocks in the order of `heights`

        Raises:
            Exception: The first failure in height order, once all workers
                have returned
        """
        semaphore = asyncio.Semaphore(self.parallel_fetches)
        failed = asyncio.Event()
        progress = create_fetch_progress(self.console)

        with progress:
            task_id = progress.add_task("Fetching blocks", total=len(heights))

            async def fetch_one(height: int) -> CachedBlock | None:
                async with semaphore:
                    if failed.is_set():
                        return None
                    try:
                        block = await self.rpc.fetch_block(client, height)
                    except Exception:
                        failed.set()
                        raise
                progress.advance(task_id)
                return block

            results = await asyncio.gather(
                *[fetch_one(height) for height in heights], return_exceptions=True
            )

        for height, result in zip(heights, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("Fetching block %d failed: %s", height, result)
                result.add_note(f"while fetching block at height {height}")
                raise result

        return [block for block in results if isinstance(block, CachedBlock)]


__all__ = ["BlockBackfill", "FetchSummary", "height_range"]

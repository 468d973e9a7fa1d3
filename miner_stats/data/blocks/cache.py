"""Persistent JSON cache of coinbase data keyed by block height."""

import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from miner_stats.data.blocks.models import CachedBlock
from miner_stats.helpers.errors import CacheCorruptError, StorageError
from miner_stats.helpers.logging import get_logger


logger = get_logger(__name__)


class BlockCache(BaseModel):
    """Blocks fetched so far plus the last chain tip seen.

    Keys are unique heights with no implied contiguity. Every block present
    was fetched successfully; blocks are never replaced once inserted.
    """

    last_tip: int | None = None
    blocks: dict[int, CachedBlock] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | str) -> "BlockCache":
        """Load the cache from disk.

        Args:
            path: Cache file location

        Returns:
            The persisted cache, or an empty one when the file does not exist

        Raises:
            StorageError: If the file exists but cannot be read
            CacheCorruptError: If the file content cannot be parsed
        """
        path = Path(path)
        if not path.exists():
            logger.debug("No cache at %s, starting empty", path)
            return cls()

        try:
            raw = path.read_bytes()
        except OSError as e:
            msg = f"reading cache {path}: {e}"
            raise StorageError(msg, path) from e

        try:
            cache = cls.model_validate_json(raw)
        except ValidationError as e:
            msg = f"parsing cache {path}: {e}"
            raise CacheCorruptError(msg, path) from e

        for height, block in cache.blocks.items():
            if block.height != height:
                msg = (
                    f"parsing cache {path}: block keyed {height} "
                    f"has height {block.height}"
                )
                raise CacheCorruptError(msg, path)

        logger.debug("Loaded %d cached blocks from %s", len(cache.blocks), path)
        return cache

    def save(self, path: Path | str) -> None:
        """Serialize the whole cache, replacing any previous file.

        The document is written to a sibling temporary file and moved into
        place, so readers see either the old or the new content.

        Args:
            path: Cache file location

        Raises:
            StorageError: If writing fails
        """
        path = Path(path)
        ordered = self.model_copy(update={"blocks": dict(sorted(self.blocks.items()))})
        payload = ordered.model_dump_json(indent=2)

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent if path.parent != Path() else None,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            msg = f"writing cache {path}: {e}"
            raise StorageError(msg, path) from e

        logger.debug("Saved %d blocks to %s", len(self.blocks), path)

    def contains(self, height: int) -> bool:
        """Whether a block at `height` is cached."""
        return height in self.blocks

    def get(self, height: int) -> CachedBlock | None:
        """Cached block at `height`, if any."""
        return self.blocks.get(height)

    def insert(self, block: CachedBlock) -> None:
        """Add a block; an already cached height keeps its first record."""
        self.blocks.setdefault(block.height, block)

    def missing(self, heights: range) -> list[int]:
        """Heights of `heights` that are not cached, in ascending order."""
        return [height for height in heights if height not in self.blocks]


__all__ = ["BlockCache"]

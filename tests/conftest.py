"""Pytest configuration and shared fixtures."""

import json
from collections.abc import Callable, Iterable
from pathlib import Path

import httpx
import pytest

from miner_stats.data.blocks.cache import BlockCache
from miner_stats.data.blocks.models import CachedBlock, CoinbaseOutput
from miner_stats.helpers.errors import DerivationError
from miner_stats.keys.deriver import Scope


RPC_URL = "http://node.test:8232/"


class FakeDeriver:
    """AddressDeriver returning preset addresses per (key, height)."""

    def __init__(
        self,
        addresses: dict[tuple[str, int], str] | None = None,
        failing: Iterable[int] = (),
    ) -> None:
        self.addresses = addresses or {}
        self.failing = set(failing)
        self.calls: list[tuple[str, int, Scope]] = []

    def derive(self, key: str, index: int, scope: Scope = Scope.EXTERNAL) -> str:
        self.calls.append((key, index, scope))
        if index in self.failing:
            msg = f"index {index} not derivable"
            raise DerivationError(msg)
        return self.addresses.get((key, index), f"{key}-unused-{index}")


def make_block(height: int, *outputs: tuple[int, list[str]]) -> CachedBlock:
    """CachedBlock with hash `h<height>` and the given (value, addresses) outputs."""
    return CachedBlock(
        height=height,
        hash=f"h{height}",
        outputs=tuple(
            CoinbaseOutput(value_zat=value, addresses=tuple(addresses))
            for value, addresses in outputs
        ),
    )


@pytest.fixture
def fake_deriver() -> Callable[..., FakeDeriver]:
    """Factory for FakeDeriver instances."""
    return FakeDeriver


@pytest.fixture
def block_factory() -> Callable[..., CachedBlock]:
    """Factory for CachedBlock instances."""
    return make_block


@pytest.fixture
def scenario_cache() -> BlockCache:
    """Heights 100-102: a 5 coin payout to addrA, an empty block, 3 coins to addrB."""
    cache = BlockCache(last_tip=102)
    cache.insert(make_block(100, (500_000_000, ["addrA"])))
    cache.insert(make_block(101))
    cache.insert(make_block(102, (300_000_000, ["addrB"])))
    return cache


@pytest.fixture
def rpc_url() -> str:
    """Node URL used by HTTP mocks."""
    return RPC_URL


def node_block_json(block: CachedBlock) -> dict:
    """getblock verbosity 2 result for a cached block."""
    return {
        "hash": block.hash,
        "height": block.height,
        "confirmations": 1,
        "tx": [
            {
                "txid": f"coinbase-{block.height}",
                "vout": [
                    {
                        "value": output.value_zat / 100_000_000,
                        "valueZat": output.value_zat,
                        "n": n,
                        "scriptPubKey": (
                            {"type": "pubkeyhash", "addresses": list(output.addresses)}
                            if output.addresses
                            else {"type": "nonstandard"}
                        ),
                    }
                    for n, output in enumerate(block.outputs)
                ],
            }
        ],
    }


class FakeNode:
    """In-memory node answering getblockcount, getblockhash and getblock."""

    def __init__(self, tip: int, blocks: dict[int, CachedBlock]) -> None:
        self.tip = tip
        self.blocks = blocks
        self.failing_methods: set[str] = set()
        self.requests: list[tuple[str, list]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.requests.append((method, params))

        if method in self.failing_methods:
            return httpx.Response(
                500,
                json={
                    "result": None,
                    "error": {"code": -8, "message": f"{method} unavailable"},
                    "id": body["id"],
                },
            )
        if method == "getblockcount":
            result: object = self.tip
        elif method == "getblockhash":
            result = self.blocks[params[0]].hash
        elif method == "getblock":
            block = next(b for b in self.blocks.values() if b.hash == params[0])
            result = node_block_json(block)
        else:
            return httpx.Response(
                404,
                json={
                    "result": None,
                    "error": {"code": -32601, "message": "Method not found"},
                    "id": body["id"],
                },
            )
        return httpx.Response(
            200, json={"result": result, "error": None, "id": body["id"]}
        )

    def count(self, method: str) -> int:
        """Number of requests received for `method`."""
        return sum(1 for m, _ in self.requests if m == method)


@pytest.fixture
def fake_node() -> Callable[..., FakeNode]:
    """Factory for FakeNode handlers, to be registered with httpx_mock."""
    return FakeNode


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a TOML config into tmp_path and return its path."""

    def _write(text: str, name: str = "miner-stats-config.toml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write

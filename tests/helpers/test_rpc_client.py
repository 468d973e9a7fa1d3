"""Tests for RPC client."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from miner_stats.data.blocks.models import CachedBlock, CoinbaseOutput
from miner_stats.helpers.errors import RpcError
from miner_stats.helpers.rpc import RPCClient


URL = "http://node.test:8232/"


def ok(result: object) -> dict:
    """Successful JSON-RPC response body."""
    return {"result": result, "error": None, "id": "miner-stats"}


class TestRPCClient:
    """Tests for RPCClient class."""

    def test_init_with_valid_url(self) -> None:
        """Test RPCClient initialization with valid URL."""
        client = RPCClient(URL)

        assert client.rpc_url == URL
        assert client.timeout == 10.0

    def test_init_with_custom_timeout(self) -> None:
        """Test RPCClient initialization with custom timeout."""
        assert RPCClient(URL, timeout=3.0).timeout == 3.0

    def test_init_with_empty_url_raises(self) -> None:
        """Test that empty URL raises ValueError."""
        with pytest.raises(ValueError, match="RPC URL cannot be empty"):
            RPCClient("")

    @pytest.mark.asyncio
    async def test_call_sends_envelope(self, httpx_mock: HTTPXMock) -> None:
        """Test the JSON-RPC 2.0 envelope is posted."""
        httpx_mock.add_response(url=URL, method="POST", json=ok(42))

        async with httpx.AsyncClient() as http:
            result = await RPCClient(URL).call(http, "getblockhash", [42])

        assert result == 42
        request = httpx_mock.get_request()
        assert request is not None
        assert json.loads(request.content) == {
            "jsonrpc": "2.0",
            "method": "getblockhash",
            "params": [42],
            "id": "miner-stats",
        }

    @pytest.mark.asyncio
    async def test_get_block_count(self, httpx_mock: HTTPXMock) -> None:
        """Test getting the tip height."""
        httpx_mock.add_response(url=URL, json=ok(2748))

        async with httpx.AsyncClient() as http:
            assert await RPCClient(URL).get_block_count(http) == 2748

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test a JSON-RPC error object becomes RpcError with its code."""
        httpx_mock.add_response(
            url=URL,
            status_code=500,
            json={
                "result": None,
                "error": {"code": -8, "message": "Block height out of range"},
                "id": "miner-stats",
            },
        )

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="Block height out of range") as exc:
                await RPCClient(URL).call(http, "getblockhash", [10**9])

        assert exc.value.method == "getblockhash"
        assert exc.value.code == -8

    @pytest.mark.asyncio
    async def test_http_status_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test a non-success status without envelope becomes RpcError."""
        httpx_mock.add_response(url=URL, status_code=401, text="Unauthorized")

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="HTTP 401"):
                await RPCClient(URL).get_block_count(http)

    @pytest.mark.asyncio
    async def test_missing_result_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test a response without result becomes RpcError."""
        httpx_mock.add_response(url=URL, json={"id": "miner-stats"})

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="getblockcount failed: returned no"):
                await RPCClient(URL).get_block_count(http)

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test a non-JSON body becomes RpcError."""
        httpx_mock.add_response(url=URL, text="<html>proxy error</html>")

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="malformed response body"):
                await RPCClient(URL).get_block_count(http)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test connection failures become RpcError naming the method."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=URL)

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="getblockcount failed: transport"):
                await RPCClient(URL).get_block_count(http)

    @pytest.mark.asyncio
    async def test_non_integer_block_count_raises(self, httpx_mock: HTTPXMock) -> None:
        """Test a wrongly typed result is rejected."""
        httpx_mock.add_response(url=URL, json=ok("12"))

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="malformed result"):
                await RPCClient(URL).get_block_count(http)

    @pytest.mark.asyncio
    async def test_fetch_block(self, httpx_mock: HTTPXMock) -> None:
        """Test fetch_block resolves the hash then reads coinbase outputs."""
        httpx_mock.add_response(
            url=URL,
            match_json={
                "jsonrpc": "2.0",
                "method": "getblockhash",
                "params": [7],
                "id": "miner-stats",
            },
            json=ok("00aa"),
        )
        httpx_mock.add_response(
            url=URL,
            match_json={
                "jsonrpc": "2.0",
                "method": "getblock",
                "params": ["00aa", 2],
                "id": "miner-stats",
            },
            json=ok(
                {
                    "hash": "00aa",
                    "height": 7,
                    "tx": [
                        {
                            "vout": [
                                {
                                    "valueZat": 250_000_000,
                                    "scriptPubKey": {"addresses": ["tmMiner"]},
                                },
                                {"valueZat": 62_500_000, "scriptPubKey": {}},
                            ]
                        },
                        {
                            "vout": [
                                {"valueZat": 1, "scriptPubKey": {"addresses": ["x"]}}
                            ]
                        },
                    ],
                }
            ),
        )

        async with httpx.AsyncClient() as http:
            block = await RPCClient(URL).fetch_block(http, 7)

        assert block == CachedBlock(
            height=7,
            hash="00aa",
            outputs=(
                CoinbaseOutput(value_zat=250_000_000, addresses=("tmMiner",)),
                CoinbaseOutput(value_zat=62_500_000, addresses=()),
            ),
        )

    @pytest.mark.asyncio
    async def test_fetch_block_without_transactions(
        self, httpx_mock: HTTPXMock
    ) -> None:
        """Test a block without transactions has no outputs."""
        httpx_mock.add_response(url=URL, json=ok("00bb"))
        httpx_mock.add_response(
            url=URL, json=ok({"hash": "00bb", "height": 8, "tx": []})
        )

        async with httpx.AsyncClient() as http:
            block = await RPCClient(URL).fetch_block(http, 8)

        assert block.outputs == ()
        assert block.coinbase_total == 0

    @pytest.mark.asyncio
    async def test_fetch_block_malformed_block(self, httpx_mock: HTTPXMock) -> None:
        """Test a getblock result missing fields names getblock."""
        httpx_mock.add_response(url=URL, json=ok("00cc"))
        httpx_mock.add_response(url=URL, json=ok({"height": 9}))

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError) as exc:
                await RPCClient(URL).fetch_block(http, 9)

        assert exc.value.method == "getblock"

    @pytest.mark.asyncio
    async def test_fetch_block_value_out_of_range(self, httpx_mock: HTTPXMock) -> None:
        """Test an output value beyond 64 bits is reported as an RPC error."""
        httpx_mock.add_response(url=URL, json=ok("00dd"))
        httpx_mock.add_response(
            url=URL,
            json=ok(
                {
                    "hash": "00dd",
                    "height": 10,
                    "tx": [{"vout": [{"valueZat": 2**63, "scriptPubKey": {}}]}],
                }
            ),
        )

        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="malformed result") as exc:
                await RPCClient(URL).fetch_block(http, 10)

        assert exc.value.method == "getblock"

    @pytest.mark.asyncio
    async def test_invalid_url_raises(self) -> None:
        """Test an unparseable node URL becomes RpcError."""
        async with httpx.AsyncClient() as http:
            with pytest.raises(RpcError, match="getblockcount failed: transport"):
                await RPCClient("http://node\x00.test/").get_block_count(http)

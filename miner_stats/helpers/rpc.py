"""Node JSON-RPC client utilities."""

from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from miner_stats.data.blocks.models import CachedBlock
from miner_stats.helpers.constants import DEFAULT_TIMEOUT, GETBLOCK_VERBOSITY
from miner_stats.helpers.errors import RpcError
from miner_stats.helpers.logging import get_logger
from miner_stats.helpers.rpc_models import BlockResult, JsonRpcRequest, JsonRpcResponse


logger = get_logger(__name__)

_height_adapter = TypeAdapter(int)
_hash_adapter = TypeAdapter(str)


class RPCClient:
    """JSON-RPC client for a zcashd-compatible node.

    Every call is a single POST bounded by the client timeout; failures are
    not retried.
    """

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Node JSON-RPC endpoint URL
            timeout: Timeout for each request in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
    ) -> Any:
        """Make a single JSON-RPC call.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "getblockcount")
            params: Method parameters list

        Returns:
            RPC result value, never None

        Raises:
            RpcError: On transport failure, non-success HTTP status, a
                JSON-RPC error object, a malformed body or a missing result
        """
        payload = JsonRpcRequest(method=method, params=params or [])

        try:
            response = await client.post(
                self.rpc_url, json=payload.model_dump(), timeout=self.timeout
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            msg = f"transport error: {e!r}"
            raise RpcError(msg, method) from e

        try:
            envelope = JsonRpcResponse.model_validate_json(response.content)
        except ValidationError as e:
            if not response.is_success:
                msg = f"HTTP {response.status_code}"
                raise RpcError(msg, method) from e
            msg = "malformed response body"
            raise RpcError(msg, method) from e

        if envelope.error is not None:
            msg = f"error {envelope.error.code}: {envelope.error.message}"
            raise RpcError(msg, method, code=envelope.error.code)

        if not response.is_success:
            msg = f"HTTP {response.status_code}"
            raise RpcError(msg, method)

        if envelope.result is None:
            msg = "returned no result"
            raise RpcError(msg, method)

        return envelope.result

    async def get_block_count(self, client: httpx.AsyncClient) -> int:
        """Get the current chain tip height.

        Args:
            client: HTTP client instance

        Returns:
            Tip height
        """
        result = await self.call(client, "getblockcount")
        return _validate(_height_adapter, result, "getblockcount", non_negative=True)

    async def get_block_hash(self, client: httpx.AsyncClient, height: int) -> str:
        """Resolve a height to its block hash.

        Args:
            client: HTTP client instance
            height: Block height

        Returns:
            Block hash as hex string
        """
        result = await self.call(client, "getblockhash", [height])
        return _validate(_hash_adapter, result, "getblockhash")

    async def get_block(
        self, client: httpx.AsyncClient, block_hash: str
    ) -> BlockResult:
        """Fetch a block with decoded transactions.

        Args:
            client: HTTP client instance
            block_hash: Hash returned by getblockhash

        Returns:
            Parsed getblock result
        """
        result = await self.call(client, "getblock", [block_hash, GETBLOCK_VERBOSITY])
        try:
            return BlockResult.model_validate(result)
        except ValidationError as e:
            msg = f"malformed result: {e}"
            raise RpcError(msg, "getblock") from e

    async def fetch_block(self, client: httpx.AsyncClient, height: int) -> CachedBlock:
        """Fetch the coinbase outputs of the block at `height`.

        Two sequential calls: getblockhash, then getblock with verbosity 2.
        Only the first transaction's outputs are kept.

        Args:
            client: HTTP client instance
            height: Block height

        Returns:
            CachedBlock for the height

        Raises:
            RpcError: If either call fails or the block does not fit the cache
                model

        Example:
            ```python
            rpc = RPCClient("http://127.0.0.1:8232")
            async with create_http_client() as client:
                block = await rpc.fetch_block(client, 1_000_000)
            ```
        """
        block_hash = await self.get_block_hash(client, height)
        block = await self.get_block(client, block_hash)
        logger.debug("Fetched block %d (%s)", height, block_hash)
        try:
            return CachedBlock.from_block_result(height, block)
        except ValidationError as e:
            msg = f"malformed result: {e}"
            raise RpcError(msg, "getblock") from e


def _validate(
    adapter: TypeAdapter[Any],
    value: Any,
    method: str,
    *,
    non_negative: bool = False,
) -> Any:
    try:
        parsed = adapter.validate_python(value, strict=True)
    except ValidationError as e:
        msg = f"malformed result: {value!r}"
        raise RpcError(msg, method) from e
    if non_negative and parsed < 0:
        msg = f"malformed result: {value!r}"
        raise RpcError(msg, method)
    return parsed


__all__ = ["RPCClient"]

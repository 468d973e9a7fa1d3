"""Pydantic models for JSON-RPC requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from miner_stats.helpers.constants import RPC_REQUEST_ID


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(default=RPC_REQUEST_ID, description="Request ID")


class JsonRpcErrorObject(BaseModel):
    """Error member of a JSON-RPC response."""

    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """JSON-RPC response envelope; `result` is validated by the caller."""

    result: Any = None
    error: JsonRpcErrorObject | None = None
    id: Any = None


class ScriptPubKey(BaseModel):
    """Output script; only the resolved addresses are kept."""

    addresses: list[str] | None = None

    model_config = ConfigDict(extra="ignore")


class BlockVout(BaseModel):
    """Transaction output as reported by getblock verbosity 2."""

    value_zat: int = Field(..., alias="valueZat")
    script_pub_key: ScriptPubKey = Field(
        default_factory=ScriptPubKey, alias="scriptPubKey"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BlockTx(BaseModel):
    """Decoded transaction; only outputs are needed."""

    vout: list[BlockVout] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class BlockResult(BaseModel):
    """Result of getblock with verbosity 2."""

    hash: str
    height: int
    tx: list[BlockTx] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


__all__ = [
    "BlockResult",
    "BlockTx",
    "BlockVout",
    "JsonRpcErrorObject",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ScriptPubKey",
]

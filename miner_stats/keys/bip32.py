"""Non-hardened BIP 32 public key derivation and P2PKH address encoding."""

import hashlib
import hmac

import base58
from coincurve import PublicKey
from pydantic import BaseModel, ConfigDict, field_validator

from miner_stats.helpers.constants import MAX_NON_HARDENED_INDEX
from miner_stats.helpers.errors import DerivationError


class ExtendedPublicKey(BaseModel):
    """Chain code and compressed secp256k1 public key."""

    model_config = ConfigDict(frozen=True)

    chain_code: bytes
    public_key: bytes

    @field_validator("chain_code")
    @classmethod
    def _check_chain_code(cls, value: bytes) -> bytes:
        if len(value) != 32:
            msg = f"chain code must be 32 bytes, got {len(value)}"
            raise ValueError(msg)
        return value

    @field_validator("public_key")
    @classmethod
    def _check_public_key(cls, value: bytes) -> bytes:
        # Also rejects points that are not on the curve.
        return PublicKey(value).format(compressed=True)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ExtendedPublicKey":
        """Parse the 65-byte `chain_code || pubkey` serialization."""
        if len(data) != 65:
            msg = f"extended public key must be 65 bytes, got {len(data)}"
            raise ValueError(msg)
        return cls(chain_code=data[:32], public_key=data[32:])

    def derive_child(self, index: int) -> "ExtendedPublicKey":
        """CKDpub: derive the non-hardened child at `index`.

        Raises:
            DerivationError: If the index is hardened or out of range, or the
                derived key is invalid
        """
        if not 0 <= index <= MAX_NON_HARDENED_INDEX:
            msg = f"index {index} is not a non-hardened child index"
            raise DerivationError(msg)

        digest = hmac.digest(
            self.chain_code, self.public_key + index.to_bytes(4, "big"), "sha512"
        )
        tweak, chain_code = digest[:32], digest[32:]
        try:
            child = PublicKey(self.public_key).add(tweak)
        except ValueError as e:
            msg = f"invalid child key at index {index}"
            raise DerivationError(msg) from e
        return ExtendedPublicKey(
            chain_code=chain_code, public_key=child.format(compressed=True)
        )


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))."""
    return hashlib.new("ripemd160", hashlib.sha256(data).digest()).digest()


def p2pkh_address(public_key: bytes, prefix: bytes) -> str:
    """Base58Check transparent address for a compressed public key."""
    return base58.b58encode_check(prefix + hash160(public_key)).decode("ascii")


__all__ = ["ExtendedPublicKey", "hash160", "p2pkh_address"]

"""Transparent payout address derivation from unified viewing keys."""

from enum import IntEnum
from typing import Protocol

from pydantic import ValidationError

from miner_stats.helpers.errors import KeyDecodeError
from miner_stats.helpers.parsers import shorten_key
from miner_stats.keys.bip32 import ExtendedPublicKey, p2pkh_address
from miner_stats.keys.chains import ChainParams
from miner_stats.keys.unified import TYPECODE_P2PKH, decode_unified


class Scope(IntEnum):
    """BIP 44 change level: external receiving or internal change addresses."""

    EXTERNAL = 0
    INTERNAL = 1


class AddressDeriver(Protocol):
    """Capability that maps (viewing key, index, scope) to an address."""

    def derive(self, key: str, index: int, scope: Scope = Scope.EXTERNAL) -> str:
        """Derive the encoded transparent address.

        Raises:
            KeyDecodeError: If `key` is malformed
            DerivationError: If `index` cannot be used as a derivation index
        """
        ...


class UnifiedKeyDeriver:
    """AddressDeriver backed by the transparent item of a unified viewing key.

    The transparent item holds the account-level extended public key; the
    address at `index` is account / scope / index, non-hardened throughout.
    Decoded keys and scope keys are memoised per key string.
    """

    def __init__(self, chain: ChainParams) -> None:
        self.chain = chain
        self._scopes: dict[tuple[str, Scope], ExtendedPublicKey] = {}

    def account_key(self, key: str) -> ExtendedPublicKey:
        """Decode the account-level transparent key of a viewing key.

        Raises:
            KeyDecodeError: If the key is malformed or has no transparent item
        """
        try:
            items = decode_unified(key, self.chain.ufvk_hrp)
        except KeyDecodeError as e:
            msg = f"decoding UFVK {shorten_key(key)}: {e}"
            raise KeyDecodeError(msg) from e

        transparent = items.get(TYPECODE_P2PKH)
        if transparent is None:
            msg = f"decoding UFVK {shorten_key(key)}: no transparent component"
            raise KeyDecodeError(msg)

        try:
            return ExtendedPublicKey.from_bytes(transparent)
        except (ValueError, ValidationError) as e:
            msg = f"decoding UFVK {shorten_key(key)}: invalid transparent key: {e}"
            raise KeyDecodeError(msg) from e

    def _scope_key(self, key: str, scope: Scope) -> ExtendedPublicKey:
        cached = self._scopes.get((key, scope))
        if cached is None:
            cached = self.account_key(key).derive_child(int(scope))
            self._scopes[key, scope] = cached
        return cached

    def derive(self, key: str, index: int, scope: Scope = Scope.EXTERNAL) -> str:
        """Derive the P2PKH address at `index` of `scope`.

        Args:
            key: Encoded unified viewing key
            index: Non-hardened child index
            scope: External or internal chain

        Returns:
            Base58Check encoded transparent address

        Raises:
            KeyDecodeError: If `key` is malformed
            DerivationError: If `index` is outside the non-hardened range
        """
        child = self._scope_key(key, scope).derive_child(index)
        return p2pkh_address(child.public_key, self.chain.p2pkh_prefix)


__all__ = ["AddressDeriver", "Scope", "UnifiedKeyDeriver"]

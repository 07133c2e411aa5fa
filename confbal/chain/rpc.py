"""
Chain Query

Reads a user's encrypted balance from the confidential token contract
through Ethereum JSON-RPC (`eth_call` of balanceOfEnc(address,address)).

The contract may return the 128 bytes either as dynamic `bytes`
(offset, length, data) or as a static `uint8[128]` (one word per byte);
both encodings are accepted.
"""

from __future__ import annotations
import itertools
import logging
from typing import Any, List, Optional

import httpx
from Crypto.Hash import keccak

from confbal.codec.public_inputs import FieldLike, address_to_field
from confbal.constants import (
    BALANCE_OF_ENC_SIGNATURE,
    DEFAULT_RPC_TIMEOUT_SEC,
    ENCRYPTED_BALANCE_SIZE,
    FIELD_ELEMENT_SIZE,
)
from confbal.core.types import EncryptedBalance, field_to_bytes
from confbal.errors import ChainQueryError

logger = logging.getLogger(__name__)


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256(signature)."""
    return keccak.new(digest_bits=256, data=signature.encode()).digest()[:4]


BALANCE_OF_ENC_SELECTOR = function_selector(BALANCE_OF_ENC_SIGNATURE)


def encode_balance_of_enc(token: FieldLike, user: FieldLike) -> str:
    """Calldata for balanceOfEnc(token, user)."""
    data = (
        BALANCE_OF_ENC_SELECTOR
        + field_to_bytes(address_to_field(token))
        + field_to_bytes(address_to_field(user))
    )
    return "0x" + data.hex()


def decode_balance_result(result: str) -> EncryptedBalance:
    """
    Decode an eth_call result into an EncryptedBalance.

    Raises:
        ChainQueryError: If the return data matches neither encoding
    """
    method = "balanceOfEnc"
    try:
        raw = bytes.fromhex(result[2:] if result.startswith("0x") else result)
    except ValueError:
        raise ChainQueryError(method, "result is not hex") from None

    def word(index: int) -> int:
        start = index * FIELD_ELEMENT_SIZE
        return int.from_bytes(raw[start:start + FIELD_ELEMENT_SIZE], "big")

    # Static uint8[128]
    if len(raw) == ENCRYPTED_BALANCE_SIZE * FIELD_ELEMENT_SIZE:
        values = [word(i) for i in range(ENCRYPTED_BALANCE_SIZE)]
        if any(v > 0xFF for v in values):
            raise ChainQueryError(method, "uint8 array element out of range")
        return EncryptedBalance(bytes(values))

    # Dynamic bytes
    if len(raw) < 2 * FIELD_ELEMENT_SIZE:
        raise ChainQueryError(method, f"return data too short: {len(raw)} bytes")
    offset = word(0)
    if offset % FIELD_ELEMENT_SIZE or offset + FIELD_ELEMENT_SIZE > len(raw):
        raise ChainQueryError(method, f"bad bytes offset {offset}")
    length = int.from_bytes(raw[offset:offset + FIELD_ELEMENT_SIZE], "big")
    start = offset + FIELD_ELEMENT_SIZE
    payload = raw[start:start + length]
    if length == 0:
        # Unfunded account
        return EncryptedBalance()
    if length != ENCRYPTED_BALANCE_SIZE or len(payload) != length:
        raise ChainQueryError(
            method, f"expected {ENCRYPTED_BALANCE_SIZE} bytes, got {len(payload)}"
        )
    return EncryptedBalance(payload)


class RpcClient:
    """
    Minimal async JSON-RPC client.

    Args:
        rpc_url: Node endpoint
        contract_address: Confidential token contract
        timeout: Per-request timeout in seconds
        client: Optional shared httpx.AsyncClient (closed by its owner)
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: FieldLike,
        timeout: float = DEFAULT_RPC_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self.contract_address = "0x%040x" % address_to_field(contract_address)
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> RpcClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Send one JSON-RPC request and return its `result`.

        Raises:
            ChainQueryError: On transport errors, HTTP errors or RPC errors
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logger.debug(f"RPC {method} -> {self.rpc_url}")
        try:
            resp = await self._client.post(self.rpc_url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise ChainQueryError(method, f"{type(e).__name__}: {e}") from e

        if resp.status_code != 200:
            raise ChainQueryError(method, f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise ChainQueryError(method, "response is not JSON") from e

        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ChainQueryError(method, str(message))
        if "result" not in body:
            raise ChainQueryError(method, "response has no result")
        return body["result"]

    async def balance_of_enc(self, token: FieldLike, user: FieldLike) -> EncryptedBalance:
        """Fetch the 128-byte encrypted balance of `user` for `token`."""
        call = {"to": self.contract_address, "data": encode_balance_of_enc(token, user)}
        result = await self.call("eth_call", [call, "latest"])
        if not isinstance(result, str):
            raise ChainQueryError("balanceOfEnc", "result is not a hex string")
        return decode_balance_result(result)


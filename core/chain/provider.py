"""
Chain Data Provider

Interface through which the host fetches a block (header plus all of its
transactions in order) and locates a transaction by hash, with a JSON-RPC
implementation over the shared HttpClient.

Every failure (unreachable node, JSON-RPC error, missing block, unmined
transaction) surfaces as RetrievalError. Nothing is retried here; retry
policy belongs to the caller.
"""
from __future__ import annotations

import itertools
import logging
from typing import Any, Optional, Protocol, runtime_checkable

from core.chain.header import BlockHeader
from core.chain.transaction import Transaction
from core.crypto.hashing import hex_to_int, to_hex
from core.http import HttpClient, HttpError
from core.schemas.errors import RetrievalError

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://ethereum-rpc.publicnode.com"


@runtime_checkable
class ChainDataProvider(Protocol):
    """
    Source of block data for proof generation.

    Implementations must return a block's transactions in block order; the
    position in the returned list is the transaction index.
    """

    def get_block(self, number: int) -> tuple[BlockHeader, list[Transaction]]:
        """Return the header and ordered transactions of a block."""
        ...

    def locate_transaction(self, tx_hash: str) -> tuple[int, int]:
        """Return (block_number, transaction_index) for a mined transaction."""
        ...


class JsonRpcChainProvider:
    """
    Chain data over Ethereum JSON-RPC.

    Usage:
        provider = JsonRpcChainProvider("https://ethereum-rpc.publicnode.com")
        number, index = provider.locate_transaction(tx_hash)
        header, transactions = provider.get_block(number)
    """

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        *,
        http_client: Optional[HttpClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.rpc_url = rpc_url
        self._http = http_client or HttpClient(timeout=timeout)
        self._ids = itertools.count(1)

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = self._http.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except HttpError as e:
            raise RetrievalError(
                f"{method} request to {self.rpc_url} failed: {e}",
                details={"method": method, "status_code": e.status_code},
            ) from e

        if not isinstance(body, dict):
            raise RetrievalError(
                f"{method} returned a non-object JSON-RPC response",
                details={"method": method},
                retryable=False,
            )
        if body.get("error") is not None:
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RetrievalError(
                f"{method} returned JSON-RPC error: {message}",
                details={"method": method, "error": error},
            )
        return body.get("result")

    def get_block(self, number: int) -> tuple[BlockHeader, list[Transaction]]:
        """
        Fetch a block with full transaction objects.

        Raises:
            RetrievalError: If the block cannot be fetched or parsed
            EncodingError: If a transaction object cannot be represented
        """
        block = self._call("eth_getBlockByNumber", [hex(number), True])
        if block is None:
            raise RetrievalError(
                f"Block {number} not found",
                details={"block_number": number},
                retryable=False,
            )

        try:
            header = BlockHeader.from_rpc(block)
        except (KeyError, ValueError) as e:
            raise RetrievalError(
                f"Block {number} header could not be parsed: {e}",
                details={"block_number": number},
                retryable=False,
            ) from e

        reported_hash = block.get("hash")
        computed_hash = to_hex(header.hash())
        if reported_hash and reported_hash.lower() != computed_hash:
            logger.warning(
                f"Block {number} header hashes to {computed_hash}, "
                f"node reported {reported_hash}"
            )

        raw_transactions = block.get("transactions") or []
        if any(not isinstance(tx, dict) for tx in raw_transactions):
            raise RetrievalError(
                f"Block {number} was returned without full transaction objects",
                details={"block_number": number},
                retryable=False,
            )
        transactions = [Transaction.from_rpc(tx) for tx in raw_transactions]
        logger.info(f"Fetched block {number} with {len(transactions)} transactions")
        return header, transactions

    def locate_transaction(self, tx_hash: str) -> tuple[int, int]:
        """
        Find the block number and index of a mined transaction.

        Raises:
            RetrievalError: If the transaction is unknown or not yet mined
        """
        tx = self._call("eth_getTransactionByHash", [tx_hash])
        if tx is None:
            raise RetrievalError(
                f"Transaction {tx_hash} not found",
                details={"tx_hash": tx_hash},
                retryable=False,
            )
        if tx.get("blockNumber") is None or tx.get("transactionIndex") is None:
            raise RetrievalError(
                f"Transaction {tx_hash} is not yet mined",
                details={"tx_hash": tx_hash},
            )
        try:
            number = hex_to_int(tx["blockNumber"])
            index = hex_to_int(tx["transactionIndex"])
        except ValueError as e:
            raise RetrievalError(
                f"Transaction {tx_hash} has an invalid location: {e}",
                details={"tx_hash": tx_hash},
                retryable=False,
            ) from e
        logger.debug(f"Transaction {tx_hash} is at block {number}, index {index}")
        return number, index

    def close(self) -> None:
        self._http.close()

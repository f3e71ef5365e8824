"""
Chain records: block headers, transactions, trie keys and data retrieval.

Usage:
    from core.chain import JsonRpcChainProvider, transaction_key_nibbles

    provider = JsonRpcChainProvider(rpc_url)
    header, transactions = provider.get_block(number)
    encoded = transactions[index].encode()
    key = transaction_key_nibbles(index)
"""
from .header import BlockHeader
from .keys import index_to_minimal_bytes, transaction_key, transaction_key_nibbles
from .provider import DEFAULT_RPC_URL, ChainDataProvider, JsonRpcChainProvider
from .transaction import (
    AccessListEntry,
    Authorization,
    Transaction,
    encode_transaction,
)

__all__ = [
    "BlockHeader",
    "AccessListEntry",
    "Authorization",
    "Transaction",
    "encode_transaction",
    "index_to_minimal_bytes",
    "transaction_key",
    "transaction_key_nibbles",
    "DEFAULT_RPC_URL",
    "ChainDataProvider",
    "JsonRpcChainProvider",
]

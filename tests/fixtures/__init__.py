"""
Test fixtures package for transaction inclusion tests.

This package provides factory functions for creating test objects:
- chain_fixtures.py: headers, transactions, blocks and an in-memory provider

Usage:
    from fixtures.chain_fixtures import make_block

    def test_something():
        header, transactions = make_block(5)
"""

from .chain_fixtures import (
    EIP155_SIGNED_TX,
    MAINNET_GENESIS_HASH,
    InMemoryChainProvider,
    block_to_rpc,
    make_block,
    make_eip155_transaction,
    make_genesis_header,
    make_header,
    make_transaction,
    make_transactions,
    transaction_to_rpc,
    nested_rlp_list,
    transactions_root,
)

__all__ = [
    "EIP155_SIGNED_TX",
    "MAINNET_GENESIS_HASH",
    "InMemoryChainProvider",
    "block_to_rpc",
    "make_block",
    "make_eip155_transaction",
    "make_genesis_header",
    "make_header",
    "make_transaction",
    "make_transactions",
    "nested_rlp_list",
    "transaction_to_rpc",
    "transactions_root",
]

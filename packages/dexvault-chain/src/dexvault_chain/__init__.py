"""Signing and broadcast primitives for DexVault."""

from .broadcast import (
    BatchResponse,
    BroadcastAggregator,
    CommitResult,
    HttpNetworkClient,
    NetworkClient,
)
from .builders import CHAIN_NETWORKS, TransactionBuilder, decode_transaction
from .credentials import SigningCredential, generate_private_key

__all__ = [
    "BatchResponse",
    "BroadcastAggregator",
    "CommitResult",
    "HttpNetworkClient",
    "NetworkClient",
    "CHAIN_NETWORKS",
    "TransactionBuilder",
    "decode_transaction",
    "SigningCredential",
    "generate_private_key",
]

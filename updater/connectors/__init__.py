"""
updater/connectors package marker.
"""

from updater.connectors.base import (
    ConfirmationTimeoutError,
    RemoteClient,
    RpcRequestError,
    TransactionFailedError,
)
from updater.connectors.rpc_connector import LedgerRpcConnector

__all__ = [
    "ConfirmationTimeoutError",
    "LedgerRpcConnector",
    "RemoteClient",
    "RpcRequestError",
    "TransactionFailedError",
]

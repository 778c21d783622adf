"""Command line client for the spaced wallet service."""

from .config import ExtendedNetwork, SessionConfig, load_session_config
from .errors import (
    ConfigurationError,
    ErrorCategory,
    LocalValidationError,
    ReportableError,
    RPCCapacityError,
    RPCDecodeError,
    RPCError,
    RPCSubscriptionError,
    RPCTimeoutError,
    RPCTransportError,
    SpaceCliError,
    classify_error,
)
from .model import (
    BidParams,
    ExecuteParams,
    OpenParams,
    RegisterParams,
    SendCoinsParams,
    TransferSpacesParams,
)
from .names import hash_space, normalize_space
from .rpc_client import SpacedRPCClient
from .tx_builder import TransactionBuilder, TransactionRequest

__all__ = [
    "ExtendedNetwork",
    "SessionConfig",
    "load_session_config",
    "ConfigurationError",
    "ErrorCategory",
    "LocalValidationError",
    "ReportableError",
    "RPCCapacityError",
    "RPCDecodeError",
    "RPCError",
    "RPCSubscriptionError",
    "RPCTimeoutError",
    "RPCTransportError",
    "SpaceCliError",
    "classify_error",
    "BidParams",
    "ExecuteParams",
    "OpenParams",
    "RegisterParams",
    "SendCoinsParams",
    "TransferSpacesParams",
    "hash_space",
    "normalize_space",
    "SpacedRPCClient",
    "TransactionBuilder",
    "TransactionRequest",
]

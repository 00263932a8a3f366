"""Swap execution: chain transactions and NEAR Intents settlement.

The engine never holds keys. A ``SigningHandle`` (the user's wallet) signs
every transaction and message.
"""

from nearswap.execution.engine import (
    ExecutionState,
    StepRecord,
    SwapExecutionResult,
    SwapExecutor,
    build_function_calls,
    create_swap_executor,
)
from nearswap.execution.relay import PublishResult, SolverRelayClient
from nearswap.execution.rpc import NearRpcClient, NearRpcError
from nearswap.execution.signer import (
    DryRunSigner,
    FunctionCall,
    MessagePayload,
    SignedMessage,
    SigningHandle,
    TransactionOutcome,
)

__all__ = [
    # Engine
    "ExecutionState",
    "StepRecord",
    "SwapExecutionResult",
    "SwapExecutor",
    "build_function_calls",
    "create_swap_executor",
    # Signing
    "DryRunSigner",
    "FunctionCall",
    "MessagePayload",
    "SignedMessage",
    "SigningHandle",
    "TransactionOutcome",
    # Clients
    "NearRpcClient",
    "NearRpcError",
    "PublishResult",
    "SolverRelayClient",
]

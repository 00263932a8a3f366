"""Swap execution engine.

Settles a resolved Route through a signing handle:
- Chain transactions: steps signed one at a time, each dependent step
  waiting for its predecessor to be final on-chain
- NEAR Intents: one NEP-413 signature published to the solver relay

Every attempt ends in a single SwapExecutionResult. Nothing is retried: a
submitted step is a real transaction, so ambiguous outcomes are reported.
"""

import asyncio
import json
import logging
import secrets
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from nearswap.config import Settings, get_settings
from nearswap.errors import (
    ConfirmationTimeoutError,
    ErrorKind,
    InvalidQuoteError,
    SwapError,
    TransactionFailedError,
    UserCancelledError,
)
from nearswap.execution.relay import SolverRelayClient
from nearswap.execution.rpc import NearRpcClient
from nearswap.execution.signer import FunctionCall, MessagePayload, SigningHandle
from nearswap.routing.base import ChainTransaction, Route

logger = logging.getLogger(__name__)

NEP413_STANDARD = "nep413"
NONCE_BYTES = 32


class ExecutionState(str, Enum):
    """Lifecycle of one execution attempt."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StepRecord:
    """Outcome of one submitted transaction."""
    index: int
    receiver_id: str
    success: bool
    transaction_hash: Optional[str] = None
    receipts: tuple[Any, ...] = ()
    error: Optional[str] = None
    is_cleanup: bool = False

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "receiverId": self.receiver_id,
            "success": self.success,
            "transactionHash": self.transaction_hash,
            "error": self.error,
            "isCleanup": self.is_cleanup,
        }


@dataclass(frozen=True)
class SwapExecutionResult:
    """Terminal record of one execution attempt."""
    success: bool
    transaction_hash: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    receipts: tuple[Any, ...] = ()
    steps: tuple[StepRecord, ...] = field(default_factory=tuple)

    @property
    def is_cancelled(self) -> bool:
        return self.error_kind == ErrorKind.USER_CANCELLED

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "transactionHash": self.transaction_hash,
            "receipts": list(self.receipts),
            "steps": [step.to_dict() for step in self.steps],
        }
        if self.error:
            data["error"] = self.error
        if self.error_kind:
            data["kind"] = self.error_kind.value
            data["action"] = self.error_kind.action
        return data


def build_function_calls(step: ChainTransaction) -> list[FunctionCall]:
    """Decode a step's actions (base64 args, integer gas and deposit)."""
    return [
        FunctionCall(
            method_name=action.method_name,
            args=action.decode_args(),
            gas=action.gas_amount,
            deposit=action.deposit_amount,
        )
        for action in step.actions
    ]


def _describe(error: BaseException) -> str:
    if isinstance(error, SwapError):
        return error.message
    return str(error) or type(error).__name__


def _collect_receipts(records: list[StepRecord]) -> tuple[Any, ...]:
    return tuple(receipt for record in records for receipt in record.receipts)


class SwapExecutor:
    """Executes resolved routes through a signing handle.

    One instance may run many attempts, one at a time; ``state`` and
    ``step_index`` describe the attempt in progress.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rpc: Optional[NearRpcClient] = None,
        relay: Optional[SolverRelayClient] = None,
    ):
        self.settings = settings or get_settings()
        self.rpc = rpc or NearRpcClient(self.settings)
        self.relay = relay or SolverRelayClient(self.settings)
        self.state = ExecutionState.IDLE
        self.step_index: Optional[int] = None
        # Steps of the attempt in progress; survives cancellation by the overall timeout
        self._records: list[StepRecord] = []

    def _transition(self, state: ExecutionState, step_index: Optional[int] = None) -> None:
        self.state = state
        self.step_index = step_index
        suffix = f" (step {step_index})" if step_index is not None else ""
        logger.debug(f"Execution state -> {state.value}{suffix}")

    def _failure(
        self,
        kind: ErrorKind,
        message: str,
        records: Optional[list[StepRecord]] = None,
        transaction_hash: Optional[str] = None,
    ) -> SwapExecutionResult:
        records = records or []
        return SwapExecutionResult(
            success=False,
            transaction_hash=transaction_hash,
            error=message,
            error_kind=kind,
            receipts=_collect_receipts(records),
            steps=tuple(records),
        )

    async def execute_swap(self, route: Route, signer: SigningHandle) -> SwapExecutionResult:
        """Execute a route.

        Args:
            route: Route from the resolver
            signer: Wallet signing handle

        Returns:
            SwapExecutionResult; never raises for execution failures
        """
        self._transition(ExecutionState.IDLE)
        self._records = []
        mode = "intents" if route.use_intents else f"{len(route.steps)} transaction(s)"
        logger.info(f"Executing {route.dex_id or 'route'} swap for {signer.account_id}: {mode}")

        if route.use_intents:
            attempt = self._execute_intent(route, signer)
        else:
            attempt = self._execute_transactions(route, signer)

        timeout = self.settings.execution_timeout
        try:
            if timeout:
                result = await asyncio.wait_for(attempt, timeout=timeout)
            else:
                result = await attempt
        except asyncio.TimeoutError:
            logger.error(f"Swap execution exceeded {timeout:g}s (last state {self.state.value})")
            records = list(self._records)
            submitted = [r.transaction_hash for r in records if r.transaction_hash]
            result = self._failure(
                ErrorKind.EXECUTION_TIMEOUT,
                f"Swap execution exceeded {timeout:g}s; check your wallet for submitted transactions",
                records,
                transaction_hash=submitted[-1] if submitted else None,
            )
        except Exception as e:
            logger.exception("Swap execution crashed")
            result = self._failure(
                ErrorKind.STEP_FAILED, f"Swap execution failed: {_describe(e)}", list(self._records)
            )

        self._transition(ExecutionState.COMPLETED if result.success else ExecutionState.FAILED)
        if result.success:
            logger.info(f"Swap completed: {result.transaction_hash}")
        elif result.is_cancelled:
            logger.info("Swap cancelled by user")
        else:
            logger.warning(f"Swap failed ({result.error_kind.value if result.error_kind else '?'}): {result.error}")
        return result

    async def _execute_transactions(self, route: Route, signer: SigningHandle) -> SwapExecutionResult:
        steps = route.steps
        if not steps:
            return self._failure(ErrorKind.INVALID_QUOTE, "Route has no transactions to execute")

        records = self._records
        last = len(steps) - 1

        for index, step in enumerate(steps):
            self._transition(ExecutionState.SUBMITTING, index)
            try:
                actions = build_function_calls(step)
            except InvalidQuoteError as e:
                return self._failure(ErrorKind.INVALID_QUOTE, f"Step {index}: {e.message}", records)

            try:
                outcome = await signer.sign_and_send_transaction(step.receiver_id, actions)
            except UserCancelledError as e:
                records.append(StepRecord(index, step.receiver_id, False, error=e.message))
                return self._failure(ErrorKind.USER_CANCELLED, e.message, records)
            except Exception as e:
                error = _describe(e)
                records.append(StepRecord(index, step.receiver_id, False, error=error))
                if not step.continue_if_failed:
                    logger.error(f"Step {index} ({step.receiver_id}) failed: {error}")
                    return self._failure(ErrorKind.STEP_FAILED, f"Transaction failed: {error}", records)
                logger.warning(f"Step {index} ({step.receiver_id}) failed, continuing: {error}")
                continue

            record = StepRecord(
                index,
                step.receiver_id,
                True,
                transaction_hash=outcome.transaction_hash,
                receipts=tuple(outcome.receipts or ()),
            )
            records.append(record)
            logger.info(f"Step {index} submitted: {outcome.transaction_hash}")

            if index == last:
                continue

            if not outcome.transaction_hash:
                return self._failure(
                    ErrorKind.STEP_FAILED,
                    f"Wallet returned no transaction hash for step {index}; cannot confirm it before continuing",
                    records,
                )

            self._transition(ExecutionState.CONFIRMING, index)
            try:
                await self.rpc.wait_for_transaction(outcome.transaction_hash, signer.account_id)
            except ConfirmationTimeoutError as e:
                return self._failure(ErrorKind.CONFIRMATION_TIMEOUT, e.message, records)
            except TransactionFailedError as e:
                records[-1] = replace(record, success=False, error=e.message)
                if not step.continue_if_failed:
                    return self._failure(ErrorKind.STEP_FAILED, f"Transaction failed: {e.message}", records)
                logger.warning(f"Step {index} failed on-chain, continuing: {e.message}")

        if route.needs_unwrap:
            last_hash = records[-1].transaction_hash if records[-1].success else None
            cleanup = await self._unwrap(signer, index=len(steps), after_hash=last_hash)
            if cleanup is not None:
                records.append(cleanup)

        succeeded = [r for r in records if r.success and not r.is_cleanup]
        if not succeeded:
            return self._failure(ErrorKind.STEP_FAILED, "All transactions failed", records)

        return SwapExecutionResult(
            success=True,
            transaction_hash=succeeded[-1].transaction_hash,
            receipts=_collect_receipts(records),
            steps=tuple(records),
        )

    async def _unwrap(
        self,
        signer: SigningHandle,
        index: int,
        after_hash: Optional[str] = None,
    ) -> Optional[StepRecord]:
        """Best-effort unwrap of leftover wrapped NEAR. Never raises.

        The balance is read once the final swap step is final, so the unwrap
        covers the swap output.
        """
        contract = self.settings.wrap_contract_id

        if after_hash:
            self._transition(ExecutionState.CONFIRMING, index - 1)
            try:
                await self.rpc.wait_for_transaction(after_hash, signer.account_id)
            except Exception as e:
                logger.warning(f"Unwrap skipped, swap transaction not confirmed: {_describe(e)}")
                return None

        self._transition(ExecutionState.SUBMITTING, index)

        try:
            balance = await self.rpc.ft_balance_of(contract, signer.account_id)
        except Exception as e:
            logger.warning(f"Unwrap skipped, could not read {contract} balance: {_describe(e)}")
            return None

        if balance <= 0:
            logger.info("Nothing to unwrap")
            return None

        withdraw = FunctionCall(
            method_name="near_withdraw",
            args=json.dumps({"amount": str(balance)}).encode(),
            gas=self.settings.unwrap_gas,
            deposit=1,
        )
        try:
            outcome = await signer.sign_and_send_transaction(contract, [withdraw])
        except Exception as e:
            logger.warning(f"Unwrap failed: {_describe(e)}")
            return StepRecord(index, contract, False, error=_describe(e), is_cleanup=True)

        logger.info(f"Unwrapped {balance} yoctoNEAR: {outcome.transaction_hash}")
        return StepRecord(
            index,
            contract,
            True,
            transaction_hash=outcome.transaction_hash,
            receipts=tuple(outcome.receipts or ()),
            is_cleanup=True,
        )

    async def _execute_intent(self, route: Route, signer: SigningHandle) -> SwapExecutionResult:
        quote = route.intents_quote
        if quote is None or not quote.is_signable:
            return self._failure(ErrorKind.INVALID_QUOTE, "Invalid intents quote data")

        payload = MessagePayload(
            message=quote.message_to_sign,
            recipient=self.settings.intents_recipient,
            nonce=secrets.token_bytes(NONCE_BYTES),
            callback_url=self.settings.intents_callback_url,
        )

        self._transition(ExecutionState.SUBMITTING, 0)
        try:
            signed = await signer.sign_message(payload)
        except UserCancelledError as e:
            return self._failure(ErrorKind.USER_CANCELLED, e.message)
        except Exception as e:
            return self._failure(ErrorKind.STEP_FAILED, f"Message signing failed: {_describe(e)}")

        signed_data = {
            "standard": NEP413_STANDARD,
            "payload": payload.to_dict(),
            "signature": signed.signature,
            "public_key": signed.public_key,
        }

        try:
            published = await self.relay.publish_intent(quote.quote_hash, signed_data)
        except SwapError as e:
            detail = f" ({e.detail})" if e.detail else ""
            return self._failure(e.kind, f"{e.message}{detail}")

        return SwapExecutionResult(
            success=True,
            transaction_hash=published.intent_hash,
            receipts=tuple(published.receipts),
        )


def create_swap_executor(settings: Optional[Settings] = None) -> SwapExecutor:
    """Create a swap executor instance."""
    return SwapExecutor(settings=settings)

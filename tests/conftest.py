"""Pytest configuration and fixtures."""

import base64
import json
import os
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "false"
os.environ["DEBUG"] = "true"

from nearswap.config import Settings
from nearswap.errors import ConfirmationTimeoutError, TransactionFailedError, UserCancelledError
from nearswap.execution.relay import PublishResult
from nearswap.execution.signer import FunctionCall, MessagePayload, SignedMessage, SigningHandle, TransactionOutcome
from nearswap.routing.base import ChainTransaction, FunctionCallAction, IntentsQuote, Route

ROUTER_URL = "https://router.test"


def encode_args(args: dict) -> str:
    return base64.b64encode(json.dumps(args).encode()).decode()


def make_step(receiver_id: str, continue_if_failed: bool = False) -> ChainTransaction:
    return ChainTransaction(
        receiver_id=receiver_id,
        actions=(
            FunctionCallAction(
                method_name="ft_transfer_call",
                args=encode_args({"receiver_id": "v2.ref-finance.near", "amount": "1000"}),
                gas="30000000000000",
                deposit="1",
            ),
        ),
        continue_if_failed=continue_if_failed,
    )


def make_route(steps=(), needs_unwrap: bool = False, intents_quote: Optional[IntentsQuote] = None) -> Route:
    use_intents = intents_quote is not None
    return Route(
        route=["NearIntents" if use_intents else "Rhea"],
        amount_out="1.000000",
        minimum_received="0.950000",
        price_impact="0",
        estimated_gas="0.003",
        fee="0.003",
        steps=list(steps),
        needs_unwrap=needs_unwrap,
        dex_id="NearIntents" if use_intents else "Rhea",
        use_intents=use_intents,
        intents_quote=intents_quote,
    )


class FakeSigner(SigningHandle):
    """Wallet double. Call ``n`` returns hash ``tx{n}`` unless told to fail."""

    def __init__(
        self,
        account_id: str = "alice.near",
        fail_at: tuple[int, ...] = (),
        cancel_at: tuple[int, ...] = (),
        message_error: Optional[Exception] = None,
    ):
        self._account_id = account_id
        self.fail_at = fail_at
        self.cancel_at = cancel_at
        self.message_error = message_error
        self.calls: list[tuple[str, list[FunctionCall]]] = []
        self.messages: list[MessagePayload] = []

    @property
    def account_id(self) -> str:
        return self._account_id

    async def sign_and_send_transaction(self, receiver_id, actions) -> TransactionOutcome:
        index = len(self.calls)
        self.calls.append((receiver_id, list(actions)))
        if index in self.cancel_at:
            raise UserCancelledError()
        if index in self.fail_at:
            raise RuntimeError(f"wallet rejected call {index}")
        return TransactionOutcome(transaction_hash=f"tx{index}", receipts=[{"call": index}])

    async def sign_message(self, payload: MessagePayload) -> SignedMessage:
        self.messages.append(payload)
        if self.message_error is not None:
            raise self.message_error
        return SignedMessage(signature="ed25519:sig", public_key="ed25519:pk", account_id=self._account_id)


class FakeRpc:
    """NEAR RPC double.

    ``outcomes`` maps a transaction hash to "fail" or "timeout"; anything
    else confirms.
    """

    def __init__(self, outcomes: Optional[dict] = None, balance: int = 0, balance_error: Optional[Exception] = None):
        self.outcomes = outcomes or {}
        self.balance = balance
        self.balance_error = balance_error
        self.waited: list[str] = []
        self.balance_queries: list[tuple[str, str]] = []

    async def wait_for_transaction(self, tx_hash, sender_id, timeout=None, poll_interval=None):
        self.waited.append(tx_hash)
        outcome = self.outcomes.get(tx_hash)
        if outcome == "fail":
            raise TransactionFailedError(f"Transaction {tx_hash} failed on-chain")
        if outcome == "timeout":
            raise ConfirmationTimeoutError(f"Transaction {tx_hash} not confirmed after 30s")
        return {"status": {"SuccessValue": ""}}

    async def ft_balance_of(self, contract_id, account_id):
        self.balance_queries.append((contract_id, account_id))
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance


class FakeRelay:
    """Solver relay double."""

    def __init__(self, error: Optional[Exception] = None, intent_hash: str = "intent-hash"):
        self.error = error
        self.intent_hash = intent_hash
        self.published: list[tuple[str, dict]] = []

    async def publish_intent(self, quote_hash, signed_data):
        self.published.append((quote_hash, signed_data))
        if self.error is not None:
            raise self.error
        return PublishResult(intent_hash=self.intent_hash, receipts=[{"intent": self.intent_hash}])


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at unroutable test hosts with short timeouts."""
    return Settings(
        router_api_urls=ROUTER_URL,
        router_timeout=1.0,
        tokens_api_url="https://prices.test/tokens-reputable",
        near_rpc_url="https://rpc.test",
        solver_relay_url="https://relay.test/rpc",
        confirmation_poll_interval=0.01,
        confirmation_timeout=0.2,
        route_debounce_ms=0,
    )

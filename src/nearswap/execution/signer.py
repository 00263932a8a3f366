"""Signing handle interface for swap execution.

Signing flow:
1. Engine decodes route actions into FunctionCalls
2. Signing handle (wallet) signs and submits the transaction
3. Handle returns the transaction hash and receipts
4. For intents, the handle signs a NEP-413 message instead

Wallets may prompt the user; a dismissed prompt must raise
``UserCancelledError`` rather than a generic exception.
"""

import base64
import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionCall:
    """A decoded contract call ready for signing.

    Attributes:
        method_name: Contract method
        args: Raw argument bytes (usually JSON)
        gas: Gas budget
        deposit: Attached deposit in yoctoNEAR
    """
    method_name: str
    args: bytes
    gas: int
    deposit: int


@dataclass(frozen=True)
class TransactionOutcome:
    """Result of a signed and submitted transaction."""
    transaction_hash: str
    receipts: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class MessagePayload:
    """NEP-413 message to sign off-chain."""
    message: str
    recipient: str
    nonce: bytes  # 32 bytes
    callback_url: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "message": self.message,
            "recipient": self.recipient,
            "nonce": base64.b64encode(self.nonce).decode(),
        }
        if self.callback_url:
            data["callbackUrl"] = self.callback_url
        return data


@dataclass(frozen=True)
class SignedMessage:
    """Detached signature over a MessagePayload."""
    signature: str
    public_key: str
    account_id: Optional[str] = None


class SigningHandle(ABC):
    """Abstract wallet capability used by the execution engine.

    Implementations never expose private keys; they sign and return results.
    """

    @property
    @abstractmethod
    def account_id(self) -> str:
        """NEAR account that signs."""
        pass

    @abstractmethod
    async def sign_and_send_transaction(
        self,
        receiver_id: str,
        actions: list[FunctionCall],
    ) -> TransactionOutcome:
        """Sign and submit one transaction.

        Args:
            receiver_id: Contract (or account) receiving the actions
            actions: Ordered function calls

        Returns:
            TransactionOutcome with hash and receipts

        Raises:
            UserCancelledError: User rejected the wallet prompt
        """
        pass

    @abstractmethod
    async def sign_message(self, payload: MessagePayload) -> SignedMessage:
        """Sign an off-chain NEP-413 message.

        Raises:
            UserCancelledError: User rejected the wallet prompt
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(account={self.account_id})"


class DryRunSigner(SigningHandle):
    """Signer that records requests and returns deterministic fake hashes.

    Used in dry-run mode and development; nothing reaches the chain.
    """

    def __init__(self, account_id: str = "dry-run.near"):
        self._account_id = account_id
        self.transactions: list[tuple[str, list[FunctionCall]]] = []
        self.messages: list[MessagePayload] = []

    @property
    def account_id(self) -> str:
        return self._account_id

    async def sign_and_send_transaction(
        self,
        receiver_id: str,
        actions: list[FunctionCall],
    ) -> TransactionOutcome:
        self.transactions.append((receiver_id, list(actions)))
        seed = f"{self._account_id}:{receiver_id}:{len(self.transactions)}".encode()
        tx_hash = hashlib.sha256(seed).hexdigest()
        logger.info(f"[DRY RUN] {receiver_id}: {[a.method_name for a in actions]} -> {tx_hash[:16]}...")
        return TransactionOutcome(transaction_hash=tx_hash, receipts=[{"simulated": True}])

    async def sign_message(self, payload: MessagePayload) -> SignedMessage:
        self.messages.append(payload)
        digest = hashlib.sha256(payload.message.encode() + payload.nonce).hexdigest()
        return SignedMessage(
            signature=f"ed25519:{digest}",
            public_key="ed25519:dry-run",
            account_id=self._account_id,
        )

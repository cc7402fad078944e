# editions/treasury.py
"""
Treasury: creator withdrawals.

The claim for an edition is `sold * price - withdrawn`. Overpayment kept
in escrow above `sold * price` is never part of the claim.

Withdrawal ordering:
1. check the caller is the edition's funds address
2. add the claim to `withdrawn` (effects)
3. send the funds (interaction)

The recipient may run code on receipt and call back into the ledger
before step 3 returns. Because `withdrawn` is already updated, a nested
withdrawal sees a zero claim; the ReentrancyGuard rejects it outright.
A failed transfer restores `withdrawn` and raises TransferFailed.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from .errors import ReentrantCall, TransferFailed, Unauthorized
from .events import LedgerEvent, funds_withdrawn
from .store import EditionStore

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[int], Optional[bool]]


class ReentrancyGuard:
    """
    Single in-flight-call flag.

    Entering while another guarded call is in progress raises
    ReentrantCall. The flag is cleared on every exit path.
    """

    def __init__(self):
        self._entered = False
        self._current: Optional[str] = None

    @property
    def entered(self) -> bool:
        return self._entered

    @contextmanager
    def enter(self, name: str = "call") -> Iterator[None]:
        if self._entered:
            raise ReentrantCall(f"reentrant call to {name} during {self._current}")
        self._entered = True
        self._current = name
        try:
            yield
        finally:
            self._entered = False
            self._current = None


class FundsTransport(ABC):
    """Moves funds out of escrow to a recipient."""

    @abstractmethod
    def send(self, recipient: str, amount: int) -> bool:
        """
        Pay `amount` wei to `recipient`.

        Returns:
            True if the recipient accepted the funds. May also raise.
        """
        pass


class BalanceSheet(FundsTransport):
    """
    In-memory balance book.

    Credits recipients and runs an optional receive hook per recipient.
    A hook that returns False or raises rejects the funds, and the credit
    is undone. Hooks may call back into the ledger.
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    def on_receive(self, address: str, hook: ReceiveHook) -> None:
        self._hooks[address.lower()] = hook

    def clear_hook(self, address: str) -> None:
        self._hooks.pop(address.lower(), None)

    def balance_of(self, address: str) -> int:
        return self._balances.get(address.lower(), 0)

    def send(self, recipient: str, amount: int) -> bool:
        recipient = recipient.lower()
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        hook = self._hooks.get(recipient)
        if hook is None:
            return True
        try:
            accepted = hook(amount)
        except Exception as e:
            logger.warning(f"Recipient {recipient} rejected {amount} wei: {e}")
            accepted = False
        if accepted is False:
            self._balances[recipient] -= amount
            return False
        return True


class Treasury:
    """
    Pays out edition proceeds to creators.

    Args:
        store: Edition state
        transport: Where funds are sent
        emit: Receives a FundsWithdrawn event for every non-zero payout
    """

    def __init__(
        self,
        store: EditionStore,
        transport: FundsTransport,
        emit: Optional[Callable[[LedgerEvent], None]] = None,
    ):
        self.store = store
        self.transport = transport
        self._emit = emit or (lambda event: None)

    def claimable(self, edition_id: int) -> int:
        return self.store.require(edition_id).claimable

    def withdraw_funds(self, caller: str, edition_id: int) -> int:
        """
        Withdraw the outstanding claim for an edition.

        Returns:
            The amount transferred; 0 when nothing is owed

        Raises:
            NotFound: edition does not exist
            Unauthorized: caller is not the funds address
            TransferFailed: recipient rejected the funds
        """
        record = self.store.require(edition_id)
        if caller.lower() != record.funds_address:
            raise Unauthorized("not the creator")

        claim = record.claimable
        if claim == 0:
            logger.debug(f"Edition {edition_id}: nothing to withdraw")
            return 0

        with self.store.savepoint():
            self.store.record_withdrawal(edition_id, claim)
            try:
                delivered = self.transport.send(record.funds_address, claim)
            except TransferFailed:
                raise
            except Exception as e:
                raise TransferFailed(f"transfer to {record.funds_address} failed: {e}") from e
            if not delivered:
                raise TransferFailed(f"{record.funds_address} rejected the transfer")

        logger.info(f"Edition {edition_id}: withdrew {claim} wei to {record.funds_address}")
        self._emit(funds_withdrawn(
            edition_id=edition_id,
            recipient=record.funds_address,
            amount=claim,
        ))
        return claim

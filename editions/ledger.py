# editions/ledger.py
"""
The edition ledger.

Wires the registry gateway, edition store, sale engine, treasury and
disclosure gate together and exposes the public entry points.

Every mutating entry point runs as one transaction:
1. take the ledger lock (transactions never interleave)
2. enter the reentrancy guard (nested mutating calls are rejected)
3. run the operation inside a store savepoint (all-or-nothing)
4. after commit, sign, log and publish the events it produced

Usage:
    ledger = Ledger(admin=deployer, registries=[media, market])
    ledger.set_media_address(deployer, media.address)
    ledger.set_market_address(deployer, market.address)

    edition_id = ledger.create_edition(creator, supply=10, price=parse_ether("0.5"),
                                       funds_address=creator, media_id=0)
    ledger.buy_edition(buyer, edition_id, payment=parse_ether("0.5"))
    ledger.withdraw_funds(creator, edition_id)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .accounts import Account
from .disclosure import DisclosureGate
from .errors import Unauthorized
from .events import EventLog, LedgerEvent
from .registry import BidShares, MediaData, RegistryGateway
from .sale import Purchase, SaleEngine
from .signatures import sign_event
from .store import EditionRecord, EditionStore
from .treasury import BalanceSheet, FundsTransport, ReentrancyGuard, Treasury
from .units import normalize_address

logger = logging.getLogger(__name__)

EventListener = Callable[[LedgerEvent], None]


class Ledger:
    """
    Fixed-supply primary-sale ledger.

    Args:
        admin: Deployer address; the only caller allowed to change
            registry addresses
        store: Edition state (defaults to an in-memory store)
        gateway: Registry gateway (defaults to one over `registries`)
        registries: Registry handles known to the default gateway
        transport: Funds transport for withdrawals (defaults to a
            BalanceSheet)
        event_log: Event storage (defaults to an in-memory log)
        signer: Account that signs every event, if given
    """

    def __init__(
        self,
        admin: str,
        store: EditionStore = None,
        gateway: RegistryGateway = None,
        registries: Iterable[Any] = (),
        transport: FundsTransport = None,
        event_log: EventLog = None,
        signer: Optional[Account] = None,
    ):
        self.store = store if store is not None else EditionStore()
        self.gateway = gateway if gateway is not None else RegistryGateway(admin, registries=registries)
        self.transport = transport if transport is not None else BalanceSheet()
        self.event_log = event_log if event_log is not None else EventLog()
        self.signer = signer

        self._lock = threading.RLock()
        self._guard = ReentrancyGuard()
        self._pending: Optional[List[LedgerEvent]] = None
        self._listeners: List[EventListener] = []

        self.sales = SaleEngine(self.store, self.gateway, emit=self._emit)
        self.treasury = Treasury(self.store, self.transport, emit=self._emit)
        self.disclosure = DisclosureGate(self.store, self.gateway)

    # Transactions and events

    def _caller(self, caller: str) -> str:
        try:
            return normalize_address(caller)
        except ValueError:
            raise Unauthorized(f"caller is not a valid address: {caller!r}") from None

    def _emit(self, event: LedgerEvent):
        if self._pending is None:
            raise RuntimeError("Event emitted outside a transaction")
        self._pending.append(event)

    @contextmanager
    def _transaction(self, name: str) -> Iterator[None]:
        with self._lock:
            with self._guard.enter(name):
                self._pending = []
                try:
                    with self.store.savepoint():
                        yield
                    committed = self._pending
                finally:
                    self._pending = None
            for event in committed:
                self._publish(event)

    def _publish(self, event: LedgerEvent):
        event.sequence = self.event_log.next_sequence()
        if self.signer is not None:
            sign_event(event, self.signer)
        self.event_log.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Event listener error on {event.event_type}: {e}")

    def subscribe(self, listener: EventListener) -> None:
        """Call `listener` with every event after its transaction commits."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def events(self, event_type: str = None, edition_id: int = None) -> List[LedgerEvent]:
        """Logged events, optionally filtered by type and edition."""
        if edition_id is None:
            if event_type is None:
                return self.event_log.list()
            return self.event_log.find_by_type(event_type)
        found = self.event_log.find_by_edition(edition_id)
        if event_type is not None:
            found = [e for e in found if e.event_type == event_type]
        return found

    # Configuration

    @property
    def admin(self) -> str:
        return self.gateway.admin

    @property
    def media_address(self) -> Optional[str]:
        return self.gateway.media_address

    @property
    def market_address(self) -> Optional[str]:
        return self.gateway.market_address

    def set_media_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.gateway.set_media_address(caller, address)

    def set_market_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.gateway.set_market_address(caller, address)

    # Mutating entry points

    def create_edition(
        self,
        caller: str,
        supply: int,
        price: int,
        funds_address: str,
        media_id: int,
    ) -> int:
        """Create an edition; returns its id."""
        caller = self._caller(caller)
        with self._transaction("create_edition"):
            return self.sales.create_edition(caller, supply, price, funds_address, media_id)

    def buy_edition(self, caller: str, edition_id: int, payment: int) -> Purchase:
        """Buy one copy of an edition with an attached payment in wei."""
        caller = self._caller(caller)
        with self._transaction("buy_edition"):
            return self.sales.buy_edition(caller, edition_id, payment)

    def withdraw_funds(self, caller: str, edition_id: int) -> int:
        """Pay the creator's outstanding claim; returns the amount sent."""
        caller = self._caller(caller)
        with self._transaction("withdraw_funds"):
            return self.treasury.withdraw_funds(caller, edition_id)

    # Reads

    def edition_bid_shares(self, caller: str, edition_id: int) -> BidShares:
        caller = self._caller(caller)
        with self._lock:
            return self.disclosure.edition_bid_shares(caller, edition_id)

    def edition_media_data(self, caller: str, edition_id: int) -> MediaData:
        caller = self._caller(caller)
        with self._lock:
            return self.disclosure.edition_media_data(caller, edition_id)

    def editions(self, edition_id: int) -> EditionRecord:
        """A copy of the edition record."""
        with self._lock:
            return self.store.require(edition_id)

    def amount_withdrawn_to_creator(self, edition_id: int) -> int:
        with self._lock:
            return self.store.require(edition_id).withdrawn

    def claimable(self, edition_id: int) -> int:
        """Amount the funds address could withdraw now."""
        with self._lock:
            return self.treasury.claimable(edition_id)

    def buyer_to_edition(self, buyer: str) -> Optional[int]:
        with self._lock:
            return self.store.buyer_edition(buyer)

    def escrow_balance(self, edition_id: int) -> int:
        with self._lock:
            return self.store.escrow_balance(edition_id)

    def stranded_overpayment(self, edition_id: int) -> int:
        with self._lock:
            return self.store.stranded(edition_id)

    def list_editions(self) -> List[EditionRecord]:
        with self._lock:
            return self.store.list()

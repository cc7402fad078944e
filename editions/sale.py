# editions/sale.py
"""
Sale engine: edition creation and purchase.

Creation is gated on media ownership (checked through the registry
gateway). Purchases check, in this order and first failure wins:

1. the edition exists          -> NotFound
2. sold < supply               -> SoldOut
3. payment >= price            -> InsufficientFunds

A payment above the price is kept in escrow in full; there is no refund.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InsufficientFunds, InvalidEdition, SoldOut, Unauthorized
from .events import LedgerEvent, edition_created, edition_purchased
from .registry import RegistryGateway
from .store import EditionStore
from .units import normalize_address

logger = logging.getLogger(__name__)

EmitFn = Callable[[LedgerEvent], None]


@dataclass(frozen=True)
class Purchase:
    """Confirmation of a successful purchase."""
    edition_id: int
    buyer: str
    serial: int     # copy number, equal to `sold` after this purchase
    paid: int
    price: int

    @property
    def overpaid(self) -> int:
        return self.paid - self.price


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEdition(f"{name} must be an integer")
    if value <= 0:
        raise InvalidEdition(f"{name} must be greater than zero")
    return value


class SaleEngine:
    """
    Creates editions and sells copies.

    Args:
        store: Edition state
        gateway: Registry gateway used for the ownership check
        emit: Receives each event produced by a successful operation
    """

    def __init__(self, store: EditionStore, gateway: RegistryGateway, emit: Optional[EmitFn] = None):
        self.store = store
        self.gateway = gateway
        self._emit = emit or (lambda event: None)

    def create_edition(
        self,
        caller: str,
        supply: int,
        price: int,
        funds_address: str,
        media_id: int,
    ) -> int:
        """
        Create an edition of a media item the caller owns.

        Returns:
            The new edition id

        Raises:
            InvalidEdition: supply or price not positive, bad funds address
            Unauthorized: caller does not own the media item
            RegistryUnavailable: media registry unset or failing
        """
        supply = _positive_int("supply", supply)
        price = _positive_int("price", price)
        try:
            funds_address = normalize_address(funds_address)
        except ValueError as e:
            raise InvalidEdition(str(e)) from e

        if not self.gateway.is_owner(caller, media_id):
            raise Unauthorized("not the media owner")

        with self.store.savepoint():
            record = self.store.insert(
                supply=supply,
                price=price,
                funds_address=funds_address,
                media_id=media_id,
                creator=caller,
            )
        logger.info(
            f"Edition {record.edition_id} created for media {media_id}: "
            f"{supply} copies at {price} wei"
        )
        self._emit(edition_created(
            edition_id=record.edition_id,
            media_id=media_id,
            creator=record.creator,
            supply=supply,
            price=price,
        ))
        return record.edition_id

    def buy_edition(self, caller: str, edition_id: int, payment: int) -> Purchase:
        """
        Buy the next copy of an edition.

        Raises:
            NotFound, SoldOut, InsufficientFunds
        """
        if isinstance(payment, bool) or not isinstance(payment, int):
            raise TypeError("payment must be an integer amount in wei")
        record = self.store.require(edition_id)
        if record.is_sold_out:
            raise SoldOut(edition_id=edition_id)
        if payment < record.price:
            raise InsufficientFunds(price=record.price, payment=payment)

        with self.store.savepoint():
            updated = self.store.record_sale(edition_id, caller, payment)

        logger.info(f"Edition {edition_id} copy {updated.sold}/{updated.supply} sold to {caller}")
        if payment > record.price:
            logger.debug(f"Edition {edition_id}: {payment - record.price} wei overpayment kept in escrow")

        self._emit(edition_purchased(
            edition_id=edition_id,
            buyer=caller.lower(),
            sold=updated.sold,
        ))
        return Purchase(
            edition_id=edition_id,
            buyer=caller.lower(),
            serial=updated.sold,
            paid=payment,
            price=record.price,
        )

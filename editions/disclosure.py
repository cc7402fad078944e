# editions/disclosure.py
"""
Buyer-gated disclosure of purchased-item data.

Only the address whose most recent purchase is the edition may read its
bid shares and media data. The buyer index holds one edition per buyer,
so buying from a second edition gives up access to the first.
"""

from .errors import Unauthorized
from .registry import BidShares, MediaData, RegistryGateway
from .store import EditionStore


class DisclosureGate:
    """Read-only access to registry data for verified buyers."""

    def __init__(self, store: EditionStore, gateway: RegistryGateway):
        self.store = store
        self.gateway = gateway

    def _media_id_for_buyer(self, caller: str, edition_id: int) -> int:
        record = self.store.require(edition_id)
        if self.store.buyer_edition(caller) != edition_id:
            raise Unauthorized("you did not purchase this token")
        return record.media_id

    def edition_bid_shares(self, caller: str, edition_id: int) -> BidShares:
        return self.gateway.share_split(self._media_id_for_buyer(caller, edition_id))

    def edition_media_data(self, caller: str, edition_id: int) -> MediaData:
        return self.gateway.media_metadata(self._media_id_for_buyer(caller, edition_id))

# editions/registry/gateway.py
"""
Gateway to the two external registries the ledger depends on.

The Media Ownership Registry answers "does address X own media item M?"
and exposes the canonical metadata and content hashes for M. The Revenue
Split Registry (the "market") answers "what are the prevailing-owner,
creator and owner shares for M?".

The ledger never talks to a registry directly. It goes through the
gateway, which holds the configured registry addresses, resolves them to
handles, and wraps every registry failure in RegistryUnavailable.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Optional

from ..errors import RegistryUnavailable, Unauthorized
from ..units import normalize_address

logger = logging.getLogger(__name__)

# Share percentages use 18 decimals: 100% == 100 * 10**18
SHARE_SCALE = 10 ** 18
ONE_HUNDRED_PERCENT = 100 * SHARE_SCALE


@dataclass(frozen=True)
class BidShares:
    """
    Revenue split for a media item.

    Each share is a percentage scaled by 10**18 and the three shares
    sum to 100%.
    """
    prev_owner: int
    creator: int
    owner: int

    def is_valid(self) -> bool:
        return (
            min(self.prev_owner, self.creator, self.owner) >= 0
            and self.prev_owner + self.creator + self.owner == ONE_HUNDRED_PERCENT
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prevOwner": {"value": self.prev_owner},
            "creator": {"value": self.creator},
            "owner": {"value": self.owner},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BidShares":
        def _value(item):
            return item["value"] if isinstance(item, dict) else item
        return cls(
            prev_owner=int(_value(data["prevOwner"])),
            creator=int(_value(data["creator"])),
            owner=int(_value(data["owner"])),
        )

    @classmethod
    def from_percentages(cls, prev_owner, creator, owner) -> "BidShares":
        """Build shares from plain percentages (e.g. 10, 5, 85)."""
        return cls(
            prev_owner=int(Decimal(str(prev_owner)) * SHARE_SCALE),
            creator=int(Decimal(str(creator)) * SHARE_SCALE),
            owner=int(Decimal(str(owner)) * SHARE_SCALE),
        )


@dataclass(frozen=True)
class MediaData:
    """Canonical metadata and content hashes for a media item."""
    token_uri: str
    metadata_uri: str
    content_hash: str
    metadata_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "tokenURI": self.token_uri,
            "metadataURI": self.metadata_uri,
            "contentHash": self.content_hash,
            "metadataHash": self.metadata_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "MediaData":
        return cls(
            token_uri=data.get("tokenURI", ""),
            metadata_uri=data.get("metadataURI", ""),
            content_hash=data.get("contentHash", ""),
            metadata_hash=data.get("metadataHash", ""),
        )


class MediaRegistry(ABC):
    """Capability interface of the Media Ownership Registry."""

    address: str

    @abstractmethod
    def owner_of(self, media_id: int) -> str:
        """Return the owning address of a media item."""
        pass

    def is_owner(self, actor: str, media_id: int) -> bool:
        return self.owner_of(media_id).lower() == actor.lower()

    @abstractmethod
    def media_data(self, media_id: int) -> MediaData:
        pass


class MarketRegistry(ABC):
    """Capability interface of the Revenue Split Registry."""

    address: str

    @abstractmethod
    def bid_shares(self, media_id: int) -> BidShares:
        pass


Resolver = Callable[[str], Optional[Any]]


class RegistryGateway:
    """
    Holds the configured registry addresses and delegates lookups.

    Addresses are resolved to registry handles on every call, so replacing
    an address takes effect immediately for subsequent calls. Edition
    records store no registry snapshot.

    Args:
        admin: Address allowed to change registry addresses
        registries: Known registry handles, resolved by their `address`
        resolver: Optional custom address -> handle lookup; overrides
            `registries`
    """

    def __init__(
        self,
        admin: str,
        registries: Iterable[Any] = (),
        resolver: Resolver = None,
    ):
        self.admin = normalize_address(admin)
        self._handles: Dict[str, Any] = {
            normalize_address(r.address): r for r in registries
        }
        self._resolver = resolver or self._handles.get
        self._media_address: Optional[str] = None
        self._market_address: Optional[str] = None

    @property
    def media_address(self) -> Optional[str]:
        return self._media_address

    @property
    def market_address(self) -> Optional[str]:
        return self._market_address

    def add_registry(self, handle: Any) -> None:
        """Make a registry handle resolvable by its address."""
        self._handles[normalize_address(handle.address)] = handle

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "admin": self.admin,
            "media_address": self._media_address,
            "market_address": self._market_address,
        }

    def restore(self, data: Dict[str, Optional[str]]) -> None:
        """Reload saved addresses; the admin must match."""
        if data.get("admin", self.admin).lower() != self.admin:
            raise ValueError("Saved gateway state belongs to a different admin")
        media, market = data.get("media_address"), data.get("market_address")
        self._media_address = normalize_address(media) if media else None
        self._market_address = normalize_address(market) if market else None

    def _require_admin(self, caller: str):
        if caller.lower() != self.admin:
            raise Unauthorized("caller is not the admin")

    def set_media_address(self, caller: str, address: str) -> None:
        """Point the gateway at a Media Ownership Registry (admin only)."""
        self._require_admin(caller)
        self._media_address = normalize_address(address)
        logger.info(f"Media registry set to {self._media_address}")

    def set_market_address(self, caller: str, address: str) -> None:
        """Point the gateway at a Revenue Split Registry (admin only)."""
        self._require_admin(caller)
        self._market_address = normalize_address(address)
        logger.info(f"Market registry set to {self._market_address}")

    def _resolve(self, address: Optional[str], kind: str):
        if address is None:
            raise RegistryUnavailable(f"{kind} registry address is not set")
        handle = self._resolver(address)
        if handle is None:
            raise RegistryUnavailable(f"no {kind} registry at {address}")
        return handle

    def _media(self) -> MediaRegistry:
        return self._resolve(self._media_address, "media")

    def _market(self) -> MarketRegistry:
        return self._resolve(self._market_address, "market")

    def is_owner(self, actor: str, media_id: int) -> bool:
        registry = self._media()
        try:
            return registry.is_owner(actor, media_id)
        except RegistryUnavailable:
            raise
        except Exception as e:
            raise RegistryUnavailable(f"media registry lookup failed: {e}") from e

    def share_split(self, media_id: int) -> BidShares:
        registry = self._market()
        try:
            return registry.bid_shares(media_id)
        except RegistryUnavailable:
            raise
        except Exception as e:
            raise RegistryUnavailable(f"market registry lookup failed: {e}") from e

    def media_metadata(self, media_id: int) -> MediaData:
        registry = self._media()
        try:
            return registry.media_data(media_id)
        except RegistryUnavailable:
            raise
        except Exception as e:
            raise RegistryUnavailable(f"media registry lookup failed: {e}") from e

# editions/registry/__init__.py
"""
Registry access for the edition ledger.

The gateway is the only part of the ledger that talks to the Media
Ownership and Revenue Split registries. Local file-backed registries
are provided for running without a network.

Example:
    media = LocalMediaRegistry("/path/to/media")
    market = LocalMarketRegistry("/path/to/market")
    gateway = RegistryGateway(admin, registries=[media, market])
    gateway.set_media_address(admin, media.address)
    gateway.set_market_address(admin, market.address)
"""

from .gateway import (
    BidShares,
    MediaData,
    MediaRegistry,
    MarketRegistry,
    RegistryGateway,
    ONE_HUNDRED_PERCENT,
    SHARE_SCALE,
)
from .local import LocalMediaRegistry, LocalMarketRegistry, MediaItem

__all__ = [
    "BidShares",
    "MediaData",
    "MediaRegistry",
    "MarketRegistry",
    "RegistryGateway",
    "ONE_HUNDRED_PERCENT",
    "SHARE_SCALE",
    "LocalMediaRegistry",
    "LocalMarketRegistry",
    "MediaItem",
]

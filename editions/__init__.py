# editions - Fixed-supply primary-sale ledger for tokenized digital works
#
# Creators register a limited edition of a media item they own in an
# external Media Ownership Registry. Buyers purchase numbered copies
# against an escrowed price, and post-purchase metadata and revenue
# shares are disclosed only to verified buyers.
#
# Core concepts:
# - RegistryGateway: access to the media and revenue split registries
# - EditionStore: edition records, id sequence, buyer index, escrow
# - SaleEngine: edition creation and purchase
# - Treasury: creator withdrawals with reentrancy protection
# - DisclosureGate: buyer-gated registry lookups
# - Ledger: the public entry points, one transaction per mutation

from .errors import (
    EditionError,
    Unauthorized,
    NotFound,
    SoldOut,
    InsufficientFunds,
    RegistryUnavailable,
    TransferFailed,
    ReentrantCall,
    InvalidEdition,
    Overdrawn,
)
from .registry import (
    BidShares,
    MediaData,
    MediaRegistry,
    MarketRegistry,
    RegistryGateway,
    LocalMediaRegistry,
    LocalMarketRegistry,
)
from .store import EditionRecord, EditionStore
from .sale import SaleEngine, Purchase
from .treasury import Treasury, FundsTransport, BalanceSheet, ReentrancyGuard
from .disclosure import DisclosureGate
from .events import LedgerEvent, EventLog
from .accounts import Account, AccountStore
from .ledger import Ledger
from .config import LedgerConfig
from .units import parse_ether, format_ether

__all__ = [
    # Errors
    "EditionError",
    "Unauthorized",
    "NotFound",
    "SoldOut",
    "InsufficientFunds",
    "RegistryUnavailable",
    "TransferFailed",
    "ReentrantCall",
    "InvalidEdition",
    "Overdrawn",
    # Registries
    "BidShares",
    "MediaData",
    "MediaRegistry",
    "MarketRegistry",
    "RegistryGateway",
    "LocalMediaRegistry",
    "LocalMarketRegistry",
    # Core
    "EditionRecord",
    "EditionStore",
    "SaleEngine",
    "Purchase",
    "Treasury",
    "FundsTransport",
    "BalanceSheet",
    "ReentrancyGuard",
    "DisclosureGate",
    "Ledger",
    # Events and identity
    "LedgerEvent",
    "EventLog",
    "Account",
    "AccountStore",
    # Config and units
    "LedgerConfig",
    "parse_ether",
    "format_ether",
]

__version__ = "0.1.0"

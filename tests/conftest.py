# tests/conftest.py
"""Shared fixtures: fixed addresses, in-memory registry doubles, a wired ledger."""

import tempfile
from pathlib import Path

import pytest

from editions import BidShares, Ledger, MediaData, parse_ether
from editions.registry import MarketRegistry, MediaRegistry

ADMIN = "0x" + "ad" * 20
CREATOR = "0xa3c784f717efa8d3a44df80a5d33e734f5c1a7ee"
BUYER = "0x" + "b0" * 20
OTHER = "0x" + "0e" * 20
MEDIA_ADDRESS = "0x" + "11" * 20
MARKET_ADDRESS = "0x" + "22" * 20

HALF_ETHER = parse_ether("0.5")


class MockMediaRegistry(MediaRegistry):
    """Media registry double: media id -> owner and data."""

    def __init__(self, address: str = MEDIA_ADDRESS):
        self.address = address
        self.owners = {}
        self.data = {}
        self.calls = 0

    def mint(self, media_id: int, owner: str, token_uri: str = None):
        self.owners[media_id] = owner
        self.data[media_id] = MediaData(
            token_uri=token_uri or f"ipfs://content/{media_id}",
            metadata_uri=f"ipfs://metadata/{media_id}",
            content_hash=f"{media_id:064x}",
            metadata_hash=f"{media_id + 1000:064x}",
        )

    def owner_of(self, media_id: int) -> str:
        self.calls += 1
        return self.owners[media_id]

    def media_data(self, media_id: int) -> MediaData:
        self.calls += 1
        return self.data[media_id]


class MockMarketRegistry(MarketRegistry):
    """Market registry double: media id -> bid shares."""

    def __init__(self, address: str = MARKET_ADDRESS):
        self.address = address
        self.shares = {}

    def bid_shares(self, media_id: int) -> BidShares:
        return self.shares[media_id]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def media():
    registry = MockMediaRegistry()
    registry.mint(0, CREATOR)
    registry.mint(1, OTHER)
    return registry


@pytest.fixture
def market():
    registry = MockMarketRegistry()
    registry.shares[0] = BidShares.from_percentages(10, 5, 85)
    registry.shares[1] = BidShares.from_percentages(0, 20, 80)
    return registry


@pytest.fixture
def ledger(media, market):
    """A ledger pointed at both registry doubles."""
    ledger = Ledger(admin=ADMIN, registries=[media, market])
    ledger.set_media_address(ADMIN, media.address)
    ledger.set_market_address(ADMIN, market.address)
    return ledger


@pytest.fixture
def edition_id(ledger):
    """One copy of media 0 at 0.5 ether, funds to the creator."""
    return ledger.create_edition(CREATOR, supply=1, price=HALF_ETHER, funds_address=CREATOR, media_id=0)

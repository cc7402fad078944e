# tests/test_gateway.py
"""Tests for the registry gateway."""

import pytest

from editions import BidShares, RegistryGateway, RegistryUnavailable, Unauthorized
from editions.registry import ONE_HUNDRED_PERCENT

from conftest import (
    ADMIN,
    BUYER,
    CREATOR,
    MEDIA_ADDRESS,
    MARKET_ADDRESS,
    OTHER,
    MockMediaRegistry,
)


@pytest.fixture
def gateway(media, market):
    return RegistryGateway(ADMIN, registries=[media, market])


class TestAddressConfiguration:

    def test_addresses_start_unset(self, gateway):
        assert gateway.media_address is None
        assert gateway.market_address is None

    def test_admin_sets_addresses(self, gateway):
        gateway.set_media_address(ADMIN, MEDIA_ADDRESS)
        gateway.set_market_address(ADMIN, MARKET_ADDRESS)

        assert gateway.media_address == MEDIA_ADDRESS
        assert gateway.market_address == MARKET_ADDRESS

    def test_non_admin_rejected(self, gateway):
        with pytest.raises(Unauthorized):
            gateway.set_media_address(CREATOR, MEDIA_ADDRESS)
        with pytest.raises(Unauthorized):
            gateway.set_market_address(BUYER, MARKET_ADDRESS)
        assert gateway.media_address is None

    def test_invalid_address(self, gateway):
        with pytest.raises(ValueError):
            gateway.set_media_address(ADMIN, "zora")

    def test_admin_check_ignores_case(self, gateway):
        gateway.set_media_address(ADMIN.upper().replace("0X", "0x"), MEDIA_ADDRESS)
        assert gateway.media_address == MEDIA_ADDRESS

    def test_state_round_trip(self, gateway, media, market):
        gateway.set_media_address(ADMIN, MEDIA_ADDRESS)
        restored = RegistryGateway(ADMIN, registries=[media, market])
        restored.restore(gateway.to_dict())

        assert restored.media_address == MEDIA_ADDRESS
        assert restored.market_address is None

    def test_restore_rejects_other_admin(self, gateway):
        with pytest.raises(ValueError):
            gateway.restore({"admin": OTHER, "media_address": MEDIA_ADDRESS})


class TestLookups:

    def test_unset_registry_unavailable(self, gateway):
        with pytest.raises(RegistryUnavailable):
            gateway.is_owner(CREATOR, 0)
        with pytest.raises(RegistryUnavailable):
            gateway.share_split(0)
        with pytest.raises(RegistryUnavailable):
            gateway.media_metadata(0)

    def test_unknown_address_unavailable(self, gateway):
        gateway.set_media_address(ADMIN, "0x" + "99" * 20)
        with pytest.raises(RegistryUnavailable, match="no media registry"):
            gateway.is_owner(CREATOR, 0)

    def test_is_owner(self, gateway):
        gateway.set_media_address(ADMIN, MEDIA_ADDRESS)
        assert gateway.is_owner(CREATOR, 0)
        assert not gateway.is_owner(BUYER, 0)

    def test_lookup_failure_wrapped(self, gateway):
        gateway.set_media_address(ADMIN, MEDIA_ADDRESS)
        with pytest.raises(RegistryUnavailable, match="lookup failed"):
            gateway.media_metadata(42)

    def test_replacement_takes_effect_immediately(self, ledger, media):
        """Swapping the media registry changes who may create editions."""
        replacement = MockMediaRegistry(address="0x" + "33" * 20)
        replacement.mint(0, BUYER)
        ledger.gateway.add_registry(replacement)

        first = ledger.create_edition(CREATOR, supply=1, price=1, funds_address=CREATOR, media_id=0)
        ledger.set_media_address(ADMIN, replacement.address)

        with pytest.raises(Unauthorized):
            ledger.create_edition(CREATOR, supply=1, price=1, funds_address=CREATOR, media_id=0)
        second = ledger.create_edition(BUYER, supply=1, price=1, funds_address=BUYER, media_id=0)

        assert (first, second) == (1, 2)
        assert ledger.editions(first).creator == CREATOR
        assert ledger.media_address == replacement.address

    def test_custom_resolver(self, media):
        gateway = RegistryGateway(ADMIN, resolver=lambda address: media)
        gateway.set_media_address(ADMIN, OTHER)
        assert gateway.is_owner(CREATOR, 0)


class TestBidShares:

    def test_from_percentages(self):
        shares = BidShares.from_percentages(10, 5, 85)
        assert shares.is_valid()
        assert shares.prev_owner + shares.creator + shares.owner == ONE_HUNDRED_PERCENT

    def test_invalid_total(self):
        assert not BidShares.from_percentages(10, 10, 10).is_valid()

    def test_dict_form(self):
        shares = BidShares.from_percentages(0, 20, 80)
        data = shares.to_dict()
        assert set(data) == {"prevOwner", "creator", "owner"}
        assert BidShares.from_dict(data) == shares

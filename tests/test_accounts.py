# tests/test_accounts.py
"""Tests for accounts and event signatures."""

import pytest

from editions import Account, AccountStore
from editions.events import LedgerEvent, edition_created
from editions.signatures import sign_event, verify_event, verify_signature
from editions.units import is_address

from conftest import CREATOR


@pytest.fixture(scope="module")
def account():
    return Account.create("alice")


class TestAccount:

    def test_address_derived_from_key(self, account):
        assert is_address(account.address)
        assert account.address == account.address.lower()
        assert account.key_id == f"{account.address}#main-key"

    def test_dict_round_trip(self, account):
        restored = Account.from_dict(account.to_dict())
        assert restored.address == account.address
        assert restored.private_key == account.private_key


class TestAccountStore:

    def test_create_and_get(self, temp_dir):
        store = AccountStore(temp_dir)
        account = store.create("alice")

        assert store.get("alice") == account
        assert store.get_by_address(account.address.upper().replace("0X", "0x")) == account
        assert "alice" in store
        assert len(store) == 1

    def test_duplicate_name(self, temp_dir):
        store = AccountStore(temp_dir)
        store.create("alice")
        with pytest.raises(ValueError):
            store.create("alice")

    def test_resolve(self, temp_dir):
        store = AccountStore(temp_dir)
        account = store.create("alice")

        assert store.resolve("alice") == account.address
        assert store.resolve(CREATOR.upper().replace("0X", "0x")) == CREATOR

    @pytest.mark.parametrize("value", ["bbo", "0x1234", ""])
    def test_resolve_unknown_name(self, temp_dir, value):
        store = AccountStore(temp_dir)
        store.create("bob")
        with pytest.raises(ValueError, match="Unknown account"):
            store.resolve(value)

    def test_persistence(self, temp_dir):
        store = AccountStore(temp_dir)
        account = store.create("alice")
        store.create("bob")

        reloaded = AccountStore(temp_dir)
        assert [a.name for a in reloaded.list()] == ["alice", "bob"]
        assert reloaded.get("alice").address == account.address


class TestSignatures:

    def test_sign_and_verify(self, account):
        event = edition_created(edition_id=1, media_id=0, creator=CREATOR, supply=1, price=5)
        event.sequence = 1
        sign_event(event, account)

        assert event.signature["type"] == "RsaSignature2017"
        assert verify_event(event, account)
        assert verify_signature(event, account.public_key)

    def test_signature_survives_serialization(self, account):
        event = edition_created(edition_id=1, media_id=0, creator=CREATOR, supply=1, price=5)
        event.sequence = 1
        sign_event(event, account)

        restored = LedgerEvent.from_dict(event.to_dict())
        assert verify_event(restored, account)

    def test_sequence_is_covered(self, account):
        event = edition_created(edition_id=1, media_id=0, creator=CREATOR, supply=1, price=5)
        event.sequence = 1
        sign_event(event, account)

        event.sequence = 2
        assert not verify_event(event, account)

    def test_corrupt_signature(self, account):
        event = edition_created(edition_id=1, media_id=0, creator=CREATOR, supply=1, price=5)
        sign_event(event, account)
        event.signature["signatureValue"] = "not base64!"
        assert not verify_signature(event, account.public_key)

    def test_unsigned(self, account):
        event = edition_created(edition_id=1, media_id=0, creator=CREATOR, supply=1, price=5)
        assert not verify_event(event, account)

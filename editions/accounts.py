# editions/accounts.py
"""
Account identities.

An Account is an identity with:
- A name
- RSA key pair for signing
- An address derived from the public key

The address is the last 20 bytes of the SHA-3-256 hash of the DER
encoded public key, rendered as 0x-prefixed hex.
"""

import hashlib
import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .units import is_address


def _generate_keypair() -> tuple[bytes, bytes]:
    """Generate RSA key pair for signing."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def address_from_public_key(public_pem: bytes) -> str:
    """Derive the account address from a PEM public key."""
    public_key = serialization.load_pem_public_key(public_pem)
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return "0x" + hashlib.sha3_256(der).hexdigest()[-40:]


@dataclass
class Account:
    """
    A ledger identity.

    Attributes:
        name: Unique local name (e.g., "creator")
        public_key: PEM-encoded public key
        private_key: PEM-encoded private key (kept secret)
        created_at: Timestamp of creation
    """
    name: str
    public_key: bytes
    private_key: bytes
    created_at: float = field(default_factory=time.time)

    @property
    def address(self) -> str:
        return address_from_public_key(self.public_key)

    @property
    def key_id(self) -> str:
        """Key ID used in signatures."""
        return f"{self.address}#main-key"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage."""
        return {
            "name": self.name,
            "public_key": self.public_key.decode("utf-8"),
            "private_key": self.private_key.decode("utf-8"),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        """Deserialize from storage."""
        return cls(
            name=data["name"],
            public_key=data["public_key"].encode("utf-8"),
            private_key=data["private_key"].encode("utf-8"),
            created_at=data.get("created_at", time.time()),
        )

    @classmethod
    def create(cls, name: str) -> "Account":
        """Create a new account with generated keys."""
        private_pem, public_pem = _generate_keypair()
        return cls(name=name, public_key=public_pem, private_key=private_pem)


class AccountStore:
    """
    Persistent storage for accounts.

    Structure:
        store_dir/
            accounts.json     # Index of all accounts
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self._accounts: Dict[str, Account] = {}
        self._load()

    def _index_path(self) -> Path:
        return self.store_dir / "accounts.json"

    def _load(self):
        index_path = self._index_path()
        if index_path.exists():
            with open(index_path) as f:
                data = json.load(f)
            self._accounts = {
                name: Account.from_dict(account_data)
                for name, account_data in data.get("accounts", {}).items()
            }

    def _save(self):
        data = {
            "version": "1.0",
            "accounts": {
                name: account.to_dict()
                for name, account in self._accounts.items()
            },
        }
        with open(self._index_path(), "w") as f:
            json.dump(data, f, indent=2)

    def create(self, name: str) -> Account:
        """Create and store a new account."""
        if name in self._accounts:
            raise ValueError(f"Account {name} already exists")

        account = Account.create(name)
        self._accounts[name] = account
        self._save()
        return account

    def get(self, name: str) -> Optional[Account]:
        return self._accounts.get(name)

    def get_by_address(self, address: str) -> Optional[Account]:
        for account in self._accounts.values():
            if account.address == address.lower():
                return account
        return None

    def resolve(self, name_or_address: str) -> str:
        """
        Turn an account name or a raw address into an address.

        Raises:
            ValueError: if the value is neither a known account nor an address
        """
        account = self.get(name_or_address)
        if account is not None:
            return account.address
        if not is_address(name_or_address):
            raise ValueError(f"Unknown account: {name_or_address}")
        return name_or_address.lower()

    def list(self) -> list[Account]:
        return list(self._accounts.values())

    def __contains__(self, name: str) -> bool:
        return name in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

# editions/store.py
"""
Authoritative edition state.

The store owns every EditionRecord, the id sequence, the buyer index and
the per-edition escrow balances. Nothing outside the store mutates a
record directly: the sale engine and treasury go through the mutators
below, inside a savepoint, so a failed operation leaves no partial write.

Optional persistence:
    store_dir/
        editions.json    # records, buyer index, escrow, next id
"""

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import NotFound, Overdrawn, SoldOut

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class EditionRecord:
    """
    One fixed-supply, fixed-price edition.

    Attributes:
        edition_id: Sequential id, starting at 1
        supply: Total copies offered
        sold: Successful purchases so far (0 <= sold <= supply)
        price: Unit price in wei
        funds_address: Recipient of sale proceeds
        media_id: Id in the Media Ownership Registry
        withdrawn: Cumulative amount paid out to funds_address
        creator: Address that created the edition (verified media owner)
        created_at: Timestamp of creation
    """
    edition_id: int
    supply: int
    price: int
    funds_address: str
    media_id: int
    creator: str
    sold: int = 0
    withdrawn: int = 0
    created_at: float = field(default_factory=time.time)

    @property
    def remaining(self) -> int:
        return self.supply - self.sold

    @property
    def is_sold_out(self) -> bool:
        return self.sold >= self.supply

    @property
    def state(self) -> str:
        """created | partially_sold | sold_out"""
        if self.sold == 0:
            return "created"
        if self.sold < self.supply:
            return "partially_sold"
        return "sold_out"

    @property
    def claimable(self) -> int:
        """Amount the creator can still withdraw (floor price only)."""
        return self.sold * self.price - self.withdrawn

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edition_id": self.edition_id,
            "supply": self.supply,
            "sold": self.sold,
            "price": self.price,
            "funds_address": self.funds_address,
            "media_id": self.media_id,
            "withdrawn": self.withdrawn,
            "creator": self.creator,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditionRecord":
        return cls(
            edition_id=data["edition_id"],
            supply=data["supply"],
            sold=data.get("sold", 0),
            price=data["price"],
            funds_address=data["funds_address"],
            media_id=data["media_id"],
            withdrawn=data.get("withdrawn", 0),
            creator=data.get("creator", data["funds_address"]),
            created_at=data.get("created_at", time.time()),
        )


class EditionStore:
    """
    In-memory edition state with optional JSON persistence.

    Args:
        store_dir: Directory to persist state in. None keeps the store
            purely in memory.
    """

    def __init__(self, store_dir: Path | str = None):
        self.store_dir = Path(store_dir) if store_dir else None
        self._records: Dict[int, EditionRecord] = {}
        self._buyers: Dict[str, int] = {}
        self._escrow: Dict[int, int] = {}
        self._next_id = 1
        self._journals: List[Dict[str, Any]] = []
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    def _index_path(self) -> Path:
        return self.store_dir / "editions.json"

    def _load(self):
        """Load state from disk. Corrupt state is an error, never reset."""
        index_path = self._index_path()
        if not index_path.exists():
            return
        with open(index_path) as f:
            data = json.load(f)
        self._records = {
            r["edition_id"]: EditionRecord.from_dict(r)
            for r in data.get("editions", [])
        }
        self._buyers = dict(data.get("buyers", {}))
        self._escrow = {int(k): v for k, v in data.get("escrow", {}).items()}
        self._next_id = data.get("next_id", len(self._records) + 1)
        logger.debug(f"Loaded {len(self._records)} editions from {index_path}")

    def save(self):
        """Write state to disk (no-op for an in-memory store)."""
        if self.store_dir is None:
            return
        data = {
            "version": "1.0",
            "next_id": self._next_id,
            "editions": [r.to_dict() for r in self._records.values()],
            "buyers": self._buyers,
            "escrow": {str(k): v for k, v in self._escrow.items()},
        }
        tmp_path = self._index_path().with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._index_path())

    # Savepoints
    #
    # Each open savepoint keeps a journal of the prior value of every
    # record, escrow entry and buyer entry first touched inside it. A
    # committed inner journal is folded into its parent; a failed one is
    # written back over the live state.

    def _journal(self) -> Optional[Dict[str, Any]]:
        return self._journals[-1] if self._journals else None

    def _touch(self, edition_id: int):
        journal = self._journal()
        if journal is None:
            return
        if edition_id not in journal["records"]:
            record = self._records.get(edition_id)
            journal["records"][edition_id] = replace(record) if record else _MISSING
        if edition_id not in journal["escrow"]:
            journal["escrow"][edition_id] = self._escrow.get(edition_id, _MISSING)

    def _touch_buyer(self, buyer: str):
        journal = self._journal()
        if journal is not None and buyer not in journal["buyers"]:
            journal["buyers"][buyer] = self._buyers.get(buyer, _MISSING)

    @staticmethod
    def _revert(target: Dict, saved: Dict):
        for key, value in saved.items():
            if value is _MISSING:
                target.pop(key, None)
            else:
                target[key] = value

    def _rollback(self, journal: Dict[str, Any]):
        self._revert(self._records, journal["records"])
        self._revert(self._escrow, journal["escrow"])
        self._revert(self._buyers, journal["buyers"])
        self._next_id = journal["next_id"]

    @contextmanager
    def savepoint(self) -> Iterator["EditionStore"]:
        """
        All-or-nothing block.

        On any exception the store is restored to its state at entry and
        the exception propagates. On success the state is persisted once
        the outermost savepoint exits.
        """
        journal = {"records": {}, "escrow": {}, "buyers": {}, "next_id": self._next_id}
        self._journals.append(journal)
        try:
            yield self
        except BaseException:
            self._journals.pop()
            self._rollback(journal)
            logger.debug("Rolled back edition store")
            raise
        self._journals.pop()
        parent = self._journal()
        if parent is None:
            self.save()
            return
        for section in ("records", "escrow", "buyers"):
            for key, value in journal[section].items():
                parent[section].setdefault(key, value)

    # Reads

    def get(self, edition_id: int) -> Optional[EditionRecord]:
        """Get a copy of a record, or None."""
        record = self._records.get(edition_id)
        return replace(record) if record else None

    def require(self, edition_id: int) -> EditionRecord:
        record = self.get(edition_id)
        if record is None:
            raise NotFound("edition does not exist", edition_id=edition_id)
        return record

    def list(self) -> List[EditionRecord]:
        return [replace(r) for r in self._records.values()]

    def find_by_media(self, media_id: int) -> List[EditionRecord]:
        return [replace(r) for r in self._records.values() if r.media_id == media_id]

    def find_by_funds_address(self, address: str) -> List[EditionRecord]:
        return [
            replace(r) for r in self._records.values()
            if r.funds_address == address.lower()
        ]

    def buyer_edition(self, buyer: str) -> Optional[int]:
        """Edition most recently purchased by a buyer."""
        return self._buyers.get(buyer.lower())

    def escrow_balance(self, edition_id: int) -> int:
        self.require(edition_id)
        return self._escrow.get(edition_id, 0)

    def stranded(self, edition_id: int) -> int:
        """Escrow that the withdrawal formula never releases (overpayment)."""
        record = self.require(edition_id)
        return self._escrow.get(edition_id, 0) - record.claimable

    @property
    def next_id(self) -> int:
        return self._next_id

    # Mutators

    def insert(
        self,
        supply: int,
        price: int,
        funds_address: str,
        media_id: int,
        creator: str,
    ) -> EditionRecord:
        """Allocate the next id and insert a fresh record."""
        edition_id = self._next_id
        record = EditionRecord(
            edition_id=edition_id,
            supply=supply,
            price=price,
            funds_address=funds_address.lower(),
            media_id=media_id,
            creator=creator.lower(),
        )
        self._touch(edition_id)
        self._records[edition_id] = record
        self._escrow[edition_id] = 0
        self._next_id += 1
        return replace(record)

    def record_sale(self, edition_id: int, buyer: str, payment: int) -> EditionRecord:
        """Count one sale, credit escrow, and point the buyer at the edition."""
        record = self._records.get(edition_id)
        if record is None:
            raise NotFound("edition does not exist", edition_id=edition_id)
        if record.sold >= record.supply:
            raise SoldOut(edition_id=edition_id)
        buyer = buyer.lower()
        self._touch(edition_id)
        self._touch_buyer(buyer)
        record.sold += 1
        self._escrow[edition_id] = self._escrow.get(edition_id, 0) + payment
        self._buyers[buyer] = edition_id
        return replace(record)

    def record_withdrawal(self, edition_id: int, amount: int) -> EditionRecord:
        """Mark an amount as paid out and debit escrow."""
        record = self._records.get(edition_id)
        if record is None:
            raise NotFound("edition does not exist", edition_id=edition_id)
        if amount > record.claimable:
            raise Overdrawn(
                f"withdrawal of {amount} exceeds the claim of {record.claimable}",
                edition_id=edition_id,
            )
        self._touch(edition_id)
        record.withdrawn += amount
        self._escrow[edition_id] = self._escrow.get(edition_id, 0) - amount
        return replace(record)

    def __contains__(self, edition_id: int) -> bool:
        return edition_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self.list())

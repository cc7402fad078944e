# editions/events.py
"""
Ledger events.

Every successful mutation emits an event:
- EditionCreated(edition_id, media_id, creator, supply, price)
- EditionPurchased(edition_id, buyer, sold)
- FundsWithdrawn(edition_id, recipient, amount)

Events are kept in an append-only log for auditability and may carry a
signature from the ledger operator (see signatures.py).
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

EDITION_CREATED = "EditionCreated"
EDITION_PURCHASED = "EditionPurchased"
FUNDS_WITHDRAWN = "FundsWithdrawn"


def _generate_id() -> str:
    return str(uuid.uuid4())


@dataclass
class LedgerEvent:
    """
    A recorded ledger event.

    Attributes:
        event_id: Unique identifier
        event_type: EditionCreated, EditionPurchased or FundsWithdrawn
        args: Event arguments
        sequence: Position in the log (set when appended)
        published: ISO timestamp
        signature: Operator signature (added after signing)
    """
    event_id: str
    event_type: str
    args: Dict[str, Any]
    sequence: int = 0
    published: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
    signature: Optional[Dict[str, Any]] = None

    @property
    def edition_id(self) -> Optional[int]:
        return self.args.get("edition_id")

    def signable(self) -> Dict[str, Any]:
        """Event content covered by the signature."""
        return {
            "id": self.event_id,
            "type": self.event_type,
            "args": self.args,
            "sequence": self.sequence,
            "published": self.published,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "args": self.args,
            "sequence": self.sequence,
            "published": self.published,
            "signature": self.signature,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEvent":
        return cls(
            event_id=data["event_id"],
            event_type=data["event_type"],
            args=data["args"],
            sequence=data.get("sequence", 0),
            published=data.get("published", ""),
            signature=data.get("signature"),
        )


def edition_created(edition_id: int, media_id: int, creator: str, supply: int, price: int) -> LedgerEvent:
    return LedgerEvent(
        event_id=_generate_id(),
        event_type=EDITION_CREATED,
        args={
            "edition_id": edition_id,
            "media_id": media_id,
            "creator": creator,
            "supply": supply,
            "price": price,
        },
    )


def edition_purchased(edition_id: int, buyer: str, sold: int) -> LedgerEvent:
    return LedgerEvent(
        event_id=_generate_id(),
        event_type=EDITION_PURCHASED,
        args={"edition_id": edition_id, "buyer": buyer, "sold": sold},
    )


def funds_withdrawn(edition_id: int, recipient: str, amount: int) -> LedgerEvent:
    return LedgerEvent(
        event_id=_generate_id(),
        event_type=FUNDS_WITHDRAWN,
        args={"edition_id": edition_id, "recipient": recipient, "amount": amount},
    )


class EventLog:
    """
    Append-only event storage.

    Args:
        store_dir: Directory for events.json. None keeps the log in memory.
    """

    def __init__(self, store_dir: Path | str = None):
        self.store_dir = Path(store_dir) if store_dir else None
        self._events: List[LedgerEvent] = []
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    def _log_path(self) -> Path:
        return self.store_dir / "events.json"

    def _load(self):
        log_path = self._log_path()
        if log_path.exists():
            try:
                with open(log_path) as f:
                    data = json.load(f)
                self._events = [LedgerEvent.from_dict(e) for e in data.get("events", [])]
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Failed to load events: {e}")
                self._events = []

    def _save(self):
        if self.store_dir is None:
            return
        data = {
            "version": "1.0",
            "events": [e.to_dict() for e in self._events],
        }
        tmp_path = self._log_path().with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._log_path())

    def next_sequence(self) -> int:
        return len(self._events) + 1

    def append(self, event: LedgerEvent) -> LedgerEvent:
        """Append an event; its sequence must be the next in the log."""
        if event.sequence == 0:
            event.sequence = self.next_sequence()
        elif event.sequence != self.next_sequence():
            raise ValueError(f"Out of order event sequence: {event.sequence}")
        self._events.append(event)
        self._save()
        return event

    def list(self) -> List[LedgerEvent]:
        return list(self._events)

    def find_by_type(self, event_type: str) -> List[LedgerEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def find_by_edition(self, edition_id: int) -> List[LedgerEvent]:
        return [e for e in self._events if e.edition_id == edition_id]

    def __len__(self) -> int:
        return len(self._events)

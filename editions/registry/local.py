# editions/registry/local.py
"""
File-backed reference registries.

These stand in for the external Media Ownership and Revenue Split
registries when running the ledger locally. Each registry lives in its
own directory and gets a stable address the first time it is created:

    registry_dir/
        registry.json     # address + index of media items or shares
"""

import hashlib
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..units import normalize_address
from .gateway import BidShares, MarketRegistry, MediaData, MediaRegistry

logger = logging.getLogger(__name__)


def _file_hash(path: Path, algorithm: str = "sha3_256") -> str:
    """
    Compute content hash of a file.

    Args:
        path: File to hash
        algorithm: Hash algorithm (sha3_256, sha3_512, sha256, blake2b)

    Returns:
        Full hex digest
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _new_address() -> str:
    return "0x" + hashlib.sha3_256(uuid.uuid4().bytes).hexdigest()[-40:]


@dataclass
class MediaItem:
    """
    A media item registered with the local media registry.

    Attributes:
        media_id: Sequential id, starting at 0
        owner: Owning address
        token_uri: Where the content can be fetched
        metadata_uri: Where the metadata JSON can be fetched
        content_hash: SHA-3-256 hash of the content
        metadata_hash: SHA-3-256 hash of the metadata
        created_at: Timestamp of registration
    """
    media_id: int
    owner: str
    token_uri: str
    metadata_uri: str
    content_hash: str
    metadata_hash: str
    created_at: float = field(default_factory=time.time)

    def to_media_data(self) -> MediaData:
        return MediaData(
            token_uri=self.token_uri,
            metadata_uri=self.metadata_uri,
            content_hash=self.content_hash,
            metadata_hash=self.metadata_hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "media_id": self.media_id,
            "owner": self.owner,
            "token_uri": self.token_uri,
            "metadata_uri": self.metadata_uri,
            "content_hash": self.content_hash,
            "metadata_hash": self.metadata_hash,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaItem":
        return cls(
            media_id=data["media_id"],
            owner=data["owner"],
            token_uri=data.get("token_uri", ""),
            metadata_uri=data.get("metadata_uri", ""),
            content_hash=data.get("content_hash", ""),
            metadata_hash=data.get("metadata_hash", ""),
            created_at=data.get("created_at", time.time()),
        )


class _FileRegistry(ABC):
    """Shared load/save of a registry.json index with a stable address."""

    def __init__(self, registry_dir: Path | str):
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        self.address = _new_address()
        self._load()

    def _index_path(self) -> Path:
        return self.registry_dir / "registry.json"

    def _load(self):
        index_path = self._index_path()
        if index_path.exists():
            with open(index_path) as f:
                data = json.load(f)
            self.address = data.get("address", self.address)
            self._load_entries(data.get("entries", {}))
        else:
            self._save()

    def _save(self):
        data = {
            "version": "1.0",
            "address": self.address,
            "entries": self._dump_entries(),
        }
        with open(self._index_path(), "w") as f:
            json.dump(data, f, indent=2)

    @abstractmethod
    def _load_entries(self, entries: Dict[str, Any]):
        pass

    @abstractmethod
    def _dump_entries(self) -> Dict[str, Any]:
        pass


class LocalMediaRegistry(_FileRegistry, MediaRegistry):
    """
    Local Media Ownership Registry.

    Example:
        media = LocalMediaRegistry("/tmp/media")
        item = media.register(owner, "ipfs://content", "ipfs://meta",
                              content_hash="ab12...", metadata_hash="cd34...")
        media.is_owner(owner, item.media_id)  # True
    """

    def __init__(self, registry_dir: Path | str):
        self._items: Dict[int, MediaItem] = {}
        super().__init__(registry_dir)

    def _load_entries(self, entries: Dict[str, Any]):
        self._items = {
            int(media_id): MediaItem.from_dict(item)
            for media_id, item in entries.items()
        }

    def _dump_entries(self) -> Dict[str, Any]:
        return {str(media_id): item.to_dict() for media_id, item in self._items.items()}

    def register(
        self,
        owner: str,
        token_uri: str,
        metadata_uri: str = "",
        content_hash: str = None,
        metadata_hash: str = "",
        content_path: Path | str = None,
    ) -> MediaItem:
        """
        Mint a media item to an owner.

        Either content_hash or content_path must be given; with a path the
        hash is computed from the file.

        Returns:
            The created MediaItem
        """
        if content_hash is None:
            if content_path is None:
                raise ValueError("content_hash or content_path is required")
            path = Path(content_path)
            if not path.exists():
                raise FileNotFoundError(f"Media file not found: {path}")
            content_hash = _file_hash(path)

        media_id = len(self._items)
        item = MediaItem(
            media_id=media_id,
            owner=normalize_address(owner),
            token_uri=token_uri,
            metadata_uri=metadata_uri,
            content_hash=content_hash,
            metadata_hash=metadata_hash,
        )
        self._items[media_id] = item
        self._save()
        logger.debug(f"Registered media {media_id} to {item.owner}")
        return item

    def transfer(self, media_id: int, caller: str, to: str) -> MediaItem:
        """Move ownership of a media item; only its owner may do this."""
        item = self.get(media_id)
        if item is None:
            raise KeyError(f"Media {media_id} not found")
        if item.owner != caller.lower():
            raise PermissionError(f"{caller} does not own media {media_id}")
        item.owner = normalize_address(to)
        self._save()
        return item

    def get(self, media_id: int) -> Optional[MediaItem]:
        return self._items.get(media_id)

    def list(self) -> List[MediaItem]:
        return list(self._items.values())

    def find_by_owner(self, owner: str) -> List[MediaItem]:
        return [i for i in self._items.values() if i.owner == owner.lower()]

    def find_by_hash(self, content_hash: str) -> Optional[MediaItem]:
        for item in self._items.values():
            if item.content_hash == content_hash:
                return item
        return None

    def owner_of(self, media_id: int) -> str:
        item = self.get(media_id)
        if item is None:
            raise KeyError(f"Media {media_id} not found")
        return item.owner

    def media_data(self, media_id: int) -> MediaData:
        item = self.get(media_id)
        if item is None:
            raise KeyError(f"Media {media_id} not found")
        return item.to_media_data()

    def __contains__(self, media_id: int) -> bool:
        return media_id in self._items

    def __len__(self) -> int:
        return len(self._items)


class LocalMarketRegistry(_FileRegistry, MarketRegistry):
    """Local Revenue Split Registry: bid shares per media id."""

    def __init__(self, registry_dir: Path | str):
        self._shares: Dict[int, BidShares] = {}
        super().__init__(registry_dir)

    def _load_entries(self, entries: Dict[str, Any]):
        self._shares = {
            int(media_id): BidShares.from_dict(shares)
            for media_id, shares in entries.items()
        }

    def _dump_entries(self) -> Dict[str, Any]:
        return {str(media_id): s.to_dict() for media_id, s in self._shares.items()}

    def set_bid_shares(self, media_id: int, shares: BidShares) -> None:
        if not shares.is_valid():
            raise ValueError("Bid shares must sum to 100%")
        self._shares[media_id] = shares
        self._save()

    def bid_shares(self, media_id: int) -> BidShares:
        shares = self._shares.get(media_id)
        if shares is None:
            raise KeyError(f"No bid shares for media {media_id}")
        return shares

    def __len__(self) -> int:
        return len(self._shares)

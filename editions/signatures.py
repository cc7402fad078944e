# editions/signatures.py
"""
Signatures for ledger events.

Events are signed by the ledger operator with RSA-SHA256 (PKCS#1 v1.5)
over a canonical JSON rendering, so an exported event log can be
checked for tampering.
"""

import base64
import hashlib
import json
import time
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .accounts import Account
from .events import LedgerEvent

SIGNATURE_TYPE = "RsaSignature2017"


def _canonicalize(data: Dict[str, Any]) -> str:
    """Canonical JSON: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _hash_sha256(data: str) -> bytes:
    return hashlib.sha256(data.encode()).digest()


def _signed_bytes(event: LedgerEvent, options: Dict[str, Any]) -> bytes:
    return _hash_sha256(_canonicalize(options)) + _hash_sha256(_canonicalize(event.signable()))


def sign_event(event: LedgerEvent, account: Account) -> LedgerEvent:
    """
    Sign an event with the account's private key.

    Args:
        event: The event to sign (its sequence must already be set)
        account: The signing account

    Returns:
        The same event with its signature attached
    """
    private_key = serialization.load_pem_private_key(
        account.private_key,
        password=None,
    )
    created = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    options = {
        "type": SIGNATURE_TYPE,
        "creator": account.key_id,
        "created": created,
    }

    signature_bytes = private_key.sign(
        _signed_bytes(event, options),
        padding.PKCS1v15(),
        hashes.SHA256(),
    )

    event.signature = {
        **options,
        "signatureValue": base64.b64encode(signature_bytes).decode("utf-8"),
    }
    return event


def verify_signature(event: LedgerEvent, public_key_pem: bytes) -> bool:
    """Verify an event's signature against a PEM public key."""
    if not event.signature:
        return False

    try:
        public_key = serialization.load_pem_public_key(public_key_pem)
        options = {
            "type": event.signature["type"],
            "creator": event.signature["creator"],
            "created": event.signature["created"],
        }
        signature_bytes = base64.b64decode(event.signature["signatureValue"])
        public_key.verify(
            signature_bytes,
            _signed_bytes(event, options),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True

    except (InvalidSignature, KeyError, ValueError):
        return False


def verify_event(event: LedgerEvent, account: Account) -> bool:
    """Verify that an event was signed by the given account."""
    if not event.signature:
        return False
    if event.signature.get("creator") != account.key_id:
        return False
    return verify_signature(event, account.public_key)

"""
Hashing Utilities — SHA-256 chaining for the payment event trail.
"""
import hashlib
import json


def payload_digest(data: dict) -> str:
    """SHA-256 of a dict, keys sorted so equal payloads hash equally."""
    canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def chain_hash(data: dict, previous_hash: str = "") -> str:
    """SHA-256(previous_hash + digest(data)); links each event to the one before it."""
    return hashlib.sha256(f"{previous_hash}{payload_digest(data)}".encode("utf-8")).hexdigest()

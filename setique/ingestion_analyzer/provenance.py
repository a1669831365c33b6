# -*- coding: utf-8 -*-
"""
Provenance Tracking for the Ingestion Analyzer

SHA-256 audit trail for schema analyses, hygiene scans and price
suggestions. Each entry hashes the operation output and chains to the
previous entry, so any later edit to a stored entry breaks verification.

Example:
    >>> from setique.ingestion_analyzer.provenance import ProvenanceTracker
    >>> tracker = ProvenanceTracker()
    >>> tracker.record("dataset", "ds_001", "analyze_schema", "abc123")  # doctest: +ELLIPSIS
    '...'
    >>> tracker.verify_chain()
    True
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class ProvenanceTracker:
    """Chain-hashed log of analysis operations.

    Attributes:
        _entries: All entries in recording order.
        _last_chain_hash: Most recent chain hash for linking.
        _lock: Thread-safety lock.
    """

    GENESIS_HASH = hashlib.sha256(b"setique-ingestion-analyzer-genesis").hexdigest()

    def __init__(self) -> None:
        """Initialise ProvenanceTracker."""
        self._entries: List[Dict[str, Any]] = []
        self._last_chain_hash: str = self.GENESIS_HASH
        self._lock = threading.Lock()
        logger.info("ProvenanceTracker initialised")

    def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        data_hash: str,
    ) -> str:
        """Append an entry for an operation.

        Args:
            entity_type: Kind of entity (dataset, upload).
            entity_id: Entity identifier, typically a content hash.
            action: Operation performed (analyze_schema, scan_hygiene, ...).
            data_hash: SHA-256 of the operation output.

        Returns:
            Chain hash of the new entry.
        """
        timestamp = _utcnow().isoformat()
        with self._lock:
            chain_hash = self._compute_chain_hash(
                self._last_chain_hash, data_hash, action, timestamp,
            )
            self._entries.append({
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "data_hash": data_hash,
                "timestamp": timestamp,
                "previous_hash": self._last_chain_hash,
                "chain_hash": chain_hash,
            })
            self._last_chain_hash = chain_hash

        logger.debug(
            "Recorded provenance: %s/%s action=%s hash=%s",
            entity_type, entity_id[:12], action, chain_hash[:16],
        )
        return chain_hash

    def verify_chain(self) -> bool:
        """Recompute every chain hash and check the links.

        Returns:
            True if no entry has been altered or removed mid-chain.
        """
        with self._lock:
            entries = list(self._entries)

        previous = self.GENESIS_HASH
        for index, entry in enumerate(entries):
            expected = self._compute_chain_hash(
                previous, entry["data_hash"], entry["action"], entry["timestamp"],
            )
            if entry["previous_hash"] != previous or entry["chain_hash"] != expected:
                logger.warning("Provenance chain broken at entry %d", index)
                return False
            previous = entry["chain_hash"]
        return True

    def get_entries(
        self,
        entity_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Return entries, newest first, optionally for one entity."""
        with self._lock:
            entries = [
                dict(entry) for entry in self._entries
                if entity_id is None or entry["entity_id"] == entity_id
            ]
        return list(reversed(entries[-limit:]))

    @property
    def entry_count(self) -> int:
        """Total number of entries."""
        with self._lock:
            return len(self._entries)

    def export_json(self) -> str:
        """Export all entries as a JSON string, oldest first."""
        with self._lock:
            data = list(self._entries)
        return json.dumps(data, indent=2, default=str)

    @staticmethod
    def build_hash(data: Any) -> str:
        """SHA-256 of the canonical JSON form of ``data``."""
        serialized = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    @staticmethod
    def _compute_chain_hash(
        previous_hash: str,
        data_hash: str,
        action: str,
        timestamp: str,
    ) -> str:
        combined = json.dumps({
            "previous": previous_hash,
            "data": data_hash,
            "action": action,
            "timestamp": timestamp,
        }, sort_keys=True)
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()


__all__ = [
    "ProvenanceTracker",
]

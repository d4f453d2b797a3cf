# ============================================================================
# ROW LEASES
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Per-row exclusivity
# PURPOSE: Prevent two operations on the same (freelancer, platform) row
# CREATED: 13 OCT 2026
# ============================================================================
"""
Row Leases

An in-process lease per (freelancer_id, platform_id). A lease is held from
the moment an operation is accepted until its last write to the row, so
every write to a row happens under exactly one holder.

acquire_all() is all-or-nothing and contains no await: on a single event
loop the check and the set cannot interleave with another request. A
request that finds any of its rows held is rejected with
ConcurrentOperationError listing the conflicting pairs; it is never
queued or merged.

Scope: one orchestrator process. Multiple processes sharing a database
would need the lease persisted alongside the row.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from core.errors import ConcurrentOperationError

logger = logging.getLogger(__name__)

RowKey = Tuple[str, str]


@dataclass(frozen=True)
class RowLease:
    """Exclusive claim on one row."""
    freelancer_id: str
    platform_id: str
    holder: str
    acquired_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> RowKey:
        return (self.freelancer_id, self.platform_id)


class LeaseManager:
    """Holds the leases of one orchestrator."""

    def __init__(self):
        self._leases: Dict[RowKey, RowLease] = {}

    def acquire_all(self, keys: Iterable[RowKey], holder: str) -> List[RowLease]:
        """
        Lease every key for holder, or none of them.

        Raises:
            ConcurrentOperationError: one or more keys already leased
        """
        keys = list(dict.fromkeys(keys))
        conflicts = [key for key in keys if key in self._leases]
        if conflicts:
            logger.warning(f"Lease conflict for {holder}: {conflicts}")
            raise ConcurrentOperationError(conflicts)

        leases = [RowLease(freelancer_id=f, platform_id=p, holder=holder) for f, p in keys]
        for lease in leases:
            self._leases[lease.key] = lease
        return leases

    def release(self, key: RowKey, holder: str) -> bool:
        """
        Release a lease if holder owns it.

        Returns:
            True if a lease was released
        """
        lease = self._leases.get(key)
        if lease is None or lease.holder != holder:
            return False
        del self._leases[key]
        return True

    def release_holder(self, holder: str) -> int:
        """Release every lease owned by holder. Returns count released."""
        keys = [key for key, lease in self._leases.items() if lease.holder == holder]
        for key in keys:
            del self._leases[key]
        return len(keys)

    def holder_of(self, key: RowKey) -> Optional[str]:
        lease = self._leases.get(key)
        return lease.holder if lease else None

    def is_held(self, key: RowKey) -> bool:
        return key in self._leases

    @property
    def held_count(self) -> int:
        return len(self._leases)


__all__ = ["LeaseManager", "RowLease", "RowKey"]

import logging
from typing import Optional

from .base import FetchResult, StoreOutcome
from .models import StoredIdentity

logger = logging.getLogger(__name__)


class MemoryUserStore:
    """In-process store. Records are kept in wire form so callers can never
    mutate what was stored."""

    def __init__(self):
        self._records: dict[str, dict] = {}

    async def create(self, username: str, record: StoredIdentity) -> StoreOutcome:
        # no await between the check and the insert
        if username in self._records:
            return StoreOutcome.CONFLICT
        self._records[username] = record.to_wire()
        logger.debug("stored record for %s", username)
        return StoreOutcome.CREATED

    async def fetch(self, username: str) -> FetchResult:
        data = self._records.get(username)
        if data is None:
            return FetchResult(StoreOutcome.NOT_FOUND)
        return FetchResult(StoreOutcome.FOUND, StoredIdentity.from_wire(data))

    def raw(self, username: str) -> Optional[dict]:
        data = self._records.get(username)
        return StoredIdentity.from_wire(data).to_wire() if data is not None else None

    def __contains__(self, username: str) -> bool:
        return username in self._records

    def __len__(self) -> int:
        return len(self._records)

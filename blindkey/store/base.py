from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .models import StoredIdentity


class StoreOutcome(Enum):
    CREATED = "created"
    CONFLICT = "conflict"
    FOUND = "found"
    NOT_FOUND = "not_found"
    OTHER = "other"


@dataclass(frozen=True)
class FetchResult:
    outcome: StoreOutcome
    record: Optional[StoredIdentity] = None
    status: Optional[int] = None


class UserStore(Protocol):
    """Blind key-value store of StoredIdentity records keyed by username.

    `create` must be create-if-absent: of two racing creates for one
    username, exactly one gets CREATED and the other CONFLICT.
    """

    async def create(self, username: str, record: StoredIdentity) -> StoreOutcome: ...

    async def fetch(self, username: str) -> FetchResult: ...

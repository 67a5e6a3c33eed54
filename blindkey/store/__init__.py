"""User-record stores: the interface, an in-memory store, and an HTTP client."""
from .base import UserStore, StoreOutcome, FetchResult
from .models import StoredIdentity
from .memory import MemoryUserStore
from .http import HttpUserStore

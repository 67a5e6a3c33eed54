# HTTP client for the user-record server (see blindkey/server.py)
import asyncio
import logging
import os
from typing import Optional
from urllib.parse import quote

import requests
from dotenv import load_dotenv

from blindkey.errors import SchemaInvalid, StoreUnavailable
from .base import FetchResult, StoreOutcome
from .models import StoredIdentity

load_dotenv()

logger = logging.getLogger(__name__)


def _timeout_default(default: float = 10.0) -> float:
    try: return float(os.getenv("BLINDKEY_HTTP_TIMEOUT", default))
    except ValueError: return default


class HttpUserStore:
    """UserStore backed by `GET/POST {api}/users/{username}`.

    `http` is anything with requests-style `get`/`post` (the requests module,
    a requests.Session, or a test client). Calls run in a worker thread so the
    event loop is never blocked.
    """

    def __init__(self, api: Optional[str] = None, http=None, timeout: Optional[float] = None):
        if api is None:
            api = os.environ.get("BLINDKEY_API", "http://localhost:8000")
        self.api = api.rstrip("/")
        self.http = http if http is not None else requests
        self.timeout = timeout if timeout is not None else _timeout_default()

    def _url(self, username: str) -> str:
        return f"{self.api}/users/{quote(username, safe='')}"

    def _create(self, username: str, record: StoredIdentity) -> StoreOutcome:
        try:
            r = self.http.post(self._url(username), json=record.to_wire(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise StoreUnavailable(f"Could not reach user store: {exc}") from exc
        if r.status_code in (200, 201):
            return StoreOutcome.CREATED
        if r.status_code == 409:
            return StoreOutcome.CONFLICT
        logger.warning("user store rejected create for %s with HTTP %s", username, r.status_code)
        return StoreOutcome.OTHER

    def _fetch(self, username: str) -> FetchResult:
        try:
            r = self.http.get(self._url(username), timeout=self.timeout)
        except requests.RequestException as exc:
            raise StoreUnavailable(f"Could not reach user store: {exc}") from exc
        if r.status_code == 404:
            return FetchResult(StoreOutcome.NOT_FOUND, status=404)
        if r.status_code != 200:
            logger.warning("user store fetch for %s returned HTTP %s", username, r.status_code)
            return FetchResult(StoreOutcome.OTHER, status=r.status_code)
        try:
            body = r.json()
        except ValueError as exc:
            raise SchemaInvalid("User store returned a non-JSON record") from exc
        return FetchResult(StoreOutcome.FOUND, StoredIdentity.from_wire(body), status=200)

    async def create(self, username: str, record: StoredIdentity) -> StoreOutcome:
        return await asyncio.to_thread(self._create, username, record)

    async def fetch(self, username: str) -> FetchResult:
        return await asyncio.to_thread(self._fetch, username)

"""Backing stores for assignment records.

Two kinds of store exist:

- key-value stores hold one entry per key for a single visitor (the primary
  tier of ``AssignmentRepository``);
- cookie jars hold named string values with a day-based expiry (the
  secondary tier, mirrored to the visitor's browser).

Each kind has an in-memory implementation and a request-bound one.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple

from fastapi import Response
from sqlalchemy.orm import Session

from abtest_engine.models.orm.storage import StoredValueORM

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class CookieJar(Protocol):
    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, value: str, days: int) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def clear(self) -> None:
        self._items.clear()


class SqlKeyValueStore:
    """Visitor key-value store persisted in the ``visitor_storage`` table."""

    def __init__(self, db: Session, session_id: str):
        self.db = db
        self.session_id = session_id

    def get_item(self, key: str) -> Optional[str]:
        row = self.db.get(StoredValueORM, (self.session_id, key))
        return row.value if row is not None else None

    def set_item(self, key: str, value: str) -> None:
        try:
            row = self.db.get(StoredValueORM, (self.session_id, key))
            if row is None:
                self.db.add(StoredValueORM(session_id=self.session_id, key=key, value=value))
            else:
                row.value = value
                row.updated_at = datetime.utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class MemoryCookieJar:
    """Cookie jar that enforces expiry against an injectable clock."""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self._clock = clock
        self._cookies: Dict[str, Tuple[str, datetime]] = {}

    def get(self, name: str) -> Optional[str]:
        entry = self._cookies.get(name)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._cookies[name]
            return None
        return value

    def set(self, name: str, value: str, days: int) -> None:
        self._cookies[name] = (value, self._clock() + timedelta(days=days))


class ResponseCookieJar:
    """
    Reads cookies sent with the request and writes Set-Cookie headers on the
    response. Values written during the request shadow the incoming ones so a
    later read in the same request sees them.
    """

    def __init__(self, request_cookies: Mapping[str, str], response: Response):
        self._incoming = dict(request_cookies)
        self._written: Dict[str, str] = {}
        self.response = response

    def get(self, name: str) -> Optional[str]:
        if name in self._written:
            return self._written[name]
        return self._incoming.get(name)

    def set(self, name: str, value: str, days: int) -> None:
        max_age = days * SECONDS_PER_DAY
        self.response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            expires=max_age,
            path="/",
            samesite="lax",
        )
        self._written[name] = value

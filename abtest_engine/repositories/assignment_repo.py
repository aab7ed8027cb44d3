# repositories/assignment_repo.py
import json
import logging
from typing import Dict, Optional
from urllib.parse import quote, unquote

from abtest_engine.core.settings import ABTestSettings
from abtest_engine.repositories.storage import CookieJar, KeyValueStore

logger = logging.getLogger(__name__)


class AssignmentRepository:
    """
    Dual-tier persistence of a visitor's test -> variant assignments.

    Reads consult the primary key-value store first and fall back to the
    cookie mirror. Writes go to both. Storage problems of any kind are
    logged and degrade to a cache miss; nothing raises past this class.
    """

    def __init__(
        self,
        settings: ABTestSettings,
        primary: Optional[KeyValueStore] = None,
        secondary: Optional[CookieJar] = None,
    ):
        self.settings = settings
        self.primary = primary
        self.secondary = secondary

    @property
    def available(self) -> bool:
        return self.primary is not None or self.secondary is not None

    def _primary_key(self, test_id: str) -> str:
        return f"{self.settings.storage_key_prefix}{test_id}"

    def get_stored_variant(self, test_id: str) -> Optional[str]:
        """Returns the stored variant id for a test, or None."""
        if self.primary is not None:
            try:
                stored = self.primary.get_item(self._primary_key(test_id))
                if stored:
                    return stored
            except Exception as e:
                logger.warning("Error reading primary AB store for %s: %s", test_id, e)

        if self.secondary is not None:
            stored = self.read_cookie_map().get(test_id)
            if isinstance(stored, str) and stored:
                return stored

        return None

    def store_assignment(self, test_id: str, variant_id: str) -> None:
        """Writes the assignment to both tiers, independently of each other."""
        if self.primary is not None:
            try:
                self.primary.set_item(self._primary_key(test_id), variant_id)
            except Exception as e:
                logger.warning("Error writing primary AB store for %s: %s", test_id, e)

        if self.secondary is not None:
            try:
                variants = self.read_cookie_map()
                variants[test_id] = variant_id
                self.secondary.set(
                    self.settings.cookie_name,
                    encode_cookie_map(variants),
                    self.settings.cookie_expire_days,
                )
            except Exception as e:
                logger.warning("Error writing AB cookie for %s: %s", test_id, e)

    def read_cookie_map(self) -> Dict[str, str]:
        """Decodes the cookie mirror. A missing or corrupt cookie is an empty map."""
        if self.secondary is None:
            return {}
        try:
            raw = self.secondary.get(self.settings.cookie_name)
        except Exception as e:
            logger.warning("Error reading AB cookie: %s", e)
            return {}
        if not raw:
            return {}
        try:
            return decode_cookie_map(raw)
        except Exception as e:
            logger.warning("Discarding undecodable AB cookie: %s", e)
            return {}

    def raw_cookie(self) -> Optional[str]:
        if self.secondary is None:
            return None
        try:
            return self.secondary.get(self.settings.cookie_name)
        except Exception:
            logger.debug("AB cookie unreadable", exc_info=True)
            return None


def encode_cookie_map(variants: Dict[str, str]) -> str:
    return quote(json.dumps(variants, separators=(",", ":")), safe="")


def decode_cookie_map(raw: str) -> Dict[str, str]:
    try:
        decoded = json.loads(unquote(raw))
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning("Discarding malformed AB cookie: %s", e)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("Discarding AB cookie that is not an object: %s", type(decoded).__name__)
        return {}
    return decoded

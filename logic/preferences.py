import logging
from typing import Any, Dict, Mapping

from core.database import DatabaseManager
from core.errors import InvalidInput
from models.types import BOOLEAN_PREFERENCES, DEFAULT_PREFERENCES

logger = logging.getLogger(__name__)


def coerce_preference(key: str, value: Any) -> Any:
    if key in BOOLEAN_PREFERENCES:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        raise InvalidInput(f"'{key}' must be a boolean")
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"'{key}' must be a non-empty string")
    return value.strip()


class PreferenceStore:
    """Notification and privacy preferences, defaulted when no row exists."""

    def __init__(self, database: DatabaseManager):
        self.db = database

    def get(self, user_id: int) -> Dict[str, Any]:
        stored = self.db.get_preferences(user_id)
        if stored is None:
            prefs = dict(DEFAULT_PREFERENCES)
            prefs["last_active"] = None
            return prefs
        return stored

    def update(self, user_id: int, changes: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = sorted(k for k in changes if k not in DEFAULT_PREFERENCES)
        if unknown:
            raise InvalidInput(f"Unknown preference keys: {', '.join(unknown)}")
        # None means "leave as is"
        clean = {k: coerce_preference(k, v) for k, v in changes.items() if v is not None}
        self.db.upsert_preferences(user_id, clean)
        logger.info(f"Preferences saved for user {user_id}: {sorted(clean)}")
        return self.get(user_id)

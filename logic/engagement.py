import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import Conflict, InvalidInput
from logic.policy import AccessPolicy
from models.types import ALL_SAVED_COLLECTION, DEFAULT_COLLECTION

logger = logging.getLogger(__name__)


class EngagementLedger:
    """Likes, made marks and favorites.

    Duplicate detection is left to the store's primary keys; there is no
    check-then-insert anywhere in here.
    """

    def __init__(self, database: DatabaseManager, policy: AccessPolicy):
        self.db = database
        self.policy = policy

    # --- Likes ---
    def like(self, user_id: int, recipe_id: int) -> Dict[str, Any]:
        self.policy.readable_recipe(recipe_id, user_id)
        if not self.db.insert_like(user_id, recipe_id):
            raise Conflict("Already liked")
        return {"liked": True, "likes": self.db.count_likes(recipe_id)}

    def unlike(self, user_id: int, recipe_id: int) -> Dict[str, Any]:
        self.db.delete_like(user_id, recipe_id)
        return {"liked": False, "likes": self.db.count_likes(recipe_id)}

    # --- Made ---
    def mark_made(self, user_id: int, recipe_id: int) -> Dict[str, Any]:
        self.policy.readable_recipe(recipe_id, user_id)
        if not self.db.insert_made(user_id, recipe_id):
            raise Conflict("Already marked as made")
        return {"made": True}

    def unmark_made(self, user_id: int, recipe_id: int) -> Dict[str, Any]:
        self.db.delete_made(user_id, recipe_id)
        return {"made": False}

    # --- Favorites ---
    def favorite(self, user_id: int, recipe_id: int, collection: Optional[str] = None) -> Dict[str, Any]:
        name = (collection or "").strip() or DEFAULT_COLLECTION
        if name == ALL_SAVED_COLLECTION:
            raise InvalidInput(f"'{ALL_SAVED_COLLECTION}' is not a collection you can save into")
        self.policy.readable_recipe(recipe_id, user_id)
        self.db.upsert_favorite(user_id, recipe_id, name)
        return {"favorited": True, "collection": name}

    def unfavorite(self, user_id: int, recipe_id: int) -> Dict[str, Any]:
        self.db.delete_favorite(user_id, recipe_id)
        return {"favorited": False}

    def list_favorites(self, user_id: int, collection: Optional[str] = None) -> List[Dict[str, Any]]:
        name = (collection or "").strip()
        if not name or name == ALL_SAVED_COLLECTION:
            return self.db.list_favorites(user_id)
        return self.db.list_favorites(user_id, name)

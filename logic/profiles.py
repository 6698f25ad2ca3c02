import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import InvalidInput
from logic import visibility
from logic.policy import AccessPolicy
from models.types import ProfileUpdate

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 10
PROFILE_FAVORITES_LIMIT = 20
INTERNAL_FAVORITE_KEYS = ("recipe_owner_id", "recipe_visibility")


class ProfileService:
    """Public profiles, the caller's own profile, and user search."""

    def __init__(self, database: DatabaseManager, policy: AccessPolicy):
        self.db = database
        self.policy = policy

    def get_profile(self, owner_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        owner = self.policy.load_user(owner_id)
        prefs = self.policy.preferences.get(owner_id)
        view = self.policy.profile_view(viewer_id, owner_id, prefs)
        user = owner.model_dump(exclude={"hashed_password"})
        if view.is_private:
            return visibility.build_profile(view, user, prefs)

        stats = {
            "recipes": self.db.count_recipes(owner_id, include_private=view.include_private_recipes),
            "followers": self.db.count_followers(owner_id),
            "following": self.db.count_following(owner_id),
        }
        recipes = self.db.list_user_recipes(owner_id, include_private=view.include_private_recipes)
        favorites = None
        if view.show_favorites:
            favorites = [
                {k: v for k, v in row.items() if k not in INTERNAL_FAVORITE_KEYS}
                for row in self.db.list_favorites_with_collection_flags(owner_id)
                if self.policy.favorite_visible(viewer_id, owner_id, row)
            ][:PROFILE_FAVORITES_LIMIT]
        is_following = (
            viewer_id is not None
            and not view.is_owner
            and self.db.is_following(viewer_id, owner_id)
        )
        return visibility.build_profile(view, user, prefs, stats, recipes, favorites, is_following)

    def own_profile(self, user_id: int) -> Dict[str, Any]:
        user = self.policy.load_user(user_id)
        return user.model_dump(exclude={"hashed_password"})

    def update_own(self, user_id: int, changes: ProfileUpdate) -> Dict[str, Any]:
        current = self.policy.load_user(user_id)
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            raise InvalidInput("No fields to update")
        name = fields.get("name", current.name)
        if name is not None and not name.strip():
            raise InvalidInput("Name cannot be empty")
        self.db.update_profile(
            user_id,
            name.strip() if name else name,
            fields.get("bio", current.bio),
            fields.get("profile_image", current.profile_image),
        )
        logger.info(f"User {user_id} updated profile fields {sorted(fields)}")
        return self.own_profile(user_id)

    def search(self, viewer_id: int, query: Optional[str]) -> List[Dict[str, Any]]:
        q = (query or "").strip()
        if len(q) < MIN_SEARCH_LENGTH:
            return []
        return self.db.search_users(viewer_id, q, SEARCH_LIMIT)

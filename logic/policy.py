import logging
from typing import Any, Dict, Optional

from core.config import Settings, settings as default_settings
from core.database import DatabaseManager
from core.errors import Forbidden, NotFound, PrivateResource, Unauthorized
from logic import visibility
from logic.permissions import Capability, GrantStore
from logic.preferences import PreferenceStore
from models.types import Capabilities, UserInDB

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Single entry point for every read and write authorization decision.

    Loads the facts a decision needs and hands them to the pure functions in
    ``logic.visibility`` and ``logic.permissions``.
    """

    def __init__(self, database: DatabaseManager, config: Optional[Settings] = None):
        self.db = database
        self.settings = config or default_settings
        self.grants = GrantStore(database)
        self.preferences = PreferenceStore(database)

    # --- Recipes ---
    def readable_recipe(self, recipe_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        recipe = self.db.get_recipe(recipe_id)
        if not recipe:
            raise NotFound("Recipe not found")
        owner_id = recipe["user_id"]
        has_grant = (
            viewer_id is not None
            and viewer_id != owner_id
            and recipe["visibility"] != visibility.PUBLIC
            and self.db.get_grant(recipe_id, viewer_id) is not None
        )
        if visibility.can_view_recipe(viewer_id, owner_id, recipe["visibility"], has_grant):
            return recipe
        if viewer_id is None:
            raise Unauthorized("Sign in to view this recipe")
        logger.info(f"User {viewer_id} denied read of private recipe {recipe_id}")
        raise Forbidden("This recipe is private")

    def require(self, recipe_id: int, user_id: Optional[int], capability: Capability) -> int:
        return self.grants.require(recipe_id, user_id, capability)

    def capabilities(self, recipe_id: int, user_id: Optional[int], owner_id: Optional[int] = None) -> Capabilities:
        return self.grants.capabilities(recipe_id, user_id, owner_id)

    # --- Profiles ---
    def load_user(self, user_id: int) -> UserInDB:
        user = self.db.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def profile_view(self, viewer_id: Optional[int], owner_id: int, prefs: Optional[Dict[str, Any]] = None) -> visibility.ProfileView:
        prefs = prefs if prefs is not None else self.preferences.get(owner_id)
        return visibility.profile_view(viewer_id, owner_id, prefs)

    def require_follow_list(self, viewer_id: Optional[int], owner: UserInDB):
        prefs = self.preferences.get(owner.id)
        if not visibility.can_view_follow_list(viewer_id, owner.id, prefs):
            raise PrivateResource("This user's follow lists are private", profile_name=owner.name)

    def favorite_visible(self, viewer_id: Optional[int], owner_id: int, row: Dict[str, Any]) -> bool:
        return visibility.favorite_visible(
            viewer_id,
            owner_id,
            row.get("collection_public"),
            recipe_owner_id=row.get("recipe_owner_id"),
            recipe_visibility=row.get("recipe_visibility") or visibility.PUBLIC,
            uncategorized_public=self.settings.uncategorized_favorites_public,
        )

    def comments_allowed(self, owner_id: int) -> bool:
        return bool(self.preferences.get(owner_id)["allow_comments"])

import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import InvalidInput, NotFound
from logic.permissions import Capability
from logic.policy import AccessPolicy

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "ingredients", "instructions")


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class RecipeService:
    def __init__(self, database: DatabaseManager, policy: AccessPolicy):
        self.db = database
        self.policy = policy

    def create(self, owner_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        missing = [f for f in REQUIRED_FIELDS if _blank(fields.get(f))]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
        data = dict(fields)
        data["title"] = data["title"].strip()
        data["visibility"] = data.get("visibility") or "public"
        recipe_id = self.db.create_recipe(owner_id, data)
        logger.info(f"User {owner_id} created recipe {recipe_id} ({data['visibility']})")
        return self.db.get_recipe(recipe_id)

    def get(self, recipe_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        recipe = self.policy.readable_recipe(recipe_id, viewer_id)
        if viewer_id is not None:
            caps = self.policy.capabilities(recipe_id, viewer_id, owner_id=recipe["user_id"])
            recipe["hasLiked"] = self.db.has_like(viewer_id, recipe_id)
            recipe["hasMade"] = self.db.has_made(viewer_id, recipe_id)
            recipe["isFavorited"] = self.db.get_favorite_collection(viewer_id, recipe_id) is not None
            recipe["canEdit"] = caps.can_edit
            recipe["canDelete"] = caps.can_delete
            recipe["canManageEditors"] = caps.can_manage_editors
        return recipe

    def list_public(self, limit: Optional[int] = 50) -> List[Dict[str, Any]]:
        return self.db.list_public_recipes(limit)

    def list_own(self, owner_id: int) -> List[Dict[str, Any]]:
        return self.db.list_user_recipes(owner_id, include_private=True, limit=None)

    def update(self, recipe_id: int, actor_id: Optional[int], changes: Dict[str, Any]) -> Dict[str, Any]:
        self.policy.require(recipe_id, actor_id, Capability.EDIT)
        for f in REQUIRED_FIELDS:
            if f in changes and _blank(changes[f]):
                raise InvalidInput(f"'{f}' cannot be empty")
        # Ownership is immutable
        changes = {k: v for k, v in changes.items() if k != "user_id"}
        if "visibility" in changes and changes["visibility"] is None:
            del changes["visibility"]
        if not changes:
            raise InvalidInput("No fields to update")
        if not self.db.update_recipe(recipe_id, changes):
            raise NotFound("Recipe not found")
        logger.info(f"User {actor_id} updated recipe {recipe_id}: {sorted(changes)}")
        return self.db.get_recipe(recipe_id)

    def delete(self, recipe_id: int, actor_id: Optional[int]):
        self.policy.require(recipe_id, actor_id, Capability.DELETE)
        self.db.delete_recipe(recipe_id)
        logger.info(f"User {actor_id} deleted recipe {recipe_id}")

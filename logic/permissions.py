"""Per-recipe capability grants.

The owner implicitly holds every capability and never has a grant row. Any
other user needs a row in ``recipe_editors`` with the requested bit set.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from core.database import DatabaseManager
from core.errors import Forbidden, InvalidInput, NotFound, Unauthorized
from models.types import Capabilities, GrantRequest

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    EDIT = "can_edit"
    DELETE = "can_delete"
    MANAGE_EDITORS = "can_manage_editors"


def has_capability(requester_id: Optional[int], owner_id: int, grant: Optional[Capabilities], capability: Capability) -> bool:
    if requester_id is None:
        return False
    if requester_id == owner_id:
        return True
    if grant is None:
        return False
    return bool(getattr(grant, capability.value))


def to_flag(value: Any, name: str) -> bool:
    """Accept bool or 0/1 and compare numerically."""
    if isinstance(value, bool):
        return value
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"'{name}' must be 0 or 1")
    if number not in (0, 1):
        raise InvalidInput(f"'{name}' must be 0 or 1")
    return number == 1


def capabilities_from_request(req: GrantRequest) -> Capabilities:
    return Capabilities(
        can_edit=to_flag(req.can_edit, "can_edit"),
        can_delete=to_flag(req.can_delete, "can_delete"),
        can_manage_editors=to_flag(req.can_manage_editors, "can_manage_editors"),
    )


class GrantStore:
    def __init__(self, database: DatabaseManager):
        self.db = database

    def owner_of(self, recipe_id: int) -> int:
        owner_id = self.db.get_recipe_owner_id(recipe_id)
        if owner_id is None:
            raise NotFound("Recipe not found")
        return owner_id

    def capabilities(self, recipe_id: int, user_id: Optional[int], owner_id: Optional[int] = None) -> Capabilities:
        if owner_id is None:
            owner_id = self.owner_of(recipe_id)
        if user_id is None:
            return Capabilities()
        if user_id == owner_id:
            return Capabilities.full()
        return self.db.get_grant(recipe_id, user_id) or Capabilities()

    def check(self, recipe_id: int, user_id: Optional[int], capability: Capability, owner_id: Optional[int] = None) -> bool:
        if owner_id is None:
            owner_id = self.owner_of(recipe_id)
        grant = None if user_id in (None, owner_id) else self.db.get_grant(recipe_id, user_id)
        return has_capability(user_id, owner_id, grant, capability)

    def require(self, recipe_id: int, user_id: Optional[int], capability: Capability) -> int:
        """Raise unless ``user_id`` holds ``capability``; returns the owner id."""
        owner_id = self.owner_of(recipe_id)
        if user_id is None:
            raise Unauthorized()
        if not self.check(recipe_id, user_id, capability, owner_id):
            logger.info(f"Denied {capability.value} on recipe {recipe_id} for user {user_id}")
            raise Forbidden(f"You do not have permission to {capability.value.replace('can_', '').replace('_', ' ')} this recipe")
        return owner_id

    def grant(self, recipe_id: int, granter_id: int, grantee_id: int, caps: Capabilities):
        owner_id = self.require(recipe_id, granter_id, Capability.MANAGE_EDITORS)
        if grantee_id == owner_id:
            raise InvalidInput("The recipe owner cannot be added as an editor")
        if not self.db.user_exists(grantee_id):
            raise NotFound("User not found")
        self.db.upsert_grant(recipe_id, grantee_id, caps, added_by=granter_id)
        logger.info(f"User {granter_id} granted {caps.as_flags()} on recipe {recipe_id} to user {grantee_id}")

    def update(self, recipe_id: int, acting_id: int, grantee_id: int, caps: Capabilities):
        self.require(recipe_id, acting_id, Capability.MANAGE_EDITORS)
        if not self.db.update_grant(recipe_id, grantee_id, caps):
            raise NotFound("Editor not found")
        logger.info(f"User {acting_id} changed grant of user {grantee_id} on recipe {recipe_id} to {caps.as_flags()}")

    def revoke(self, recipe_id: int, acting_id: Optional[int], target_id: int):
        if acting_id is None:
            raise Unauthorized()
        if acting_id == target_id:
            # Editors may always remove themselves
            self.owner_of(recipe_id)
        else:
            self.require(recipe_id, acting_id, Capability.MANAGE_EDITORS)
        removed = self.db.delete_grant(recipe_id, target_id)
        if removed:
            logger.info(f"User {acting_id} revoked grant of user {target_id} on recipe {recipe_id}")

    def list(self, recipe_id: int, requester_id: Optional[int]) -> Dict[str, Any]:
        owner_id = self.require(recipe_id, requester_id, Capability.MANAGE_EDITORS)
        return {
            "editors": [g.as_payload() for g in self.db.list_grants(recipe_id)],
            "isOwner": requester_id == owner_id,
        }

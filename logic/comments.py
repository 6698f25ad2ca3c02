import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import Forbidden, InvalidInput, NotFound, Unauthorized
from logic.policy import AccessPolicy

logger = logging.getLogger(__name__)


def _content(value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInput("Content required")
    return cleaned


class CommentService:
    def __init__(self, database: DatabaseManager, policy: AccessPolicy):
        self.db = database
        self.policy = policy

    def add(self, recipe_id: int, user_id: Optional[int], content: Optional[str]) -> Dict[str, Any]:
        if user_id is None:
            raise Unauthorized()
        text = _content(content)
        recipe = self.policy.readable_recipe(recipe_id, user_id)
        if not self.policy.comments_allowed(recipe["user_id"]):
            raise Forbidden("Comments are disabled for this recipe")
        comment_id = self.db.create_comment(recipe_id, user_id, text)
        return self.db.get_comment(comment_id)

    def list(self, recipe_id: int, viewer_id: Optional[int]) -> List[Dict[str, Any]]:
        self.policy.readable_recipe(recipe_id, viewer_id)
        return self.db.list_comments(recipe_id)

    def _existing(self, recipe_id: int, comment_id: Optional[int]) -> Dict[str, Any]:
        if not comment_id:
            raise InvalidInput("Comment ID required")
        comment = self.db.get_comment(comment_id)
        if not comment or comment["recipe_id"] != recipe_id:
            raise NotFound("Comment not found")
        return comment

    def edit(self, recipe_id: int, comment_id: Optional[int], user_id: Optional[int], content: Optional[str]) -> Dict[str, Any]:
        if user_id is None:
            raise Unauthorized()
        text = _content(content)
        comment = self._existing(recipe_id, comment_id)
        if comment["user_id"] != user_id:
            raise Forbidden("You can only edit your own comments")
        self.db.update_comment(comment_id, recipe_id, user_id, text)
        return self.db.get_comment(comment_id)

    def delete(self, recipe_id: int, comment_id: Optional[int], user_id: Optional[int]):
        if user_id is None:
            raise Unauthorized()
        comment = self._existing(recipe_id, comment_id)
        if comment["user_id"] != user_id and self.db.get_recipe_owner_id(recipe_id) != user_id:
            raise Forbidden("You can only delete your own comments")
        self.db.delete_comment(comment_id, recipe_id)
        logger.info(f"User {user_id} deleted comment {comment_id} on recipe {recipe_id}")

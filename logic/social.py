import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import InvalidInput, NotFound, Unauthorized
from logic.policy import AccessPolicy

logger = logging.getLogger(__name__)


class SocialGraph:
    def __init__(self, database: DatabaseManager, policy: AccessPolicy):
        self.db = database
        self.policy = policy

    def follow(self, follower_id: Optional[int], followed_id: int) -> Dict[str, Any]:
        if follower_id is None:
            raise Unauthorized()
        if follower_id == followed_id:
            raise InvalidInput("Cannot follow yourself")
        if not self.db.user_exists(followed_id):
            raise NotFound("User not found")
        created = self.db.insert_follow(follower_id, followed_id)
        if created:
            logger.info(f"User {follower_id} followed user {followed_id}")
        return {"following": True, "already_following": not created}

    def unfollow(self, follower_id: Optional[int], followed_id: int) -> Dict[str, Any]:
        if follower_id is None:
            raise Unauthorized()
        if follower_id == followed_id:
            raise InvalidInput("Cannot unfollow yourself")
        self.db.delete_follow(follower_id, followed_id)
        return {"following": False}

    def _list(self, owner_id: int, viewer_id: Optional[int], direction: str) -> Dict[str, Any]:
        owner = self.policy.load_user(owner_id)
        self.policy.require_follow_list(viewer_id, owner)
        followed = self.db.followed_ids(viewer_id) if viewer_id is not None else set()
        users = self.db.list_follow_neighbours(owner_id, direction)
        for u in users:
            u["is_following"] = u["id"] in followed
        return {"users": users, "profileName": owner.name}

    def followers(self, owner_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        return self._list(owner_id, viewer_id, "followers")

    def following(self, owner_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        return self._list(owner_id, viewer_id, "following")

    def feed(self, viewer_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        return self.db.list_feed_recipes(viewer_id, limit)

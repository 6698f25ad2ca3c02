"""Pure visibility decisions.

Nothing in here touches the database; every input is passed explicitly so the
rules can be tested without a store. ``prefs`` is always a fully merged
preferences mapping (defaults already applied).
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

PUBLIC = "public"
PRIVATE = "private"


def is_owner(viewer_id: Optional[int], owner_id: Optional[int]) -> bool:
    return viewer_id is not None and owner_id is not None and viewer_id == owner_id


def can_view_recipe(viewer_id: Optional[int], owner_id: int, visibility: str, has_grant: bool = False) -> bool:
    if visibility == PUBLIC:
        return True
    if is_owner(viewer_id, owner_id):
        return True
    return viewer_id is not None and has_grant


@dataclass(frozen=True)
class ProfileView:
    """Which parts of a profile a given viewer may see."""

    is_owner: bool
    is_private: bool
    show_email: bool
    show_activity: bool
    show_counts: bool
    show_favorites: bool
    include_private_recipes: bool


def profile_view(viewer_id: Optional[int], owner_id: int, prefs: Mapping[str, Any]) -> ProfileView:
    if is_owner(viewer_id, owner_id):
        return ProfileView(
            is_owner=True,
            is_private=False,
            show_email=True,
            show_activity=True,
            show_counts=True,
            show_favorites=True,
            include_private_recipes=True,
        )
    if not prefs["profile_public"]:
        return ProfileView(False, True, False, False, False, False, False)
    return ProfileView(
        is_owner=False,
        is_private=False,
        show_email=bool(prefs["show_email"]),
        show_activity=bool(prefs["show_activity"]),
        show_counts=bool(prefs["show_followers"]),
        show_favorites=bool(prefs["show_favorites"]),
        include_private_recipes=False,
    )


def can_view_follow_list(viewer_id: Optional[int], owner_id: int, prefs: Mapping[str, Any]) -> bool:
    return is_owner(viewer_id, owner_id) or bool(prefs["show_followers_list"])


def favorite_visible(
    viewer_id: Optional[int],
    owner_id: int,
    collection_public: Optional[bool],
    recipe_owner_id: Optional[int] = None,
    recipe_visibility: str = PUBLIC,
    uncategorized_public: bool = True,
) -> bool:
    """Whether one of ``owner_id``'s favorites shows up for ``viewer_id``.

    ``collection_public`` is None when the favorite's collection has no row.
    """
    if is_owner(viewer_id, owner_id):
        return True
    if recipe_visibility != PUBLIC and not is_owner(viewer_id, recipe_owner_id):
        return False
    if collection_public is None:
        return uncategorized_public
    return collection_public


def build_profile(
    view: ProfileView,
    user: Mapping[str, Any],
    prefs: Mapping[str, Any],
    stats: Optional[Dict[str, int]] = None,
    recipes: Optional[list] = None,
    favorites: Optional[list] = None,
    is_following: bool = False,
) -> Dict[str, Any]:
    """Assemble the profile payload; hidden fields are omitted or null, never guessed."""
    summary = {"id": user["id"], "name": user.get("name"), "profile_image": user.get("profile_image")}
    if view.is_private:
        # Only the summary; no bio, email, stats, recipes or favorites keys
        return {"user": summary, "isPrivate": True}

    profile_user = dict(summary)
    profile_user["bio"] = user.get("bio")
    profile_user["created_at"] = user.get("created_at")
    profile_user["email"] = user.get("email") if view.show_email else None
    profile_user["last_active"] = prefs.get("last_active") if view.show_activity else None

    stats = stats or {}
    payload = {
        "user": profile_user,
        "stats": {
            "recipes": stats.get("recipes", 0),
            "followers": stats.get("followers") if view.show_counts else None,
            "following": stats.get("following") if view.show_counts else None,
        },
        "recipes": recipes or [],
        "favorites": (favorites or []) if view.show_favorites else None,
        "isFollowing": bool(is_following),
        "isOwnProfile": view.is_owner,
        "isPrivate": False,
    }
    if view.is_owner:
        payload["settings"] = {k: v for k, v in prefs.items() if k != "last_active"}
    return payload

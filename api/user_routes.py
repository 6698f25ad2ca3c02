import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from api.deps import get_preferences, get_profiles, get_social
from core.auth import get_current_active_user, require_user
from core.errors import CookFeedError, InvalidInput
from core.limiter import limiter
from logic.preferences import PreferenceStore
from logic.profiles import ProfileService
from logic.social import SocialGraph
from models.types import ProfileUpdate, User

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Own profile ---
@router.get("/user/profile", tags=["Users"])
@limiter.limit("120/minute")
async def get_own_profile(request: Request, current_user: User = Depends(require_user), profiles: ProfileService = Depends(get_profiles)):
    return {"ok": True, "data": profiles.own_profile(current_user.id)}


@router.put("/user/profile", tags=["Users"])
@limiter.limit("30/minute")
async def update_own_profile(
    request: Request,
    payload: ProfileUpdate,
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    try:
        return {"ok": True, "data": profiles.update_own(current_user.id, payload)}
    except CookFeedError:
        raise
    except Exception as e:
        logger.error(f"[PROFILE] update failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Could not update profile")


# --- Preferences ---
@router.get("/user/preferences", tags=["Users"])
@limiter.limit("120/minute")
async def read_preferences(request: Request, current_user: User = Depends(require_user), store: PreferenceStore = Depends(get_preferences)):
    return {"ok": True, "data": store.get(current_user.id)}


@router.post("/user/preferences", tags=["Users"])
@limiter.limit("30/minute")
async def save_preferences(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    store: PreferenceStore = Depends(get_preferences),
):
    if not isinstance(payload, dict):
        raise InvalidInput("Expected an object of preference values")
    return {"ok": True, "data": store.update(current_user.id, payload)}


# --- Other users ---
@router.get("/users/search", tags=["Users"])
@limiter.limit("60/minute")
async def search_users(
    request: Request,
    q: Optional[str] = None,
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    return {"ok": True, "data": profiles.search(current_user.id, q)}


@router.get("/users/{user_id}", tags=["Users"])
@limiter.limit("120/minute")
async def get_user_profile(
    user_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    profiles: ProfileService = Depends(get_profiles),
):
    viewer_id = current_user.id if current_user else None
    return {"ok": True, "data": profiles.get_profile(user_id, viewer_id)}


@router.post("/users/{user_id}/follow", tags=["Users"])
@limiter.limit("120/minute")
async def follow_user(
    user_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    social: SocialGraph = Depends(get_social),
):
    follower_id = current_user.id if current_user else None
    result = social.follow(follower_id, user_id)
    if result["already_following"]:
        result["message"] = "Already following"
    return {"ok": True, "data": result}


@router.delete("/users/{user_id}/follow", tags=["Users"])
@limiter.limit("120/minute")
async def unfollow_user(
    user_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    social: SocialGraph = Depends(get_social),
):
    follower_id = current_user.id if current_user else None
    return {"ok": True, "data": social.unfollow(follower_id, user_id)}


@router.get("/users/{user_id}/followers", tags=["Users"])
@limiter.limit("60/minute")
async def list_followers(
    user_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    social: SocialGraph = Depends(get_social),
):
    viewer_id = current_user.id if current_user else None
    return {"ok": True, "data": social.followers(user_id, viewer_id)}


@router.get("/users/{user_id}/following", tags=["Users"])
@limiter.limit("60/minute")
async def list_following(
    user_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    social: SocialGraph = Depends(get_social),
):
    viewer_id = current_user.id if current_user else None
    return {"ok": True, "data": social.following(user_id, viewer_id)}

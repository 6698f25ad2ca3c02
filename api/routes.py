import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.deps import get_comments, get_ledger, get_policy, get_recipes, get_social
from core.auth import get_current_active_user, require_user
from core.errors import CookFeedError, InvalidInput, Unauthorized
from core.limiter import limiter
from logic.comments import CommentService
from logic.engagement import EngagementLedger
from logic.permissions import capabilities_from_request
from logic.policy import AccessPolicy
from logic.recipes import RecipeService
from logic.social import SocialGraph
from models.types import CommentRequest, FavoriteRequest, GrantRequest, RecipeCreate, RecipeUpdate, User

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Recipes ---
@router.get("/recipes", tags=["Recipes"])
@limiter.limit("120/minute")
async def list_recipes(request: Request, limit: int = Query(50, ge=1, le=100), recipes: RecipeService = Depends(get_recipes)):
    try:
        return {"ok": True, "data": recipes.list_public(limit)}
    except Exception as e:
        logger.error(f"Failed to list recipes: {e}")
        raise HTTPException(status_code=500, detail="Could not fetch recipes.")


@router.get("/user/recipes", tags=["Recipes"])
@limiter.limit("120/minute")
async def list_my_recipes(request: Request, current_user: User = Depends(require_user), recipes: RecipeService = Depends(get_recipes)):
    return {"ok": True, "data": recipes.list_own(current_user.id)}


@router.post("/recipes", tags=["Recipes"])
@limiter.limit("30/minute")
async def create_recipe(
    request: Request,
    payload: RecipeCreate,
    current_user: Optional[User] = Depends(get_current_active_user),
    recipes: RecipeService = Depends(get_recipes),
):
    if not current_user:
        raise Unauthorized()
    try:
        recipe = recipes.create(current_user.id, payload.model_dump())
        return {"ok": True, "data": recipe}
    except CookFeedError:
        raise
    except Exception as e:
        logger.error(f"Failed to create recipe for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Could not save recipe.")


@router.get("/recipes/{recipe_id}", tags=["Recipes"])
@limiter.limit("120/minute")
async def get_recipe(
    recipe_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    recipes: RecipeService = Depends(get_recipes),
):
    viewer_id = current_user.id if current_user else None
    return {"ok": True, "data": recipes.get(recipe_id, viewer_id)}


@router.put("/recipes/{recipe_id}", tags=["Recipes"])
@limiter.limit("30/minute")
async def update_recipe(
    recipe_id: int,
    request: Request,
    payload: RecipeUpdate,
    current_user: Optional[User] = Depends(get_current_active_user),
    recipes: RecipeService = Depends(get_recipes),
):
    if not current_user:
        raise Unauthorized()
    try:
        updated = recipes.update(recipe_id, current_user.id, payload.model_dump(exclude_unset=True))
        return {"ok": True, "data": updated}
    except CookFeedError:
        raise
    except Exception as e:
        logger.error(f"Failed to update recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not update recipe")


@router.delete("/recipes/{recipe_id}", tags=["Recipes"])
@limiter.limit("30/minute")
async def delete_recipe(
    recipe_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    recipes: RecipeService = Depends(get_recipes),
):
    if not current_user:
        raise Unauthorized()
    recipes.delete(recipe_id, current_user.id)
    return {"ok": True, "data": {"deleted": True}}


# --- Likes / made / favorites ---
@router.post("/recipes/{recipe_id}/like", tags=["Engagement"])
@limiter.limit("120/minute")
async def like_recipe(recipe_id: int, request: Request, current_user: User = Depends(require_user), ledger: EngagementLedger = Depends(get_ledger)):
    return {"ok": True, "data": ledger.like(current_user.id, recipe_id)}


@router.delete("/recipes/{recipe_id}/like", tags=["Engagement"])
@limiter.limit("120/minute")
async def unlike_recipe(recipe_id: int, request: Request, current_user: User = Depends(require_user), ledger: EngagementLedger = Depends(get_ledger)):
    return {"ok": True, "data": ledger.unlike(current_user.id, recipe_id)}


@router.post("/recipes/{recipe_id}/made", tags=["Engagement"])
@limiter.limit("120/minute")
async def mark_made(recipe_id: int, request: Request, current_user: User = Depends(require_user), ledger: EngagementLedger = Depends(get_ledger)):
    return {"ok": True, "data": ledger.mark_made(current_user.id, recipe_id)}


@router.delete("/recipes/{recipe_id}/made", tags=["Engagement"])
@limiter.limit("120/minute")
async def unmark_made(recipe_id: int, request: Request, current_user: User = Depends(require_user), ledger: EngagementLedger = Depends(get_ledger)):
    return {"ok": True, "data": ledger.unmark_made(current_user.id, recipe_id)}


@router.post("/recipes/{recipe_id}/favorite", tags=["Engagement"])
@limiter.limit("120/minute")
async def favorite_recipe(
    recipe_id: int,
    request: Request,
    payload: Optional[FavoriteRequest] = None,
    current_user: User = Depends(require_user),
    ledger: EngagementLedger = Depends(get_ledger),
):
    collection = payload.collection if payload else None
    return {"ok": True, "data": ledger.favorite(current_user.id, recipe_id, collection)}


@router.delete("/recipes/{recipe_id}/favorite", tags=["Engagement"])
@limiter.limit("120/minute")
async def unfavorite_recipe(recipe_id: int, request: Request, current_user: User = Depends(require_user), ledger: EngagementLedger = Depends(get_ledger)):
    return {"ok": True, "data": ledger.unfavorite(current_user.id, recipe_id)}


@router.get("/favorites", tags=["Engagement"])
@limiter.limit("120/minute")
async def list_favorites(
    request: Request,
    collection: Optional[str] = None,
    current_user: User = Depends(require_user),
    ledger: EngagementLedger = Depends(get_ledger),
):
    return {"ok": True, "data": ledger.list_favorites(current_user.id, collection)}


# --- Editors ---
@router.get("/recipes/{recipe_id}/editors", tags=["Editors"])
@limiter.limit("60/minute")
async def list_editors(recipe_id: int, request: Request, current_user: User = Depends(require_user), policy: AccessPolicy = Depends(get_policy)):
    return {"ok": True, "data": policy.grants.list(recipe_id, current_user.id)}


@router.post("/recipes/{recipe_id}/editors", tags=["Editors"])
@limiter.limit("30/minute")
async def add_editor(
    recipe_id: int,
    request: Request,
    payload: GrantRequest,
    current_user: User = Depends(require_user),
    policy: AccessPolicy = Depends(get_policy),
):
    caps = capabilities_from_request(payload)
    policy.grants.grant(recipe_id, current_user.id, payload.user_id, caps)
    return {"ok": True, "data": {"user_id": payload.user_id, **caps.as_flags()}}


@router.put("/recipes/{recipe_id}/editors", tags=["Editors"])
@limiter.limit("30/minute")
async def update_editor(
    recipe_id: int,
    request: Request,
    payload: GrantRequest,
    current_user: User = Depends(require_user),
    policy: AccessPolicy = Depends(get_policy),
):
    caps = capabilities_from_request(payload)
    policy.grants.update(recipe_id, current_user.id, payload.user_id, caps)
    return {"ok": True, "data": {"user_id": payload.user_id, **caps.as_flags()}}


@router.delete("/recipes/{recipe_id}/editors", tags=["Editors"])
@limiter.limit("30/minute")
async def remove_editor(
    recipe_id: int,
    request: Request,
    user_id: Optional[int] = None,
    current_user: User = Depends(require_user),
    policy: AccessPolicy = Depends(get_policy),
):
    if user_id is None:
        raise InvalidInput("user_id required")
    policy.grants.revoke(recipe_id, current_user.id, user_id)
    return {"ok": True, "data": {"removed": True}}


# --- Comments ---
@router.get("/recipes/{recipe_id}/comments", tags=["Comments"])
@limiter.limit("120/minute")
async def list_comments(
    recipe_id: int,
    request: Request,
    current_user: Optional[User] = Depends(get_current_active_user),
    comments: CommentService = Depends(get_comments),
):
    viewer_id = current_user.id if current_user else None
    return {"ok": True, "data": comments.list(recipe_id, viewer_id)}


@router.post("/recipes/{recipe_id}/comments", tags=["Comments"])
@limiter.limit("30/minute")
async def add_comment(
    recipe_id: int,
    request: Request,
    payload: CommentRequest,
    current_user: User = Depends(require_user),
    comments: CommentService = Depends(get_comments),
):
    return {"ok": True, "data": comments.add(recipe_id, current_user.id, payload.content)}


@router.put("/recipes/{recipe_id}/comments", tags=["Comments"])
@limiter.limit("30/minute")
async def edit_comment(
    recipe_id: int,
    request: Request,
    payload: CommentRequest,
    comment_id: Optional[int] = None,
    current_user: User = Depends(require_user),
    comments: CommentService = Depends(get_comments),
):
    return {"ok": True, "data": comments.edit(recipe_id, comment_id, current_user.id, payload.content)}


@router.delete("/recipes/{recipe_id}/comments", tags=["Comments"])
@limiter.limit("30/minute")
async def delete_comment(
    recipe_id: int,
    request: Request,
    comment_id: Optional[int] = None,
    current_user: User = Depends(require_user),
    comments: CommentService = Depends(get_comments),
):
    comments.delete(recipe_id, comment_id, current_user.id)
    return {"ok": True, "data": {"deleted": True}}


# --- Feed ---
@router.get("/feed", tags=["Feed"])
@limiter.limit("60/minute")
async def get_feed(request: Request, limit: int = Query(50, ge=1, le=100), current_user: User = Depends(require_user), social: SocialGraph = Depends(get_social)):
    return {"ok": True, "data": social.feed(current_user.id, limit)}

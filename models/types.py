from pydantic import BaseModel, Field, EmailStr
from typing import Any, Dict, List, Literal, Optional, Union
from datetime import datetime

# Privacy and notification defaults for users without a stored preferences row.
# Also used for the column defaults of user_preferences and the row inserted
# at registration, so the three never drift apart.
DEFAULT_PREFERENCES: Dict[str, Any] = {
    "weekly_digest": True,
    "push_enabled": True,
    "notify_new_recipes": True,
    "notify_likes": True,
    "notify_comments": True,
    "notify_followers": True,
    "profile_public": True,
    "show_activity": False,
    "allow_comments": True,
    "show_favorites": False,
    "show_followers": True,
    "show_followers_list": False,
    "show_email": False,
    "searchable": True,
    "color_theme": "default",
}

BOOLEAN_PREFERENCES = tuple(k for k, v in DEFAULT_PREFERENCES.items() if isinstance(v, bool))

DEFAULT_COLLECTION = "Favorites"
ALL_SAVED_COLLECTION = "All Saved"

RecipeVisibility = Literal["public", "private"]
CapabilityFlag = Union[bool, int]


# --- Users ---
class UserBase(BaseModel):
    email: EmailStr = Field(..., description="User's email address")
    name: Optional[str] = Field(None, description="Display name")


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, description="User's password (minimum 8 characters)")


class UserLogin(BaseModel):
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")


class User(UserBase):
    id: int = Field(..., description="Unique user ID")
    bio: Optional[str] = None
    profile_image: Optional[str] = Field(None, description="Opaque image URL or data string")
    created_at: Optional[datetime] = Field(None, description="When the account was created")


class UserInDB(User):
    hashed_password: Optional[str] = Field(None, description="Hashed password stored in database")


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None


# --- Recipes ---
class RecipeCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    cook_time: Optional[str] = None
    servings: Optional[str] = None
    difficulty: Optional[str] = None
    visibility: RecipeVisibility = "public"
    tags: List[str] = Field(default_factory=list)
    ingredients: Optional[Any] = Field(None, description="Free text or a list of ingredient lines")
    instructions: Optional[Any] = Field(None, description="Free text or a list of steps")


class RecipeUpdate(RecipeCreate):
    visibility: Optional[RecipeVisibility] = None
    tags: Optional[List[str]] = None


# --- Collaboration ---
class GrantRequest(BaseModel):
    user_id: int
    can_edit: CapabilityFlag = 1
    can_delete: CapabilityFlag = 0
    can_manage_editors: CapabilityFlag = 0


class Capabilities(BaseModel):
    can_edit: bool = False
    can_delete: bool = False
    can_manage_editors: bool = False

    @classmethod
    def full(cls) -> "Capabilities":
        return cls(can_edit=True, can_delete=True, can_manage_editors=True)

    def as_flags(self) -> Dict[str, int]:
        return {
            "can_edit": int(self.can_edit),
            "can_delete": int(self.can_delete),
            "can_manage_editors": int(self.can_manage_editors),
        }


class Grant(Capabilities):
    recipe_id: int
    user_id: int
    added_by: int
    name: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(exclude={"can_edit", "can_delete", "can_manage_editors"})
        payload.update(self.as_flags())
        return payload


# --- Engagement / collections ---
class FavoriteRequest(BaseModel):
    collection: Optional[str] = Field(None, description="Target collection, defaults to Favorites")


class CollectionCreate(BaseModel):
    name: Optional[str] = None
    is_public: bool = True


class CollectionUpdate(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    is_public: Optional[bool] = None


class Collection(BaseModel):
    id: Optional[int] = Field(None, description="None for synthetic collections")
    name: str
    is_public: bool = True
    recipe_count: int = 0
    created_at: Optional[str] = None
    synthetic: bool = False


# --- Comments ---
class CommentRequest(BaseModel):
    content: Optional[str] = None

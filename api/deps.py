from fastapi import Depends

from core.database import DatabaseManager, get_db
from logic.collections import CollectionCatalog
from logic.comments import CommentService
from logic.engagement import EngagementLedger
from logic.policy import AccessPolicy
from logic.preferences import PreferenceStore
from logic.profiles import ProfileService
from logic.recipes import RecipeService
from logic.social import SocialGraph


def get_policy(database: DatabaseManager = Depends(get_db)) -> AccessPolicy:
    return AccessPolicy(database)


def get_recipes(database: DatabaseManager = Depends(get_db), policy: AccessPolicy = Depends(get_policy)) -> RecipeService:
    return RecipeService(database, policy)


def get_ledger(database: DatabaseManager = Depends(get_db), policy: AccessPolicy = Depends(get_policy)) -> EngagementLedger:
    return EngagementLedger(database, policy)


def get_comments(database: DatabaseManager = Depends(get_db), policy: AccessPolicy = Depends(get_policy)) -> CommentService:
    return CommentService(database, policy)


def get_social(database: DatabaseManager = Depends(get_db), policy: AccessPolicy = Depends(get_policy)) -> SocialGraph:
    return SocialGraph(database, policy)


def get_profiles(database: DatabaseManager = Depends(get_db), policy: AccessPolicy = Depends(get_policy)) -> ProfileService:
    return ProfileService(database, policy)


def get_catalog(database: DatabaseManager = Depends(get_db)) -> CollectionCatalog:
    return CollectionCatalog(database)


def get_preferences(policy: AccessPolicy = Depends(get_policy)) -> PreferenceStore:
    return policy.preferences

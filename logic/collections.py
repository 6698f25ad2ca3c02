import logging
from typing import Any, Dict, List, Optional

from core.database import DatabaseManager
from core.errors import Conflict, InvalidInput, NotFound
from models.types import ALL_SAVED_COLLECTION, DEFAULT_COLLECTION, Collection

logger = logging.getLogger(__name__)


def clean_collection_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInput("Collection name required")
    if cleaned == ALL_SAVED_COLLECTION:
        raise InvalidInput(f"'{ALL_SAVED_COLLECTION}' is a reserved name")
    return cleaned


class CollectionCatalog:
    """A user's named favorite groupings.

    ``"All Saved"`` is never stored and ``"Favorites"`` always exists, with or
    without a row of its own.
    """

    def __init__(self, database: DatabaseManager):
        self.db = database

    def create(self, owner_id: int, name: Optional[str], is_public: bool = True) -> Dict[str, Any]:
        cleaned = clean_collection_name(name)
        collection_id = self.db.create_collection(owner_id, cleaned, bool(is_public))
        if collection_id is None:
            raise Conflict(f"A collection named '{cleaned}' already exists")
        logger.info(f"User {owner_id} created collection '{cleaned}' (public={bool(is_public)})")
        return Collection(
            id=collection_id,
            name=cleaned,
            is_public=bool(is_public),
            recipe_count=self.db.count_favorites(owner_id, cleaned),
        ).model_dump()

    def update(self, owner_id: int, collection_id: Optional[int], name: Optional[str] = None, is_public: Optional[bool] = None):
        if not collection_id:
            raise InvalidInput("Collection ID required")
        if name is None and is_public is None:
            raise InvalidInput("No fields to update")
        current = self.db.get_collection(collection_id, owner_id)
        if not current:
            raise NotFound("Collection not found")
        new_name = None
        if name is not None:
            new_name = clean_collection_name(name)
            if new_name != current["name"]:
                if current["name"] == DEFAULT_COLLECTION:
                    raise InvalidInput(f"'{DEFAULT_COLLECTION}' cannot be renamed")
                if new_name == DEFAULT_COLLECTION:
                    raise InvalidInput(f"'{DEFAULT_COLLECTION}' is a reserved name")
        self.db.update_collection(collection_id, owner_id, name=new_name, is_public=is_public)

    def delete(self, owner_id: int, collection_id: Optional[int]):
        if not collection_id:
            raise InvalidInput("Collection ID required")
        current = self.db.get_collection(collection_id, owner_id)
        if not current:
            raise NotFound("Collection not found")
        if current["name"] == DEFAULT_COLLECTION:
            raise InvalidInput(f"'{DEFAULT_COLLECTION}' cannot be deleted")
        self.db.delete_collection(collection_id, owner_id)
        logger.info(f"User {owner_id} deleted collection '{current['name']}'")

    def list(self, owner_id: int) -> List[Dict[str, Any]]:
        rows = self.db.list_collections(owner_id)
        entries = [
            Collection(name=ALL_SAVED_COLLECTION, is_public=False, recipe_count=self.db.count_favorites(owner_id), synthetic=True)
        ]
        if not any(r["name"] == DEFAULT_COLLECTION for r in rows):
            entries.append(Collection(
                name=DEFAULT_COLLECTION,
                is_public=True,
                recipe_count=self.db.count_favorites(owner_id, DEFAULT_COLLECTION),
                synthetic=True,
            ))
        for r in rows:
            entries.append(Collection(
                id=r["id"],
                name=r["name"],
                is_public=r["is_public"],
                recipe_count=r["recipe_count"],
                created_at=r["created_at"],
            ))
        return [e.model_dump() for e in entries]

import pytest

from conftest import make_recipe, make_user
from core.errors import Conflict, InvalidInput, NotFound
from logic.collections import CollectionCatalog


@pytest.fixture
def catalog(database):
    return CollectionCatalog(database)


@pytest.fixture
def users(database):
    return make_user(database, "u1@example.com"), make_user(database, "u2@example.com")


def test_create_and_duplicate(catalog, users):
    u1, u2 = users
    created = catalog.create(u1, "  Desserts ")
    assert created["name"] == "Desserts"
    assert created["recipe_count"] == 0
    with pytest.raises(Conflict):
        catalog.create(u1, "Desserts")
    # Same name for another owner is fine
    catalog.create(u2, "Desserts")


@pytest.mark.parametrize("name", ["", "   ", None, "All Saved"])
def test_create_rejects_blank_and_reserved(catalog, users, name):
    with pytest.raises(InvalidInput):
        catalog.create(users[0], name)


def test_delete_reassigns_favorites_to_default(catalog, users, database):
    u1, _ = users
    recipe = make_recipe(database, users[1])
    created = catalog.create(u1, "Desserts")
    database.upsert_favorite(u1, recipe, "Desserts")
    catalog.delete(u1, created["id"])
    assert database.get_favorite_collection(u1, recipe) == "Favorites"
    assert database.count_favorite_rows(u1, recipe) == 1
    assert all(c["name"] != "Desserts" for c in catalog.list(u1))


def test_delete_foreign_or_unknown_collection(catalog, users):
    u1, u2 = users
    created = catalog.create(u1, "Mine")
    with pytest.raises(NotFound):
        catalog.delete(u2, created["id"])
    with pytest.raises(NotFound):
        catalog.delete(u1, 4242)


def test_favorites_collection_is_undeletable_and_unrenamable(catalog, users):
    u1, _ = users
    favorites = catalog.create(u1, "Favorites", is_public=False)
    with pytest.raises(InvalidInput):
        catalog.delete(u1, favorites["id"])
    with pytest.raises(InvalidInput):
        catalog.update(u1, favorites["id"], name="Stuff")
    catalog.update(u1, favorites["id"], is_public=True)


def test_update_requires_a_field(catalog, users):
    created = catalog.create(users[0], "Soups")
    with pytest.raises(InvalidInput) as exc:
        catalog.update(users[0], created["id"])
    assert exc.value.message == "No fields to update"


def test_rename_moves_favorites(catalog, users, database):
    u1, u2 = users
    recipe = make_recipe(database, u2)
    created = catalog.create(u1, "Soups")
    database.upsert_favorite(u1, recipe, "Soups")
    catalog.update(u1, created["id"], name="Stews")
    assert database.get_favorite_collection(u1, recipe) == "Stews"


def test_rename_to_existing_name_conflicts(catalog, users, database):
    u1, u2 = users
    recipe = make_recipe(database, u2)
    soups = catalog.create(u1, "Soups")
    catalog.create(u1, "Stews")
    database.upsert_favorite(u1, recipe, "Soups")
    with pytest.raises(Conflict):
        catalog.update(u1, soups["id"], name="Stews")
    assert database.get_favorite_collection(u1, recipe) == "Soups"


def test_list_prepends_synthetic_entries(catalog, users, database):
    u1, u2 = users
    r1 = make_recipe(database, u2, title="A")
    r2 = make_recipe(database, u2, title="B")
    catalog.create(u1, "Baking", is_public=False)
    database.upsert_favorite(u1, r1, "Baking")
    database.upsert_favorite(u1, r2, "Favorites")
    entries = catalog.list(u1)
    assert entries[0]["name"] == "All Saved"
    assert entries[0]["id"] is None
    assert entries[0]["recipe_count"] == 2
    by_name = {e["name"]: e for e in entries}
    assert by_name["Favorites"]["recipe_count"] == 1
    assert by_name["Favorites"]["synthetic"] is True
    assert by_name["Baking"]["recipe_count"] == 1
    assert by_name["Baking"]["is_public"] is False

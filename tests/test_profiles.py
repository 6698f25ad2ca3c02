import pytest

from conftest import make_recipe, make_user
from core.config import Settings
from core.errors import InvalidInput, NotFound
from logic.collections import CollectionCatalog
from logic.policy import AccessPolicy
from logic.preferences import PreferenceStore
from logic.profiles import ProfileService
from models.types import ProfileUpdate


@pytest.fixture
def profiles(database, policy):
    return ProfileService(database, policy)


def test_private_profile_exposes_summary_only(profiles, database):
    owner = make_user(database, "o@example.com", name="Olga")
    viewer = make_user(database, "v@example.com")
    make_recipe(database, owner)
    database.update_profile(owner, "Olga", "Secret bio", "pic")
    PreferenceStore(database).update(owner, {"profile_public": False})
    payload = profiles.get_profile(owner, viewer)
    assert payload == {"user": {"id": owner, "name": "Olga", "profile_image": "pic"}, "isPrivate": True}


def test_owner_sees_private_profile_and_private_recipes(profiles, database):
    owner = make_user(database, "o@example.com")
    make_recipe(database, owner, title="Open")
    make_recipe(database, owner, visibility="private", title="Hidden")
    PreferenceStore(database).update(owner, {"profile_public": False})
    payload = profiles.get_profile(owner, owner)
    assert payload["isOwnProfile"] is True
    assert payload["user"]["email"] == "o@example.com"
    assert {r["title"] for r in payload["recipes"]} == {"Open", "Hidden"}
    assert payload["stats"]["recipes"] == 2
    assert "settings" in payload


def test_public_profile_filters_private_recipes(profiles, database):
    owner = make_user(database, "o@example.com")
    viewer = make_user(database, "v@example.com")
    make_recipe(database, owner, title="Open")
    make_recipe(database, owner, visibility="private", title="Hidden")
    payload = profiles.get_profile(owner, viewer)
    assert [r["title"] for r in payload["recipes"]] == ["Open"]
    assert payload["stats"]["recipes"] == 1
    assert payload["user"]["email"] is None
    assert payload["favorites"] is None
    assert payload["isFollowing"] is False


def test_profile_is_following_flag(profiles, database):
    owner = make_user(database, "o@example.com")
    viewer = make_user(database, "v@example.com")
    database.insert_follow(viewer, owner)
    payload = profiles.get_profile(owner, viewer)
    assert payload["isFollowing"] is True
    assert payload["stats"]["followers"] == 1


def test_favorites_on_profile_respect_collection_visibility(profiles, database):
    owner = make_user(database, "o@example.com")
    viewer = make_user(database, "v@example.com")
    author = make_user(database, "a@example.com")
    public_pick = make_recipe(database, author, title="Public pick")
    hidden_pick = make_recipe(database, author, title="Hidden pick")
    loose_pick = make_recipe(database, author, title="Loose pick")
    catalog = CollectionCatalog(database)
    catalog.create(owner, "Shared", is_public=True)
    catalog.create(owner, "Secret", is_public=False)
    database.upsert_favorite(owner, public_pick, "Shared")
    database.upsert_favorite(owner, hidden_pick, "Secret")
    database.upsert_favorite(owner, loose_pick, "Favorites")
    PreferenceStore(database).update(owner, {"show_favorites": True})

    seen = {f["title"] for f in profiles.get_profile(owner, viewer)["favorites"]}
    assert seen == {"Public pick", "Loose pick"}
    own = {f["title"] for f in profiles.get_profile(owner, owner)["favorites"]}
    assert own == {"Public pick", "Hidden pick", "Loose pick"}


def test_profile_favorites_are_trimmed_and_capped(profiles, database):
    owner = make_user(database, "o@example.com")
    viewer = make_user(database, "v@example.com")
    author = make_user(database, "a@example.com")
    for i in range(21):
        database.upsert_favorite(owner, make_recipe(database, author, title=f"Pick {i}"), "Favorites")
    PreferenceStore(database).update(owner, {"show_favorites": True})

    favorites = profiles.get_profile(owner, viewer)["favorites"]
    assert len(favorites) == 20
    for fav in favorites:
        assert "recipe_owner_id" not in fav
        assert "recipe_visibility" not in fav
        assert {"id", "title", "collection"} <= set(fav)


def test_uncategorized_favorites_hidden_when_configured(database):
    owner = make_user(database, "o@example.com")
    viewer = make_user(database, "v@example.com")
    recipe = make_recipe(database, viewer)
    database.upsert_favorite(owner, recipe, "Favorites")
    PreferenceStore(database).update(owner, {"show_favorites": True})
    config = Settings()
    config.uncategorized_favorites_public = False
    service = ProfileService(database, AccessPolicy(database, config))
    assert service.get_profile(owner, viewer)["favorites"] == []


def test_unknown_profile(profiles):
    with pytest.raises(NotFound):
        profiles.get_profile(404, None)


def test_update_own_profile(profiles, database):
    user = make_user(database, "me@example.com")
    updated = profiles.update_own(user, ProfileUpdate(bio="Home cook"))
    assert updated["bio"] == "Home cook"
    assert updated["name"] == "Me"
    assert "hashed_password" not in updated
    with pytest.raises(InvalidInput):
        profiles.update_own(user, ProfileUpdate())


def test_search_respects_searchable_and_excludes_self(profiles, database):
    me = make_user(database, "me@example.com", name="Sam Cook")
    visible = make_user(database, "s1@example.com", name="Sam Baker")
    hidden = make_user(database, "s2@example.com", name="Sam Hidden")
    PreferenceStore(database).update(hidden, {"searchable": False})
    assert profiles.search(me, "S") == []
    ids = [u["id"] for u in profiles.search(me, "Sam")]
    assert ids == [visible]

import pytest

from conftest import make_recipe, make_user
from core.errors import Conflict, Forbidden, InvalidInput, NotFound
from logic.engagement import EngagementLedger
from models.types import Capabilities


@pytest.fixture
def setup(database, policy):
    owner = make_user(database, "owner@example.com")
    fan = make_user(database, "fan@example.com")
    recipe = make_recipe(database, owner)
    return EngagementLedger(database, policy), owner, fan, recipe


def test_like_twice_conflicts_and_keeps_one_row(setup, database):
    ledger, _, fan, recipe = setup
    assert ledger.like(fan, recipe) == {"liked": True, "likes": 1}
    with pytest.raises(Conflict) as exc:
        ledger.like(fan, recipe)
    assert exc.value.message == "Already liked"
    assert database.count_likes(recipe) == 1


def test_like_count_is_recomputed(setup, database):
    ledger, owner, fan, recipe = setup
    ledger.like(fan, recipe)
    assert ledger.like(owner, recipe)["likes"] == 2
    assert ledger.unlike(fan, recipe) == {"liked": False, "likes": 1}


def test_unlike_without_like_is_a_noop(setup):
    ledger, _, fan, recipe = setup
    assert ledger.unlike(fan, recipe)["likes"] == 0


def test_made_twice_conflicts(setup):
    ledger, _, fan, recipe = setup
    ledger.mark_made(fan, recipe)
    with pytest.raises(Conflict) as exc:
        ledger.mark_made(fan, recipe)
    assert exc.value.message == "Already marked as made"
    assert ledger.unmark_made(fan, recipe) == {"made": False}
    assert ledger.unmark_made(fan, recipe) == {"made": False}


def test_favorite_upsert_moves_between_collections(setup, database):
    ledger, _, fan, recipe = setup
    assert ledger.favorite(fan, recipe)["collection"] == "Favorites"
    assert ledger.favorite(fan, recipe, "Weeknight")["collection"] == "Weeknight"
    assert database.count_favorite_rows(fan, recipe) == 1
    assert database.get_favorite_collection(fan, recipe) == "Weeknight"


def test_favorite_into_all_saved_rejected(setup):
    ledger, _, fan, recipe = setup
    with pytest.raises(InvalidInput):
        ledger.favorite(fan, recipe, "All Saved")


def test_list_favorites_union_and_filtered(setup, database):
    ledger, owner, fan, recipe = setup
    other = make_recipe(database, owner, title="Bread")
    ledger.favorite(fan, recipe)
    ledger.favorite(fan, other, "Baking")
    assert {r["id"] for r in ledger.list_favorites(fan)} == {recipe, other}
    assert {r["id"] for r in ledger.list_favorites(fan, "All Saved")} == {recipe, other}
    baking = ledger.list_favorites(fan, "Baking")
    assert [r["id"] for r in baking] == [other]
    assert baking[0]["tags"] == ["soup"]


def test_private_recipe_engagement(setup, database):
    ledger, owner, fan, _ = setup
    private = make_recipe(database, owner, visibility="private")
    with pytest.raises(Forbidden):
        ledger.like(fan, private)
    database.upsert_grant(private, fan, Capabilities(can_edit=True), added_by=owner)
    assert ledger.like(fan, private)["likes"] == 1


def test_missing_recipe_is_not_found(setup):
    ledger, _, fan, _ = setup
    with pytest.raises(NotFound):
        ledger.like(fan, 9999)


@pytest.mark.parametrize("action", ["like", "mark_made", "favorite"])
def test_recipe_deleted_after_read_check_is_not_found(setup, database, policy, monkeypatch, action):
    ledger, _, fan, recipe = setup
    read = policy.readable_recipe

    def read_then_delete(recipe_id, viewer_id):
        found = read(recipe_id, viewer_id)
        database.delete_recipe(recipe_id)
        return found

    monkeypatch.setattr(policy, "readable_recipe", read_then_delete)
    with pytest.raises(NotFound) as exc:
        getattr(ledger, action)(fan, recipe)
    assert exc.value.message == "Recipe not found"
    assert database.count_likes(recipe) == 0
    assert not database.has_made(fan, recipe)
    assert database.get_favorite_collection(fan, recipe) is None

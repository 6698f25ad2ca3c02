from logic import visibility
from models.types import DEFAULT_PREFERENCES

OWNER = 1
VIEWER = 2


def prefs(**overrides):
    p = dict(DEFAULT_PREFERENCES)
    p["last_active"] = "2024-05-01 10:00:00"
    p.update(overrides)
    return p


USER = {"id": OWNER, "name": "Ada", "profile_image": "img", "bio": "Cooks", "email": "ada@example.com", "created_at": None}


def test_public_recipe_visible_to_anyone():
    assert visibility.can_view_recipe(None, OWNER, "public")
    assert visibility.can_view_recipe(VIEWER, OWNER, "public")


def test_private_recipe_visible_to_owner_and_grantee_only():
    assert visibility.can_view_recipe(OWNER, OWNER, "private")
    assert visibility.can_view_recipe(VIEWER, OWNER, "private", has_grant=True)
    assert not visibility.can_view_recipe(VIEWER, OWNER, "private")
    assert not visibility.can_view_recipe(None, OWNER, "private", has_grant=True)


def test_owner_sees_everything_even_when_private():
    view = visibility.profile_view(OWNER, OWNER, prefs(profile_public=False, show_email=False, show_followers=False))
    assert view.is_owner and not view.is_private
    assert view.show_email and view.show_activity and view.show_counts and view.show_favorites
    assert view.include_private_recipes


def test_private_profile_payload_has_only_summary():
    p = prefs(profile_public=False)
    view = visibility.profile_view(VIEWER, OWNER, p)
    payload = visibility.build_profile(view, USER, p)
    assert payload == {"user": {"id": OWNER, "name": "Ada", "profile_image": "img"}, "isPrivate": True}
    for key in ("bio", "email", "stats", "recipes", "favorites"):
        assert key not in payload
        assert key not in payload["user"]


def test_anonymous_viewer_of_private_profile_gets_summary():
    view = visibility.profile_view(None, OWNER, prefs(profile_public=False))
    assert view.is_private


def test_public_profile_fields_are_gated_independently():
    p = prefs(show_email=True, show_activity=False, show_followers=False, show_favorites=True)
    view = visibility.profile_view(VIEWER, OWNER, p)
    payload = visibility.build_profile(view, USER, p, stats={"recipes": 3, "followers": 0, "following": 5}, favorites=[{"id": 9}])
    assert payload["user"]["email"] == "ada@example.com"
    assert payload["user"]["last_active"] is None
    assert payload["stats"] == {"recipes": 3, "followers": None, "following": None}
    assert payload["favorites"] == [{"id": 9}]
    assert "settings" not in payload


def test_zero_followers_is_not_hidden():
    p = prefs(show_followers=True)
    view = visibility.profile_view(VIEWER, OWNER, p)
    payload = visibility.build_profile(view, USER, p, stats={"recipes": 0, "followers": 0, "following": 0})
    assert payload["stats"]["followers"] == 0
    assert payload["stats"]["following"] == 0


def test_favorites_null_when_hidden():
    p = prefs(show_favorites=False)
    view = visibility.profile_view(VIEWER, OWNER, p)
    payload = visibility.build_profile(view, USER, p, favorites=[{"id": 1}])
    assert payload["favorites"] is None


def test_owner_profile_carries_settings():
    p = prefs()
    view = visibility.profile_view(OWNER, OWNER, p)
    payload = visibility.build_profile(view, USER, p)
    assert payload["isOwnProfile"] is True
    assert payload["settings"]["color_theme"] == "default"
    assert "last_active" not in payload["settings"]


def test_follow_list_gate():
    assert not visibility.can_view_follow_list(VIEWER, OWNER, prefs(show_followers_list=False))
    assert visibility.can_view_follow_list(OWNER, OWNER, prefs(show_followers_list=False))
    assert visibility.can_view_follow_list(None, OWNER, prefs(show_followers_list=True))


def test_favorite_visibility_by_collection():
    assert visibility.favorite_visible(VIEWER, OWNER, True)
    assert not visibility.favorite_visible(VIEWER, OWNER, False)
    assert visibility.favorite_visible(OWNER, OWNER, False)


def test_uncategorized_favorite_follows_flag():
    assert visibility.favorite_visible(VIEWER, OWNER, None, uncategorized_public=True)
    assert not visibility.favorite_visible(VIEWER, OWNER, None, uncategorized_public=False)


def test_favorite_of_private_recipe_hidden_from_others():
    assert not visibility.favorite_visible(VIEWER, OWNER, True, recipe_owner_id=3, recipe_visibility="private")
    assert visibility.favorite_visible(3, OWNER, True, recipe_owner_id=3, recipe_visibility="private")

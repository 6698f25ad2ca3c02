import pytest

from conftest import make_user
from core.errors import InvalidInput
from logic.preferences import PreferenceStore
from models.types import DEFAULT_PREFERENCES


def test_registration_row_matches_defaults(database):
    user = make_user(database, "new@example.com")
    prefs = PreferenceStore(database).get(user)
    for key, value in DEFAULT_PREFERENCES.items():
        assert prefs[key] == value, key
    assert isinstance(prefs["profile_public"], bool)


def test_missing_row_falls_back_to_defaults(database):
    with database.connection() as conn:
        conn.execute("INSERT INTO users (email, name) VALUES ('legacy@example.com', 'Legacy')")
        user_id = conn.execute("SELECT id FROM users WHERE email = 'legacy@example.com'").fetchone()[0]
    assert database.get_preferences(user_id) is None
    prefs = PreferenceStore(database).get(user_id)
    assert prefs["profile_public"] is True
    assert prefs["show_followers_list"] is False
    assert prefs["color_theme"] == "default"


def test_partial_update_keeps_other_fields(database):
    user = make_user(database, "p@example.com")
    store = PreferenceStore(database)
    store.update(user, {"show_email": True, "color_theme": "forest"})
    updated = store.update(user, {"profile_public": 0})
    assert updated["show_email"] is True
    assert updated["color_theme"] == "forest"
    assert updated["profile_public"] is False
    assert updated["weekly_digest"] is True
    assert updated["last_active"] is not None


def test_partial_update_without_existing_row(database):
    with database.connection() as conn:
        cursor = conn.execute("INSERT INTO users (email) VALUES ('bare@example.com')")
        user_id = cursor.lastrowid
    updated = PreferenceStore(database).update(user_id, {"searchable": False})
    assert updated["searchable"] is False
    assert updated["allow_comments"] is True


def test_unknown_keys_rejected(database):
    user = make_user(database, "k@example.com")
    with pytest.raises(InvalidInput):
        PreferenceStore(database).update(user, {"is_admin": True})


@pytest.mark.parametrize("changes", [{"show_email": "yes"}, {"color_theme": ""}, {"color_theme": 5}])
def test_bad_values_rejected(database, changes):
    user = make_user(database, "v@example.com")
    with pytest.raises(InvalidInput):
        PreferenceStore(database).update(user, changes)

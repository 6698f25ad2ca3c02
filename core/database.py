import sqlite3
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from core.config import settings
from core.errors import Conflict, NotFound
from models.types import (
    BOOLEAN_PREFERENCES,
    DEFAULT_COLLECTION,
    DEFAULT_PREFERENCES,
    Capabilities,
    Grant,
    UserInDB,
)

logger = logging.getLogger(__name__)

RECIPE_COLUMNS = ("title", "description", "image", "cook_time", "servings", "difficulty", "visibility", "tags", "ingredients", "instructions")


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


def _to_flag(value: Any) -> int:
    return 1 if value else 0


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _preference_column_ddl() -> str:
    cols = []
    for key, default in DEFAULT_PREFERENCES.items():
        if isinstance(default, bool):
            cols.append(f"{key} INTEGER NOT NULL DEFAULT {_to_flag(default)}")
        else:
            cols.append(f"{key} TEXT NOT NULL DEFAULT '{default}'")
    return ",\n                    ".join(cols)


def _recipe_from_row(row: sqlite3.Row) -> dict:
    d = dict(row)
    try:
        d["tags"] = json.loads(d.get("tags") or "[]")
    except (TypeError, ValueError):
        d["tags"] = []
    # Lists were stored as JSON text, free text as is
    for key in ("ingredients", "instructions"):
        value = d.get(key)
        if isinstance(value, str) and value.startswith("["):
            try:
                d[key] = json.loads(value)
            except ValueError:
                pass
    return d


class DatabaseManager:
    """SQLite store for CookFeed.

    Every public method runs in its own connection and transaction. Booleans
    are stored as 0/1 integers; this class is the only place that converts
    them, callers always see ``bool``.
    """

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path) if db_path else settings.db_path
        self.init_database()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self):
        """One transaction: commit on success, roll back on error, always close."""
        conn = self.get_connection()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_database(self):
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    name TEXT,
                    bio TEXT,
                    profile_image TEXT,
                    hashed_password TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    image TEXT,
                    cook_time TEXT,
                    servings TEXT,
                    difficulty TEXT,
                    visibility TEXT NOT NULL DEFAULT 'public' CHECK(visibility IN ('public', 'private')),
                    tags TEXT DEFAULT '[]',
                    ingredients TEXT NOT NULL,
                    instructions TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_recipes_user_id ON recipes(user_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_recipes_visibility ON recipes(visibility)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_recipes_created_at ON recipes(created_at)")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS comments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    recipe_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (recipe_id) REFERENCES recipes (id) ON DELETE CASCADE,
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_comments_recipe_id ON comments(recipe_id)")

            # User follows (directed, no self-loops)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS followers (
                    follower_id INTEGER NOT NULL,
                    followed_id INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (follower_id, followed_id),
                    CHECK (follower_id <> followed_id),
                    FOREIGN KEY (follower_id) REFERENCES users (id) ON DELETE CASCADE,
                    FOREIGN KEY (followed_id) REFERENCES users (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_followers_followed_id ON followers(followed_id)")

            # Engagement facts, one row per (user, recipe)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS likes (
                    user_id INTEGER NOT NULL,
                    recipe_id INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, recipe_id),
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
                    FOREIGN KEY (recipe_id) REFERENCES recipes (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_likes_recipe_id ON likes(recipe_id)")
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS made_recipes (
                    user_id INTEGER NOT NULL,
                    recipe_id INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, recipe_id),
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
                    FOREIGN KEY (recipe_id) REFERENCES recipes (id) ON DELETE CASCADE
                )
            """)
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS favorites (
                    user_id INTEGER NOT NULL,
                    recipe_id INTEGER NOT NULL,
                    collection TEXT NOT NULL DEFAULT '{DEFAULT_COLLECTION}',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, recipe_id),
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
                    FOREIGN KEY (recipe_id) REFERENCES recipes (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_favorites_user_collection ON favorites(user_id, collection)")

            # --- Collections ---
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS collections (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    is_public INTEGER NOT NULL DEFAULT 1,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE (user_id, name),
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
                )
            """)

            # --- Preferences ---
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS user_preferences (
                    user_id INTEGER PRIMARY KEY,
                    {_preference_column_ddl()},
                    last_active TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
                )
            """)
            # Ensure columns added after the table was first created exist
            cursor.execute("PRAGMA table_info(user_preferences)")
            pref_cols = {row[1] for row in cursor.fetchall()}
            for key, default in DEFAULT_PREFERENCES.items():
                if key in pref_cols:
                    continue
                if isinstance(default, bool):
                    cursor.execute(f"ALTER TABLE user_preferences ADD COLUMN {key} INTEGER NOT NULL DEFAULT {_to_flag(default)}")
                else:
                    cursor.execute(f"ALTER TABLE user_preferences ADD COLUMN {key} TEXT NOT NULL DEFAULT '{default}'")
                logger.info(f"Added missing preference column '{key}'")

            # --- Collaborative editing grants ---
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipe_editors (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    recipe_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    can_edit INTEGER NOT NULL DEFAULT 1,
                    can_delete INTEGER NOT NULL DEFAULT 0,
                    can_manage_editors INTEGER NOT NULL DEFAULT 0,
                    added_by INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE (recipe_id, user_id),
                    FOREIGN KEY (recipe_id) REFERENCES recipes (id) ON DELETE CASCADE,
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
                    FOREIGN KEY (added_by) REFERENCES users (id) ON DELETE CASCADE
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_recipe_editors_user ON recipe_editors(user_id)")
        logger.info(f"Database ready at {self.db_path}")

    # --- Users ---
    def create_user(self, email: str, name: Optional[str], hashed_password: str) -> Optional[int]:
        """Insert a user and their default preferences row; None if the email is taken."""
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT INTO users (email, name, hashed_password) VALUES (?, ?, ?)",
                    (email, name, hashed_password)
                )
                user_id = cursor.lastrowid
                cursor.execute("INSERT INTO user_preferences (user_id) VALUES (?)", (user_id,))
                return user_id
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                return None
            raise

    def get_user_by_id(self, user_id: int) -> Optional[UserInDB]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return UserInDB(**dict(row)) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE LOWER(email) = LOWER(?)", (email,)).fetchone()
            return UserInDB(**dict(row)) if row else None

    def user_exists(self, user_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is not None

    def update_profile(self, user_id: int, name: Optional[str], bio: Optional[str], profile_image: Optional[str]):
        with self.connection() as conn:
            conn.execute(
                "UPDATE users SET name = ?, bio = ?, profile_image = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (name, bio, profile_image, user_id)
            )

    def update_password_hash(self, user_id: int, hashed_password: str):
        with self.connection() as conn:
            conn.execute(
                "UPDATE users SET hashed_password = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hashed_password, user_id)
            )

    def search_users(self, viewer_id: int, query: str, limit: int = 10) -> List[dict]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT u.id, u.name, u.profile_image,
                       (SELECT COUNT(*) FROM recipes r WHERE r.user_id = u.id AND r.visibility = 'public') AS recipe_count,
                       (SELECT COUNT(*) FROM followers f WHERE f.followed_id = u.id) AS follower_count,
                       EXISTS(SELECT 1 FROM followers f2 WHERE f2.follower_id = ? AND f2.followed_id = u.id) AS is_following
                FROM users u
                LEFT JOIN user_preferences p ON p.user_id = u.id
                WHERE u.name LIKE ? AND u.id <> ?
                  AND (p.searchable IS NULL OR p.searchable = 1)
                ORDER BY u.name ASC
                LIMIT ?
                """,
                (viewer_id, f"%{query}%", viewer_id, limit)
            ).fetchall()
            out = []
            for r in rows:
                d = dict(r)
                d["is_following"] = bool(d["is_following"])
                out.append(d)
            return out

    # --- Preferences ---
    def get_preferences(self, user_id: int) -> Optional[dict]:
        """Stored preferences with booleans decoded, or None if no row exists yet."""
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM user_preferences WHERE user_id = ?", (user_id,)).fetchone()
        if not row:
            return None
        d = dict(row)
        prefs = {}
        for key, default in DEFAULT_PREFERENCES.items():
            value = d.get(key)
            if value is None:
                prefs[key] = default
            elif key in BOOLEAN_PREFERENCES:
                prefs[key] = bool(value)
            else:
                prefs[key] = value
        prefs["last_active"] = d.get("last_active")
        return prefs

    def upsert_preferences(self, user_id: int, changes: Dict[str, Any]):
        """Write only the supplied keys; columns not named keep their stored value or default."""
        keys = [k for k in changes if k in DEFAULT_PREFERENCES]
        values = [_to_flag(changes[k]) if k in BOOLEAN_PREFERENCES else changes[k] for k in keys]
        columns = ", ".join(["user_id"] + keys)
        placeholders = ", ".join(["?"] * (len(keys) + 1))
        assignments = ", ".join([f"{k} = excluded.{k}" for k in keys] + ["last_active = CURRENT_TIMESTAMP", "updated_at = CURRENT_TIMESTAMP"])
        with self.connection() as conn:
            conn.execute(
                f"""
                INSERT INTO user_preferences ({columns}) VALUES ({placeholders})
                ON CONFLICT(user_id) DO UPDATE SET {assignments}
                """,
                [user_id] + values
            )

    # --- Recipes ---
    def create_recipe(self, owner_id: int, fields: Dict[str, Any]) -> int:
        values = [fields.get(c) for c in RECIPE_COLUMNS]
        values[RECIPE_COLUMNS.index("tags")] = json.dumps(fields.get("tags") or [])
        values[RECIPE_COLUMNS.index("ingredients")] = _as_text(fields.get("ingredients"))
        values[RECIPE_COLUMNS.index("instructions")] = _as_text(fields.get("instructions"))
        with self.connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO recipes (user_id, {', '.join(RECIPE_COLUMNS)}) VALUES (?, {', '.join(['?'] * len(RECIPE_COLUMNS))})",
                [owner_id] + values
            )
            return cursor.lastrowid

    def get_recipe(self, recipe_id: int) -> Optional[dict]:
        with self.connection() as conn:
            row = conn.execute(
                """
                SELECT r.*, u.name AS author, u.profile_image AS author_image,
                       (SELECT COUNT(*) FROM likes l WHERE l.recipe_id = r.id) AS likes,
                       (SELECT COUNT(*) FROM comments c WHERE c.recipe_id = r.id) AS comment_count
                FROM recipes r
                LEFT JOIN users u ON u.id = r.user_id
                WHERE r.id = ?
                """,
                (recipe_id,)
            ).fetchone()
            return _recipe_from_row(row) if row else None

    def get_recipe_owner_id(self, recipe_id: int) -> Optional[int]:
        with self.connection() as conn:
            r = conn.execute("SELECT user_id FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
            return r[0] if r else None

    def update_recipe(self, recipe_id: int, fields: Dict[str, Any]) -> bool:
        updates = {k: v for k, v in fields.items() if k in RECIPE_COLUMNS}
        if not updates:
            return False
        if "tags" in updates:
            updates["tags"] = json.dumps(updates["tags"] or [])
        for key in ("ingredients", "instructions"):
            if key in updates:
                updates[key] = _as_text(updates[key])
        sets = ", ".join([f"{k} = ?" for k in updates.keys()] + ["updated_at = CURRENT_TIMESTAMP"])
        with self.connection() as conn:
            cursor = conn.execute(f"UPDATE recipes SET {sets} WHERE id = ?", list(updates.values()) + [recipe_id])
            return cursor.rowcount > 0

    def delete_recipe(self, recipe_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,)).rowcount > 0

    def _list_recipes(self, where: str, args: Iterable[Any], limit: Optional[int]) -> List[dict]:
        sql = f"""
            SELECT r.*, u.name AS author, u.profile_image AS author_image,
                   (SELECT COUNT(*) FROM likes l WHERE l.recipe_id = r.id) AS likes,
                   (SELECT COUNT(*) FROM comments c WHERE c.recipe_id = r.id) AS comments
            FROM recipes r
            LEFT JOIN users u ON u.id = r.user_id
            WHERE {where}
            ORDER BY r.created_at DESC, r.id DESC
        """
        params = list(args)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self.connection() as conn:
            return [_recipe_from_row(r) for r in conn.execute(sql, params).fetchall()]

    def list_public_recipes(self, limit: Optional[int] = None) -> List[dict]:
        return self._list_recipes("r.visibility = 'public'", [], limit)

    def list_user_recipes(self, user_id: int, include_private: bool, limit: Optional[int] = 20) -> List[dict]:
        if include_private:
            return self._list_recipes("r.user_id = ?", [user_id], limit)
        return self._list_recipes("r.user_id = ? AND r.visibility = 'public'", [user_id], limit)

    def list_feed_recipes(self, viewer_id: int, limit: Optional[int] = 50) -> List[dict]:
        return self._list_recipes(
            "r.visibility = 'public' AND r.user_id IN (SELECT followed_id FROM followers WHERE follower_id = ?)",
            [viewer_id],
            limit,
        )

    def count_recipes(self, user_id: int, include_private: bool = False) -> int:
        sql = "SELECT COUNT(*) FROM recipes WHERE user_id = ?"
        if not include_private:
            sql += " AND visibility = 'public'"
        with self.connection() as conn:
            return int(conn.execute(sql, (user_id,)).fetchone()[0] or 0)

    # --- Collaboration grants ---
    def get_grant(self, recipe_id: int, user_id: int) -> Optional[Capabilities]:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT can_edit, can_delete, can_manage_editors FROM recipe_editors WHERE recipe_id = ? AND user_id = ?",
                (recipe_id, user_id)
            ).fetchone()
        if not row:
            return None
        # 0/1 columns are compared numerically, never by truthiness of strings
        return Capabilities(
            can_edit=int(row["can_edit"]) == 1,
            can_delete=int(row["can_delete"]) == 1,
            can_manage_editors=int(row["can_manage_editors"]) == 1,
        )

    def upsert_grant(self, recipe_id: int, user_id: int, caps: Capabilities, added_by: int):
        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO recipe_editors (recipe_id, user_id, can_edit, can_delete, can_manage_editors, added_by)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(recipe_id, user_id) DO UPDATE SET
                    can_edit = excluded.can_edit,
                    can_delete = excluded.can_delete,
                    can_manage_editors = excluded.can_manage_editors,
                    added_by = excluded.added_by,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (recipe_id, user_id, _to_flag(caps.can_edit), _to_flag(caps.can_delete), _to_flag(caps.can_manage_editors), added_by)
            )

    def update_grant(self, recipe_id: int, user_id: int, caps: Capabilities) -> bool:
        with self.connection() as conn:
            cursor = conn.execute(
                """
                UPDATE recipe_editors
                SET can_edit = ?, can_delete = ?, can_manage_editors = ?, updated_at = CURRENT_TIMESTAMP
                WHERE recipe_id = ? AND user_id = ?
                """,
                (_to_flag(caps.can_edit), _to_flag(caps.can_delete), _to_flag(caps.can_manage_editors), recipe_id, user_id)
            )
            return cursor.rowcount > 0

    def delete_grant(self, recipe_id: int, user_id: int) -> bool:
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM recipe_editors WHERE recipe_id = ? AND user_id = ?", (recipe_id, user_id))
            return cursor.rowcount > 0

    def list_grants(self, recipe_id: int) -> List[Grant]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT re.recipe_id, re.user_id, re.can_edit, re.can_delete, re.can_manage_editors,
                       re.added_by, re.created_at, re.updated_at, u.name, u.profile_image
                FROM recipe_editors re
                JOIN users u ON u.id = re.user_id
                WHERE re.recipe_id = ?
                ORDER BY re.created_at ASC, re.id ASC
                """,
                (recipe_id,)
            ).fetchall()
        grants = []
        for r in rows:
            d = dict(r)
            for flag in ("can_edit", "can_delete", "can_manage_editors"):
                d[flag] = int(d[flag]) == 1
            grants.append(Grant(**d))
        return grants

    # --- Likes / made ---
    def _insert_fact(self, table: str, user_id: int, recipe_id: int) -> bool:
        try:
            with self.connection() as conn:
                conn.execute(f"INSERT INTO {table} (user_id, recipe_id) VALUES (?, ?)", (user_id, recipe_id))
            return True
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                return False
            # recipe removed after the read check
            logger.warning(f"Insert into {table} rejected for recipe {recipe_id}: {e}")
            raise NotFound("Recipe not found")

    def _delete_fact(self, table: str, user_id: int, recipe_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute(f"DELETE FROM {table} WHERE user_id = ? AND recipe_id = ?", (user_id, recipe_id)).rowcount > 0

    def _has_fact(self, table: str, user_id: int, recipe_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute(f"SELECT 1 FROM {table} WHERE user_id = ? AND recipe_id = ?", (user_id, recipe_id)).fetchone() is not None

    def insert_like(self, user_id: int, recipe_id: int) -> bool:
        """False when the (user, recipe) like already exists."""
        return self._insert_fact("likes", user_id, recipe_id)

    def delete_like(self, user_id: int, recipe_id: int) -> bool:
        return self._delete_fact("likes", user_id, recipe_id)

    def has_like(self, user_id: int, recipe_id: int) -> bool:
        return self._has_fact("likes", user_id, recipe_id)

    def count_likes(self, recipe_id: int) -> int:
        with self.connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM likes WHERE recipe_id = ?", (recipe_id,)).fetchone()[0] or 0)

    def insert_made(self, user_id: int, recipe_id: int) -> bool:
        return self._insert_fact("made_recipes", user_id, recipe_id)

    def delete_made(self, user_id: int, recipe_id: int) -> bool:
        return self._delete_fact("made_recipes", user_id, recipe_id)

    def has_made(self, user_id: int, recipe_id: int) -> bool:
        return self._has_fact("made_recipes", user_id, recipe_id)

    # --- Favorites ---
    def upsert_favorite(self, user_id: int, recipe_id: int, collection: str):
        try:
            with self.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO favorites (user_id, recipe_id, collection) VALUES (?, ?, ?)
                    ON CONFLICT(user_id, recipe_id) DO UPDATE SET collection = excluded.collection
                    """,
                    (user_id, recipe_id, collection)
                )
        except sqlite3.IntegrityError as e:
            logger.warning(f"Favorite rejected for recipe {recipe_id}: {e}")
            raise NotFound("Recipe not found")

    def delete_favorite(self, user_id: int, recipe_id: int) -> bool:
        return self._delete_fact("favorites", user_id, recipe_id)

    def get_favorite_collection(self, user_id: int, recipe_id: int) -> Optional[str]:
        with self.connection() as conn:
            row = conn.execute("SELECT collection FROM favorites WHERE user_id = ? AND recipe_id = ?", (user_id, recipe_id)).fetchone()
            return row[0] if row else None

    def count_favorite_rows(self, user_id: int, recipe_id: int) -> int:
        with self.connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM favorites WHERE user_id = ? AND recipe_id = ?", (user_id, recipe_id)).fetchone()[0])

    def list_favorites(self, user_id: int, collection: Optional[str] = None) -> List[dict]:
        sql = """
            SELECT r.*, f.collection, u.name AS author, u.profile_image AS author_image,
                   (SELECT COUNT(*) FROM likes l WHERE l.recipe_id = r.id) AS likes
            FROM favorites f
            JOIN recipes r ON r.id = f.recipe_id
            LEFT JOIN users u ON u.id = r.user_id
            WHERE f.user_id = ?
        """
        params: List[Any] = [user_id]
        if collection is not None:
            sql += " AND f.collection = ?"
            params.append(collection)
        sql += " ORDER BY f.created_at DESC, r.id DESC"
        with self.connection() as conn:
            return [_recipe_from_row(r) for r in conn.execute(sql, params).fetchall()]

    def list_favorites_with_collection_flags(self, user_id: int) -> List[dict]:
        """Favorites joined with their collection row; ``collection_public`` is None without a row."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT r.id, r.title, r.image, r.user_id AS recipe_owner_id, r.visibility AS recipe_visibility,
                       f.collection, c.is_public AS collection_public
                FROM favorites f
                JOIN recipes r ON r.id = f.recipe_id
                LEFT JOIN collections c ON c.name = f.collection AND c.user_id = f.user_id
                WHERE f.user_id = ?
                ORDER BY f.created_at DESC, r.id DESC
                """,
                (user_id,)
            ).fetchall()
        out = []
        for r in rows:
            d = dict(r)
            if d["collection_public"] is not None:
                d["collection_public"] = int(d["collection_public"]) == 1
            out.append(d)
        return out

    # --- Collections ---
    def create_collection(self, user_id: int, name: str, is_public: bool) -> Optional[int]:
        """None when the owner already has a collection with this name."""
        try:
            with self.connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO collections (user_id, name, is_public) VALUES (?, ?, ?)",
                    (user_id, name, _to_flag(is_public))
                )
                return cursor.lastrowid
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                return None
            raise

    def get_collection(self, collection_id: int, user_id: int) -> Optional[dict]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM collections WHERE id = ? AND user_id = ?", (collection_id, user_id)).fetchone()
        if not row:
            return None
        d = dict(row)
        d["is_public"] = int(d["is_public"]) == 1
        return d

    def list_collections(self, user_id: int) -> List[dict]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT c.*,
                       (SELECT COUNT(*) FROM favorites f WHERE f.user_id = c.user_id AND f.collection = c.name) AS recipe_count
                FROM collections c
                WHERE c.user_id = ?
                ORDER BY c.created_at DESC, c.id DESC
                """,
                (user_id,)
            ).fetchall()
        out = []
        for r in rows:
            d = dict(r)
            d["is_public"] = int(d["is_public"]) == 1
            out.append(d)
        return out

    def count_favorites(self, user_id: int, collection: Optional[str] = None) -> int:
        sql = "SELECT COUNT(*) FROM favorites WHERE user_id = ?"
        params: List[Any] = [user_id]
        if collection is not None:
            sql += " AND collection = ?"
            params.append(collection)
        with self.connection() as conn:
            return int(conn.execute(sql, params).fetchone()[0] or 0)

    def update_collection(self, collection_id: int, user_id: int, name: Optional[str] = None, is_public: Optional[bool] = None) -> bool:
        """Rename and/or change visibility; a rename carries the owner's favorites along.

        Raises Conflict on a duplicate name; nothing is written then.
        """
        try:
            with self.connection() as conn:
                row = conn.execute("SELECT name FROM collections WHERE id = ? AND user_id = ?", (collection_id, user_id)).fetchone()
                if not row:
                    return False
                if name is not None and name != row["name"]:
                    conn.execute("UPDATE collections SET name = ? WHERE id = ? AND user_id = ?", (name, collection_id, user_id))
                    conn.execute("UPDATE favorites SET collection = ? WHERE user_id = ? AND collection = ?", (name, user_id, row["name"]))
                if is_public is not None:
                    conn.execute("UPDATE collections SET is_public = ? WHERE id = ? AND user_id = ?", (_to_flag(is_public), collection_id, user_id))
                return True
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise Conflict(f"A collection named '{name}' already exists")
            raise

    def delete_collection(self, collection_id: int, user_id: int) -> Optional[str]:
        """Move the collection's favorites to the default collection, then drop it.

        Both statements share one transaction. Returns the deleted name, or
        None when the owner has no such collection.
        """
        with self.connection() as conn:
            row = conn.execute("SELECT name FROM collections WHERE id = ? AND user_id = ?", (collection_id, user_id)).fetchone()
            if not row:
                return None
            name = row["name"]
            conn.execute(
                "UPDATE favorites SET collection = ? WHERE user_id = ? AND collection = ?",
                (DEFAULT_COLLECTION, user_id, name)
            )
            conn.execute("DELETE FROM collections WHERE id = ? AND user_id = ?", (collection_id, user_id))
            return name

    # --- Follows ---
    def insert_follow(self, follower_id: int, followed_id: int) -> bool:
        """True if a new edge was created, False if it already existed."""
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO followers (follower_id, followed_id) VALUES (?, ?)",
                (follower_id, followed_id)
            )
            return cursor.rowcount > 0

    def delete_follow(self, follower_id: int, followed_id: int) -> bool:
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM followers WHERE follower_id = ? AND followed_id = ?", (follower_id, followed_id))
            return cursor.rowcount > 0

    def is_following(self, follower_id: int, followed_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute(
                "SELECT 1 FROM followers WHERE follower_id = ? AND followed_id = ?", (follower_id, followed_id)
            ).fetchone() is not None

    def count_follow_edges(self, follower_id: int, followed_id: int) -> int:
        with self.connection() as conn:
            return int(conn.execute(
                "SELECT COUNT(*) FROM followers WHERE follower_id = ? AND followed_id = ?", (follower_id, followed_id)
            ).fetchone()[0])

    def count_followers(self, user_id: int) -> int:
        with self.connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM followers WHERE followed_id = ?", (user_id,)).fetchone()[0] or 0)

    def count_following(self, user_id: int) -> int:
        with self.connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM followers WHERE follower_id = ?", (user_id,)).fetchone()[0] or 0)

    def list_follow_neighbours(self, user_id: int, direction: str) -> List[dict]:
        """Users followed by ``user_id`` ('following') or following them ('followers')."""
        if direction == "following":
            join_col, where_col = "followed_id", "follower_id"
        elif direction == "followers":
            join_col, where_col = "follower_id", "followed_id"
        else:
            raise ValueError(f"Unknown follow direction: {direction}")
        with self.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT u.id, u.name, u.profile_image,
                       (SELECT COUNT(*) FROM recipes r WHERE r.user_id = u.id AND r.visibility = 'public') AS recipe_count,
                       (SELECT COUNT(*) FROM followers f2 WHERE f2.followed_id = u.id) AS follower_count
                FROM followers f
                JOIN users u ON u.id = f.{join_col}
                WHERE f.{where_col} = ?
                ORDER BY f.created_at DESC, u.id DESC
                """,
                (user_id,)
            ).fetchall()
            return [dict(r) for r in rows]

    def followed_ids(self, follower_id: int) -> set:
        with self.connection() as conn:
            return {r[0] for r in conn.execute("SELECT followed_id FROM followers WHERE follower_id = ?", (follower_id,)).fetchall()}

    # --- Comments ---
    def create_comment(self, recipe_id: int, user_id: int, content: str) -> int:
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO comments (recipe_id, user_id, content) VALUES (?, ?, ?)",
                (recipe_id, user_id, content)
            )
            return cursor.lastrowid

    def get_comment(self, comment_id: int) -> Optional[dict]:
        with self.connection() as conn:
            row = conn.execute(
                """
                SELECT c.id, c.recipe_id, c.user_id, c.content, c.created_at, c.updated_at,
                       u.name AS user_name, u.profile_image AS user_image
                FROM comments c
                JOIN users u ON u.id = c.user_id
                WHERE c.id = ?
                """,
                (comment_id,)
            ).fetchone()
            return dict(row) if row else None

    def list_comments(self, recipe_id: int) -> List[dict]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT c.id, c.recipe_id, c.user_id, c.content, c.created_at, c.updated_at,
                       u.name AS user_name, u.profile_image AS user_image
                FROM comments c
                LEFT JOIN users u ON u.id = c.user_id
                WHERE c.recipe_id = ?
                ORDER BY c.created_at DESC, c.id DESC
                """,
                (recipe_id,)
            ).fetchall()
            return [dict(r) for r in rows]

    def update_comment(self, comment_id: int, recipe_id: int, user_id: int, content: str) -> bool:
        with self.connection() as conn:
            cursor = conn.execute(
                "UPDATE comments SET content = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND recipe_id = ? AND user_id = ?",
                (content, comment_id, recipe_id, user_id)
            )
            return cursor.rowcount > 0

    def delete_comment(self, comment_id: int, recipe_id: int) -> bool:
        with self.connection() as conn:
            return conn.execute("DELETE FROM comments WHERE id = ? AND recipe_id = ?", (comment_id, recipe_id)).rowcount > 0


db = DatabaseManager()


def get_db() -> DatabaseManager:
    """FastAPI dependency returning the process-wide store."""
    return db

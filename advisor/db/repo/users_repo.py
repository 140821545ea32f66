"""Users repository."""
import json
import sqlite3
from typing import Any, Dict, Optional
from advisor.core.error_codes import AdvisorError, ErrorCode
from advisor.core.utils import new_id, now_iso, safe_json_loads
from advisor.db.connect import get_conn
from advisor.schemas import UserPreferences, UserRecord

EMPTY_PREFERENCES = UserPreferences()


def _row_to_user(row) -> Dict[str, Any]:
    user = dict(row)
    user["preferences"] = safe_json_loads(user.pop("preferences_json", None))
    return user


class UsersRepo:
    """Repository for users. Returned dicts never include the password hash
    unless explicitly requested."""

    def create_user(self, name: str, email: str, password_hash: str) -> Dict[str, Any]:
        """Create a user with empty preferences. Raises CONFLICT on duplicate email."""
        user_id = new_id("usr_")
        now = now_iso()
        try:
            with get_conn() as conn:
                conn.execute(
                    """
                    INSERT INTO users (
                        user_id, name, email, password_hash, preferences_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        name,
                        email,
                        password_hash,
                        json.dumps(EMPTY_PREFERENCES.to_wire()),
                        now,
                        now,
                    )
                )
        except sqlite3.IntegrityError as e:
            raise AdvisorError(ErrorCode.CONFLICT, "User already exists") from e
        return self.get_user(user_id)

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user by ID (without password hash)."""
        with get_conn() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id, name, email, preferences_json, created_at, updated_at
                FROM users WHERE user_id = ?
                """,
                (user_id,)
            )
            row = cursor.fetchone()
        return _row_to_user(row) if row else None

    def get_user_by_email(self, email: str, include_password: bool = False) -> Optional[Dict[str, Any]]:
        """Get a user by email; include_password is for login only."""
        with get_conn() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE email = ?", (email,))
            row = cursor.fetchone()
        if not row:
            return None
        user = _row_to_user(row)
        if not include_password:
            user.pop("password_hash", None)
        return user

    def update_preferences(self, user_id: str, preferences: UserPreferences) -> Optional[Dict[str, Any]]:
        """Replace a user's preferences. Returns the updated user, or None if missing."""
        with get_conn() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE users SET preferences_json = ?, updated_at = ? WHERE user_id = ?",
                (json.dumps(preferences.to_wire()), now_iso(), user_id)
            )
            updated = cursor.rowcount
        return self.get_user(user_id) if updated else None

    def get_user_record(self, user_id: str) -> Optional[UserRecord]:
        """Resolved user for the dashboard."""
        user = self.get_user(user_id)
        if not user:
            return None
        return UserRecord(
            id=user["user_id"],
            name=user["name"],
            email=user["email"],
            preferences=UserPreferences.model_validate(user["preferences"] or {}),
        )

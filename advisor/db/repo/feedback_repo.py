"""Feedback repository."""
from typing import List, Dict, Any
from advisor.core.utils import new_id, now_iso
from advisor.db.connect import get_conn


class FeedbackRepo:
    """Repository for dashboard feedback votes."""

    def create_feedback(self, user_id: str, section: str, item_id: str, vote: int) -> Dict[str, Any]:
        """Store one vote."""
        feedback_id = new_id("fb_")
        now = now_iso()
        with get_conn() as conn:
            conn.execute(
                """
                INSERT INTO feedback (
                    id, user_id, section, item_id, vote, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (feedback_id, user_id, section, item_id, vote, now, now)
            )
        return {
            "id": feedback_id,
            "user_id": user_id,
            "section": section,
            "item_id": item_id,
            "vote": vote,
            "created_at": now,
            "updated_at": now,
        }

    def list_feedback_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """All votes by a user, newest first."""
        with get_conn() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM feedback
                WHERE user_id = ?
                ORDER BY created_at DESC
                """,
                (user_id,)
            )
            rows = cursor.fetchall()
        return [dict(row) for row in rows]

from __future__ import annotations

import hmac
import logging
import os
from collections import Counter
from datetime import datetime, timedelta, timezone

from word_vault.errors import Unauthorized
from word_vault.storage.db import Database

UTC = timezone.utc
HISTORY_DAYS = 30
RECENT_WORDS = 20
TOP_CONTRIBUTORS = 10

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Database, *, password: str | None = None) -> None:
        self.db = db
        self.password = password if password is not None else os.getenv("WORD_VAULT_ADMIN_PASSWORD", "")

    def verify(self, password: str) -> None:
        # A missing secret and a wrong password look identical to the caller.
        if not self.password or not hmac.compare_digest(
            str(password or "").encode("utf-8"), self.password.encode("utf-8")
        ):
            logger.warning("rejected admin login attempt")
            raise Unauthorized()

    def dashboard(self, password: str, *, now: datetime | None = None) -> dict:
        self.verify(password)
        now = now or datetime.now(UTC)
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        history_start = (now - timedelta(days=HISTORY_DAYS)).date().isoformat()

        total_users = self.db.count_users()
        activity = self.db.word_activity()
        total_words = len(activity)
        words_today = self.db.count_words(since=today_start.isoformat())
        recent = self.db.select_words(order_by="recent", limit=RECENT_WORDS)

        by_date = Counter(
            str(row["created_at"])[:10] for row in activity if str(row["created_at"])[:10] >= history_start
        )
        by_difficulty = Counter(str(row["difficulty"]) for row in activity)

        contributors: dict[int, dict] = {}
        for row in activity:
            user_id = row.get("user_id")
            if not user_id:
                continue
            entry = contributors.setdefault(int(user_id), {"count": 0, "latest": row["created_at"]})
            entry["count"] += 1
            if row["created_at"] > entry["latest"]:
                entry["latest"] = row["created_at"]

        names = self.db.display_names([*contributors, *(row["user_id"] for row in recent if row.get("user_id"))])
        top = sorted(contributors.items(), key=lambda item: item[1]["count"], reverse=True)[:TOP_CONTRIBUTORS]

        return {
            "stats": {
                "total_users": total_users,
                "total_words": total_words,
                "words_today": words_today,
                "avg_per_user": round(total_words / total_users, 1) if total_users else 0,
            },
            "words_by_date": [{"date": day, "count": count} for day, count in sorted(by_date.items())],
            "difficulty_breakdown": [
                {"difficulty": level, "count": count} for level, count in sorted(by_difficulty.items())
            ],
            "recent_words": [
                {
                    "word": row["word"],
                    "difficulty": row["difficulty"],
                    "display_name": names.get(int(row["user_id"] or 0), "Unknown"),
                    "created_at": row["created_at"],
                }
                for row in recent
            ],
            "top_users": [
                {
                    "display_name": names.get(user_id, "Unknown"),
                    "word_count": data["count"],
                    "latest_activity": data["latest"],
                }
                for user_id, data in top
            ],
        }

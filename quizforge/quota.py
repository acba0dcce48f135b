"""
Monthly prompt quota: each user may generate a limited number of question sets per calendar month.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import engine
from quizforge.database import DatabaseClient
from quizforge.errors import PersistenceFailure
from quizforge.models import UserProfile

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromptQuota:
    """Counter with a calendar-month reset, stored in the user's profile."""

    def __init__(
        self,
        db: DatabaseClient,
        user_id: str,
        email: Optional[str] = None,
        limit: int = engine.MONTHLY_PROMPT_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.limit = limit
        self.clock = clock
        self.profile = self._load(user_id, email)

    def _load(self, user_id: str, email: Optional[str]) -> UserProfile:
        now = self.clock()
        profile = self.db.get_user_profile(user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id, email=email, monthly_prompt_count=0, last_reset_date=now)
            self.db.upsert_user_profile(profile)
            logger.info(f"Created profile for {user_id}")
        elif (profile.last_reset_date.year, profile.last_reset_date.month) != (now.year, now.month):
            profile.monthly_prompt_count = 0
            profile.last_reset_date = now
            self.db.upsert_user_profile(profile)
            logger.info(f"Monthly prompt count reset for {user_id}")
        return profile

    @property
    def used(self) -> int:
        return self.profile.monthly_prompt_count

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.profile.monthly_prompt_count)

    def can_use_prompt(self) -> bool:
        return self.profile.monthly_prompt_count < self.limit

    def increment_prompt_count(self) -> bool:
        """Count one prompt. False when the cap is reached or the count can't be stored."""
        if not self.can_use_prompt():
            return False
        self.profile.monthly_prompt_count += 1
        try:
            self.db.upsert_user_profile(self.profile)
        except PersistenceFailure as e:
            self.profile.monthly_prompt_count -= 1
            logger.error(f"Error incrementing prompt count: {e}")
            return False
        return True

"""
Practice history list plus the daily goal built on top of it
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional

from database import StorageKeys
from errors import CacheCorrupt, ValidationError
from components.gateway.models import PracticeHistoryRecord
from components.progress.analytics import local_day, local_today, score_band
from components.progress.config import GOAL
from components.progress.time_ago import format_date_time, format_time_ago

logger = logging.getLogger(__name__)


class HistoryManager:
    """List, delete one, or clear the user's practice history.

    Keeps the last loaded list so a deletion can be reflected without a reload.
    """

    def __init__(self, api):
        self.api = api
        self.records: List[PracticeHistoryRecord] = []

    async def list(self) -> List[PracticeHistoryRecord]:
        """
        Load the history, newest first as the server sends it

        Raises:
            NotAuthenticated / NetworkError / AuthExpired / ServerError
        """
        self.records = (await self.api.get_history()).unwrap()
        logger.info(f"Loaded {len(self.records)} history records")
        return self.records

    async def delete(self, record_id: str) -> List[PracticeHistoryRecord]:
        """Delete one record, returns the remaining list"""
        (await self.api.delete_history(record_id)).unwrap()
        self.records = [r for r in self.records if r.id != record_id]
        logger.info(f"Deleted history record {record_id}")
        return self.records

    async def clear(self) -> str:
        """Delete every record, returns the server's confirmation message"""
        result = await self.api.clear_history()
        result.unwrap()
        self.records = []
        logger.info("History cleared")
        return result.message or 'History cleared'

    async def practice_history(self) -> List[PracticeHistoryRecord]:
        """Practice records as the analytics and daily goal read them"""
        return (await self.api.get_practice_history()).unwrap()

    @staticmethod
    def label_for(record: PracticeHistoryRecord) -> str:
        return score_band(record.score).name

    @staticmethod
    def when_for(record: PracticeHistoryRecord, now: Optional[datetime] = None) -> str:
        """e.g. '5 minutes ago'"""
        return format_time_ago(record.created_at, now=now)

    @staticmethod
    def date_for(record: PracticeHistoryRecord, tz: Optional[tzinfo] = None) -> str:
        """e.g. 'Jan 15, 2024 at 3:45 PM'"""
        return format_date_time(record.created_at, tz=tz)


def today_count(records: Iterable[PracticeHistoryRecord], today: Optional[date] = None,
                tz: Optional[tzinfo] = None) -> int:
    """Number of practices created today (local calendar day)"""
    if today is None:
        today = local_today(tz)
    return sum(1 for r in records if r.created_at is not None and local_day(r.created_at, tz) == today)


@dataclass(frozen=True)
class GoalProgress:
    goal: int
    done: int

    @property
    def remaining(self) -> int:
        return max(0, self.goal - self.done)

    @property
    def achieved(self) -> bool:
        return self.done >= self.goal

    @property
    def percent(self) -> int:
        return min(100, int(self.done * 100 / self.goal)) if self.goal else 0


class DailyGoal:
    """Daily practice goal, persisted as a plain integer"""

    def __init__(self, store):
        self.store = store

    async def get(self) -> int:
        try:
            value = await self.store.get_data(StorageKeys.DAILY_GOAL)
        except CacheCorrupt:
            logger.warning("Stored daily goal is corrupt, using the default")
            return GOAL.DEFAULT_GOAL
        if value not in GOAL.CHOICES:
            return GOAL.DEFAULT_GOAL
        return value

    async def set(self, goal: int) -> int:
        if isinstance(goal, bool) or goal not in GOAL.CHOICES:
            choices = ', '.join(str(c) for c in GOAL.CHOICES)
            raise ValidationError('Invalid Goal', f"Daily goal must be one of {choices}")
        await self.store.save_data(StorageKeys.DAILY_GOAL, goal)
        logger.info(f"Daily goal set to {goal}")
        return goal

    @staticmethod
    def minutes_hint(goal: int) -> int:
        return goal * GOAL.MINUTES_PER_PRACTICE

    async def progress(self, done_today: int) -> GoalProgress:
        """Goal progress given the number of practices done today"""
        return GoalProgress(goal=await self.get(), done=done_today)

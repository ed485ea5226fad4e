"""
Progress data loading: history driven analytics plus the server's own reports
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import List, Optional

from errors import LinguaKuError
from components.gateway.models import (
    PracticeHistoryRecord, RecentActivity, UserStatistics, WeeklyInsight, WeeklyPerformanceBucket
)
from .analytics import (
    WeeklySummary, compute_insight_from_history, compute_weekly_performance,
    current_streak, local_today, summarize
)
from .config import WINDOW_DAYS

logger = logging.getLogger(__name__)


@dataclass
class ProgressReport:
    buckets: List[WeeklyPerformanceBucket]
    summary: WeeklySummary
    insight: Optional[WeeklyInsight]
    streak: int = 0
    recent: List[RecentActivity] = field(default_factory=list)


class ProgressService:
    """Loads what the progress view shows"""

    def __init__(self, api, auth_store, window_days: int = WINDOW_DAYS, tz: Optional[tzinfo] = None):
        self.api = api
        self.auth_store = auth_store
        self.window_days = window_days
        self.tz = tz

    async def load(self, today: Optional[date] = None) -> ProgressReport:
        """
        Fetch practice history and derive buckets, summary, insight and streak.

        Raises:
            NotAuthenticated / NetworkError / AuthExpired / ServerError
        """
        records: List[PracticeHistoryRecord] = (await self.api.get_practice_history()).unwrap()
        return self.build_report(records, today)

    def build_report(self, records: List[PracticeHistoryRecord],
                     today: Optional[date] = None) -> ProgressReport:
        if today is None:
            today = local_today(self.tz)
        buckets = compute_weekly_performance(records, self.window_days, today, self.tz)
        report = ProgressReport(
            buckets=buckets,
            summary=summarize(buckets),
            insight=compute_insight_from_history(records, self.window_days, today, self.tz),
            streak=current_streak(records, today, self.tz)
        )
        logger.info(f"Progress: {report.summary.total_practices} practices, "
                    f"average {report.summary.average_score}, {report.summary.days_active} days active")
        return report

    async def _optional(self, coro, default, what: str):
        """Await an API call, falling back to default when it fails"""
        try:
            result = await coro
        except LinguaKuError as e:
            logger.error(f"Load {what} error: {e!r}")
            return default
        if not result.ok:
            logger.error(f"Failed to load {what}: {result.message}")
            return default
        return result.data if result.data is not None else default

    async def load_server_reports(self) -> ProgressReport:
        """
        Load the server-computed weekly performance, insight and recent
        activity in parallel. Each part falls back to empty on failure.

        Raises:
            NotAuthenticated: no token stored
        """
        await self.auth_store.require_token()
        buckets, insight, recent = await asyncio.gather(
            self._optional(self.api.get_weekly_performance(), [], 'weekly performance'),
            self._optional(self.api.get_weekly_insight(), None, 'weekly insight'),
            self._optional(self.api.get_recent_activity(limit=3), [], 'recent activity'),
        )
        return ProgressReport(buckets=buckets, summary=summarize(buckets), insight=insight,
                              streak=summarize(buckets).days_active, recent=recent)

    async def load_statistics(self) -> UserStatistics:
        """Profile card numbers (total practices, average score, day streak)"""
        return (await self.api.get_statistics()).unwrap()

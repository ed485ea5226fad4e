"""
Weekly progress analytics derived from raw practice history
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional

from components.gateway.models import PracticeHistoryRecord, WeeklyInsight, WeeklyPerformanceBucket
from .config import DAY_NAMES, NO_DATA_COLOR, SCORE_BANDS, WINDOW_DAYS, ScoreBand


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (x.5 goes up, not to even)"""
    return int(math.floor(value + 0.5))


def local_today(tz: Optional[tzinfo] = None) -> date:
    if tz is not None:
        return datetime.now(tz).date()
    return datetime.now().astimezone().date()


def local_day(timestamp: datetime, tz: Optional[tzinfo] = None) -> date:
    """Truncate an aware timestamp to its calendar day in local time (or tz)"""
    return timestamp.astimezone(tz).date()


def window_dates(today: date, window_days: int = WINDOW_DAYS) -> List[date]:
    """window_days consecutive dates ending with today, oldest first"""
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


# ========================
# Bands
# ========================

def score_band(score: float) -> ScoreBand:
    """Excellent >= 90, Good >= 75, Fair >= 60, else Need Practice"""
    for band in SCORE_BANDS:
        if score >= band.min_score:
            return band
    return SCORE_BANDS[-1]


def score_label(score: float) -> str:
    return score_band(score).name


def bucket_color(bucket: WeeklyPerformanceBucket) -> str:
    """Color category of a bar, gray when nobody practiced that day"""
    if not bucket.active:
        return NO_DATA_COLOR
    return score_band(bucket.avg_score).color


# ========================
# Bucketing
# ========================

def compute_weekly_performance(records: Iterable[PracticeHistoryRecord],
                               window_days: int = WINDOW_DAYS,
                               today: Optional[date] = None,
                               tz: Optional[tzinfo] = None) -> List[WeeklyPerformanceBucket]:
    """
    Aggregate practice records into one bucket per calendar day.

    Args:
        records: Practice history, any order
        window_days: Length of the trailing window, today included
        today: Last day of the window (defaults to the local date)
        tz: Time zone used to truncate timestamps (defaults to local time)

    Returns:
        Exactly window_days buckets in chronological order. Days without
        practices have practice_count 0 and avg_score 0.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")
    if today is None:
        today = local_today(tz)

    days = window_dates(today, window_days)
    buckets: Dict[date, WeeklyPerformanceBucket] = {
        day: WeeklyPerformanceBucket(day=DAY_NAMES[day.weekday()], date=day.isoformat())
        for day in days
    }

    for record in records:
        if record.created_at is None:
            continue
        bucket = buckets.get(local_day(record.created_at, tz))
        if bucket is None:
            continue
        bucket.practice_count += 1
        bucket.total_score += record.score

    for bucket in buckets.values():
        if bucket.practice_count > 0:
            bucket.avg_score = round_half_up(bucket.total_score / bucket.practice_count)

    return [buckets[day] for day in days]


@dataclass(frozen=True)
class WeeklySummary:
    total_practices: int
    average_score: int
    highest_score: int
    days_active: int

    @property
    def streak(self) -> int:
        """Days active in the window (what the progress card labels a streak)"""
        return self.days_active


def _active(buckets: Iterable[WeeklyPerformanceBucket]) -> List[WeeklyPerformanceBucket]:
    return [b for b in buckets if b.practice_count > 0]


def average_score(buckets: Iterable[WeeklyPerformanceBucket]) -> Optional[int]:
    """Mean of avg_score over days with practices, None if there are none"""
    active = _active(buckets)
    if not active:
        return None
    return round_half_up(sum(b.avg_score for b in active) / len(active))


def summarize(buckets: List[WeeklyPerformanceBucket]) -> WeeklySummary:
    """
    Summary statistics of a bucket sequence.

    Days without practices are left out of the average instead of counting
    as zero.
    """
    active = _active(buckets)
    return WeeklySummary(
        total_practices=sum(b.practice_count for b in buckets),
        average_score=average_score(active) or 0,
        highest_score=max([b.avg_score for b in buckets] + [0]),
        days_active=len(active)
    )


# ========================
# Insight
# ========================

BAND_MESSAGES = {
    'Excellent': "Outstanding pronunciation this week! Keep up the great work.",
    'Good': "Great job this week! Your pronunciation is clear and steady.",
    'Fair': "Good effort! A few more sessions will push your score higher.",
    'Need Practice': "Keep practicing! Focus on the words you missed to improve.",
}

NO_DATA_MESSAGE = "No practice this week yet. Start a session to get your weekly insight!"


def compute_insight(current_week: List[WeeklyPerformanceBucket],
                    prior_week: List[WeeklyPerformanceBucket]) -> WeeklyInsight:
    """
    Compare this window's average score with the previous window's.

    improvement is this average minus the prior one. When the prior window
    has no practices it is reported as 0 and hidden.
    """
    this_avg = average_score(current_week)
    if this_avg is None:
        return WeeklyInsight(message=NO_DATA_MESSAGE, color=NO_DATA_COLOR, improvement=0,
                             emoji='🎯', band=None, show_improvement=False)

    prior_avg = average_score(prior_week)
    improvement = this_avg - prior_avg if prior_avg is not None else 0
    band = score_band(this_avg)
    return WeeklyInsight(
        message=BAND_MESSAGES[band.name],
        color=band.color,
        improvement=improvement,
        emoji=band.emoji,
        band=band.name,
        show_improvement=prior_avg is not None and improvement != 0
    )


def compute_insight_from_history(records: Iterable[PracticeHistoryRecord],
                                 window_days: int = WINDOW_DAYS,
                                 today: Optional[date] = None,
                                 tz: Optional[tzinfo] = None) -> WeeklyInsight:
    """Build the current and the preceding window from raw history and compare them"""
    records = list(records)
    if today is None:
        today = local_today(tz)
    current = compute_weekly_performance(records, window_days, today, tz)
    prior = compute_weekly_performance(records, window_days, today - timedelta(days=window_days), tz)
    return compute_insight(current, prior)


def current_streak(records: Iterable[PracticeHistoryRecord],
                   today: Optional[date] = None,
                   tz: Optional[tzinfo] = None) -> int:
    """
    Consecutive days with at least one practice, ending today.

    A streak that ended yesterday still counts, the user has until the end
    of today to extend it.
    """
    if today is None:
        today = local_today(tz)
    days = {local_day(r.created_at, tz) for r in records if r.created_at is not None}

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak

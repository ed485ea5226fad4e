"""
Tests for weekly progress analytics
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from components.gateway.models import PracticeHistoryRecord, WeeklyPerformanceBucket
from components.progress.analytics import (
    average_score, bucket_color, compute_insight, compute_insight_from_history,
    compute_weekly_performance, current_streak, round_half_up, score_label, summarize
)
from components.progress.config import NO_DATA_COLOR

UTC = timezone.utc
TODAY = date(2024, 1, 15)  # a Monday


def practice(day: date, score: int, hour: int = 12) -> PracticeHistoryRecord:
    created = datetime(day.year, day.month, day.day, hour, tzinfo=UTC)
    return PracticeHistoryRecord(id=f'{day}-{hour}-{score}', material_id='m1', material_title='Greetings',
                                 item_text='Good morning', transcript='good morning', score=score,
                                 created_at=created)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def buckets_from(counts, scores):
    return [WeeklyPerformanceBucket(day=str(i), practice_count=c, avg_score=s)
            for i, (c, s) in enumerate(zip(counts, scores))]


def test_window_has_one_bucket_per_day_without_gaps():
    buckets = compute_weekly_performance([], window_days=7, today=TODAY, tz=UTC)

    assert len(buckets) == 7
    assert [b.date for b in buckets] == [days_ago(n).isoformat() for n in range(6, -1, -1)]
    assert buckets[-1].day == 'Mon'
    assert buckets[0].day == 'Tue'
    assert all(b.practice_count == 0 and b.avg_score == 0 for b in buckets)


def test_records_are_averaged_per_day():
    records = [
        practice(TODAY, 80, hour=8), practice(TODAY, 91, hour=20),
        practice(days_ago(2), 70),
        practice(days_ago(7), 100),   # just outside the window
        practice(TODAY + timedelta(days=1), 100),  # future
    ]
    buckets = compute_weekly_performance(records, today=TODAY, tz=UTC)

    assert buckets[-1].practice_count == 2
    assert buckets[-1].avg_score == 86  # 85.5 rounds up
    assert buckets[-3].avg_score == 70
    assert sum(b.practice_count for b in buckets) == 3


def test_days_are_cut_in_the_given_time_zone():
    jakarta = timezone(timedelta(hours=7))
    late_utc = PracticeHistoryRecord(id='x', material_id='m', material_title='', item_text='', transcript='',
                                     score=60, created_at=datetime(2024, 1, 14, 20, tzinfo=UTC))

    in_utc = compute_weekly_performance([late_utc], today=TODAY, tz=UTC)
    in_jakarta = compute_weekly_performance([late_utc], today=TODAY, tz=jakarta)

    assert in_utc[-2].practice_count == 1
    assert in_jakarta[-1].practice_count == 1


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        compute_weekly_performance([], window_days=0, today=TODAY)


def test_average_excludes_empty_days():
    buckets = buckets_from([2, 0, 1, 0, 0, 0, 0], [80, 0, 100, 0, 0, 0, 0])
    summary = summarize(buckets)

    assert summary.average_score == 90
    assert summary.total_practices == 3
    assert summary.highest_score == 100
    assert summary.days_active == 2
    assert summary.streak == 2


def test_summary_of_empty_week():
    summary = summarize(buckets_from([0] * 7, [0] * 7))
    assert summary.average_score == 0
    assert summary.highest_score == 0
    assert average_score(buckets_from([0] * 7, [0] * 7)) is None


@pytest.mark.parametrize('score, label', [
    (100, 'Excellent'), (90, 'Excellent'), (89, 'Good'), (75, 'Good'),
    (74, 'Fair'), (60, 'Fair'), (59, 'Need Practice'), (0, 'Need Practice'),
])
def test_band_boundaries(score, label):
    assert score_label(score) == label


def test_empty_bucket_is_gray():
    assert bucket_color(WeeklyPerformanceBucket(day='Mon')) == NO_DATA_COLOR
    assert bucket_color(WeeklyPerformanceBucket(day='Mon', practice_count=1, avg_score=95)) == 'green'


def test_round_half_up():
    assert round_half_up(85.5) == 86
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84


def test_insight_reports_improvement():
    current = buckets_from([1, 1, 0, 0, 0, 0, 0], [80, 90, 0, 0, 0, 0, 0])
    prior = buckets_from([1, 0, 0, 0, 0, 0, 0], [70, 0, 0, 0, 0, 0, 0])

    insight = compute_insight(current, prior)

    assert insight.improvement == 15
    assert insight.band == 'Good'
    assert insight.color == 'blue'
    assert insight.show_improvement


def test_insight_without_prior_week_hides_improvement():
    current = buckets_from([1, 0, 0, 0, 0, 0, 0], [55, 0, 0, 0, 0, 0, 0])
    insight = compute_insight(current, buckets_from([0] * 7, [0] * 7))

    assert insight.improvement == 0
    assert not insight.show_improvement
    assert insight.band == 'Need Practice'


def test_insight_without_any_data():
    empty = buckets_from([0] * 7, [0] * 7)
    insight = compute_insight(empty, empty)
    assert insight.band is None
    assert insight.color == NO_DATA_COLOR


def test_insight_from_history_uses_preceding_window():
    records = [practice(TODAY, 92), practice(days_ago(8), 80)]
    insight = compute_insight_from_history(records, today=TODAY, tz=UTC)
    assert insight.improvement == 12
    assert insight.band == 'Excellent'


def test_streak_counts_consecutive_days():
    records = [practice(TODAY, 80), practice(days_ago(1), 80), practice(days_ago(2), 80),
               practice(days_ago(4), 80)]
    assert current_streak(records, today=TODAY, tz=UTC) == 3


def test_streak_survives_until_end_of_today():
    records = [practice(days_ago(1), 80), practice(days_ago(2), 80)]
    assert current_streak(records, today=TODAY, tz=UTC) == 2
    assert current_streak([practice(days_ago(2), 80)], today=TODAY, tz=UTC) == 0

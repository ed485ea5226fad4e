"""
Configuration constants for progress analytics.

Score bands, their colors and the weekly window live here so the bar
chart, the labels and the weekly insight all agree.
"""

from dataclasses import dataclass
from typing import Final


# =============================================================================
# WINDOW
# =============================================================================

# Days in one analytics window (trailing, today included)
WINDOW_DAYS: Final[int] = 7

DAY_NAMES: Final[tuple] = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')


# =============================================================================
# SCORE BANDS
# =============================================================================

@dataclass(frozen=True)
class ScoreBand:
    """A named score range, first match from the top wins."""

    name: str
    min_score: int
    color: str
    hex_color: str
    emoji: str


EXCELLENT = ScoreBand('Excellent', 90, 'green', '#10B981', '🏆')
GOOD = ScoreBand('Good', 75, 'blue', '#3B82F6', '👍')
FAIR = ScoreBand('Fair', 60, 'orange', '#F59E0B', '💪')
NEED_PRACTICE = ScoreBand('Need Practice', 0, 'red', '#EF4444', '📚')

# Descending order
SCORE_BANDS: Final[tuple] = (EXCELLENT, GOOD, FAIR, NEED_PRACTICE)

# Buckets without practices are drawn gray, not as a zero score
NO_DATA_COLOR: Final[str] = 'gray'
NO_DATA_HEX: Final[str] = '#CBD5E1'


# =============================================================================
# DAILY GOAL
# =============================================================================

@dataclass(frozen=True)
class GoalConfig:
    """Daily practice goal settings."""

    DEFAULT_GOAL: int = 5

    # Choices offered in settings
    CHOICES: tuple = (1, 3, 5, 10, 15, 20)

    # Rough minutes one practice takes, for the "~N min/day" hint
    MINUTES_PER_PRACTICE: int = 2


GOAL = GoalConfig()

"""
Configuration constants for the remote gateway.

Base URLs, timeouts and endpoint paths used by the API client.
"""

from dataclasses import dataclass
from typing import Final


# =============================================================================
# ENVIRONMENTS
# =============================================================================

DEV_API_URL: Final[str] = 'http://192.168.1.17:5000/api'
PROD_API_URL: Final[str] = 'https://linguaku-backend-production.up.railway.app/api'


def default_api_url(environment: str) -> str:
    """Pick the base URL for an environment name"""
    return PROD_API_URL if environment == 'production' else DEV_API_URL


# =============================================================================
# TIMEOUT / RETRY
# =============================================================================

@dataclass(frozen=True)
class RequestConfig:
    """Timeout and retry defaults for every request."""

    # Hard timeout per attempt, slow mobile connections need the headroom
    TIMEOUT_SECONDS: float = 30.0

    # Extra attempts after the first one fails with a timeout / transport error
    RETRIES: int = 2

    # Backoff before retry n is BACKOFF_STEP_SECONDS * n
    BACKOFF_STEP_SECONDS: float = 1.0

    # Delay before the practice session's own automatic re-submission
    ANALYZE_RETRY_DELAY_SECONDS: float = 1.0


REQUEST = RequestConfig()


# =============================================================================
# ENDPOINTS
# =============================================================================

class Endpoints:
    """API paths relative to the base URL."""

    # Auth
    LOGIN: Final[str] = '/auth/login'
    REGISTER: Final[str] = '/auth/register'
    FORGOT_PASSWORD: Final[str] = '/auth/forgot-password'
    RESEND_VERIFICATION: Final[str] = '/auth/resend-verification'

    # User
    USER_PROFILE: Final[str] = '/user/profile'
    USER_STATISTICS: Final[str] = '/user/statistics'
    CHANGE_PASSWORD: Final[str] = '/user/change-password'

    # Materials
    MATERIALS: Final[str] = '/materials'

    # Practice
    PRACTICE_ANALYZE: Final[str] = '/practice/analyze'
    PRACTICE_HISTORY: Final[str] = '/practice/history'
    WEEKLY_PERFORMANCE: Final[str] = '/practice/weekly-performance'
    WEEKLY_INSIGHT: Final[str] = '/practice/weekly-insight'
    RECENT_ACTIVITY: Final[str] = '/practice/recent'

    # History
    HISTORY: Final[str] = '/history'
    CLEAR_HISTORY: Final[str] = '/history/clear'

    # Health
    HEALTH: Final[str] = '/health'

    @staticmethod
    def reset_password(token: str) -> str:
        return f'/auth/reset-password/{token}'

    @staticmethod
    def practice(practice_id: str) -> str:
        return f'/practice/{practice_id}'

    @staticmethod
    def history_entry(history_id: str) -> str:
        return f'/history/{history_id}'

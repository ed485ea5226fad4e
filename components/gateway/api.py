"""
API client for the LinguaKu pronunciation backend
"""
import logging
from typing import Optional

from .config import Endpoints
from .gateway import RemoteGateway
from .models import (
    PracticeHistoryRecord, PracticeMaterial, PracticeResult, RecentActivity,
    UserProfile, UserStatistics, WeeklyInsight, WeeklyPerformanceBucket
)
from .result import SERVER_ERROR, ApiResult, Err, map_ok

logger = logging.getLogger(__name__)


def _practice_result(result: ApiResult) -> ApiResult:
    data = result.data if isinstance(result.data, dict) else {}
    if not isinstance(data.get('result'), dict):
        return Err(SERVER_ERROR, result.message or "Analysis failed - no result returned",
                   payload=result.payload)
    return map_ok(result, lambda d: PracticeResult.from_dict(d['result']))


class LinguaKuAPIClient:
    """Typed endpoints on top of the remote gateway.

    Every method returns an ApiResult whose Ok data is already converted
    into the matching model.
    """

    def __init__(self, gateway: RemoteGateway):
        self.gateway = gateway

    async def close(self):
        await self.gateway.close()

    # ==================== Auth ====================

    async def login(self, email: str, password: str) -> ApiResult:
        """Ok data: {'token': str, 'user': dict}"""
        return await self.gateway.post(Endpoints.LOGIN, json={'email': email, 'password': password})

    async def register(self, name: str, email: str, password: str) -> ApiResult:
        """Ok payload may carry requiresVerification"""
        payload = {'name': name, 'email': email, 'password': password}
        return await self.gateway.post(Endpoints.REGISTER, json=payload)

    async def forgot_password(self, email: str) -> ApiResult:
        return await self.gateway.post(Endpoints.FORGOT_PASSWORD, json={'email': email})

    async def reset_password(self, token: str, password: str) -> ApiResult:
        return await self.gateway.post(Endpoints.reset_password(token), json={'password': password})

    async def resend_verification(self, email: str) -> ApiResult:
        return await self.gateway.post(Endpoints.RESEND_VERIFICATION, json={'email': email})

    # ==================== User ====================

    async def get_profile(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.USER_PROFILE, auth=True)
        return map_ok(result, UserProfile.from_dict)

    async def update_profile(self, name: str) -> ApiResult:
        """Ok data is the updated user (older servers put it under 'user')"""
        result = await self.gateway.put(Endpoints.USER_PROFILE, json={'name': name}, auth=True)
        if result.ok and result.data is None and isinstance(result.payload.get('user'), dict):
            return map_ok(result, lambda _: UserProfile.from_dict(result.payload['user']))
        return map_ok(result, lambda data: UserProfile.from_dict(data or {}))

    async def change_password(self, current_password: str, new_password: str) -> ApiResult:
        payload = {'currentPassword': current_password, 'newPassword': new_password}
        return await self.gateway.put(Endpoints.CHANGE_PASSWORD, json=payload, auth=True)

    async def get_statistics(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.USER_STATISTICS, auth=True)
        return map_ok(result, lambda data: UserStatistics.from_dict(data or {}))

    # ==================== Materials ====================

    async def get_materials(self) -> ApiResult:
        """List all practice materials (no auth required)"""
        result = await self.gateway.get(Endpoints.MATERIALS)
        return map_ok(result, lambda data: [PracticeMaterial.from_dict(m) for m in (data or [])])

    # ==================== Practice ====================

    async def analyze_practice(self, recognized_text: str, material_id: str,
                               retries: Optional[int] = None) -> ApiResult:
        """Send recognized speech for scoring, Ok data is a PracticeResult"""
        payload = {'recognizedText': recognized_text, 'materialId': material_id}
        result = await self.gateway.post(Endpoints.PRACTICE_ANALYZE, json=payload, auth=True, retries=retries)
        if not result.ok:
            return result
        return _practice_result(result)

    async def get_practice_history(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.PRACTICE_HISTORY, auth=True)
        return map_ok(result, lambda data: [PracticeHistoryRecord.from_dict(r) for r in (data or [])])

    async def delete_practice(self, practice_id: str) -> ApiResult:
        return await self.gateway.delete(Endpoints.practice(practice_id), auth=True)

    async def get_weekly_performance(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.WEEKLY_PERFORMANCE, auth=True)
        return map_ok(result, lambda data: [WeeklyPerformanceBucket.from_dict(b) for b in (data or [])])

    async def get_weekly_insight(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.WEEKLY_INSIGHT, auth=True)
        return map_ok(result, lambda data: WeeklyInsight.from_dict(data) if data else None)

    async def get_recent_activity(self, limit: int = 3) -> ApiResult:
        result = await self.gateway.get(Endpoints.RECENT_ACTIVITY, params={'limit': str(limit)}, auth=True)
        return map_ok(result, lambda data: [RecentActivity.from_dict(a) for a in (data or [])])

    # ==================== History ====================

    async def get_history(self) -> ApiResult:
        result = await self.gateway.get(Endpoints.HISTORY, auth=True)
        return map_ok(result, lambda data: [PracticeHistoryRecord.from_dict(r) for r in (data or [])])

    async def delete_history(self, history_id: str) -> ApiResult:
        return await self.gateway.delete(Endpoints.history_entry(history_id), auth=True)

    async def clear_history(self) -> ApiResult:
        return await self.gateway.delete(Endpoints.CLEAR_HISTORY, auth=True)

    # ==================== Health ====================

    async def health(self) -> ApiResult:
        return await self.gateway.get(Endpoints.HEALTH, retries=0)

"""
Process-wide auth state, passed explicitly to the components that need it
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from database import StorageKeys
from errors import CacheCorrupt, NotAuthenticated
from components.gateway.models import UserProfile

if TYPE_CHECKING:
    from components.gateway.api import LinguaKuAPIClient

logger = logging.getLogger(__name__)


class AuthStore:
    """Reads and writes the auth token and cached user profile.

    Token and user are always written together in one store call so the
    token's presence never disagrees with the cached user.
    """

    def __init__(self, store):
        self.store = store

    async def _read(self, key: str) -> Any:
        try:
            return await self.store.get_data(key)
        except CacheCorrupt:
            logger.warning(f"Discarding corrupt value for '{key}'")
            return None

    async def get_token(self) -> Optional[str]:
        token = await self._read(StorageKeys.AUTH_TOKEN)
        return token if isinstance(token, str) and token else None

    async def require_token(self) -> str:
        """Return the token or raise NotAuthenticated"""
        token = await self.get_token()
        if token is None:
            raise NotAuthenticated("Please login again")
        return token

    async def get_user(self) -> Optional[UserProfile]:
        data = await self._read(StorageKeys.USER_DATA)
        return UserProfile.from_dict(data) if isinstance(data, dict) else None

    async def is_authenticated(self) -> bool:
        return await self.get_token() is not None

    async def set_session(self, token: str, user: dict) -> None:
        """Atomically replace token and user (login)"""
        await self.store.save_many({
            StorageKeys.AUTH_TOKEN: token,
            StorageKeys.USER_DATA: user,
        })
        logger.info("Auth session stored")

    async def update_user(self, user: dict) -> None:
        """Replace the cached user (profile update)"""
        await self.store.save_data(StorageKeys.USER_DATA, user)

    async def clear(self) -> None:
        """Remove token and user (logout)"""
        await self.store.remove_data(StorageKeys.AUTH_TOKEN, StorageKeys.USER_DATA)
        logger.info("Auth session cleared")


@dataclass(frozen=True)
class SessionContext:
    """Everything a component needs to talk to the backend on behalf of the user"""
    auth_store: AuthStore
    api: 'LinguaKuAPIClient'
    store: Any

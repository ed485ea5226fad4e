import asyncio
import logging
import os
from typing import Optional

from logger import setup_logging
from database import Database
from components.auth.service import AuthService
from components.auth.session_context import AuthStore, SessionContext
from components.gateway.api import LinguaKuAPIClient
from components.gateway.config import REQUEST, default_api_url
from components.gateway.gateway import RemoteGateway
from components.gateway.models import PracticeMaterial
from components.history.manager import DailyGoal, HistoryManager, today_count
from components.materials.cache import MaterialCache
from components.materials.catalog import MaterialCatalogLoader
from components.practice.recognition import SpeechRecognizer
from components.practice.session import PracticeSession
from components.progress.service import ProgressService

# environment variables
environment_name = os.getenv('ENVIRONMENT', 'development')
api_url = os.getenv('LINGUAKU_API_URL') or default_api_url(environment_name)
request_timeout = float(os.getenv('REQUEST_TIMEOUT', REQUEST.TIMEOUT_SECONDS))
request_retries = int(os.getenv('REQUEST_RETRIES', REQUEST.RETRIES))
database_url = os.getenv('DATABASE_URL')


class Config:
    ENVIRONMENT: str = environment_name
    API_URL: str = api_url
    REQUEST_TIMEOUT: float = request_timeout
    REQUEST_RETRIES: int = request_retries
    DATABASE_URL: Optional[str] = database_url


class LinguaKu:
    """Wires the store, gateway and components together for one user session"""

    def __init__(self, store=None, api_url: str = Config.API_URL,
                 timeout: float = Config.REQUEST_TIMEOUT, retries: int = Config.REQUEST_RETRIES):
        self.store = store if store is not None else Database(Config.DATABASE_URL)
        self.auth_store = AuthStore(self.store)
        self.gateway = RemoteGateway(api_url, self.auth_store, timeout=timeout, retries=retries)
        self.api = LinguaKuAPIClient(self.gateway)
        self.context = SessionContext(auth_store=self.auth_store, api=self.api, store=self.store)

        self.auth = AuthService(self.api, self.auth_store)
        self.catalog = MaterialCatalogLoader(self.api, MaterialCache(self.store))
        self.progress = ProgressService(self.api, self.auth_store)
        self.history = HistoryManager(self.api)
        self.daily_goal = DailyGoal(self.store)

    async def setup(self):
        """Open the store, the rest is lazy"""
        connect = getattr(self.store, 'connect', None)
        if connect is not None:
            await connect()
            logging.info("Store connected successfully")
        logging.info(f"Environment: {Config.ENVIRONMENT}, API: {self.gateway.base_url}")

    def practice_session(self, material: PracticeMaterial, recognizer: SpeechRecognizer,
                         item_index: int = 0, **kwargs) -> PracticeSession:
        return PracticeSession(material, self.context, recognizer, item_index=item_index, **kwargs)

    async def today_progress(self):
        """Daily goal progress from today's practice history"""
        records = await self.history.practice_history()
        return await self.daily_goal.progress(today_count(records))

    async def logout(self):
        self.catalog.close()
        await self.auth.logout()

    async def close(self):
        self.catalog.close()
        await self.api.close()
        close = getattr(self.store, 'close', None)
        if close is not None:
            await close()
        logging.info("LinguaKu closed")

    async def __aenter__(self) -> 'LinguaKu':
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def main():
    setup_logging()
    async with LinguaKu() as app:
        health = await app.api.health()
        logging.info(f"Backend health: {'ok' if health.ok else health.message}")

        def show(snapshot):
            state = 'stale' if snapshot.stale else 'fresh'
            logging.info(f"{len(snapshot.materials)} materials from {snapshot.source} ({state})")
            for level, materials in snapshot.grouped.items():
                logging.info(f"  {level}: {', '.join(m.title for m in materials)}")

        await app.catalog.load(show)


def run():
    asyncio.run(main())


if __name__ == '__main__':
    run()

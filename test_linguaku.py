"""
Tests for the application wiring
"""
import asyncio

from conftest import FakeRecognizer, MemoryStore, make_material
from database import StorageKeys
from components.practice.session import PracticeState
from linguaku import Config, LinguaKu


def test_config_has_defaults():
    assert Config.API_URL.endswith('/api')
    assert Config.REQUEST_TIMEOUT > 0
    assert Config.REQUEST_RETRIES >= 0


def test_components_share_one_auth_store():
    app = LinguaKu(store=MemoryStore(), api_url='http://backend.test/api/')

    assert app.gateway.base_url == 'http://backend.test/api'
    assert app.gateway.auth_store is app.auth_store
    assert app.context.auth_store is app.auth_store
    assert app.progress.auth_store is app.auth_store


def test_practice_session_uses_app_context():
    app = LinguaKu(store=MemoryStore(), api_url='http://backend.test/api')
    session = app.practice_session(make_material('m7'), FakeRecognizer())

    assert session.context is app.context
    assert session.state is PracticeState.IDLE


def test_logout_and_close():
    store = MemoryStore()
    store.seed(StorageKeys.AUTH_TOKEN, 'tok')
    store.seed(StorageKeys.USER_DATA, {'_id': 'u1', 'name': 'Ana', 'email': 'ana@example.com'})

    async def scenario():
        async with LinguaKu(store=store, api_url='http://backend.test/api') as app:
            await app.logout()
            return await app.auth_store.is_authenticated()

    assert asyncio.run(scenario()) is False
    assert StorageKeys.USER_DATA not in store.data

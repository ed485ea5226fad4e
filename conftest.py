"""
Shared fakes for the component tests: in-memory store, scripted recognizer
and a scripted API client.
"""
import asyncio
import json
from typing import Any, Dict, List

import pytest

from database import StorageKeys
from errors import CacheCorrupt
from components.auth.session_context import AuthStore, SessionContext
from components.gateway.models import PracticeMaterial, PracticeResult
from components.gateway.result import Ok
from components.practice.recognition import RecognitionOptions, SpeechRecognizer


class MemoryStore:
    """Same interface as database.Database, values kept as JSON text"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.writes = 0

    def seed(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)

    def seed_raw(self, key: str, text: str) -> None:
        self.data[key] = text

    async def get_data(self, key: str) -> Any:
        raw = self.data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheCorrupt(f"Stored value for '{key}' is not valid JSON") from e

    async def save_data(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)
        self.writes += 1

    async def save_many(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            self.data[key] = json.dumps(value)
        self.writes += 1

    async def remove_data(self, *keys: str) -> None:
        for key in keys:
            self.data.pop(key, None)

    async def clear_all(self) -> None:
        self.data.clear()


class FakeRecognizer(SpeechRecognizer):
    """Recognizer driven by the test through emit()"""

    def __init__(self, granted: bool = True, start_error: Exception = None):
        super().__init__()
        self.granted = granted
        self.start_error = start_error
        self.options: List[RecognitionOptions] = []
        self.stopped = 0
        self.aborted = 0

    async def request_permission(self) -> bool:
        return self.granted

    async def start(self, options: RecognitionOptions) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.options.append(options)

    async def stop(self) -> None:
        self.stopped += 1

    async def abort(self) -> None:
        self.aborted += 1

    def emit(self, *events) -> None:
        for event in events:
            self.events.publish(event)


class ScriptedAPI:
    """Stand-in for LinguaKuAPIClient.

    Each queued outcome is either an ApiResult to return or an exception to
    raise. Calls are recorded as (method, args).
    """

    def __init__(self):
        self.outcomes: Dict[str, list] = {}
        self.calls: List[tuple] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def queue(self, method: str, *outcomes) -> None:
        self.outcomes.setdefault(method, []).extend(outcomes)

    def gate(self, method: str) -> asyncio.Event:
        """Make the next calls of method wait until the returned event is set"""
        event = asyncio.Event()
        self.gates[method] = event
        return event

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def _call(self, method: str, *args):
        self.calls.append((method, args))
        if method in self.gates:
            await self.gates[method].wait()
        queued = self.outcomes.get(method)
        if not queued:
            raise AssertionError(f"No outcome queued for {method}")
        outcome = queued.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def __getattr__(self, name: str):
        if name.startswith('_'):
            raise AttributeError(name)

        async def method(*args, **kwargs):
            return await self._call(name, *args, *kwargs.values())
        return method


class FakeGateway:
    """Answers every request with one fixed result, records what was asked"""

    def __init__(self, result):
        self.result = result
        self.requests = []

    async def _record(self, method, endpoint, **kwargs):
        self.requests.append((method, endpoint, kwargs))
        return self.result

    async def get(self, endpoint, **kwargs):
        return await self._record('GET', endpoint, **kwargs)

    async def post(self, endpoint, **kwargs):
        return await self._record('POST', endpoint, **kwargs)

    async def put(self, endpoint, **kwargs):
        return await self._record('PUT', endpoint, **kwargs)

    async def delete(self, endpoint, **kwargs):
        return await self._record('DELETE', endpoint, **kwargs)

    async def close(self):
        pass


class RecordedSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_material(material_id: str = 'm1', level: str = 'Beginner', text: str = 'The quick brown fox',
                  title: str = None) -> PracticeMaterial:
    return PracticeMaterial.from_dict({
        '_id': material_id,
        'title': title or f'Material {material_id}',
        'category': 'Daily',
        'level': level,
        'items': [{'text': text}],
    })


def make_result(score: int = 88, transcription: str = 'the quick brown fox', mistakes=()) -> Ok:
    return Ok(PracticeResult(score=score, accuracy=score, transcription=transcription,
                             correct_words=4, total_words=4, mistake_words=tuple(mistakes)))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def logged_in_store(store):
    store.seed(StorageKeys.AUTH_TOKEN, 'token-123')
    store.seed(StorageKeys.USER_DATA, {'_id': 'u1', 'name': 'Ana', 'email': 'ana@example.com'})
    return store


@pytest.fixture
def api():
    return ScriptedAPI()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def sleep():
    return RecordedSleep()


@pytest.fixture
def context(logged_in_store, api):
    return SessionContext(auth_store=AuthStore(logged_in_store), api=api, store=logged_in_store)

"""
Tests for the practice session state machine
"""
import asyncio

import pytest

from conftest import FakeGateway, FakeRecognizer, make_material, make_result
from errors import (
    AuthExpired, EmptyTranscript, InvalidTransition, NetworkError, NotAuthenticated,
    PermissionDenied, RecognitionFailed, ServerError
)
from components.auth.session_context import AuthStore, SessionContext
from components.gateway.api import LinguaKuAPIClient
from components.gateway.result import AUTH_EXPIRED, SERVER_ERROR, Err, Ok
from components.practice.recognition import FinalResult, PartialResult, RecognitionEnd, RecognitionError
from components.practice.session import PracticeSession, PracticeState


def make_session(context, recognizer, sleep, **kwargs):
    return PracticeSession(make_material('m1', text='The quick brown fox'), context, recognizer,
                           sleep=sleep, **kwargs)


async def record(session, recognizer, *events):
    await session.start()
    recognizer.emit(*events)
    await session.stop()


def test_permission_denied_stays_idle(context, sleep):
    recognizer = FakeRecognizer(granted=False)
    session = make_session(context, recognizer, sleep)

    with pytest.raises(PermissionDenied):
        asyncio.run(session.start())

    assert session.state is PracticeState.IDLE
    assert recognizer.events.listener_count == 0
    assert recognizer.options == []


def test_recognizer_start_failure_errors_session(context, sleep):
    recognizer = FakeRecognizer(start_error=RuntimeError('no service'))
    session = make_session(context, recognizer, sleep)

    with pytest.raises(RecognitionFailed):
        asyncio.run(session.start())
    assert session.state is PracticeState.ERRORED
    assert recognizer.events.listener_count == 0


def test_start_passes_target_text_as_hint(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)
    asyncio.run(session.start())

    assert session.is_recording
    assert recognizer.options[0].contextual_strings == ('The quick brown fox',)
    assert recognizer.options[0].lang == 'en-US'


def test_latest_transcript_wins(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await session.start()
        recognizer.emit(PartialResult('the'), PartialResult('the quick'), PartialResult(''),
                        FinalResult('the quick brown fox '))
        assert session.transcript == 'the quick brown fox '
        recognizer.emit(RecognitionEnd())

    asyncio.run(scenario())
    assert session.state is PracticeState.RECOGNIZED
    assert session.transcript == 'the quick brown fox'
    assert recognizer.events.listener_count == 0


def test_events_after_stop_are_ignored(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)
    asyncio.run(record(session, recognizer, PartialResult('hello')))

    recognizer.events.publish(PartialResult('late text'))
    assert session.transcript == 'hello'
    assert recognizer.stopped == 1


def test_recognition_error_event(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await session.start()
        recognizer.emit(RecognitionError('no-speech', 'No speech detected'))

    asyncio.run(scenario())
    assert session.state is PracticeState.ERRORED
    assert isinstance(session.error, RecognitionFailed)
    assert session.error.code == 'no-speech'

    session.retry()
    assert session.state is PracticeState.IDLE


def test_empty_transcript_never_calls_api(context, recognizer, sleep, api):
    session = make_session(context, recognizer, sleep)
    asyncio.run(record(session, recognizer, PartialResult('   ')))

    assert not session.can_analyze
    with pytest.raises(EmptyTranscript):
        asyncio.run(session.analyze())
    assert session.state is PracticeState.RECOGNIZED
    assert api.calls == []


def test_missing_token_requires_login(store, api, recognizer, sleep):
    context = SessionContext(auth_store=AuthStore(store), api=api, store=store)
    session = make_session(context, recognizer, sleep)
    asyncio.run(record(session, recognizer, FinalResult('the quick brown fox')))

    with pytest.raises(NotAuthenticated):
        asyncio.run(session.analyze())
    assert session.state is PracticeState.RECOGNIZED
    assert api.calls == []


def test_successful_analysis(context, recognizer, sleep, api):
    api.queue('analyze_practice', make_result(score=75, transcription='the quick brown box',
                                              mistakes=['box']))
    changes = []
    session = make_session(context, recognizer, sleep, on_change=lambda s: changes.append(s.state))

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown box'))
        return await session.analyze()

    result = asyncio.run(scenario())

    assert result.score == 75
    assert session.state is PracticeState.COMPLETED
    assert api.calls == [('analyze_practice', ('the quick brown box', 'm1'))]
    assert PracticeState.ANALYZING in changes
    assert [h.status.value for h in session.highlights] == ['correct', 'correct', 'correct', 'missing']


def test_network_failure_is_retried_once(context, recognizer, sleep, api):
    api.queue('analyze_practice', NetworkError(NetworkError.TIMEOUT, 'timeout'), make_result(score=90))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        return await session.analyze()

    assert asyncio.run(scenario()).score == 90
    assert api.count('analyze_practice') == 2
    assert sleep.delays == [1.0]


def test_second_network_failure_errors_session(context, recognizer, sleep, api):
    api.queue('analyze_practice', NetworkError(NetworkError.TRANSPORT, 'down'),
              NetworkError(NetworkError.TRANSPORT, 'still down'))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    with pytest.raises(NetworkError):
        asyncio.run(scenario())
    assert session.state is PracticeState.ERRORED
    assert api.count('analyze_practice') == 2

    # retry keeps the transcript so it can be submitted again
    session.retry()
    assert session.state is PracticeState.RECOGNIZED
    assert session.transcript == 'the quick brown fox'


def test_auth_expired_is_not_retried(context, recognizer, sleep, api):
    api.queue('analyze_practice', Err(AUTH_EXPIRED, 'Token expired', 401))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    with pytest.raises(AuthExpired):
        asyncio.run(scenario())
    assert session.state is PracticeState.ERRORED
    assert session.requires_login
    assert api.count('analyze_practice') == 1
    assert sleep.delays == []


def test_server_error_surfaces(context, recognizer, sleep, api):
    api.queue('analyze_practice', Err(SERVER_ERROR, 'Analysis failed', 500))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    with pytest.raises(ServerError) as exc:
        asyncio.run(scenario())
    assert exc.value.message == 'Analysis failed'
    assert not session.requires_login


def test_unreadable_result_errors_session(logged_in_store, recognizer, sleep):
    api = LinguaKuAPIClient(FakeGateway(Ok({'result': {'score': None}})))
    context = SessionContext(auth_store=AuthStore(logged_in_store), api=api, store=logged_in_store)
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    with pytest.raises(ServerError):
        asyncio.run(scenario())
    assert session.state is PracticeState.ERRORED
    assert sleep.delays == []

    session.retry()
    assert session.state is PracticeState.RECOGNIZED
    assert session.transcript == 'the quick brown fox'


def test_unexpected_exception_errors_session(context, recognizer, sleep, api):
    api.queue('analyze_practice', RuntimeError('boom'))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    with pytest.raises(ServerError):
        asyncio.run(scenario())
    assert session.state is PracticeState.ERRORED
    assert api.count('analyze_practice') == 1

    session.reset()
    assert session.state is PracticeState.IDLE


def test_reset_starts_over(context, recognizer, sleep, api):
    api.queue('analyze_practice', make_result())
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        await session.analyze()

    asyncio.run(scenario())
    session.reset()

    assert session.state is PracticeState.IDLE
    assert session.transcript == ''
    assert session.result is None
    assert session.highlights == []


def test_invalid_transitions_are_refused(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)
    with pytest.raises(InvalidTransition):
        asyncio.run(session.analyze())
    with pytest.raises(InvalidTransition):
        session.retry()


def test_close_discards_pending_analysis(context, recognizer, sleep, api):
    api.queue('analyze_practice', make_result(score=99))
    session = make_session(context, recognizer, sleep)

    async def scenario():
        await record(session, recognizer, FinalResult('the quick brown fox'))
        gate = api.gate('analyze_practice')
        task = asyncio.create_task(session.analyze())
        while api.count('analyze_practice') == 0:
            await asyncio.sleep(0)
        await session.close()
        gate.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert session.closed
    assert session.state is PracticeState.IDLE
    assert session.result is None


def test_close_while_recording_aborts(context, recognizer, sleep):
    session = make_session(context, recognizer, sleep)

    async def scenario():
        async with session:
            await session.start()

    asyncio.run(scenario())
    assert recognizer.aborted == 1
    assert recognizer.events.listener_count == 0
    with pytest.raises(InvalidTransition):
        asyncio.run(session.start())

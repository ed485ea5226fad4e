"""
Practice Session State Management
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from errors import (
    AuthExpired, EmptyTranscript, InvalidTransition, LinguaKuError, NotAuthenticated,
    PermissionDenied, RecognitionFailed, ServerError
)
from components.auth.session_context import SessionContext
from components.common.generation import Generation
from components.gateway.config import REQUEST
from components.gateway.gateway import is_network_error
from components.gateway.models import PracticeMaterial, PracticeResult
from components.gateway.retry import RetryPolicy, constant_backoff
from .highlight import WordHighlight, classify_words
from .recognition import (
    FinalResult, PartialResult, RecognitionEnd, RecognitionError, RecognitionEvent,
    RecognitionOptions, SpeechRecognizer, Subscription
)

logger = logging.getLogger(__name__)


class PracticeState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    RECOGNIZED = "recognized"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERRORED = "errored"


class PracticeSession:
    """One pronunciation attempt against a material.

    Idle -> Recording -> Recognized -> Analyzing -> Completed, with Errored
    reachable from Recording and Analyzing. reset() starts over on the same
    material, close() tears the session down when the screen goes away.
    """

    def __init__(self, material: PracticeMaterial, context: SessionContext,
                 recognizer: SpeechRecognizer, item_index: int = 0,
                 retry_delay: float = REQUEST.ANALYZE_RETRY_DELAY_SECONDS,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 on_change: Optional[Callable[['PracticeSession'], None]] = None):
        self.material = material
        self.context = context
        self.recognizer = recognizer
        if material.items and 0 <= item_index < len(material.items):
            self.target_text = material.items[item_index].text
        else:
            self.target_text = material.text
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.on_change = on_change

        self.state = PracticeState.IDLE
        self.transcript = ''
        self.result: Optional[PracticeResult] = None
        self.error: Optional[LinguaKuError] = None
        self.closed = False

        self._generation = Generation()
        self._subscription: Optional[Subscription] = None
        self._failed_during_analysis = False

    # ========================
    # State helpers
    # ========================

    def _set_state(self, state: PracticeState) -> None:
        if state is not self.state:
            logger.debug(f"Practice session {self.material.id}: {self.state.value} -> {state.value}")
            self.state = state
        if self.on_change:
            self.on_change(self)

    def _require(self, *states: PracticeState) -> None:
        if self.closed:
            raise InvalidTransition("Practice session is closed")
        if self.state not in states:
            allowed = ', '.join(s.value for s in states)
            raise InvalidTransition(f"Cannot do that while {self.state.value} (needs {allowed})")

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _fail(self, error: LinguaKuError, during_analysis: bool) -> None:
        self.error = error
        self._failed_during_analysis = during_analysis
        self._set_state(PracticeState.ERRORED)

    @property
    def is_recording(self) -> bool:
        return self.state is PracticeState.RECORDING

    @property
    def can_analyze(self) -> bool:
        """Analysis is only allowed on a non-empty recognized transcript"""
        return self.state is PracticeState.RECOGNIZED and bool(self.transcript.strip())

    @property
    def requires_login(self) -> bool:
        """The session failed because the login expired"""
        return isinstance(self.error, (AuthExpired, NotAuthenticated))

    @property
    def highlights(self) -> List[WordHighlight]:
        if self.result is None:
            return []
        return classify_words(self.target_text, self.result)

    # ========================
    # Recording
    # ========================

    async def start(self) -> None:
        """
        Ask for microphone permission and start listening.

        Raises:
            PermissionDenied: access refused, the session stays idle
            RecognitionFailed: the recognizer could not be started
        """
        self._require(PracticeState.IDLE, PracticeState.RECOGNIZED)
        token = self._generation.begin()
        self.transcript = ''
        self.result = None
        self.error = None

        try:
            granted = await self.recognizer.request_permission()
        except Exception as e:
            logger.error(f"Permission request failed: {e}", exc_info=True)
            raise PermissionDenied("Please allow microphone access") from e
        if not self._generation.is_current(token):
            return
        if not granted:
            logger.info("Microphone permission denied")
            self._set_state(PracticeState.IDLE)
            raise PermissionDenied("Please allow microphone access")

        self._subscription = self.recognizer.events.subscribe(self._handle_event)
        self._set_state(PracticeState.RECORDING)
        options = RecognitionOptions(contextual_strings=(self.target_text,))
        try:
            await self.recognizer.start(options)
        except Exception as e:
            logger.error(f"Failed to start speech recognition: {e}", exc_info=True)
            self._unsubscribe()
            error = RecognitionFailed(
                "Failed to start speech recognition. Make sure you have internet connection.")
            if self._generation.is_current(token):
                self._fail(error, during_analysis=False)
            raise error from e
        logger.info(f"Speech recognition started for material {self.material.id}")

    def _handle_event(self, event: RecognitionEvent) -> None:
        """Apply one recognizer event, in delivery order"""
        if self.state is not PracticeState.RECORDING:
            logger.debug(f"Ignoring {type(event).__name__} while {self.state.value}")
            return

        if isinstance(event, (PartialResult, FinalResult)):
            if event.text:
                self.transcript = event.text
                if self.on_change:
                    self.on_change(self)
        elif isinstance(event, RecognitionEnd):
            self._finish_recording()
        elif isinstance(event, RecognitionError):
            logger.warning(f"Speech recognition error {event.code}: {event.message}")
            self._unsubscribe()
            self._fail(RecognitionFailed(
                event.message or "Failed to recognize speech. Please try again.", code=event.code),
                during_analysis=False)

    def _finish_recording(self) -> None:
        if self.state is not PracticeState.RECORDING:
            return
        self._unsubscribe()
        self.transcript = self.transcript.strip()
        self._set_state(PracticeState.RECOGNIZED)

    async def stop(self) -> None:
        """Stop listening and keep the latest transcript"""
        if self.state is not PracticeState.RECORDING:
            return
        try:
            await self.recognizer.stop()
        except Exception as e:
            # the transcript gathered so far is still usable
            logger.error(f"Failed to stop speech recognition: {e}", exc_info=True)
        self._finish_recording()

    # ========================
    # Analysis
    # ========================

    async def analyze(self) -> Optional[PracticeResult]:
        """
        Send the transcript for scoring.

        Network failures are retried once automatically, other failures are
        not. Any failure leaves the session errored and is re-raised.

        Returns:
            The result, or None if the session was closed while waiting

        Raises:
            EmptyTranscript: nothing was recognized (state unchanged)
            NotAuthenticated: no token stored (state unchanged)
            NetworkError / AuthExpired / ServerError: analysis failed
        """
        self._require(PracticeState.RECOGNIZED)
        if not self.transcript.strip():
            raise EmptyTranscript("No speech recognized. Please try recording again.")
        if not await self.context.auth_store.is_authenticated():
            raise NotAuthenticated("Please login again")

        token = self._generation.begin()
        self.error = None
        self._set_state(PracticeState.ANALYZING)
        logger.info(f"Analyzing practice for material {self.material.id}: {self.transcript!r}")

        policy = RetryPolicy(
            max_attempts=2,
            backoff=constant_backoff(self.retry_delay),
            is_retryable=is_network_error,
            sleep=self.sleep
        )
        try:
            result = await policy.run(
                lambda: self.context.api.analyze_practice(self.transcript, self.material.id))
        except LinguaKuError as e:
            if not self._generation.is_current(token):
                return None
            logger.error(f"Analysis failed: {e!r}")
            self._fail(e, during_analysis=True)
            raise
        except Exception as e:
            if not self._generation.is_current(token):
                return None
            logger.error(f"Analysis failed unexpectedly: {e!r}", exc_info=True)
            error = ServerError("Analysis failed - invalid response")
            self._fail(error, during_analysis=True)
            raise error from e

        if not self._generation.is_current(token):
            logger.info("Discarding analysis result for a closed or reset session")
            return None

        if not result.ok:
            error = result.to_exception()
            logger.error(f"Analysis failed: {result.code} {result.message}")
            self._fail(error, during_analysis=True)
            raise error

        self.result = result.data
        self._set_state(PracticeState.COMPLETED)
        logger.info(f"Analysis complete, score {self.result.score}")
        return self.result

    # ========================
    # Recovery / teardown
    # ========================

    def reset(self) -> None:
        """Try Again: clear transcript, result and error on the same material"""
        self._require(PracticeState.IDLE, PracticeState.RECOGNIZED,
                      PracticeState.COMPLETED, PracticeState.ERRORED)
        self._generation.invalidate()
        self.transcript = ''
        self.result = None
        self.error = None
        self._failed_during_analysis = False
        self._set_state(PracticeState.IDLE)

    def retry(self) -> None:
        """Recover from an error.

        After a failed analysis the transcript is kept and the session goes
        back to recognized so analyze() can be called again. After a
        recognition error it goes back to idle.
        """
        self._require(PracticeState.ERRORED)
        self.error = None
        if self._failed_during_analysis and self.transcript.strip():
            self._failed_during_analysis = False
            self._set_state(PracticeState.RECOGNIZED)
        else:
            self.transcript = ''
            self._failed_during_analysis = False
            self._set_state(PracticeState.IDLE)

    async def close(self) -> None:
        """Tear down: stop recognition, drop subscriptions and pending completions"""
        if self.closed:
            return
        self._generation.invalidate()
        if self.state is PracticeState.RECORDING:
            try:
                await self.recognizer.abort()
            except Exception as e:
                logger.error(f"Failed to abort speech recognition: {e}", exc_info=True)
        self._unsubscribe()
        self.transcript = ''
        self.result = None
        self.error = None
        self.state = PracticeState.IDLE
        self.closed = True
        logger.debug(f"Practice session {self.material.id} closed")

    async def __aenter__(self) -> 'PracticeSession':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

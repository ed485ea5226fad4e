"""
Speech recognition events and the channel they are delivered on
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialResult:
    """Interim transcript, may still change"""
    text: str


@dataclass(frozen=True)
class FinalResult:
    """Final transcript for the utterance"""
    text: str


@dataclass(frozen=True)
class RecognitionEnd:
    """Recognizer stopped listening"""


@dataclass(frozen=True)
class RecognitionError:
    code: str
    message: str = ''


RecognitionEvent = Union[PartialResult, FinalResult, RecognitionEnd, RecognitionError]
Listener = Callable[[RecognitionEvent], None]


@dataclass(frozen=True)
class RecognitionOptions:
    """Options passed to the recognizer when it starts"""
    lang: str = 'en-US'
    interim_results: bool = True
    max_alternatives: int = 1
    continuous: bool = False
    requires_on_device_recognition: bool = False
    adds_punctuation: bool = False
    contextual_strings: tuple[str, ...] = ()


class Subscription:
    """Handle returned by RecognitionChannel.subscribe, usable as a context manager"""

    def __init__(self, channel: 'RecognitionChannel', listener: Listener):
        self._channel = channel
        self._listener: Optional[Listener] = listener

    @property
    def active(self) -> bool:
        return self._listener is not None

    def unsubscribe(self) -> None:
        if self._listener is not None:
            self._channel._remove(self._listener)
            self._listener = None

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class RecognitionChannel:
    """Delivers recognizer events to subscribers in publish order"""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: RecognitionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class SpeechRecognizer:
    """Interface of the device speech-to-text capability.

    Implementations publish RecognitionEvent values on self.events.
    """

    def __init__(self):
        self.events = RecognitionChannel()

    async def request_permission(self) -> bool:
        raise NotImplementedError

    async def start(self, options: RecognitionOptions) -> None:
        raise NotImplementedError

    async def stop(self) -> None:
        raise NotImplementedError

    async def abort(self) -> None:
        """Stop without waiting for a final result, defaults to stop()"""
        await self.stop()

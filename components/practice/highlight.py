"""
Word-by-word highlighting of the target text after analysis
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from components.gateway.models import PracticeResult

_PUNCTUATION = '.,!?;:"\'()[]{}…“”‘’'


class WordStatus(Enum):
    CORRECT = "correct"
    MISTAKE = "mistake"
    MISSING = "missing"


WORD_COLORS = {
    WordStatus.CORRECT: '#10B981',
    WordStatus.MISTAKE: '#EF4444',
    WordStatus.MISSING: '#F59E0B',
}


@dataclass(frozen=True)
class WordHighlight:
    word: str
    status: WordStatus

    @property
    def color(self) -> str:
        return WORD_COLORS[self.status]


def normalize_word(word: str) -> str:
    """Lower-case and strip surrounding punctuation"""
    return word.strip().strip(_PUNCTUATION).lower()


def _word_set(phrases: Iterable[str]) -> set:
    words = (normalize_word(word) for phrase in phrases for word in phrase.split())
    return {w for w in words if w}


def classify_words(target_text: str, result: PracticeResult) -> List[WordHighlight]:
    """
    Classify every word of the target text against an analysis result.

    A word listed by the server as a mistake is a mistake even if it also
    appears in the transcription. Otherwise it is correct when it appears in
    the transcription (case-insensitive) and missing when it does not.

    Args:
        target_text: Text the user was asked to read
        result: Server analysis result

    Returns:
        One WordHighlight per whitespace-separated word, original spelling kept
    """
    transcribed = _word_set([result.transcription])
    mistakes = _word_set(result.mistake_words)

    highlights = []
    for word in target_text.split():
        key = normalize_word(word)
        if key in mistakes:
            status = WordStatus.MISTAKE
        elif key in transcribed:
            status = WordStatus.CORRECT
        else:
            status = WordStatus.MISSING
        highlights.append(WordHighlight(word, status))
    return highlights

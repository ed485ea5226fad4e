"""
Data shapes exchanged with the LinguaKu backend
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Level(Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> 'Level':
        """Case-insensitive lookup, anything unknown or not a string is OTHER"""
        if not isinstance(value, str) or not value:
            return cls.OTHER
        for level in (cls.BEGINNER, cls.INTERMEDIATE, cls.ADVANCED):
            if value.strip().lower() == level.value.lower():
                return level
        return cls.OTHER


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (trailing Z accepted) into an aware datetime"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _ref_id(value: Any) -> str:
    """Extract an id from either a raw id or a populated {_id: ...} object"""
    if isinstance(value, dict):
        return str(value.get('_id') or value.get('id') or '')
    return str(value or '')


@dataclass(frozen=True)
class PracticeItem:
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> 'PracticeItem':
        return cls(text=data.get('text', ''))


@dataclass(frozen=True)
class PracticeMaterial:
    id: str
    title: str
    category: str
    level: Level
    level_name: str  # server spelling, used as the group key
    items: tuple[PracticeItem, ...] = ()
    description: str = ''
    own_text: str = ''

    @property
    def text(self) -> str:
        """Target text of the material (its own text or the first item's)"""
        if self.own_text:
            return self.own_text
        if self.items:
            return self.items[0].text
        return ''

    @classmethod
    def from_dict(cls, data: dict) -> 'PracticeMaterial':
        level_name = data.get('level')
        if not isinstance(level_name, str) or not level_name:
            level_name = Level.OTHER.value
        return cls(
            id=_ref_id(data),
            title=data.get('title', ''),
            category=data.get('category', ''),
            level=Level.parse(level_name),
            level_name=level_name,
            items=tuple(PracticeItem.from_dict(i) for i in data.get('items') or []),
            description=data.get('description', ''),
            own_text=data.get('text', '')
        )

    def to_dict(self) -> dict:
        data = {
            '_id': self.id,
            'title': self.title,
            'category': self.category,
            'level': self.level_name,
            'items': [{'text': item.text} for item in self.items],
        }
        if self.description:
            data['description'] = self.description
        if self.own_text:
            data['text'] = self.own_text
        return data


@dataclass(frozen=True)
class PracticeResult:
    score: int
    accuracy: float
    transcription: str
    correct_words: int
    total_words: int
    mistake_words: tuple[str, ...] = ()
    feedback: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'PracticeResult':
        return cls(
            score=int(round(float(data.get('score', 0)))),
            accuracy=float(data.get('accuracy', 0)),
            transcription=data.get('transcription', ''),
            correct_words=int(data.get('correctWords', 0)),
            total_words=int(data.get('totalWords', 0)),
            mistake_words=tuple(data.get('mistakeWords') or []),
            feedback=data.get('feedback', '')
        )


@dataclass(frozen=True)
class PracticeHistoryRecord:
    id: str
    material_id: str
    material_title: str
    item_text: str
    transcript: str
    score: int
    created_at: Optional[datetime]

    @classmethod
    def from_dict(cls, data: dict) -> 'PracticeHistoryRecord':
        material = data.get('materialId') or data.get('material')
        material_title = material.get('title', '') if isinstance(material, dict) else ''
        material_text = material.get('text', '') if isinstance(material, dict) else ''
        return cls(
            id=_ref_id(data),
            material_id=_ref_id(material),
            material_title=material_title,
            item_text=data.get('itemText') or material_text,
            transcript=data.get('recognizedText') or data.get('transcription', ''),
            score=int(round(float(data.get('score', 0)))),
            created_at=parse_timestamp(data.get('createdAt'))
        )


@dataclass(frozen=True)
class RecentActivity:
    lesson_name: str
    score: int
    completed_at: Optional[datetime]

    @classmethod
    def from_dict(cls, data: dict) -> 'RecentActivity':
        return cls(
            lesson_name=data.get('lessonName') or 'Practice',
            score=int(round(float(data.get('score', 0)))),
            completed_at=parse_timestamp(data.get('completedAt'))
        )


@dataclass
class WeeklyPerformanceBucket:
    day: str
    practice_count: int = 0
    avg_score: int = 0
    date: Optional[str] = None
    total_score: int = 0

    @property
    def active(self) -> bool:
        return self.practice_count > 0

    @classmethod
    def from_dict(cls, data: dict) -> 'WeeklyPerformanceBucket':
        return cls(
            day=data.get('day', ''),
            practice_count=int(data.get('practiceCount', 0)),
            avg_score=int(round(float(data.get('avgScore', 0)))),
            date=data.get('date')
        )


@dataclass(frozen=True)
class WeeklyInsight:
    message: str
    color: str
    improvement: int = 0
    emoji: str = '💡'
    band: Optional[str] = None
    show_improvement: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'WeeklyInsight':
        improvement = int(round(float(data.get('improvement') or 0)))
        return cls(
            message=data.get('message', ''),
            color=data.get('color', 'gray'),
            improvement=improvement,
            emoji=data.get('emoji') or '💡',
            band=data.get('band'),
            show_improvement=improvement != 0
        )


@dataclass(frozen=True)
class UserProfile:
    id: str
    name: str
    email: str
    extra: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> 'UserProfile':
        known = {'_id', 'id', 'name', 'email'}
        return cls(
            id=_ref_id(data),
            name=data.get('name', ''),
            email=data.get('email', ''),
            extra={k: v for k, v in data.items() if k not in known}
        )

    def to_dict(self) -> dict:
        return {**self.extra, '_id': self.id, 'name': self.name, 'email': self.email}

    @property
    def initial(self) -> str:
        return self.name[0].upper() if self.name else 'U'


@dataclass(frozen=True)
class UserStatistics:
    total_practices: int
    average_score: int
    day_streak: int

    @classmethod
    def from_dict(cls, data: dict) -> 'UserStatistics':
        return cls(
            total_practices=int(data.get('totalPractices', 0)),
            average_score=int(round(float(data.get('averageScore', 0)))),
            day_streak=int(data.get('dayStreak', 0))
        )

# utme_cbt/core/models.py
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union, Any

OPTION_LABELS = ("a", "b", "c", "d")

SOURCE_PROVIDER = "aloc"
SOURCE_FALLBACK = "fallback"

# Aliases the frontend sends for canonical subject names
SUBJECT_ALIASES = {
    "maths": "mathematics",
    "math": "mathematics",
    "use of english": "english",
    "englishlit": "literature",
    "literature in english": "literature",
    "civic education": "civiledu"
}


def canonical_subject(name: str) -> str:
    key = (name or "").strip().lower()
    return SUBJECT_ALIASES.get(key, key)


class InvalidRequestError(ValueError):
    """Caller supplied an unusable question request"""
    pass


@dataclass
class Question:
    id: str
    question: str
    options: Dict[str, str]
    answer: str
    subject: str
    exam_type: str
    exam_year: str
    explanation: str = ""
    image: Optional[str] = None
    source: str = SOURCE_PROVIDER

    def __post_init__(self):
        # Normalise labels to lower case before checking the invariants
        self.options = {str(label).lower(): text for label, text in self.options.items()}
        self.answer = str(self.answer).strip().lower()

        if set(self.options) != set(OPTION_LABELS):
            raise ValueError(f"Question {self.id} must have options labelled {', '.join(OPTION_LABELS)}")

        if self.answer not in self.options:
            raise ValueError(f"Question {self.id} answer '{self.answer}' is not an option label")

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK

    def tagged(self, subject: str) -> 'Question':
        """Copy of this question owned by the given subject"""
        return replace(self, subject=subject)


@dataclass
class SubjectRef:
    id: str
    name: str

    @classmethod
    def parse(cls, value: Union[str, Dict[str, Any], 'SubjectRef']) -> 'SubjectRef':
        """Accept a plain subject name, an {id, name} mapping or a SubjectRef"""
        if isinstance(value, SubjectRef):
            return value

        if isinstance(value, str):
            name = value.strip()
            return cls(id=name.lower(), name=name)

        if isinstance(value, dict):
            name = str(value.get("name") or value.get("id") or "").strip()
            subject_id = str(value.get("id") or name).strip().lower()
            return cls(id=subject_id, name=name or subject_id)

        raise InvalidRequestError(f"Unsupported subject value: {value!r}")

    @property
    def key(self) -> str:
        return self.id


@dataclass
class FetchRequest:
    subject: str
    count: int
    exam_type: str = "utme"
    year: Optional[str] = None

    def validate(self, exam_types: List[str]) -> 'FetchRequest':
        if not self.subject or not self.subject.strip():
            raise InvalidRequestError("subject is required")

        if not isinstance(self.count, int) or self.count <= 0:
            raise InvalidRequestError("count must be a positive integer")

        if self.exam_type not in exam_types:
            raise InvalidRequestError(f"examType must be one of {', '.join(exam_types)}")

        return self


@dataclass(frozen=True)
class Ok:
    question: Question


@dataclass(frozen=True)
class Skip:
    reason: str


FetchResult = Union[Ok, Skip]


@dataclass
class ExamSession:
    session_id: str
    subjects: List[SubjectRef]
    questions: List[Question]
    exam_type: str
    year: Optional[str]
    per_subject_count: int
    fallback_counts: Dict[str, int] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def fallback_total(self) -> int:
        return sum(self.fallback_counts.values())

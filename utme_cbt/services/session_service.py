# utme_cbt/services/session_service.py
import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.aloc_client import QuestionClient
from ..core.config import config as default_config
from ..core.fallback_data import FallbackGenerator
from ..core.models import ExamSession, InvalidRequestError, Question, SubjectRef
from ..core.utils import ValidationUtils, generate_session_id

logger = logging.getLogger(__name__)


class SessionAssembler:
    """Builds multi-subject CBT sessions that are always full.

    Each subject is fetched from the provider and topped up from the
    fallback bank; the combined list is shuffled so subjects interleave.
    Provider trouble never surfaces as an exception here, only invalid
    requests do.
    """

    def __init__(self, question_client: QuestionClient, fallback_generator: FallbackGenerator = None,
                 settings=None, rng: Optional[random.Random] = None):
        self.question_client = question_client
        self.fallback_generator = fallback_generator or FallbackGenerator()
        self.settings = settings or default_config
        self._rng = rng or random.Random()

    def validate_request(self, subjects: Sequence[Any], per_subject_count: Any,
                         exam_type: str, year: Any) -> Tuple[List[SubjectRef], Optional[str]]:
        """Fail fast on requests that cannot be served"""
        if not subjects:
            raise InvalidRequestError("At least one subject is required")

        refs = [SubjectRef.parse(subject) for subject in subjects]

        if any(not ref.key for ref in refs):
            raise InvalidRequestError("Subject names must not be empty")

        keys = [ref.key for ref in refs]
        if len(set(keys)) != len(keys):
            raise InvalidRequestError("Subjects must not repeat")

        if isinstance(per_subject_count, bool) or not isinstance(per_subject_count, int):
            raise InvalidRequestError("questionsPerSubject must be an integer")

        if per_subject_count < 1:
            raise InvalidRequestError("questionsPerSubject must be at least 1")

        if per_subject_count > self.settings.MAX_QUESTIONS_PER_SUBJECT:
            raise InvalidRequestError(
                f"questionsPerSubject must not exceed {self.settings.MAX_QUESTIONS_PER_SUBJECT}"
            )

        if exam_type not in self.settings.EXAM_TYPES:
            raise InvalidRequestError(f"examType must be one of {', '.join(self.settings.EXAM_TYPES)}")

        return refs, ValidationUtils.normalize_year(year)

    async def _questions_for_subject(self, subject: SubjectRef, count: int,
                                     exam_type: str, year: Optional[str]) -> Tuple[List[Question], int]:
        """Provider questions for one subject, padded with fallbacks; returns (questions, fallback_count)"""
        try:
            fetched = await self.question_client.fetch_questions(subject.name, count, exam_type, year)
        except Exception as e:
            logger.warning(f"⚠️ Provider fetch failed for {subject.key}: {e}")
            fetched = []

        fetched = fetched[:count]
        shortfall = count - len(fetched)

        if shortfall:
            if fetched:
                logger.warning(f"⚠️ Only {len(fetched)}/{count} real {subject.key} questions, adding {shortfall} fallbacks")
            else:
                logger.warning(f"⚠️ No real {subject.key} questions available, using {count} fallbacks")
            fetched = fetched + self.fallback_generator.generate(subject.name, shortfall, exam_type, year)

        return [question.tagged(subject.key) for question in fetched], shortfall

    async def build_session(self, subjects: Sequence[Any], per_subject_count: int,
                            exam_type: str = "utme", year: Any = None) -> ExamSession:
        """Assemble a shuffled exam session of len(subjects) * per_subject_count questions"""
        refs, year = self.validate_request(subjects, per_subject_count, exam_type, year)

        logger.info(f"🎯 Assembling CBT session: {', '.join(ref.key for ref in refs)} "
                    f"x {per_subject_count} ({exam_type}, {year or 'any year'})")

        # The shared rate limiter serialises the outbound calls
        results = await asyncio.gather(*[
            self._questions_for_subject(ref, per_subject_count, exam_type, year)
            for ref in refs
        ])

        questions: List[Question] = []
        fallback_counts: Dict[str, int] = {}
        seen = set()
        for ref, (subject_questions, fallback_count) in zip(refs, results):
            unique = [q for q in subject_questions if q.id not in seen]
            repeated = len(subject_questions) - len(unique)

            # Ids must be unique across the whole session; replace repeats with fallbacks
            if repeated:
                logger.warning(f"⚠️ Dropped {repeated} repeated {ref.key} question ids, adding fallbacks")
                unique.extend(
                    question.tagged(ref.key) for question in
                    self.fallback_generator.generate(ref.name, repeated, exam_type, year)
                )

            seen.update(q.id for q in unique)
            questions.extend(unique)
            fallback_counts[ref.key] = fallback_count + repeated

        self._rng.shuffle(questions)

        session = ExamSession(
            session_id=generate_session_id(),
            subjects=refs,
            questions=questions,
            exam_type=exam_type,
            year=year,
            per_subject_count=per_subject_count,
            fallback_counts=fallback_counts
        )

        logger.info(f"✅ Session {session.session_id}: {session.total_questions} questions, "
                    f"{session.fallback_total} fallback")
        return session

    async def assemble(self, subjects: Sequence[Any], per_subject_count: int,
                       exam_type: str = "utme", year: Any = None) -> List[Question]:
        session = await self.build_session(subjects, per_subject_count, exam_type, year)
        return session.questions

    def health_check(self) -> Dict[str, Any]:
        provider = self.question_client.health_check()
        return {
            "status": provider["status"],
            "provider": provider,
            "dedup": self.question_client.deduplicator.stats()
        }


def to_dto(question: Question) -> Dict[str, Any]:
    """Frontend QuestionDTO shape"""
    dto = {
        "id": question.id,
        "question": question.question,
        "options": [{"id": label, "text": text} for label, text in sorted(question.options.items())],
        "correctAnswer": question.answer,
        "explanation": question.explanation,
        "examType": question.exam_type,
        "examYear": question.exam_year,
        "subject": question.subject,
        "source": question.source
    }
    if question.image:
        dto["image"] = question.image
    return dto


def group_by_subject(session: ExamSession) -> Dict[str, List[Dict[str, Any]]]:
    """Group session questions by subject key, keeping the shuffled order within each subject"""
    grouped: Dict[str, List[Dict[str, Any]]] = {ref.key: [] for ref in session.subjects}
    for question in session.questions:
        grouped.setdefault(question.subject, []).append(to_dto(question))
    return grouped

# utme_cbt/core/__init__.py
"""
Core module containing configuration, the provider client, deduplication,
rate limiting, fallback questions and AI explanations
"""

from .config import config
from .models import Question, SubjectRef, ExamSession, InvalidRequestError
from .dedup import Deduplicator
from .rate_limiter import RateLimiter
from .fallback_data import FallbackGenerator
from .aloc_client import QuestionClient
from .ai_services import ExplanationService, ExplanationError

__all__ = [
    "config",
    "Question",
    "SubjectRef",
    "ExamSession",
    "InvalidRequestError",
    "Deduplicator",
    "RateLimiter",
    "FallbackGenerator",
    "QuestionClient",
    "ExplanationService",
    "ExplanationError"
]

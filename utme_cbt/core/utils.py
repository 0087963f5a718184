# utme_cbt/core/utils.py
import time
import uuid
from typing import Any, List, Optional
from .config import config
from .models import InvalidRequestError


class ValidationUtils:
    """Utility functions for request validation"""

    @staticmethod
    def normalize_year(year: Any) -> Optional[str]:
        """Blank years mean 'any year'; anything else must be a four-digit year"""
        if year is None:
            return None

        year = str(year).strip()
        if not year:
            return None

        if not (year.isdigit() and len(year) == 4):
            raise InvalidRequestError(f"Invalid exam year: {year}")

        return year


class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def get_current_timestamp() -> float:
        return time.time()

    @staticmethod
    def available_years() -> List[int]:
        """Exam years the provider documents, most recent first"""
        return list(range(config.LAST_EXAM_YEAR, config.FIRST_EXAM_YEAR - 1, -1))


def generate_session_id() -> str:
    """Generate unique exam session ID"""
    return str(uuid.uuid4())

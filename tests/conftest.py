from __future__ import annotations

import random
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from utme_cbt.core.aloc_client import QuestionClient
from utme_cbt.core.config import Config
from utme_cbt.core.dedup import Deduplicator
from utme_cbt.core.rate_limiter import RateLimiter


# ====================
# Configuration Fixtures
# ====================

@pytest.fixture
def settings() -> Config:
    """Config with a provider token and no real waiting."""
    cfg = Config()
    cfg.ALOC_ACCESS_TOKEN = "test-token"
    cfg.ALOC_BASE_URL = "https://aloc.test/api/v2"
    cfg.ALOC_RATE_LIMIT_DELAY = 0.0
    cfg.ALOC_RETRY_DELAY = 0.25
    cfg.ALOC_RATE_LIMIT_BACKOFF = 5.0
    cfg.ALOC_MAX_ATTEMPTS = 3
    cfg.MAX_QUESTIONS_PER_SUBJECT = 100
    cfg.USE_DUMMY_DATA = True
    cfg.GROQ_API_KEY = ""
    cfg.EXPLANATION_RETRIES = 1
    return cfg


# ====================
# Provider Fixtures
# ====================

def aloc_item(raw_id: Any, answer: str = "a", **overrides) -> Dict[str, Any]:
    """One well-formed ALOC question payload."""
    item = {
        "id": raw_id,
        "question": f"Sample question {raw_id}?",
        "option": {"a": "first", "b": "second", "c": "third", "d": "fourth"},
        "answer": answer,
        "solution": "",
        "image": "",
        "examtype": "utme",
        "examyear": "2010",
    }
    item.update(overrides)
    return item


def candidate_of(request: httpx.Request) -> str:
    return request.url.path.rsplit("/", 1)[-1]


def unique_item_handler(request: httpx.Request) -> httpx.Response:
    """Provider that always answers with a distinct valid question per candidate id."""
    return httpx.Response(200, json={"status": 200, "data": aloc_item(candidate_of(request))})


class RecordingSleep:
    """Async sleep stand-in that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(settings, recording_sleep):
    """Build a QuestionClient whose HTTP traffic goes to `handler`; requests are recorded."""

    def _make(handler: Callable[[httpx.Request], httpx.Response],
              deduplicator: Optional[Deduplicator] = None,
              seen: Optional[List[httpx.Request]] = None) -> QuestionClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            if seen is not None:
                seen.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return QuestionClient(
            rate_limiter=RateLimiter(min_delay=0.0),
            deduplicator=deduplicator or Deduplicator(capacity=1000, eviction_fraction=0.2),
            http_client=http_client,
            settings=settings,
            rng=random.Random(7),
            sleep=recording_sleep,
        )

    return _make

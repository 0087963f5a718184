# utme_cbt/core/aloc_client.py
import asyncio
import logging
import math
import random
import time
import uuid
from collections import Counter
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .config import config as default_config
from .dedup import Deduplicator
from .models import (
    OPTION_LABELS, FetchRequest, FetchResult, Ok, Question, Skip, SOURCE_PROVIDER,
    canonical_subject
)
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Our subject names mapped to ALOC subject names
SUBJECT_MAPPING = {
    "english": "english",
    "mathematics": "mathematics",
    "biology": "biology",
    "physics": "physics",
    "chemistry": "chemistry",
    "economics": "economics",
    "government": "government",
    "literature": "englishlit",
    "geography": "geography",
    "commerce": "commerce",
    "accounting": "accounting",
    "crk": "crk",
    "irk": "irk",
    "civiledu": "civiledu",
    "history": "history",
    "currentaffairs": "currentaffairs",
    "insurance": "insurance"
}


class QuestionClient:
    """Rate-limited client for the ALOC question bank.

    The provider only reliably returns one question per call, so a fetch is
    a bounded sequence of single-item calls, each against a distinct
    candidate id drawn from a shuffled pool. Every call yields tagged
    results (Ok or Skip) and nothing short of a programming error escapes
    to the caller.
    """

    def __init__(self, rate_limiter: RateLimiter, deduplicator: Deduplicator,
                 http_client: Optional[httpx.AsyncClient] = None, settings=None,
                 rng: Optional[random.Random] = None, sleep=asyncio.sleep):
        self.settings = settings or default_config
        self.rate_limiter = rate_limiter
        self.deduplicator = deduplicator
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.ALOC_REQUEST_TIMEOUT)
        self._warned_unconfigured = False

    # ==================== Helpers ====================

    @staticmethod
    def map_subject(subject: str) -> str:
        key = canonical_subject(subject)
        return SUBJECT_MAPPING.get(key, key)

    @staticmethod
    def available_subjects() -> List[str]:
        return list(SUBJECT_MAPPING)

    def is_configured(self) -> bool:
        return bool(self.settings.ALOC_ACCESS_TOKEN)

    def _headers(self) -> Dict[str, str]:
        token = self.settings.ALOC_ACCESS_TOKEN
        return {
            "Authorization": f"Bearer {token}",
            "AccessToken": token,
            "Accept": "application/json",
            "User-Agent": self.settings.ALOC_USER_AGENT
        }

    @staticmethod
    def _build_params(api_subject: str, exam_type: Optional[str], year: Optional[str]) -> Dict[str, str]:
        params = {"subject": api_subject}
        if exam_type:
            params["type"] = exam_type
        if year:
            params["year"] = str(year)
        return params

    @staticmethod
    def provider_question_id(api_subject: str, raw_id: Any) -> str:
        """Provider ids are only unique per subject, so qualify them"""
        return f"aloc_{api_subject}_{raw_id}"

    def max_attempts_for(self, count: int) -> int:
        return max(count, math.ceil(count * (1 + self.settings.ALOC_ATTEMPT_SLACK)))

    def _candidate_ids(self, api_subject: str, limit: int) -> List[int]:
        pool = [
            candidate for candidate in range(1, self.settings.ALOC_ID_POOL_SIZE + 1)
            if not self.deduplicator.is_used(self.provider_question_id(api_subject, candidate))
        ]
        self._rng.shuffle(pool)
        return pool[:limit]

    # ==================== Response parsing ====================

    def parse_question(self, raw: Any, subject: str, api_subject: str,
                       exam_type: str, year: Optional[str]) -> Optional[Question]:
        """Convert one raw provider item; None when it is unusable"""
        if not isinstance(raw, dict):
            return None

        prompt = raw.get("question")
        options = raw.get("option")
        answer = raw.get("answer")

        if not isinstance(prompt, str) or not prompt.strip():
            return None
        if not isinstance(options, dict) or not answer:
            return None

        normalized = {}
        for label in OPTION_LABELS:
            text = options.get(label) or options.get(label.upper())
            if not text or not str(text).strip():
                return None
            normalized[label] = str(text).strip()

        answer = str(answer).strip().lower()
        if answer not in normalized:
            return None

        raw_id = raw.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raw_id = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

        explanation = raw.get("solution") or raw.get("explanation") or ""
        if not explanation:
            explanation = f"The correct answer is {answer.upper()}."

        try:
            return Question(
                id=self.provider_question_id(api_subject, raw_id),
                question=prompt.strip(),
                options=normalized,
                answer=answer,
                explanation=explanation,
                image=raw.get("image") or None,
                subject=subject,
                exam_type=str(raw.get("examtype") or exam_type).lower(),
                exam_year=str(raw.get("examyear") or year or ""),
                source=SOURCE_PROVIDER
            )
        except ValueError as e:
            logger.debug(f"Discarding invalid provider question: {e}")
            return None

    def _parse_response(self, response: httpx.Response, subject: str, api_subject: str,
                        exam_type: str, year: Optional[str]) -> List[FetchResult]:
        try:
            data = response.json()
        except ValueError:
            return [Skip("invalid json")]

        if not isinstance(data, dict):
            return [Skip("invalid envelope")]

        if data.get("error"):
            return [Skip(f"provider error: {data['error']}")]

        payload = data.get("data")
        if not payload:
            return [Skip("empty response")]

        items = payload if isinstance(payload, list) else [payload]
        results: List[FetchResult] = []
        for item in items:
            question = self.parse_question(item, subject, api_subject, exam_type, year)
            results.append(Ok(question) if question else Skip("malformed"))
        return results

    # ==================== Outbound calls ====================

    async def _fetch_candidate(self, candidate: int, subject: str, api_subject: str,
                               exam_type: str, year: Optional[str]) -> List[FetchResult]:
        """One logical provider call, with retries and one narrowed fallback request"""
        url = f"{self.settings.ALOC_BASE_URL.rstrip('/')}/q/{candidate}"
        params = self._build_params(api_subject, exam_type, year)
        narrowed = self._build_params(api_subject, None, None)
        narrowed_tried = params == narrowed
        attempts = 0
        reason = "no attempt"

        while attempts < self.settings.ALOC_MAX_ATTEMPTS:
            await self.rate_limiter.wait()
            logger.debug(f"📡 ALOC call {url} {params}")

            try:
                response = await self._http.get(
                    url, params=params, headers=self._headers(),
                    timeout=self.settings.ALOC_REQUEST_TIMEOUT
                )
            except httpx.TimeoutException:
                reason = "timeout"
            except httpx.HTTPError as e:
                reason = f"transport error: {e.__class__.__name__}"
            else:
                status = response.status_code

                if status == 429:
                    reason = "rate limited"
                    attempts += 1
                    if attempts < self.settings.ALOC_MAX_ATTEMPTS:
                        logger.info(f"⏸️ Rate limited by ALOC, waiting {self.settings.ALOC_RATE_LIMIT_BACKOFF}s")
                        await self._sleep(self.settings.ALOC_RATE_LIMIT_BACKOFF)
                    continue

                if status >= 500:
                    reason = f"http {status}"
                elif status >= 400 or not response.is_success:
                    if not narrowed_tried:
                        logger.debug(f"HTTP {status} for {params}, retrying with subject only")
                        params = narrowed
                        narrowed_tried = True
                        continue
                    return [Skip(f"http {status}")]
                else:
                    return self._parse_response(response, subject, api_subject, exam_type, year)

            attempts += 1
            if attempts < self.settings.ALOC_MAX_ATTEMPTS:
                await self._sleep(self.settings.ALOC_RETRY_DELAY)

        logger.debug(f"ALOC candidate {candidate} gave up after {attempts} attempts: {reason}")
        return [Skip(reason)]

    async def iter_results(self, request: FetchRequest) -> AsyncIterator[List[FetchResult]]:
        """Yield the tagged results of each provider call, one call per candidate id"""
        api_subject = self.map_subject(request.subject)
        candidates = self._candidate_ids(api_subject, self.max_attempts_for(request.count))

        for candidate in candidates:
            yield await self._fetch_candidate(
                candidate, request.subject, api_subject, request.exam_type, request.year
            )

    async def fetch_questions(self, subject: str, count: int, exam_type: str = "utme",
                              year: Optional[str] = None) -> List[Question]:
        """Best-effort fetch of up to `count` unique, valid questions"""
        request = FetchRequest(subject, count, exam_type, year).validate(self.settings.EXAM_TYPES)

        if not self.is_configured():
            if not self._warned_unconfigured:
                logger.warning("⚠️ ALOC_ACCESS_TOKEN not configured; provider fetches are disabled")
                self._warned_unconfigured = True
            return []

        logger.info(f"🔍 Fetching {count} {subject} questions ({exam_type}, {year or 'any year'})")

        collected: List[Question] = []
        # Eviction can drop ids collected earlier in this fetch, so track them locally too
        seen = set()
        skipped = Counter()
        calls = 0

        async for results in self.iter_results(request):
            calls += 1
            for result in results:
                if isinstance(result, Skip):
                    skipped[result.reason] += 1
                    continue

                question = result.question
                if len(collected) >= count:
                    break
                # No await between the check and the mark, so concurrent fetches cannot both take an id
                if question.id in seen or self.deduplicator.is_used(question.id):
                    skipped["duplicate"] += 1
                    continue
                self.deduplicator.mark_used(question.id)
                seen.add(question.id)
                collected.append(question)

            if len(collected) >= count:
                break

        if skipped:
            logger.debug(f"Skipped results for {subject}: {dict(skipped)}")
        logger.info(f"✅ Collected {len(collected)}/{count} {subject} questions in {calls} calls")
        return collected

    async def aclose(self):
        if self._owns_http:
            await self._http.aclose()

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.is_configured() else "degraded",
            "configured": self.is_configured(),
            "base_url": self.settings.ALOC_BASE_URL,
            "rate_limit_delay": self.rate_limiter.min_delay
        }

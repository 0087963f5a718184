# utme_cbt/core/ai_services.py
import logging
import time
from typing import Dict, Any, Optional
from groq import Groq
from .config import config
from .prompts import PromptTemplates

logger = logging.getLogger(__name__)


class ExplanationError(Exception):
    """Language model could not produce an explanation"""
    pass


class ExplanationService:
    """AI explanations for answered questions, with template fallback"""

    def __init__(self, settings=None, client=None):
        self.settings = settings or config
        self.client = client
        self.use_dummy = self.settings.USE_DUMMY_DATA

        if self.client is None and not self.use_dummy:
            self._init_groq_client()

        if self.client is None:
            logger.info("🔧 Explanation service using template explanations")

    def _init_groq_client(self):
        """Create the Groq client when a key is available"""
        if not self.settings.GROQ_API_KEY:
            logger.warning("GROQ_API_KEY not provided; falling back to template explanations")
            return

        self.client = Groq(api_key=self.settings.GROQ_API_KEY, timeout=self.settings.GROQ_TIMEOUT)
        logger.info("✅ Groq client initialized")

    @property
    def mode(self) -> str:
        return "live" if self.client is not None else "template"

    def explain(self, question: str, correct_answer: str, user_answer: Optional[str] = None,
                options: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Explain why `correct_answer` is right (and `user_answer` wrong, if it is)"""
        if not question or not question.strip():
            raise ValueError("question is required")
        if not correct_answer or not correct_answer.strip():
            raise ValueError("correctAnswer is required")

        if self.client is None:
            return {
                "explanation": PromptTemplates.template_explanation(question, correct_answer, user_answer),
                "source": "template"
            }

        prompt = PromptTemplates.create_explanation_prompt(question, correct_answer, user_answer, options)
        explanation = self._call_llm_with_retries(prompt)
        return {"explanation": explanation, "source": "ai"}

    def _call_llm_with_retries(self, prompt: str, retries: int = None) -> str:
        """Call LLM with retry logic"""
        if retries is None:
            retries = self.settings.EXPLANATION_RETRIES

        last_error = None

        for attempt in range(retries):
            try:
                logger.debug(f"LLM call attempt {attempt + 1}/{retries}")

                completion = self.client.chat.completions.create(
                    model=self.settings.GROQ_MODEL,
                    messages=[
                        {"role": "system", "content": PromptTemplates.SYSTEM_PROMPT},
                        {"role": "user", "content": prompt}
                    ],
                    temperature=self.settings.GROQ_TEMPERATURE,
                    max_completion_tokens=self.settings.GROQ_MAX_TOKENS,
                    top_p=self.settings.GROQ_TOP_P
                )

                if not completion.choices:
                    raise ExplanationError("LLM returned no response")

                content = (completion.choices[0].message.content or "").strip()
                if not content:
                    raise ExplanationError("LLM returned empty content")

                return content

            except Exception as e:
                last_error = e
                logger.warning(f"LLM call attempt {attempt + 1} failed: {e}")
                if attempt < retries - 1:
                    time.sleep(2 ** attempt)

        raise ExplanationError(f"LLM call failed after {retries} attempts: {last_error}")

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "mode": self.mode,
            "model": self.settings.GROQ_MODEL if self.client is not None else None
        }

# utme_cbt/core/config.py
import os
from typing import Dict, Any, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "UTME CBT Question API"
    API_DESCRIPTION = "Question acquisition, deduplication and CBT session assembly"
    API_VERSION = "1.0.0"

    # ==================== ALOC Provider Configuration ====================
    ALOC_BASE_URL = os.getenv("ALOC_BASE_URL", "https://questions.aloc.com.ng/api/v2")
    ALOC_ACCESS_TOKEN = os.getenv("ALOC_ACCESS_TOKEN", "")
    ALOC_USER_AGENT = os.getenv("ALOC_USER_AGENT", "CBT-Platform/2.0")

    # Rate limiting and retries (seconds)
    ALOC_RATE_LIMIT_DELAY = float(os.getenv("ALOC_RATE_LIMIT_DELAY", "0.5"))
    ALOC_REQUEST_TIMEOUT = float(os.getenv("ALOC_REQUEST_TIMEOUT", "15"))
    ALOC_RATE_LIMIT_BACKOFF = float(os.getenv("ALOC_RATE_LIMIT_BACKOFF", "5"))
    ALOC_RETRY_DELAY = float(os.getenv("ALOC_RETRY_DELAY", "0.5"))
    ALOC_MAX_ATTEMPTS = int(os.getenv("ALOC_MAX_ATTEMPTS", "3"))

    # Single-item polling: candidate ids drawn from 1..ALOC_ID_POOL_SIZE,
    # up to count * (1 + ALOC_ATTEMPT_SLACK) calls per subject
    ALOC_ID_POOL_SIZE = int(os.getenv("ALOC_ID_POOL_SIZE", "1000"))
    ALOC_ATTEMPT_SLACK = float(os.getenv("ALOC_ATTEMPT_SLACK", "0.3"))

    # ==================== Deduplication Configuration ====================
    DEDUP_CAPACITY = int(os.getenv("DEDUP_CAPACITY", "1000"))
    DEDUP_EVICTION_FRACTION = float(os.getenv("DEDUP_EVICTION_FRACTION", "0.2"))

    # ==================== Session Configuration ====================
    DEFAULT_QUESTIONS_PER_SUBJECT = int(os.getenv("DEFAULT_QUESTIONS_PER_SUBJECT", "30"))
    MAX_QUESTIONS_PER_SUBJECT = int(os.getenv("MAX_QUESTIONS_PER_SUBJECT", "100"))
    DEFAULT_EXAM_TYPE = os.getenv("DEFAULT_EXAM_TYPE", "utme")
    EXAM_TYPES = ["utme", "wassce", "neco", "post-utme"]
    FALLBACK_EXAM_YEAR = os.getenv("FALLBACK_EXAM_YEAR", "2024")

    # Years documented by the provider
    FIRST_EXAM_YEAR = 2001
    LAST_EXAM_YEAR = 2020

    # ==================== AI Service Configuration ====================
    USE_DUMMY_DATA = os.getenv("USE_DUMMY_DATA", "false").lower() == "true"

    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TIMEOUT = int(os.getenv("GROQ_TIMEOUT", "30"))
    GROQ_TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.7"))
    GROQ_MAX_TOKENS = int(os.getenv("GROQ_MAX_TOKENS", "1200"))
    GROQ_TOP_P = float(os.getenv("GROQ_TOP_P", "0.9"))
    EXPLANATION_RETRIES = int(os.getenv("EXPLANATION_RETRIES", "3"))

    # ==================== Server Configuration ====================
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def aloc_configured(self) -> bool:
        return bool(self.ALOC_ACCESS_TOKEN)

    # ==================== Environment Overrides ====================
    @classmethod
    def from_env(cls) -> 'Config':
        """Create config with environment variable overrides"""
        return cls()

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []
        warnings = []

        if self.ALOC_RATE_LIMIT_DELAY < 0:
            issues.append("ALOC_RATE_LIMIT_DELAY must not be negative")

        if self.ALOC_REQUEST_TIMEOUT <= 0:
            issues.append("ALOC_REQUEST_TIMEOUT must be positive")

        if self.ALOC_MAX_ATTEMPTS < 1:
            issues.append("ALOC_MAX_ATTEMPTS must be at least 1")

        if self.ALOC_ID_POOL_SIZE < 1:
            issues.append("ALOC_ID_POOL_SIZE must be at least 1")

        if self.DEDUP_CAPACITY < 1:
            issues.append("DEDUP_CAPACITY must be at least 1")

        if not (0 < self.DEDUP_EVICTION_FRACTION <= 1):
            issues.append("DEDUP_EVICTION_FRACTION must be between 0 and 1")

        if self.DEFAULT_EXAM_TYPE not in self.EXAM_TYPES:
            issues.append(f"DEFAULT_EXAM_TYPE must be one of {self.EXAM_TYPES}")

        if not (1 <= self.DEFAULT_QUESTIONS_PER_SUBJECT <= self.MAX_QUESTIONS_PER_SUBJECT):
            issues.append("DEFAULT_QUESTIONS_PER_SUBJECT must be between 1 and MAX_QUESTIONS_PER_SUBJECT")

        # A missing provider token degrades to fallback questions, it never blocks startup
        if not self.ALOC_ACCESS_TOKEN:
            warnings.append("ALOC_ACCESS_TOKEN not set; only fallback questions will be served")

        if not self.USE_DUMMY_DATA and not self.GROQ_API_KEY:
            warnings.append("GROQ_API_KEY not set; explanations will use templates")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "warnings": warnings,
            "config_loaded": True,
            "aloc_configured": self.aloc_configured,
            "using_dummy_data": self.USE_DUMMY_DATA
        }

# Global configuration instance
config = Config.from_env()

# Validate on import
validation_result = config.validate()
if not validation_result["valid"]:
    import logging
    logger = logging.getLogger(__name__)
    logger.warning(f"Configuration issues: {validation_result['issues']}")

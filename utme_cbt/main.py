# utme_cbt/main.py
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.ai_services import ExplanationService
from .core.aloc_client import QuestionClient
from .core.dedup import Deduplicator
from .core.fallback_data import FallbackGenerator
from .core.rate_limiter import RateLimiter
from .core.utils import DateTimeUtils
from .services.session_service import SessionAssembler
from .api.routes import router

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_services(app: FastAPI):
    """Wire the shared dedup set, rate limiter and question client into app.state"""
    if getattr(app.state, "session_assembler", None) is None:
        # The client owns its httpx.AsyncClient and closes it in aclose()
        question_client = QuestionClient(rate_limiter=RateLimiter(), deduplicator=Deduplicator())
        app.state.session_assembler = SessionAssembler(question_client, FallbackGenerator())
        logger.info("✅ Question client initialized")

    if getattr(app.state, "explanation_service", None) is None:
        app.state.explanation_service = ExplanationService()
        logger.info(f"✅ Explanation service initialized ({app.state.explanation_service.mode})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("🚀 UTME CBT API starting...")

    validation = config.validate()
    if not validation["valid"]:
        logger.error(f"❌ Startup failed: {validation['issues']}")
        raise RuntimeError(f"Configuration invalid: {validation['issues']}")

    for warning in validation["warnings"]:
        logger.warning(f"⚠️ {warning}")

    logger.info("✅ Configuration validated")
    build_services(app)

    logger.info(f"📊 Configuration: {config.DEFAULT_QUESTIONS_PER_SUBJECT} questions per subject")
    logger.info(f"⏱️ Provider spacing: {config.ALOC_RATE_LIMIT_DELAY}s, dedup capacity {config.DEDUP_CAPACITY}")

    yield

    # Cleanup on shutdown
    logger.info("👋 Shutting down...")
    assembler = getattr(app.state, "session_assembler", None)
    if assembler is not None:
        await assembler.question_client.aclose()
    logger.info("✅ Graceful shutdown completed")


def create_app(session_assembler: SessionAssembler = None,
               explanation_service: ExplanationService = None) -> FastAPI:
    """Create the FastAPI application; injected services are used as-is"""
    app = FastAPI(
        title=config.API_TITLE,
        description=config.API_DESCRIPTION,
        version=config.API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.session_assembler = session_assembler
    app.state.explanation_service = explanation_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    # Exception handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors"""
        logger.warning(f"Validation error: {exc}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation Error",
                "message": str(exc),
                "type": "validation_error"
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "An unexpected error occurred",
                "type": "server_error"
            }
        )

    # Health check endpoints
    @app.get("/health")
    async def health_check():
        """Comprehensive health check"""
        health_status = {
            "status": "healthy",
            "service": "utme_cbt_api",
            "version": config.API_VERSION
        }

        assembler = app.state.session_assembler
        if assembler is not None:
            session_health = assembler.health_check()
            health_status["provider"] = session_health["status"]
            health_status["used_questions"] = session_health["dedup"]["used_questions"]
            if session_health["status"] != "healthy":
                health_status["status"] = "degraded"
        else:
            health_status["provider"] = "not_initialized"

        service = app.state.explanation_service
        if service is not None:
            explanation_health = service.health_check()
            health_status["explanations"] = explanation_health["mode"]
            health_status["explanation_model"] = explanation_health["model"]
        else:
            health_status["explanations"] = "not_initialized"

        health_status["timestamp"] = DateTimeUtils.get_current_timestamp()
        return health_status

    @app.get("/info")
    async def api_info():
        """API information and capabilities"""
        return {
            "name": config.API_TITLE,
            "version": config.API_VERSION,
            "description": config.API_DESCRIPTION,
            "features": {
                "provider_questions": config.aloc_configured,
                "fallback_questions": True,
                "deduplication": True,
                "ai_explanations": bool(config.GROQ_API_KEY) and not config.USE_DUMMY_DATA
            },
            "configuration": {
                "default_questions_per_subject": config.DEFAULT_QUESTIONS_PER_SUBJECT,
                "max_questions_per_subject": config.MAX_QUESTIONS_PER_SUBJECT,
                "exam_types": config.EXAM_TYPES,
                "rate_limit_delay": config.ALOC_RATE_LIMIT_DELAY,
                "dedup_capacity": config.DEDUP_CAPACITY
            },
            "endpoints": {
                "questions": "POST /api/cbt/questions",
                "subjects": "GET /api/cbt/available-subjects",
                "exam_types": "GET /api/cbt/exam-types",
                "years": "GET /api/cbt/years",
                "explain": "POST /api/cbt/explain",
                "stats": "GET /api/cbt/stats",
                "clear_used": "DELETE /api/cbt/used-questions",
                "health": "GET /health",
                "docs": "GET /docs"
            }
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    host = os.getenv('API_HOST', '0.0.0.0')
    port = int(os.getenv('API_PORT', '8070'))
    debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

    logger.info("🚀 Starting UTME CBT API")
    logger.info(f"🌐 Server: http://{host}:{port}")
    logger.info(f"📚 Docs: http://{host}:{port}/docs")

    uvicorn.run(
        "utme_cbt.main:app",
        host=host,
        port=port,
        reload=debug_mode,
        log_level=config.LOG_LEVEL.lower(),
        access_log=debug_mode
    )

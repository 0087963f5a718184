# utme_cbt/api/routes.py
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..core.ai_services import ExplanationError, ExplanationService
from ..core.aloc_client import QuestionClient
from ..core.config import config
from ..core.utils import DateTimeUtils
from ..services.session_service import SessionAssembler, group_by_subject

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== Request schemas ====================

class CBTQuestionsRequest(BaseModel):
    subjects: List[Union[str, Dict[str, Any]]]
    questionsPerSubject: int = Field(default_factory=lambda: config.DEFAULT_QUESTIONS_PER_SUBJECT)
    examType: str = Field(default_factory=lambda: config.DEFAULT_EXAM_TYPE)
    year: Optional[Union[int, str]] = None


class ExplainRequest(BaseModel):
    question: str
    correctAnswer: str
    userAnswer: Optional[str] = None
    options: Optional[Dict[str, str]] = None


# ==================== Dependencies ====================

def get_session_assembler(request: Request) -> SessionAssembler:
    return request.app.state.session_assembler


def get_explanation_service(request: Request) -> ExplanationService:
    return request.app.state.explanation_service


# ==================== Routes ====================

@router.post("/api/cbt/questions")
async def get_cbt_questions(body: CBTQuestionsRequest,
                            assembler: SessionAssembler = Depends(get_session_assembler)):
    """Assemble a CBT session - Frontend compatible"""
    session = await assembler.build_session(
        body.subjects, body.questionsPerSubject, body.examType, body.year
    )

    return {
        "success": True,
        "sessionId": session.session_id,
        "questions": group_by_subject(session),
        "totalQuestions": session.total_questions,
        "fallbackQuestions": session.fallback_total,
        "fallbackBySubject": session.fallback_counts,
        "examType": session.exam_type,
        "year": session.year,
        "subjects": [{"id": ref.id, "name": ref.name} for ref in session.subjects]
    }


@router.get("/api/cbt/available-subjects")
async def available_subjects():
    return {"subjects": QuestionClient.available_subjects()}


@router.get("/api/cbt/exam-types")
async def exam_types():
    return {"examTypes": list(config.EXAM_TYPES)}


@router.get("/api/cbt/years")
async def exam_years():
    return {"years": DateTimeUtils.available_years()}


@router.post("/api/cbt/explain")
def explain_answer(body: ExplainRequest,
                   service: ExplanationService = Depends(get_explanation_service)):
    """Explain a question's correct answer; runs in the threadpool since the LLM client blocks"""
    try:
        return service.explain(body.question, body.correctAnswer, body.userAnswer, body.options)
    except ExplanationError as e:
        logger.error(f"❌ Explanation failed: {e}")
        raise HTTPException(status_code=502, detail="Explanation service unavailable")


@router.get("/api/cbt/stats")
async def question_stats(assembler: SessionAssembler = Depends(get_session_assembler)):
    client = assembler.question_client
    return {
        **client.deduplicator.stats(),
        "provider_configured": client.is_configured(),
        "timestamp": DateTimeUtils.get_current_timestamp()
    }


@router.delete("/api/cbt/used-questions")
async def clear_used_questions(assembler: SessionAssembler = Depends(get_session_assembler)):
    cleared = assembler.question_client.deduplicator.clear()
    return {
        "success": True,
        "cleared": cleared,
        "message": "Used question history cleared"
    }

import random

import pytest
from fastapi.testclient import TestClient

from utme_cbt.core.ai_services import ExplanationError, ExplanationService
from utme_cbt.core.fallback_data import FallbackGenerator
from utme_cbt.main import create_app
from utme_cbt.services.session_service import SessionAssembler

from conftest import unique_item_handler


@pytest.fixture
def api(make_client, settings):
    assembler = SessionAssembler(
        make_client(unique_item_handler), FallbackGenerator(), settings=settings, rng=random.Random(1)
    )
    app = create_app(session_assembler=assembler, explanation_service=ExplanationService(settings=settings))
    with TestClient(app) as client:
        yield client


def test_questions_are_grouped_by_subject(api):
    response = api.post("/api/cbt/questions", json={
        "subjects": ["english", {"id": "maths", "name": "Mathematics"}],
        "questionsPerSubject": 2,
        "examType": "utme",
        "year": "2010"
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["totalQuestions"] == 4
    assert body["fallbackQuestions"] == 0
    assert body["year"] == "2010"
    assert set(body["questions"]) == {"english", "maths"}
    for items in body["questions"].values():
        assert len(items) == 2
        for item in items:
            assert [option["id"] for option in item["options"]] == ["a", "b", "c", "d"]
            assert item["correctAnswer"] in {"a", "b", "c", "d"}
    assert body["subjects"][1] == {"id": "maths", "name": "Mathematics"}


def test_invalid_count_is_a_validation_error(api):
    response = api.post("/api/cbt/questions", json={"subjects": ["english"], "questionsPerSubject": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert body["type"] == "validation_error"


def test_empty_subjects_is_a_validation_error(api):
    response = api.post("/api/cbt/questions", json={"subjects": []})
    assert response.status_code == 400


def test_missing_subjects_is_rejected_by_schema(api):
    response = api.post("/api/cbt/questions", json={"questionsPerSubject": 5})
    assert response.status_code == 422


def test_lookup_endpoints(api):
    subjects = api.get("/api/cbt/available-subjects").json()["subjects"]
    assert "english" in subjects and "literature" in subjects

    assert api.get("/api/cbt/exam-types").json()["examTypes"] == ["utme", "wassce", "neco", "post-utme"]

    years = api.get("/api/cbt/years").json()["years"]
    assert years[0] == 2020
    assert years[-1] == 2001


def test_stats_and_clearing_used_questions(api):
    api.post("/api/cbt/questions", json={"subjects": ["physics"], "questionsPerSubject": 3})

    stats = api.get("/api/cbt/stats").json()
    assert stats["used_questions"] == 3
    assert stats["provider_configured"] is True

    cleared = api.delete("/api/cbt/used-questions").json()
    assert cleared["cleared"] == 3
    assert api.get("/api/cbt/stats").json()["used_questions"] == 0


def test_explain_uses_template_without_llm(api):
    response = api.post("/api/cbt/explain", json={
        "question": "What is the plural of child?",
        "correctAnswer": "children",
        "userAnswer": "childs"
    })

    assert response.status_code == 200
    assert response.json()["source"] == "template"


def test_explain_failure_maps_to_bad_gateway(make_client, settings):
    class FailingService:
        mode = "live"

        def explain(self, *args, **kwargs):
            raise ExplanationError("LLM call failed")

    assembler = SessionAssembler(make_client(unique_item_handler), settings=settings)
    app = create_app(session_assembler=assembler, explanation_service=FailingService())

    with TestClient(app) as client:
        response = client.post("/api/cbt/explain", json={"question": "Q?", "correctAnswer": "a"})

    assert response.status_code == 502


def test_health_and_info(api):
    health = api.get("/health").json()
    assert health["status"] == "healthy"
    assert health["provider"] == "healthy"
    assert health["explanations"] == "template"
    assert health["explanation_model"] is None
    assert health["used_questions"] == 0

    assert api.get("/api/health").status_code == 404

    info = api.get("/info").json()
    assert info["endpoints"]["questions"] == "POST /api/cbt/questions"


def test_lifespan_builds_services_and_closes_owned_client():
    app = create_app()

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        question_client = app.state.session_assembler.question_client

    assert question_client._http.is_closed

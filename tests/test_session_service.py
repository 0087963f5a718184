import asyncio
import random

import httpx
import pytest

from utme_cbt.core.dedup import Deduplicator
from utme_cbt.core.fallback_data import FallbackGenerator
from utme_cbt.core.models import InvalidRequestError, OPTION_LABELS, Question
from utme_cbt.services.session_service import SessionAssembler, group_by_subject, to_dto

from conftest import aloc_item, unique_item_handler


def make_assembler(client, settings):
    return SessionAssembler(client, FallbackGenerator(), settings=settings, rng=random.Random(3))


def test_session_has_exact_length_and_valid_answers(make_client, settings):
    assembler = make_assembler(make_client(unique_item_handler), settings)

    session = asyncio.run(assembler.build_session(["english", "physics", "biology"], 4))

    assert session.total_questions == 12
    assert session.fallback_total == 0
    assert all(q.answer in OPTION_LABELS for q in session.questions)
    assert len({q.id for q in session.questions}) == 12
    for subject in ("english", "physics", "biology"):
        assert sum(1 for q in session.questions if q.subject == subject) == 4


def test_total_outage_serves_only_fallbacks(make_client, settings):
    def handler(request):
        return httpx.Response(503)

    assembler = make_assembler(make_client(handler), settings)

    questions = asyncio.run(assembler.assemble(["english", "mathematics"], 3))

    assert len(questions) == 6
    assert all(q.is_fallback for q in questions)
    assert len({q.id for q in questions}) == 6


def test_missing_token_serves_only_fallbacks(make_client, settings):
    settings.ALOC_ACCESS_TOKEN = ""
    assembler = make_assembler(make_client(unique_item_handler), settings)

    session = asyncio.run(assembler.build_session(["chemistry"], 5))

    assert session.total_questions == 5
    assert session.fallback_counts == {"chemistry": 5}


def test_partial_provider_results_are_topped_up(make_client, settings):
    # Every call returns the same two valid questions and one malformed item
    def handler(request):
        return httpx.Response(200, json={"status": 200, "data": [
            aloc_item(1),
            aloc_item(2, answer="b"),
            aloc_item(3, answer="x"),
        ]})

    assembler = make_assembler(make_client(handler), settings)

    session = asyncio.run(assembler.build_session(["english", "mathematics"], 3))

    assert session.total_questions == 6
    assert session.fallback_counts == {"english": 1, "mathematics": 1}
    for subject in ("english", "mathematics"):
        subject_questions = [q for q in session.questions if q.subject == subject]
        assert sum(1 for q in subject_questions if not q.is_fallback) == 2
        assert sum(1 for q in subject_questions if q.is_fallback) == 1
    assert len({q.id for q in session.questions}) == 6


def test_client_exceptions_fall_back(settings):
    class BrokenClient:
        async def fetch_questions(self, subject, count, exam_type="utme", year=None):
            raise RuntimeError("boom")

    assembler = SessionAssembler(BrokenClient(), FallbackGenerator(), settings=settings)

    questions = asyncio.run(assembler.assemble(["physics"], 2))

    assert len(questions) == 2
    assert all(q.is_fallback for q in questions)


def test_subject_refs_tag_questions_with_their_id(make_client, settings):
    assembler = make_assembler(make_client(unique_item_handler), settings)

    session = asyncio.run(assembler.build_session(
        [{"id": "maths", "name": "Mathematics"}, "Literature"], 2, year=2010
    ))

    assert {q.subject for q in session.questions} == {"maths", "literature"}
    assert session.year == "2010"
    grouped = group_by_subject(session)
    assert list(grouped) == ["maths", "literature"]
    assert all(len(items) == 2 for items in grouped.values())


@pytest.mark.parametrize("subjects,count,exam_type,year", [
    (["english"], 0, "utme", None),
    (["english"], -1, "utme", None),
    (["english"], 101, "utme", None),
    (["english"], True, "utme", None),
    ([], 5, "utme", None),
    (["english", "English"], 5, "utme", None),
    (["  "], 5, "utme", None),
    ([42], 5, "utme", None),
    (["english"], 5, "gce", None),
    (["english"], 5, "utme", "20x0"),
])
def test_invalid_requests_raise(make_client, settings, subjects, count, exam_type, year):
    assembler = make_assembler(make_client(unique_item_handler), settings)

    with pytest.raises(InvalidRequestError):
        asyncio.run(assembler.assemble(subjects, count, exam_type, year))


def test_to_dto_shape():
    question = FallbackGenerator().generate("biology", 1)[0]

    dto = to_dto(question)

    assert [option["id"] for option in dto["options"]] == list(OPTION_LABELS)
    assert dto["correctAnswer"] == question.answer
    assert dto["source"] == "fallback"
    assert "image" not in dto


def test_session_ids_stay_unique_when_dedup_evicts(make_client, settings):
    # The provider cycles through three ids whatever candidate is asked for
    dedup = Deduplicator(capacity=2, eviction_fraction=0.2)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"data": aloc_item(len(calls) % 3 + 1)})

    assembler = make_assembler(make_client(handler, deduplicator=dedup), settings)

    session = asyncio.run(assembler.build_session(["english"], 5))

    ids = [q.id for q in session.questions]
    assert len(ids) == len(set(ids)) == 5
    assert session.fallback_counts == {"english": 2}


def test_repeated_ids_across_subjects_are_replaced(settings):
    class RepeatingClient:
        async def fetch_questions(self, subject, count, exam_type="utme", year=None):
            return [Question(
                id="aloc_mathematics_7",
                question="What is 7 x 6?",
                options={"a": "42", "b": "36", "c": "48", "d": "13"},
                answer="a",
                subject=subject,
                exam_type=exam_type,
                exam_year="2010",
            )]

    assembler = SessionAssembler(RepeatingClient(), FallbackGenerator(), settings=settings)

    session = asyncio.run(assembler.build_session(["maths", "mathematics"], 1))

    assert session.total_questions == 2
    assert len({q.id for q in session.questions}) == 2
    assert session.fallback_counts == {"maths": 0, "mathematics": 1}
    assert [q.subject for q in session.questions if q.is_fallback] == ["mathematics"]


def test_health_check_reflects_provider_configuration(make_client, settings):
    assembler = make_assembler(make_client(unique_item_handler), settings)
    health = assembler.health_check()
    assert health["status"] == "healthy"
    assert health["dedup"]["used_questions"] == 0

    settings.ALOC_ACCESS_TOKEN = ""
    assert assembler.health_check()["status"] == "degraded"

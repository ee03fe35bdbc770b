import asyncio

import pytest

from categories import service as category_service
from core import errors
from queries import service as queries
from questions import service
from questions.service import AnswerInput, QuestionPatch

TWO_ANSWERS = [AnswerInput(answer="4", correct=True), AnswerInput(answer="5", correct=False)]


@pytest.fixture
async def science(store):
    return await category_service.create_category(store, title="Science", slug="science")


class TestCreateQuestion:
    async def test_creates_question_with_answers(self, store, science):
        row = await service.create_question(
            store,
            question="2+2?",
            category_id=science["id"],
            answers=TWO_ANSWERS,
        )

        assert row["question"] == "2+2?"
        assert row["category_id"] == science["id"]
        assert [(a["answer"], a["correct"]) for a in row["answers"]] == [("4", True), ("5", False)]
        assert {a["question_id"] for a in row["answers"]} == {row["id"]}

    async def test_unknown_category_creates_nothing(self, store, science):
        with pytest.raises(errors.DependencyError) as excinfo:
            await service.create_question(store, question="2+2?", category_id=999, answers=TWO_ANSWERS)

        assert excinfo.value.field == "categoryId"
        assert store.counts() == {"categories": 1, "questions": 0, "answers": 0}

    async def test_question_without_answers_is_allowed(self, store, science):
        row = await service.create_question(store, question="Open?", category_id=science["id"], answers=[])
        assert row["answers"] == []

    async def test_blank_answer_text_is_rejected_before_writing(self, store, science):
        with pytest.raises(errors.ValidationError):
            await service.create_question(
                store,
                question="2+2?",
                category_id=science["id"],
                answers=[AnswerInput(answer="", correct=True)],
            )
        assert store.counts()["questions"] == 0

    async def test_readers_never_see_a_question_without_its_answers(self, store, science):
        observed: list[int] = []

        async def read_repeatedly():
            for _ in range(20):
                for question in await queries.list_questions(store, category_id=science["id"]):
                    observed.append(len(question["answers"]))
                await asyncio.sleep(0)

        async def write_some():
            for i in range(5):
                await service.create_question(
                    store,
                    question=f"q{i}",
                    category_id=science["id"],
                    answers=TWO_ANSWERS,
                )

        await asyncio.gather(read_repeatedly(), write_some())

        assert set(observed) <= {2}


class TestUpdateQuestion:
    async def test_changes_text_only(self, store, science):
        row = await service.create_question(store, question="2+2?", category_id=science["id"], answers=TWO_ANSWERS)

        updated = await service.update_question(store, row["id"], QuestionPatch(question="Two plus two?"))

        assert updated["question"] == "Two plus two?"
        assert updated["category_id"] == science["id"]
        assert len(updated["answers"]) == 2

    async def test_moves_to_another_category(self, store, science):
        history = await category_service.create_category(store, title="History", slug="history")
        row = await service.create_question(store, question="2+2?", category_id=science["id"], answers=TWO_ANSWERS)

        updated = await service.update_question(store, row["id"], QuestionPatch(category_id=history["id"]))

        assert updated["category_id"] == history["id"]

    async def test_unknown_category_leaves_question_unchanged(self, store, science):
        row = await service.create_question(store, question="2+2?", category_id=science["id"], answers=TWO_ANSWERS)

        with pytest.raises(errors.DependencyError):
            await service.update_question(store, row["id"], QuestionPatch(question="Changed?", category_id=999))

        current = await queries.get_question(store, row["id"])
        assert current["category_id"] == science["id"]
        assert current["question"] == "2+2?"

    async def test_empty_patch_is_a_noop(self, store, science):
        row = await service.create_question(store, question="2+2?", category_id=science["id"], answers=TWO_ANSWERS)

        updated = await service.update_question(store, row["id"], QuestionPatch())

        assert updated == row

    async def test_missing_question(self, store, science):
        with pytest.raises(errors.NotFoundError):
            await service.update_question(store, 123, QuestionPatch(question="x"))


class TestDeleteQuestion:
    async def test_removes_question_and_its_answers_only(self, store, science):
        doomed = await service.create_question(store, question="a?", category_id=science["id"], answers=TWO_ANSWERS)
        kept = await service.create_question(store, question="b?", category_id=science["id"], answers=TWO_ANSWERS)

        await service.delete_question(store, doomed["id"])

        assert store.counts() == {"categories": 1, "questions": 1, "answers": 2}
        with pytest.raises(errors.NotFoundError):
            await queries.get_question(store, doomed["id"])
        assert len((await queries.get_question(store, kept["id"]))["answers"]) == 2

    async def test_missing_question(self, store):
        with pytest.raises(errors.NotFoundError):
            await service.delete_question(store, 5)


class TestParseId:
    @pytest.mark.parametrize("raw", ["abc", "1.5", "", "-3", "0", None, True])
    def test_rejects_non_numeric_or_non_positive(self, raw):
        with pytest.raises(errors.ValidationError):
            errors.parse_id(raw)

    def test_accepts_digits(self):
        assert errors.parse_id(" 12 ") == 12
        assert errors.parse_id(7) == 7

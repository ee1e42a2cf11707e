"""
Unit tests for question bank loading and pool filtering.
"""

import json

import pytest

from quizdeck.content.question_bank import QuestionBank, filter_pool
from quizdeck.core.errors import QuestionBankError
from quizdeck.core.models import QuestionRef


@pytest.fixture
def bank_file(tmp_path, sample_bank_data):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(sample_bank_data), encoding="utf-8")
    return path


class TestQuestionBankLoading:
    def test_load(self, bank_file):
        bank = QuestionBank.load(bank_file)

        assert len(bank) == 3
        assert bank.sections == ["Networking", "Security"]
        assert bank.quizzes("Networking") == ["OSI"]

    def test_question_fields(self, bank_file):
        question = QuestionBank.load(bank_file).get("q1")

        assert question.text == "Which layer handles routing?"
        assert question.section == "Networking"
        assert question.quiz == "OSI"
        assert question.correct_indices == {1}
        assert question.is_correct(1)
        assert not question.is_correct(0)
        assert question.ref == QuestionRef("q1", "Networking", "OSI")

    def test_missing_file(self, tmp_path):
        with pytest.raises(QuestionBankError):
            QuestionBank.load(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(QuestionBankError):
            QuestionBank.load(path)

    def test_question_without_id(self):
        data = [{"section": "S", "quizzes": [{"title": "Q", "questions": [{"question": "?"}]}]}]
        with pytest.raises(QuestionBankError):
            QuestionBank.from_data(data)

    def test_top_level_must_be_list(self):
        with pytest.raises(QuestionBankError):
            QuestionBank.from_data({"section": "S"})

    def test_duplicate_ids_keep_first(self, sample_bank_data):
        sample_bank_data[1]["quizzes"][0]["questions"][0]["id"] = "q1"
        bank = QuestionBank.from_data(sample_bank_data)

        assert len(bank) == 2
        assert bank.get("q1").section == "Networking"


class TestPoolFiltering:
    def test_refs_in_file_order(self, bank_file):
        assert [r.id for r in QuestionBank.load(bank_file).refs()] == ["q1", "q2", "q3"]

    def test_filter_by_section(self, bank_file):
        refs = QuestionBank.load(bank_file).refs(sections=["Security"])
        assert [r.id for r in refs] == ["q3"]

    def test_filter_by_quiz(self, pool):
        assert [r.id for r in filter_pool(pool, quizzes=["OSI"])] == ["q1", "q2"]

    def test_filters_combine(self, pool):
        assert filter_pool(pool, sections=["Networking"], quizzes=["Firewalls"]) == []

    def test_empty_filter_matches_all(self, pool):
        assert filter_pool(pool, sections=[], quizzes=None) == pool

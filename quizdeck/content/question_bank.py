"""
Question Bank: JSON question loader.

Loads multiple-choice questions from a JSON file laid out as
section -> quiz -> question:

    [
      {
        "section": "Networking",
        "quizzes": [
          {
            "title": "Subnetting",
            "questions": [
              {"id": "q1", "question": "...", "options": [{"text": "...", "correct": true}]}
            ]
          }
        ]
      }
    ]

The engine only ever sees the flat QuestionRef pool; question text and
options are for the terminal front-end.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from quizdeck.core.errors import QuestionBankError
from quizdeck.core.models import QuestionRef


@dataclass(frozen=True)
class QuestionOption:
    text: str
    correct: bool = False


@dataclass
class Question:
    """A multiple-choice question with its section/quiz labels."""

    id: str
    text: str
    section: str
    quiz: str
    options: list[QuestionOption] = field(default_factory=list)
    metadata: str | None = None

    @classmethod
    def from_dict(cls, data: dict, section: str, quiz: str) -> Question:
        """
        Create a Question from a dictionary (JSON).

        Raises:
            KeyError: If "id" or "question" is missing
        """
        options = [
            QuestionOption(text=str(opt.get("text", "")), correct=bool(opt.get("correct", False)))
            for opt in data.get("options", [])
            if isinstance(opt, dict)
        ]
        return cls(
            id=str(data["id"]),
            text=str(data["question"]),
            section=section,
            quiz=quiz,
            options=options,
            metadata=data.get("metadata"),
        )

    @property
    def ref(self) -> QuestionRef:
        return QuestionRef(id=self.id, section=self.section, quiz=self.quiz)

    @property
    def correct_indices(self) -> set[int]:
        return {i for i, opt in enumerate(self.options) if opt.correct}

    def is_correct(self, choice: int) -> bool:
        """Check a 0-based option index."""
        return choice in self.correct_indices


class QuestionBank:
    """
    In-memory question collection keyed by id.

    Keeps file order, which is the order sequential mode walks.
    """

    def __init__(self, questions: Iterable[Question] = ()):
        self._questions: dict[str, Question] = {}
        for question in questions:
            self.add(question)

    def add(self, question: Question) -> None:
        if question.id in self._questions:
            logger.warning(f"Duplicate question id {question.id}; keeping the first")
            return
        self._questions[question.id] = question

    @classmethod
    def load(cls, path: Path | str) -> QuestionBank:
        """
        Load a question bank from a JSON file.

        Raises:
            QuestionBankError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise QuestionBankError(f"Question bank not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise QuestionBankError(f"Invalid JSON in {path}: {e}") from e

        bank = cls.from_data(data)
        logger.info(f"Loaded {len(bank)} questions from {path}")
        return bank

    @classmethod
    def from_data(cls, data: object) -> QuestionBank:
        """Build a bank from already-parsed JSON."""
        if not isinstance(data, list):
            raise QuestionBankError("Question bank must be a list of sections")

        bank = cls()
        for section_data in data:
            if not isinstance(section_data, dict):
                raise QuestionBankError("Each section must be an object")
            section = str(section_data.get("section", ""))
            for quiz_data in section_data.get("quizzes", []):
                if not isinstance(quiz_data, dict):
                    raise QuestionBankError(f"Invalid quiz in section {section}")
                quiz = str(quiz_data.get("title", ""))
                for question_data in quiz_data.get("questions", []):
                    try:
                        bank.add(Question.from_dict(question_data, section, quiz))
                    except (KeyError, TypeError, AttributeError) as e:
                        raise QuestionBankError(
                            f"Invalid question in {section}/{quiz}: {e!r}"
                        ) from e
        return bank

    def get(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    @property
    def sections(self) -> list[str]:
        return list(dict.fromkeys(q.section for q in self))

    def quizzes(self, section: str | None = None) -> list[str]:
        return list(dict.fromkeys(
            q.quiz for q in self if section is None or q.section == section
        ))

    def refs(
        self,
        sections: Iterable[str] | None = None,
        quizzes: Iterable[str] | None = None,
    ) -> list[QuestionRef]:
        """Candidate pool in file order, optionally filtered."""
        return filter_pool([q.ref for q in self], sections, quizzes)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions.values())

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._questions


def filter_pool(
    pool: Iterable[QuestionRef],
    sections: Iterable[str] | None = None,
    quizzes: Iterable[str] | None = None,
) -> list[QuestionRef]:
    """
    Restrict a pool to the given sections and quizzes.

    An empty or missing filter matches everything.
    """
    section_set = set(sections or ())
    quiz_set = set(quizzes or ())
    return [
        q for q in pool
        if (not section_set or q.section in section_set)
        and (not quiz_set or q.quiz in quiz_set)
    ]

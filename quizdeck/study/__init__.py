"""
Study Module - Front-end facing orchestration.
"""

from quizdeck.study.service import AnswerOutcome, StudyService

__all__ = ["AnswerOutcome", "StudyService"]

"""
Content Module - Question bank loading and pool filtering.
"""

from quizdeck.content.question_bank import Question, QuestionBank, QuestionOption, filter_pool

__all__ = ["Question", "QuestionBank", "QuestionOption", "filter_pool"]

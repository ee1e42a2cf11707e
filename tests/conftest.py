"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizdeck.core.models import QuestionRef  # noqa: E402
from quizdeck.scheduling.selector import Selector  # noqa: E402
from quizdeck.scheduling.state_store import KnowledgeStateStore  # noqa: E402
from quizdeck.scheduling.strategies import RatingStrategy, SM2Strategy  # noqa: E402

# Local noon, so "today" and "tomorrow" are unambiguous in any timezone
NOW = int(datetime(2024, 3, 1, 12, 0, 0).timestamp() * 1000)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed wall clock in epoch ms."""
    return NOW


@pytest.fixture
def pool():
    """Three questions across two quizzes."""
    return [
        QuestionRef("q1", section="Networking", quiz="OSI"),
        QuestionRef("q2", section="Networking", quiz="OSI"),
        QuestionRef("q3", section="Security", quiz="Firewalls"),
    ]


@pytest.fixture
def rating_strategy():
    return RatingStrategy()


@pytest.fixture
def sm2_strategy():
    return SM2Strategy()


@pytest.fixture
def rating_store(rating_strategy):
    return KnowledgeStateStore(rating_strategy)


@pytest.fixture
def sm2_store(sm2_strategy):
    return KnowledgeStateStore(sm2_strategy)


@pytest.fixture
def rating_selector(rating_strategy, rating_store):
    return Selector(rating_strategy, rating_store, rng=random.Random(42))


@pytest.fixture
def sm2_selector(sm2_strategy, sm2_store):
    return Selector(sm2_strategy, sm2_store, rng=random.Random(42))


@pytest.fixture
def sample_bank_data():
    """Question bank JSON in section -> quiz -> question layout."""
    return [
        {
            "section": "Networking",
            "quizzes": [
                {
                    "title": "OSI",
                    "questions": [
                        {
                            "id": "q1",
                            "question": "Which layer handles routing?",
                            "options": [
                                {"text": "Data Link", "correct": False},
                                {"text": "Network", "correct": True},
                            ],
                        },
                        {
                            "id": "q2",
                            "question": "Which layer uses MAC addresses?",
                            "options": [
                                {"text": "Data Link", "correct": True},
                                {"text": "Transport", "correct": False},
                            ],
                        },
                    ],
                }
            ],
        },
        {
            "section": "Security",
            "quizzes": [
                {
                    "title": "Firewalls",
                    "questions": [
                        {
                            "id": "q3",
                            "question": "Is a stateful firewall aware of connections?",
                            "options": [
                                {"text": "Yes", "correct": True},
                                {"text": "No", "correct": False},
                            ],
                        }
                    ],
                }
            ],
        },
    ]

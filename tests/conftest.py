"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require MongoDB)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def mongodb_uri():
    """Get MongoDB URI from environment."""
    return os.environ.get("MONGODB_URI", "mongodb://localhost:27017")


@pytest.fixture
def anchor():
    """Fixed reference time for seed documents."""
    return datetime(2025, 11, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    """Mock pymongo Database with per-name collection mocks."""
    db = MagicMock()
    db.name = "test_db"
    collections = {}

    def get_collection(name):
        if name not in collections:
            collection = MagicMock()
            collection.name = name
            collection.index_information.return_value = {"_id_": {"key": [("_id", 1)]}}
            collections[name] = collection
        return collections[name]

    db.get_collection.side_effect = get_collection
    db.list_collection_names.return_value = []
    db.collections = collections
    return db


@pytest.fixture
def sample_summary_doc():
    """Provide a valid material_summary document."""
    now = datetime.now(timezone.utc)
    return {
        "material_id": str(uuid4()),
        "summary": "MongoDB stores BSON documents in collections.",
        "key_points": ["Documents are BSON", "Collections hold documents"],
        "language": "en",
        "word_count": 6,
        "version": 1,
        "ai_model": "gpt-4",
        "processing_time_ms": 1200,
        "token_usage": {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_assessment_doc():
    """Provide a valid material_assessment document."""
    now = datetime.now(timezone.utc)
    return {
        "material_id": str(uuid4()),
        "title": "Quiz: MongoDB basics",
        "questions": [
            {
                "id": str(uuid4()),
                "text": "What does MongoDB store?",
                "type": "multiple_choice",
                "difficulty": "easy",
                "points": 5,
                "options": [
                    {"id": "opt-1", "text": "Rows", "is_correct": False, "order": 1},
                    {"id": "opt-2", "text": "Documents", "is_correct": True, "order": 2},
                ],
                "explanation": "MongoDB is a document database.",
                "order": 1,
            },
            {
                "id": str(uuid4()),
                "text": "MongoDB supports multi-document transactions",
                "type": "true_false",
                "difficulty": "medium",
                "points": 5,
                "correct_answer": "true",
                "explanation": "Supported since version 4.0.",
                "order": 2,
            },
        ],
        "total_questions": 2,
        "total_points": 10,
        "passing_score": 6,
        "difficulty_distribution": {"easy": 1, "medium": 1, "hard": 0},
        "version": 1,
        "ai_model": "gpt-4o",
        "processing_time_ms": 900,
        "created_at": now,
        "updated_at": now,
    }

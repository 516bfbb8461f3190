#!/usr/bin/env python3
"""
pytest configuration for the task planner tests.

Every test gets its own SQLite file and a fixed clock (Monday 2024-01-15),
so date normalization is deterministic.
"""

import os
import sys
from datetime import date

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.config import AppConfig
from api.dependencies import build_engine, build_session_factory
from api.main import create_app
from api.store import TaskStore

FIXED_TODAY = date(2024, 1, 15)


@pytest.fixture
def today():
    return FIXED_TODAY


@pytest.fixture
def clock(today):
    return lambda: today


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        db_file=str(tmp_path / "tasks.db"),
        web_dir=str(tmp_path / "web"),
        log_level="WARNING",
    )


@pytest.fixture
def db_engine(app_config):
    engine = build_engine(app_config.database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine, clock):
    return TaskStore(build_session_factory(db_engine), clock=clock)


@pytest.fixture
def api_client(app_config, store, db_engine, clock):
    """Test client bound to the per-test store."""
    app = create_app(config=app_config, store=store, db_engine=db_engine, clock=clock)
    yield TestClient(app)


@pytest.fixture
def sample_task():
    return {
        "date": "20240120",
        "title": "Water the plants",
        "comment": "Balcony first",
        "repeat": "d 3",
    }

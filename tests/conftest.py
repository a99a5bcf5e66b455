import random

import pytest

from athlete_ai.config import Settings
from athlete_ai.database import build_engine, build_session_factory
from athlete_ai.init_db import init_db
from athlete_ai.storage import ResultStore


@pytest.fixture
def settings():
    return Settings(_env_file=None, total_athletes=150000)


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'results.db'}")
    init_db(engine)
    yield ResultStore(build_session_factory(engine))
    engine.dispose()

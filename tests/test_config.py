import logging

import pytest

from athlete_ai import database
from athlete_ai.config import Settings, get_settings
from athlete_ai.logging_config import configure_logging
from athlete_ai.models import AthleteProfile


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("TOTAL_ATHLETES", "5000")
    monkeypatch.setenv("DEFAULT_ACTIVITY", "push-ups")
    settings = Settings(_env_file=None)

    assert settings.total_athletes == 5000
    assert settings.default_activity == "push-ups"
    assert settings.alert_repeat_seconds == 2.0


def test_settings_are_cached():
    assert get_settings() is get_settings()


def test_configure_logging(settings, caplog):
    with caplog.at_level(logging.INFO):
        configure_logging(settings)
    assert "Logging configured" in caplog.text


class TestSyncDb:
    @pytest.fixture
    def session_factory(self, tmp_path, monkeypatch):
        engine = database.build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}")
        AthleteProfile.metadata.create_all(engine)
        factory = database.build_session_factory(engine)
        monkeypatch.setattr(database, "SessionLocal", factory)
        yield factory
        engine.dispose()

    def test_commits_on_success(self, session_factory):
        for session in database.get_sync_db():
            session.add(AthleteProfile(id="primary", total_xp=10))

        with session_factory() as session:
            assert session.get(AthleteProfile, "primary").total_xp == 10

    def test_rolls_back_on_error(self, session_factory):
        db = database.get_sync_db()
        session = next(db)
        session.add(AthleteProfile(id="primary", total_xp=10))
        with pytest.raises(RuntimeError):
            db.throw(RuntimeError("boom"))

        with session_factory() as session:
            assert session.get(AthleteProfile, "primary") is None

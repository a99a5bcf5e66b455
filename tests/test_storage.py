import pytest

from athlete_ai.schemas import AthleteProfileUpdate, SessionResultCreate
from athlete_ai.storage import SubmissionResponse, sync_results


def make_record(session_id="s-1", activity="squats", score=70):
    return SessionResultCreate(
        session_id=session_id,
        activity=activity,
        score=score,
        score_breakdown={"form_accuracy": 80, "score": score},
        reps=12,
        xp_earned=120,
        form_scores=[80, 85, 75],
    )


class TestResultStore:
    def test_online_result_is_stored_synced(self, store):
        result_id = store.save_result(make_record(), online=True)
        stored = store.get_result(result_id)

        assert stored.synced is True
        assert stored.score_breakdown == {"form_accuracy": 80, "score": 70}
        assert stored.form_scores == [80, 85, 75]
        assert store.get_sync_queue() == []

    def test_offline_result_is_queued(self, store):
        store.save_result(make_record("a"), online=False)
        store.save_result(make_record("b"), online=True)
        store.save_result(make_record("c"), online=False)

        assert [r.session_id for r in store.get_sync_queue()] == ["a", "c"]

    def test_list_results_newest_first(self, store):
        store.save_result(make_record("a", activity="squats"))
        store.save_result(make_record("b", activity="sit-ups"))
        store.save_result(make_record("c", activity="squats"))

        assert [r.session_id for r in store.list_results()] == ["c", "b", "a"]
        assert [r.session_id for r in store.list_results("squats")] == ["c", "a"]

    def test_mark_synced_by_id(self, store):
        first = store.save_result(make_record("a"), online=False)
        second = store.save_result(make_record("b"), online=False)

        assert store.mark_results_synced([first, 999]) == 1
        assert store.get_result(first).synced is True
        assert store.get_result(second).synced is False
        assert store.mark_results_synced([]) == 0

    def test_profile_and_xp(self, store):
        assert store.get_profile() is None

        profile = store.save_profile(AthleteProfileUpdate(full_name="A. Athlete", sport="Athletics"))
        assert profile.full_name == "A. Athlete"
        assert profile.level == 1

        profile = store.add_xp(250)
        assert profile.total_xp == 250
        assert profile.level == 2
        assert store.get_profile().sport == "Athletics"


class TestSync:
    def test_offline_sync_does_nothing(self, store):
        store.save_result(make_record(), online=False)
        report = sync_results(store, lambda results: SubmissionResponse(success=True), online=False)

        assert report.success is False
        assert len(store.get_sync_queue()) == 1

    def test_empty_queue(self, store):
        report = sync_results(store, lambda results: pytest.fail("nothing to submit"))
        assert report.success is True
        assert report.synced_count == 0

    def test_successful_sync_clears_queue(self, store):
        first = store.save_result(make_record("a"), online=False)
        store.save_result(make_record("b"), online=False)
        submitted = []

        def submitter(results):
            submitted.extend(r.session_id for r in results)
            return SubmissionResponse(success=True, reference_id="REF-1")

        report = sync_results(store, submitter)

        assert report.success is True
        assert report.synced_count == 2
        assert report.reference_id == "REF-1"
        assert submitted == ["a", "b"]
        assert store.get_sync_queue() == []
        assert store.get_result(first).synced is True

    def test_failed_submission_keeps_queue(self, store):
        store.save_result(make_record(), online=False)

        def broken(results):
            raise ConnectionError("upstream unavailable")

        report = sync_results(store, broken)
        assert report.success is False
        assert "upstream unavailable" in report.message

        report = sync_results(store, lambda results: SubmissionResponse(success=False, message="rejected"))
        assert report.success is False
        assert len(store.get_sync_queue()) == 1

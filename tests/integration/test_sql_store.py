"""Integration tests for the matching core running on SQLite.

Exercises matching, lifecycle transitions and messaging end to end against
SqlMatchStore, first on an in-memory database and then on a file database
where concurrent threads each hold their own connection.
"""

import threading

import pytest

from helpmatch.config.models import MatchingConfig
from helpmatch.connections import ConnectionService
from helpmatch.domain.models import MatchState
from helpmatch.matching import InvalidTransitionError, MatchingService, make_match
from helpmatch.persistence import DataIntegrityError, SqlMatchStore, close_database, init_database
from helpmatch.persistence import repositories as repositories_module
from tests.helpers import FIXED_NOW, later, seeded_store


@pytest.fixture
def sql_store():
    """Seeded store on an in-memory database."""
    init_database("sqlite:///:memory:")
    yield seeded_store(SqlMatchStore())
    close_database()


@pytest.fixture
def file_store(tmp_path):
    """Seeded store on a file database."""
    init_database(f"sqlite:///{tmp_path / 'concurrent.db'}")
    yield seeded_store(SqlMatchStore())
    close_database()


@pytest.mark.integration
class TestSqlMatchStore:
    """The matching core running against SQLite."""

    @pytest.fixture
    def service(self, sql_store):
        return MatchingService(sql_store, MatchingConfig(max_workers=1))

    def test_generate_matches(self, service):
        matches = service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)

        assert [m.helper_id for m in matches] == ["h1", "h2", "h3", "h4"]
        assert [m.score for m in matches] == pytest.approx([0.9, 0.375, 0.2, 0.2])

    def test_find_by_request_orders_by_score_then_helper(self, service, sql_store):
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
        assert [m.helper_id for m in sql_store.find_by_request("r1")] == ["h1", "h2", "h3", "h4"]

    def test_list_candidates_excludes_user(self, sql_store):
        assert [u.id for u in sql_store.list_candidates("u0")] == ["h1", "h2", "h3", "h4"]

    def test_accepted_match_survives_regeneration(self, service, sql_store):
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
        service.request_match("r1__h4", now=later(1))
        accepted = service.respond_to_match(
            "r1__h4", {"action": "accept", "connectionPayload": {"message": "hi"}}, now=later(2)
        )

        refreshed = service.generate_matches({"requestId": "r1", "topN": 2}, now=later(30))

        assert [m.helper_id for m in refreshed] == ["h1", "h2", "h4"]
        assert refreshed[2] == accepted
        assert sql_store.get_match("r1__h1").created_at == FIXED_NOW
        assert sql_store.get_match("r1__h1").updated_at == later(30)

    def test_request_twice_conflicts(self, service):
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
        service.request_match("r1__h1")

        with pytest.raises(InvalidTransitionError, match="invalid transition from requested"):
            service.request_match("r1__h1")

    def test_inbox(self, service, sql_store):
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
        service.generate_matches({"requestId": "r2"}, now=FIXED_NOW)
        service.request_match("r2__h3", now=later(1))
        service.request_match("r1__h3", now=later(2))

        assert [m.id for m in service.inbox("h3")] == ["r1__h3", "r2__h3"]
        assert sql_store.find_by_helper("h3", [MatchState.SUGGESTED]) == []

    def test_messages(self, service, sql_store):
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
        service.request_match("r1__h1", now=later(1))
        service.respond_to_match("r1__h1", {"action": "accept"}, now=later(2))

        connections = ConnectionService(sql_store)
        connections.post_message("r1__h1", {"senderId": "h1", "senderRole": "helper", "text": "Hi"}, now=later(3))

        assert [m.text for m in connections.list_messages("r1__h1")] == ["Hi"]
        assert sql_store.get_match("r1__h1").updated_at == later(3)

    def test_save_suggestion_retries_after_concurrent_insert(self, sql_store, monkeypatch):
        original = repositories_module.MatchRepository.save_suggestion
        calls = []

        def flaky(self, fresh):
            calls.append(fresh.id)
            if len(calls) == 1:
                raise DataIntegrityError("inserted concurrently")
            return original(self, fresh)

        monkeypatch.setattr(repositories_module.MatchRepository, "save_suggestion", flaky)

        saved = sql_store.save_suggestion(make_match("r1", "u0", "h1", 0.5, ["Request format: chat"], now=FIXED_NOW))

        assert calls == ["r1__h1", "r1__h1"]
        assert saved.id == "r1__h1"


@pytest.mark.integration
class TestConcurrentFileDatabase:
    """Concurrency against a file database, where each thread gets its own connection."""

    def test_parallel_regeneration(self, file_store):
        service = MatchingService(file_store, MatchingConfig(max_workers=4))
        matches = service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)

        assert [m.helper_id for m in matches] == ["h1", "h2", "h3", "h4"]
        assert len(file_store.find_by_request("r1")) == 4

    def test_only_one_request_wins(self, file_store):
        service = MatchingService(file_store, MatchingConfig(max_workers=1))
        service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)

        barrier = threading.Barrier(4)
        outcomes = []

        def attempt():
            barrier.wait()
            try:
                service.request_match("r1__h1")
                outcomes.append("ok")
            except InvalidTransitionError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=attempt) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "conflict", "conflict", "ok"]

#!/usr/bin/env python3
"""
Test suite for the sqlite expression repository
"""

import os
from datetime import date, datetime, time, timedelta

import pytest

from phrasecoach.db import ExpressionRepository, seed_default_expressions
from phrasecoach.db.seed import DEFAULT_CATEGORIES, SAMPLE_EXPRESSIONS
from phrasecoach.tutoring import TutoringEngine, StaticScenarioGenerator, SessionSummary, ExpressionResult


@pytest.fixture
def repo(tmp_path):
    repository = ExpressionRepository(str(tmp_path / "test.db"))
    yield repository
    repository.close()


class TestExpressions:
    """Tests for expression CRUD"""

    def test_create_database(self, tmp_path):
        """Test database creation in a nested directory"""
        db_path = tmp_path / "nested" / "phrasecoach.db"
        repository = ExpressionRepository(str(db_path))

        assert os.path.exists(db_path)
        repository.close()

    def test_in_memory(self):
        repository = ExpressionRepository(':memory:')
        assert repository.add_expression("Hello").id == 1
        repository.close()

    def test_add_and_retrieve(self, repo):
        expr = repo.add_expression("  Nice to meet you  ")

        assert expr.id is not None
        assert expr.text == "Nice to meet you"
        assert (expr.correct_count, expr.total_count) == (0, 0)
        assert expr.last_used_at is None
        assert isinstance(expr.created_at, datetime)
        assert repo.get_expression(expr.id) == expr

    def test_empty_text_rejected(self, repo):
        with pytest.raises(ValueError):
            repo.add_expression("   ")

    def test_get_missing(self, repo):
        assert repo.get_expression(404) is None

    def test_list_newest_first(self, repo):
        first = repo.add_expression("one")
        second = repo.add_expression("two")

        assert [e.id for e in repo.get_expressions()] == [second.id, first.id]

    def test_filter_by_category(self, repo):
        category_id = repo.add_category("Travel", "🗺️")
        repo.add_expression("Where is the station?", category_id)
        repo.add_expression("Hello")

        found = repo.get_expressions(category_id=category_id)
        assert [e.text for e in found] == ["Where is the station?"]

    def test_by_ids_keeps_requested_order(self, repo):
        ids = [repo.add_expression(text).id for text in ("a", "b", "c")]

        found = repo.get_expressions_by_ids([ids[2], ids[0], 999])

        assert [e.id for e in found] == [ids[2], ids[0]]
        assert repo.get_expressions_by_ids([]) == []

    def test_update_expression(self, repo):
        expr = repo.add_expression("Helo")
        updated = repo.update_expression(expr.id, text="Hello")

        assert updated.text == "Hello"
        with pytest.raises(KeyError):
            repo.update_expression(999, text="x")
        with pytest.raises(ValueError):
            repo.update_expression(expr.id, text="  ")

    def test_delete_expression(self, repo):
        expr = repo.add_expression("Bye")

        assert repo.delete_expression(expr.id)
        assert not repo.delete_expression(expr.id)
        assert repo.get_expression(expr.id) is None


class TestCategories:
    """Tests for categories"""

    def test_duplicate_category(self, repo):
        assert repo.add_category("Greetings", "👋") is not None
        assert repo.add_category("Greetings", "👋") is None
        assert len(repo.get_categories()) == 1

    def test_get_by_name(self, repo):
        category_id = repo.add_category("Business", "💼")
        assert repo.get_category_by_name("Business")['id'] == category_id
        assert repo.get_category_by_name("Nope") is None

    def test_update_category(self, repo):
        category_id = repo.add_category("Work", "💼")

        updated = repo.update_category(category_id, name="Business")
        assert (updated['name'], updated['icon']) == ("Business", "💼")

        updated = repo.update_category(category_id, icon="📈")
        assert (updated['name'], updated['icon']) == ("Business", "📈")

    def test_update_category_unknown_id(self, repo):
        with pytest.raises(KeyError, match="Category with id 42 not found"):
            repo.update_category(42, name="Anything")

    def test_update_category_invalid_name(self, repo):
        first = repo.add_category("Greetings")
        repo.add_category("Travel")

        with pytest.raises(ValueError):
            repo.update_category(first, name="  ")
        with pytest.raises(ValueError):
            repo.update_category(first, name="Travel")
        assert repo.get_category(first)['name'] == "Greetings"

    def test_delete_category_keeps_expressions(self, repo):
        category_id = repo.add_category("Travel", "✈️")
        expr = repo.add_expression("Where is the station?", category_id)

        assert repo.delete_category(category_id)
        assert repo.get_category(category_id) is None
        assert repo.get_expression(expr.id).category_id is None
        assert not repo.delete_category(category_id)

    def test_foreign_keys_enforced(self, repo):
        with pytest.raises(ValueError, match="Category with id 999 not found"):
            repo.add_expression("Orphan", category_id=999)
        assert repo.get_expressions() == []


class TestUsageStats:
    """Tests for per-expression counters"""

    def test_update_stats(self, repo):
        expr = repo.add_expression("Nice to meet you")

        after_correct = repo.update_expression_stats(expr.id, True)
        assert (after_correct.correct_count, after_correct.total_count) == (1, 1)
        assert after_correct.last_used_at is not None

        after_miss = repo.update_expression_stats(expr.id, False)
        assert (after_miss.correct_count, after_miss.total_count) == (1, 2)

    def test_update_stats_unknown_id(self, repo):
        with pytest.raises(KeyError):
            repo.update_expression_stats(999, True)

    def test_engine_turns_update_counters(self, repo):
        """One counter update per turn, driven by the engine"""
        nice = repo.add_expression("Nice to meet you")
        bye = repo.add_expression("Have a wonderful day")
        engine = TutoringEngine(scenario_generator=StaticScenarioGenerator(), repository=repo)

        session = engine.start_session([nice.id, bye.id])
        engine.process_user_answer(session.session_id, "Nice to meet you!")
        engine.process_user_answer(session.session_id, "nice to meet you")
        engine.process_user_answer(session.session_id, "What time is it?")

        nice_row = repo.get_expression(nice.id)
        bye_row = repo.get_expression(bye.id)
        assert (nice_row.correct_count, nice_row.total_count) == (1, 2)
        assert (bye_row.correct_count, bye_row.total_count) == (0, 1)


class TestPracticeHistory:
    """Tests for session records and overall stats"""

    def _summary(self, session_id, correct, attempts):
        results = [
            ExpressionResult(expression_id=1, text="Nice to meet you", is_completed=True,
                             correct_usage=correct > 0, attempts=attempts),
        ]
        return SessionSummary(
            session_id=session_id,
            total_expressions=1,
            completed_expressions=1,
            correct_usages=correct,
            total_attempts=attempts,
            session_duration_seconds=30,
            expression_results=results,
            is_complete=True,
        )

    def test_record_and_list(self, repo):
        repo.record_session(self._summary("s1", 1, 1))

        sessions = repo.list_sessions()

        assert len(sessions) == 1
        assert sessions[0]['session_id'] == "s1"
        assert sessions[0]['duration_seconds'] == 30
        assert sessions[0]['results'][0]['text'] == "Nice to meet you"

    def test_same_session_id_keeps_both_records(self, repo):
        """Short session ids repeat across runs; every finished round is kept"""
        repo.record_session(self._summary("s1", 0, 1))
        repo.record_session(self._summary("s1", 1, 2))

        sessions = repo.list_sessions()
        assert len(sessions) == 2
        assert [s['total_attempts'] for s in sessions] == [2, 1]
        assert repo.get_user_stats()['total_sessions'] == 2

    def _finished_on(self, repo, *days):
        for i, day in enumerate(days):
            repo.conn.execute("""
                INSERT INTO practice_sessions
                (session_id, total_expressions, completed_expressions, correct_usages,
                 total_attempts, duration_seconds, results_json, finished_at)
                VALUES (?, 1, 1, 1, 1, 10, '[]', ?)
            """, (f"s{i}", datetime.combine(day, time(12, 0)).isoformat()))
        repo.conn.commit()

    def test_streak_empty(self, repo):
        assert repo.current_streak() == 0
        assert repo.get_user_stats()['current_streak'] == 0

    def test_streak_counts_consecutive_days(self, repo):
        today = date(2024, 3, 10)
        self._finished_on(repo, today, today, today - timedelta(days=1),
                          today - timedelta(days=2), today - timedelta(days=4))

        assert repo.current_streak(today) == 3

    def test_streak_survives_until_today_is_practiced(self, repo):
        today = date(2024, 3, 10)
        self._finished_on(repo, today - timedelta(days=1), today - timedelta(days=2))

        assert repo.current_streak(today) == 2

    def test_streak_broken(self, repo):
        today = date(2024, 3, 10)
        self._finished_on(repo, today - timedelta(days=2), today - timedelta(days=3))

        assert repo.current_streak(today) == 0

    def test_streak_in_user_stats(self, repo):
        repo.record_session(self._summary("s1", 1, 1))
        assert repo.get_user_stats()['current_streak'] == 1

    def test_user_stats_empty(self, repo):
        stats = repo.get_user_stats()

        assert stats['total_sessions'] == 0
        assert stats['overall_accuracy'] == 0.0
        assert stats['last_practice_date'] is None

    def test_user_stats(self, repo):
        expr = repo.add_expression("Nice to meet you")
        repo.update_expression_stats(expr.id, True)
        repo.update_expression_stats(expr.id, False)
        repo.update_expression_stats(expr.id, False)
        repo.record_session(self._summary("s1", 1, 3))

        stats = repo.get_user_stats()

        assert stats['total_sessions'] == 1
        assert stats['total_expressions'] == 1
        assert stats['total_turns'] == 3
        assert stats['overall_accuracy'] == 33.3
        assert isinstance(stats['last_practice_date'], datetime)


class TestSeed:
    """Tests for default data"""

    def test_seed_empty_repository(self, repo):
        added = seed_default_expressions(repo)

        assert len(added) == len(SAMPLE_EXPRESSIONS)
        assert len(repo.get_categories()) == len(DEFAULT_CATEGORIES)
        assert all(e.category_id is not None for e in added)

    def test_seed_skips_non_empty(self, repo):
        repo.add_expression("Mine")

        assert seed_default_expressions(repo) == []
        assert len(repo.get_expressions()) == 1

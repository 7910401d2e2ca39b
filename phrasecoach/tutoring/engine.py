#!/usr/bin/env python3
"""
TutoringEngine - Main orchestrator for expression practice sessions.

Owns the session store, scores each utterance against the remaining target
expressions, applies the state transition, and only then talks to the
scenario generator and the expression repository. Collaborator failures are
logged and replaced with fallbacks so a turn never fails because of them.
"""

import uuid
import random
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple, TYPE_CHECKING

from .errors import InvalidInput, SessionAlreadyComplete
from .scenarios import ScenarioGenerator, StaticScenarioGenerator, coerce_scenario, fallback_scenario
from .state import (
    EvaluationResult,
    Expression,
    ExpressionResult,
    Scenario,
    SelectionPolicy,
    Session,
    SessionProgress,
    SessionSummary,
    TurnOutcome,
)
from .store import SessionStore
from . import prompts
from . import similarity

if TYPE_CHECKING:
    from ..db import ExpressionRepository


logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return str(uuid.uuid4())[:8]


class TutoringEngine:
    """Tracks practice sessions and evaluates learner utterances"""

    def __init__(
        self,
        scenario_generator: Optional[ScenarioGenerator] = None,
        repository: Optional['ExpressionRepository'] = None,
        store: Optional[SessionStore] = None,
        selection: str = 'first',
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        self.rng = rng or random.Random()
        self.scenario_generator = scenario_generator or StaticScenarioGenerator(self.rng)
        self.repository = repository
        self.store = store or SessionStore()
        self.selection = self._parse_selection(selection)
        self.clock = clock
        self.id_factory = id_factory

    def _parse_selection(self, selection) -> SelectionPolicy:
        """Parse selection string to SelectionPolicy enum"""
        if isinstance(selection, SelectionPolicy):
            return selection
        policy_map = {
            'first': SelectionPolicy.FIRST,
            'random': SelectionPolicy.RANDOM,
        }
        return policy_map.get(str(selection).lower(), SelectionPolicy.FIRST)

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def start_session(self, expression_ids: Iterable[int]) -> Session:
        """Resolve expression ids through the repository and start a session"""
        ids = list(expression_ids)
        if not ids:
            raise InvalidInput("Select at least one expression to practice")
        if self.repository is None:
            raise InvalidInput("No expression repository configured to resolve ids")

        expressions = self.repository.get_expressions_by_ids(ids)
        found = {expr.id for expr in expressions}
        missing = [i for i in ids if i not in found]
        if missing:
            raise InvalidInput(f"Unknown expression id(s): {', '.join(str(i) for i in missing)}")

        return self.initialize_session(expressions)

    def initialize_session(self, expressions: List[Expression], session_id: str = None) -> Session:
        """Create a new ACTIVE session and its opening scenario"""
        expressions = list(expressions or [])
        if not expressions:
            raise InvalidInput("Select at least one expression to practice")

        ids = [expr.id for expr in expressions]
        if len(set(ids)) != len(ids):
            raise InvalidInput("Each expression can only appear once in a session")

        session_id = session_id or self._unused_session_id()
        session = Session.start(session_id, expressions, created_at=self.clock())
        target = self._select_target(session)
        session.current_expression_id = target.id
        self.store.create(session)

        logger.info("Session %s initialized with %d expression(s)", session_id, len(expressions))

        with self.store.locked(session_id) as live:
            live.scenario = self._generate_scenario(target)
            return self.store.snapshot(session_id)

    def cleanup_session(self, session_id: str) -> None:
        """Drop a session from the store (idempotent)"""
        if self.store.contains(session_id):
            logger.info("Session %s cleaned up", session_id)
        self.store.delete(session_id)

    def get_session(self, session_id: str) -> Session:
        """Detached copy of the session"""
        return self.store.snapshot(session_id)

    def should_end_session(self, session_id: str) -> bool:
        """Check whether every expression in the session is completed"""
        with self.store.locked(session_id) as session:
            return session.is_complete

    # =========================================================================
    # Turn processing
    # =========================================================================

    def process_user_answer(self, session_id: str, utterance: str) -> EvaluationResult:
        """Evaluate one learner utterance and advance the session"""
        with self.store.locked(session_id) as session:
            if session.is_complete:
                raise SessionAlreadyComplete(session_id)
            if not isinstance(utterance, str) or not utterance.strip():
                raise InvalidInput("Say something to answer the scenario")

            now = self.clock()
            result, stats_target = self._evaluate(session, utterance, now)

            if session.all_complete():
                session.mark_complete(now)
                session.current_expression_id = None
                logger.info("Session %s complete", session_id)
            else:
                current = session.get_expression(session.current_expression_id)
                if current is None or session.states[current.id].is_completed:
                    session.current_expression_id = self._select_target(session).id

            result.session_complete = session.is_complete

            logger.debug(
                "Session %s turn: outcome=%s expression=%s similarity=%.2f",
                session_id, result.outcome.value, result.evaluated_expression_id, result.similarity,
            )

        self._record_stats(*stats_target)

        return result

    def _evaluate(
        self,
        session: Session,
        utterance: str,
        now: datetime,
    ) -> Tuple[EvaluationResult, Tuple[int, bool]]:
        """Classify the utterance and apply the ExpressionState transition"""
        incomplete = session.incomplete_expressions()
        best, best_score = self._best_match(utterance, incomplete)

        if best is not None and similarity.is_correct(best_score):
            session.states[best.id].record_correct(now)
            return EvaluationResult(
                is_correct=True,
                feedback_text=prompts.FEEDBACK_CORRECT.format(expression=best.text),
                session_complete=False,
                outcome=TurnOutcome.CORRECT,
                detected_expression_id=best.id,
                evaluated_expression_id=best.id,
                similarity=best_score,
            ), (best.id, True)

        repeat, repeat_score = self._best_match(utterance, session.completed_expressions())
        if repeat is not None and similarity.is_correct(repeat_score):
            # Completion and correct usage stay as they were
            session.states[repeat.id].record_correct(now)
            return EvaluationResult(
                is_correct=False,
                feedback_text=prompts.FEEDBACK_ALREADY_COMPLETED.format(expression=repeat.text),
                session_complete=False,
                outcome=TurnOutcome.ALREADY_COMPLETED,
                detected_expression_id=repeat.id,
                evaluated_expression_id=repeat.id,
                similarity=repeat_score,
                already_completed=True,
            ), (repeat.id, False)

        if best is not None and similarity.is_close(best_score):
            # Near misses leave attempts untouched
            return EvaluationResult(
                is_correct=False,
                feedback_text=prompts.FEEDBACK_CLOSE.format(expression=best.text),
                session_complete=False,
                outcome=TurnOutcome.CLOSE,
                evaluated_expression_id=best.id,
                similarity=best_score,
            ), (best.id, False)

        # Fail-forward: consume the oldest incomplete expression as a miss
        target = incomplete[0]
        session.states[target.id].record_miss(now)
        return EvaluationResult(
            is_correct=False,
            feedback_text=prompts.FEEDBACK_MISSED.format(expression=target.text),
            session_complete=False,
            outcome=TurnOutcome.MISSED,
            evaluated_expression_id=target.id,
            similarity=similarity.score(utterance, target.text),
        ), (target.id, False)

    def _best_match(self, utterance: str, expressions: List[Expression]) -> Tuple[Optional[Expression], float]:
        """Highest-scoring expression; ties go to the earliest"""
        best, best_score = None, 0.0
        for expr in expressions:
            score = similarity.score(utterance, expr.text)
            if score > best_score:
                best, best_score = expr, score
        return best, best_score

    # =========================================================================
    # Prompts and progress
    # =========================================================================

    def get_next_prompt(self, session_id: str) -> str:
        """Pick the next incomplete expression and return scenario text for it"""
        with self.store.locked(session_id) as session:
            incomplete = session.incomplete_expressions()
            if not incomplete:
                return prompts.SESSION_COMPLETE_MESSAGE

            target = self._select_target(session)
            session.current_expression_id = target.id
            session.scenario = self._generate_scenario(target)
            return session.scenario.display_text

    def get_current_expression(self, session_id: str) -> Optional[Expression]:
        """The expression the learner is currently being prompted for"""
        with self.store.locked(session_id) as session:
            return self._current_expression(session)

    def _current_expression(self, session: Session) -> Optional[Expression]:
        if session.is_complete:
            return None
        current = session.get_expression(session.current_expression_id)
        if current is not None and not session.states[current.id].is_completed:
            return replace(current)
        incomplete = session.incomplete_expressions()
        return replace(incomplete[0]) if incomplete else None

    def get_session_progress(self, session_id: str) -> SessionProgress:
        """Completed vs total expressions plus the current target"""
        with self.store.locked(session_id) as session:
            return SessionProgress(
                completed_count=len(session.completed_expressions()),
                total_count=len(session.expressions),
                current_expression=self._current_expression(session),
                is_complete=session.is_complete,
            )

    def summarize_results(self, session_id: str) -> SessionSummary:
        """Aggregate results; partial sessions are measured up to now"""
        with self.store.locked(session_id) as session:
            results = [
                ExpressionResult(
                    expression_id=expr.id,
                    text=expr.text,
                    is_completed=session.states[expr.id].is_completed,
                    correct_usage=session.states[expr.id].correct_usage,
                    attempts=session.states[expr.id].attempts,
                )
                for expr in session.expressions
            ]

            end = session.completed_at or self.clock()
            duration = max(0, int((end - session.created_at).total_seconds()))

            return SessionSummary(
                session_id=session.session_id,
                total_expressions=len(results),
                completed_expressions=sum(1 for r in results if r.is_completed),
                correct_usages=sum(1 for r in results if r.correct_usage),
                total_attempts=sum(r.attempts for r in results),
                session_duration_seconds=duration,
                expression_results=results,
                is_complete=session.is_complete,
            )

    # =========================================================================
    # Collaborators
    # =========================================================================

    def _select_target(self, session: Session) -> Expression:
        """Choose among incomplete expressions according to the selection policy"""
        candidates = session.incomplete_expressions() or session.expressions
        if self.selection == SelectionPolicy.RANDOM:
            return self.rng.choice(candidates)
        return candidates[0]

    def _generate_scenario(self, expression: Expression) -> Scenario:
        """Ask the generator for a scenario; never raises"""
        try:
            payload = self.scenario_generator.generate_scenario(expression.text)
            scenario = coerce_scenario(payload, expression.text)
        except Exception as e:
            logger.warning("Scenario generation failed for %r: %s", expression.text, e)
            scenario = fallback_scenario(expression.text)
        scenario.expression_id = expression.id
        return scenario

    def _record_stats(self, expression_id: int, is_correct: bool) -> None:
        """Report the turn to the repository; failures are logged and skipped"""
        if self.repository is None:
            return
        try:
            self.repository.update_expression_stats(expression_id, is_correct)
        except Exception as e:
            logger.warning("Skipping stats update for expression %s: %s", expression_id, e)

    def _unused_session_id(self) -> str:
        session_id = self.id_factory()
        while self.store.contains(session_id):
            session_id = self.id_factory()
        return session_id

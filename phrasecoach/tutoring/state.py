#!/usr/bin/env python3
"""
State management for expression practice sessions.
Tracks per-expression progress and derives progress and summary views.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum


class SessionStatus(Enum):
    """Lifecycle of a practice session (one-way)"""
    ACTIVE = 'active'
    COMPLETE = 'complete'


class SelectionPolicy(Enum):
    """How the engine picks the next target expression"""
    FIRST = 'first'     # First incomplete expression in list order (DEFAULT)
    RANDOM = 'random'   # Uniform pick among incomplete expressions


class TurnOutcome(Enum):
    """How a single user utterance was classified"""
    CORRECT = 'correct'                  # Matched an incomplete expression
    ALREADY_COMPLETED = 'already_completed'  # Matched an expression done earlier
    CLOSE = 'close'                      # Near miss, nothing recorded in the session
    MISSED = 'missed'                    # Fail-forward on the oldest incomplete expression


@dataclass
class Expression:
    """A target phrase the learner is practicing"""
    id: int
    text: str
    correct_count: int = 0
    total_count: int = 0
    last_used_at: Optional[datetime] = None
    category_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Expression':
        """Build from a database row (sqlite3.Row or dict)"""
        data = dict(row)
        last_used = data.get('last_used_at')
        created = data.get('created_at')
        return cls(
            id=data['id'],
            text=data['text'],
            correct_count=data.get('correct_count') or 0,
            total_count=data.get('total_count') or 0,
            last_used_at=datetime.fromisoformat(last_used) if last_used else None,
            category_id=data.get('category_id'),
            created_at=datetime.fromisoformat(created) if created else None,
        )


@dataclass
class ExpressionState:
    """Progress on one expression within one session"""
    expression_id: int
    text: str
    is_completed: bool = False
    attempts: int = 0
    correct_usage: bool = False
    used_at: Optional[datetime] = None

    def record_correct(self, when: datetime) -> bool:
        """Count a matching attempt. Returns True only on the first completion."""
        self.attempts += 1
        if self.is_completed:
            return False
        self.is_completed = True
        self.correct_usage = True
        self.used_at = when
        return True

    def record_miss(self, when: datetime):
        """Consume this expression as an incorrect usage"""
        self.attempts += 1
        self.is_completed = True
        self.correct_usage = False
        self.used_at = when


@dataclass
class Scenario:
    """Scenario text shown to the learner for one target expression"""
    scenario_text: str
    initial_message: str
    expression_id: Optional[int] = None
    is_fallback: bool = False

    @property
    def display_text(self) -> str:
        """Scenario followed by the opening line, without repeating identical text"""
        if self.initial_message and self.initial_message != self.scenario_text:
            return f"{self.scenario_text}\n\n{self.initial_message}"
        return self.scenario_text


@dataclass
class Session:
    """One practice round over a fixed, ordered set of expressions"""
    session_id: str
    expressions: List[Expression]
    created_at: datetime
    states: Dict[int, ExpressionState] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.ACTIVE
    completed_at: Optional[datetime] = None
    current_expression_id: Optional[int] = None
    scenario: Optional[Scenario] = None

    @classmethod
    def start(cls, session_id: str, expressions: List[Expression], created_at: datetime) -> 'Session':
        """Create a fresh session with one untouched state per expression"""
        states = {
            expr.id: ExpressionState(expression_id=expr.id, text=expr.text)
            for expr in expressions
        }
        return cls(
            session_id=session_id,
            expressions=list(expressions),
            created_at=created_at,
            states=states,
        )

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    def incomplete_expressions(self) -> List[Expression]:
        """Incomplete expressions in insertion order"""
        return [e for e in self.expressions if not self.states[e.id].is_completed]

    def completed_expressions(self) -> List[Expression]:
        return [e for e in self.expressions if self.states[e.id].is_completed]

    def get_expression(self, expression_id: Optional[int]) -> Optional[Expression]:
        for expr in self.expressions:
            if expr.id == expression_id:
                return expr
        return None

    def all_complete(self) -> bool:
        """Check if every expression has been completed"""
        return all(state.is_completed for state in self.states.values())

    def mark_complete(self, when: datetime):
        """Transition to COMPLETE; completed_at is set once and kept"""
        if self.status == SessionStatus.COMPLETE:
            return
        self.status = SessionStatus.COMPLETE
        self.completed_at = when


@dataclass
class EvaluationResult:
    """Result of evaluating one user utterance"""
    is_correct: bool
    feedback_text: str
    session_complete: bool
    outcome: TurnOutcome
    detected_expression_id: Optional[int] = None
    evaluated_expression_id: Optional[int] = None
    similarity: float = 0.0
    already_completed: bool = False


@dataclass
class SessionProgress:
    """Derived progress view of a session"""
    completed_count: int
    total_count: int
    current_expression: Optional[Expression] = None
    is_complete: bool = False

    @property
    def remaining(self) -> int:
        return self.total_count - self.completed_count


@dataclass
class ExpressionResult:
    """Per-expression line of a session summary"""
    expression_id: int
    text: str
    is_completed: bool
    correct_usage: bool
    attempts: int


@dataclass
class SessionSummary:
    """Aggregated results of a session"""
    session_id: str
    total_expressions: int
    completed_expressions: int
    correct_usages: int
    total_attempts: int
    session_duration_seconds: int
    expression_results: List[ExpressionResult] = field(default_factory=list)
    is_complete: bool = False

    @property
    def accuracy(self) -> float:
        """Percentage of attempts that were correct usages"""
        if self.total_attempts == 0:
            return 0.0
        return self.correct_usages / self.total_attempts * 100

    @property
    def incorrect_expressions(self) -> List[str]:
        """Texts of expressions that were consumed without a correct usage"""
        return [
            r.text for r in self.expression_results
            if r.is_completed and not r.correct_usage
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize summary to dictionary"""
        return {
            'session_id': self.session_id,
            'total_expressions': self.total_expressions,
            'completed_expressions': self.completed_expressions,
            'correct_usages': self.correct_usages,
            'total_attempts': self.total_attempts,
            'session_duration_seconds': self.session_duration_seconds,
            'accuracy': self.accuracy,
            'is_complete': self.is_complete,
            'incorrect_expressions': self.incorrect_expressions,
            'expression_results': [
                {
                    'expression_id': r.expression_id,
                    'text': r.text,
                    'is_completed': r.is_completed,
                    'correct_usage': r.correct_usage,
                    'attempts': r.attempts,
                }
                for r in self.expression_results
            ],
        }

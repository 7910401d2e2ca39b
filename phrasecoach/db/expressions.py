#!/usr/bin/env python3
"""
Expression repository for PhraseCoach.
Stores categories, practice expressions with their usage counters, and a
log of finished practice sessions.
"""

import sqlite3
import json
import logging
import threading
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from ..tutoring.state import Expression, SessionSummary


logger = logging.getLogger(__name__)


class ExpressionRepository:
    """sqlite-backed persistence for expressions and practice history"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from ..config import get_db_path
            db_path = get_db_path()
        self.db_path = db_path
        if db_path != ':memory:':
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # Return rows as dictionaries
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._create_tables()

    def _create_tables(self):
        """Create database tables if they don't exist"""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                icon TEXT DEFAULT '📝' NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS expressions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                text TEXT NOT NULL,
                category_id INTEGER,
                correct_count INTEGER DEFAULT 0 NOT NULL CHECK(correct_count >= 0),
                total_count INTEGER DEFAULT 0 NOT NULL CHECK(total_count >= 0),
                last_used_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE SET NULL
            )
        """)

        # One row per finished (or abandoned and summarized) practice round.
        # Session ids are short and only unique per process, so they are not keys.
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS practice_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                total_expressions INTEGER NOT NULL,
                completed_expressions INTEGER NOT NULL,
                correct_usages INTEGER NOT NULL,
                total_attempts INTEGER NOT NULL,
                duration_seconds INTEGER NOT NULL,
                results_json TEXT,
                finished_at TIMESTAMP NOT NULL
            )
        """)

        self.conn.commit()

    # =========================================================================
    # Categories
    # =========================================================================

    def add_category(self, name: str, icon: str = '📝') -> Optional[int]:
        """Add a category; returns its id or None if the name exists"""
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "INSERT INTO categories (name, icon, created_at) VALUES (?, ?, ?)",
                    (name, icon, datetime.now().isoformat())
                )
                self.conn.commit()
                return cursor.lastrowid
            except sqlite3.IntegrityError:
                logger.info("Category %r already exists", name)
                return None

    def get_categories(self) -> List[Dict]:
        cursor = self.conn.execute("SELECT * FROM categories ORDER BY id")
        return [dict(row) for row in cursor.fetchall()]

    def get_category_by_name(self, name: str) -> Optional[Dict]:
        cursor = self.conn.execute("SELECT * FROM categories WHERE name = ?", (name,))
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_category(self, category_id: int) -> Optional[Dict]:
        cursor = self.conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,))
        row = cursor.fetchone()
        return dict(row) if row else None

    def update_category(self, category_id: int, name: str = None, icon: str = None) -> Dict:
        """Rename a category or change its icon; raises KeyError for unknown ids"""
        category = self.get_category(category_id)
        if category is None:
            raise KeyError(f"Category with id {category_id} not found")

        new_name = name.strip() if name is not None else category['name']
        if not new_name:
            raise ValueError("Category name cannot be empty")
        new_icon = icon if icon is not None else category['icon']

        with self._lock:
            try:
                self.conn.execute(
                    "UPDATE categories SET name = ?, icon = ? WHERE id = ?",
                    (new_name, new_icon, category_id)
                )
                self.conn.commit()
            except sqlite3.IntegrityError:
                raise ValueError(f"Category {new_name!r} already exists")

        return self.get_category(category_id)

    def delete_category(self, category_id: int) -> bool:
        """Delete a category; its expressions become uncategorized"""
        with self._lock:
            self.conn.execute(
                "UPDATE expressions SET category_id = NULL WHERE category_id = ?",
                (category_id,)
            )
            cursor = self.conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            self.conn.commit()
            return cursor.rowcount > 0

    # =========================================================================
    # Expressions
    # =========================================================================

    def add_expression(self, text: str, category_id: Optional[int] = None) -> Expression:
        """Add a new expression to practice"""
        text = (text or '').strip()
        if not text:
            raise ValueError("Expression text cannot be empty")

        with self._lock:
            try:
                cursor = self.conn.execute("""
                    INSERT INTO expressions (text, category_id, created_at)
                    VALUES (?, ?, ?)
                """, (text, category_id, datetime.now().isoformat()))
                self.conn.commit()
            except sqlite3.IntegrityError:
                raise ValueError(f"Category with id {category_id} not found")
            expression_id = cursor.lastrowid

        return self.get_expression(expression_id)

    def get_expression(self, expression_id: int) -> Optional[Expression]:
        """Get expression details by ID"""
        cursor = self.conn.execute("SELECT * FROM expressions WHERE id = ?", (expression_id,))
        row = cursor.fetchone()
        return Expression.from_row(row) if row else None

    def get_expressions(self, category_id: Optional[int] = None) -> List[Expression]:
        """All expressions, newest first, optionally filtered by category"""
        query = "SELECT * FROM expressions WHERE 1=1"
        params = []

        if category_id is not None:
            query += " AND category_id = ?"
            params.append(category_id)

        query += " ORDER BY created_at DESC, id DESC"

        cursor = self.conn.execute(query, params)
        return [Expression.from_row(row) for row in cursor.fetchall()]

    def get_expressions_by_ids(self, ids: List[int]) -> List[Expression]:
        """Expressions for the given ids in the requested order; unknown ids are skipped"""
        ids = list(ids)
        if not ids:
            return []

        placeholders = ", ".join("?" for _ in ids)
        cursor = self.conn.execute(
            f"SELECT * FROM expressions WHERE id IN ({placeholders})",
            ids
        )
        by_id = {row['id']: Expression.from_row(row) for row in cursor.fetchall()}
        return [by_id[i] for i in ids if i in by_id]

    def update_expression(self, expression_id: int, text: str = None, category_id: int = None) -> Expression:
        """Edit text and/or category; raises KeyError for unknown ids"""
        expression = self.get_expression(expression_id)
        if expression is None:
            raise KeyError(f"Expression with id {expression_id} not found")

        new_text = text.strip() if text is not None else expression.text
        if not new_text:
            raise ValueError("Expression text cannot be empty")
        new_category = category_id if category_id is not None else expression.category_id

        with self._lock:
            try:
                self.conn.execute(
                    "UPDATE expressions SET text = ?, category_id = ? WHERE id = ?",
                    (new_text, new_category, expression_id)
                )
                self.conn.commit()
            except sqlite3.IntegrityError:
                raise ValueError(f"Category with id {new_category} not found")

        return self.get_expression(expression_id)

    def delete_expression(self, expression_id: int) -> bool:
        """Delete an expression; returns False if it did not exist"""
        with self._lock:
            cursor = self.conn.execute("DELETE FROM expressions WHERE id = ?", (expression_id,))
            self.conn.commit()
            return cursor.rowcount > 0

    def update_expression_stats(self, expression_id: int, is_correct: bool) -> Expression:
        """Count one practice turn against an expression"""
        with self._lock:
            cursor = self.conn.execute("""
                UPDATE expressions
                SET total_count = total_count + 1,
                    correct_count = correct_count + ?,
                    last_used_at = ?
                WHERE id = ?
            """, (1 if is_correct else 0, datetime.now().isoformat(), expression_id))
            self.conn.commit()

        if cursor.rowcount == 0:
            raise KeyError(f"Expression with id {expression_id} not found")

        return self.get_expression(expression_id)

    # =========================================================================
    # Practice history
    # =========================================================================

    def record_session(self, summary: SessionSummary) -> None:
        """Append a session summary to the practice log"""
        with self._lock:
            self.conn.execute("""
                INSERT INTO practice_sessions
                (session_id, total_expressions, completed_expressions, correct_usages,
                 total_attempts, duration_seconds, results_json, finished_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                summary.session_id,
                summary.total_expressions,
                summary.completed_expressions,
                summary.correct_usages,
                summary.total_attempts,
                summary.session_duration_seconds,
                json.dumps(summary.to_dict()['expression_results']),
                datetime.now().isoformat(),
            ))
            self.conn.commit()

    def list_sessions(self, limit: int = 20) -> List[Dict]:
        """Most recent practice sessions first"""
        cursor = self.conn.execute(
            "SELECT * FROM practice_sessions ORDER BY finished_at DESC, id DESC LIMIT ?",
            (limit,)
        )
        sessions = []
        for row in cursor.fetchall():
            session = dict(row)
            session['results'] = json.loads(session.pop('results_json') or '[]')
            sessions.append(session)
        return sessions

    def get_user_stats(self) -> Dict:
        """Overall practice statistics across all expressions and sessions"""
        row = self.conn.execute("""
            SELECT COUNT(*) AS total_sessions, MAX(finished_at) AS last_practice
            FROM practice_sessions
        """).fetchone()
        counts = self.conn.execute("""
            SELECT COALESCE(SUM(correct_count), 0) AS correct,
                   COALESCE(SUM(total_count), 0) AS total,
                   COUNT(*) AS expressions
            FROM expressions
        """).fetchone()

        total = counts['total']
        return {
            'total_sessions': row['total_sessions'],
            'total_expressions': counts['expressions'],
            'total_turns': total,
            'overall_accuracy': round(counts['correct'] / total * 100, 1) if total else 0.0,
            'last_practice_date': datetime.fromisoformat(row['last_practice']) if row['last_practice'] else None,
            'current_streak': self.current_streak(),
        }

    def current_streak(self, today: Optional[date] = None) -> int:
        """Consecutive practice days ending today, or yesterday if today has no session yet"""
        today = today or date.today()
        cursor = self.conn.execute("SELECT DISTINCT substr(finished_at, 1, 10) AS day FROM practice_sessions")
        days = {date.fromisoformat(row['day']) for row in cursor.fetchall()}

        day = today if today in days else today - timedelta(days=1)
        streak = 0
        while day in days:
            streak += 1
            day -= timedelta(days=1)
        return streak

    def close(self):
        """Close database connection"""
        self.conn.close()

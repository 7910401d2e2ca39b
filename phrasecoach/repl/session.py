#!/usr/bin/env python3
"""
Interactive REPL for expression practice.
"""

import shlex
import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.markup import escape

from ..config import get_config_dir
from ..db import ExpressionRepository
from ..tutoring import (
    TutoringEngine,
    TutoringError,
    SessionNotFound,
    SessionSummary,
    TurnOutcome,
)
from .commands import fits_command, get_command_help


logger = logging.getLogger(__name__)

OUTCOME_STYLES = {
    TurnOutcome.CORRECT: 'green',
    TurnOutcome.ALREADY_COMPLETED: 'cyan',
    TurnOutcome.CLOSE: 'yellow',
    TurnOutcome.MISSED: 'red',
}


class PracticeREPL:
    """Interactive REPL driving the tutoring engine"""

    def __init__(
        self,
        engine: TutoringEngine,
        repository: ExpressionRepository,
        console: Console = None,
    ):
        self.engine = engine
        self.repository = repository
        self.console = console or Console()
        self.session_id: Optional[str] = None
        self.prompt_session: Optional[PromptSession] = None

    def run(self):
        """Main REPL loop"""
        history_path = get_config_dir() / 'repl_history'
        self.prompt_session = PromptSession(
            history=FileHistory(str(history_path)),
            auto_suggest=AutoSuggestFromHistory(),
        )
        self._print_welcome()

        while True:
            try:
                user_input = self.prompt_session.prompt(self._get_prompt())

                if not user_input.strip():
                    continue

                result = self._process_command(user_input.strip())

                if result == 'exit':
                    self._handle_exit()
                    break

            except KeyboardInterrupt:
                self.console.print("\n[dim]Use 'exit' to quit[/dim]")
            except EOFError:
                self._handle_exit()
                break

    def _print_welcome(self):
        """Print welcome message"""
        welcome = """
[bold blue]PhraseCoach[/bold blue] - Expression Practice Tutor

Pick expressions, read the scenario, and answer naturally.

[dim]Commands: list, add, start, next, progress, summary, end, help
Type 'help' for all commands or 'help <cmd>' for details.[/dim]
"""
        self.console.print(Panel(welcome, border_style="blue"))

    def _get_prompt(self) -> str:
        """Generate context-aware prompt"""
        if not self.session_id:
            return 'phrasecoach> '
        try:
            progress = self.engine.get_session_progress(self.session_id)
        except SessionNotFound:
            self.session_id = None
            return 'phrasecoach> '
        return f"phrasecoach [{progress.completed_count}/{progress.total_count}]> "

    def _process_command(self, user_input: str) -> Optional[str]:
        """Process user input and dispatch to handlers"""
        parts = user_input.split(maxsplit=1)
        command = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ''

        handlers = {
            'list': self._cmd_list,
            'add': self._cmd_add,
            'delete': self._cmd_delete,
            'categories': self._cmd_categories,
            'start': self._cmd_start,
            'say': self._cmd_say,
            'next': self._cmd_next,
            'progress': self._cmd_progress,
            'summary': self._cmd_summary,
            'end': self._cmd_end,
            'stats': self._cmd_stats,
            'history': self._cmd_history,
            'help': self._cmd_help,
            'exit': lambda _: 'exit',
            'quit': lambda _: 'exit',
        }

        handler = handlers.get(command)
        if self.session_id and not fits_command(command, args):
            # Free text during a session is an answer, even when it starts with a command word
            handler = None
        try:
            if handler:
                return handler(args)
            if self.session_id:
                return self._cmd_say(user_input)
            self.console.print(f"[red]Unknown command: {escape(command)}[/red]")
            self.console.print("[dim]Type 'help' for commands, or 'start <ids>' to practice.[/dim]")
            return None
        except SessionNotFound as e:
            self.session_id = None
            self.console.print(f"[red]{escape(str(e))}[/red]")
        except TutoringError as e:
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")
        return None

    # === Expressions ===

    def _cmd_list(self, args: str) -> None:
        """List expressions"""
        expressions = self.repository.get_expressions()
        if not expressions:
            self.console.print("[yellow]No expressions yet. Use 'add <text>' to create one.[/yellow]")
            return

        table = Table(title="Your expressions")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Expression")
        table.add_column("Correct", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Last used", style="dim")

        for expr in expressions:
            last_used = expr.last_used_at.strftime('%Y-%m-%d') if expr.last_used_at else '-'
            table.add_row(str(expr.id), escape(expr.text), str(expr.correct_count), str(expr.total_count), last_used)

        self.console.print(table)

    def _cmd_add(self, args: str) -> None:
        """Add an expression"""
        text = args.strip().strip('"').strip("'")
        if not text:
            self.console.print("[red]Usage: add <text>[/red]")
            return
        expr = self.repository.add_expression(text)
        self.console.print(f"[green]Added #{expr.id}:[/green] {escape(expr.text)}")

    def _cmd_delete(self, args: str) -> None:
        """Delete an expression"""
        try:
            expression_id = int(args)
        except ValueError:
            self.console.print("[red]Usage: delete <id>[/red]")
            return
        if self.repository.delete_expression(expression_id):
            self.console.print(f"[green]Deleted expression #{expression_id}[/green]")
        else:
            self.console.print(f"[red]Expression not found: {expression_id}[/red]")

    def _cmd_categories(self, args: str) -> None:
        categories = self.repository.get_categories()
        if not categories:
            self.console.print("[yellow]No categories.[/yellow]")
            return
        for cat in categories:
            self.console.print(f"  {cat['id']:>3}. {cat['icon']} {cat['name']}")

    # === Practice session ===

    def _cmd_start(self, args: str) -> None:
        """Start a practice session"""
        try:
            ids = [int(token) for token in shlex.split(args.replace(',', ' '))]
        except ValueError:
            self.console.print("[red]Usage: start <id> \\[id ...][/red]")
            return
        if not ids:
            self.console.print("[red]Usage: start <id> \\[id ...][/red]")
            self.console.print("[dim]Use 'list' to see expression IDs[/dim]")
            return

        # A failed start leaves the current session untouched
        session = self.engine.start_session(ids)
        if self.session_id:
            self._finish_session(record=False)
        self.session_id = session.session_id

        self.console.print(f"\n[green]Session started![/green] ({len(session.expressions)} expression(s))")
        self.console.print(f"[dim]Session ID: {session.session_id}[/dim]\n")
        if session.scenario:
            self.console.print(Panel(escape(session.scenario.display_text), border_style="magenta"))

    def _cmd_say(self, args: str) -> None:
        """Answer the current scenario"""
        if not self.session_id:
            self.console.print("[red]No active session. Use 'start <ids>' first.[/red]")
            return

        result = self.engine.process_user_answer(self.session_id, args)
        style = OUTCOME_STYLES.get(result.outcome, 'white')
        self.console.print(f"[{style}]{escape(result.feedback_text)}[/{style}]")

        if result.session_complete:
            summary = self.engine.summarize_results(self.session_id)
            self._show_summary(summary)
            self._finish_session(record=True)
            return

        self.console.print(Panel(escape(self.engine.get_next_prompt(self.session_id)), border_style="magenta"))

    def _cmd_next(self, args: str) -> None:
        """New scenario for a remaining expression"""
        if not self.session_id:
            self.console.print("[red]No active session. Use 'start <ids>' first.[/red]")
            return
        self.console.print(Panel(escape(self.engine.get_next_prompt(self.session_id)), border_style="magenta"))

    def _cmd_progress(self, args: str) -> None:
        """Show session progress"""
        if not self.session_id:
            self.console.print("[yellow]No active session.[/yellow]")
            return

        progress = self.engine.get_session_progress(self.session_id)
        self.console.print(f"\n[bold]Progress:[/bold] {progress.completed_count}/{progress.total_count} expressions")
        if progress.current_expression:
            self.console.print(f"  Current target: [cyan]{escape(progress.current_expression.text)}[/cyan]")

    def _cmd_summary(self, args: str) -> None:
        if not self.session_id:
            self.console.print("[yellow]No active session.[/yellow]")
            return
        self._show_summary(self.engine.summarize_results(self.session_id))

    def _cmd_end(self, args: str) -> None:
        """End the current session"""
        if not self.session_id:
            self.console.print("[yellow]No active session.[/yellow]")
            return
        summary = self.engine.summarize_results(self.session_id)
        self._show_summary(summary)
        self._finish_session(record=summary.total_attempts > 0)
        self.console.print("[dim]Session ended.[/dim]")

    def _show_summary(self, summary: SessionSummary):
        """Render a session summary"""
        title = "Session complete" if summary.is_complete else "Session so far"
        table = Table(title=title)
        table.add_column("Expression")
        table.add_column("Result")
        table.add_column("Attempts", justify="right")

        for r in summary.expression_results:
            if not r.is_completed:
                status = "[dim]not yet[/dim]"
            elif r.correct_usage:
                status = "[green]correct[/green]"
            else:
                status = "[red]missed[/red]"
            table.add_row(escape(r.text), status, str(r.attempts))

        self.console.print(table)
        self.console.print(
            f"  Completed: {summary.completed_expressions}/{summary.total_expressions} | "
            f"Correct: {summary.correct_usages} | Attempts: {summary.total_attempts} | "
            f"Accuracy: {summary.accuracy:.0f}% | Time: {summary.session_duration_seconds}s"
        )

    def _finish_session(self, record: bool):
        """Optionally store the summary, then drop the session"""
        if record:
            try:
                self.repository.record_session(self.engine.summarize_results(self.session_id))
            except Exception as e:
                logger.warning("Could not record session %s: %s", self.session_id, e)
        self.engine.cleanup_session(self.session_id)
        self.session_id = None

    # === History ===

    def _cmd_stats(self, args: str) -> None:
        stats = self.repository.get_user_stats()
        last = stats['last_practice_date'].strftime('%Y-%m-%d %H:%M') if stats['last_practice_date'] else 'never'
        self.console.print(f"\n[bold]Practice statistics[/bold]")
        self.console.print(f"  Sessions: {stats['total_sessions']}")
        self.console.print(f"  Expressions: {stats['total_expressions']}")
        self.console.print(f"  Turns: {stats['total_turns']}")
        self.console.print(f"  Accuracy: {stats['overall_accuracy']}%")
        self.console.print(f"  Last practice: {last}")
        self.console.print(f"  Streak: {stats['current_streak']} day(s)")

    def _cmd_history(self, args: str) -> None:
        sessions = self.repository.list_sessions()
        if not sessions:
            self.console.print("[yellow]No practice sessions recorded yet.[/yellow]")
            return

        table = Table(title="Recent sessions")
        table.add_column("Session", style="cyan")
        table.add_column("Finished", style="dim")
        table.add_column("Correct", justify="right")
        table.add_column("Attempts", justify="right")
        for s in sessions:
            table.add_row(
                s['session_id'],
                s['finished_at'][:16].replace('T', ' '),
                f"{s['correct_usages']}/{s['total_expressions']}",
                str(s['total_attempts']),
            )
        self.console.print(table)

    def _cmd_help(self, args: str) -> None:
        self.console.print(get_command_help(args.strip() or None), markup=False)

    def _handle_exit(self):
        """Clean up on exit"""
        if self.session_id:
            self._finish_session(record=False)
        self.repository.close()
        self.console.print("\n[dim]Goodbye![/dim]")

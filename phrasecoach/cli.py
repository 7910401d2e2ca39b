#!/usr/bin/env python3
"""
PhraseCoach - Expression Practice CLI

Usage:
    phrasecoach                    # Interactive practice REPL
    phrasecoach --list
    phrasecoach --add "Nice to meet you" --category 1
    phrasecoach --stats
"""

import sys
import random
import logging
import argparse
from getpass import getpass

from rich.console import Console
from rich.table import Table
from rich.markup import escape
from rich.prompt import Confirm, IntPrompt

from .config import get_config_value, save_api_key, clear_api_keys
from .db import ExpressionRepository, seed_default_expressions
from .llm import PROVIDERS, UnifiedLLMClient, get_preferred_provider
from .logger import setup_logging
from .tutoring import TutoringEngine, LLMScenarioGenerator, StaticScenarioGenerator


logger = logging.getLogger(__name__)


def build_engine(repository: ExpressionRepository, selection: str = None, seed: int = None) -> TutoringEngine:
    """Wire an engine to the repository and the best available scenario generator"""
    rng = random.Random(seed)
    generator = StaticScenarioGenerator(rng)

    provider = get_preferred_provider()
    if provider:
        llm = UnifiedLLMClient()
        if llm.is_available():
            generator = LLMScenarioGenerator(llm)
            logger.info("Using %s for scenario generation", llm.provider)
        else:
            logger.warning("LLM client unavailable; using built-in scenarios")

    return TutoringEngine(
        scenario_generator=generator,
        repository=repository,
        selection=selection or get_config_value('selection_policy'),
        rng=rng,
    )


def list_expressions(repository: ExpressionRepository, console: Console):
    """Print all expressions"""
    expressions = repository.get_expressions()
    if not expressions:
        console.print("No expressions yet. Add one with --add.")
        return

    table = Table(title="Expressions")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Expression")
    table.add_column("Correct/Total", justify="right")
    for expr in expressions:
        table.add_row(str(expr.id), escape(expr.text), f"{expr.correct_count}/{expr.total_count}")
    console.print(table)


def show_stats(repository: ExpressionRepository, console: Console):
    """Print overall practice statistics"""
    stats = repository.get_user_stats()
    last = stats['last_practice_date']
    console.print("\n[bold]PhraseCoach statistics[/bold]")
    console.print("=" * 40)
    console.print(f"Sessions:      {stats['total_sessions']}")
    console.print(f"Expressions:   {stats['total_expressions']}")
    console.print(f"Turns:         {stats['total_turns']}")
    console.print(f"Accuracy:      {stats['overall_accuracy']}%")
    console.print(f"Last practice: {last.strftime('%Y-%m-%d %H:%M') if last else 'never'}")
    console.print(f"Streak:        {stats['current_streak']} day(s)")


def run_setup(console: Console) -> int:
    """Ask for a scenario provider and its API key"""
    console.print("[bold]PhraseCoach setup[/bold]")
    console.print("Without a key, built-in scenarios are used.\n")

    current = get_preferred_provider()
    if current and not Confirm.ask(
            f"Scenario provider already configured: {current}. Replace it?", default=False, console=console):
        return 0

    names = list(PROVIDERS)
    for i, name in enumerate(names, 1):
        console.print(f"  {i}. {PROVIDERS[name]['display_name']}")
    choice = IntPrompt.ask("Provider", choices=[str(i) for i in range(1, len(names) + 1)], default=1, console=console)
    provider = names[choice - 1]
    info = PROVIDERS[provider]

    console.print(f"Get a key at {info['url']}")
    api_key = getpass("API key (input hidden): ").strip()
    if not api_key:
        console.print("[yellow]No key entered; nothing saved.[/yellow]")
        return 1
    if not api_key.startswith(info['key_prefix']) and not Confirm.ask(
            f"That does not look like a {provider} key. Save anyway?", default=False, console=console):
        return 1

    save_api_key(provider, api_key)
    console.print(f"[green]Saved. {escape(info['display_name'])} will write your scenarios.[/green]")
    return 0


def main(argv=None):
    """Main CLI entry point"""

    parser = argparse.ArgumentParser(
        description='PhraseCoach - practice target expressions in conversation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  phrasecoach --setup                          # Configure an LLM API key (optional)
  phrasecoach --clear-keys                     # Forget stored API keys
  phrasecoach                                  # Start the practice REPL
  phrasecoach --random --seed 7                # Random target order, reproducible
  phrasecoach --list                           # List expressions
  phrasecoach --add "Could you repeat that?"   # Add an expression
  phrasecoach --delete 3                       # Delete an expression
  phrasecoach --stats                          # Show practice statistics
        """
    )

    parser.add_argument('--setup', action='store_true',
                        help='Configure PhraseCoach (set API key for scenario generation)')
    parser.add_argument('--clear-keys', action='store_true',
                        help='Remove stored API keys from the config file')
    parser.add_argument('--list', action='store_true', help='List all expressions')
    parser.add_argument('--add', metavar='TEXT', help='Add an expression')
    parser.add_argument('--category', type=int, metavar='ID',
                        help='Category for --add')
    parser.add_argument('--delete', type=int, metavar='ID', help='Delete an expression')
    parser.add_argument('--stats', action='store_true', help='Show practice statistics')
    parser.add_argument('--random', action='store_true',
                        help='Pick the next target expression at random')
    parser.add_argument('--seed', type=int, metavar='N',
                        help='Seed for random target selection and built-in scenarios')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else get_config_value('log_level'))

    console = Console()

    if args.setup:
        try:
            return run_setup(console)
        except (KeyboardInterrupt, EOFError):
            console.print("\nCancelled.")
            return 1

    if args.clear_keys:
        removed = clear_api_keys()
        if removed:
            console.print(f"Removed API keys for: {', '.join(removed)}")
        else:
            console.print("No stored API keys found.")
        return 0

    repository = ExpressionRepository()

    if args.add or args.delete is not None or args.list or args.stats:
        try:
            return run_command(args, repository, console)
        finally:
            repository.close()

    seed_default_expressions(repository)

    # The REPL closes the repository on exit
    from .repl import PracticeREPL
    engine = build_engine(repository, selection='random' if args.random else None, seed=args.seed)
    PracticeREPL(engine, repository, console=console).run()
    return 0


def run_command(args, repository: ExpressionRepository, console: Console) -> int:
    """Handle the one-shot management flags; returns the exit code"""
    if args.add:
        try:
            expr = repository.add_expression(args.add, args.category)
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            return 1
        console.print(f"[green]Added #{expr.id}:[/green] {escape(expr.text)}")
        return 0

    if args.delete is not None:
        if repository.delete_expression(args.delete):
            console.print(f"Deleted expression #{args.delete}")
            return 0
        console.print(f"[red]Expression not found: {args.delete}[/red]")
        return 1

    seed_default_expressions(repository)

    if args.list:
        list_expressions(repository, console)
    else:
        show_stats(repository, console)
    return 0


if __name__ == "__main__":
    sys.exit(main())

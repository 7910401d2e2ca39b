#!/usr/bin/env python3
"""
Command definitions for the practice REPL.

Each command declares the shape of its arguments. During a practice
session, input whose arguments do not fit that shape is treated as an
answer, so "Next time, have a wonderful day" reaches the tutor instead
of the 'next' command.
"""

import re

COMMANDS = {
    # Expressions
    'list': {
        'help': 'List your expressions with their practice counts',
        'usage': 'list',
        'args': 'none',
        'examples': ['list'],
    },
    'add': {
        'help': 'Add a new expression to practice (quote the text during a session)',
        'usage': 'add <text>',
        'args': 'quoted',
        'examples': ['add "Could you say that again?"'],
    },
    'delete': {
        'help': 'Delete an expression by ID',
        'usage': 'delete <id>',
        'args': 'id',
        'examples': ['delete 4'],
    },
    'categories': {
        'help': 'List expression categories',
        'usage': 'categories',
        'args': 'none',
        'examples': ['categories'],
    },

    # Practice session
    'start': {
        'help': 'Start a practice session with the given expression IDs',
        'usage': 'start <id> [id ...]',
        'args': 'ids',
        'examples': ['start 1 2 3', 'start 5'],
    },
    'say': {
        'help': 'Answer the current scenario (plain text also works during a session)',
        'usage': 'say <your reply>',
        'args': 'text',
        'examples': ['say Nice to meet you too!'],
    },
    'next': {
        'help': 'Get a new scenario for one of the remaining expressions',
        'usage': 'next',
        'args': 'none',
        'examples': ['next'],
    },
    'progress': {
        'help': 'Show how many expressions are done',
        'usage': 'progress',
        'args': 'none',
        'examples': ['progress'],
    },
    'summary': {
        'help': 'Show the results of the current session',
        'usage': 'summary',
        'args': 'none',
        'examples': ['summary'],
    },
    'end': {
        'help': 'End the current session',
        'usage': 'end',
        'args': 'none',
        'examples': ['end'],
    },

    # History
    'stats': {
        'help': 'Show overall practice statistics',
        'usage': 'stats',
        'args': 'none',
        'examples': ['stats'],
    },
    'history': {
        'help': 'Show recent practice sessions',
        'usage': 'history',
        'args': 'none',
        'examples': ['history'],
    },

    # Utilities
    'help': {
        'help': 'Show available commands or help for a specific command',
        'usage': 'help [command]',
        'args': 'command',
        'examples': ['help', 'help start'],
    },
    'exit': {
        'help': 'Exit the REPL',
        'usage': 'exit',
        'args': 'none',
        'examples': ['exit', 'quit'],
    },
    'quit': {
        'help': 'Exit the REPL (alias for exit)',
        'usage': 'quit',
        'args': 'none',
        'examples': ['quit'],
    },
}

_IDS = re.compile(r'\d+(?:[\s,]+\d+)*')


def fits_command(command: str, args: str) -> bool:
    """Check whether args have the shape the command expects"""
    if command not in COMMANDS:
        return False
    shape = COMMANDS[command].get('args', 'text')
    args = args.strip()

    if shape == 'none':
        return not args
    if shape == 'id':
        return args.isdigit()
    if shape == 'ids':
        return bool(_IDS.fullmatch(args))
    if shape == 'command':
        return not args or args.lower() in COMMANDS
    if shape == 'quoted':
        return len(args) > 2 and args[0] == args[-1] and args[0] in '"\''
    return True


def get_command_help(command: str = None) -> str:
    """Get help text for a command or all commands"""
    if command and command in COMMANDS:
        cmd = COMMANDS[command]
        lines = [
            f"  {command}: {cmd['help']}",
            f"  Usage: {cmd['usage']}",
        ]
        if cmd.get('examples'):
            lines.append(f"  Examples: {', '.join(cmd['examples'])}")
        return '\n'.join(lines)

    groups = {
        'Expressions': ['list', 'add', 'delete', 'categories'],
        'Practice': ['start', 'say', 'next', 'progress', 'summary', 'end'],
        'History': ['stats', 'history'],
        'Utilities': ['help', 'exit'],
    }

    lines = ["Available commands:\n"]
    for group, cmds in groups.items():
        lines.append(f"  {group}:")
        for cmd in cmds:
            if cmd in COMMANDS:
                lines.append(f"    {cmd:12} - {COMMANDS[cmd]['help']}")
        lines.append("")

    lines.append("Type 'help <command>' for detailed help on a specific command.")
    return '\n'.join(lines)

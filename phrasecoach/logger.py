#!/usr/bin/env python3
"""
Logging setup for PhraseCoach.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once so records are rendered by rich alongside the REPL output.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


NOISY_LOGGERS = ('httpx', 'httpcore', 'urllib3', 'anthropic', 'openai')


def _parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    parsed = logging.getLevelName(str(level).upper())
    return parsed if isinstance(parsed, int) else logging.WARNING


def setup_logging(level: Union[int, str] = logging.WARNING, console: Optional[Console] = None) -> logging.Logger:
    """Install a single rich handler on the root logger and return it"""
    level = _parse_level(level)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(name)s: %(message)s'))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger

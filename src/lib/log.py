"""
Verbosity-gated logging for bangumicard

The CLI binds its ProgramState to a context variable once per pipeline
stage; LOG() then reads the verbosity from there. Card handlers, the id
allocator and the Markdown extension run far from the CLI (often inside a
host's Markdown pipeline with no state bound at all), so they call LOG()
without taking a logger or state argument. With nothing bound, LOG() is
silent.

Usage:
    from bangumicard.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)            # at the top of a stage
    LOG("Rendered card BC000001", level=2)  # shown from -v upwards
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

# ProgramState of the running pipeline stage, if any
_program_state: ContextVar[Optional[Any]] = ContextVar('bangumicard_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<magenta>{name}</magenta>:<cyan>{function}</cyan>:<cyan>{line}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Bind a ProgramState so LOG() can read its verbosity

    Args:
        state: Any object with an integer `verbosity` attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit a debug record when the bound verbosity reaches `level`

    Levels: 1 for progress lines, 2 for per-card detail (-v), 3 for
    parser and allocator traces (-vv).
    """
    state = _program_state.get()
    verbosity = getattr(state, 'verbosity', None)

    if verbosity is not None and verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)

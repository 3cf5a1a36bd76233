"""
Esolang Runtime - Resumable Esoteric Language Interpreters

This package provides tokenizers and cooperative, resumable interpreters
that can suspend mid-program to wait for a key press:

**Language Runtimes:**
- Brainfuck: byte tape machine (bf_runtime)
- shortO: text with embedded stack-machine code blocks (shorto_runtime)
- standardChess: chess-notation driven tape machine (chess_runtime)
- weird: line-oriented data literal language, tokenizer only (weird_lexer)

**Core Infrastructure:**
- Engine: Idle/Running/Suspended/Completed/Failed/Cancelled state machine
- ProgramStore: token sequence, marker table, instruction pointer
- OutputConsole: committed output plus pending input echo
- LineReader: key events -> input values while suspended
- OperatorRegistry: frozen symbol -> operator tables
- RunLoop: minimal host scheduler

Example:
    >>> from esolang_runtime import ShortOEngine, execute_program
    >>> execute_program(ShortOEngine, 'Sum: $2 3+,;').output
    'Sum: 5'
"""

__version__ = '1.0.0'

# ============================================================================
# Core
# ============================================================================

from .errors import (
    E_PARSE_ERROR, E_RUNTIME_ERROR, E_STACK_UNDERFLOW, E_UNRESOLVED_MARKER,
    E_DUPLICATE_MARKER, E_INVALID_MOVE, E_NO_RESULT, E_INVALID_JUMP,
    EsolangError, ParseError, ExecutionError, OperatorFault, Result,
)
from .config import EngineConfig, DEFAULT_CONFIG
from .program import Token, TokenKind, Program, ProgramStore
from .console import OutputConsole
from .input_bridge import Key, InputEvent, InputMode, Suspension, LineReader, normalize_key
from .registry import OperatorRegistry
from .scheduler import RunLoop
from .tape import Tape
from .engine import Engine, EngineState, SliceResult, execute_program

# ============================================================================
# Language Runtimes
# ============================================================================

from .bf_runtime import BrainfuckEngine, BrainfuckTokenizer
from .shorto_runtime import (
    ShortOEngine, ShortOTokenizer, OPERATORS as SHORTO_OPERATORS, format_listing,
)
from .chess_runtime import ChessEngine, ChessTokenizer, Move, Piece, parse_move
from .weird_lexer import WeirdLexer, WeirdProgram

from . import bf_runtime, shorto_runtime, chess_runtime, weird_lexer

LANGUAGES = {
    'brainfuck': BrainfuckEngine,
    'shorto': ShortOEngine,
    'chess': ChessEngine,
}


def create_engine(language: str, **kwargs) -> Engine:
    """Build an engine by language name ('brainfuck', 'shorto', 'chess')"""
    try:
        engine_cls = LANGUAGES[language.lower()]
    except KeyError:
        raise ValueError(f"Unknown language: {language!r}") from None
    return engine_cls(**kwargs)


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    # Version
    '__version__',

    # Errors
    'E_PARSE_ERROR', 'E_RUNTIME_ERROR', 'E_STACK_UNDERFLOW', 'E_UNRESOLVED_MARKER',
    'E_DUPLICATE_MARKER', 'E_INVALID_MOVE', 'E_NO_RESULT', 'E_INVALID_JUMP',
    'EsolangError', 'ParseError', 'ExecutionError', 'OperatorFault', 'Result',

    # Core
    'EngineConfig', 'DEFAULT_CONFIG',
    'Token', 'TokenKind', 'Program', 'ProgramStore',
    'OutputConsole',
    'Key', 'InputEvent', 'InputMode', 'Suspension', 'LineReader', 'normalize_key',
    'OperatorRegistry', 'RunLoop', 'Tape',
    'Engine', 'EngineState', 'SliceResult', 'execute_program',

    # Languages
    'BrainfuckEngine', 'BrainfuckTokenizer',
    'ShortOEngine', 'ShortOTokenizer', 'SHORTO_OPERATORS', 'format_listing',
    'ChessEngine', 'ChessTokenizer', 'Move', 'Piece', 'parse_move',
    'WeirdLexer', 'WeirdProgram',
    'bf_runtime', 'shorto_runtime', 'chess_runtime', 'weird_lexer',
    'LANGUAGES', 'create_engine',
]

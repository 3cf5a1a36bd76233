"""
Esolang Runtime - Error Definitions

Two error families share one base class:

- ParseError: raised while tokenizing, carries the source offset and a
  windowed excerpt of the source around it.
- ExecutionError: raised while executing, carries the 1-based position of
  the instruction that failed and its textual form.

Public boundaries (tokenize(), Engine.step()) never let these escape. They
are converted into a Result or into the FAILED engine state.
"""

from typing import Any, Generic, Optional, Tuple, TypeVar
from dataclasses import dataclass


# ============================================================================
# Error Codes
# ============================================================================

E_PARSE_ERROR = "E_PARSE_ERROR"
E_RUNTIME_ERROR = "E_RUNTIME_ERROR"
E_STACK_UNDERFLOW = "E_STACK_UNDERFLOW"
E_UNRESOLVED_MARKER = "E_UNRESOLVED_MARKER"
E_DUPLICATE_MARKER = "E_DUPLICATE_MARKER"
E_INVALID_MOVE = "E_INVALID_MOVE"
E_NO_RESULT = "E_NO_RESULT"
E_INVALID_JUMP = "E_INVALID_JUMP"

EXCERPT_RADIUS = 10


class EsolangError(Exception):
    """Base exception for tokenizer and interpreter errors"""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ParseError(EsolangError):
    """
    Tokenization failed; no partial token sequence is exposed.

    offset is always a 0-based character offset into the source. Line
    oriented front-ends also set line (1-based).
    """
    def __init__(self, code: str, message: str, offset: int = 0, excerpt: str = "",
                 line: Optional[int] = None):
        self.offset = offset
        self.excerpt = excerpt
        self.line = line
        super().__init__(code, message)

    @classmethod
    def at(cls, source: str, offset: int, reason: str, code: str = E_PARSE_ERROR) -> "ParseError":
        """Build an error whose excerpt is the source window around offset"""
        excerpt = source[max(0, offset - EXCERPT_RADIUS):offset + EXCERPT_RADIUS]
        return cls.with_excerpt(offset, reason, excerpt, code)

    @classmethod
    def with_excerpt(cls, offset: int, reason: str, excerpt: str,
                     code: str = E_PARSE_ERROR) -> "ParseError":
        message = f'{reason} at character {offset} (Parsing)\n"{excerpt}"'
        return cls(code, message, offset=offset, excerpt=excerpt)


class ExecutionError(EsolangError):
    """A runtime fault; position is 1-based, operands lists the kinds of popped values"""
    def __init__(self, code: str, message: str, position: int = 0, instruction: str = "",
                 operands: Tuple[str, ...] = ()):
        self.position = position
        self.instruction = instruction
        self.operands = operands
        super().__init__(code, message)


class OperatorFault(Exception):
    """
    Raised by operator implementations that cannot act on the current
    runtime state. The engine wraps it into an ExecutionError that names
    the instruction, its position and the kinds of the operands it had
    already taken off the stack.
    """
    def __init__(self, reason: str, code: str = E_RUNTIME_ERROR,
                 operands: Tuple[str, ...] = ()):
        self.reason = reason
        self.code = code
        self.operands = operands
        super().__init__(reason)


# ============================================================================
# Result
# ============================================================================

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an EsolangError"""
    value: Optional[T] = None
    error: Optional[EsolangError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: EsolangError) -> "Result":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error"""
        if self.error is not None:
            raise self.error
        return self.value


__all__ = [
    'E_PARSE_ERROR', 'E_RUNTIME_ERROR', 'E_STACK_UNDERFLOW',
    'E_UNRESOLVED_MARKER', 'E_DUPLICATE_MARKER', 'E_INVALID_MOVE',
    'E_NO_RESULT', 'E_INVALID_JUMP',
    'EsolangError', 'ParseError', 'ExecutionError', 'OperatorFault',
    'Result',
]

"""
Esolang Runtime - Tokens and Program Store

A Program is the immutable output of a tokenizer: an ordered token tuple
plus a marker table (marker name -> token index). ProgramStore wraps a
Program with the instruction pointer the engine advances.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple
from dataclasses import dataclass, field

from .errors import OperatorFault, E_INVALID_JUMP, E_UNRESOLVED_MARKER


# ============================================================================
# Token Types
# ============================================================================

class TokenKind:
    """Token kind constants shared by all front-ends"""
    # Stack machine
    TEXT = "TXT"
    VALUE = "VAL"
    OPERATOR = "OPR"
    JUMP = "JMP"

    # Brainfuck
    COMMAND = "CMD"

    # Chess tape
    MOVE = "MOVE"
    PROMOTION = "PROMOTION"
    CASTLE = "CASTLE"
    GAME_END = "END"

    # Data-literal lines
    KEY = "KEY"
    VARIABLE = "VAR"
    CONSTANT = "CON"
    INFO = "INF"
    OPEN_BRACKET = "OBR"
    CLOSED_BRACKET = "CBR"
    END_OF_COMMAND = "EOC"


@dataclass(frozen=True)
class Token:
    """Token produced by a tokenizer"""
    kind: str
    value: Any
    pos: int = 0
    detail: Any = None

    def is_(self, kind: str, value: Any) -> bool:
        return self.kind == kind and self.value == value

    def describe(self) -> str:
        return f"[{self.kind}: {self.value}]"


@dataclass(frozen=True)
class Program:
    """Token sequence plus marker table"""
    tokens: Tuple[Token, ...]
    markers: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'markers', MappingProxyType(dict(self.markers)))

    def __len__(self) -> int:
        return len(self.tokens)


# ============================================================================
# Program Store
# ============================================================================

class ProgramStore:
    """
    Holds a program and the instruction pointer.

    position is the 1-based position of the instruction fetched last and is
    what runtime errors report.
    """

    def __init__(self, program: Program):
        self.program = program
        self.pc = 0
        self.position = 0
        self.current: Optional[Token] = None

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self.program.tokens

    @property
    def markers(self) -> Mapping[str, int]:
        return self.program.markers

    @property
    def at_end(self) -> bool:
        return self.pc >= len(self.program.tokens)

    def advance(self) -> Optional[Token]:
        """Fetch the next token, or None past the end"""
        if self.at_end:
            return None
        self.current = self.program.tokens[self.pc]
        self.pc += 1
        self.position = self.pc
        return self.current

    def fetch_operand(self) -> Optional[Token]:
        """
        Consume the next token as a parameter of the current instruction.

        current and position keep naming the instruction, so errors raised
        while evaluating it still point at the instruction itself.
        """
        if self.at_end:
            return None
        token = self.program.tokens[self.pc]
        self.pc += 1
        return token

    def jump_to(self, index: int):
        """Move the instruction pointer; index == len(tokens) means end"""
        if index < 0 or index > len(self.program.tokens):
            raise OperatorFault(f"Jump target {index} is outside the program", E_INVALID_JUMP)
        self.pc = index

    def resolve(self, name: str) -> int:
        """Look up a marker index"""
        if name not in self.program.markers:
            raise OperatorFault(f'No marker for "{name}" detected', E_UNRESOLVED_MARKER)
        return self.program.markers[name]

    def reset(self):
        self.pc = 0
        self.position = 0
        self.current = None


__all__ = ['TokenKind', 'Token', 'Program', 'ProgramStore']

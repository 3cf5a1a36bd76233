"""
Brainfuck Runtime - Byte Tape Machine

Eight single-character commands operate on a 30,000 cell byte tape:

    >  move the pointer right (wraps to 0)
    <  move the pointer left (wraps to the last cell)
    +  increment the current cell (wraps 255 -> 0)
    -  decrement the current cell (wraps 0 -> 255)
    .  output the current cell as a character
    ,  wait for one key and store its code (Enter stores 10)
    [  open a loop; the body always runs at least once
    ]  jump back to the matching [ if the cell is not 0

Every other character is a comment. There are no markers: loop matching
happens at run time with a stack of open-loop indices, and every ] is a
cooperative yield point.

Example:
    >>> execute_program(BrainfuckEngine, '+++.').output
    '\\x03'
"""

from typing import Any, Dict, List, Optional

from .engine import Engine, SliceResult
from .errors import EsolangError, Result
from .input_bridge import InputMode
from .program import Program, Token, TokenKind
from .tape import Tape


COMMANDS = frozenset('><+-.,[]')


# ============================================================================
# Tokenizer
# ============================================================================

class BrainfuckTokenizer:
    """Keep command characters, drop everything else"""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        self.tokens = [
            Token(TokenKind.COMMAND, ch, pos)
            for pos, ch in enumerate(self.source)
            if ch in COMMANDS
        ]
        return self.tokens


def tokenize(source: str) -> Result:
    try:
        return Result.success(Program(tuple(BrainfuckTokenizer(source).tokenize())))
    except EsolangError as exc:
        return Result.failure(exc)


# ============================================================================
# Engine
# ============================================================================

class BrainfuckEngine(Engine):
    """Resumable Brainfuck interpreter"""

    language = "brainfuck"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tape: Optional[Tape] = None
        self.loop_starts: List[int] = []

    def tokenize(self, source: str) -> Result:
        return tokenize(source)

    def reset_state(self):
        self.tape = Tape(self.config.tape_length, self.config.cell_modulus)
        self.loop_starts = []

    def teardown(self):
        self.tape = None
        self.loop_starts = []

    def snapshot(self) -> Dict[str, Any]:
        if self.tape is None:
            return {}
        return {'pointer': self.tape.pointer, 'cells': self.tape.cells.copy()}

    def accepts_char(self, char: str) -> bool:
        return char not in '\b\t'

    def accept_input(self, value: Any):
        self.tape.set(10 if value == '\n' else ord(value))

    def execute(self, token: Token) -> Optional[SliceResult]:
        command = token.value
        tape = self.tape

        if command == '>':
            tape.move(1)
        elif command == '<':
            tape.move(-1)
        elif command == '+':
            tape.add(1)
        elif command == '-':
            tape.add(-1)
        elif command == '.':
            self.console.append(chr(tape.value))
        elif command == ',':
            return self.request_input(InputMode.CHAR)
        elif command == '[':
            self.loop_starts.append(self.store.pc - 1)
        elif command == ']':
            if self.loop_starts:
                start = self.loop_starts.pop()
                if tape.value != 0:
                    self.store.jump_to(start)
            return SliceResult.YIELD
        return None


__all__ = ['COMMANDS', 'BrainfuckTokenizer', 'BrainfuckEngine', 'tokenize']

"""
StandardChess Runtime - Chess Notation Tape Machine

A program is a game written in algebraic notation, one move per
whitespace-separated token. Moves drive a 30,000 cell byte tape.

Token Grammar:
    [piece][x]<file><rank>[+][=<piece>]     move, e.g. e4, Nxf3, Qd1+, e8=Q
    0-0                                     loop start
    0-0-0                                   jump back to the last loop start
    #  or  1/2                              game result; exactly one required

    piece: N B R Q K (no letter means pawn), file: a-h, rank: 1-8

Move Semantics:
    direction = file - rank of the target square (0-based)
    A check (+) or capture (x) makes the move read a numeric parameter
    from the following move: file*8 + rank + 64*check + 128*capture.

    Pawn    no effect
    Knight  cell -= n (direction > 0) / cell += n (direction < 0)
    Rook    pointer -= n (direction > 0) / pointer += n (direction < 0)
    Bishop  direction > 0: read a key (plain) or a number line (check/capture)
            direction < 0: print the cell as a char (plain) or number
            direction = 0: pop n characters off the output into the cell
    Queen   |direction| 0: random cell, 1: output length or pointer,
            2: logical not, 3: zero or parameter
    King    when the cell is 0: jump back (direction > 0) or forward
            (direction < 0) by n tokens

Reaching the end of the moves without the result token is an error.
"""

from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass
from enum import IntEnum
import logging
import re

from .engine import Engine, SliceResult
from .errors import (
    ParseError, EsolangError, OperatorFault, Result,
    E_PARSE_ERROR, E_INVALID_MOVE, E_NO_RESULT, E_RUNTIME_ERROR,
)
from .input_bridge import InputMode
from .program import Program, Token, TokenKind
from .tape import Tape

logger = logging.getLogger(__name__)

GAME_ENDINGS = ('#', '1/2')
CASTLE_SHORT = '0-0'
CASTLE_LONG = '0-0-0'

_WORD = re.compile(r'\S+')


class Piece(IntEnum):
    PAWN = -1
    KNIGHT = 0
    BISHOP = 1
    ROOK = 2
    QUEEN = 3
    KING = 4

    @classmethod
    def from_char(cls, char: str) -> "Piece":
        """Piece for a letter; anything else (including '') is a pawn"""
        index = PIECE_CHARACTERS.find(char) if len(char) == 1 else -1
        return cls(index)


PIECE_CHARACTERS = "NBRQK"


@dataclass(frozen=True)
class Move:
    """A parsed move; x is the file and y the rank, both 0-7"""
    piece: Piece
    x: int
    y: int
    is_check: bool = False
    has_taken: bool = False
    is_promotion: bool = False

    @property
    def direction(self) -> int:
        return self.x - self.y

    @property
    def check_or_take(self) -> bool:
        return self.is_check or self.has_taken

    @property
    def number(self) -> int:
        """Numeric parameter encoded by this move"""
        return self.x * 8 + self.y + (64 if self.is_check else 0) + (128 if self.has_taken else 0)


def parse_square(text: str) -> Optional[Tuple[int, int]]:
    if len(text) != 2:
        return None
    x = ord(text[0]) - ord('a')
    y = ord(text[1]) - ord('1')
    if 0 <= x < 8 and 0 <= y < 8:
        return x, y
    return None


def parse_move(text: str) -> Optional[Move]:
    """Parse one move token; None if it is not a valid move"""
    i = 0
    piece = Piece.from_char(text[:1])
    if piece is not Piece.PAWN:
        i += 1

    has_taken = text[i:i + 1] == 'x'
    if has_taken:
        i += 1

    square = parse_square(text[i:i + 2])
    if square is None:
        return None
    i += 2

    is_check = text[i:i + 1] == '+'
    if is_check:
        i += 1

    is_promotion = False
    if piece is Piece.PAWN and text[i:i + 1] == '=':
        promoted = Piece.from_char(text[i + 1:i + 2])
        if promoted is not Piece.PAWN:
            piece = promoted
            is_promotion = True
            i += 2

    if i != len(text):
        return None
    return Move(piece, square[0], square[1], is_check, has_taken, is_promotion)


# ============================================================================
# Tokenizer
# ============================================================================

class ChessTokenizer:
    """Tokenize a game into moves, castlings and the result"""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []

    def tokenize(self) -> Program:
        has_end = False
        last_word, last_pos = "", 0

        for match in _WORD.finditer(self.source):
            word, pos = match.group(0), match.start()
            last_word, last_pos = word, pos

            if word in GAME_ENDINGS:
                if has_end:
                    raise ParseError.with_excerpt(pos, "Game has more than one ending", word)
                has_end = True
                self.tokens.append(Token(TokenKind.GAME_END, word, pos))
                continue

            if word in (CASTLE_SHORT, CASTLE_LONG):
                self.tokens.append(Token(TokenKind.CASTLE, word, pos))
                continue

            move = parse_move(word)
            if move is None:
                raise ParseError.with_excerpt(pos, "Invalid move", word, E_INVALID_MOVE)
            kind = TokenKind.PROMOTION if move.is_promotion else TokenKind.MOVE
            self.tokens.append(Token(kind, word, pos, detail=move))

        if not has_end:
            raise ParseError.with_excerpt(last_pos, "Game has no ending", last_word, E_PARSE_ERROR)

        logger.debug("tokenized %d moves", len(self.tokens))
        return Program(tuple(self.tokens))


def tokenize(source: str) -> Result:
    try:
        return Result.success(ChessTokenizer(source).tokenize())
    except EsolangError as exc:
        return Result.failure(exc)


# ============================================================================
# Engine
# ============================================================================

class ChessEngine(Engine):
    """Resumable chess-notation tape interpreter"""

    language = "standardChess"
    keep_echo = False

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

    def accept_input(self, value: Any):
        self.tape.set(ord(value) if isinstance(value, str) else value)

    def finish(self):
        raise OperatorFault("The Game does not have a result", E_NO_RESULT)

    def execute(self, token: Token) -> Optional[SliceResult]:
        if token.kind == TokenKind.GAME_END:
            return SliceResult.DONE
        if token.kind in (TokenKind.MOVE, TokenKind.PROMOTION):
            return self._evaluate(token.detail)
        if token.kind == TokenKind.CASTLE:
            if token.value == CASTLE_LONG:
                if not self.loop_starts:
                    raise OperatorFault("No Start of Loop")
                self.store.jump_to(self.loop_starts.pop())
            self.loop_starts.append(self.store.pc)
            return None
        raise OperatorFault(f"Unknown token kind {token.kind}", E_RUNTIME_ERROR)

    def _number_param(self) -> int:
        token = self.store.fetch_operand()
        if token is None:
            raise OperatorFault("No token defined")
        if token.kind not in (TokenKind.MOVE, TokenKind.PROMOTION):
            raise OperatorFault("Wrong token type")
        return token.detail.number

    def _evaluate(self, move: Move) -> Optional[SliceResult]:
        tape = self.tape
        direction = move.direction
        check_or_take = move.check_or_take
        amount = 1

        if move.piece is Piece.KING:
            if check_or_take:
                amount = self._number_param()
            if tape.value > 0:
                return None
            if direction > 0:
                self.store.jump_to(self.store.pc - amount - int(check_or_take))
            elif direction < 0:
                self.store.jump_to(self.store.pc + amount)

        elif move.piece is Piece.QUEEN:
            distance = abs(direction)
            if distance == 0:
                tape.set(self.rng.randrange(self.config.cell_modulus))
            elif distance == 1:
                tape.set(tape.pointer if check_or_take else len(self.console))
            elif distance == 2:
                tape.set(0 if tape.value else 1)
            elif distance == 3:
                tape.set(self._number_param() if check_or_take else 0)

        elif move.piece is Piece.ROOK:
            if check_or_take:
                amount = self._number_param()
            if direction > 0:
                tape.move(-amount)
            elif direction < 0:
                tape.move(amount)

        elif move.piece is Piece.BISHOP:
            if direction > 0:
                return self.request_input(InputMode.LINE_INTEGER if check_or_take else InputMode.CHAR)
            if direction < 0:
                self.console.append(str(tape.value) if check_or_take else chr(tape.value))
            else:
                if check_or_take:
                    amount = self._number_param()
                self._read_back_output(amount)

        elif move.piece is Piece.KNIGHT:
            if check_or_take:
                amount = self._number_param()
            if direction > 0:
                tape.add(-amount)
            elif direction < 0:
                tape.add(amount)

        return None

    def _read_back_output(self, amount: int):
        """Store the char `amount` places from the end of the output, then cut there"""
        output = self.console.committed
        if amount == 0:
            self.tape.set(ord(output[0]) if output else 0)
            self.console.clear()
            return
        index = len(output) - amount
        self.tape.set(ord(output[index]) if 0 <= index < len(output) else 0)
        self.console.trim(amount)


__all__ = [
    'Piece', 'Move', 'parse_square', 'parse_move',
    'ChessTokenizer', 'ChessEngine', 'tokenize',
    'GAME_ENDINGS', 'CASTLE_SHORT', 'CASTLE_LONG',
]

"""
Weird Lexer - Line-oriented Data Literal Language

Tokenizer for a one-command-per-line language. There is no interpreter;
the lexer resolves variables to slot indices and inlines constants.

Syntax:
    say "hi\\n" -> 3       keyword, string, end of command
    $count = ~1f          variable, operator, hexadecimal number (31)
    #limit : ~ff          constant definition (inlined at every later use)
    @info                 data indicator
    // comment            rest of the line is ignored

Lexical categories:
    keywords    [a-z0-9_]+ (case-insensitive)
    strings     "..." with \\n and \\<char> escapes
    numbers     ~ followed by hexadecimal digits
    operators   ! / * + - = % :
    brackets    [ ] ( )
    ->          end of command

Errors name the 1-based line.
"""

from typing import Any, Dict, List, Tuple
from dataclasses import dataclass, field
import logging

from .errors import ParseError, EsolangError, Result, E_PARSE_ERROR
from .program import Token, TokenKind

logger = logging.getLogger(__name__)

STRING_INDICATOR = '"'
NUMBER_INDICATOR = '~'
VARIABLE_INDICATOR = '$'
CONST_INDICATOR = '#'
DATA_INDICATOR = '@'

KEY_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_")
HEX_DIGITS = frozenset("0123456789abcdef")
OPERATOR_CHARS = frozenset("!/*+-=%:")
OPEN_BRACKETS = "[("
CLOSED_BRACKETS = "])"


class LineError(Exception):
    """Error inside one line; column is 0-based, the lexer adds the line number"""

    def __init__(self, reason: str, column: int = 0):
        self.column = column
        super().__init__(reason)


def _is_key_char(ch: str) -> bool:
    return ch.lower() in KEY_CHARS


@dataclass(frozen=True)
class WeirdProgram:
    """Commands with their source lines, variable slots and constants"""
    commands: Tuple[Tuple[Token, ...], ...]
    lines: Tuple[int, ...]
    variables: Tuple[str, ...]
    constants: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Line Tokenizer
# ============================================================================

class CommandTokenizer:
    """Tokenize a single line"""

    def __init__(self, line: str):
        self.line = line
        self.pos = 0
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        line = self.line
        while self.pos < len(line):
            ch = line[self.pos]
            start = self.pos

            if line.startswith('//', self.pos):
                break

            if ch.isspace():
                self.pos += 1
            elif _is_key_char(ch):
                self._add(TokenKind.KEY, self._read_key_chars(), start)
            elif ch == STRING_INDICATOR:
                self._add(TokenKind.VALUE, self._read_string(), start)
            elif ch == NUMBER_INDICATOR:
                self._add(TokenKind.VALUE, self._read_hex(), start)
            elif ch == VARIABLE_INDICATOR:
                self.pos += 1
                self._add(TokenKind.VARIABLE, self._read_key_chars(), start)
            elif ch == CONST_INDICATOR:
                self.pos += 1
                self._add(TokenKind.CONSTANT, self._read_key_chars(), start)
            elif ch == DATA_INDICATOR:
                self.pos += 1
                self._add(TokenKind.INFO, self._read_key_chars(), start)
            elif ch in OPERATOR_CHARS:
                self.pos += 1
                if ch == '-' and line[self.pos:self.pos + 1] == '>':
                    self.pos += 1
                    self._add(TokenKind.END_OF_COMMAND, None, start)
                else:
                    self._add(TokenKind.OPERATOR, ch, start)
            elif ch in OPEN_BRACKETS:
                self.pos += 1
                self._add(TokenKind.OPEN_BRACKET, ch, start)
            elif ch in CLOSED_BRACKETS:
                self.pos += 1
                self._add(TokenKind.CLOSED_BRACKET, ch, start)
            else:
                raise LineError(f"Invalid character {ch}", self.pos)

        return self.tokens

    def _add(self, kind: str, value: Any, pos: int):
        self.tokens.append(Token(kind, value, pos))

    def _read_key_chars(self) -> str:
        start = self.pos
        while self.pos < len(self.line) and _is_key_char(self.line[self.pos]):
            self.pos += 1
        return self.line[start:self.pos]

    def _read_string(self) -> str:
        start = self.pos
        self.pos += 1  # Skip opening quote
        result = []
        while self.pos < len(self.line):
            ch = self.line[self.pos]
            self.pos += 1
            if ch == STRING_INDICATOR:
                return ''.join(result)
            if ch == '\\' and self.pos < len(self.line):
                ch = self.line[self.pos]
                self.pos += 1
                result.append('\n' if ch == 'n' else ch)
                continue
            result.append(ch)
        raise LineError("Type Error: Incomplete string", start)

    def _read_hex(self) -> int:
        column = self.pos
        self.pos += 1  # Skip ~
        start = self.pos
        while self.pos < len(self.line) and self.line[self.pos].lower() in HEX_DIGITS:
            self.pos += 1
        digits = self.line[start:self.pos]
        if not digits:
            raise LineError("Type Error: Incomplete number", column)
        return int(digits, 16)


# ============================================================================
# Program Lexer
# ============================================================================

class WeirdLexer:
    """Tokenize every line, then resolve variables and constants"""

    def __init__(self, source: str):
        self.source = source
        self.variables: List[str] = []
        self.constants: Dict[str, Any] = {}

    def tokenize(self) -> WeirdProgram:
        commands: List[Tuple[Token, ...]] = []
        lines: List[int] = []
        next_start = 0

        for number, line in enumerate(self.source.split("\n"), start=1):
            line_start, next_start = next_start, next_start + len(line) + 1
            try:
                tokens = CommandTokenizer(line).tokenize()
                if not tokens:
                    continue
                commands.append(tuple(self._resolve(tokens)))
                lines.append(number)
            except LineError as exc:
                raise ParseError(E_PARSE_ERROR, f"{exc} at line {number}",
                                 offset=line_start + exc.column, excerpt=line,
                                 line=number) from exc

        logger.debug("lexed %d commands, %d variables, %d constants",
                     len(commands), len(self.variables), len(self.constants))
        return WeirdProgram(tuple(commands), tuple(lines), tuple(self.variables), dict(self.constants))

    def _resolve(self, tokens: List[Token]) -> List[Token]:
        resolved = []
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.kind == TokenKind.VARIABLE:
                if token.value not in self.variables:
                    self.variables.append(token.value)
                resolved.append(Token(TokenKind.VARIABLE, self.variables.index(token.value), token.pos))
            elif token.kind == TokenKind.CONSTANT:
                value, consumed = self._constant(tokens, i)
                resolved.append(Token(TokenKind.VALUE, value, token.pos))
                i += consumed
                continue
            else:
                resolved.append(token)
            i += 1
        return resolved

    def _constant(self, tokens: List[Token], index: int) -> Tuple[Any, int]:
        """Value of the constant at index and how many tokens it spans"""
        name = tokens[index].value
        column = tokens[index].pos

        if index + 1 < len(tokens) and tokens[index + 1].is_(TokenKind.OPERATOR, ':'):
            if index + 2 >= len(tokens):
                raise LineError("incomplete command", column)
            if name in self.constants:
                raise LineError(f"constant {name} has already been defined", column)
            value_token = tokens[index + 2]
            if value_token.kind == TokenKind.CONSTANT:
                value, inner = self._constant(tokens, index + 2)
                consumed = 2 + inner
            elif value_token.kind == TokenKind.VALUE:
                value, consumed = value_token.value, 3
            else:
                raise LineError(f"constant {name} cannot be assigned to {value_token.value}",
                                value_token.pos)
            self.constants[name] = value
            return value, consumed

        if name not in self.constants:
            raise LineError(f"constant {name} has not been defined", column)
        return self.constants[name], 1


def tokenize(source: str) -> Result:
    try:
        return Result.success(WeirdLexer(source).tokenize())
    except EsolangError as exc:
        return Result.failure(exc)


__all__ = ['WeirdProgram', 'CommandTokenizer', 'WeirdLexer', 'tokenize']

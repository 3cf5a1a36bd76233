"""
ShortO Runtime - Stack Machine Language

A shortO program is plain text with embedded code blocks. Text outside a
block is printed as it is reached; code inside a block runs against a
single stack of number/string values.

Source Structure:
    Hello            text, printed verbatim ("\\x" prints x, "//" comments to end of line)
    #loop;           defines marker "loop" at the next token
    $ ... ;          code block
    @{ ... }         code block (alternative delimiters)

Inside a code block:
    "text"           push a string ("\\n", "\\t", "\\\\" escapes)
    12.5             push a number
    #loop;           jump to marker "loop"
    + - * ...        operators (see OPERATORS below)

Example:
    >>> execute_program(ShortOEngine, 'Sum: $2 3+,;').output
    'Sum: 5'

Architecture:
- Tokenizer: one left-to-right pass building tokens and the marker table
- Operators: a frozen OperatorRegistry keyed by symbol
- Engine: resumable interpreter over the shared Engine state machine
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import math

from .engine import Engine, SliceResult
from .errors import (
    ParseError, EsolangError, OperatorFault, Result,
    E_PARSE_ERROR, E_DUPLICATE_MARKER, E_STACK_UNDERFLOW, E_RUNTIME_ERROR,
)
from .input_bridge import InputMode
from .program import Program, Token, TokenKind
from .registry import OperatorRegistry
from .values import (
    Value, NAN_SENTINEL, check_number, compare, digit_count, divide, format_value,
    from_char_code, is_number, is_truthy, parse_float, remainder, repeat,
    substring, to_integer,
)

logger = logging.getLogger(__name__)

MAX_STACK_SIZE = 10_000_000


# ============================================================================
# Operators
# ============================================================================

OPERATORS = OperatorRegistry("shortO")


def _pop(engine: "ShortOEngine") -> Value:
    if not engine.stack:
        raise OperatorFault("There is no value to pop from stack", E_STACK_UNDERFLOW)
    value = engine.stack.pop()
    engine.popped.append(value)
    return value


def _pop_count(engine: "ShortOEngine") -> float:
    """Pop a count; a string counts as its length"""
    value = _pop(engine)
    return float(len(value)) if isinstance(value, str) else value


def _loop_count(count: float) -> int:
    """How often `while (count-- > 0)` runs"""
    if count <= 0:
        return 0
    if count > MAX_STACK_SIZE:
        raise OperatorFault(f"Count {format_value(count)} exceeds the stack limit")
    return math.ceil(count)


def _kinds(values: Iterable[Value]) -> Tuple[str, ...]:
    return tuple("string" if isinstance(v, str) else "number" for v in values)


@OPERATORS.register('+')
def op_add(engine):
    right, left = _pop(engine), _pop(engine)
    if is_number(left) and is_number(right):
        engine.stack.append(check_number(left + right))
    else:
        engine.stack.append(format_value(left) + format_value(right))


@OPERATORS.register('-')
def op_subtract(engine):
    right, left = _pop(engine), _pop(engine)
    if isinstance(left, str) and isinstance(right, str):
        engine.stack.append(left.replace(right, ""))
    elif is_number(left) and is_number(right):
        engine.stack.append(check_number(left - right))
    elif isinstance(right, str):
        engine.stack.append(substring(right, left))
    else:
        engine.stack.append(substring(left, 0, len(left) - right))


@OPERATORS.register('*')
def op_multiply(engine):
    right, left = _pop(engine), _pop(engine)
    if isinstance(left, str) and isinstance(right, str):
        engine.stack.append(NAN_SENTINEL)
    elif is_number(left) and is_number(right):
        engine.stack.append(check_number(left * right))
    elif isinstance(right, str):
        engine.stack.append(repeat(right, abs(left)))
    else:
        engine.stack.append(repeat(left, abs(right)))


@OPERATORS.register('/')
def op_divide(engine):
    right, left = _pop(engine), _pop(engine)
    if is_number(left) and is_number(right):
        engine.stack.append(check_number(divide(left, right)))
    else:
        engine.stack.append(NAN_SENTINEL)


@OPERATORS.register('%')
def op_remainder(engine):
    right, left = _pop(engine), _pop(engine)
    if is_number(left) and is_number(right):
        engine.stack.append(check_number(remainder(left, right)))
    else:
        engine.stack.append(NAN_SENTINEL)


@OPERATORS.register('~')
def op_to_number(engine):
    value = _pop(engine)
    engine.stack.append(value if is_number(value) else check_number(parse_float(value)))


@OPERATORS.register("'")
def op_to_char(engine):
    value = _pop(engine)
    engine.stack.append(value if isinstance(value, str) else from_char_code(abs(value)))


@OPERATORS.register(',')
def op_print(engine):
    engine.console.append(format_value(_pop(engine)))


@OPERATORS.register('!')
def op_not(engine):
    engine.stack.append(0.0 if is_truthy(_pop(engine)) else 1.0)


@OPERATORS.register('X')
def op_drop(engine):
    _pop(engine)


@OPERATORS.register('^')
def op_duplicate(engine):
    count = _pop_count(engine)
    value = _pop(engine)
    engine.stack.extend([value] * _loop_count(count))


@OPERATORS.register('S')
def op_to_string(engine):
    engine.stack.append(format_value(_pop(engine)))


@OPERATORS.register('N')
def op_char_codes(engine):
    value = _pop(engine)
    if is_number(value):
        engine.stack.append(value)
        return
    engine.stack.extend(float(ord(ch)) for ch in value)


@OPERATORS.register('>')
def op_skip(engine):
    amount = _pop_count(engine)
    if is_truthy(_pop(engine)):
        engine.store.jump_to(engine.store.pc + int(to_integer(amount)))


@OPERATORS.register('=')
def op_compare(engine):
    right, left = _pop(engine), _pop(engine)
    engine.stack.append(float(compare(left, right)))


@OPERATORS.register('v')
def op_reverse(engine):
    count = _loop_count(_pop_count(engine))
    values = [_pop(engine) for _ in range(count)]
    engine.stack.extend(values)


@OPERATORS.register('D')
def op_delete_output(engine):
    amount = _pop_count(engine)
    output = engine.console.committed
    kept = substring(output, 0, len(output) - amount)
    engine.console.trim(len(output) - len(kept))


@OPERATORS.register('T')
def op_is_string(engine):
    engine.stack.append(1.0 if isinstance(_pop(engine), str) else 0.0)


@OPERATORS.register('C')
def op_clear_output(engine):
    engine.console.clear()


@OPERATORS.register('L')
def op_length(engine):
    value = _pop(engine)
    engine.stack.append(float(len(value) if isinstance(value, str) else digit_count(value)))


@OPERATORS.register('|')
def op_or(engine):
    if is_truthy(_pop(engine)):
        engine.stack.append(1.0)
    else:
        engine.stack.append(1.0 if is_truthy(_pop(engine)) else 0.0)


@OPERATORS.register('&')
def op_and(engine):
    if not is_truthy(_pop(engine)):
        engine.stack.append(0.0)
    else:
        engine.stack.append(1.0 if is_truthy(_pop(engine)) else 0.0)


@OPERATORS.register('?')
def op_random(engine):
    engine.stack.append(engine.rng.random())


@OPERATORS.register('°')
def op_floor(engine):
    value = _pop(engine)
    engine.stack.append(value if isinstance(value, str) else float(math.floor(value)))


@OPERATORS.register('l')
def op_stack_size(engine):
    engine.stack.append(float(len(engine.stack)))


@OPERATORS.register('.')
def op_read_char(engine):
    return engine.request_input(InputMode.CHAR)


@OPERATORS.register('_')
def op_read_text(engine):
    return engine.request_input(InputMode.LINE_TEXT)


@OPERATORS.register(':')
def op_read_number(engine):
    return engine.request_input(InputMode.LINE_NUMBER)


OPERATORS.freeze()


# ============================================================================
# Tokenizer
# ============================================================================

class ShortOTokenizer:
    """Tokenize shortO source into text, value, operator and jump tokens"""

    STRING = '"'
    CODE_BLOCK = '$'
    MARKER = '#'
    END = ';'
    ESCAPE = '\\'
    COMMENT = '/'
    BRACE_BLOCK = '@{'
    BRACE_END = '}'
    TEXT_BREAK = '"$#;'

    STRING_ESCAPES = {'n': '\n', 't': '\t'}

    def __init__(self, source: str, operators: OperatorRegistry = OPERATORS):
        self.source = source
        self.operators = operators
        self.pos = 0
        self.tokens: List[Token] = []
        self.markers: Dict[str, int] = {}

    def tokenize(self) -> Program:
        """Tokenize the entire source; raises ParseError on the first problem"""
        while self.pos < len(self.source):
            ch = self.source[self.pos]

            if ch == self.MARKER:
                self._read_marker_definition()
            elif ch == self.CODE_BLOCK:
                self.pos += 1
                self._read_block(self.END)
            elif self.source.startswith(self.BRACE_BLOCK, self.pos):
                self.pos += len(self.BRACE_BLOCK)
                self._read_block(self.BRACE_END)
            elif ch in self.TEXT_BREAK:
                self._error(f"Invalid character {ch}")
            else:
                self._read_text()

        logger.debug("tokenized %d tokens, %d markers", len(self.tokens), len(self.markers))
        return Program(tuple(self.tokens), self.markers)

    def _error(self, reason: str, code: str = E_PARSE_ERROR, offset: Optional[int] = None):
        raise ParseError.at(self.source, self.pos if offset is None else offset, reason, code)

    def _add_token(self, kind: str, value: Any, pos: int):
        self.tokens.append(Token(kind, value, pos))

    def _read_name(self, reason: str) -> str:
        """Read characters up to the next ';' (consumed)"""
        start = self.pos
        end = self.source.find(self.END, start)
        if end < 0:
            self._error(reason, offset=len(self.source))
        self.pos = end + 1
        return self.source[start:end]

    def _read_marker_definition(self):
        start = self.pos
        self.pos += 1
        name = self._read_name("Marker has no defined ending")
        if name in self.markers:
            self._error(f'The marker "{name}" has already been set', E_DUPLICATE_MARKER, offset=start)
        self.markers[name] = len(self.tokens)

    def _read_block(self, terminator: str):
        while True:
            if self.pos >= len(self.source):
                self._error("Code Block has no defined ending")

            ch = self.source[self.pos]
            if ch == terminator:
                self.pos += 1
                return

            if ch == self.STRING:
                self._read_string()
            elif ch.isdigit() and ch.isascii():
                self._read_number()
            elif ch in self.operators:
                self._add_token(TokenKind.OPERATOR, ch, self.pos)
                self.pos += 1
            elif ch == self.MARKER:
                start = self.pos
                self.pos += 1
                self._add_token(TokenKind.JUMP, self._read_name("Marker has no defined ending"), start)
            elif ch.isspace():
                while self.pos < len(self.source) and self.source[self.pos].isspace():
                    self.pos += 1
            else:
                self._error(f"Invalid character {ch}")

    def _read_string(self):
        start = self.pos
        self.pos += 1  # Skip opening quote
        result = []

        while True:
            if self.pos >= len(self.source):
                self._error("String isn't stopped", offset=start)
            ch = self.source[self.pos]
            self.pos += 1

            if ch == self.STRING:
                break
            if ch == self.ESCAPE:
                if self.pos >= len(self.source):
                    self._error("String isn't stopped", offset=start)
                ch = self.source[self.pos]
                self.pos += 1
                ch = self.STRING_ESCAPES.get(ch, ch)
            result.append(ch)

        self._add_token(TokenKind.VALUE, ''.join(result), start)

    def _read_number(self):
        start = self.pos
        has_dot = False

        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch.isdigit() and ch.isascii():
                self.pos += 1
            elif ch == '.' and not has_dot:
                has_dot = True
                self.pos += 1
            else:
                break

        self._add_token(TokenKind.VALUE, float(self.source[start:self.pos]), start)

    def _read_text(self):
        start = self.pos
        result = []

        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in self.TEXT_BREAK or self.source.startswith(self.BRACE_BLOCK, self.pos):
                break

            if ch == self.COMMENT and self.source.startswith('//', self.pos):
                newline = self.source.find('\n', self.pos)
                if newline < 0:
                    self.pos = len(self.source)
                    break
                self.pos = newline
                continue

            if ch == self.ESCAPE:
                self.pos += 1
                if self.pos >= len(self.source):
                    self._error("No escaped character defined")
                ch = self.source[self.pos]

            result.append(ch)
            self.pos += 1

        if result:
            self._add_token(TokenKind.TEXT, ''.join(result), start)


def tokenize(source: str, operators: OperatorRegistry = OPERATORS) -> Result:
    """Tokenize shortO source into a Result holding a Program"""
    try:
        return Result.success(ShortOTokenizer(source, operators).tokenize())
    except EsolangError as exc:
        return Result.failure(exc)


def format_listing(program: Program) -> str:
    """Human-readable token and marker listing"""
    lines = []
    for token in program.tokens:
        value = token.value
        if isinstance(value, str) and token.kind in (TokenKind.TEXT, TokenKind.VALUE):
            value = '"' + value.replace('\n', '\\n').replace('"', '\\"') + '"'
        elif isinstance(value, float):
            value = format_value(value)
        lines.append(f"{token.kind}: {value}")
    lines.append("------------")
    lines.extend(f"{name}: {index}" for name, index in program.markers.items())
    return "\n".join(lines)


# ============================================================================
# Engine
# ============================================================================

class ShortOEngine(Engine):
    """Resumable shortO interpreter"""

    language = "shortO"
    keep_echo = True
    default_registry = OPERATORS

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.stack: List[Value] = []
        self.popped: List[Value] = []

    def tokenize(self, source: str) -> Result:
        return tokenize(source, self.registry)

    def reset_state(self):
        self.stack = []

    def teardown(self):
        self.stack = []

    def snapshot(self) -> Dict[str, Any]:
        return {'stack': list(self.stack)}

    def accept_input(self, value: Any):
        if isinstance(value, float):
            value = check_number(value)
        self.stack.append(value)

    def execute(self, token: Token) -> Optional[SliceResult]:
        if token.kind == TokenKind.TEXT:
            self.console.append(token.value)
        elif token.kind == TokenKind.VALUE:
            value = token.value
            self.stack.append(check_number(value) if is_number(value) else value)
        elif token.kind == TokenKind.JUMP:
            self.store.jump_to(self.store.resolve(token.value))
            return SliceResult.YIELD
        elif token.kind == TokenKind.OPERATOR:
            self.popped = []
            try:
                return self.registry[token.value](self)
            except OperatorFault as fault:
                # report operands in source order, left first
                fault.operands = fault.operands or _kinds(reversed(self.popped))
                raise
        else:
            raise OperatorFault(f"Unknown token kind {token.kind}", E_RUNTIME_ERROR)
        return None


__all__ = [
    'OPERATORS', 'ShortOTokenizer', 'ShortOEngine', 'tokenize', 'format_listing',
]

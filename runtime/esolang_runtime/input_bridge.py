"""
Esolang Runtime - Input Bridge

Contract between a suspended engine and the host's key events.

A host delivers one InputEvent per key press. Named keys are normalized
the way the browser hosts did it:

    Enter      -> "\\n"
    Tab        -> "\\t"
    Backspace  -> "\\b"
    Delete     -> "\\b"
    Escape     -> cancels the run (handled by the engine)

Any other multi-character key name (Shift, ArrowUp, ...) is ignored.

Suspension modes:
    CHAR          the key itself is the input value
    LINE_TEXT     keys are echoed until Enter, value is the echoed text
    LINE_NUMBER   digits, one '.', a leading '-'; value is a float
    LINE_INTEGER  digits only; value is an int (empty line -> 0)
"""

from typing import Any, Optional, Tuple
from dataclasses import dataclass
from enum import Enum, auto

from .console import OutputConsole
from .values import parse_float


class Key:
    """Named keys a host may deliver"""
    ENTER = "Enter"
    TAB = "Tab"
    BACKSPACE = "Backspace"
    DELETE = "Delete"
    ESCAPE = "Escape"


_KEY_CHARS = {
    Key.ENTER: "\n",
    Key.TAB: "\t",
    Key.BACKSPACE: "\b",
    Key.DELETE: "\b",
}


def normalize_key(key: str) -> Optional[str]:
    """Map a key name to the character it produces, None if it produces none"""
    if key in _KEY_CHARS:
        return _KEY_CHARS[key]
    if len(key) == 1:
        return key
    return None


@dataclass(frozen=True)
class InputEvent:
    """One key press"""
    key: str

    @property
    def is_escape(self) -> bool:
        return self.key == Key.ESCAPE

    @property
    def char(self) -> Optional[str]:
        return normalize_key(self.key)


class InputMode(Enum):
    NONE = auto()
    CHAR = auto()
    LINE_TEXT = auto()
    LINE_NUMBER = auto()
    LINE_INTEGER = auto()

    @property
    def line_buffered(self) -> bool:
        return self in (InputMode.LINE_TEXT, InputMode.LINE_NUMBER, InputMode.LINE_INTEGER)


@dataclass
class Suspension:
    mode: InputMode = InputMode.NONE
    pending_length: int = 0

    @property
    def active(self) -> bool:
        return self.mode is not InputMode.NONE


# ============================================================================
# Line Reader
# ============================================================================

class LineReader:
    """
    Applies key characters to the console echo while an engine is
    suspended and decides when an input value is complete.

    Args:
        console: console whose pending echo shows the typed line
        keep_echo: whether a committed line stays in the output
    """

    def __init__(self, console: OutputConsole, keep_echo: bool = True):
        self.console = console
        self.keep_echo = keep_echo
        self.suspension = Suspension()

    @property
    def mode(self) -> InputMode:
        return self.suspension.mode

    def begin(self, mode: InputMode):
        self.cancel()
        self.suspension = Suspension(mode=mode)

    def feed(self, char: str) -> Tuple[bool, Any]:
        """
        Apply one normalized key character.

        Returns:
            (True, value) when the input is complete, (False, None) otherwise
        """
        mode = self.suspension.mode
        if mode is InputMode.NONE:
            return False, None

        if mode is InputMode.CHAR:
            self.suspension = Suspension()
            return True, char

        if char == "\b":
            if self.suspension.pending_length > 0 and self.console.unecho():
                self.suspension.pending_length -= 1
            return False, None

        if char == "\n":
            return True, self._commit()

        if self._accepts(char):
            self.console.echo(char)
            self.suspension.pending_length += 1
        return False, None

    def cancel(self) -> str:
        """Drop uncommitted echo; returns the dropped text"""
        self.suspension = Suspension()
        return self.console.discard_echo()

    def _accepts(self, char: str) -> bool:
        mode = self.suspension.mode
        if mode is InputMode.LINE_TEXT:
            return True
        if char.isdigit() and char.isascii():
            return True
        if mode is InputMode.LINE_NUMBER:
            if char == '-':
                return self.suspension.pending_length == 0
            if char == '.':
                return '.' not in self.console.pending
        return False

    def _commit(self) -> Any:
        mode = self.suspension.mode
        text = self.console.commit_echo() if self.keep_echo else self.console.discard_echo()
        self.suspension = Suspension()

        if mode is InputMode.LINE_NUMBER:
            return parse_float(text)
        if mode is InputMode.LINE_INTEGER:
            return int(text) if text else 0
        return text


__all__ = ['Key', 'normalize_key', 'InputEvent', 'InputMode', 'Suspension', 'LineReader']

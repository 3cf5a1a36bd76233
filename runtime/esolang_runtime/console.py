"""
Esolang Runtime - Output Console

The console keeps committed program output and the echo of a line that is
still being typed in two separate buffers. Hosts render `text`, which is
their concatenation; only `committed` is visible to the program itself.
"""

from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class OutputConsole:
    """Committed output log plus pending input echo"""

    def __init__(self):
        self.committed = ""
        self.pending = ""
        self.on_output_appended: Optional[Callable[[str], None]] = None
        self.on_output_changed: Optional[Callable[[str], None]] = None

    @property
    def text(self) -> str:
        return self.committed + self.pending

    def __len__(self) -> int:
        return len(self.committed)

    # Committed output

    def append(self, text: str):
        if not text:
            return
        self.committed += text
        if self.on_output_appended is not None:
            self.on_output_appended(text)

    def trim(self, count: int):
        """Remove count characters from the end of the committed output"""
        if count <= 0:
            return
        self.committed = self.committed[:-count] if count < len(self.committed) else ""
        self._changed()

    def clear(self):
        self.committed = ""
        self.pending = ""
        self._changed()

    # Pending echo

    def echo(self, char: str):
        self.pending += char
        self._changed()

    def unecho(self) -> bool:
        if not self.pending:
            return False
        self.pending = self.pending[:-1]
        self._changed()
        return True

    def commit_echo(self) -> str:
        """Move the echo into the committed output and return it"""
        text, self.pending = self.pending, ""
        self.committed += text
        if text and self.on_output_appended is not None:
            self.on_output_appended(text)
        return text

    def discard_echo(self) -> str:
        text, self.pending = self.pending, ""
        if text:
            logger.debug("discarding %d echoed characters", len(text))
            self._changed()
        return text

    def _changed(self):
        if self.on_output_changed is not None:
            self.on_output_changed(self.text)


__all__ = ['OutputConsole']

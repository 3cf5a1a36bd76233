"""
Esolang Runtime - Resumable Execution Engine

State machine shared by every language front-end:

    IDLE -> RUNNING -> (SUSPENDED <-> RUNNING) -> COMPLETED | FAILED | CANCELLED

The engine is cooperative. step() runs one scheduling slice and returns:

    YIELD    - more work remains; the engine rescheduled itself (or, without
               a scheduler, the host calls step() again)
    SUSPEND  - the program waits for a key; the host calls send_key()
    DONE     - the run reached a terminal state

A slice ends after `step_budget` tokens, after `time_slice` seconds, on
every jump (when `yield_on_jump` is set), on an input request, or on a
terminal state. Nothing ever blocks.

Subclasses supply the language:

    tokenize(source)      -> Result[Program]
    reset_state()         fresh runtime state for a run
    execute(token)        run one token; may return YIELD or SUSPEND
    accept_input(value)   store a committed input value
    finish()              called when the token stream is exhausted
    teardown()            drop runtime state
    snapshot()            plain-data view of runtime state
"""

from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Union
from collections import deque
from enum import Enum
import logging
import random
import time

from .config import DEFAULT_CONFIG, EngineConfig
from .console import OutputConsole
from .errors import (
    EsolangError, ExecutionError, OperatorFault, Result,
)
from .input_bridge import InputEvent, InputMode, LineReader
from .program import ProgramStore, Token
from .registry import OperatorRegistry
from .scheduler import RunLoop

logger = logging.getLogger(__name__)

Scheduler = Callable[[Callable[[], None]], None]


class EngineState(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    SUSPENDED = "Suspended"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

    @property
    def active(self) -> bool:
        return self in (EngineState.RUNNING, EngineState.SUSPENDED)


class SliceResult(Enum):
    YIELD = "yield"
    SUSPEND = "suspend"
    DONE = "done"


class Engine:
    """Base class for resumable interpreters"""

    language = "abstract"
    keep_echo = True
    default_registry: Optional[OperatorRegistry] = None

    def __init__(self, config: Optional[EngineConfig] = None,
                 scheduler: Optional[Scheduler] = None,
                 registry: Optional[OperatorRegistry] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or DEFAULT_CONFIG
        self.scheduler = scheduler
        self.registry = registry if registry is not None else self.default_registry
        self.rng = rng or random.Random()

        self.console = OutputConsole()
        self.reader = LineReader(self.console, keep_echo=self.keep_echo)
        self.store: Optional[ProgramStore] = None
        self.state = EngineState.IDLE
        self.error: Optional[EsolangError] = None
        self.final_state: Dict[str, Any] = {}
        self._generation = 0

        self.on_error: Optional[Callable[[str], None]] = None
        self.on_state_changed: Optional[Callable[[EngineState], None]] = None

    # ------------------------------------------------------------------
    # Host callbacks for the output stream live on the console
    # ------------------------------------------------------------------

    @property
    def on_output_appended(self) -> Optional[Callable[[str], None]]:
        return self.console.on_output_appended

    @on_output_appended.setter
    def on_output_appended(self, callback: Optional[Callable[[str], None]]):
        self.console.on_output_appended = callback

    @property
    def on_output_changed(self) -> Optional[Callable[[str], None]]:
        return self.console.on_output_changed

    @on_output_changed.setter
    def on_output_changed(self, callback: Optional[Callable[[str], None]]):
        self.console.on_output_changed = callback

    @property
    def output(self) -> str:
        """Committed program output"""
        return self.console.committed

    @property
    def input_mode(self) -> InputMode:
        return self.reader.mode

    # ------------------------------------------------------------------
    # Language hooks
    # ------------------------------------------------------------------

    def tokenize(self, source: str) -> Result:
        raise NotImplementedError

    def reset_state(self):
        raise NotImplementedError

    def execute(self, token: Token) -> Optional[SliceResult]:
        raise NotImplementedError

    def accept_input(self, value: Any):
        raise NotImplementedError

    def accepts_char(self, char: str) -> bool:
        """Filter for key characters while suspended"""
        return True

    def finish(self):
        """End of tokens reached; raise OperatorFault to fail the run"""

    def teardown(self):
        pass

    def snapshot(self) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Host interface
    # ------------------------------------------------------------------

    def run(self, source: str) -> bool:
        """(Re)start execution from scratch; False on a parse error"""
        if self.state.active:
            self.cancel()

        self._generation += 1
        self.error = None
        self.final_state = {}
        self.console.clear()

        result = self.tokenize(source)
        if not result.ok:
            self._fail(result.error)
            return False

        self.store = ProgramStore(result.value)
        self.reset_state()
        logger.info("%s run started with %d tokens", self.language, len(result.value))
        self._set_state(EngineState.RUNNING)
        self._schedule()
        return True

    def cancel(self):
        """Stop immediately; safe from any state"""
        if not self.state.active:
            return
        self._generation += 1
        dropped = self.reader.cancel()
        logger.warning("%s run cancelled (%d uncommitted characters dropped)",
                       self.language, len(dropped))
        self._teardown()
        self._set_state(EngineState.CANCELLED)

    def send_key(self, key: Union[str, InputEvent]) -> bool:
        """Deliver one key press; returns True when the engine consumed it"""
        event = key if isinstance(key, InputEvent) else InputEvent(key)

        if not self.state.active:
            return False
        if event.is_escape:
            self.cancel()
            return True
        if self.state is not EngineState.SUSPENDED:
            return False

        char = event.char
        if char is None or not self.accepts_char(char):
            return False

        done, value = self.reader.feed(char)
        if not done:
            return True

        self._continue_with(value)
        return True

    def resume(self, value: Any) -> bool:
        """
        Hand a complete input value to a suspended engine and continue.

        Bypasses key handling; anything typed so far is discarded. Returns
        False when the engine is not waiting for input.
        """
        if self.state is not EngineState.SUSPENDED:
            return False
        self.reader.cancel()
        self._continue_with(value)
        return True

    def step(self) -> SliceResult:
        """Run one scheduling slice"""
        if self.state is EngineState.SUSPENDED:
            return SliceResult.SUSPEND
        if self.state is not EngineState.RUNNING:
            return SliceResult.DONE

        started = time.monotonic()
        budget = self.config.step_budget
        executed = 0

        try:
            while True:
                if self.state is not EngineState.RUNNING:
                    return SliceResult.DONE

                token = self.store.advance()
                if token is None:
                    self._guard(self.finish)
                    self._complete()
                    return SliceResult.DONE

                outcome = self._guard(self.execute, token)
                if self.state is not EngineState.RUNNING:
                    return SliceResult.DONE

                if outcome is SliceResult.DONE:
                    self._complete()
                    return SliceResult.DONE
                if outcome is SliceResult.SUSPEND:
                    self._set_state(EngineState.SUSPENDED)
                    return SliceResult.SUSPEND
                if outcome is SliceResult.YIELD and self.config.yield_on_jump:
                    return self._yield()

                executed += 1
                if executed >= budget or time.monotonic() - started > self.config.time_slice:
                    return self._yield()
        except EsolangError as exc:
            self._fail(exc)
            return SliceResult.DONE

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def request_input(self, mode: InputMode) -> SliceResult:
        self.reader.begin(mode)
        return SliceResult.SUSPEND

    def runtime_error(self, reason: str, code: str, operands: Tuple[str, ...] = ()) -> ExecutionError:
        token = self.store.current if self.store else None
        position = self.store.position if self.store else 0
        instruction = token.describe() if token is not None else ""
        detail = instruction
        if operands:
            detail = f"{instruction} (operands: {', '.join(operands)})"
        message = f"{reason} at Instruction {position} (Runtime)\n{detail}"
        return ExecutionError(code, message, position=position, instruction=instruction,
                              operands=tuple(operands))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _guard(self, func: Callable, *args):
        try:
            return func(*args)
        except OperatorFault as fault:
            raise self.runtime_error(fault.reason, fault.code, fault.operands) from fault

    def _continue_with(self, value: Any):
        try:
            self._guard(self.accept_input, value)
        except EsolangError as exc:
            self._fail(exc)
            return

        self._set_state(EngineState.RUNNING)
        self.step()

    def _schedule(self):
        if self.scheduler is None:
            return
        generation = self._generation
        self.scheduler(lambda: self._resume_scheduled(generation))

    def _resume_scheduled(self, generation: int):
        if generation != self._generation:
            return
        self.step()

    def _yield(self) -> SliceResult:
        self._schedule()
        return SliceResult.YIELD

    def _complete(self):
        logger.info("%s run completed", self.language)
        self._teardown()
        self._set_state(EngineState.COMPLETED)

    def _fail(self, error: EsolangError):
        self._generation += 1
        self.error = error
        logger.debug("%s run failed: %s", self.language, error)
        self.reader.cancel()
        self._teardown()
        self.console.clear()
        self.console.append(error.message)
        if self.on_error is not None:
            self.on_error(error.message)
        self._set_state(EngineState.FAILED)

    def _teardown(self):
        if self.store is not None:
            self.final_state = self.snapshot()
        self.teardown()
        self.store = None

    def _set_state(self, state: EngineState):
        if state is self.state:
            return
        logger.debug("%s: %s -> %s", self.language, self.state.value, state.value)
        self.state = state
        if self.on_state_changed is not None:
            self.on_state_changed(state)


# ============================================================================
# Convenience Function
# ============================================================================

def execute_program(engine_cls, source: str, keys: Iterable[Union[str, InputEvent]] = (),
                    max_callbacks: int = 1_000_000, **engine_kwargs) -> Engine:
    """
    Run a program on a private RunLoop, typing `keys` whenever it waits.

    Returns:
        The engine, in a terminal state or SUSPENDED if keys ran out

    Example:
        >>> execute_program(BrainfuckEngine, '+' * 72 + '.').output
        'H'
    """
    loop = RunLoop()
    engine = engine_cls(scheduler=loop.call_soon, **engine_kwargs)
    pending = deque(keys)

    engine.run(source)
    while True:
        loop.run_until_idle(max_callbacks)
        if engine.state is EngineState.SUSPENDED and pending:
            engine.send_key(pending.popleft())
            continue
        break
    return engine


__all__ = ['Engine', 'EngineState', 'SliceResult', 'Scheduler', 'execute_program']

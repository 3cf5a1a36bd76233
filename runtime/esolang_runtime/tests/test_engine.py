"""
Test suite for the resumable engine
State machine, scheduling, host callbacks, cancellation and determinism
"""

import random
import sys
import os

import pytest

# Add grandparent directory to path for imports (to find esolang_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from esolang_runtime import (
    BrainfuckEngine, ChessEngine, EngineConfig, EngineState, InputEvent,
    ShortOEngine, SliceResult, create_engine, execute_program,
    E_PARSE_ERROR,
)


COUNTDOWN = '$3;#top;$2^,1-2^!1>#top;;'


def record_states(engine):
    states = []
    engine.on_state_changed = states.append
    return states


# ============================================================================
# State Machine
# ============================================================================

class TestStateTransitions:
    def test_run_to_completion(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        states = record_states(engine)
        assert engine.run('Sum: $2 3+,;') is True
        run_loop.run_until_idle()
        assert states == [EngineState.RUNNING, EngineState.COMPLETED]

    def test_suspend_and_resume(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        states = record_states(engine)
        engine.run('$.,;')
        run_loop.run_until_idle()
        assert engine.state is EngineState.SUSPENDED
        engine.send_key('k')
        run_loop.run_until_idle()
        assert states == [EngineState.RUNNING, EngineState.SUSPENDED,
                          EngineState.RUNNING, EngineState.COMPLETED]
        assert engine.output == "k"

    def test_parse_error_fails_without_running(self):
        engine = ShortOEngine()
        states = record_states(engine)
        errors = []
        engine.on_error = errors.append
        assert engine.run('$"abc') is False
        assert states == [EngineState.FAILED]
        assert engine.error.code == E_PARSE_ERROR
        assert errors == [engine.error.message]
        assert "(Parsing)" in errors[0]
        assert engine.output == errors[0]

    def test_runtime_error_reports_once(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        errors = []
        engine.on_error = errors.append
        engine.run('before $X; after')
        run_loop.run_until_idle()
        assert len(errors) == 1
        assert engine.state is EngineState.FAILED

    def test_final_state_is_captured(self):
        engine = execute_program(ShortOEngine, '$1 2 "x";')
        assert engine.final_state == {'stack': [1.0, 2.0, 'x']}
        assert engine.stack == []

    def test_rerun_starts_fresh(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        for _ in range(2):
            engine.run('Sum: $2 3+,;')
            run_loop.run_until_idle()
        assert engine.output == "Sum: 5"

    def test_run_while_suspended_restarts(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        states = record_states(engine)
        engine.run('$:,;')
        run_loop.run_until_idle()
        engine.send_key('9')
        engine.run('abc')
        run_loop.run_until_idle()
        assert EngineState.CANCELLED in states
        assert engine.state is EngineState.COMPLETED
        assert engine.output == "abc"
        assert engine.console.text == "abc"


# ============================================================================
# Pull Mode
# ============================================================================

class TestPullMode:
    """Without a scheduler the host drives step() itself"""

    def test_step_until_done(self):
        engine = ShortOEngine(config=EngineConfig(step_budget=1))
        engine.run('Sum: $2 3+,;')
        results = []
        while engine.state.active:
            results.append(engine.step())
        assert results[-1] is SliceResult.DONE
        assert results.count(SliceResult.YIELD) >= 4
        assert engine.output == "Sum: 5"

    def test_jump_yields(self):
        engine = ShortOEngine()
        engine.run(COUNTDOWN)
        assert engine.step() is SliceResult.YIELD
        assert engine.output == "3"

    def test_no_yield_on_jump_when_disabled(self):
        engine = ShortOEngine(config=EngineConfig(yield_on_jump=False))
        engine.run(COUNTDOWN)
        assert engine.step() is SliceResult.DONE
        assert engine.output == "321"

    def test_step_reports_suspension(self):
        engine = ShortOEngine()
        engine.run('$.,;')
        assert engine.step() is SliceResult.SUSPEND
        assert engine.step() is SliceResult.SUSPEND
        engine.send_key('q')
        assert engine.state is EngineState.COMPLETED
        assert engine.output == "q"

    def test_step_after_completion(self):
        engine = ShortOEngine()
        engine.run('x')
        engine.step()
        assert engine.step() is SliceResult.DONE

    def test_tiny_slices_match_large_slices(self, tiny_slices):
        small = execute_program(ShortOEngine, COUNTDOWN, config=tiny_slices)
        large = execute_program(ShortOEngine, COUNTDOWN)
        assert small.output == large.output == "321"


# ============================================================================
# Keys
# ============================================================================

class TestSendKey:
    def test_idle_engine_ignores_keys(self):
        engine = ShortOEngine()
        assert engine.send_key('a') is False
        assert engine.state is EngineState.IDLE

    def test_running_engine_ignores_keys(self):
        engine = ShortOEngine()
        engine.run('abc')
        assert engine.send_key('a') is False
        assert engine.state is EngineState.RUNNING

    def test_named_keys_ignored_while_suspended(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        engine.run('$_,;')
        run_loop.run_until_idle()
        assert engine.send_key('Shift') is False
        assert engine.send_key(InputEvent('ArrowUp')) is False
        assert engine.state is EngineState.SUSPENDED

    def test_escape_cancels_running_engine(self):
        engine = ShortOEngine()
        engine.run('abc')
        assert engine.send_key('Escape') is True
        assert engine.state is EngineState.CANCELLED
        assert engine.step() is SliceResult.DONE

    def test_typed_char_equals_literal(self):
        typed = execute_program(ShortOEngine, '$.N,;', keys=['5'])
        literal = execute_program(ShortOEngine, '$"5"N,;')
        assert typed.output == literal.output == "53"


class TestResume:
    """Host supplies a finished value instead of typing keys"""

    def test_resume_number(self):
        engine = ShortOEngine()
        engine.run('$:2*,;')
        assert engine.step() is SliceResult.SUSPEND
        assert engine.resume(21.0) is True
        assert engine.state is EngineState.COMPLETED
        assert engine.output == "42"

    def test_resume_discards_typed_echo(self):
        engine = ShortOEngine()
        engine.run('$_,;')
        engine.step()
        engine.send_key('x')
        assert engine.console.text == "x"
        engine.resume("ok")
        assert engine.output == "ok"

    def test_resume_when_not_suspended(self):
        engine = ShortOEngine()
        assert engine.resume(1.0) is False
        engine.run('abc')
        assert engine.resume(1.0) is False
        assert engine.state is EngineState.RUNNING


# ============================================================================
# Scheduling And Cancellation
# ============================================================================

class TestScheduling:
    def test_engines_share_a_loop(self, run_loop):
        bf = BrainfuckEngine(scheduler=run_loop.call_soon)
        shorto = ShortOEngine(scheduler=run_loop.call_soon)
        bf.run('+' * 72 + '.')
        shorto.run(COUNTDOWN)
        run_loop.run_until_idle()
        assert bf.output == "H"
        assert shorto.output == "321"

    def test_cancel_drops_scheduled_slice(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        engine.run('never printed')
        engine.cancel()
        run_loop.run_until_idle()
        assert engine.state is EngineState.CANCELLED
        assert engine.output == ""

    def test_rerun_drops_stale_slice(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon, config=EngineConfig(step_budget=1))
        engine.run('$1,2,3,;')
        run_loop.run_once()
        engine.run('fresh')
        run_loop.run_until_idle()
        assert engine.output == "fresh"

    def test_cancel_from_output_callback(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        engine.on_output_appended = lambda text: engine.cancel()
        engine.run('$1,2,3,;')
        run_loop.run_until_idle()
        assert engine.state is EngineState.CANCELLED
        assert engine.output == "1"

    def test_cancel_is_idempotent(self):
        engine = ShortOEngine()
        engine.cancel()
        assert engine.state is EngineState.IDLE
        engine.run('x')
        engine.cancel()
        engine.cancel()
        assert engine.state is EngineState.CANCELLED

    def test_output_changed_on_failure(self, run_loop):
        engine = ShortOEngine(scheduler=run_loop.call_soon)
        changes = []
        engine.on_output_changed = changes.append
        engine.run('abc$X;')
        run_loop.run_until_idle()
        assert changes
        assert engine.output.endswith("[OPR: X]")


# ============================================================================
# Determinism
# ============================================================================

class TestDeterminism:
    def test_seeded_random_operator(self):
        first = execute_program(ShortOEngine, '$???,,,;', rng=random.Random(42))
        second = execute_program(ShortOEngine, '$???,,,;', rng=random.Random(42))
        assert first.output == second.output
        assert first.output

    def test_seeded_queen(self):
        source = 'Qa1 Ba2+ Qa1 Ba2+ #'
        first = execute_program(ChessEngine, source, rng=random.Random(3))
        second = execute_program(ChessEngine, source, rng=random.Random(3))
        assert first.output == second.output


class TestCreateEngine:
    @pytest.mark.parametrize("name,cls", [
        ('brainfuck', BrainfuckEngine),
        ('shortO', ShortOEngine),
        ('chess', ChessEngine),
    ])
    def test_known_languages(self, name, cls):
        assert isinstance(create_engine(name), cls)

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            create_engine('cobol')

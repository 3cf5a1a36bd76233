"""
Test suite for the Brainfuck runtime
Byte tape semantics, loops, input suspension and cancellation
"""

import random
import sys
import os

import pytest

# Add grandparent directory to path for imports (to find esolang_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from esolang_runtime import (
    BrainfuckEngine, BrainfuckTokenizer, EngineState, InputMode, execute_program,
)
from esolang_runtime.bf_runtime import tokenize


HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


class TestTokenizer:
    """Only the eight commands become tokens"""

    def test_comments_dropped(self):
        tokens = BrainfuckTokenizer("a+b-c\n.").tokenize()
        assert [t.value for t in tokens] == ['+', '-', '.']
        assert [t.pos for t in tokens] == [1, 3, 6]

    def test_no_markers(self):
        program = tokenize("[->+<]").unwrap()
        assert len(program) == 6
        assert dict(program.markers) == {}


class TestBasicCommands:
    def test_output_code_point_three(self):
        engine = execute_program(BrainfuckEngine, '+++.')
        assert engine.state is EngineState.COMPLETED
        assert engine.output == '\x03'

    def test_letter(self):
        assert execute_program(BrainfuckEngine, '+' * 72 + '.').output == 'H'

    def test_cell_wraps_below_zero(self):
        assert execute_program(BrainfuckEngine, '-.').output == chr(255)

    def test_pointer_wraps_left(self):
        engine = execute_program(BrainfuckEngine, '<+')
        assert engine.final_state['pointer'] == 29_999
        assert engine.final_state['cells'][29_999] == 1

    def test_empty_program(self):
        engine = execute_program(BrainfuckEngine, 'just a comment')
        assert engine.state is EngineState.COMPLETED
        assert engine.output == ''


class TestLoops:
    def test_multiplication_loop(self):
        assert execute_program(BrainfuckEngine, '++[>+++<-]>.').output == chr(6)

    def test_body_runs_once_when_cell_is_zero(self):
        assert execute_program(BrainfuckEngine, '[.]+.').output == '\x00\x01'

    def test_nested_bodies_run_once(self):
        assert execute_program(BrainfuckEngine, '[[.]>.]++.').output == '\x00\x00\x02'

    def test_zero_cell_loop_wraps_around(self):
        engine = execute_program(BrainfuckEngine, '[+.]')
        assert engine.output == ''.join(chr(i % 256) for i in range(1, 257))

    def test_unmatched_close_is_ignored(self):
        assert execute_program(BrainfuckEngine, '+].').output == '\x01'

    def test_hello_world(self):
        assert execute_program(BrainfuckEngine, HELLO_WORLD).output == "Hello World!\n"

    def test_hello_world_with_tiny_slices(self, tiny_slices):
        engine = execute_program(BrainfuckEngine, HELLO_WORLD, config=tiny_slices)
        assert engine.output == "Hello World!\n"


class TestInput:
    def test_suspends_for_input(self, run_loop):
        engine = BrainfuckEngine(scheduler=run_loop.call_soon)
        engine.run(',.')
        run_loop.run_until_idle()
        assert engine.state is EngineState.SUSPENDED
        assert engine.input_mode is InputMode.CHAR

    def test_char_input(self):
        assert execute_program(BrainfuckEngine, ',.', keys=['A']).output == 'A'

    def test_enter_is_newline(self):
        assert execute_program(BrainfuckEngine, ',.', keys=['Enter']).output == '\n'

    def test_tab_and_named_keys_ignored(self, run_loop):
        engine = BrainfuckEngine(scheduler=run_loop.call_soon)
        engine.run(',.')
        run_loop.run_until_idle()
        assert engine.send_key('Tab') is False
        assert engine.send_key('Shift') is False
        assert engine.state is EngineState.SUSPENDED
        assert engine.send_key('z') is True
        run_loop.run_until_idle()
        assert engine.output == 'z'

    def test_input_matches_substitution(self):
        typed = execute_program(BrainfuckEngine, ',+.', keys=['a']).output
        direct = execute_program(BrainfuckEngine, '+' * ord('a') + '+.').output
        assert typed == direct == 'b'

    def test_escape_cancels(self):
        engine = execute_program(BrainfuckEngine, '+.,.', keys=['Escape'])
        assert engine.state is EngineState.CANCELLED
        assert engine.output == '\x01'


class TestPointerProperty:
    @pytest.mark.parametrize("seed", [7, 11, 13])
    def test_random_moves_keep_pointer_in_range(self, seed):
        rng = random.Random(seed)
        source = ''.join(rng.choice('<<<>') for _ in range(5_000))
        engine = execute_program(BrainfuckEngine, source)
        expected = (source.count('>') - source.count('<')) % 30_000
        assert engine.final_state['pointer'] == expected
        assert 0 <= engine.final_state['pointer'] < 30_000


class TestDeterminism:
    def test_same_source_same_output(self):
        outputs = {execute_program(BrainfuckEngine, HELLO_WORLD).output for _ in range(3)}
        assert outputs == {"Hello World!\n"}

"""
Pytest configuration and fixtures for esolang_runtime tests.
"""

import os
import random
import sys

import pytest

# Add grandparent directory to path for imports (to find esolang_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from esolang_runtime import EngineConfig, RunLoop


@pytest.fixture
def run_loop():
    """Fresh host run loop"""
    loop = RunLoop()
    yield loop
    loop.clear()


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def tiny_slices():
    """Config that yields after every token"""
    return EngineConfig(step_budget=1)

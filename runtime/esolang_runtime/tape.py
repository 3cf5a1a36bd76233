"""
Esolang Runtime - Wrap-around Tape

Fixed-length numeric tape addressed by a single pointer. Both the pointer
and the cell values wrap in both directions, so neither can leave its
range: pointer in [0, length-1], cells in [0, modulus-1].
"""

import math

import numpy as np


class Tape:
    """numpy-backed tape of wrap-around cells"""

    def __init__(self, length: int = 30_000, modulus: int = 256):
        self.length = length
        self.modulus = modulus
        dtype = np.uint8 if modulus <= 256 else np.int64
        self.cells = np.zeros(length, dtype=dtype)
        self.pointer = 0

    @property
    def value(self) -> int:
        return int(self.cells[self.pointer])

    def move(self, delta: int):
        self.pointer = (self.pointer + int(delta)) % self.length

    def add(self, delta: int):
        self.cells[self.pointer] = (self.value + int(delta)) % self.modulus

    def set(self, value):
        """Store a value; non-finite values store 0"""
        if isinstance(value, float):
            if not math.isfinite(value):
                value = 0
            value = math.trunc(value)
        self.cells[self.pointer] = int(value) % self.modulus

    def reset(self):
        self.cells.fill(0)
        self.pointer = 0

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"Tape(length={self.length}, pointer={self.pointer}, value={self.value})"


__all__ = ['Tape']

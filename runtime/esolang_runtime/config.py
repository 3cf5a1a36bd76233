"""
Esolang Runtime - Engine Configuration

Defaults mirror the browser interpreters: a 30,000 cell tape of bytes and
a 15 ms scheduling slice. Every value can be overridden from the
environment with an ESOLANG_ prefix, e.g. ESOLANG_TIME_SLICE=0.05.
"""

from typing import Mapping, Optional
from dataclasses import dataclass, fields, replace
import os


@dataclass(frozen=True)
class EngineConfig:
    """Tunables shared by every engine"""
    tape_length: int = 30_000
    cell_modulus: int = 256
    time_slice: float = 0.015   # seconds per scheduling slice
    step_budget: int = 10_000   # tokens per scheduling slice
    yield_on_jump: bool = True

    def __post_init__(self):
        for name in ('tape_length', 'cell_modulus', 'time_slice', 'step_budget'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")

    @classmethod
    def from_env(cls, prefix: str = "ESOLANG_", environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from environment variables"""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(prefix + f.name.upper())
            if raw is None:
                continue
            if f.type in (bool, 'bool'):
                overrides[f.name] = raw.strip().lower() in ('1', 'true', 'yes', 'on')
            elif f.type in (int, 'int'):
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = float(raw)
        return replace(cls(), **overrides)


DEFAULT_CONFIG = EngineConfig()


__all__ = ['EngineConfig', 'DEFAULT_CONFIG']

"""
Esolang Runtime - Operator Registry

Maps an operator symbol to its implementation. Each language builds one
registry at import time and freezes it; engines receive it at
construction and only read from it, so any number of engines can share it.
"""

from typing import Callable, Dict, Iterator, Tuple


class OperatorRegistry:
    """Symbol -> operator function"""

    def __init__(self, name: str):
        self.name = name
        self._operators: Dict[str, Callable] = {}
        self._frozen = False

    def register(self, *symbols: str) -> Callable[[Callable], Callable]:
        """Decorator registering a function under one or more symbols"""
        def decorator(func: Callable) -> Callable:
            for symbol in symbols:
                self.add(symbol, func)
            return func
        return decorator

    def add(self, symbol: str, func: Callable):
        if self._frozen:
            raise RuntimeError(f"Operator registry '{self.name}' is frozen")
        if symbol in self._operators:
            raise ValueError(f"Operator '{symbol}' registered twice in '{self.name}'")
        self._operators[symbol] = func

    def freeze(self) -> "OperatorRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(self._operators)

    def __getitem__(self, symbol: str) -> Callable:
        return self._operators[symbol]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._operators

    def __iter__(self) -> Iterator[str]:
        return iter(self._operators)

    def __len__(self) -> int:
        return len(self._operators)

    def __repr__(self) -> str:
        return f"OperatorRegistry({self.name!r}, {len(self._operators)} operators)"


__all__ = ['OperatorRegistry']

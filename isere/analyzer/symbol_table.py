"""
Symbol table for Isere code generation.

Isere has no nested binding constructs: the only names an expression can
reference are the parameters of the function being lowered. The table is
therefore a single flat scope, reset at the start of every function.

Author: xwest
"""

from typing import Any, Dict, Iterable, Iterator, Optional, Tuple


class SymbolTable:
    """Maps parameter names to IR values for one function body."""

    def __init__(self):
        self._symbols: Dict[str, Any] = {}
        self.function_name: Optional[str] = None

    def reset(self, bindings: Iterable[Tuple[str, Any]] = (),
              function_name: Optional[str] = None) -> None:
        """
        Start a new function scope holding exactly ``bindings``.

        Bindings are applied in order, so a repeated name ends up bound to
        its last value.
        """
        self._symbols.clear()
        self.function_name = function_name
        for name, value in bindings:
            self._symbols[name] = value

    def lookup(self, name: str) -> Optional[Any]:
        """Return the value bound to ``name``, or None."""
        return self._symbols.get(name)

    def clear(self) -> None:
        self.reset()

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __str__(self) -> str:
        names = ", ".join(self._symbols)
        return f"SymbolTable({self.function_name or '<none>'}: {names})"

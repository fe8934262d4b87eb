"""
The IR-construction facility used by the Isere code generator.

``IRBuilder`` is the whole contract between code generation and a backend.
Handles and values are opaque to the code generator; each backend decides
what they are (in-memory IR objects, llvmlite objects, ...).

Author: xwest
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Sequence


class BinaryOpcode(Enum):
    """Binary instructions the code generator can ask for."""
    FADD = "fadd"
    FSUB = "fsub"
    FMUL = "fmul"
    FCMP_ULT = "fcmp ult"   # unordered-or-less-than, yields a 1-bit boolean


class IRBuilder(ABC):
    """Abstract IR-construction facility."""

    # Functions

    @abstractmethod
    def declare_function(self, name: str, params: Sequence[str]) -> Any:
        """
        Declare ``double name(double, ...)`` with external linkage.

        ``params`` name the formal parameters (one per parameter).
        """

    @abstractmethod
    def lookup_function(self, name: str) -> Optional[Any]:
        """Return the declared/defined function called ``name``, or None."""

    @abstractmethod
    def function_name(self, function: Any) -> str:
        pass

    @abstractmethod
    def function_arity(self, function: Any) -> int:
        pass

    @abstractmethod
    def has_body(self, function: Any) -> bool:
        """True once a body has been started for ``function``."""

    @abstractmethod
    def parameters(self, function: Any) -> List[Any]:
        """The function's formal parameters as IR values, in order."""

    @abstractmethod
    def begin_body(self, function: Any) -> None:
        """Open the entry block; subsequent emits go into it."""

    @abstractmethod
    def finalize(self, function: Any) -> None:
        """
        Validate a finished function.

        Raises:
            IRVerificationError: If the function is malformed
        """

    @abstractmethod
    def erase_function(self, function: Any) -> None:
        """Remove the function (declaration and body) from the module."""

    @abstractmethod
    def remove_body(self, function: Any) -> None:
        """Drop the function's body, turning it back into a declaration."""

    # Instructions

    @abstractmethod
    def emit_constant(self, value: float) -> Any:
        pass

    @abstractmethod
    def emit_binary(self, opcode: BinaryOpcode, lhs: Any, rhs: Any, name: str = "") -> Any:
        pass

    @abstractmethod
    def emit_bool_to_float(self, value: Any, name: str = "") -> Any:
        """Widen a 1-bit boolean to 0.0/1.0 (unsigned int-to-float)."""

    @abstractmethod
    def emit_call(self, function: Any, args: Sequence[Any], name: str = "") -> Any:
        pass

    @abstractmethod
    def set_return(self, value: Any) -> None:
        pass

    # Output

    @abstractmethod
    def render_function(self, function: Any) -> str:
        """Textual IR of one function."""

    @abstractmethod
    def render_module(self) -> str:
        """Textual IR of the whole module."""

    @abstractmethod
    def evaluate(self, function: Any, args: Sequence[float] = ()) -> float:
        """
        Run a defined function and return its result.

        Raises:
            IREvaluationError: If the function cannot be executed
        """

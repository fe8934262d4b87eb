"""
Evaluator for the in-memory Isere IR.

Walks a function's entry block instruction by instruction. Calls to
declared-only (imported) functions go to Python callables; ``DEFAULT_EXTERNALS``
covers the usual libm names.

Python's ``math`` raises where C libm returns an IEEE special value, so the
default externals translate those cases: ``log(0)`` is ``-inf``, ``sqrt(-1)``
is ``nan`` and ``exp(1000)`` is ``inf``, the same as on the LLVM backend.

Author: xwest
"""

import math
from typing import Callable, Dict, Mapping, Optional, Sequence

from .errors import IREvaluationError
from .ir_builder import BinaryOpcode
from .ir_nodes import (
    IRModule, IRFunction, IRValue, IRConstant, IRBinaryOp, IRBoolToFloat,
    IRCall, IRReturn
)


def _domain_nan(function: Callable[[float], float]) -> Callable[[float], float]:
    """Wrap a one-argument math function to give NaN outside its domain."""
    def wrapper(x: float) -> float:
        try:
            return function(x)
        except ValueError:
            return math.nan
    wrapper.__name__ = function.__name__
    return wrapper


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _log(x: float) -> float:
    if x == 0.0:
        return -math.inf
    if x < 0.0:
        return math.nan
    return math.log(x)


def _is_odd_integer(y: float) -> bool:
    return math.isfinite(y) and y == math.floor(y) and math.fmod(y, 2.0) != 0.0


def _pow(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        return -math.inf if x < 0.0 and _is_odd_integer(y) else math.inf
    except ValueError:
        if x == 0.0:
            # Zero to a negative power: a pole, signed like x for odd y
            return math.copysign(math.inf, x) if _is_odd_integer(y) else math.inf
        return math.nan


DEFAULT_EXTERNALS: Mapping[str, Callable[..., float]] = {
    "sin": _domain_nan(math.sin),
    "cos": _domain_nan(math.cos),
    "tan": _domain_nan(math.tan),
    "atan": math.atan,
    "exp": _exp,
    "log": _log,
    "sqrt": _domain_nan(math.sqrt),
    "fabs": math.fabs,
    "pow": _pow,
}

# Two Python frames per IR call level; kept far below sys.getrecursionlimit()
DEFAULT_MAX_DEPTH = 200


def _fcmp_ult(left: float, right: float) -> bool:
    """Unordered-or-less-than: true if either side is NaN."""
    return math.isnan(left) or math.isnan(right) or left < right


class IRInterpreter:
    """Evaluates functions of an ``IRModule``."""

    def __init__(self, module: IRModule,
                 externals: Optional[Mapping[str, Callable[..., float]]] = None,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.module = module
        self.externals: Dict[str, Callable[..., float]] = dict(DEFAULT_EXTERNALS)
        if externals:
            self.externals.update(externals)
        self.max_depth = max_depth
        self._depth = 0

    def call(self, name: str, args: Sequence[float] = ()) -> float:
        """Call the module function ``name`` with ``args``."""
        function = self.module.get_function(name)
        if function is None:
            raise IREvaluationError(f"no function named '{name}' in module '{self.module.name}'")
        try:
            return self._call(function, [float(arg) for arg in args])
        except RecursionError as e:
            raise IREvaluationError(f"call depth exceeded the Python stack in '{name}'") from e

    def _call(self, function: IRFunction, args: Sequence[float]) -> float:
        if len(args) != function.arity:
            raise IREvaluationError(
                f"'{function.name}' takes {function.arity} arguments, got {len(args)}"
            )

        if function.is_declaration:
            external = self.externals.get(function.name)
            if external is None:
                raise IREvaluationError(f"unresolved external function '{function.name}'")
            try:
                return float(external(*args))
            except (ArithmeticError, ValueError) as e:
                raise IREvaluationError(
                    f"external function '{function.name}' failed: {e}"
                ) from e

        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise IREvaluationError(f"call depth exceeded {self.max_depth} in '{function.name}'")
            env: Dict[int, float] = {id(param): arg for param, arg in zip(function.parameters, args)}
            for instr in function.entry_block.instructions:
                if isinstance(instr, IRReturn):
                    return float(self._value(env, instr.value))
                env[id(instr)] = self._execute(env, instr)
        finally:
            self._depth -= 1

        raise IREvaluationError(f"function '{function.name}' fell off the end of its body")

    def _execute(self, env: Dict[int, float], instr) -> float:
        if isinstance(instr, IRBinaryOp):
            left = self._value(env, instr.left)
            right = self._value(env, instr.right)
            if instr.opcode == BinaryOpcode.FADD:
                return left + right
            if instr.opcode == BinaryOpcode.FSUB:
                return left - right
            if instr.opcode == BinaryOpcode.FMUL:
                return left * right
            if instr.opcode == BinaryOpcode.FCMP_ULT:
                return _fcmp_ult(left, right)
        elif isinstance(instr, IRBoolToFloat):
            return 1.0 if self._value(env, instr.operand) else 0.0
        elif isinstance(instr, IRCall):
            return self._call(instr.function, [self._value(env, arg) for arg in instr.args])
        raise IREvaluationError(f"cannot evaluate instruction: {instr}")

    @staticmethod
    def _value(env: Dict[int, float], value: IRValue):
        if isinstance(value, IRConstant):
            return value.value
        return env[id(value)]
